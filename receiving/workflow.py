"""
Purchase-order receiving workflow.

One ReceivingWorkflow per order page.  It keeps what the page keeps: the
last fetched order, the session's delivery log, the receive form draft, an
extra-quantity receipt awaiting confirmation, and the submitting flag.

Receiving protocol
------------------
  1. submit_receipt() validates the inputs locally (no network call on
     failure) and POSTs them with confirm_extra_quantity=false.
  2. If the API answers {"error": "extra_quantity", ordered,
     would_be_received, message}, nothing was recorded.  The payload is
     parked and an ExtraQuantityPrompt is returned; local state is untouched.
  3. confirm_extra_quantity() resends the identical payload with
     confirm_extra_quantity=true.  decline_extra_quantity() drops it.
  4. On success the delivery is appended to the log, the draft is cleared
     and the order is re-fetched so status / remaining come from the API.

The API is the only judge of whether a receipt exceeds the ordered
quantity; the workflow never does that arithmetic itself.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional, Union

from config import Config
from models.purchase_order import CLOSED_STATUSES, DeliveryRecord, PurchaseOrder, ReceiptDraft
from models.result import DeliveryConfirmation, ExtraQuantityPrompt, ReceiptPayload

from .errors import (
    ApiError,
    OrderFetchError,
    ReceiveError,
    SubmissionInProgress,
    UpdateError,
)
from .validator import DateInput, OrderInputValidator

logger = logging.getLogger(__name__)

EXTRA_QUANTITY = "extra_quantity"

MSG_RECEIVED        = "Delivery recorded successfully"
MSG_RECEIVED_EXTRA  = "Delivery with extra quantity recorded successfully"
MSG_UPDATED         = "Purchase order updated successfully"
MSG_RECEIVE_FAILED  = "Failed to record received quantity"
MSG_UPDATE_FAILED   = "Failed to update purchase order"

ReceiptOutcome = Union[DeliveryConfirmation, ExtraQuantityPrompt]


def can_receive(order: Optional[PurchaseOrder]) -> bool:
    """Whether the receive form is offered at all (never for Received / Cancelled)."""
    return order is not None and order.status not in CLOSED_STATUSES


class ReceivingWorkflow:
    """
    Usage:
        wf = ReceivingWorkflow(client, order_id=42)
        wf.load()
        outcome = wf.submit_receipt(20, fully_delivered=False, next_delivery_date="2025-07-01")
        if isinstance(outcome, ExtraQuantityPrompt):
            outcome = wf.confirm_extra_quantity()   # after asking the operator
    """

    def __init__(
        self,
        client: Any,
        order_id: int,
        config: Optional[Config] = None,
        today: Optional[Callable[[], date]] = None,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        config = config or Config()
        self.client = client
        self.order_id = order_id
        self.validator = OrderInputValidator(default_note=config.default_receipt_note)
        self.history_note = config.default_history_note
        self._today = today or date.today
        self._now = now or (lambda: datetime.now(timezone.utc))

        self.order: Optional[PurchaseOrder] = None
        self.history: list[DeliveryRecord] = []
        self.draft = ReceiptDraft()
        self.pending: Optional[ExtraQuantityPrompt] = None

        # Operator-facing state, mirrored by the dashboard and CLI
        self.message: str = ""
        self.fetch_error: Optional[str] = None
        self.receive_error: Optional[str] = None
        self.update_error: Optional[str] = None

        self._lock = threading.Lock()
        # Guards order + history: a load never interleaves with a receipt
        # between the server commit and the local delivery record.
        self._state_lock = threading.RLock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @property
    def submitting(self) -> bool:
        return self._lock.locked()

    @property
    def can_receive(self) -> bool:
        return can_receive(self.order)

    def today(self) -> date:
        return self._today()

    def load(self) -> PurchaseOrder:
        """Fetch the order; raises OrderFetchError (and records fetch_error) on failure."""
        with self._state_lock:
            try:
                order = self.client.get_order(self.order_id)
            except ApiError as e:
                self.fetch_error = e.message
                logger.error("Failed to load purchase order #%s: %s", self.order_id, e.message)
                raise OrderFetchError(self.order_id, e) from e

            self.order = order
            self.fetch_error = None
            self.draft.quantity_received = ""
            self.draft.fully_delivered = False
            self._reconcile_history(order)
        logger.debug(
            "Loaded order #%s: status=%s received=%d/%d",
            order.order_id, order.status, order.received_qty, order.quantity_ordered,
        )
        return order

    def _reconcile_history(self, order: PurchaseOrder) -> None:
        """
        Keep the delivery log summing to the API's quantity_received.

        Deliveries the session did not record itself (earlier sessions, other
        operators) become one record dated with the order's received_date.
        """
        recorded = sum(r.quantity for r in self.history)
        gap = order.received_qty - recorded
        if gap <= 0:
            return
        self.history.append(DeliveryRecord(
            date=order.received_date,
            quantity=gap,
            notes="Initial delivery" if not self.history else "Recorded outside this session",
        ))

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    def prefill_full_delivery(self) -> Optional[int]:
        """
        Tick "fully delivered" and fill the quantity with what is still due.

        Returns the suggested quantity, or None when nothing remains.
        """
        self.draft.fully_delivered = True
        if self.order is not None and self.order.remaining_qty > 0:
            self.draft.quantity_received = str(self.order.remaining_qty)
            return self.order.remaining_qty
        return None

    def submit_receipt(
        self,
        quantity_received,
        fully_delivered: bool = False,
        notes: Optional[str] = "",
        next_delivery_date: DateInput = None,
    ) -> ReceiptOutcome:
        """
        Record a delivery.

        Returns a DeliveryConfirmation, or an ExtraQuantityPrompt when the
        operator must confirm an over-delivery first.  Raises ReceiveError
        (InvalidQuantity / MissingNextDeliveryDate before any network call).
        """
        with self._submitting():
            self.message = ""
            self.receive_error = None
            self.draft = ReceiptDraft(
                quantity_received="" if quantity_received is None else str(quantity_received),
                fully_delivered=bool(fully_delivered),
                notes=notes or "",
                next_delivery_date="" if next_delivery_date is None else str(next_delivery_date),
            )
            try:
                payload = self.validator.validate_receipt(
                    quantity_received, fully_delivered, notes, next_delivery_date, today=self._today()
                )
            except ReceiveError as e:
                self.receive_error = str(e)
                raise

            self.pending = None
            return self._send(payload)

    def confirm_extra_quantity(self) -> DeliveryConfirmation:
        """Resubmit the parked receipt with confirm_extra_quantity=true."""
        if self.pending is None:
            raise ReceiveError("There is no extra-quantity receipt awaiting confirmation")
        with self._submitting():
            prompt, self.pending = self.pending, None
            self.receive_error = None
            payload = prompt.payload.model_copy(update={"confirm_extra_quantity": True})
            logger.info(
                "Operator confirmed extra quantity on order #%s (%d → %d)",
                self.order_id, prompt.ordered, prompt.would_be_received,
            )
            try:
                return self._commit(payload)
            except ApiError as e:
                raise self._receive_failed(e) from e

    def decline_extra_quantity(self) -> Optional[ExtraQuantityPrompt]:
        """Drop the parked receipt; nothing is sent and nothing is recorded."""
        prompt, self.pending = self.pending, None
        if prompt is not None:
            logger.info("Operator declined extra quantity on order #%s", self.order_id)
        return prompt

    def _send(self, payload: ReceiptPayload) -> ReceiptOutcome:
        """First submission: an extra_quantity rejection parks the payload."""
        try:
            return self._commit(payload)
        except ApiError as e:
            if e.error_code != EXTRA_QUANTITY:
                raise self._receive_failed(e) from e
            self.pending = _extra_quantity_prompt(self.order_id, e, payload)
            logger.info(
                "Order #%s: receipt of %d needs confirmation (ordered %d, would be %d)",
                self.order_id, payload.quantity_received,
                self.pending.ordered, self.pending.would_be_received,
            )
            return self.pending

    def _commit(self, payload: ReceiptPayload) -> DeliveryConfirmation:
        """POST the receipt and record it locally.  ApiError propagates untouched."""
        confirmed = payload.confirm_extra_quantity
        with self._state_lock:
            body = self.client.receive(self.order_id, payload)
            self.history.append(DeliveryRecord(
                date=self._now().isoformat(),
                quantity=payload.quantity_received,
                notes=self.draft.notes.strip() or self.history_note,
            ))
            self.draft = ReceiptDraft()
            message = MSG_RECEIVED_EXTRA if confirmed else MSG_RECEIVED
            self.message = message
            logger.info(
                "Order #%s: recorded delivery of %d%s",
                self.order_id, payload.quantity_received, " (extra confirmed)" if confirmed else "",
            )
            self._refresh()

        return DeliveryConfirmation(
            order_id=self.order_id,
            quantity=payload.quantity_received,
            notes=payload.notes,
            extra_quantity_confirmed=confirmed,
            message=message,
            server_message=body.get("message") if isinstance(body, dict) else None,
        )

    def _receive_failed(self, err: ApiError) -> ReceiveError:
        self.receive_error = err.message or MSG_RECEIVE_FAILED
        return ReceiveError(self.receive_error)

    # ------------------------------------------------------------------
    # General order update
    # ------------------------------------------------------------------

    def update_order(
        self,
        expected_delivery_date: DateInput,
        unit_cost,
        quantity_ordered,
        status: Optional[str],
    ) -> Optional[PurchaseOrder]:
        """
        PUT expected date / unit cost / quantity ordered / status.

        Independent of receiving: quantity_ordered may drop below what has
        already been received; no reconciliation is attempted.
        """
        with self._submitting():
            self.message = ""
            self.update_error = None
            try:
                body = self.validator.validate_update(
                    expected_delivery_date, unit_cost, quantity_ordered, status
                )
            except UpdateError as e:
                self.update_error = str(e)
                raise

            try:
                echoed = self.client.update_order(self.order_id, body)
            except ApiError as e:
                self.update_error = e.message or MSG_UPDATE_FAILED
                raise UpdateError(self.update_error) from e

            self.message = MSG_UPDATED
            logger.info("Order #%s updated: %s", self.order_id, body)
            if not self._refresh() and echoed is not None:
                self.order = echoed
            return self.order

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _refresh(self) -> bool:
        """Re-fetch after a mutation.  The mutation already succeeded, so failure is only recorded."""
        try:
            self.load()
            return True
        except OrderFetchError as e:
            logger.warning("Order #%s saved but could not be re-fetched: %s", self.order_id, e)
            return False

    @contextmanager
    def _submitting(self):
        if not self._lock.acquire(blocking=False):
            raise SubmissionInProgress()
        try:
            yield
        finally:
            self._lock.release()


def _extra_quantity_prompt(order_id: int, err: ApiError, payload: ReceiptPayload) -> ExtraQuantityPrompt:
    body = err.payload
    return ExtraQuantityPrompt(
        order_id=order_id,
        ordered=int(body.get("ordered") or 0),
        would_be_received=int(body.get("would_be_received") or 0),
        message=body.get("message") or err.message,
        payload=payload,
    )
