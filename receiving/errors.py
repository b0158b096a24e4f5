"""
Exception types for the receiving console.

  ReceiveError            anything that stops a delivery from being recorded
  UpdateError             anything that stops an order update
  InvalidQuantity         bad quantity (raised by both operations)
  MissingNextDeliveryDate partial delivery without a usable next date
  InvalidUnitCost         unit cost missing, non-numeric or <= 0
  InvalidStatus           status outside the four known values
  SubmissionInProgress    a second action while one request is outstanding
  ApiError                non-2xx response or transport failure from the API
  OrderNotFound           404 for the order resource
  SessionExpired          the local JWT is past its exp claim
  OrderFetchError         the order page could not be loaded

An extra-quantity rejection is not an error; it is returned as an
ExtraQuantityPrompt by the workflow.
"""
from typing import Optional


class ReceiveError(Exception):
    """A receipt could not be recorded.  str(exc) is operator-facing."""


class UpdateError(Exception):
    """An order update could not be saved.  str(exc) is operator-facing."""


class InvalidQuantity(ReceiveError, UpdateError):
    def __init__(self, message: str = "Please enter a valid quantity") -> None:
        super().__init__(message)


class MissingNextDeliveryDate(ReceiveError):
    def __init__(
        self,
        message: str = "Please enter the next expected delivery date for this partial delivery",
    ) -> None:
        super().__init__(message)


class InvalidUnitCost(UpdateError):
    def __init__(self, message: str = "Please enter a valid unit cost") -> None:
        super().__init__(message)


class InvalidStatus(UpdateError):
    pass


class SubmissionInProgress(ReceiveError, UpdateError):
    def __init__(self, message: str = "Another submission for this order is still in progress") -> None:
        super().__init__(message)


class ApiError(Exception):
    """
    The order-management API answered with an error, or could not be reached.

    status_code is None for transport failures (DNS, refused, timeout).
    payload is the decoded JSON error body when there was one.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[dict] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}

    @property
    def error_code(self) -> Optional[str]:
        """The body's "error" field, e.g. "extra_quantity"."""
        err = self.payload.get("error")
        return err if isinstance(err, str) else None


class OrderNotFound(ApiError):
    pass


class SessionExpired(ApiError):
    def __init__(self, message: str = "Session expired, please log in again") -> None:
        super().__init__(message, status_code=401)


class OrderFetchError(Exception):
    """The order could not be (re)loaded.  Carries the underlying ApiError."""

    def __init__(self, order_id: int, cause: ApiError) -> None:
        super().__init__(f"Could not load purchase order #{order_id}: {cause.message}")
        self.order_id = order_id
        self.cause = cause

    @property
    def not_found(self) -> bool:
        return isinstance(self.cause, OrderNotFound)
