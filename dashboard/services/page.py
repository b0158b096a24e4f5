"""
Server-side rendering of the order page (templates/order.html.j2).
"""
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from models.purchase_order import ALL_STATUSES
from receiving.view import OrderView

from .export import format_display_date

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "j2"]),
    keep_trailing_newline=True,
)
_env.filters["display_date"] = format_display_date


def render_order_page(view: OrderView, not_found: bool = False) -> str:
    tmpl = _env.get_template("order.html.j2")
    return tmpl.render(view=view, statuses=ALL_STATUSES, not_found=not_found)
