"""
Dashboard presentation services.
"""
from .export import (
    build_order_export,
    export_filename,
    format_display_date,
    render_order_export,
)
from .page import render_order_page

__all__ = [
    "build_order_export",
    "export_filename",
    "format_display_date",
    "render_order_export",
    "render_order_page",
]
