"""
Presentation layer containing:
- View Models: display rows and formatting for API responses
- Views: Tkinter window for the worker-pool frontend

Views are imported from ``ldk_console.presentation.views`` so that
importing view models does not require Tk.
"""
from .view_models import (
    format_msat,
    format_sats,
    truncate_id,
    format_relative_time,
    payment_kind_label,
    direction_label,
    status_label,
    ChannelRow,
    PaymentRow,
)

__all__ = [
    'format_msat',
    'format_sats',
    'truncate_id',
    'format_relative_time',
    'payment_kind_label',
    'direction_label',
    'status_label',
    'ChannelRow',
    'PaymentRow',
]
