from .date_helpers import DateHelpers
from .constants import AppConstants, ErrorCodes, Messages
from .validation import ValidationHelpers

__all__ = [
    "DateHelpers",
    "AppConstants", "ErrorCodes", "Messages",
    "ValidationHelpers",
]
