"""
Utility modules for the appraisal engine.
"""

from .formatting import format_currency, format_percent, format_number, format_signed_currency
from .config import Config

__all__ = ["format_currency", "format_percent", "format_number", "format_signed_currency", "Config"]
