"""Utility functions for ledgerimport."""

from ledgerimport.utils.date_parser import parse_date
from ledgerimport.utils.amount_parser import parse_amount
from ledgerimport.utils.encoding import decode

__all__ = ["parse_date", "parse_amount", "decode"]
