"""
Excel and file parsers module.
"""

from parsers.order_workbook_parser import (
    parse_order_workbook,
)

__all__ = [
    "parse_order_workbook",
]
