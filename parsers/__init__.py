"""
Text parsers module.
"""

from parsers.bulk_paste_parser import (
    parse_bulk_text,
    parse_bulk_paste,
    detect_delimiter,
    BulkParseResult,
)

__all__ = [
    "parse_bulk_text",
    "parse_bulk_paste",
    "detect_delimiter",
    "BulkParseResult",
]
