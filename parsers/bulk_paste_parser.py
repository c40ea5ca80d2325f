"""
Bulk paste parser.

Turns text pasted from a spreadsheet, CSV or a hand-typed list into
(part number, quantity) rows. Malformed lines are dropped, never raised.
"""

from dataclasses import dataclass, field
from typing import Optional
import structlog

from models.bulk_order import BulkRow
from utils.text_utils import normalize_sku, parse_leading_int

logger = structlog.get_logger(__name__)

# Checked in order; the first one present on a line wins for that line
DELIMITER_PRIORITY = ("\t", ",", ";", "|")
SPACE_DELIMITER = " "


@dataclass
class BulkParseResult:
    """Rows read from a paste plus what was skipped."""
    rows: list[BulkRow] = field(default_factory=list)
    lines_read: int = 0
    blank_lines: int = 0
    dropped_lines: list[int] = field(default_factory=list)  # 1-based line numbers


def detect_delimiter(line: str) -> str:
    """
    Pick the field delimiter for a single line.

    Tab, then comma, then semicolon, then pipe; space when none is present.
    """
    for delimiter in DELIMITER_PRIORITY:
        if delimiter in line:
            return delimiter
    return SPACE_DELIMITER


def split_fields(line: str) -> list[str]:
    """Split a trimmed line on its detected delimiter."""
    delimiter = detect_delimiter(line)
    if delimiter == SPACE_DELIMITER:
        # Aligned columns ("PART123    5") are still two fields
        return line.split()
    return line.split(delimiter)


def parse_line(line: str) -> Optional[BulkRow]:
    """
    Parse one line into a pending row.

    Returns None when the line has fewer than two fields, the part number
    is empty after normalization, or the quantity is not a positive integer.
    """
    fields = split_fields(line)
    if len(fields) < 2:
        return None

    sku = normalize_sku(fields[0])
    if not sku:
        return None

    quantity = parse_leading_int(fields[1].strip())
    if quantity is None or quantity <= 0:
        return None

    return BulkRow.new(sku, quantity)


def parse_bulk_paste(raw_text: Optional[str]) -> BulkParseResult:
    """
    Parse pasted text line by line, keeping input order.

    Args:
        raw_text: Text as pasted (any line endings)

    Returns:
        BulkParseResult with the rows and the skipped line numbers
    """
    result = BulkParseResult()
    if not raw_text:
        return result

    for line_number, raw_line in enumerate(raw_text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            result.blank_lines += 1
            continue

        result.lines_read += 1
        row = parse_line(line)
        if row is None:
            result.dropped_lines.append(line_number)
            continue
        result.rows.append(row)

    logger.info(
        "bulk_text_parsed",
        lines_read=result.lines_read,
        rows=len(result.rows),
        dropped=len(result.dropped_lines),
    )

    return result


def parse_bulk_text(raw_text: Optional[str]) -> list[BulkRow]:
    """Parse pasted text into pending rows (see parse_bulk_paste)."""
    return parse_bulk_paste(raw_text).rows
