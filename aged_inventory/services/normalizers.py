"""
Numeric and size-token normalization helpers for report cells.
"""

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List

# Leading numeric prefix, same leniency as a spreadsheet's "number-ish" cell
_NUMBER_PREFIX = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

SIZE_ORDER = {"XS": 0, "S": 1, "M": 2, "L": 3, "XL": 4, "1X": 5, "2X": 6, "3X": 7, "4X": 8}
UNKNOWN_SIZE_RANK = len(SIZE_ORDER)


def parse_number(value: Any) -> float:
    """
    Parse a report cell as a number.

    Thousands separators are dropped and only the leading numeric part is read,
    so "1,234.50" -> 1234.5 and "12 pcs" -> 12.0. Blank or unparsable cells are 0.
    """
    if value is None:
        return 0.0
    text = str(value).replace(",", "")
    match = _NUMBER_PREFIX.match(text)
    if not match:
        return 0.0
    number = float(match.group(0))
    if number != number or number in (float("inf"), float("-inf")):
        return 0.0
    return number


def parse_int(value: Any) -> int:
    """Parse a cell as a whole number, truncating toward zero"""
    return int(parse_number(value))


def round_half_up(value: float, places: int) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def size_rank(token: str) -> int:
    return SIZE_ORDER.get(token, UNKNOWN_SIZE_RANK)


def resolve_sizes(tokens: Iterable[str]) -> List[str]:
    """
    Dedupe size tokens and put them in canonical order.

    Known sizes follow SIZE_ORDER; unknown tokens go after them in the order
    they were first seen. Blank tokens are dropped, so a row reported
    without a size adds nothing to the group's size set.
    """
    unique = list(dict.fromkeys(t for t in tokens if t))
    return sorted(unique, key=size_rank)
