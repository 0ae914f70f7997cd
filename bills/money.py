"""Currency parsing and label-proximity search over bill lines."""

from __future__ import annotations

import math
import re
from typing import Iterable, Optional, Sequence

# Optional "$", thousands separators, exactly two decimal digits.
MONEY_PATTERN = re.compile(r"(?<![\d.,])(?:\$\s*)?((?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2})(?!\d)")

LABEL_WINDOW = 3


def parse_money(raw) -> Optional[float]:
    """'$1,234.56' -> 1234.56; anything unparsable -> None."""
    if raw is None:
        return None
    cleaned = re.sub(r"[$,\s]", "", str(raw))
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def first_money(text: str, start: int = 0) -> Optional[float]:
    match = MONEY_PATTERN.search(text, start)
    return parse_money(match.group(1)) if match else None


def all_money(text: str) -> list[float]:
    values = (parse_money(m.group(1)) for m in MONEY_PATTERN.finditer(text or ""))
    return [v for v in values if v is not None]


def max_money(text: str) -> Optional[float]:
    """Largest currency amount anywhere in the text."""
    values = all_money(text)
    return max(values) if values else None


def compile_labels(labels: Iterable[str]) -> re.Pattern:
    """Case-insensitive alternation over candidate label phrases (regex fragments)."""
    return re.compile("|".join(f"(?:{label})" for label in labels), re.IGNORECASE)


def find_money_near_label(
    lines: Sequence[str],
    label_pattern: re.Pattern,
    *,
    window: int = LABEL_WINDOW,
) -> Optional[float]:
    """
    Scan lines top-to-bottom for the label; on each hit look at the label line
    (after the label text) and the next ``window - 1`` lines for an amount.

    Returns the first amount found, or None when no label window holds one.
    """
    for i, line in enumerate(lines):
        hit = label_pattern.search(line)
        if not hit:
            continue
        value = first_money(line, hit.end())
        if value is not None:
            return value
        for follower in lines[i + 1:i + window]:
            value = first_money(follower)
            if value is not None:
                return value
    return None


def extract_money(
    lines: Sequence[str],
    text: str,
    label_pattern: re.Pattern,
    *,
    fallback_to_max: bool = False,
) -> Optional[float]:
    """Label-proximity search first; optionally the document maximum as a blind fallback."""
    value = find_money_near_label(lines, label_pattern)
    if value is None and fallback_to_max:
        value = max_money(text)
    return value
