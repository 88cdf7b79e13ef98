"""Input parsers and display formatters for the chat flows.

Everything here is pure: no I/O, no session access. Parsers return None when
the input is rejected so step handlers can reprompt.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

LBS_PER_SHORT_TON = 2000
LBS_PER_KG = 2.20462

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_NON_NUMERIC_RE = re.compile(r"[^0-9.]")
_NON_ALPHA_RE = re.compile(r"[^a-zA-Z\s]")
_WORD_START_RE = re.compile(r"(^|\s)(\S)")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive input."""
    return int(math.floor(value + 0.5))


def parse_leading_int(text: str) -> Optional[int]:
    """Parse the integer at the start of `text` ("2", " 3 please", "4.5" -> 4)."""
    match = _LEADING_INT_RE.match(text or "")
    if not match:
        return None
    return int(match.group(1))


def _positive_magnitude(text: str) -> Optional[float]:
    first_digit = next((i for i, ch in enumerate(text) if ch.isdigit()), None)
    if first_digit is None:
        return None
    if "-" in text[:first_digit]:
        return None

    cleaned = _NON_NUMERIC_RE.sub("", text)
    try:
        value = float(cleaned)
    except ValueError:
        return None

    if not math.isfinite(value) or value <= 0:
        return None
    return value


def parse_weight(text: str) -> Optional[int]:
    """Parse a weight into whole pounds.

    "ton" anywhere in the text means US short tons, "kg" means kilograms,
    anything else is taken as pounds already.
    """
    lowered = (text or "").strip().lower()
    magnitude = _positive_magnitude(lowered)
    if magnitude is None:
        return None

    if "ton" in lowered:
        return round_half_up(magnitude * LBS_PER_SHORT_TON)
    if "kg" in lowered:
        return round_half_up(magnitude * LBS_PER_KG)
    return round_half_up(magnitude)


def parse_dollars(text: str) -> Optional[int]:
    """Parse a payment amount into whole dollars ("$2400", "2400 dollars")."""
    magnitude = _positive_magnitude(str(text or ""))
    if magnitude is None:
        return None
    return round_half_up(magnitude)


def clean_location(text: str) -> str:
    """Collapse whitespace runs; returns "" when fewer than 2 characters remain."""
    collapsed = " ".join((text or "").split())
    if len(collapsed) < 2:
        return ""
    return collapsed


def capitalize(text: str) -> str:
    """Upper-case the first letter of each whitespace-delimited word."""
    return _WORD_START_RE.sub(lambda m: m.group(1) + m.group(2).upper(), text or "").strip()


def clean_crop(text: str) -> str:
    """Keep letters and spaces only, then capitalize. "" if nothing is left."""
    letters = _NON_ALPHA_RE.sub("", text or "").strip()
    if not letters:
        return ""
    return capitalize(letters)


def lbs_to_tons(lbs: int) -> float:
    return round(lbs / LBS_PER_SHORT_TON, 1)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def format_number(value: float) -> str:
    """Render like a JSON number: 20.0 -> "20", 20.5 -> "20.5"."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_dollars(value: Any) -> str:
    if not is_number(value):
        return "N/A"
    return f"${round_half_up(value)}"


def format_tons(value: Any) -> str:
    if not is_number(value):
        return "N/A"
    return f"{format_number(value)} tons"


def format_rating(value: Any) -> str:
    if not is_number(value):
        return "N/A"
    return f"{value:.1f}/10"


def format_eta(value: Any) -> str:
    """Render an ISO timestamp for chat; unparseable values are shown as given."""
    if not value:
        return "N/A"
    try:
        eta = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return str(value)
    if eta.tzinfo is None:
        return eta.strftime("%Y-%m-%d %H:%M")
    return eta.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
