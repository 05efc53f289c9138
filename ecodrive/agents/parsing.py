"""
Parsing of free-text model replies.

Everything here is best-effort and deterministic. Callers go through
LocationAgent; these helpers can be hardened without touching them.
"""

import json
import re
from typing import Any, Optional


_NUMBER = re.compile(r"\d+(\.\d+)?")


def parse_distance_km(text: Optional[str]) -> float:
    """
    Extract a distance in km from a natural-language reply.

    Commas are read as decimal separators ("12,5" -> 12.5) and the first
    integer or decimal token wins. No number at all means 0.0, which
    callers treat as "no route found".
    """
    if not text:
        return 0.0
    match = _NUMBER.search(text.replace(",", "."))
    return float(match.group()) if match else 0.0


def extract_json_object(text: Optional[str]) -> Optional[dict[str, Any]]:
    """Return the outermost {...} object in the text, or None."""
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        return None
    try:
        data = json.loads(text[start:end])
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
