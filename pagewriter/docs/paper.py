"""Named paper geometries in CSS pixels (96 dpi, rounded)."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

PAPER_SIZES: Dict[str, Tuple[int, int]] = {
    "a4": (794, 1123),
    "letter": (816, 1056),
    "legal": (816, 1344),
    "a3": (1123, 1587),
    "a5": (420, 595),
}

DEFAULT_PAPER = "a4"
CUSTOM_PAPER = "custom"


def lookup_paper(name: Optional[str]) -> Optional[Tuple[int, int]]:
    """Case-insensitive preset lookup; ``None`` for unknown names."""
    if not name:
        return None
    return PAPER_SIZES.get(name.strip().lower())
