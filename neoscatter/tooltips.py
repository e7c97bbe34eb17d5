# neoscatter/tooltips.py
from __future__ import annotations
from typing import Any, List, Optional, Tuple

NOT_AVAILABLE = "N/A"


class TooltipState:
    """Click-to-toggle bookkeeping: at most one tooltip is visible at a time."""

    def __init__(self) -> None:
        self.visible: Optional[int] = None

    def toggle(self, record_id: int) -> Optional[int]:
        """Flip `record_id`; returns the id now visible (None when all hidden)."""
        self.visible = None if self.visible == record_id else record_id
        return self.visible

    def hide(self) -> None:
        self.visible = None

    def is_visible(self, record_id: int) -> bool:
        return self.visible == record_id


def _fmt(x: Any, fmt: str, unit: str = "") -> str:
    if x is None:
        return NOT_AVAILABLE
    return f"{x:{fmt}}{unit}"


def tooltip_lines(rec: Any) -> List[Tuple[str, str]]:
    """(label, value) pairs shown in one record's tooltip panel."""
    name = rec.extra.get("fullname") or rec.designation
    days = rec.days_to_closest
    if days is not None and rec.days_signed is not None and rec.days_signed < 0:
        when = f"{days} d ago"
    else:
        when = _fmt(days, "d", " d")
    return [
        ("Object", str(name)),
        ("Current distance", _fmt(rec.current_dist_ld, ".2f", " LD")),
        ("Closest approach", rec.closest_date or NOT_AVAILABLE),
        ("Closest distance", _fmt(rec.closest_dist_ld, ".2f", " LD")),
        ("Est. diameter", _fmt(rec.diameter, ",.0f", " m")),
        ("Velocity", _fmt(rec.v_rel, ".2f", " km/s")),
        ("Days to closest", when),
        ("Next approach", rec.next_approach or NOT_AVAILABLE),
    ]
