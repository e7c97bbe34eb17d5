# neoscatter/layout.py
"""
Placement rules for the scatter: one vertical lane per orbit-solution digit,
height proportional to current distance, circle size from estimated diameter
and shade from days until closest approach.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from neoscatter.errors import ParseError

JITTER_SLOTS = 5

# (lower bound, value); each bucket covers [bound, next bound)
RADIUS_BUCKETS: Sequence[Tuple[float, int]] = (
    (0.0,    5),
    (10.0,   10),
    (30.0,   20),
    (100.0,  40),
    (1000.0, 80),
)

WHITE, LIGHT_GRAY, MID_GRAY, DARK_GRAY, DARKEST = (
    "#ffffff", "#cccccc", "#999999", "#666666", "#333333")

COLOR_BUCKETS: Sequence[Tuple[float, str]] = (
    (0.0,  WHITE),
    (1.0,  LIGHT_GRAY),
    (7.0,  MID_GRAY),
    (30.0, DARK_GRAY),
    (60.0, DARKEST),
)


@dataclass
class LayoutConfig:
    width: float = 1000.0
    lanes: int = 10
    y_multiplier: float = 30.0     # px per LD
    margin_top: float = 40.0
    margin_bottom: float = 40.0
    margin_left: float = 60.0
    margin_right: float = 20.0
    grid_step_ld: float = 5.0

    @property
    def plot_width(self) -> float:
        return self.width - self.margin_left - self.margin_right

    @property
    def lane_width(self) -> float:
        return self.plot_width / self.lanes

    def height(self, max_ld: float) -> float:
        return self.margin_top + y_position(max_ld, self.y_multiplier) + self.margin_bottom


@dataclass
class Placement:
    id: int
    lane: int
    x: float
    y: float
    radius: int
    color: str


def lane(orbit_id: Any) -> int:
    """Last character of the orbit solution id, as a digit."""
    s = str(orbit_id).strip() if orbit_id is not None else ""
    if not s or not s[-1].isdigit():
        raise ParseError(f"orbit id {orbit_id!r} does not end in a digit")
    return int(s[-1])


def x_position(lane_no: int, lane_width: float, rng: Optional[np.random.Generator] = None) -> float:
    """
    Lane centre plus jitter: pick one of JITTER_SLOTS equal slices of the
    lane, then a uniform point inside that slice.
    """
    rng = rng if rng is not None else np.random.default_rng()
    slot_w = lane_width / JITTER_SLOTS
    slot = int(rng.integers(0, JITTER_SLOTS))
    offset = -0.5 * lane_width + slot * slot_w + float(rng.uniform(0.0, slot_w))
    return lane_width * (lane_no + 0.5) + offset


def y_position(distance_ld: float, multiplier: float) -> int:
    return int(math.ceil(distance_ld * multiplier))


def _bucket(value: float, table: Sequence[Tuple[float, Any]]) -> Any:
    if value < table[0][0]:
        raise ValueError(f"{value!r} is below the first bucket ({table[0][0]})")
    out = table[0][1]
    for lower, v in table:
        if value >= lower:
            out = v
        else:
            break
    return out


def radius_bucket(diameter_m: float) -> int:
    return _bucket(float(diameter_m), RADIUS_BUCKETS)


def color_bucket(days_to_closest: float) -> str:
    return _bucket(float(days_to_closest), COLOR_BUCKETS)


def layout_records(records: Iterable[Any], cfg: LayoutConfig,
                   rng: Optional[np.random.Generator] = None) -> List[Placement]:
    """Screen placement for enriched, filtered records (see transform.filter_and_sort)."""
    rng = rng if rng is not None else np.random.default_rng()
    out: List[Placement] = []
    for r in records:
        ln = r.orbital_lane if r.orbital_lane is not None else lane(r.orbit_id)
        if not 0 <= ln < cfg.lanes:
            raise ParseError(f"{r.designation}: lane {ln} outside 0..{cfg.lanes - 1}")
        out.append(Placement(
            id=r.id,
            lane=ln,
            x=cfg.margin_left + x_position(ln, cfg.lane_width, rng),
            y=cfg.margin_top + y_position(r.current_dist_ld, cfg.y_multiplier),
            radius=radius_bucket(r.diameter),
            color=color_bucket(r.days_to_closest),
        ))
    return out
