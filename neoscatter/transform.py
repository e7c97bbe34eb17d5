# neoscatter/transform.py
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, List, Optional

from neoscatter.cad_client import map_rows
from neoscatter.conversions import (
    DateLike, iso_date, convert_au_to_ld, diameter_from_magnitude, date_from_cd,
    signed_days, ld_per_day, current_distance,
)
from neoscatter.errors import ParseError
from neoscatter.layout import lane


@dataclass
class NeoRecord:
    designation: str
    orbit_id: str
    h: float
    v_rel: float        # km/s
    dist: float         # AU
    cd: str             # CAD calendar text, TDB

    # derived by enrich()
    orbital_lane: Optional[int] = None
    closest_dist_ld: Optional[float] = None
    diameter: Optional[float] = None       # m
    closest_date: Optional[str] = None     # ISO
    days_to_closest: Optional[int] = None
    days_signed: Optional[int] = None
    ld_per_day: Optional[float] = None
    current_dist_ld: Optional[float] = None

    # assigned after filter_and_sort(); next_approach is patched by a lookup task
    id: Optional[int] = None
    next_approach: Optional[str] = None

    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def approach_passed(self) -> bool:
        return self.days_signed is not None and self.days_signed < 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _num(x: Any, name: str, des: Any) -> float:
    if isinstance(x, (int, float)):
        return float(x)
    if isinstance(x, str):
        try:
            return float(x.strip())
        except ValueError:
            pass
    raise ParseError(f"{des}: field {name!r} is not numeric: {x!r}")


def to_record(row: Dict[str, Any]) -> NeoRecord:
    """Mapped CAD row (see cad_client.map_rows) -> NeoRecord with raw fields only."""
    des = row.get("des")
    if not des:
        raise ParseError(f"row without designation: {row!r}")
    extra = {k: row[k] for k in ("fullname", "v_inf", "dist_min", "dist_max", "t_sigma_f") if k in row}
    if isinstance(extra.get("fullname"), str):
        extra["fullname"] = extra["fullname"].strip()
    return NeoRecord(
        designation=str(des),
        orbit_id=str(row.get("orbit_id", "")),
        h=_num(row.get("h"), "h", des),
        v_rel=_num(row.get("v_rel"), "v_rel", des),
        dist=_num(row.get("dist"), "dist", des),
        cd=str(row.get("cd", "")),
        extra=extra,
    )


def enrich(rec: NeoRecord, reference_date: DateLike, index: Optional[int] = None) -> NeoRecord:
    rec.orbital_lane    = lane(rec.orbit_id)
    rec.closest_dist_ld = convert_au_to_ld(rec.dist)
    rec.diameter        = diameter_from_magnitude(rec.h)
    rec.closest_date    = date_from_cd(rec.cd)
    rec.days_signed     = signed_days(reference_date, rec.closest_date)
    rec.days_to_closest = abs(rec.days_signed)
    rec.ld_per_day      = ld_per_day(rec.v_rel)
    rec.current_dist_ld = current_distance(rec.closest_dist_ld, rec.ld_per_day, rec.days_to_closest)
    if index is not None:
        rec.id = index
    return rec


def filter_and_sort(records: Iterable[NeoRecord], threshold_ld: float) -> List[NeoRecord]:
    """Keep records inside `threshold_ld`, nearest first; ids follow the new order."""
    kept = [r for r in records
            if r.current_dist_ld is not None and r.current_dist_ld < threshold_ld]
    kept.sort(key=lambda r: r.current_dist_ld)
    for i, r in enumerate(kept):
        r.id = i
    return kept


def build_records(payload: Dict[str, Any], reference_date: DateLike, threshold_ld: float,
                  *, debug: bool = False) -> List[NeoRecord]:
    ref = iso_date(reference_date)
    out: List[NeoRecord] = []
    for row in map_rows(payload):
        try:
            out.append(enrich(to_record(row), ref))
        except ParseError as e:
            print(f"[transform] skipping {row.get('des')}: {e}")
    kept = filter_and_sort(out, threshold_ld)
    if debug:
        print(f"[transform] {len(kept)}/{len(out)} within {threshold_ld:g} LD of Earth")
    return kept
