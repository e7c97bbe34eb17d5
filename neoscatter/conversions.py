# neoscatter/conversions.py
from __future__ import annotations
import math
import datetime as _dt
from typing import Union

from neoscatter.errors import ParseError

DateLike = Union[str, _dt.date]

SECONDS_PER_DAY = 86400.0
AU_AS_LD        = 0.002569      # 1 LD expressed in AU
LD_KM           = 384_402.0     # mean Earth-Moon distance
ALBEDO          = 0.14          # JPL's usual default for unknown albedo
DIAMETER_KM_CONST = 1329.0

MONTHS = {
    "Jan": "01", "Feb": "02", "Mar": "03", "Apr": "04",
    "May": "05", "Jun": "06", "Jul": "07", "Aug": "08",
    "Sep": "09", "Oct": "10", "Nov": "11", "Dec": "12",
}


# ---------------- Distance / size / speed ----------------
def convert_au_to_ld(au: float) -> float:
    """Astronomical units -> lunar distances."""
    return float(au) / AU_AS_LD

def diameter_from_magnitude(h: float, albedo: float = ALBEDO) -> float:
    """Estimated diameter in metres from absolute magnitude H."""
    return DIAMETER_KM_CONST * 1000.0 * math.pow(10.0, -0.2 * float(h)) / math.sqrt(albedo)

def ld_per_day(v_km_s: float) -> float:
    """km/s -> lunar distances per day."""
    return float(v_km_s) * SECONDS_PER_DAY / LD_KM

def current_distance(closest_ld: float, speed_ld_day: float, days: float) -> float:
    # Straight-line extrapolation back from the closest point; not an ephemeris.
    return closest_ld + speed_ld_day * days


# ---------------- Dates ----------------
def to_date(d: DateLike) -> _dt.date:
    if isinstance(d, _dt.datetime):
        return d.date()
    if isinstance(d, _dt.date):
        return d
    try:
        return _dt.date.fromisoformat(str(d).strip())
    except ValueError as e:
        raise ParseError(f"not an ISO date: {d!r}") from e

def iso_date(d: DateLike) -> str:
    return to_date(d).isoformat()

def offset_date(d: DateLike, days: int, *, years: int = 0) -> str:
    """ISO date `days` (and optionally `years`) after `d`."""
    base = to_date(d)
    if years:
        try:
            base = base.replace(year=base.year + years)
        except ValueError:  # Feb 29 -> Feb 28
            base = base.replace(year=base.year + years, day=28)
    return (base + _dt.timedelta(days=days)).isoformat()

def date_from_cd(cd: str) -> str:
    """
    CAD calendar text ("2020-Dec-10 00:00") -> "2020-12-10".
    Raises ParseError on unknown months or malformed text.
    """
    if not isinstance(cd, str):
        raise ParseError(f"calendar date is not text: {cd!r}")
    parts = cd.strip().split(" ")[0].split("-")
    if len(parts) != 3:
        raise ParseError(f"malformed calendar date: {cd!r}")
    year, mon, day = parts
    month = MONTHS.get(mon)
    if month is None:
        raise ParseError(f"unknown month {mon!r} in {cd!r}")
    if not (year.isdigit() and day.isdigit()):
        raise ParseError(f"malformed calendar date: {cd!r}")
    iso = f"{year}-{month}-{day.zfill(2)}"
    to_date(iso)  # rejects Feb 30 and friends
    return iso

def signed_days(reference: DateLike, target: DateLike) -> int:
    """Whole days from `reference` to `target`; negative when target is earlier."""
    secs = (to_date(target) - to_date(reference)).total_seconds()
    return int(math.copysign(math.ceil(abs(secs) / SECONDS_PER_DAY), secs))

def days_difference(earlier: DateLike, later: DateLike) -> int:
    return abs(signed_days(earlier, later))
