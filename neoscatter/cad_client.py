# neoscatter/cad_client.py
from __future__ import annotations

import requests
from typing import Dict, Any, List, Sequence

from neoscatter.conversions import DateLike, offset_date, iso_date
from neoscatter.errors import NetworkError, DecodeError

CAD_URL = "https://ssd-api.jpl.nasa.gov/cad.api"
_UA     = "neo-scatter (+https://ssd-api.jpl.nasa.gov/doc/cad.html)"

DEFAULT_TIMEOUT = 25
NEXT_APPROACH_YEARS = 10

# Columns the transformer reads; CAD reports them in `fields` on every query.
REQUIRED_FIELDS = ("des", "orbit_id", "cd", "dist", "v_rel", "h")
OPTIONAL_FIELDS = ("jd", "dist_min", "dist_max", "v_inf", "t_sigma_f", "fullname")


# ------------------------- HTTP helper ------------------------- #

def _get_json(url: str, params: Dict[str, Any],
              timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    headers = {"User-Agent": _UA, "Accept": "application/json"}
    try:
        r = requests.get(url, params=params, headers=headers, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        raise NetworkError(f"GET {url} failed: {e}") from e
    try:
        j = r.json()
    except ValueError as e:
        raise DecodeError(f"GET {url} returned non-JSON body: {r.text[:200]!r}") from e
    if not isinstance(j, dict):
        raise DecodeError(f"GET {url} returned {type(j).__name__}, expected an object")
    return j


def _check_payload(j: Dict[str, Any]) -> Dict[str, Any]:
    """
    CAD answers {signature, count, fields, data}. When nothing matches it
    drops `data` (count == "0"); anything else missing is a broken payload.
    """
    if "fields" not in j:
        if str(j.get("count", "")) == "0":
            return {"fields": [], "data": [], "count": 0}
        raise DecodeError(f"CAD payload missing 'fields' (keys: {sorted(j)})")
    fields = j.get("fields")
    data = j.get("data", [] if str(j.get("count", "")) == "0" else None)
    if not isinstance(fields, list):
        raise DecodeError("CAD 'fields' is not a list")
    if not isinstance(data, list):
        raise DecodeError("CAD payload missing 'data' rows")
    return {"fields": [str(x) for x in fields], "data": data, "count": len(data)}


# ------------------------- CAD queries ------------------------- #

def cad_query(*,
              des: str | None = None,
              body: str = "Earth",
              date_min: str | None = None,
              date_max: str | None = None,
              limit: int | None = None,
              sort: str | None = None,
              url: str = CAD_URL,
              timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    p: Dict[str, Any] = {}
    if des is not None:     p["des"] = des
    if body:                p["body"] = body
    if date_min:            p["date-min"] = date_min
    if date_max:            p["date-max"] = date_max
    if limit is not None:   p["limit"] = str(limit)
    if sort:                p["sort"] = sort
    return _check_payload(_get_json(url, p, timeout=timeout))


def fetch_approaches(reference_date: DateLike, window_days: int, limit: int, *,
                     url: str = CAD_URL,
                     timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    """
    Primary pull: Earth close approaches between `reference_date` and
    `reference_date + window_days`, at most `limit` rows.
    Returns the validated {fields, data, count} payload.
    """
    start = iso_date(reference_date)
    return cad_query(body="Earth", date_min=start, date_max=offset_date(start, window_days),
                     limit=limit, url=url, timeout=timeout)


def fetch_next_approach(designation: str, after_date: DateLike, *,
                        url: str = CAD_URL,
                        timeout: float = DEFAULT_TIMEOUT) -> List[Dict[str, Any]]:
    """
    The first Earth approach of `designation` strictly after `after_date`,
    searched over the following ten years, as mapped rows (see map_rows).
    Empty list when none is found.
    """
    after = iso_date(after_date)
    date_min = offset_date(after, 1)
    date_max = offset_date(after, 0, years=NEXT_APPROACH_YEARS)
    j = cad_query(des=designation, body="Earth", date_min=date_min, date_max=date_max,
                  limit=1, sort="date", url=url, timeout=timeout)
    return map_rows(j)


# ------------------------- schema mapping ------------------------- #

def field_index(fields: Sequence[str]) -> Dict[str, int]:
    idx: Dict[str, int] = {str(name): i for i, name in enumerate(fields)}
    missing = [name for name in REQUIRED_FIELDS if name not in idx]
    if missing:
        raise DecodeError(f"CAD fields missing {missing} (got {list(fields)})")
    return idx


def map_rows(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Turn the positional CAD rows into dicts keyed by field name.
    Only the columns the pipeline knows about are kept.
    """
    data: List[Sequence[Any]] = payload.get("data", [])
    if not data:
        return []
    idx = field_index(payload.get("fields", []))
    width = len(idx)
    wanted = [n for n in REQUIRED_FIELDS + OPTIONAL_FIELDS if n in idx]

    out: List[Dict[str, Any]] = []
    for n, row in enumerate(data):
        if not isinstance(row, (list, tuple)) or len(row) < width:
            raise DecodeError(f"CAD row {n} has {len(row) if isinstance(row, (list, tuple)) else 'no'} "
                              f"columns, expected {width}")
        out.append({name: row[idx[name]] for name in wanted})
    return out
