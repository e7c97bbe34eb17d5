# neoscatter/next_approach.py
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, Future, wait as _wait
from typing import Any, Callable, Dict, List, Optional, Sequence

from neoscatter.cad_client import fetch_next_approach
from neoscatter.conversions import date_from_cd
from neoscatter.errors import NeoScatterError

DEFAULT_WORKERS = 8

Fetch = Callable[[str, str], List[Dict[str, Any]]]


def lookup_next_approach(rec: Any, fetch: Fetch = fetch_next_approach, *,
                         debug: bool = False) -> Optional[str]:
    """ISO date of the approach after `rec.closest_date`, or None if unknown."""
    try:
        rows = fetch(rec.designation, rec.closest_date)
        if not rows:
            return None
        return date_from_cd(rows[0]["cd"])
    except (NeoScatterError, KeyError) as e:
        if debug:
            print(f"[next] {rec.designation}: {e}")
        return None


class NextApproachLookups:
    """
    One background task per record. A task only ever writes its own record's
    `next_approach`, once, so no locking is needed. Records whose closest
    approach precedes the reference date are not looked up.
    """

    def __init__(self, records: Sequence[Any], *,
                 fetch: Fetch = fetch_next_approach,
                 max_workers: int = DEFAULT_WORKERS,
                 on_done: Optional[Callable[[Any], None]] = None,
                 debug: bool = False):
        self.records = list(records)
        self.fetch = fetch
        self.max_workers = max(1, int(max_workers))
        self.on_done = on_done
        self.debug = debug
        self._pool: Optional[ThreadPoolExecutor] = None
        self.futures: Dict[int, Future] = {}

    def _task(self, rec: Any) -> Optional[str]:
        value = lookup_next_approach(rec, self.fetch, debug=self.debug)
        rec.next_approach = value
        if self.on_done is not None:
            self.on_done(rec)
        return value

    def start(self) -> "NextApproachLookups":
        if self._pool is not None:
            return self
        todo = [r for r in self.records if not r.approach_passed and r.closest_date]
        self._pool = ThreadPoolExecutor(max_workers=self.max_workers,
                                        thread_name_prefix="next-approach")
        for rec in todo:
            self.futures[rec.id] = self._pool.submit(self._task, rec)
        if self.debug:
            print(f"[next] {len(todo)} lookup(s) queued, {len(self.records) - len(todo)} skipped")
        return self

    def wait(self, timeout: Optional[float] = None) -> int:
        """Block until lookups finish (or `timeout`); returns how many finished."""
        done, _ = _wait(list(self.futures.values()), timeout=timeout)
        return len(done)

    def shutdown(self, wait: bool = True) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=wait)

    def __enter__(self) -> "NextApproachLookups":
        return self.start()

    def __exit__(self, *exc: Any) -> None:
        self.shutdown(wait=True)
