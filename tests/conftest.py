from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest
import requests

CAD_FIELDS = ["des", "orbit_id", "jd", "cd", "dist", "dist_min", "dist_max",
              "v_rel", "v_inf", "t_sigma_f", "h"]

REFERENCE_DATE = "2020-12-02"


def cad_row(des, orbit_id, cd, dist, v_rel, h, jd="2459193.5"):
    return [des, orbit_id, jd, cd, dist, dist, dist, v_rel, v_rel, "00:01", h]


@pytest.fixture
def cad_payload() -> Dict[str, Any]:
    rows = [
        cad_row("2020 XA", "3", "2020-Dec-10 00:00", "0.01", "10", "20"),     # ~21.87 LD
        cad_row("2020 VB", "12", "2020-Dec-03 12:00", "0.002", "5", "27"),    # ~1.90 LD
        cad_row("2001 CC", "7", "2021-Jan-20 05:00", "0.04", "20", "18.5"),   # far
        cad_row("2020 BAD", "4", "2020-Foo-10 00:00", "0.001", "4", "26"),    # bad month
        cad_row("2020 WE", "5", "2020-Dec-05 00:00", "0.005", "3", "24.1"),   # ~3.97 LD
    ]
    return {"signature": {"source": "NASA/JPL SBDB Close Approach Data API", "version": "1.5"},
            "count": str(len(rows)), "fields": list(CAD_FIELDS), "data": rows}


class FakeResponse:
    def __init__(self, payload: Any = None, status: int = 200, text: str | None = None):
        self.status_code = status
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


@pytest.fixture
def fake_get(monkeypatch):
    """Replace requests.get; records every call's params, answers from a queue."""
    calls: List[Dict[str, Any]] = []
    answers: List[Any] = []

    def _get(url, params=None, headers=None, timeout=None):
        calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        ans = answers.pop(0) if len(answers) > 1 else answers[0]
        if isinstance(ans, BaseException):
            raise ans
        if callable(ans):
            return ans(params or {})
        return ans

    monkeypatch.setattr(requests, "get", _get)
    return calls, answers
