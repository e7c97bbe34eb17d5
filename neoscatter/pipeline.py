# neoscatter/pipeline.py
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from neoscatter.cad_client import CAD_URL, DEFAULT_TIMEOUT, fetch_approaches, fetch_next_approach
from neoscatter.layout import LayoutConfig, Placement, layout_records
from neoscatter.next_approach import DEFAULT_WORKERS, NextApproachLookups
from neoscatter.render_svg import Scene, build_scene
from neoscatter.transform import NeoRecord, build_records


@dataclass
class PipelineConfig:
    reference_date: str = field(default_factory=lambda: _dt.date.today().isoformat())
    window_days: int = 90
    limit: int = 50
    threshold_ld: float = 20.0
    url: str = CAD_URL
    timeout: float = DEFAULT_TIMEOUT
    next_approach: bool = True
    workers: int = DEFAULT_WORKERS
    seed: Optional[int] = None
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    debug: bool = False


@dataclass
class PipelineResult:
    config: PipelineConfig
    fetched: int
    records: List[NeoRecord]
    placements: List[Placement]
    scene: Scene


def run_pipeline(cfg: PipelineConfig, *,
                 fetch: Callable[..., Dict[str, Any]] = fetch_approaches,
                 rng: Optional[np.random.Generator] = None) -> PipelineResult:
    """
    Fetch -> transform -> layout -> scene. NetworkError / DecodeError from
    the primary fetch propagate to the caller.
    """
    payload = fetch(cfg.reference_date, cfg.window_days, cfg.limit, url=cfg.url, timeout=cfg.timeout)
    if cfg.debug:
        print(f"[cad] {payload['count']} approach(es) {cfg.reference_date} +{cfg.window_days} d")
    records = build_records(payload, cfg.reference_date, cfg.threshold_ld, debug=cfg.debug)
    rng = rng if rng is not None else np.random.default_rng(cfg.seed)
    placements = layout_records(records, cfg.layout, rng)
    scene = build_scene(records, placements, cfg.layout, cfg.threshold_ld)
    return PipelineResult(cfg, payload["count"], records, placements, scene)


def start_lookups(result: PipelineResult, *,
                  fetch: Optional[Callable[[str, str], List[Dict[str, Any]]]] = None,
                  on_done: Optional[Callable[[NeoRecord], None]] = None) -> NextApproachLookups:
    cfg = result.config

    def _cad(des: str, after: str) -> List[Dict[str, Any]]:
        return fetch_next_approach(des, after, url=cfg.url, timeout=cfg.timeout)

    return NextApproachLookups(result.records, fetch=fetch or _cad, max_workers=cfg.workers,
                               on_done=on_done, debug=cfg.debug).start()
