#!/usr/bin/env python3
from __future__ import annotations
import argparse, json, os, sys
from pathlib import Path
from typing import List, Optional

from neoscatter.cad_client import CAD_URL, DEFAULT_TIMEOUT
from neoscatter.errors import NetworkError, DecodeError, ParseError
from neoscatter.layout import LayoutConfig
from neoscatter.pipeline import PipelineConfig, run_pipeline, start_lookups
from neoscatter.render_svg import render_html, render_svg, render_error_html


def build_parser() -> argparse.ArgumentParser:
    env = os.environ.get
    ap = argparse.ArgumentParser(description="Render upcoming Earth close approaches as an SVG scatter.")
    ap.add_argument("--out", default=env("NEO_SCATTER_OUT", "data/neo_scatter/latest.html"))
    ap.add_argument("--format", choices=("html", "svg", "json"), default="html")
    ap.add_argument("--date", default=env("DATE_ISO"), help="reference date YYYY-MM-DD (default: today)")
    ap.add_argument("--window-days", type=int, default=int(env("NEO_SCATTER_WINDOW_DAYS", "90")))
    ap.add_argument("--limit", type=int, default=int(env("NEO_SCATTER_LIMIT", "50")))
    ap.add_argument("--threshold-ld", type=float, default=float(env("NEO_SCATTER_THRESHOLD_LD", "20")))
    ap.add_argument("--url", default=env("CAD_API_URL", CAD_URL))
    ap.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT)
    ap.add_argument("--seed", type=int, default=None, help="fix the lane jitter")
    ap.add_argument("--workers", type=int, default=8)
    ap.add_argument("--width", type=float, default=1000.0)
    ap.add_argument("--px-per-ld", type=float, default=30.0)
    ap.add_argument("--no-next-approach", action="store_true")
    ap.add_argument("--debug", action="store_true")
    return ap


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    cfg = PipelineConfig(
        window_days=args.window_days,
        limit=args.limit,
        threshold_ld=args.threshold_ld,
        url=args.url,
        timeout=args.timeout,
        next_approach=not args.no_next_approach,
        workers=args.workers,
        seed=args.seed,
        layout=LayoutConfig(width=args.width, y_multiplier=args.px_per_ld),
        debug=args.debug,
    )
    if args.date:
        cfg.reference_date = args.date
    return cfg


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = config_from_args(args)
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)

    # 1) Fetch + transform + layout
    try:
        result = run_pipeline(cfg)
    except (NetworkError, DecodeError, ParseError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        if args.format == "html":
            out.write_text(render_error_html(str(e)), encoding="utf-8")
        return 2

    # 2) Next approach per displayed object
    if cfg.next_approach and result.records:
        with start_lookups(result) as lookups:
            lookups.wait()
        found = sum(1 for r in result.records if r.next_approach)
        print(f"[next] next approach known for {found}/{len(result.records)} object(s)")

    # 3) Write
    if args.format == "svg":
        out.write_text(render_svg(result.scene), encoding="utf-8")
    elif args.format == "json":
        payload = {
            "schema": "neo_scatter/1.0",
            "source": "JPL SSD CAD",
            "query": {"date_min": cfg.reference_date, "window_days": cfg.window_days,
                      "limit": cfg.limit, "threshold_ld": cfg.threshold_ld},
            "count": len(result.records),
            "objects": [dict(r.to_dict(), placement=vars(p))
                        for r, p in zip(result.records, result.placements)],
        }
        out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    else:
        out.write_text(render_html(result.scene, result.records,
                                   reference_date=cfg.reference_date,
                                   threshold_ld=cfg.threshold_ld), encoding="utf-8")

    print(f"[scatter] Wrote {out} with {len(result.records)}/{result.fetched} objects "
          f"inside {cfg.threshold_ld:g} LD.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
