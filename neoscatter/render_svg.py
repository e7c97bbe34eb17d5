# neoscatter/render_svg.py
from __future__ import annotations

import html
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, List, Sequence, Union

from neoscatter.layout import LayoutConfig, Placement, y_position
from neoscatter.tooltips import tooltip_lines

SVG_NS = "http://www.w3.org/2000/svg"

BACKGROUND = "#0b0d12"
GRID       = "#2a2f3a"
MOON_LINE  = "#6d8bb3"
TEXT       = "#c8ccd4"


# ------------------------- draw commands ------------------------- #

@dataclass
class ViewBox:
    width: float
    height: float

@dataclass
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str = GRID
    dashed: bool = False

@dataclass
class TextPair:
    x: float
    y: float
    label: str
    value: str
    anchor: str = "end"

@dataclass
class Circle:
    id: int
    cx: float
    cy: float
    r: float
    fill: str
    title: str = ""

Command = Union[Line, TextPair, Circle]

@dataclass
class Scene:
    viewbox: ViewBox
    commands: List[Command] = field(default_factory=list)

    def add(self, cmd: Command) -> None:
        self.commands.append(cmd)

    def circles(self) -> List[Circle]:
        return [c for c in self.commands if isinstance(c, Circle)]


def build_scene(records: Sequence[Any], placements: Sequence[Placement],
                cfg: LayoutConfig, max_ld: float) -> Scene:
    """Gridlines, Moon line and lane labels first, then one circle per record."""
    h = cfg.height(max_ld)
    scene = Scene(ViewBox(cfg.width, h))
    left, right = cfg.margin_left, cfg.width - cfg.margin_right
    y0 = cfg.margin_top

    scene.add(Line(left, y0, right, y0, stroke=TEXT))
    scene.add(TextPair(left - 6, y0 + 4, "Earth", ""))

    step = cfg.grid_step_ld
    ld = step
    while ld <= max_ld + 1e-9:
        y = y0 + y_position(ld, cfg.y_multiplier)
        scene.add(Line(left, y, right, y, dashed=True))
        scene.add(TextPair(left - 6, y + 4, f"{ld:g}", "LD"))
        ld += step

    y_moon = y0 + y_position(1.0, cfg.y_multiplier)
    scene.add(Line(left, y_moon, right, y_moon, stroke=MOON_LINE, dashed=True))
    scene.add(TextPair(right, y_moon - 4, "Moon", "1 LD"))

    for n in range(cfg.lanes):
        x = left + cfg.lane_width * (n + 0.5)
        scene.add(TextPair(x, h - cfg.margin_bottom / 2, "orbit", f"…{n}", anchor="middle"))

    by_id = {r.id: r for r in records}
    for p in placements:
        rec = by_id[p.id]
        scene.add(Circle(p.id, p.x, p.y, p.radius, p.color, title=rec.designation))
    return scene


# ------------------------- SVG ------------------------- #

def _svg_element(scene: Scene) -> ET.Element:
    vb = scene.viewbox
    svg = ET.Element("svg", {
        "xmlns": SVG_NS,
        "viewBox": f"0 0 {vb.width:g} {vb.height:g}",
        "width": f"{vb.width:g}",
        "height": f"{vb.height:g}",
    })
    ET.SubElement(svg, "rect", {"width": "100%", "height": "100%", "fill": BACKGROUND})
    for c in scene.commands:
        if isinstance(c, Line):
            attrs = {"x1": f"{c.x1:g}", "y1": f"{c.y1:g}", "x2": f"{c.x2:g}", "y2": f"{c.y2:g}",
                     "stroke": c.stroke, "stroke-width": "1"}
            if c.dashed:
                attrs["stroke-dasharray"] = "4 4"
            ET.SubElement(svg, "line", attrs)
        elif isinstance(c, TextPair):
            t = ET.SubElement(svg, "text", {"x": f"{c.x:g}", "y": f"{c.y:g}", "fill": TEXT,
                                            "font-size": "11", "text-anchor": c.anchor,
                                            "font-family": "sans-serif"})
            t.text = c.label
            if c.value:
                v = ET.SubElement(t, "tspan", {"dx": "4", "fill-opacity": "0.6"})
                v.text = c.value
        elif isinstance(c, Circle):
            e = ET.SubElement(svg, "circle", {
                "id": f"neo-{c.id}", "data-id": str(c.id), "class": "neo",
                "cx": f"{c.cx:.1f}", "cy": f"{c.cy:.1f}", "r": str(c.r),
                "fill": c.fill, "fill-opacity": "0.85", "stroke": BACKGROUND,
            })
            if c.title:
                ET.SubElement(e, "title").text = c.title
    return svg


def render_svg(scene: Scene) -> str:
    return ET.tostring(_svg_element(scene), encoding="unicode")


# ------------------------- HTML page ------------------------- #

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ background: {bg}; color: {fg}; font-family: sans-serif; margin: 0; }}
header {{ padding: 12px 16px; }}
main {{ position: relative; }}
.neo {{ cursor: pointer; }}
.tooltip {{ position: absolute; display: none; background: #151a24; border: 1px solid #3a4252;
           padding: 8px 10px; font-size: 12px; pointer-events: none; }}
.tooltip.visible {{ display: block; }}
.tooltip dt {{ opacity: 0.6; }}
.tooltip dd {{ margin: 0 0 4px 0; }}
.error {{ padding: 24px 16px; color: #ff9b9b; }}
</style>
</head>
<body>
<header>{header}</header>
<main>
{body}
</main>
{script}
</body>
</html>
"""

# One visible panel at a time; clicking the open one closes it (TooltipState).
_TOGGLE_JS = """<script>
(function () {
  var visible = null;
  function panel(id) { return document.getElementById("tooltip-" + id); }
  document.querySelectorAll("circle.neo").forEach(function (c) {
    c.addEventListener("click", function () {
      var id = c.getAttribute("data-id");
      if (visible !== null) { panel(visible).classList.remove("visible"); }
      if (visible === id) { visible = null; return; }
      var p = panel(id);
      p.style.left = (c.cx.baseVal.value + c.r.baseVal.value + 8) + "px";
      p.style.top = (c.cy.baseVal.value - 8) + "px";
      p.classList.add("visible");
      visible = id;
    });
  });
})();
</script>"""


def _tooltip_div(rec: Any) -> str:
    rows = "".join(f"<dt>{html.escape(k)}</dt><dd>{html.escape(v)}</dd>" for k, v in tooltip_lines(rec))
    return f'<div class="tooltip" id="tooltip-{rec.id}"><dl>{rows}</dl></div>'


def render_html(scene: Scene, records: Sequence[Any], *, reference_date: str = "",
                threshold_ld: float | None = None) -> str:
    header = f"{len(records)} near-Earth objects"
    if threshold_ld is not None:
        header += f" within {threshold_ld:g} LD"
    if reference_date:
        header += f" as of {html.escape(reference_date)}"
    body = render_svg(scene) + "\n" + "\n".join(_tooltip_div(r) for r in records)
    return _PAGE.format(title="NEO close approaches", bg=BACKGROUND, fg=TEXT,
                        header=header, body=body, script=_TOGGLE_JS)


def render_error_html(message: str) -> str:
    return _PAGE.format(title="NEO close approaches", bg=BACKGROUND, fg=TEXT,
                        header="NEO close approaches",
                        body=f'<p class="error">Could not load close-approach data: {html.escape(message)}</p>',
                        script="")
