#!/usr/bin/env python3
"""
NEO Scatter - Qt viewer

Fetches the current close-approach window, draws the same scene the HTML
page uses, and shows one tooltip at a time on click. Next-approach lookups
run in the background; an open tooltip picks up their results as they land.

Usage:
    python -m app.neo_scatter_qt [--date YYYY-MM-DD] [--threshold-ld 20] [--seed N]
"""
from __future__ import annotations
import sys
from typing import Any, Dict, Optional

from PySide6.QtCore import Qt, QTimer, QRectF
from PySide6.QtGui import QPalette, QColor, QBrush, QPen, QFont, QPainter
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QLabel,
    QGraphicsView, QGraphicsScene, QGraphicsEllipseItem, QGraphicsRectItem
)

from neoscatter.errors import NetworkError, DecodeError, ParseError
from neoscatter.next_approach import NextApproachLookups
from neoscatter.pipeline import PipelineConfig, PipelineResult, run_pipeline, start_lookups
from neoscatter.render_svg import BACKGROUND, TEXT, Circle, Line, Scene, TextPair
from neoscatter.tooltips import TooltipState, tooltip_lines
from neoscatter.update_neo_scatter import build_parser, config_from_args


class NeoDot(QGraphicsEllipseItem):
    def __init__(self, c: Circle, on_click):
        super().__init__(QRectF(c.cx - c.r, c.cy - c.r, 2 * c.r, 2 * c.r))
        self.neo_id = c.id
        self._on_click = on_click
        col = QColor(c.fill); col.setAlphaF(0.85)
        self.setBrush(QBrush(col))
        self.setPen(QPen(QColor(BACKGROUND), 1.0))
        self.setToolTip(c.title)
        self.setCursor(Qt.CursorShape.PointingHandCursor)

    def mousePressEvent(self, e):
        self._on_click(self.neo_id)
        e.accept()


class Canvas(QGraphicsView):
    def __init__(self, scene_cmds: Scene, records: Dict[int, Any]):
        super().__init__()
        self.setRenderHint(QPainter.RenderHint.Antialiasing, True)

        pal = self.palette()
        pal.setColor(QPalette.ColorRole.Base, QColor(BACKGROUND))
        self.setPalette(pal)
        self.setBackgroundBrush(QBrush(QColor(BACKGROUND)))

        self._scene = QGraphicsScene(self)
        self.setScene(self._scene)
        vb = scene_cmds.viewbox
        self._scene.setSceneRect(QRectF(0, 0, vb.width, vb.height))

        self.records = records
        self.state = TooltipState()
        self.dots: Dict[int, NeoDot] = {}
        self._draw(scene_cmds)

        # tooltip panel (one, re-filled on toggle)
        self.tipBox = QGraphicsRectItem()
        self.tipBox.setBrush(QBrush(QColor(21, 26, 36)))
        self.tipBox.setPen(QPen(QColor(58, 66, 82), 1.0))
        self.tipBox.setZValue(10)
        self.tipText = self._scene.addSimpleText("")
        self.tipText.setFont(QFont("Inter", 9))
        self.tipText.setBrush(QBrush(QColor(TEXT)))
        self.tipText.setZValue(11)
        self._scene.addItem(self.tipBox)
        self.refresh_tip()

    def _draw(self, sc: Scene):
        font = QFont("Inter", 8)
        for c in sc.commands:
            if isinstance(c, Line):
                pen = QPen(QColor(c.stroke), 1.0)
                if c.dashed:
                    pen.setStyle(Qt.PenStyle.DashLine)
                self._scene.addLine(c.x1, c.y1, c.x2, c.y2, pen)
            elif isinstance(c, TextPair):
                lbl = self._scene.addSimpleText(f"{c.label} {c.value}".strip())
                lbl.setFont(font)
                lbl.setBrush(QBrush(QColor(TEXT)))
                w = lbl.boundingRect().width()
                dx = -w if c.anchor == "end" else (-w / 2 if c.anchor == "middle" else 0.0)
                lbl.setPos(c.x + dx, c.y - 10)
            elif isinstance(c, Circle):
                dot = NeoDot(c, self.on_click)
                self._scene.addItem(dot)
                self.dots[c.id] = dot

    def on_click(self, neo_id: int):
        self.state.toggle(neo_id)
        self.refresh_tip()

    def refresh_tip(self):
        vid = self.state.visible
        if vid is None:
            self.tipBox.setVisible(False); self.tipText.setVisible(False)
            return
        rec = self.records[vid]
        self.tipText.setText("\n".join(f"{k}: {v}" for k, v in tooltip_lines(rec)))
        r = self.dots[vid].rect()
        x, y = r.right() + 8, r.top() - 4
        self.tipText.setPos(x + 6, y + 4)
        br = self.tipText.boundingRect()
        self.tipBox.setRect(QRectF(x, y, br.width() + 12, br.height() + 8))
        self.tipBox.setVisible(True); self.tipText.setVisible(True)

    def resizeEvent(self, e):
        super().resizeEvent(e)
        self.fitInView(self._scene.sceneRect(), Qt.AspectRatioMode.KeepAspectRatio)


class MainWindow(QMainWindow):
    def __init__(self, result: PipelineResult, lookups: Optional[NextApproachLookups]):
        super().__init__()
        cfg = result.config
        self.setWindowTitle("NEO Scatter - close approaches")
        self.lookups = lookups

        cw = QWidget(); self.setCentralWidget(cw)
        v = QVBoxLayout(cw); v.setContentsMargins(6, 6, 6, 6); v.setSpacing(6)
        v.addWidget(QLabel(f"{len(result.records)} objects within {cfg.threshold_ld:g} LD "
                           f"as of {cfg.reference_date}"))
        self.canvas = Canvas(result.scene, {r.id: r for r in result.records})
        v.addWidget(self.canvas, 1)

        # lookup tasks write records from worker threads; repaint from the GUI thread
        self.timer = QTimer(self); self.timer.timeout.connect(self.canvas.refresh_tip); self.timer.start(500)

    def closeEvent(self, e):
        if self.lookups is not None:
            self.lookups.shutdown(wait=False)
        super().closeEvent(e)


def main():
    args = build_parser().parse_args(sys.argv[1:])
    cfg: PipelineConfig = config_from_args(args)
    try:
        result = run_pipeline(cfg)
    except (NetworkError, DecodeError, ParseError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    lookups = start_lookups(result) if cfg.next_approach else None

    app = QApplication(sys.argv[:1])
    w = MainWindow(result, lookups)
    w.resize(1100, 760)
    w.show()
    return app.exec()

if __name__ == "__main__":
    sys.exit(main())
