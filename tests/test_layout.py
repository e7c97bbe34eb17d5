import numpy as np
import pytest

from neoscatter.errors import ParseError
from neoscatter.layout import (
    JITTER_SLOTS, LayoutConfig, lane, x_position, y_position, radius_bucket, color_bucket,
    WHITE, LIGHT_GRAY, MID_GRAY, DARK_GRAY, DARKEST,
)


class TestBuckets:
    def test_radius_edges(self):
        assert radius_bucket(0) == 5
        assert radius_bucket(9.99) == 5
        assert radius_bucket(10) == 10
        assert radius_bucket(30) == 20
        assert radius_bucket(100) == 40
        assert radius_bucket(999) == 40
        assert radius_bucket(1000) == 80
        assert radius_bucket(1e7) == 80

    def test_radius_monotone(self):
        ds = np.linspace(0, 5000, 2001)
        rs = [radius_bucket(d) for d in ds]
        assert all(a <= b for a, b in zip(rs, rs[1:]))

    def test_color_half_open(self):
        assert color_bucket(0) == WHITE
        assert color_bucket(0.5) == WHITE
        assert color_bucket(1) == LIGHT_GRAY
        assert color_bucket(6) == LIGHT_GRAY
        assert color_bucket(7) == MID_GRAY
        assert color_bucket(29) == MID_GRAY
        assert color_bucket(30) == DARK_GRAY
        assert color_bucket(59) == DARK_GRAY
        assert color_bucket(60) == DARKEST
        assert color_bucket(10_000) == DARKEST

    def test_color_total_over_non_negative(self):
        palette = {WHITE, LIGHT_GRAY, MID_GRAY, DARK_GRAY, DARKEST}
        for d in range(0, 400):
            assert color_bucket(d) in palette

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            color_bucket(-1)
        with pytest.raises(ValueError):
            radius_bucket(-0.5)


class TestPositions:
    def test_lane_digit(self):
        assert lane("12") == 2
        assert lane("JPL 7") == 7
        assert lane(3) == 3

    @pytest.mark.parametrize("orbit_id", ["", "A", "12b", None])
    def test_lane_rejects(self, orbit_id):
        with pytest.raises(ParseError):
            lane(orbit_id)

    def test_y_position_ceil(self):
        assert y_position(1.01, 10) == 11
        assert y_position(2.0, 10) == 20

    def test_x_position_stays_in_lane(self):
        rng = np.random.default_rng(1)
        w = 90.0
        for ln in range(10):
            for _ in range(50):
                x = x_position(ln, w, rng)
                assert ln * w <= x < (ln + 1) * w

    def test_x_position_reproducible(self):
        a = [x_position(4, 80.0, np.random.default_rng(7)) for _ in range(3)]
        b = [x_position(4, 80.0, np.random.default_rng(7)) for _ in range(3)]
        assert a == b

    def test_x_position_uses_every_slot(self):
        rng = np.random.default_rng(3)
        w = 100.0
        slots = {int((x_position(0, w, rng)) // (w / JITTER_SLOTS)) for _ in range(500)}
        assert slots == set(range(JITTER_SLOTS))

    def test_layout_config_geometry(self):
        cfg = LayoutConfig(width=1000, lanes=10, margin_left=60, margin_right=20)
        assert cfg.lane_width == pytest.approx(92.0)
        assert cfg.height(20) == cfg.margin_top + 600 + cfg.margin_bottom
