# test_compass.py
import math

from compass import DIRECTIONS, MagneticSample, compute_heading, direction_label


def test_heading_along_positive_x_is_zero():
    assert compute_heading(MagneticSample(1, 0, 0)) == 0


def test_heading_negative_y_is_ninety():
    # atan2(1, 0) * 180/π = 90
    assert compute_heading(MagneticSample(0, -1, 0)) == 90


def test_heading_quadrants():
    assert compute_heading(MagneticSample(-1, 0, 0)) == 180
    assert compute_heading(MagneticSample(0, 1, 0)) == 270
    assert compute_heading(MagneticSample(1, -1, 0)) == 45
    assert compute_heading(MagneticSample(1, 1, 0)) == 315


def test_heading_accepts_dict_and_tuple():
    assert compute_heading({'x': 0, 'y': -1, 'z': 5}) == 90
    assert compute_heading((0.0, -1.0, 0.0)) == 90


def test_heading_ignores_z():
    assert compute_heading(MagneticSample(3, -3, 100)) == compute_heading(MagneticSample(3, -3, -100)) == 45


def test_heading_wraps_360_to_zero():
    # 生の角度は -0.057° → +360 で 359.94… → 四捨五入で360 → 0 に戻す
    sample = MagneticSample(1.0, 0.001, 0.0)
    raw = math.degrees(math.atan2(-sample.y, sample.x)) + 360.0
    assert round(raw) == 360
    assert compute_heading(sample) == 0


def test_heading_always_in_range():
    for i in range(720):
        rad = math.radians(i / 2.0)
        h = compute_heading(MagneticSample(math.cos(rad), -math.sin(rad), 0.0))
        assert 0 <= h <= 359


def test_every_integer_heading_has_exactly_one_label():
    for h in range(360):
        label = direction_label(h)
        assert label in DIRECTIONS, h


def test_label_boundaries():
    expected = {
        0: 'N', 22: 'N', 23: 'NE',
        67: 'NE', 68: 'E',
        112: 'E', 113: 'SE',
        157: 'SE', 158: 'S',
        202: 'S', 203: 'SW',
        247: 'SW', 248: 'W',
        292: 'W', 293: 'NW',
        336: 'NW', 337: 'N', 359: 'N',
    }
    for h, label in expected.items():
        assert direction_label(h) == label, h


def test_label_counts_per_sector():
    counts = {}
    for h in range(360):
        counts[direction_label(h)] = counts.get(direction_label(h), 0) + 1
    # N は 337-359 と 0-22 の46度、NW は 293-336 の44度
    assert counts['N'] == 46
    assert counts['NW'] == 44
    for label in ('NE', 'E', 'SE', 'S', 'SW', 'W'):
        assert counts[label] == 45


def test_label_nan_is_empty():
    assert direction_label(float('nan')) == ''
