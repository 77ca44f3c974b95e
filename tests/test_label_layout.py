import math

import pytest

from _visual.label_layout import (
    LEFT, RIGHT, EstimatedTextMeasurer, LabelBox, column_for_angle, content_height,
    has_overlap, measure_label_boxes, resolve_label_layout,
)


def _boxes(anchors, column=RIGHT, height=40.0):
    return [LabelBox(anchor_y=a, column=column, height=height, key=str(i)) for i, a in enumerate(anchors)]


def test_crowded_labels_are_spread_apart():
    boxes = _boxes([300, 302, 305, 306])
    out = resolve_label_layout(boxes, band=(0, 720), pad=8)

    assert not has_overlap(out, pad=8)
    assert all(b.top >= 0 and b.bottom <= 720 for b in out)


def test_labels_pushed_against_the_bottom_edge_stay_inside():
    boxes = _boxes([700, 710, 715, 719])
    out = resolve_label_layout(boxes, band=(0, 720), pad=8)

    assert not has_overlap(out, pad=8)
    assert max(b.bottom for b in out) <= 720 + 1e-9


def test_labels_pushed_against_the_top_edge_stay_inside():
    boxes = _boxes([0, 1, 2, 3])
    out = resolve_label_layout(boxes, band=(0, 720), pad=8)

    assert not has_overlap(out, pad=8)
    assert min(b.top for b in out) >= -1e-9


def test_well_spaced_labels_stay_on_their_anchors():
    boxes = _boxes([100, 300, 500])
    out = resolve_label_layout(boxes, band=(0, 720), pad=8)

    assert [b.y for b in out] == [100, 300, 500]


def test_columns_are_resolved_independently():
    left = _boxes([300, 300], column=LEFT)
    right = _boxes([300], column=RIGHT)
    out = resolve_label_layout(right + left, band=(0, 720), pad=8)

    assert [b.column for b in out] == [LEFT, LEFT, RIGHT]
    assert out[2].y == 300
    assert not has_overlap(out[:2], pad=8)


def test_overfull_column_is_clamped_to_band():
    boxes = _boxes([50 * i for i in range(10)], height=100.0)
    assert content_height(boxes, 8) > 300

    out = resolve_label_layout(boxes, band=(0, 300), pad=8)

    assert all(b.top >= -1e-9 and b.bottom <= 300 + 1e-9 for b in out)


def test_inverted_band_is_rejected():
    with pytest.raises(ValueError):
        resolve_label_layout(_boxes([10]), band=(100, 0))


def test_empty_input():
    assert resolve_label_layout([], band=(0, 100)) == []


def test_measure_sets_heights(fixed_measure):
    boxes = [LabelBox(anchor_y=0, column=LEFT, text="Salaries")]
    measure_label_boxes(boxes, 200, fixed_measure)

    assert boxes[0].height == 40.0


def test_estimated_measurer_grows_with_wrapped_lines():
    m = EstimatedTextMeasurer()
    short = m("Parks", 200)
    long = m("Parks and Recreation Capital Improvement Projects and Maintenance", 120)

    assert short == pytest.approx(8 + 11 * 1.15 + 18 + 8)
    assert long > short
    assert len(m.wrap("Parks and Recreation Capital Improvement Projects", 120)) > 1


def test_column_for_angle():
    assert column_for_angle(0.0) == RIGHT
    assert column_for_angle(math.pi) == LEFT
    assert column_for_angle(math.pi / 2) == RIGHT


def test_mixed_heights_with_anchors_outside_the_band():
    heights = {"a": 30.0, "b": 80.0, "c": 50.0, "d": 120.0, "e": 20.0}
    anchors = {"a": -50.0, "b": 10.0, "c": 15.0, "d": 400.0, "e": 800.0}
    boxes = [LabelBox(anchor_y=anchors[k], column=LEFT, height=h, key=k) for k, h in heights.items()]
    assert content_height(boxes, 8) <= 600

    out = resolve_label_layout(boxes, band=(0, 600), pad=8)

    assert not has_overlap(out, pad=8)
    for prev, cur in zip(out, out[1:]):
        assert cur.y - prev.y >= prev.height / 2 + cur.height / 2 + 8 - 1e-9
    assert all(b.top >= -1e-9 and b.bottom <= 600 + 1e-9 for b in out)
    assert [b.key for b in out] == ["a", "b", "c", "d", "e"]
