from bbgraphs.charts.labels import (
    CENTER,
    LEFT,
    PLACEMENTS,
    RIGHT,
    LabeledPoint,
    Placement,
    Rect,
    label_rect,
    measure_text_width,
    resolve_placements,
)


def _fixed_width(text):
    return 20.0


def test_candidate_palette_order():
    assert PLACEMENTS[0] == Placement(8, 18, LEFT)
    assert PLACEMENTS[3] == Placement(-8, -8, RIGHT)
    assert PLACEMENTS[5] == Placement(0, 28, CENTER)
    assert len(PLACEMENTS) == 6


def test_label_rect_alignment():
    point = LabeledPoint(100, 100, "NYY")
    left = label_rect(point, Placement(8, 18, LEFT), width=20)
    assert left == Rect(left=106, top=104, right=130, bottom=120)

    right = label_rect(point, Placement(-8, 18, RIGHT), width=20)
    assert right.left == 100 - 8 - 20 - 4
    assert right.right == 92

    center = label_rect(point, Placement(0, -20, CENTER), width=20)
    assert center.left == 100 - 10 - 2
    assert center.top == 100 - 20 - 16 + 2


def test_overlap_touching_edges_count():
    a = Rect(0, 0, 10, 10)
    assert a.overlaps(Rect(10, 0, 20, 10))
    assert not a.overlaps(Rect(10.5, 0, 20, 10))
    assert not a.overlaps(Rect(0, 11, 10, 20))


def test_isolated_points_take_first_candidate():
    points = [LabeledPoint(0, 0, "BOS"), LabeledPoint(500, 500, "NYY")]
    assert resolve_placements(points, _fixed_width) == [0, 0]


def test_second_point_moves_when_blocked():
    points = [LabeledPoint(100, 100, "BOS"), LabeledPoint(100, 100, "NYY")]
    assert resolve_placements(points, _fixed_width) == [0, 1]


def test_crowded_points_fall_back_to_first_candidate():
    points = [LabeledPoint(100, 100, f"T{i}") for i in range(8)]
    selected = resolve_placements(points, _fixed_width)
    assert len(selected) == 8
    # the four corner slots fill first; the centered slots clip them, so the rest fall back
    assert selected == [0, 1, 2, 3, 0, 0, 0, 0]


def test_resolution_is_deterministic():
    points = [LabeledPoint(x * 7 % 50, x * 13 % 40, f"T{x}") for x in range(30)]
    assert resolve_placements(points) == resolve_placements(points)


def test_empty_inputs():
    assert resolve_placements([]) == []
    points = [LabeledPoint(100, 100, ""), LabeledPoint(100, 100, "BOS")]
    assert resolve_placements(points, _fixed_width) == [0, 0]


def test_measure_text_width_scales_with_font():
    assert measure_text_width("NYY", 26) == 2 * measure_text_width("NYY", 13)
    assert measure_text_width("WSH") > measure_text_width("TB")
