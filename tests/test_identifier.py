import numpy as np

from dartguide.identifier import (
    DETECT_FRAMES,
    MISS_LIMIT,
    DartGuideIdentifier,
    TargetData,
    find_candidates,
)


def _image(*disks, shape=(100, 100)):
    h, w = shape
    yy, xx = np.ogrid[:h, :w]
    img = np.zeros(shape, dtype=np.uint8)
    for (cx, cy), r in disks:
        img[(xx - cx) ** 2 + (yy - cy) ** 2 <= r**2] = 255
    return img


def test_disk_is_a_candidate():
    assert find_candidates(_image(((50, 50), 10))) == [(50, 50)]


def test_square_is_not_round_enough():
    img = np.zeros((100, 100), dtype=np.uint8)
    img[30:50, 30:50] = 255
    assert find_candidates(img) == []


def test_small_disk_rejected_by_area():
    assert find_candidates(_image(((50, 50), 3))) == []


def test_huge_disk_rejected_by_area():
    assert find_candidates(_image(((100, 100), 60), shape=(200, 200))) == []


def test_empty_image_has_no_candidates():
    assert find_candidates(np.zeros((40, 40), dtype=np.uint8)) == []


def test_new_points_become_targets():
    ident = DartGuideIdentifier()
    ident.filter_targets([(10, 10), (60, 60)])
    assert ident.targets == [
        TargetData((10, 10), (10, 10), 0.0, 1, 0),
        TargetData((60, 60), (60, 60), 0.0, 1, 0),
    ]


def test_nearby_point_updates_target():
    ident = DartGuideIdentifier()
    ident.filter_targets([(10, 10)])
    ident.filter_targets([(13, 14)])
    (target,) = ident.targets
    assert target.first_position == (10, 10)
    assert target.latest_position == (13, 14)
    assert target.catch_count == 2
    assert target.miss_count == 0
    assert target.max_move_dist == 5.0


def test_point_at_threshold_starts_new_target():
    ident = DartGuideIdentifier()
    ident.filter_targets([(10, 10)])
    ident.filter_targets([(20, 10)])
    targets = ident.targets
    assert [t.latest_position for t in targets] == [(10, 10), (20, 10)]
    assert targets[0].miss_count == 1


def test_only_closest_point_matches():
    ident = DartGuideIdentifier()
    ident.filter_targets([(10, 10)])
    ident.filter_targets([(15, 10), (11, 10)])
    targets = ident.targets
    assert targets[0].latest_position == (11, 10)
    assert targets[1].latest_position == (15, 10)
    assert targets[1].catch_count == 1


def test_target_removed_after_too_many_misses():
    ident = DartGuideIdentifier()
    ident.filter_targets([(10, 10)])
    for _ in range(MISS_LIMIT):
        ident.filter_targets([])
    assert ident.targets[0].miss_count == MISS_LIMIT
    ident.filter_targets([])
    assert ident.targets == []


def test_result_ready_after_detect_frames():
    ident = DartGuideIdentifier()
    img = _image(((50, 50), 10))
    for _ in range(DETECT_FRAMES - 1):
        ident.update(img)
    assert ident.result() is None
    assert not ident.ready
    ident.update(img)
    assert ident.ready
    assert ident.result() == (50, 50)


def test_nothing_detected_resets_window():
    ident = DartGuideIdentifier()
    blank = np.zeros((60, 60), dtype=np.uint8)
    for _ in range(DETECT_FRAMES):
        ident.update(blank)
    assert ident.result() is None
    assert ident.frame_count == 0


def test_update_after_result_restarts_detection():
    ident = DartGuideIdentifier()
    img = _image(((50, 50), 10))
    for _ in range(DETECT_FRAMES):
        ident.update(img)
    assert ident.ready
    ident.update(img)
    assert not ident.ready
    assert ident.frame_count == 1
    assert ident.result() is None


def test_stationary_target_preferred_over_moving_one():
    ident = DartGuideIdentifier()
    for frame in range(DETECT_FRAMES):
        moving_x = 70 if frame % 2 == 0 else 75
        ident.update(_image(((30, 30), 10), ((moving_x, 70), 10)))
    assert ident.result() == (30, 30)


def test_reset_keeps_collected_targets():
    ident = DartGuideIdentifier()
    ident.filter_targets([(10, 10)])
    ident.reset()
    assert [t.latest_position for t in ident.targets] == [(10, 10)]
    assert ident.frame_count == 0


def test_set_default_limit_stores_bounds():
    ident = DartGuideIdentifier()
    ident.set_default_limit((0, 43, 46), (26, 255, 255))
    assert ident.lower_limit == (0, 43, 46)
    assert ident.upper_limit == (26, 255, 255)