import threading

import numpy as np
import pytest

from dartguide.lidar import (
    FrameIntegrator,
    PointCloudRecorder,
    main,
    measure_distance,
    save_box_filter,
)
from dartguide.pcd import load_pcd, save_pcd_binary


def _frame(x=1.0, n=4):
    return np.tile([x, 0.0, 0.0], (n, 1))


def test_save_box_filter_keeps_inside_points_only():
    cloud = np.array(
        [
            [4.0, 0.0, 0.0],
            [6.0, 0.0, 0.0],
            [1.0, 3.0, 0.0],
            [1.0, 0.0, 0.75],
            [-0.1, 0.0, 0.0],
        ]
    )
    kept = save_box_filter(cloud)
    assert kept.tolist() == [[4.0, 0.0, 0.0], [1.0, 0.0, 0.75]]


def test_measure_distance_of_identical_points():
    assert measure_distance(_frame(1.0, 10)) == pytest.approx(1.0)


def test_measure_distance_ignores_points_outside_box():
    cloud = np.vstack([_frame(2.0, 5), [[10.0, 0.0, 0.0]]])
    assert measure_distance(cloud) == pytest.approx(2.0)


def test_measure_distance_uses_narrower_box_than_recording():
    cloud = _frame(4.0, 3)
    assert len(save_box_filter(cloud)) == 3
    with pytest.raises(ValueError):
        measure_distance(cloud)


def test_integrator_signals_on_completing_frame():
    integrator = FrameIntegrator(3)
    results = [integrator.add_frame(_frame()) for _ in range(3)]
    assert results == [False, False, True]
    assert integrator.ready
    assert integrator.add_frame(_frame()) is False
    assert integrator.received == 4


def test_integrator_take_returns_all_points_and_resets():
    integrator = FrameIntegrator(2)
    integrator.add_frame(_frame(1.0, 2))
    integrator.add_frame(_frame(2.0, 3))
    cloud = integrator.take()
    assert cloud.shape == (5, 3)
    assert sorted(cloud[:, 0].tolist()) == [1.0, 1.0, 2.0, 2.0, 2.0]
    assert not integrator.ready
    assert integrator.received == 0
    with pytest.raises(RuntimeError):
        integrator.take()


def test_integrator_take_before_ready_raises():
    integrator = FrameIntegrator(2)
    integrator.add_frame(_frame())
    with pytest.raises(RuntimeError):
        integrator.take()


def test_integrator_rejects_zero_frames():
    with pytest.raises(ValueError):
        FrameIntegrator(0)


def test_integrator_concurrent_feeding_counts_every_frame():
    integrator = FrameIntegrator(40)
    threads = [
        threading.Thread(target=lambda: [integrator.add_frame(_frame(1.0, 1)) for _ in range(10)])
        for _ in range(4)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert integrator.ready
    assert len(integrator.take()) == 40


def test_recorder_saves_cropped_cloud(tmp_path):
    out = tmp_path / "scene.pcd"
    recorder = PointCloudRecorder(out, 2)
    assert recorder.add_frame(np.array([[1.0, 0.5, 0.25], [9.0, 0.0, 0.0]])) is False
    assert not out.exists()
    assert recorder.add_frame(np.array([[4.0, -1.0, 0.0]])) is True
    assert recorder.done
    loaded = load_pcd(out)
    np.testing.assert_allclose(loaded, [[1.0, 0.5, 0.25], [4.0, -1.0, 0.0]])


def test_recorder_ignores_frames_after_saving(tmp_path):
    out = tmp_path / "scene.pcd"
    recorder = PointCloudRecorder(out, 1)
    assert recorder.add_frame(_frame(1.0, 2)) is True
    assert recorder.add_frame(_frame(2.0, 2)) is False
    assert recorder.received == 1
    assert len(load_pcd(out)) == 2


def test_recorder_raises_when_nothing_inside_box(tmp_path):
    recorder = PointCloudRecorder(tmp_path / "scene.pcd", 1)
    with pytest.raises(ValueError):
        recorder.add_frame(_frame(20.0, 2))
    assert recorder.done


def test_main_records_frames(tmp_path):
    inputs = []
    for i, x in enumerate([1.0, 2.0, 3.0]):
        path = tmp_path / f"frame{i}.pcd"
        save_pcd_binary(path, _frame(x, 2))
        inputs.append(str(path))
    out = tmp_path / "out.pcd"
    assert main([*inputs, "-o", str(out), "-n", "2"]) == 0
    loaded = load_pcd(out)
    assert sorted(loaded[:, 0].tolist()) == [1.0, 1.0, 2.0, 2.0]


def test_main_fails_with_too_few_frames(tmp_path):
    path = tmp_path / "frame.pcd"
    save_pcd_binary(path, _frame(1.0, 2))
    out = tmp_path / "out.pcd"
    assert main([str(path), "-o", str(out), "-n", "3"]) == 1
    assert not out.exists()