# dartguide

Guidance building blocks for a dart launcher: find a guide light in camera
frames, keep tracking it, turn its position into a yaw error, and process
lidar point clouds to measure the distance to a target.

Everything works on plain NumPy arrays. Binary images are 2-D `uint8`
arrays (0 or 255), colour frames are BGR `uint8` arrays of shape
`(H, W, 3)`, and point clouds are `(N, 3)` float arrays of x, y, z.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Camera pipeline

`dartguide.camera.DartCameraPipeline(lower, upper)` ties the pieces
together. Each frame is converted to HSV (hue 0..179), thresholded with the
lower and upper limits, and cleaned with a morphological opening and closing
using a 9x9 elliptical kernel. While no target is known, the identifier
collects round blobs over 80 frames and picks the steadiest one; after that
the tracker follows the nearest blob, and after more than 100 consecutive
lost frames the pipeline falls back to identifying again.

```python
from dartguide.camera import DartCameraPipeline

pipeline = DartCameraPipeline(lower=(35, 43, 46), upper=(77, 255, 255))
for frame in frames:
    result = pipeline.process_frame(frame)
    print(result.stage, result.target_position)
```

`process_frame` returns a `FrameResult` holding the binary image, a display
copy (with a ring drawn round the tracked position), the `Stage`
(`IDENTIFYING`, `TRACKING` or `LOST`) and, while tracking, the target
position as `(x, y)`. The `tracking_stage` property tells which stage the
pipeline is in.

The stages can also be used on their own:

- `dartguide.camera.bgr_to_hsv(image)` and
  `dartguide.camera.image_to_binary(image, lower, upper)` for preprocessing;
- `dartguide.identifier.DartGuideIdentifier` with `update(binary_image)`,
  `result()` (the position, or `None` until one is ready), `reset()`,
  `filter_targets(points)` and the `ready`, `frame_count` and `targets`
  properties; candidates are kept as `TargetData` records;
- `dartguide.identifier.find_candidates(binary)` for the centres of roughly
  circular blobs with an area between 100 and 5000 pixels;
- `dartguide.tracker.DartGuideTracker(min_contour_area=20.0,
  max_distance_threshold=200.0)` with `init(initial_position)`,
  `update(binary_image)` and the `current_position`, `tracking` and
  `initialized` properties. `update` raises `RuntimeError` before `init`
  and `ValueError` for anything but a non-empty 2-D `uint8` image;
- `dartguide.contours` for the contour tools they are built on:
  `find_external_contours`, `contour_area`, `min_enclosing_circle` and
  `contour_centroid`.

## Guidance

`dartguide.guidance.DartLauncherGuidance(guidelight_yaw_setpoint)` turns a
target position into the yaw angle error (setpoint minus x) through
`update(target_position)`; the error starts as NaN.
`dartguide.guidance.LaunchDataProcess(default_pitch)` takes the launch count
through `update(launch_count)` and returns the pitch setpoint, which is
always the default pitch.

## Point clouds

`dartguide.pointcloud` provides:

- `crop_box(points, min_point, max_point)`, keeping finite points inside the
  box, bounds included;
- `voxel_downsample(points, leaf_size)`, replacing the points of each voxel
  by their centroid;
- `box_filter_and_downsample(points)`, the crop to x 0..3, y -2.5..2.5,
  z -0.75..0.75 followed by 1 cm downsampling;
- `match_features(target_features, scene_features, ratio_threshold=0.7)`, a
  nearest-neighbour ratio test on squared distances that returns
  `Correspondence` records;
- `PointCloudIntegral`, which accumulates frames with `add_frame(points)` and
  exposes the combined cloud as `points`.

`dartguide.pcd` reads and writes PCD files: `load_pcd(path)` reads the
x, y, z fields of ascii or binary files, and `save_pcd_binary(path, points)`
writes an unorganised binary file of 32-bit floats.

`dartguide.lidar` builds on these:

- `FrameIntegrator(frame_count=30)` gathers frames with `add_frame(points)`
  (thread-safe) and hands over the combined cloud with `take()`, which raises
  `RuntimeError` until enough frames have arrived;
- `measure_distance(cloud)` filters the cloud and returns the distance from
  the origin to its centroid, raising `ValueError` when nothing is left;
- `PointCloudRecorder(output_path, frame_count=30)` gathers frames, crops
  them with `save_box_filter(points)` (x 0..5, y -2.5..2.5, z -0.75..0.75)
  and writes the result as a binary PCD file once the last frame arrives.

## Command line

The recorder is available as a command that takes one PCD file per frame:

```
dartguide-record frame_*.pcd -o scene.pcd -n 30
dartguide-record --help
```

It exits with status 1 when fewer frames than `--frame-count` are given or
when a file cannot be read or written.

## What it does not do

The package has no camera or lidar drivers and publishes nothing on a
network; frames and clouds are handed to it as arrays or PCD files. It does
not compute point features or register clouds against a target model:
`match_features` works on features you supply, and `measure_distance` uses
the centroid of the filtered cloud. The guide-ready decision is not made;
`DartLauncherGuidance.guide_ready` stays `False`.