[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dartguide"
version = "0.1.0"
description = "Guide-light identification and tracking, yaw error and lidar point-cloud processing for dart launcher guidance"
requires-python = ">=3.10"
keywords = [
    "robotics",
    "guidance",
    "tracking",
    "computer-vision",
    "point-cloud",
    "lidar",
    "pcd",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Recognition",
    "Topic :: Scientific/Engineering :: Human Machine Interfaces",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
dartguide-record = "dartguide.lidar:main"

[tool.hatch.build.targets.wheel]
packages = ["dartguide"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
