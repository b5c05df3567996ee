"""Guide-light identification and tracking, guidance values and lidar point-cloud processing."""

__version__ = "0.1.0"