"""Reading and writing point clouds in the PCD file format."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

import numpy as np

__all__ = ["save_pcd_binary", "load_pcd"]

PathLike = Union[str, os.PathLike]

_KINDS = {"F": "f", "I": "i", "U": "u"}


def save_pcd_binary(path: PathLike, points) -> None:
    """Write ``(N, 3)`` points as an unorganised binary PCD file."""
    cloud = np.asarray(points, dtype=np.float64)
    if cloud.size == 0:
        raise ValueError("input point cloud has no data")
    if cloud.ndim != 2 or cloud.shape[1] != 3:
        raise ValueError("expected an (N, 3) array of points")
    n = len(cloud)
    header = (
        "# .PCD v0.7 - Point Cloud Data file format\n"
        "VERSION 0.7\n"
        "FIELDS x y z\n"
        "SIZE 4 4 4\n"
        "TYPE F F F\n"
        "COUNT 1 1 1\n"
        f"WIDTH {n}\n"
        "HEIGHT 1\n"
        "VIEWPOINT 0 0 0 1 0 0 0\n"
        f"POINTS {n}\n"
        "DATA binary\n"
    )
    with open(path, "wb") as fh:
        fh.write(header.encode("ascii"))
        fh.write(cloud.astype("<f4").tobytes())


def _read_header(data: bytes) -> tuple[dict[str, list[str]], int]:
    header: dict[str, list[str]] = {}
    offset = 0
    while True:
        end = data.find(b"\n", offset)
        if end < 0:
            raise ValueError("PCD header is truncated")
        line = data[offset:end].decode("ascii", errors="replace").strip()
        offset = end + 1
        if not line or line.startswith("#"):
            continue
        key, *values = line.split()
        header[key.upper()] = values
        if key.upper() == "DATA":
            return header, offset


def load_pcd(path: PathLike) -> np.ndarray:
    """Read the ``x, y, z`` coordinates of an ascii or binary PCD file."""
    data = Path(path).read_bytes()
    header, offset = _read_header(data)
    try:
        fields = header["FIELDS"]
        sizes = [int(s) for s in header["SIZE"]]
        types = header["TYPE"]
        counts = [int(c) for c in header.get("COUNT", ["1"] * len(fields))]
        if "POINTS" in header:
            n = int(header["POINTS"][0])
        else:
            n = int(header["WIDTH"][0]) * int(header["HEIGHT"][0])
        mode = header["DATA"][0].lower()
    except (KeyError, IndexError) as exc:
        raise ValueError(f"PCD header is missing {exc}") from exc
    if not (len(fields) == len(sizes) == len(types) == len(counts)):
        raise ValueError("PCD header field descriptions disagree in length")
    if not {"x", "y", "z"} <= set(fields):
        raise ValueError("PCD file has no x, y, z fields")

    if mode == "ascii":
        columns: dict[str, int] = {}
        col = 0
        for name, count in zip(fields, counts):
            columns.setdefault(name, col)
            col += count
        rows = [line.split() for line in data[offset:].decode("ascii").splitlines() if line.strip()]
        if len(rows) < n:
            raise ValueError("PCD file holds fewer points than its header states")
        try:
            table = np.array([[float(v) for v in row[:col]] for row in rows[:n]], dtype=np.float64)
        except ValueError as exc:
            raise ValueError("malformed PCD ascii data") from exc
        if n and table.shape[1] < col:
            raise ValueError("malformed PCD ascii data")
        if n == 0:
            return np.empty((0, 3), dtype=np.float32)
        return table[:, [columns["x"], columns["y"], columns["z"]]].astype(np.float32)

    if mode == "binary":
        dtype_fields = []
        seen = set()
        for i, (name, size, kind, count) in enumerate(zip(fields, sizes, types, counts)):
            if kind not in _KINDS:
                raise ValueError(f"unknown PCD field type {kind!r}")
            unique = name if name not in seen else f"_{i}"
            seen.add(unique)
            base = np.dtype(f"<{_KINDS[kind]}{size}")
            dtype_fields.append((unique, base, (count,)) if count > 1 else (unique, base))
        record = np.dtype(dtype_fields)
        if len(data) - offset < record.itemsize * n:
            raise ValueError("PCD file holds fewer points than its header states")
        table = np.frombuffer(data, dtype=record, count=n, offset=offset)
        return np.stack([table["x"], table["y"], table["z"]], axis=1).astype(np.float32)

    raise ValueError(f"unsupported PCD data mode {mode!r}")