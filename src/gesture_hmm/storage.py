"""Gesture prototype and model bank files (YAML).

Prototype file:

    N: 5
    seq:
      - [120, 200]
      - [140, 202]

Model bank file:

    total: 2
    models:
      - N: 4
        pi: {rows: 1, cols: 4, dt: d, data: [...]}
        A: {rows: 4, cols: 4, dt: d, data: [...]}
        b: {rows: 4, cols: 8, dt: d, data: [...]}

Both readers also accept the older OpenCV FileStorage layout: a
`%YAML:1.0` header, `!!opencv-matrix` / `!!opencv-sequence` tags and one
`hmm-00`, `hmm-01`, ... record per model instead of a `models` list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import numpy as np
import yaml

from gesture_hmm.hmm import HMM
from gesture_hmm.sequence import PointSequence

logger = logging.getLogger("gesture_hmm.storage")

MATRIX_DTYPES = {"d": np.float64, "f": np.float32, "i": np.int32}


class ModelFileError(ValueError):
    """A prototype or model file is missing data or is inconsistent."""


class _FileStorageLoader(yaml.SafeLoader):
    """SafeLoader that maps OpenCV's custom tags to plain mappings."""


def _construct_mapping(loader, node):
    return loader.construct_mapping(node, deep=True)


for _tag in ("tag:yaml.org,2002:opencv-matrix", "tag:yaml.org,2002:opencv-sequence"):
    _FileStorageLoader.add_constructor(_tag, _construct_mapping)


def _load_yaml(path: str | Path) -> dict:
    with open(path) as f:
        text = f.read()

    # PyYAML does not understand OpenCV's "%YAML:1.0" directive
    if text.startswith("%YAML:"):
        text = text.split("\n", 1)[1] if "\n" in text else ""

    try:
        data = yaml.load(text, Loader=_FileStorageLoader)
    except yaml.YAMLError as e:
        raise ModelFileError(f"{path}: invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ModelFileError(f"{path}: expected a mapping at top level")
    return data


def _as_int(value, where: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ModelFileError(f"{where}: expected an integer, got {value!r}") from e


@dataclass
class GesturePrototype:
    """A hand-drawn reference trajectory and the HMM size to build from it."""
    N: int
    seq: PointSequence
    name: str = ""


def write_gesture_proto(path: str | Path, seq: Iterable, N: int):
    """Save a prototype trajectory with its state count."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    points = seq if isinstance(seq, PointSequence) else PointSequence(seq)

    data = {
        "N": int(N),
        "seq": [[p.x, p.y] for p in points],
    }
    with open(path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=None, sort_keys=False)
    logger.info("Wrote gesture prototype %s (%d points, N=%d)", path, len(points), N)


def read_gesture_proto(path: str | Path) -> GesturePrototype:
    """Load a prototype. `N` defaults to 1 when absent."""
    path = Path(path)
    data = _load_yaml(path)

    if "seq" not in data:
        raise ModelFileError(f"{path}: missing 'seq'")
    N = _as_int(data.get("N", 1), f"{path}: N")
    if N < 1:
        raise ModelFileError(f"{path}: N must be >= 1, got {N}")

    raw = data["seq"]
    if isinstance(raw, dict):
        # OpenCV sequence node: flat [x0, y0, x1, y1, ...]
        flat = raw.get("data") or []
        if not isinstance(flat, list):
            raise ModelFileError(f"{path}: 'seq' data must be a list")
        if len(flat) % 2:
            raise ModelFileError(f"{path}: odd number of coordinates in 'seq'")
        pairs = [(flat[i], flat[i + 1]) for i in range(0, len(flat), 2)]
    else:
        pairs = raw or []

    try:
        seq = PointSequence(pairs)
    except (TypeError, ValueError) as e:
        raise ModelFileError(f"{path}: malformed 'seq': {e}") from e

    return GesturePrototype(N=N, seq=seq, name=path.stem)


def _matrix_to_node(m: np.ndarray) -> dict:
    m = np.atleast_2d(np.asarray(m, dtype=np.float64))
    return {
        "rows": int(m.shape[0]),
        "cols": int(m.shape[1]),
        "dt": "d",
        "data": [float(v) for v in m.ravel()],
    }


def _node_to_matrix(node, where: str) -> np.ndarray:
    if not isinstance(node, dict):
        raise ModelFileError(f"{where}: expected a matrix mapping")
    missing = [k for k in ("rows", "cols", "data") if k not in node]
    if missing:
        raise ModelFileError(f"{where}: matrix missing {', '.join(missing)}")

    dt = str(node.get("dt", "d"))
    if dt not in MATRIX_DTYPES:
        raise ModelFileError(f"{where}: unsupported matrix type {dt!r}")

    rows = _as_int(node["rows"], f"{where}.rows")
    cols = _as_int(node["cols"], f"{where}.cols")
    if rows < 0 or cols < 0:
        raise ModelFileError(f"{where}: negative matrix size {rows}x{cols}")
    data = node["data"] or []
    if not isinstance(data, list):
        raise ModelFileError(f"{where}: matrix data must be a list")
    if len(data) != rows * cols:
        raise ModelFileError(
            f"{where}: expected {rows}x{cols}={rows * cols} values, got {len(data)}"
        )
    try:
        values = np.asarray(data, dtype=MATRIX_DTYPES[dt])
    except (TypeError, ValueError) as e:
        raise ModelFileError(f"{where}: non-numeric matrix data: {e}") from e
    return values.astype(np.float64).reshape(rows, cols)


def _record_to_hmm(record, where: str, num_symbols: Optional[int] = None) -> HMM:
    if not isinstance(record, dict):
        raise ModelFileError(f"{where}: missing model record")
    for key in ("N", "A", "b", "pi"):
        if key not in record:
            raise ModelFileError(f"{where}: missing '{key}'")

    N = _as_int(record["N"], f"{where}.N")
    A = _node_to_matrix(record["A"], f"{where}.A")
    b = _node_to_matrix(record["b"], f"{where}.b")
    pi = _node_to_matrix(record["pi"], f"{where}.pi")

    if A.shape != (N, N):
        raise ModelFileError(f"{where}: A has shape {A.shape}, expected ({N}, {N})")
    if b.shape[0] != N:
        raise ModelFileError(f"{where}: b has {b.shape[0]} rows, expected {N}")
    if num_symbols is not None and b.shape[1] != num_symbols:
        raise ModelFileError(
            f"{where}: b has {b.shape[1]} symbol columns, expected {num_symbols}"
        )
    if pi.shape != (1, N):
        raise ModelFileError(f"{where}: pi has shape {pi.shape}, expected (1, {N})")

    try:
        return HMM(A=A, b=b, pi=pi)
    except ValueError as e:
        raise ModelFileError(f"{where}: {e}") from e


def _legacy_name(index: int) -> str:
    return f"hmm-{index:02d}"


def write_models(path: str | Path, models: Iterable[HMM]):
    """Write a model bank. Floats keep full double precision."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    models = list(models)

    data = {
        "total": len(models),
        "models": [
            {
                "N": mo.N,
                "pi": _matrix_to_node(mo.pi.reshape(1, -1)),
                "A": _matrix_to_node(mo.A),
                "b": _matrix_to_node(mo.b),
            }
            for mo in models
        ],
    }
    with open(path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=None, sort_keys=False)
    logger.info("Wrote %d model(s) to %s", len(models), path)


def read_models(path: str | Path, num_symbols: Optional[int] = None) -> list[HMM]:
    """Read a model bank. Raises ModelFileError on any inconsistency.

    When `num_symbols` is given, every model must emit exactly that many symbols.
    """
    path = Path(path)
    data = _load_yaml(path)

    if "total" not in data:
        raise ModelFileError(f"{path}: missing 'total'")
    total = _as_int(data["total"], f"{path}: total")
    if total < 0:
        raise ModelFileError(f"{path}: negative total {total}")

    if "models" in data:
        records = data["models"] or []
        if not isinstance(records, list):
            raise ModelFileError(f"{path}: 'models' must be a list")
        if len(records) < total:
            raise ModelFileError(
                f"{path}: total is {total} but only {len(records)} model(s) present"
            )
        names = [f"{path}:models[{i}]" for i in range(total)]
        records = records[:total]
    else:
        names = [f"{path}:{_legacy_name(i)}" for i in range(total)]
        records = [data.get(_legacy_name(i)) for i in range(total)]

    models = [_record_to_hmm(rec, name, num_symbols) for rec, name in zip(records, names)]
    logger.debug("Loaded %d model(s) from %s", len(models), path)
    return models
