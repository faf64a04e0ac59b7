"""Pytest fixtures for tcover tests."""

from __future__ import annotations

import itertools
import logging
from pathlib import Path

import pytest

from tcover.core.model import Model

# p0=1 and p1=1 may not co-occur: literals 2 and 4 in a (2, 2, 2) model.
FORBID_P0_1_P1_1 = (-2, -4)


@pytest.fixture(autouse=True)
def reset_tcover_logger():
    """Undo configure_logging so caplog sees tcover records in every test."""
    yield
    logger = logging.getLogger("tcover")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def binary_model() -> Model:
    """Three binary parameters, no constraints."""
    return Model(3, (2, 2, 2), name="binary")


@pytest.fixture
def constrained_model() -> Model:
    """Three binary parameters where p0=1 and p1=1 are mutually exclusive."""
    return Model(3, (2, 2, 2), constraints=[FORBID_P0_1_P1_1], name="constrained")


@pytest.fixture
def full_suite() -> list[list[int]]:
    """All 8 rows of {0, 1}^3."""
    return [list(row) for row in itertools.product((0, 1), repeat=3)]


@pytest.fixture
def allowed_suite(full_suite: list[list[int]]) -> list[list[int]]:
    """Every row of {0, 1}^3 except those with p0=1 and p1=1."""
    return [row for row in full_suite if not (row[0] == 1 and row[1] == 1)]


def _write_array_file(path: Path, arrays: list[list[list[int]]]) -> Path:
    lines = []
    for number, rows in enumerate(arrays, start=1):
        lines.append(f"# {number} size: {len(rows)} tests, generation time: 0.{number}")
        lines.extend(" ".join(str(v) for v in row) for row in rows)
        lines.append("")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def write_arrays():
    """Write arrays in the header/rows/separator layout read_arrays expects."""
    return _write_array_file


@pytest.fixture
def benchmark_dir(tmp_path: Path) -> Path:
    """A benchmark directory with an unconstrained and a constrained model."""
    bench = tmp_path / "benchmark"
    bench.mkdir()
    (bench / "toy.model").write_text("2\n3\n2 2 2\n")
    (bench / "tight.model").write_text("2\n3\n2 2 2\n")
    # forbid p0=1 with p1=1: flattened indices 1 and 3
    (bench / "tight.constraints").write_text("1\n2\n- 1 - 3\n")
    return bench
