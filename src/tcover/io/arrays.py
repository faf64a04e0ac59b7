"""Reader for files holding one or more generated covering arrays.

Each array starts with a header line whose 4th token is the number of
rows and whose 8th token is the generation time, e.g.::

    # 1 size: 9 tests, generation time: 0.021

followed by that many rows of space separated value indices and a single
separator line. Arrays follow each other until the end of the file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from tcover.errors import ArrayFormatError

logger = logging.getLogger(__name__)

SIZE_TOKEN = 3
TIME_TOKEN = 7


@dataclass
class TestArray:
    """One covering array read from a file.

    Attributes:
        rows: The test rows, as lists of value indices.
        size: Row count declared in the header.
        time: Generation time declared in the header, if present.
        line: Line number of the header.
    """

    __test__ = False

    rows: list[list[int]] = field(default_factory=list)
    size: int = 0
    time: float | None = None
    line: int = 0


def parse_row(text: str) -> list[int]:
    """Parse a line of space separated integers."""
    return [int(token) for token in text.split()]


def _parse_header(text: str, path: Path, line_no: int) -> tuple[int, float | None]:
    tokens = text.split()
    try:
        size = int(float(tokens[SIZE_TOKEN]))
    except (IndexError, ValueError):
        raise ArrayFormatError(
            f"Header {text.strip()!r} has no row count in token {SIZE_TOKEN + 1}",
            path=path,
            line=line_no,
        ) from None
    if size < 0:
        raise ArrayFormatError(f"Negative row count {size}", path=path, line=line_no)

    time: float | None = None
    if len(tokens) > TIME_TOKEN:
        try:
            time = float(tokens[TIME_TOKEN])
        except ValueError:
            logger.debug(f"{path}:{line_no}: unreadable generation time {tokens[TIME_TOKEN]!r}")
    return size, time


def read_arrays(path: str | Path) -> list[TestArray]:
    """Read every covering array in ``path``.

    Raises:
        ArrayFormatError: If the file cannot be read, a header is malformed,
            a row is not made of integers, or the file ends inside an array.
    """
    path = Path(path)
    try:
        lines = path.read_text().splitlines()
    except OSError as e:
        raise ArrayFormatError(f"Cannot read {path}: {e}", cause=e, path=path) from e

    arrays: list[TestArray] = []
    i = 0
    while i < len(lines):
        if not lines[i].strip():
            i += 1
            continue

        header_line = i + 1
        size, time = _parse_header(lines[i], path, header_line)
        array = TestArray(size=size, time=time, line=header_line)
        i += 1

        for _ in range(size):
            if i >= len(lines):
                raise ArrayFormatError(
                    f"Array at line {header_line} declares {size} rows, file ends after "
                    f"{len(array.rows)}",
                    path=path,
                    line=i,
                )
            try:
                array.rows.append(parse_row(lines[i]))
            except ValueError:
                raise ArrayFormatError(
                    f"Row {lines[i].strip()!r} is not a list of integers", path=path, line=i + 1
                ) from None
            i += 1

        arrays.append(array)
        # separator line after each array body
        i += 1

    logger.debug(f"Read {len(arrays)} array(s) from {path}")
    return arrays
