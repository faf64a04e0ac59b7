"""Reader for CASA-style model and constraint files.

A model file holds the strength, the number of parameters and the domain
size of every parameter, all whitespace separated::

    2
    5
    3 3 3 3 3

A constraints file holds the number of clauses, then for every clause
the number of terms followed by the terms as ``sign index`` pairs.
Indices are 0-based positions in the flattened value list, so they are
shifted by one to obtain literal IDs::

    2
    2
    - 0 - 6
    3
    - 8 - 9 - 13

encodes the clauses ``(-1, -7)`` and ``(-9, -10, -14)``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from tcover.core.model import Clause, Model
from tcover.errors import ModelFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CasaModel:
    """A parsed CASA model together with the strength it declares."""

    model: Model
    strength: int


class _TokenStream:
    """Whitespace tokens of a file, remembering the line they came from."""

    def __init__(self, path: Path) -> None:
        self.path = path
        try:
            text = path.read_text()
        except OSError as e:
            raise ModelFormatError(f"Cannot read {path}: {e}", cause=e, path=path) from e
        self._tokens: Iterator[tuple[int, str]] = (
            (line_no, token)
            for line_no, line in enumerate(text.splitlines(), start=1)
            for token in line.split()
        )
        self.line = 0

    def next(self, what: str) -> str:
        try:
            self.line, token = next(self._tokens)
        except StopIteration:
            raise ModelFormatError(
                f"Unexpected end of file while reading {what}", path=self.path, line=self.line
            ) from None
        return token

    def next_int(self, what: str, minimum: int = 0) -> int:
        token = self.next(what)
        try:
            value = int(token)
        except ValueError:
            raise ModelFormatError(
                f"Expected an integer for {what}, got {token!r}", path=self.path, line=self.line
            ) from None
        if value < minimum:
            raise ModelFormatError(
                f"{what} must be at least {minimum}, got {value}", path=self.path, line=self.line
            )
        return value


def read_constraints(path: str | Path) -> list[Clause]:
    """Read a CASA constraints file into 1-based signed-literal clauses."""
    stream = _TokenStream(Path(path))
    clauses: list[Clause] = []

    count = stream.next_int("clause count")
    for i in range(count):
        terms = stream.next_int(f"term count of clause {i}", minimum=1)
        clause = []
        for _ in range(terms):
            sign = stream.next(f"sign in clause {i}")
            if sign not in ("-", "+"):
                raise ModelFormatError(
                    f"Expected '-' or '+' in clause {i}, got {sign!r}",
                    path=stream.path,
                    line=stream.line,
                )
            index = stream.next_int(f"value index in clause {i}")
            literal = index + 1
            clause.append(-literal if sign == "-" else literal)
        clauses.append(tuple(clause))

    logger.debug(f"Read {len(clauses)} constraint(s) from {path}")
    return clauses


def read_casa(model_path: str | Path, constraints_path: str | Path | None = None) -> CasaModel:
    """Read a CASA model file and its optional constraints file.

    Raises:
        ModelFormatError: If the model file is missing or either file is malformed.
    """
    model_path = Path(model_path)
    stream = _TokenStream(model_path)

    strength = stream.next_int("strength", minimum=1)
    parameter_count = stream.next_int("parameter count", minimum=1)
    domain_sizes = [
        stream.next_int(f"domain size of parameter {p}", minimum=1)
        for p in range(parameter_count)
    ]

    constraints: list[Clause] = []
    if constraints_path is not None:
        constraints_path = Path(constraints_path)
        if constraints_path.exists():
            constraints = read_constraints(constraints_path)
        else:
            logger.info(f"No constraints file at {constraints_path}; model is unconstrained")

    try:
        model = Model(parameter_count, domain_sizes, constraints, name=model_path.stem)
    except ValueError as e:
        raise ModelFormatError(str(e), cause=e, path=constraints_path or model_path) from e

    logger.debug(f"Loaded {model!r} (strength {strength})")
    return CasaModel(model=model, strength=strength)


def read_model(model_path: str | Path, constraints_path: str | Path | None = None) -> Model:
    """Read a CASA model and constraints into a :class:`Model`."""
    return read_casa(model_path, constraints_path).model
