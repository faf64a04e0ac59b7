"""Combinatorial test model and its boolean literal numbering.

Each (parameter, value) pair is a boolean proposition "parameter takes
this value", numbered densely from 1 in row-major order. For a model with
five parameters of three values each the mapping is::

    p0  p1  p2  p3  p4
     1   4   7  10  13
     2   5   8  11  14
     3   6   9  12  15

A constraint is a clause, a disjunction of signed literals. The forbidden
combination (p0=0, p2=0) is written as the clause ``(-1, -7)``.

Example:
    >>> model = Model(3, (2, 2, 2), constraints=[(-2, -4)])
    >>> model.mapping.literal(1, 1)
    4
    >>> model.mapping.max_literal
    6
"""

from __future__ import annotations

import itertools
from collections.abc import Sequence
from dataclasses import dataclass, field

# Marks a parameter without a value in a partial assignment.
UNASSIGNED = -1

Clause = tuple[int, ...]
Row = Sequence[int]
Suite = Sequence[Row]


class LiteralMapping:
    """Immutable table from (parameter, value) to a positive literal ID.

    Attributes:
        domain_sizes: Number of values of each parameter.
        offsets: Literal of value 0 of each parameter.
        max_literal: Largest literal ID (the total number of values).
    """

    __slots__ = ("domain_sizes", "offsets", "max_literal")

    def __init__(self, domain_sizes: Sequence[int]) -> None:
        self.domain_sizes = tuple(domain_sizes)
        self.offsets = tuple(1 + s for s in itertools.accumulate(self.domain_sizes, initial=0))[:-1]
        self.max_literal = sum(self.domain_sizes)

    @property
    def parameter_count(self) -> int:
        return len(self.domain_sizes)

    def literal(self, parameter: int, value: int) -> int:
        """Literal ID of ``parameter == value``.

        Raises:
            ValueError: If the parameter or value is out of range.
        """
        if not 0 <= parameter < len(self.domain_sizes):
            raise ValueError(f"Parameter {parameter} out of range [0, {len(self.domain_sizes)})")
        if not 0 <= value < self.domain_sizes[parameter]:
            raise ValueError(
                f"Value {value} out of range for parameter {parameter} "
                f"(domain size {self.domain_sizes[parameter]})"
            )
        return self.offsets[parameter] + value

    def literals_of(self, parameter: int) -> tuple[int, ...]:
        """All literal IDs of one parameter, in value order."""
        start = self.offsets[parameter]
        return tuple(range(start, start + self.domain_sizes[parameter]))

    def lookup(self, literal: int) -> tuple[int, int]:
        """Inverse of :meth:`literal`; the sign of ``literal`` is ignored."""
        lit = abs(literal)
        if not 1 <= lit <= self.max_literal:
            raise ValueError(f"Literal {literal} out of range [1, {self.max_literal}]")
        for parameter in range(len(self.offsets) - 1, -1, -1):
            if lit >= self.offsets[parameter]:
                return parameter, lit - self.offsets[parameter]
        raise AssertionError("unreachable")

    def to_table(self) -> list[list[int]]:
        """The mapping as a list of per-parameter literal lists."""
        return [list(self.literals_of(p)) for p in range(len(self.domain_sizes))]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LiteralMapping):
            return NotImplemented
        return self.domain_sizes == other.domain_sizes

    def __hash__(self) -> int:
        return hash(self.domain_sizes)

    def __repr__(self) -> str:
        return f"LiteralMapping(domain_sizes={list(self.domain_sizes)})"


def at_least_one_clauses(mapping: LiteralMapping) -> list[Clause]:
    """One clause per parameter: it takes at least one of its values."""
    return [mapping.literals_of(p) for p in range(mapping.parameter_count)]


def at_most_one_clauses(mapping: LiteralMapping) -> list[Clause]:
    """Pairwise clauses ``(-v_i, -v_j)``: no parameter takes two values."""
    clauses: list[Clause] = []
    for p in range(mapping.parameter_count):
        for a, b in itertools.combinations(mapping.literals_of(p), 2):
            clauses.append((-a, -b))
    return clauses


def structural_clauses(mapping: LiteralMapping) -> list[Clause]:
    """The "exactly one value per parameter" encoding of a model."""
    return at_least_one_clauses(mapping) + at_most_one_clauses(mapping)


@dataclass(frozen=True)
class Model:
    """A combinatorial test model: parameters, domains and constraints.

    Attributes:
        parameter_count: Number of parameters.
        domain_sizes: Number of values of each parameter (each at least 1).
        constraints: User clauses over the model's literal numbering.
        name: Optional label used in logs and reports.
    """

    parameter_count: int
    domain_sizes: tuple[int, ...]
    constraints: tuple[Clause, ...] = ()
    name: str = ""
    mapping: LiteralMapping = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        parameter_count = self.parameter_count
        domain_sizes = tuple(int(d) for d in self.domain_sizes)
        clauses = tuple(tuple(int(lit) for lit in c) for c in (self.constraints or ()))

        if parameter_count < 1:
            raise ValueError("Model requires at least one parameter")
        if len(domain_sizes) != parameter_count:
            raise ValueError(
                f"Expected {parameter_count} domain sizes, got {len(domain_sizes)}"
            )
        for p, size in enumerate(domain_sizes):
            if size < 1:
                raise ValueError(f"Parameter {p} must have at least one value (got {size})")

        max_literal = sum(domain_sizes)
        for i, clause in enumerate(clauses):
            for lit in clause:
                if lit == 0 or abs(lit) > max_literal:
                    raise ValueError(
                        f"Constraint {i} has literal {lit} outside [-{max_literal}, {max_literal}]"
                    )

        object.__setattr__(self, "domain_sizes", domain_sizes)
        object.__setattr__(self, "constraints", clauses)
        object.__setattr__(self, "mapping", LiteralMapping(domain_sizes))

    @property
    def total_values(self) -> int:
        return self.mapping.max_literal

    @property
    def has_constraints(self) -> bool:
        return bool(self.constraints)

    def __repr__(self) -> str:
        label = f"{self.name!r}, " if self.name else ""
        return (
            f"Model({label}{self.parameter_count} parameters, "
            f"domains={list(self.domain_sizes)}, {len(self.constraints)} constraints)"
        )
