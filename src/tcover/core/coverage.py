"""t-way coverage of a test suite under constraints.

For every t-subset of parameters, the evaluator allocates a tally with
one cell per value combination, marks the combinations the feasibility
oracle rejects as invalid, then marks the combinations the suite's rows
exercise as covered. The coverage ratio is::

    covered / (space - invalid)

summed over all t-subsets.

Example:
    >>> model = Model(3, (2, 2, 2))
    >>> evaluator = CoverageEvaluator(model)
    >>> evaluator.evaluate_coverage([[0, 0, 0], [1, 1, 1]], 2)
    0.5
    >>> evaluator.evaluate_coverage([[0, -1, 0]], 2)
    INVALID
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Final

from tcover.config.settings import TcoverSettings
from tcover.core.indexing import MixedRadix, all_combinations
from tcover.core.model import UNASSIGNED, Model, Row, Suite
from tcover.errors import DegenerateSpaceError
from tcover.solver.oracle import FeasibilityOracle

logger = logging.getLogger(__name__)


class _InvalidType:
    """Type of the INVALID sentinel returned for malformed suites."""

    _instance: _InvalidType | None = None

    def __new__(cls) -> _InvalidType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "INVALID"

    def __reduce__(self) -> str:
        return "INVALID"


# Result of evaluate_coverage for suites with unfixed or infeasible rows.
INVALID: Final = _InvalidType()


class CellState(IntEnum):
    """State of one value combination in a coverage tally."""

    UNVISITED = 0
    COVERED = 1
    INVALID = 2


class CoverageStatus(Enum):
    """Whether coverage could be computed for a suite."""

    VALID = "valid"
    INVALID = "invalid"


@dataclass
class SubsetCoverage:
    """Coverage counts of a single t-subset of parameters."""

    subset: tuple[int, ...]
    space: int
    invalid: int
    covered: int

    @property
    def feasible(self) -> int:
        return self.space - self.invalid

    @property
    def uncovered(self) -> int:
        return self.feasible - self.covered


@dataclass
class CoverageConflict:
    """A suite row exercising a combination the constraints forbid.

    Only possible when the oracle and the suite disagree, e.g. after a
    contradiction dropped constraints or a query timed out.
    """

    row_index: int
    subset: tuple[int, ...]
    values: tuple[int, ...]


@dataclass
class CoverageStats:
    """Full result of a coverage evaluation.

    Attributes:
        strength: The t-wise strength that was measured.
        status: VALID, or INVALID when the suite has malformed rows.
        test_count: Number of rows in the suite.
        total_space: Number of t-way combinations over all subsets.
        total_invalid: Combinations excluded by constraints.
        total_covered: Feasible combinations exercised by the suite.
        subsets: Per-subset breakdown, in enumeration order.
        conflicts: Rows that hit excluded combinations.
        malformed_rows: Indices of unfixed or infeasible rows.
    """

    strength: int
    status: CoverageStatus
    test_count: int
    total_space: int = 0
    total_invalid: int = 0
    total_covered: int = 0
    subsets: list[SubsetCoverage] = field(default_factory=list)
    conflicts: list[CoverageConflict] = field(default_factory=list)
    malformed_rows: list[int] = field(default_factory=list)

    @property
    def total_feasible(self) -> int:
        return self.total_space - self.total_invalid

    @property
    def ratio(self) -> float | _InvalidType:
        """Covered share of feasible combinations, or INVALID."""
        if self.status is CoverageStatus.INVALID:
            return INVALID
        return self.total_covered / self.total_feasible

    @property
    def is_complete(self) -> bool:
        """True when every feasible combination is covered."""
        return self.status is CoverageStatus.VALID and self.total_covered == self.total_feasible

    def to_dict(self) -> dict[str, Any]:
        ratio = self.ratio
        return {
            "strength": self.strength,
            "status": self.status.value,
            "test_count": self.test_count,
            "coverage": None if ratio is INVALID else ratio,
            "total_space": self.total_space,
            "total_invalid": self.total_invalid,
            "total_covered": self.total_covered,
            "conflicts": [
                {"row": c.row_index, "subset": list(c.subset), "values": list(c.values)}
                for c in self.conflicts
            ],
            "malformed_rows": list(self.malformed_rows),
        }

    def __repr__(self) -> str:
        if self.status is CoverageStatus.INVALID:
            return (
                f"CoverageStats(t={self.strength}, INVALID, "
                f"{len(self.malformed_rows)} malformed rows, {self.test_count} tests)"
            )
        return (
            f"CoverageStats(t={self.strength}, "
            f"{self.total_covered}/{self.total_feasible} combinations covered "
            f"({self.ratio:.1%}), {self.total_invalid} excluded, {self.test_count} tests)"
        )


class CoverageEvaluator:
    """Measures t-way coverage of test suites for one model.

    The feasibility oracle is built once per evaluator. The set of
    invalid combinations of each t-subset depends only on the model, so
    it is computed on first use and reused for every later suite.

    Attributes:
        model: The model suites are evaluated against.
        oracle: The feasibility oracle for the model's constraints.

    Example:
        >>> evaluator = CoverageEvaluator(Model(3, (2, 2, 2)))
        >>> rows = [[a, b, c] for a in (0, 1) for b in (0, 1) for c in (0, 1)]
        >>> evaluator.is_covering_array(rows, 2)
        True
    """

    def __init__(
        self,
        model: Model,
        oracle: FeasibilityOracle | None = None,
        settings: TcoverSettings | None = None,
    ) -> None:
        self.model = model
        if oracle is None:
            settings = settings or TcoverSettings()
            oracle = FeasibilityOracle(
                model.mapping,
                model.constraints,
                timeout_ms=settings.solver_timeout_ms,
                on_contradiction=settings.on_contradiction,
                on_timeout=settings.on_timeout,
            )
        self.oracle = oracle
        self._invalid_cells: dict[tuple[int, ...], frozenset[int]] = {}

    def row_problem(self, row: Row) -> str | None:
        """Describe why ``row`` is not a valid complete test, or None."""
        if len(row) != self.model.parameter_count:
            return f"has {len(row)} entries, expected {self.model.parameter_count}"
        for p, value in enumerate(row):
            if value == UNASSIGNED:
                return f"parameter {p} is unassigned"
            if not 0 <= value < self.model.domain_sizes[p]:
                return f"value {value} out of range for parameter {p}"
        if not self.oracle.is_feasible(row):
            return "violates the constraints"
        return None

    def malformed_rows(self, suite: Suite) -> list[int]:
        """Indices of rows that are unfixed, out of range or infeasible."""
        bad = []
        for i, row in enumerate(suite):
            problem = self.row_problem(row)
            if problem is not None:
                logger.debug(f"Row {i} {list(row)} {problem}")
                bad.append(i)
        return bad

    def is_well_formed_array(self, suite: Suite) -> bool:
        """True when every row is complete and satisfies the constraints."""
        return all(self.row_problem(row) is None for row in suite)

    def invalid_cells(self, radix: MixedRadix) -> frozenset[int]:
        """Combination indices of ``radix.subset`` the constraints exclude."""
        cached = self._invalid_cells.get(radix.subset)
        if cached is not None:
            return cached

        invalid: set[int] = set()
        if self.oracle.has_constraints:
            width = self.model.parameter_count
            for index in range(radix.size):
                assignment = radix.expand(radix.decode(index), width, UNASSIGNED)
                if not self.oracle.is_feasible(assignment):
                    invalid.add(index)

        result = frozenset(invalid)
        self._invalid_cells[radix.subset] = result
        return result

    def _evaluate_subset(
        self,
        radix: MixedRadix,
        suite: Suite,
        conflicts: list[CoverageConflict],
    ) -> SubsetCoverage:
        tally = bytearray(radix.size)
        invalid = self.invalid_cells(radix)
        for index in invalid:
            tally[index] = CellState.INVALID

        if len(invalid) == radix.size:
            raise DegenerateSpaceError(
                f"Every value combination of parameters {list(radix.subset)} is infeasible",
                subset=radix.subset,
            )

        covered = 0
        for row_index, row in enumerate(suite):
            values = radix.project(row)
            index = radix.encode(values)
            state = tally[index]
            if state == CellState.UNVISITED:
                tally[index] = CellState.COVERED
                covered += 1
            elif state == CellState.INVALID:
                logger.warning(
                    f"Row {row_index} covers combination {values} of parameters "
                    f"{list(radix.subset)}, which the constraints exclude",
                    extra={"subset": list(radix.subset)},
                )
                conflicts.append(CoverageConflict(row_index, radix.subset, values))

        return SubsetCoverage(radix.subset, radix.size, len(invalid), covered)

    def coverage_stats(self, suite: Suite, strength: int) -> CoverageStats:
        """Evaluate ``suite`` at ``strength`` and return the full tally.

        Raises:
            ValueError: If strength is not between 1 and the parameter count.
            DegenerateSpaceError: If some t-subset has no feasible combination.
        """
        n = self.model.parameter_count
        if strength < 1:
            raise ValueError("Strength must be at least 1")
        if strength > n:
            raise ValueError(f"Strength {strength} exceeds number of parameters ({n})")

        stats = CoverageStats(strength=strength, status=CoverageStatus.VALID, test_count=len(suite))

        malformed = self.malformed_rows(suite)
        if malformed:
            logger.info(
                f"Suite has {len(malformed)} unfixed or invalid row(s); coverage not computed"
            )
            stats.status = CoverageStatus.INVALID
            stats.malformed_rows = malformed
            return stats

        for subset in all_combinations(n, strength):
            radix = MixedRadix(subset, self.model.domain_sizes)
            result = self._evaluate_subset(radix, suite, stats.conflicts)
            stats.subsets.append(result)
            stats.total_space += result.space
            stats.total_invalid += result.invalid
            stats.total_covered += result.covered
            logger.debug(
                f"Subset {list(subset)}: {result.covered}/{result.feasible} covered, "
                f"{result.invalid} excluded"
            )

        logger.debug(repr(stats))
        return stats

    def evaluate_coverage(self, suite: Suite, strength: int) -> float | _InvalidType:
        """Share of feasible t-way combinations ``suite`` covers.

        Returns:
            A ratio in [0, 1], or INVALID if the suite has unfixed or
            infeasible rows.
        """
        return self.coverage_stats(suite, strength).ratio

    def is_covering_array(self, suite: Suite, strength: int) -> bool:
        """True when ``suite`` covers every feasible t-way combination."""
        return self.evaluate_coverage(suite, strength) == 1.0

    def __repr__(self) -> str:
        return f"CoverageEvaluator({self.model!r})"
