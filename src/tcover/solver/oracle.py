"""Feasibility oracle backed by the z3 SAT/SMT solver.

The oracle encodes a model once, as boolean clauses over the literal
numbering of :class:`~tcover.core.model.LiteralMapping`:

- at-least-one: every parameter takes some value
- at-most-one: no parameter takes two values
- user constraints: forbidden combinations, as given

and then answers many "can this (partial) assignment be extended to a
valid test?" queries. Each query passes the assigned values as solver
assumptions, so the clause database is built once and never mutated
afterwards.

Example:
    >>> model = Model(3, (2, 2, 2), constraints=[(-2, -4)])
    >>> oracle = FeasibilityOracle(model.mapping, model.constraints)
    >>> oracle.is_feasible([1, 1, UNASSIGNED])
    False
    >>> oracle.is_feasible([1, 0, UNASSIGNED])
    True
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

import z3

from tcover.core.model import UNASSIGNED, Clause, LiteralMapping, structural_clauses
from tcover.errors import ContradictionError, SolverTimeoutError

logger = logging.getLogger(__name__)

ContradictionPolicy = Literal["continue", "fail"]
TimeoutPolicy = Literal["infeasible", "raise"]


@dataclass
class QueryStats:
    """Counters for the queries an oracle has answered.

    Attributes:
        queries: Total number of ``is_feasible`` calls.
        satisfiable: Queries the solver proved feasible.
        unsatisfiable: Queries the solver proved infeasible.
        undecided: Queries that hit the time budget.
    """

    queries: int = 0
    satisfiable: int = 0
    unsatisfiable: int = 0
    undecided: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "queries": self.queries,
            "satisfiable": self.satisfiable,
            "unsatisfiable": self.unsatisfiable,
            "undecided": self.undecided,
        }


def _clause_expr(clause: Clause, variables: Sequence[z3.BoolRef]) -> z3.BoolRef:
    """Translate a signed-literal clause into a z3 disjunction."""
    terms = [variables[lit] if lit > 0 else z3.Not(variables[-lit]) for lit in clause]
    if not terms:
        return z3.BoolVal(False)
    if len(terms) == 1:
        return terms[0]
    return z3.Or(*terms)


class FeasibilityOracle:
    """Answers feasibility queries against a fixed clause database.

    Contradictions found while loading are handled according to
    ``on_contradiction``:

    - ``"continue"``: log the contradiction and keep only the user clauses
      loaded before the first one that made the database unsatisfiable.
      Queries then run against that consistent prefix.
    - ``"fail"``: raise :class:`ContradictionError`.

    Queries the solver cannot decide within ``timeout_ms`` are handled
    according to ``on_timeout``: ``"infeasible"`` logs the condition and
    reports the assignment as infeasible, ``"raise"`` raises
    :class:`SolverTimeoutError`.

    Attributes:
        mapping: The literal numbering of the model.
        user_clauses: All user constraints passed in.
        loaded_clauses: The user constraints actually in the database.
        contradiction: The user clause that made the database
            unsatisfiable, or None.
        stats: Query counters.
    """

    def __init__(
        self,
        mapping: LiteralMapping,
        constraints: Sequence[Sequence[int]] | None = None,
        *,
        timeout_ms: int = 10_000,
        on_contradiction: ContradictionPolicy = "continue",
        on_timeout: TimeoutPolicy = "infeasible",
    ) -> None:
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if on_contradiction not in ("continue", "fail"):
            raise ValueError(f"Unknown contradiction policy: {on_contradiction!r}")
        if on_timeout not in ("infeasible", "raise"):
            raise ValueError(f"Unknown timeout policy: {on_timeout!r}")

        self.mapping = mapping
        self.user_clauses: tuple[Clause, ...] = tuple(tuple(c) for c in (constraints or ()))
        self.timeout_ms = timeout_ms
        self.on_contradiction = on_contradiction
        self.on_timeout = on_timeout
        self.stats = QueryStats()
        self.contradiction: Clause | None = None

        # index 0 is unused so that literal IDs index the list directly
        self._variables: list[z3.BoolRef] = [z3.BoolVal(True)]
        for lit in range(1, mapping.max_literal + 1):
            parameter, value = mapping.lookup(lit)
            self._variables.append(z3.Bool(f"p{parameter}_v{value}"))

        self._structural = structural_clauses(mapping)
        self.loaded_clauses: tuple[Clause, ...] = ()
        self.solver = self._load()

    @property
    def has_constraints(self) -> bool:
        return bool(self.user_clauses)

    @property
    def is_degraded(self) -> bool:
        """True when some user constraints were dropped after a contradiction."""
        return self.contradiction is not None

    def _new_solver(self) -> z3.Solver:
        solver = z3.Solver()
        solver.set("timeout", self.timeout_ms)
        for clause in self._structural:
            solver.add(_clause_expr(clause, self._variables))
        return solver

    def _load(self) -> z3.Solver:
        """Build the clause database, resolving contradictions by policy."""
        solver = self._new_solver()
        for clause in self.user_clauses:
            solver.add(_clause_expr(clause, self._variables))

        logger.debug(
            f"Loaded {len(self._structural)} structural and {len(self.user_clauses)} user "
            f"clauses over {self.mapping.max_literal} variables"
        )

        if not self.user_clauses:
            return solver

        result = solver.check()
        if result == z3.unknown:
            logger.warning(
                f"Consistency check of {len(self.user_clauses)} constraint(s) undecided "
                f"({solver.reason_unknown()}) after {self.timeout_ms}ms; "
                f"loading them unchecked"
            )
        if result != z3.unsat:
            self.loaded_clauses = self.user_clauses
            return solver

        index = self._first_contradicting_clause()
        clause = self.user_clauses[index]
        self.contradiction = clause

        if self.on_contradiction == "fail":
            raise ContradictionError(
                f"Constraint {index} {list(clause)} contradicts the preceding clauses",
                clause=clause,
                index=index,
            )

        logger.warning(
            f"Constraint contradiction at clause {index} {list(clause)}; continuing with "
            f"the {index} clause(s) loaded before it",
            extra={"clause": list(clause)},
        )
        self.loaded_clauses = self.user_clauses[:index]
        solver = self._new_solver()
        for kept in self.loaded_clauses:
            solver.add(_clause_expr(kept, self._variables))
        return solver

    def _first_contradicting_clause(self) -> int:
        """Index of the first user clause whose prefix is unsatisfiable."""
        probe = self._new_solver()
        for i, clause in enumerate(self.user_clauses):
            probe.add(_clause_expr(clause, self._variables))
            if probe.check() == z3.unsat:
                return i
        # the full set was unsat but no prefix proved it within the timeout
        return len(self.user_clauses) - 1

    def assumptions(self, assignment: Sequence[int]) -> list[int]:
        """Literal IDs of the assigned entries of ``assignment``.

        Raises:
            ValueError: If the assignment has the wrong length or an
                entry is neither a valid value nor UNASSIGNED.
        """
        if len(assignment) != self.mapping.parameter_count:
            raise ValueError(
                f"Assignment has {len(assignment)} entries, model has "
                f"{self.mapping.parameter_count} parameters"
            )
        return [
            self.mapping.literal(p, value)
            for p, value in enumerate(assignment)
            if value != UNASSIGNED
        ]

    def is_feasible(self, assignment: Sequence[int]) -> bool:
        """Whether ``assignment`` extends to a test satisfying every clause.

        Without user constraints every assignment is feasible. Otherwise
        the assigned values are passed to the solver as assumptions.
        """
        literals = self.assumptions(assignment)
        self.stats.queries += 1

        if not self.user_clauses:
            self.stats.satisfiable += 1
            return True

        result = self.solver.check(*[self._variables[lit] for lit in literals])
        if result == z3.sat:
            self.stats.satisfiable += 1
            return True
        if result == z3.unsat:
            self.stats.unsatisfiable += 1
            return False

        self.stats.undecided += 1
        reason = self.solver.reason_unknown()
        if self.on_timeout == "raise":
            raise SolverTimeoutError(
                f"Feasibility of {list(assignment)} undecided: {reason}",
                assignment=list(assignment),
                timeout_ms=self.timeout_ms,
            )
        logger.warning(
            f"Feasibility query undecided ({reason}) after {self.timeout_ms}ms; "
            f"treating {list(assignment)} as infeasible",
            extra={"assignment": list(assignment)},
        )
        return False

    def __repr__(self) -> str:
        state = ", degraded" if self.is_degraded else ""
        return (
            f"FeasibilityOracle({self.mapping.parameter_count} parameters, "
            f"{len(self.loaded_clauses)}/{len(self.user_clauses)} constraints loaded{state})"
        )
