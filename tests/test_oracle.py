"""Tests for the z3-backed feasibility oracle."""

from __future__ import annotations

import itertools
import logging

import pytest
import z3

from tcover.core.model import UNASSIGNED, Model
from tcover.errors import ContradictionError, ErrorCode, SolverTimeoutError
from tcover.solver.oracle import FeasibilityOracle

U = UNASSIGNED


class UndecidedSolver:
    """Stands in for z3.Solver when a query runs out of time."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def check(self, *assumptions):
        self.calls.append(assumptions)
        return z3.unknown

    def reason_unknown(self) -> str:
        return "timeout"


class UnknownOnLoadSolver:
    """Stands in for z3.Solver when even the load-time check times out."""

    def set(self, *args) -> None:
        pass

    def add(self, *constraints) -> None:
        pass

    def check(self, *assumptions):
        return z3.unknown

    def reason_unknown(self) -> str:
        return "timeout"


def oracle_for(model: Model, **kwargs) -> FeasibilityOracle:
    return FeasibilityOracle(model.mapping, model.constraints, **kwargs)


class TestUnconstrained:
    """Without user constraints every assignment is feasible."""

    def test_every_assignment_feasible(self, binary_model):
        oracle = oracle_for(binary_model)
        for assignment in itertools.product((U, 0, 1), repeat=3):
            assert oracle.is_feasible(list(assignment))

    def test_fully_unassigned(self, binary_model):
        assert oracle_for(binary_model).is_feasible([U, U, U])

    def test_stats(self, binary_model):
        oracle = oracle_for(binary_model)
        oracle.is_feasible([0, 1, 0])
        oracle.is_feasible([U, U, 1])
        assert oracle.stats.to_dict() == {
            "queries": 2,
            "satisfiable": 2,
            "unsatisfiable": 0,
            "undecided": 0,
        }


class TestConstrained:
    """Queries against user constraints."""

    def test_forbidden_pair(self, constrained_model):
        oracle = oracle_for(constrained_model)
        assert not oracle.is_feasible([1, 1, U])
        assert not oracle.is_feasible([1, 1, 0])
        assert oracle.is_feasible([1, 0, U])
        assert oracle.is_feasible([0, 1, 1])
        assert oracle.is_feasible([U, U, U])

    def test_database_not_mutated_by_queries(self, constrained_model):
        oracle = oracle_for(constrained_model)
        before = len(oracle.solver.assertions())
        oracle.is_feasible([1, 1, U])
        oracle.is_feasible([0, U, 1])
        assert len(oracle.solver.assertions()) == before
        # an infeasible query must not leave p0=1 or p1=1 forbidden
        assert oracle.is_feasible([1, U, U])
        assert oracle.is_feasible([U, 1, U])

    def test_infeasibility_through_propagation(self):
        # p0=0 implies p1=0, and p1=0 is forbidden together with p2=0
        model = Model(3, (2, 2, 2), constraints=[(-1, 3), (-3, -5)])
        oracle = oracle_for(model)
        assert not oracle.is_feasible([0, U, 0])
        assert oracle.is_feasible([0, U, 1])
        assert oracle.is_feasible([1, U, 0])

    def test_stats_count_outcomes(self, constrained_model):
        oracle = oracle_for(constrained_model)
        oracle.is_feasible([1, 1, U])
        oracle.is_feasible([0, 0, 0])
        assert oracle.stats.queries == 2
        assert oracle.stats.satisfiable == 1
        assert oracle.stats.unsatisfiable == 1

    def test_loaded_clauses(self, constrained_model):
        oracle = oracle_for(constrained_model)
        assert oracle.loaded_clauses == ((-2, -4),)
        assert oracle.contradiction is None
        assert not oracle.is_degraded

    def test_assumptions(self, constrained_model):
        oracle = oracle_for(constrained_model)
        assert oracle.assumptions([1, U, 0]) == [2, 5]

    def test_wrong_length_raises(self, constrained_model):
        with pytest.raises(ValueError, match="2 entries"):
            oracle_for(constrained_model).is_feasible([0, 1])

    def test_out_of_range_value_raises(self, constrained_model):
        with pytest.raises(ValueError, match="out of range"):
            oracle_for(constrained_model).is_feasible([0, 2, 0])


class TestContradiction:
    """Contradictions found while loading the clause database."""

    def test_continue_keeps_consistent_prefix(self, caplog):
        # p0 must be 0, then p0=0 is forbidden
        model = Model(2, (2, 2), constraints=[(1,), (-1,), (3,)])
        with caplog.at_level(logging.WARNING, logger="tcover.solver.oracle"):
            oracle = oracle_for(model)

        assert oracle.is_degraded
        assert oracle.contradiction == (-1,)
        assert oracle.loaded_clauses == ((1,),)
        assert "contradiction at clause 1" in caplog.text

        assert oracle.is_feasible([0, U])
        assert not oracle.is_feasible([1, U])
        # the clause after the contradiction was not loaded
        assert oracle.is_feasible([0, 1])

    def test_contradiction_with_structural_clauses(self):
        # forbidding both values of p0 leaves it without a value
        model = Model(2, (2, 2), constraints=[(-1,), (-2,)])
        oracle = oracle_for(model)
        assert oracle.contradiction == (-2,)
        assert oracle.loaded_clauses == ((-1,),)
        assert oracle.is_feasible([1, U])

    def test_empty_clause(self):
        model = Model(2, (2, 2), constraints=[()])
        oracle = oracle_for(model)
        assert oracle.contradiction == ()
        assert oracle.loaded_clauses == ()

    def test_fail_policy_raises(self):
        model = Model(2, (2, 2), constraints=[(1,), (-1,)])
        with pytest.raises(ContradictionError) as exc_info:
            oracle_for(model, on_contradiction="fail")
        assert exc_info.value.error_code == ErrorCode.CONTRADICTION
        assert exc_info.value.context["index"] == 1
        assert exc_info.value.context["clause"] == (-1,)


class TestTimeout:
    """Queries the solver cannot decide in time."""

    def test_undecided_consistency_check_warns(self, constrained_model, monkeypatch, caplog):
        monkeypatch.setattr(z3, "Solver", UnknownOnLoadSolver)
        with caplog.at_level(logging.WARNING, logger="tcover.solver.oracle"):
            oracle = oracle_for(constrained_model)

        assert "Consistency check of 1 constraint(s) undecided (timeout)" in caplog.text
        assert oracle.loaded_clauses == ((-2, -4),)
        assert not oracle.is_degraded

    def test_undecided_is_infeasible(self, constrained_model, caplog):
        oracle = oracle_for(constrained_model)
        oracle.solver = UndecidedSolver()
        with caplog.at_level(logging.WARNING, logger="tcover.solver.oracle"):
            assert oracle.is_feasible([0, 0, U]) is False
        assert oracle.stats.undecided == 1
        assert "undecided (timeout)" in caplog.text

    def test_raise_policy(self, constrained_model):
        oracle = oracle_for(constrained_model, on_timeout="raise")
        oracle.solver = UndecidedSolver()
        with pytest.raises(SolverTimeoutError) as exc_info:
            oracle.is_feasible([0, 0, U])
        assert exc_info.value.error_code == ErrorCode.SOLVER_TIMEOUT

    def test_unconstrained_never_asks_solver(self, binary_model):
        oracle = oracle_for(binary_model)
        oracle.solver = UndecidedSolver()
        assert oracle.is_feasible([0, 0, U])
        assert oracle.solver.calls == []

    def test_timeout_passed_to_solver(self, constrained_model):
        oracle = oracle_for(constrained_model, timeout_ms=250)
        assert oracle.timeout_ms == 250


class TestValidation:
    """Constructor argument checks."""

    def test_bad_timeout(self, binary_model):
        with pytest.raises(ValueError, match="timeout_ms"):
            oracle_for(binary_model, timeout_ms=0)

    def test_bad_policies(self, binary_model):
        with pytest.raises(ValueError, match="contradiction policy"):
            oracle_for(binary_model, on_contradiction="ignore")
        with pytest.raises(ValueError, match="timeout policy"):
            oracle_for(binary_model, on_timeout="ignore")

    def test_repr(self, constrained_model):
        assert repr(oracle_for(constrained_model)) == (
            "FeasibilityOracle(3 parameters, 1/1 constraints loaded)"
        )
