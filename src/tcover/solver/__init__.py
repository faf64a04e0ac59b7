"""SAT-backed feasibility checking."""

from tcover.solver.oracle import FeasibilityOracle, QueryStats

__all__ = ["FeasibilityOracle", "QueryStats"]
