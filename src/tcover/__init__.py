"""tcover - constrained t-way coverage evaluation.

Measures how completely a test suite covers the t-way value combinations
of a combinatorial test model whose constraints forbid some combinations.

Quick Start:
    from tcover import CoverageEvaluator, Model

    model = Model(3, (2, 2, 2), constraints=[(-2, -4)])
    evaluator = CoverageEvaluator(model)

    evaluator.evaluate_coverage(suite, 2)    # ratio in [0, 1] or INVALID
    evaluator.is_covering_array(suite, 2)
"""

from __future__ import annotations

from tcover.config import TcoverSettings, load_settings
from tcover.core import (
    INVALID,
    UNASSIGNED,
    CoverageEvaluator,
    CoverageStats,
    CoverageStatus,
    LiteralMapping,
    MixedRadix,
    Model,
    all_combinations,
    decode,
    encode,
)
from tcover.errors import (
    ArrayFormatError,
    ConfigurationError,
    ContradictionError,
    DegenerateSpaceError,
    ErrorCode,
    ModelFormatError,
    SolverTimeoutError,
    TcoverError,
)
from tcover.experiment import ExperimentReport, ExperimentRunner, run_experiment
from tcover.io import read_arrays, read_casa, read_model
from tcover.solver import FeasibilityOracle

__version__ = "0.1.0"

__all__ = [
    "INVALID",
    "UNASSIGNED",
    "ArrayFormatError",
    "ConfigurationError",
    "ContradictionError",
    "CoverageEvaluator",
    "CoverageStats",
    "CoverageStatus",
    "DegenerateSpaceError",
    "ErrorCode",
    "ExperimentReport",
    "ExperimentRunner",
    "FeasibilityOracle",
    "LiteralMapping",
    "MixedRadix",
    "Model",
    "ModelFormatError",
    "SolverTimeoutError",
    "TcoverError",
    "TcoverSettings",
    "__version__",
    "all_combinations",
    "decode",
    "encode",
    "load_settings",
    "read_arrays",
    "read_casa",
    "read_model",
    "run_experiment",
]
