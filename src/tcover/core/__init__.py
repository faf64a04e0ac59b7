"""Coverage measurement core: model, indexing and evaluation."""

from tcover.core.coverage import (
    INVALID,
    CellState,
    CoverageConflict,
    CoverageEvaluator,
    CoverageStats,
    CoverageStatus,
    SubsetCoverage,
)
from tcover.core.indexing import (
    MixedRadix,
    all_combinations,
    combination_space_size,
    count_combinations,
    decode,
    encode,
)
from tcover.core.model import (
    UNASSIGNED,
    Clause,
    LiteralMapping,
    Model,
    at_least_one_clauses,
    at_most_one_clauses,
    structural_clauses,
)

__all__ = [
    "INVALID",
    "UNASSIGNED",
    "CellState",
    "Clause",
    "CoverageConflict",
    "CoverageEvaluator",
    "CoverageStats",
    "CoverageStatus",
    "LiteralMapping",
    "MixedRadix",
    "Model",
    "SubsetCoverage",
    "all_combinations",
    "at_least_one_clauses",
    "at_most_one_clauses",
    "combination_space_size",
    "count_combinations",
    "decode",
    "encode",
    "structural_clauses",
]
