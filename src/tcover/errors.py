"""Exception hierarchy for tcover.

Every tcover error inherits from TcoverError and carries an ErrorCode, a
context dict (path, line, subset, clause, ...) and suggestions for fixing
the input or configuration.

Solver-level faults (contradictions, timeouts) are normally logged by the
feasibility oracle rather than raised; the exception types exist so that
callers who opt into strict behaviour get a typed failure.

Example:
    try:
        model = read_model("benchmark/apache.model")
    except ModelFormatError as e:
        print(e)                 # [E301] Expected an integer ... (apache.model:2)
        print(e.format_verbose())
"""

from __future__ import annotations

from enum import Enum
from typing import Any


_LOCATION_KEYS = frozenset({"path", "line", "subset"})

_CATEGORIES = {"1": "solver", "2": "coverage", "3": "input", "4": "config"}


class ErrorCode(Enum):
    """Error codes, grouped by category.

    - E1xx: Solver errors
    - E2xx: Coverage errors
    - E3xx: Input format errors
    - E4xx: Configuration errors
    - E9xx: Unknown/internal errors
    """

    # Solver errors (E1xx)
    CONTRADICTION = "E101"
    SOLVER_TIMEOUT = "E102"

    # Coverage errors (E2xx)
    COVERAGE_FAILED = "E201"
    DEGENERATE_SPACE = "E202"

    # Input format errors (E3xx)
    INVALID_MODEL = "E301"
    INVALID_ARRAY = "E302"

    # Configuration errors (E4xx)
    INVALID_CONFIG = "E401"

    UNKNOWN = "E999"

    @property
    def category(self) -> str:
        """"solver", "coverage", "input", "config" or "unknown"."""
        return _CATEGORIES.get(self.value[1], "unknown")


class TcoverError(Exception):
    """Base exception for all tcover errors.

    Keyword arguments beyond the named ones are kept in ``context``. The
    ``path``, ``line`` and ``subset`` keys are rendered as the location.

    Attributes:
        error_code: ErrorCode identifying the failure.
        message: Human-readable error description.
        context: Details about where the error happened.
        cause: The exception this one was raised from, if any.
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN
    default_message: str = "An unexpected error occurred"
    default_suggestions: tuple[str, ...] = ()

    def __init__(
        self,
        message: str | None = None,
        error_code: ErrorCode | None = None,
        cause: Exception | None = None,
        suggestions: list[str] | None = None,
        **context: Any,
    ) -> None:
        self.message = message or self.default_message
        if error_code is not None:
            self.error_code = error_code
        self.cause = cause
        self.context: dict[str, Any] = dict(context)
        self._suggestions = suggestions
        super().__init__(self.message)

    @property
    def suggestions(self) -> list[str]:
        if self._suggestions is not None:
            return list(self._suggestions)
        return list(self.default_suggestions)

    def format_location(self) -> str:
        """``file:line``, then the parameter subset if known; empty if neither."""
        parts = []
        if "path" in self.context:
            where = str(self.context["path"])
            if "line" in self.context:
                where += f":{self.context['line']}"
            parts.append(where)
        elif "line" in self.context:
            parts.append(f"line {self.context['line']}")
        if "subset" in self.context:
            parts.append(f"subset {self.context['subset']}")
        return ", ".join(parts)

    def __str__(self) -> str:
        location = self.format_location()
        text = f"[{self.error_code.value}] {self.message}"
        return f"{text} ({location})" if location else text

    def format_verbose(self) -> str:
        """Multi-line rendering with context, cause and suggestions."""
        lines = [f"{self.error_code.value} {type(self).__name__}: {self.message}"]

        location = self.format_location()
        if location:
            lines.append(f"  at {location}")
        for key, value in self.context.items():
            if key not in _LOCATION_KEYS:
                lines.append(f"  {key}: {value}")
        if self.cause is not None:
            lines.append(f"  caused by {type(self.cause).__name__}: {self.cause}")

        if self.suggestions:
            lines.append("Try:")
            lines.extend(f"  - {s}" for s in self.suggestions)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.error_code.value,
            "category": self.error_code.category,
            "error_type": type(self).__name__,
            "message": self.message,
            "location": self.format_location() or None,
            "context": {k: str(v) for k, v in self.context.items()},
            "suggestions": self.suggestions,
            "cause": str(self.cause) if self.cause is not None else None,
        }


class SolverError(TcoverError):
    """Base class for errors raised around the SAT oracle."""

    error_code = ErrorCode.CONTRADICTION
    default_message = "Constraint solver failure"


class ContradictionError(SolverError):
    """The clause database is unsatisfiable before any query.

    Only raised when the oracle runs with ``on_contradiction="fail"``;
    otherwise the contradiction is logged and the oracle continues with
    the clauses loaded before the offending one.
    """

    error_code = ErrorCode.CONTRADICTION
    default_message = "Constraint set is self-contradictory"
    default_suggestions = (
        "Check the constraints file for a clause forbidding every value of a parameter",
        "Verify constraint literals use 1-based, row-major value numbering",
        "Set on_contradiction: continue to evaluate with the consistent prefix",
    )


class SolverTimeoutError(SolverError):
    """A feasibility query could not be decided within the time budget."""

    error_code = ErrorCode.SOLVER_TIMEOUT
    default_message = "Feasibility query exceeded the solver timeout"
    default_suggestions = (
        "Increase solver_timeout_ms in the configuration",
    )


class CoverageError(TcoverError):
    """Base class for coverage computation errors."""

    error_code = ErrorCode.COVERAGE_FAILED
    default_message = "Coverage could not be computed"


class DegenerateSpaceError(CoverageError):
    """Every value combination of some parameter subset is infeasible."""

    error_code = ErrorCode.DEGENERATE_SPACE
    default_message = "No feasible combinations left to cover"
    default_suggestions = (
        "The constraints exclude every combination of at least one parameter subset",
        "Check the constraints file for contradictions",
    )


class InputFormatError(TcoverError):
    """Base class for model and array file parsing errors."""

    error_code = ErrorCode.INVALID_MODEL
    default_message = "Input file could not be parsed"


class ModelFormatError(InputFormatError):
    """A model or constraints file is malformed."""

    error_code = ErrorCode.INVALID_MODEL
    default_message = "Invalid model definition"
    default_suggestions = (
        "Model files hold the strength, the parameter count and the domain sizes",
        "Constraint terms are written as '- <index>' or '+ <index>' pairs",
    )


class ArrayFormatError(InputFormatError):
    """A covering array file is malformed."""

    error_code = ErrorCode.INVALID_ARRAY
    default_message = "Invalid covering array file"
    default_suggestions = (
        "Each array starts with a header whose 4th token is the number of rows",
        "Rows are space separated value indices",
    )


class ConfigurationError(TcoverError):
    """Settings could not be loaded or failed validation."""

    error_code = ErrorCode.INVALID_CONFIG
    default_message = "Invalid configuration"
    default_suggestions = (
        "Check the YAML config file and TCOVER_* environment variables",
    )
