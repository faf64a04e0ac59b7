"""Batch coverage checks over a directory of generated covering arrays.

Result files are laid out as ``<root>/<algorithm>/<handler>_<model>_<suffix>``.
Each file holds one or more arrays generated for the benchmark model
``<benchmark_dir>/<model>.model`` (constraints in
``<benchmark_dir>/<model>.constraints``). Every array is checked to be a
covering array at the configured strength, and files holding fewer
arrays than expected are reported as incomplete.

Example:
    >>> report = run_experiment("results", load_settings(max_arrays=10))
    >>> for result in report.problematic:
    ...     print(result.source.path)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tcover.config.settings import TcoverSettings
from tcover.core.coverage import INVALID, CoverageEvaluator
from tcover.errors import DegenerateSpaceError, TcoverError
from tcover.io.arrays import read_arrays
from tcover.io.casa import read_casa
from tcover.logging import log_context

logger = logging.getLogger(__name__)

IGNORED_FILES = frozenset({".DS_Store"})

UNFIXED_OR_INVALID = "unfixed or invalid rows"
NOT_FULL_COVERAGE = "not full coverage"
DEGENERATE_MODEL = "no feasible combinations"


@dataclass(frozen=True)
class ResultFile:
    """A result file and the names encoded in its path."""

    path: Path
    algorithm: str
    handler: str
    model_name: str

    @property
    def label(self) -> str:
        return f"{self.algorithm} + {self.handler} + {self.model_name}"


@dataclass
class ArrayIssue:
    """An array in a result file that is not a covering array."""

    index: int
    reason: str
    coverage: float | None = None


@dataclass
class FileReport:
    """Outcome of checking one result file."""

    source: ResultFile
    arrays_found: int = 0
    arrays_checked: int = 0
    issues: list[ArrayIssue] = field(default_factory=list)
    missing: bool = False
    error: str | None = None

    @property
    def passed(self) -> bool:
        return self.error is None and not self.issues

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": str(self.source.path),
            "algorithm": self.source.algorithm,
            "handler": self.source.handler,
            "model": self.source.model_name,
            "arrays_found": self.arrays_found,
            "arrays_checked": self.arrays_checked,
            "passed": self.passed,
            "missing": self.missing,
            "error": self.error,
            "issues": [
                {"array": i.index, "reason": i.reason, "coverage": i.coverage}
                for i in self.issues
            ],
        }


@dataclass
class ExperimentReport:
    """Outcome of checking every result file under a root directory."""

    root: Path
    strength: int
    files: list[FileReport] = field(default_factory=list)

    @property
    def problematic(self) -> list[FileReport]:
        return [f for f in self.files if not f.passed]

    @property
    def missing(self) -> list[FileReport]:
        return [f for f in self.files if f.missing]

    @property
    def all_passed(self) -> bool:
        return not self.problematic

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": str(self.root),
            "strength": self.strength,
            "files": [f.to_dict() for f in self.files],
            "problematic": [str(f.source.path) for f in self.problematic],
            "missing": [str(f.source.path) for f in self.missing],
        }


def discover_files(root: str | Path) -> list[Path]:
    """All files below ``root``, recursively, in a stable order."""
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Not a directory: {root}")
    return sorted(
        p for p in root.rglob("*")
        if p.is_file() and p.name not in IGNORED_FILES
    )


def parse_result_name(path: str | Path, root: str | Path) -> ResultFile:
    """Split ``<root>/<algorithm>/<handler>_<model>_<suffix>`` into its names.

    The model name is everything between the first and the last underscore
    of the file name, so model names may contain underscores.

    Raises:
        ValueError: If the path does not follow the layout.
    """
    path = Path(path)
    relative = path.relative_to(root)
    if len(relative.parts) < 2:
        raise ValueError(f"{path} is not inside an algorithm directory")

    algorithm = relative.parts[0]
    stem = path.name
    first, last = stem.find("_"), stem.rfind("_")
    if first < 0 or first == last:
        raise ValueError(f"File name {stem!r} does not match <handler>_<model>_<suffix>")

    return ResultFile(
        path=path,
        algorithm=algorithm,
        handler=stem[:first],
        model_name=stem[first + 1:last],
    )


class ExperimentRunner:
    """Checks result files, reusing one evaluator per benchmark model.

    Attributes:
        settings: Strength, array bounds and benchmark location.
    """

    def __init__(self, settings: TcoverSettings | None = None) -> None:
        self.settings = settings or TcoverSettings()
        self._evaluators: dict[str, CoverageEvaluator] = {}

    def evaluator_for(self, model_name: str) -> CoverageEvaluator:
        """The evaluator for a benchmark model, loading it on first use."""
        if model_name not in self._evaluators:
            benchmark = Path(self.settings.benchmark_dir)
            casa = read_casa(
                benchmark / f"{model_name}.model",
                benchmark / f"{model_name}.constraints",
            )
            self._evaluators[model_name] = CoverageEvaluator(casa.model, settings=self.settings)
        return self._evaluators[model_name]

    def check_file(self, source: ResultFile) -> FileReport:
        """Check up to ``max_arrays`` arrays of one result file."""
        report = FileReport(source=source)

        with log_context(file=str(source.path), model=source.model_name):
            try:
                evaluator = self.evaluator_for(source.model_name)
                arrays = read_arrays(source.path)
            except TcoverError as e:
                logger.error(f"Cannot check {source.path}: {e}")
                report.error = str(e)
                return report

            report.arrays_found = len(arrays)
            report.missing = (
                len(arrays) < self.settings.expected_arrays
                and source.algorithm not in self.settings.exempt_algorithms
            )

            for index, array in enumerate(arrays[: self.settings.max_arrays]):
                report.arrays_checked += 1
                try:
                    coverage = evaluator.evaluate_coverage(array.rows, self.settings.strength)
                except DegenerateSpaceError as e:
                    logger.error(f"Array {index}: {e}")
                    report.issues.append(ArrayIssue(index, DEGENERATE_MODEL))
                    continue
                except (TcoverError, ValueError) as e:
                    logger.error(f"Array {index}: {e}")
                    report.issues.append(ArrayIssue(index, str(e)))
                    continue

                if coverage is INVALID:
                    report.issues.append(ArrayIssue(index, UNFIXED_OR_INVALID))
                elif coverage != 1.0:
                    report.issues.append(ArrayIssue(index, NOT_FULL_COVERAGE, coverage))

        return report

    def run(self, root: str | Path) -> ExperimentReport:
        """Check every result file below ``root``."""
        root = Path(root)
        files = discover_files(root)
        logger.info(f"Checking {len(files)} files in {root}")

        report = ExperimentReport(root=root, strength=self.settings.strength)
        for path in files:
            try:
                source = parse_result_name(path, root)
            except ValueError as e:
                logger.warning(f"Skipping {path}: {e}")
                continue
            result = self.check_file(source)
            report.files.append(result)
            logger.debug(
                f"{source.label}: {result.arrays_checked}/{result.arrays_found} arrays checked, "
                f"{len(result.issues)} issue(s)"
            )

        logger.info(
            f"Checked {len(report.files)} files: {len(report.problematic)} problematic, "
            f"{len(report.missing)} with fewer than {self.settings.expected_arrays} arrays"
        )
        return report


def run_experiment(root: str | Path, settings: TcoverSettings | None = None) -> ExperimentReport:
    """Check every result file below ``root`` with a fresh runner."""
    return ExperimentRunner(settings).run(root)
