"""
Common result type and interface of the branchsat solvers.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

# Search counters shown in a result summary, in this order, when a solver reports them
SUMMARY_COUNTERS = ("nodes", "branches", "max_depth", "search_space")


class SolverStatus(Enum):
    """Outcome of one solve call."""

    UNKNOWN = "unknown"
    SATISFIABLE = "satisfiable"
    UNSATISFIABLE = "unsatisfiable"
    TIMEOUT = "timeout"
    ERROR = "error"


class SolverResult:
    """
    Verdict of a solve call together with the model and search counters.

    Attributes:
        status: SolverStatus of the run
        solution: Model as DIMACS literals over 1..n, or None
        runtime: Wall-clock seconds spent in solve()
        satisfied_clauses: Clauses satisfied by the model (0 without one)
        total_clauses: Clauses the solver was given
        statistics: Copy of the solver's counters at the end of the run
        error_message: Why the run stopped early, for TIMEOUT and ERROR
    """

    def __init__(
        self,
        status: SolverStatus = SolverStatus.UNKNOWN,
        solution: list[int] | None = None,
        runtime: float = 0.0,
        satisfied_clauses: int = 0,
        total_clauses: int = 0,
        statistics: dict[str, Any] | None = None,
        error_message: str | None = None,
    ):
        self.status = status
        self.solution = solution
        self.runtime = runtime
        self.satisfied_clauses = satisfied_clauses
        self.total_clauses = total_clauses
        self.statistics = statistics or {}
        self.error_message = error_message

    @property
    def is_sat(self) -> bool:
        return self.status == SolverStatus.SATISFIABLE

    @property
    def is_unsat(self) -> bool:
        return self.status == SolverStatus.UNSATISFIABLE

    def __str__(self) -> str:
        verdict = self.status.value.upper()
        if self.status == SolverStatus.ERROR:
            return f"{verdict}: {self.error_message}"

        counters = ", ".join(
            f"{key}={self.statistics[key]}"
            for key in SUMMARY_COUNTERS
            if key in self.statistics
        )
        summary = f"{verdict} after {self.runtime:.4f}s"
        if self.is_sat:
            summary += f", {self.satisfied_clauses}/{self.total_clauses} clauses"
        return f"{summary} ({counters})" if counters else summary


class SolverBase(ABC):
    """
    Interface shared by the registered solvers.

    A solver collects clauses incrementally and decides them on solve().
    Literals are DIMACS integers: v for variable v, -v for its negation.
    """

    solver_name: str = ""

    @abstractmethod
    def add_clause(self, clause: list[int]) -> None:
        """Append one clause."""

    @abstractmethod
    def add_clauses(self, clauses: list[list[int]]) -> None:
        """Append several clauses in order."""

    @abstractmethod
    def solve(
        self, assumptions: list[int] | None = None, timeout: float | None = None
    ) -> SolverResult:
        """
        Decide the clauses added so far.

        Args:
            assumptions: Literals forced true for this call only
            timeout: Seconds before the run gives up with SolverStatus.TIMEOUT
        """

    @abstractmethod
    def get_model(self) -> list[int] | None:
        """Model found by the last solve(), or None."""

    @abstractmethod
    def get_statistics(self) -> dict[str, Any]:
        """Counters of the last solve()."""

    @abstractmethod
    def interrupt(self) -> None:
        """Ask a running solve() in another thread to stop."""

    @abstractmethod
    def configure(self, config: dict[str, Any]) -> None:
        """Override solver options; unknown keys are logged and ignored."""
