"""
Monien-Speckenmeyer branching algorithm for k-SAT.

The search picks an undetermined clause of minimum active size w and splits
into w disjoint cases: for i = 0..w-1 the first i unassigned literals of the
clause are false and the (i+1)-th is true. Each case assigns at least one new
variable, so the recursion depth is bounded by the number of variables.

References:
    B. Monien and E. Speckenmeyer, Solving satisfiability in less than 2^n
    steps, Discrete Appl. Math. 10 (1985), 287-295.
    F. V. Fomin and D. Kratsch, Exact Exponential Algorithms, Ch. 2.2.
"""

import logging
import sys
import threading
import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from typing import Any

from branchsat.formula import AssignmentTable, CNFFormula, Value
from branchsat.utils.exceptions import (
    ConfigurationError,
    SolverInterruptedError,
    SolverTimeoutError,
)

from .base import SolverBase, SolverResult, SolverStatus
from .config import get_config
from .registry import register_solver

# Set up logging
logger = logging.getLogger(__name__)

# Frames kept free for callers when the recursion limit has to be raised
_STACK_HEADROOM = 1000

_recursion_lock = threading.Lock()
_active_needs: list[int] = []
_base_recursion_limit = sys.getrecursionlimit()


class BranchingSearch:
    """
    One depth-first Monien-Speckenmeyer search over a formula.

    The formula's live table is restored to its entry state when the search
    returns, whatever the outcome. If ``record_witness`` is set, the table at
    the first satisfied leaf is kept in ``witness``.

    Args:
        formula: Formula to decide; its table must be initialized
        record_witness: Keep a satisfying table when one is found
        deadline: time.monotonic() value after which the search gives up
        interrupt_event: Set by another thread to abort the search
        abandon_event: Set when a sibling search already succeeded; the search
            then unwinds returning False
    """

    def __init__(
        self,
        formula: CNFFormula,
        record_witness: bool = False,
        deadline: float | None = None,
        interrupt_event: threading.Event | None = None,
        abandon_event: threading.Event | None = None,
    ):
        self.formula = formula
        self.record_witness = record_witness
        self.deadline = deadline
        self.interrupt_event = interrupt_event
        self.abandon_event = abandon_event
        self.witness: AssignmentTable | None = None
        self.start_time = time.monotonic()
        self.stats = {"nodes": 0, "branches": 0, "max_depth": 0}

    def run(self) -> bool:
        """Decide the formula sequentially."""
        with _recursion_room(self.formula.num_vars):
            return self._search(0)

    def run_parallel(self, workers: int) -> bool:
        """
        Decide the formula, exploring the root-level branches concurrently.

        Every branch gets its own fork of the formula, so no assignment table
        is shared between threads.
        """
        formula = self.formula
        self._enter(0)
        if formula.is_formula_true():
            self._keep_witness()
            return True
        if formula.has_falsified_clause():
            return False

        m = formula.select_branch_clause()
        width = formula.clause_active_size(m)
        found = threading.Event()

        children = []
        for i in range(width):
            child_formula = formula.fork()
            child_formula.zero_prefix_of_unassigned_literals(m, i)
            children.append(
                BranchingSearch(
                    child_formula,
                    record_witness=self.record_witness,
                    deadline=self.deadline,
                    interrupt_event=self.interrupt_event,
                    abandon_event=found,
                )
            )
        self.stats["branches"] += width
        logger.debug(
            f"Splitting clause {m} into {width} branches over {workers} workers"
        )

        result = False
        with _recursion_room(formula.num_vars), ThreadPoolExecutor(
            max_workers=workers
        ) as pool:
            futures = {pool.submit(child._search, 1): child for child in children}
            try:
                for future in as_completed(futures):
                    if future.result():
                        result = True
                        if self.witness is None:
                            self.witness = futures[future].witness
                        found.set()
            finally:
                # stops the remaining branches on success and on error alike
                found.set()

        for child in children:
            self.stats["nodes"] += child.stats["nodes"]
            self.stats["branches"] += child.stats["branches"]
            self.stats["max_depth"] = max(
                self.stats["max_depth"], child.stats["max_depth"]
            )
        return result

    def _enter(self, depth: int) -> None:
        self.stats["nodes"] += 1
        if depth > self.stats["max_depth"]:
            self.stats["max_depth"] = depth

    def _keep_witness(self) -> None:
        if self.record_witness and self.witness is None:
            self.witness = self.formula.snapshot_assignment()

    def _check_cancelled(self) -> None:
        if self.interrupt_event is not None and self.interrupt_event.is_set():
            raise SolverInterruptedError()
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise SolverTimeoutError(
                time_spent=time.monotonic() - self.start_time,
                nodes=self.stats["nodes"],
            )

    def _search(self, depth: int) -> bool:
        formula = self.formula
        self._enter(depth)

        if formula.is_formula_true():
            self._keep_witness()
            return True
        if formula.has_falsified_clause():
            return False

        m = formula.select_branch_clause()
        width = formula.clause_active_size(m)

        for i in range(width):
            self._check_cancelled()
            if self.abandon_event is not None and self.abandon_event.is_set():
                return False
            with formula.branch():
                formula.zero_prefix_of_unassigned_literals(m, i)
                self.stats["branches"] += 1
                ok = self._search(depth + 1)
            if ok:
                return True

        return False


@contextmanager
def _recursion_room(num_vars: int) -> Iterator[None]:
    """
    Raise the interpreter recursion limit for a search over num_vars variables.

    The limit is process-wide, so concurrent searches register their needs
    under a lock: the limit is the largest active need, and the original limit
    comes back only when the last search leaves.
    """
    global _base_recursion_limit
    needed = num_vars + _STACK_HEADROOM
    with _recursion_lock:
        if not _active_needs:
            _base_recursion_limit = sys.getrecursionlimit()
        _active_needs.append(needed)
        sys.setrecursionlimit(max([_base_recursion_limit, *_active_needs]))
    try:
        yield
    finally:
        with _recursion_lock:
            _active_needs.remove(needed)
            sys.setrecursionlimit(max([_base_recursion_limit, *_active_needs]))


def solve(formula: CNFFormula) -> bool:
    """
    Decide satisfiability of ``formula`` under its current assignment.

    The formula's table is left exactly as it was on entry.
    """
    return BranchingSearch(formula).run()


@register_solver("monien_speckenmeyer")
class MonienSpeckenmeyerSolver(SolverBase):
    """
    Exact Monien-Speckenmeyer branching solver behind the SolverBase interface.
    """

    def __init__(self, num_vars: int | None = None, **kwargs):
        """
        Initialize the solver.

        Args:
            num_vars: Number of variables (defaults to the largest variable seen)
            **kwargs: Additional configuration parameters
        """
        config = get_config()

        self.num_vars = num_vars
        self.parallel_workers = config.get(
            "solver.monien_speckenmeyer.parallel_workers", 1
        )
        self.record_witness = config.get(
            "solver.monien_speckenmeyer.record_witness", True
        )
        self.default_timeout = config.get("solver.timeout")

        self.configure(kwargs)

        self.clauses: list[list[int]] = []
        self.solution: list[int] | None = None
        self._interrupt = threading.Event()

        self.stats = {
            "nodes": 0,
            "branches": 0,
            "max_depth": 0,
            "runtime": 0.0,
            "total_clauses": 0,
            "solver_name": self.solver_name,
        }

    def add_clause(self, clause: list[int]) -> None:
        self.clauses.append(list(clause))
        self.stats["total_clauses"] = len(self.clauses)

    def add_clauses(self, clauses: list[list[int]]) -> None:
        for clause in clauses:
            self.add_clause(clause)

    def build_formula(self) -> CNFFormula:
        """Formula over the clauses added so far."""
        return CNFFormula(self.clauses, num_vars=self.num_vars)

    def solve(
        self, assumptions: list[int] | None = None, timeout: float | None = None
    ) -> SolverResult:
        """
        Decide the clauses added so far.

        Args:
            assumptions: Literals forced true before the search starts
            timeout: Optional timeout in seconds

        Returns:
            SolverResult with SATISFIABLE or UNSATISFIABLE, or TIMEOUT/ERROR
            when the search was cancelled
        """
        timeout = timeout if timeout is not None else self.default_timeout
        start_time = time.monotonic()
        self._interrupt.clear()
        self.solution = None
        self.stats.update({"nodes": 0, "branches": 0, "max_depth": 0})

        formula = self.build_formula()

        for lit in assumptions or []:
            if formula.value_of(lit) == Value.FALSE:
                logger.debug(f"Assumption {lit} contradicts an earlier assumption")
                return self._finish(
                    SolverStatus.UNSATISFIABLE, formula, None, start_time, {}
                )
            formula.assign(lit, True)

        search = BranchingSearch(
            formula,
            record_witness=True,
            deadline=start_time + timeout if timeout is not None else None,
            interrupt_event=self._interrupt,
        )

        try:
            if self.parallel_workers > 1:
                satisfiable = search.run_parallel(self.parallel_workers)
            else:
                satisfiable = search.run()
        except SolverTimeoutError as e:
            logger.info(f"Monien-Speckenmeyer search stopped: {e}")
            return self._finish(
                SolverStatus.TIMEOUT, formula, None, start_time, search.stats,
                error_message=f"Timeout reached ({timeout}s)",
            )
        except SolverInterruptedError as e:
            logger.info(f"Monien-Speckenmeyer search stopped: {e}")
            return self._finish(
                SolverStatus.ERROR, formula, None, start_time, search.stats,
                error_message=str(e),
            )

        status = SolverStatus.SATISFIABLE if satisfiable else SolverStatus.UNSATISFIABLE
        return self._finish(status, formula, search.witness, start_time, search.stats)

    def _finish(
        self,
        status: SolverStatus,
        formula: CNFFormula,
        witness: AssignmentTable | None,
        start_time: float,
        search_stats: dict[str, Any],
        error_message: str | None = None,
    ) -> SolverResult:
        runtime = time.monotonic() - start_time

        satisfied = 0
        if witness is not None:
            formula.restore_assignment(witness)
            satisfied = formula.satisfied_count()
            # variables the witness leaves open are reported false
            self.solution = [
                var if witness[var] == Value.TRUE else -var
                for var in range(1, formula.num_vars + 1)
            ]

        self.stats.update(search_stats)
        self.stats["runtime"] = runtime
        logger.debug(
            f"Monien-Speckenmeyer finished with {status.value} after "
            f"{self.stats['nodes']} nodes in {runtime:.4f}s"
        )

        return SolverResult(
            status=status,
            solution=self.solution if self.record_witness else None,
            runtime=runtime,
            satisfied_clauses=satisfied,
            total_clauses=len(formula.clauses),
            statistics=dict(self.stats),
            error_message=error_message,
        )

    def get_model(self) -> list[int] | None:
        if not self.record_witness:
            return None
        return self.solution

    def get_statistics(self) -> dict[str, Any]:
        return self.stats

    def interrupt(self) -> None:
        """
        Interrupt the solving process.
        """
        logger.debug("Interrupting Monien-Speckenmeyer solver")
        self._interrupt.set()

    def configure(self, config: dict[str, Any]) -> None:
        """
        Configure the solver with the given parameters.

        Raises:
            ConfigurationError: If parallel_workers is not a positive integer
        """
        for key, value in config.items():
            if key in ("num_vars", "parallel_workers", "record_witness", "default_timeout"):
                setattr(self, key, value)
                logger.debug(f"Set {key}={value} for Monien-Speckenmeyer solver")
            else:
                logger.warning(f"Unknown configuration parameter: {key}")

        if not isinstance(self.parallel_workers, int) or self.parallel_workers < 1:
            raise ConfigurationError(
                f"parallel_workers must be a positive integer, got {self.parallel_workers}"
            )
