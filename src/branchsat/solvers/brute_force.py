"""
Exhaustive reference solver.

Evaluates every total assignment with vectorized numpy operations, a chunk
of assignments at a time. Exponential in the number of variables by
construction; it exists to cross-check the branching solver on small inputs.
"""

import logging
import threading
import time
from typing import Any

import numpy as np

from branchsat.utils.cnf import compute_satisfied_clauses
from branchsat.utils.exceptions import (
    ConfigurationError,
    InvalidLiteralError,
    SolverInterruptedError,
    SolverTimeoutError,
)

from .base import SolverBase, SolverResult, SolverStatus
from .config import get_config
from .registry import register_solver

logger = logging.getLogger(__name__)

CHUNK_BITS = 16


def brute_force_satisfiable(
    clauses: list[list[int]],
    num_vars: int,
    max_vars: int = 24,
    deadline: float | None = None,
    interrupt_event: threading.Event | None = None,
) -> list[int] | None:
    """
    Find the first satisfying total assignment in binary counting order.

    Assignment number ``a`` sets variable ``v`` true iff bit ``v - 1`` of
    ``a`` is set.

    Args:
        clauses: List of clauses over variables 1..num_vars
        num_vars: Number of variables
        max_vars: Largest num_vars accepted
        deadline: time.monotonic() value after which the search gives up
        interrupt_event: Set by another thread to abort the search

    Returns:
        The model as a list of DIMACS literals, or None if unsatisfiable

    Raises:
        ConfigurationError: If num_vars exceeds max_vars
        InvalidLiteralError: If a literal is 0 or its variable exceeds num_vars
    """
    if num_vars > max_vars:
        raise ConfigurationError(
            f"Brute force refuses {num_vars} variables (limit {max_vars})"
        )
    for clause in clauses:
        for lit in clause:
            if lit == 0 or abs(lit) > num_vars:
                raise InvalidLiteralError(literal=lit, num_vars=num_vars)

    literal_arrays = [np.asarray(clause, dtype=np.int64) for clause in clauses]
    total = 1 << num_vars
    chunk = min(total, 1 << CHUNK_BITS)
    shifts = np.arange(num_vars, dtype=np.int64)

    for start in range(0, total, chunk):
        if interrupt_event is not None and interrupt_event.is_set():
            raise SolverInterruptedError()
        if deadline is not None and time.monotonic() > deadline:
            raise SolverTimeoutError(nodes=start)

        indices = np.arange(start, min(start + chunk, total), dtype=np.int64)
        # bits[r, v - 1] is the value of variable v in assignment start + r
        bits = ((indices[:, None] >> shifts) & 1).astype(bool)

        satisfied = np.ones(len(indices), dtype=bool)
        for lits in literal_arrays:
            columns = bits[:, np.abs(lits) - 1]
            satisfied &= np.where(lits > 0, columns, ~columns).any(axis=1)
            if not satisfied.any():
                break

        hits = np.flatnonzero(satisfied)
        if hits.size:
            row = bits[hits[0]]
            return [var if row[var - 1] else -var for var in range(1, num_vars + 1)]

    return None


@register_solver("brute_force")
class BruteForceSolver(SolverBase):
    """
    Truth-table solver used as a correctness oracle.
    """

    def __init__(self, num_vars: int | None = None, **kwargs):
        config = get_config()

        self.num_vars = num_vars
        self.max_vars = config.get("solver.brute_force.max_vars", 24)
        self.default_timeout = config.get("solver.timeout")

        self.configure(kwargs)

        self.clauses: list[list[int]] = []
        self.solution: list[int] | None = None
        self._interrupt = threading.Event()
        self.stats = {
            "search_space": 0,
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

    def solve(
        self, assumptions: list[int] | None = None, timeout: float | None = None
    ) -> SolverResult:
        """
        Enumerate all assignments of the clauses added so far.

        Assumptions are encoded as unit clauses.
        """
        timeout = timeout if timeout is not None else self.default_timeout
        start_time = time.monotonic()
        self._interrupt.clear()
        self.solution = None

        num_vars = self.num_vars
        if num_vars is None:
            num_vars = max(
                (abs(lit) for clause in self.clauses for lit in clause), default=0
            )
        clauses = self.clauses + [[lit] for lit in assumptions or []]
        self.stats["search_space"] = 1 << num_vars

        status = SolverStatus.UNSATISFIABLE
        error_message = None
        try:
            self.solution = brute_force_satisfiable(
                clauses,
                num_vars,
                max_vars=self.max_vars,
                deadline=start_time + timeout if timeout is not None else None,
                interrupt_event=self._interrupt,
            )
            if self.solution is not None:
                status = SolverStatus.SATISFIABLE
        except SolverTimeoutError:
            status = SolverStatus.TIMEOUT
            error_message = f"Timeout reached ({timeout}s)"
        except SolverInterruptedError as e:
            status = SolverStatus.ERROR
            error_message = str(e)

        runtime = time.monotonic() - start_time
        self.stats["runtime"] = runtime
        logger.debug(f"Brute force finished with {status.value} in {runtime:.4f}s")

        return SolverResult(
            status=status,
            solution=self.solution,
            runtime=runtime,
            satisfied_clauses=compute_satisfied_clauses(
                self.clauses, {abs(lit): lit > 0 for lit in self.solution or []}
            ),
            total_clauses=len(self.clauses),
            statistics=dict(self.stats),
            error_message=error_message,
        )

    def get_model(self) -> list[int] | None:
        return self.solution

    def get_statistics(self) -> dict[str, Any]:
        return self.stats

    def interrupt(self) -> None:
        logger.debug("Interrupting brute force solver")
        self._interrupt.set()

    def configure(self, config: dict[str, Any]) -> None:
        for key, value in config.items():
            if key in ("num_vars", "max_vars", "default_timeout"):
                setattr(self, key, value)
                logger.debug(f"Set {key}={value} for brute force solver")
            else:
                logger.warning(f"Unknown configuration parameter: {key}")
