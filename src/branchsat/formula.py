"""
CNF formula model with a mutable partial assignment.

A CNFFormula owns an immutable tuple of clauses and one live AssignmentTable.
All clause-state queries are computed from the clauses and the current table;
the table is the only thing that changes during a search, and it is saved and
restored around each branch through snapshot_assignment/restore_assignment
(or the branch() context manager).
"""

import logging
import numbers
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from enum import IntEnum
from typing import Any

from branchsat.utils.cnf import load_cnf_file, parse_dimacs
from branchsat.utils.exceptions import (
    ClauseIndexError,
    ExhaustedPrefixError,
    InvalidLiteralError,
    NoActiveClauseError,
    UninitializedStateError,
)

logger = logging.getLogger(__name__)

Clause = tuple[int, ...]


class Value(IntEnum):
    """Value of a variable in a partial assignment."""

    UNASSIGNED = -1
    FALSE = 0
    TRUE = 1


class AssignmentTable:
    """
    Partial assignment over variables 1..n.

    Slot 0 is reserved so the table always has exactly n + 1 entries and can
    be indexed by variable directly.
    """

    __slots__ = ("_values",)

    def __init__(self, num_vars: int, values: Iterable[Value] | None = None):
        if values is None:
            self._values = [Value.UNASSIGNED] * (num_vars + 1)
        else:
            self._values = list(values)
            if len(self._values) != num_vars + 1:
                raise ValueError(
                    f"Assignment table for {num_vars} variables needs "
                    f"{num_vars + 1} slots, got {len(self._values)}"
                )

    @property
    def num_vars(self) -> int:
        return len(self._values) - 1

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, var: int) -> Value:
        return self._values[var]

    def __setitem__(self, var: int, value: Value) -> None:
        self._values[var] = Value(value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AssignmentTable):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"AssignmentTable({self.to_literals()!r}, num_vars={self.num_vars})"

    def copy(self) -> "AssignmentTable":
        """Return an independent structural copy."""
        return AssignmentTable(self.num_vars, self._values)

    def unassigned_count(self) -> int:
        """Number of variables in 1..n that are still unassigned."""
        return sum(1 for v in self._values[1:] if v == Value.UNASSIGNED)

    def to_literals(self) -> list[int]:
        """Assigned variables as DIMACS literals, in variable order."""
        return [
            var if value == Value.TRUE else -var
            for var, value in enumerate(self._values)
            if var > 0 and value != Value.UNASSIGNED
        ]

    def to_dict(self) -> dict[int, bool]:
        """Assigned variables as a variable -> bool mapping."""
        return {
            var: value == Value.TRUE
            for var, value in enumerate(self._values)
            if var > 0 and value != Value.UNASSIGNED
        }


class CNFFormula:
    """
    An n-variable, m-clause k-CNF formula together with its live assignment.

    Args:
        clauses: Iterable of clauses, each an iterable of nonzero int literals
        num_vars: Number of variables n (computed from the clauses if omitted)
        num_clauses: Declared clause count m, kept for reporting
        width: Declared clause width k, kept for reporting
        initialize: Whether to create the all-unassigned table immediately
    """

    def __init__(
        self,
        clauses: Iterable[Iterable[int]],
        num_vars: int | None = None,
        num_clauses: int | None = None,
        width: int | None = None,
        initialize: bool = True,
    ):
        normalized = [_dedupe(clause) for clause in clauses]

        if num_vars is None:
            num_vars = max((abs(lit) for c in normalized for lit in c), default=0)
        self.num_vars = num_vars

        for clause in normalized:
            for lit in clause:
                self._check_literal(lit)

        self.clauses: tuple[Clause, ...] = tuple(normalized)
        self.num_clauses = len(self.clauses) if num_clauses is None else num_clauses
        self.width = (
            max((len(c) for c in self.clauses), default=0) if width is None else width
        )

        self.table: AssignmentTable | None = None
        if initialize:
            self.init_assignment()

    @classmethod
    def from_dimacs(cls, source: Any, **kwargs) -> "CNFFormula":
        """Build a formula from DIMACS text or a text stream."""
        clauses, metadata = parse_dimacs(source)
        return cls(
            clauses,
            num_vars=metadata["num_variables"],
            num_clauses=metadata["num_clauses"],
            **kwargs,
        )

    @classmethod
    def from_file(cls, file_path: str, **kwargs) -> "CNFFormula":
        """Build a formula from a DIMACS file."""
        clauses, metadata = load_cnf_file(file_path)
        logger.debug(
            f"Loaded {file_path}: {metadata['num_variables']} variables, "
            f"{metadata['num_clauses']} clauses"
        )
        return cls(
            clauses,
            num_vars=metadata["num_variables"],
            num_clauses=metadata["num_clauses"],
            **kwargs,
        )

    def __len__(self) -> int:
        return len(self.clauses)

    def __repr__(self) -> str:
        return (
            f"CNFFormula(n={self.num_vars}, m={self.num_clauses}, k={self.width}, "
            f"clauses={len(self.clauses)})"
        )

    # -- assignment table -------------------------------------------------

    def init_assignment(self) -> None:
        """Create a fresh table with every variable unassigned."""
        self.table = AssignmentTable(self.num_vars)

    def _require_table(self) -> AssignmentTable:
        if self.table is None:
            raise UninitializedStateError()
        return self.table

    def _check_literal(self, literal: int) -> None:
        if (
            isinstance(literal, bool)
            or not isinstance(literal, numbers.Integral)
            or literal == 0
            or abs(literal) > self.num_vars
        ):
            raise InvalidLiteralError(literal=literal, num_vars=self.num_vars)

    def _check_clause_index(self, m: int) -> Clause:
        if not 0 <= m < len(self.clauses):
            raise ClauseIndexError(index=m, num_clauses=len(self.clauses))
        return self.clauses[m]

    def value_of(self, literal: int) -> Value:
        """
        Value of a literal (not just its variable) under the live table.

        Raises:
            InvalidLiteralError: If the variable is outside 1..n
            UninitializedStateError: If no assignment table exists
        """
        self._check_literal(literal)
        return self._literal_value(self._require_table(), literal)

    @staticmethod
    def _literal_value(table: AssignmentTable, literal: int) -> Value:
        value = table[abs(literal)]
        if value == Value.UNASSIGNED or literal > 0:
            return value
        return Value.TRUE if value == Value.FALSE else Value.FALSE

    def assign(self, literal: int, value: bool | Value) -> None:
        """
        Set the variable of a literal so that the literal takes ``value``.

        For a negative literal the value is negated before it is stored.
        Passing Value.UNASSIGNED clears the variable.

        Raises:
            InvalidLiteralError: If the variable is outside 1..n
            UninitializedStateError: If no assignment table exists
        """
        self._check_literal(literal)
        table = self._require_table()
        if isinstance(value, Value) and value == Value.UNASSIGNED:
            table[abs(literal)] = Value.UNASSIGNED
            return
        truth = bool(value)
        if literal < 0:
            truth = not truth
        table[abs(literal)] = Value.TRUE if truth else Value.FALSE

    def snapshot_assignment(self) -> AssignmentTable:
        """Return an independent copy of the live table."""
        return self._require_table().copy()

    def restore_assignment(self, snapshot: AssignmentTable) -> None:
        """
        Replace the live table with ``snapshot``.

        Raises:
            UninitializedStateError: If ``snapshot`` is None
            ValueError: If the snapshot was taken over a different variable count
        """
        if snapshot is None:
            raise UninitializedStateError("Cannot restore a missing assignment table")
        if snapshot.num_vars != self.num_vars:
            raise ValueError(
                f"Snapshot covers {snapshot.num_vars} variables, formula has {self.num_vars}"
            )
        self.table = snapshot

    @contextmanager
    def branch(self) -> Iterator[AssignmentTable]:
        """
        Scope a tentative set of assignments.

        The table is snapshotted on entry and restored on every exit path,
        so the caller sees the table it had before entering.
        """
        snapshot = self.snapshot_assignment()
        try:
            yield snapshot
        finally:
            self.restore_assignment(snapshot)

    def fork(self) -> "CNFFormula":
        """Return a formula sharing these clauses with a private copy of the table."""
        forked = CNFFormula.__new__(CNFFormula)
        forked.num_vars = self.num_vars
        forked.clauses = self.clauses
        forked.num_clauses = self.num_clauses
        forked.width = self.width
        forked.table = None if self.table is None else self.table.copy()
        return forked

    # -- clause queries ---------------------------------------------------

    def is_clause_satisfied(self, m: int) -> bool:
        """True if some literal of clause ``m`` evaluates true."""
        clause = self._check_clause_index(m)
        table = self._require_table()
        return any(self._literal_value(table, lit) == Value.TRUE for lit in clause)

    def is_clause_falsified(self, m: int) -> bool:
        """True if every literal of clause ``m`` is assigned and none is true."""
        clause = self._check_clause_index(m)
        table = self._require_table()
        return all(self._literal_value(table, lit) == Value.FALSE for lit in clause)

    def is_clause_partial(self, m: int) -> bool:
        """True if clause ``m`` is neither satisfied nor falsified yet."""
        clause = self._check_clause_index(m)
        table = self._require_table()
        has_unassigned = False
        for lit in clause:
            value = self._literal_value(table, lit)
            if value == Value.TRUE:
                return False
            if value == Value.UNASSIGNED:
                has_unassigned = True
        return has_unassigned

    def unassigned_literals(self, m: int) -> list[int]:
        """Unassigned literals of clause ``m`` in listed order."""
        clause = self._check_clause_index(m)
        table = self._require_table()
        return [lit for lit in clause if table[abs(lit)] == Value.UNASSIGNED]

    def clause_active_size(self, m: int) -> int:
        """Number of unassigned literals of clause ``m``; 0 once it is decided."""
        if not self.is_clause_partial(m):
            return 0
        return len(self.unassigned_literals(m))

    def is_formula_true(self) -> bool:
        """True if every clause is satisfied."""
        self._require_table()
        return all(self.is_clause_satisfied(m) for m in range(len(self.clauses)))

    def has_falsified_clause(self) -> bool:
        """True if any clause is falsified."""
        self._require_table()
        return any(self.is_clause_falsified(m) for m in range(len(self.clauses)))

    def satisfied_count(self) -> int:
        return sum(1 for m in range(len(self.clauses)) if self.is_clause_satisfied(m))

    def select_branch_clause(self) -> int:
        """
        Index of a partial clause of minimum active size.

        Ties go to the lowest index.

        Raises:
            NoActiveClauseError: If no clause is partial
        """
        winner = None
        winner_size = 0
        for m in range(len(self.clauses)):
            size = self.clause_active_size(m)
            if size == 0:
                continue
            # strict comparison keeps the first clause of each size
            if winner is None or size < winner_size:
                winner, winner_size = m, size
        if winner is None:
            raise NoActiveClauseError()
        return winner

    def zero_prefix_of_unassigned_literals(self, m: int, i: int) -> None:
        """
        Force the first ``i`` unassigned literals of clause ``m`` false and the
        next one true.

        Raises:
            ExhaustedPrefixError: If the clause has ``i`` or fewer unassigned literals
        """
        free = self.unassigned_literals(m)
        if not 0 <= i < len(free):
            raise ExhaustedPrefixError(clause_index=m, prefix=i, active_size=len(free))
        for lit in free[:i]:
            self.assign(lit, False)
        self.assign(free[i], True)


def _dedupe(clause: Iterable[int]) -> Clause:
    """Drop repeated literals, keeping first occurrences in order."""
    seen = set()
    kept = []
    for lit in clause:
        # numpy integers become plain ints; anything else is left for _check_literal
        if isinstance(lit, numbers.Integral) and not isinstance(lit, bool):
            lit = int(lit)
        if lit not in seen:
            seen.add(lit)
            kept.append(lit)
    return tuple(kept)
