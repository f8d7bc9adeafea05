"""
Custom exception classes for the branchsat package.

This module defines specialized exceptions for the failure modes of the
formula model and the solvers. Every error here signals a broken invariant
or a cancelled run; satisfiable/unsatisfiable are never reported as errors.
"""


class SATBaseException(Exception):
    """Base exception class for all branchsat exceptions."""

    def __init__(self, message: str | None = None):
        self.message = message
        super().__init__(message)


class ClauseIndexError(SATBaseException, IndexError):
    """
    Raised when a clause index is outside the formula's clause range.

    Subclasses the builtin IndexError so callers can catch either.
    """

    def __init__(
        self,
        message: str = "Illegal clause access",
        index: int | None = None,
        num_clauses: int | None = None,
    ):
        self.index = index
        self.num_clauses = num_clauses
        if index is not None:
            message = f"{message}: clause {index} in formula with {num_clauses} clauses"
        super().__init__(message)


class InvalidClauseError(SATBaseException):
    """
    Raised when an invalid clause is detected.
    """

    def __init__(self, message: str = "Invalid clause detected", clause=None):
        self.clause = clause
        if clause is not None:
            message = f"{message}: {clause}"
        super().__init__(message)


class InvalidLiteralError(InvalidClauseError):
    """
    Raised when a literal's variable lies outside 1..n (or the literal is 0).
    """

    def __init__(
        self,
        message: str = "Illegal literal",
        literal: int | None = None,
        num_vars: int | None = None,
    ):
        self.literal = literal
        self.num_vars = num_vars
        if literal is not None:
            message = f"{message} {literal} for formula over {num_vars} variables"
        super().__init__(message)


class UninitializedStateError(SATBaseException):
    """
    Raised when the assignment table is used before it exists.
    """

    def __init__(self, message: str = "Assignment table is not initialized"):
        super().__init__(message)


class ExhaustedPrefixError(SATBaseException):
    """
    Raised when a zero prefix asks for more unassigned literals than a clause has.

    Attributes:
        clause_index: Index of the clause being split
        prefix: Requested prefix length
        active_size: Number of unassigned literals actually available
    """

    def __init__(
        self,
        message: str = "Illegal prefix",
        clause_index: int | None = None,
        prefix: int | None = None,
        active_size: int | None = None,
    ):
        self.clause_index = clause_index
        self.prefix = prefix
        self.active_size = active_size
        super().__init__(message)

    def __str__(self):
        if self.prefix is None:
            return self.message
        return (
            f"{self.message} {self.prefix} in clause {self.clause_index} "
            f"with {self.active_size} unassigned literals"
        )


class NoActiveClauseError(SATBaseException):
    """
    Raised when a branch clause is requested but no clause is undetermined.
    """

    def __init__(self, message: str = "Formula has no partial clause to branch on"):
        super().__init__(message)


class SolverTimeoutError(SATBaseException):
    """
    Raised when a solver exceeds its time budget.

    Attributes:
        time_spent: Time spent before timeout in seconds
        nodes: Number of search nodes visited before timeout
    """

    def __init__(
        self,
        message: str = "Solver exceeded time limit",
        time_spent: float | None = None,
        nodes: int | None = None,
    ):
        self.time_spent = time_spent
        self.nodes = nodes
        super().__init__(message)

    def __str__(self):
        details = []
        if self.time_spent is not None:
            details.append(f"time_spent={self.time_spent:.2f}s")
        if self.nodes is not None:
            details.append(f"nodes={self.nodes}")

        detail_str = ", ".join(details)
        return f"{self.message} ({detail_str})" if details else self.message


class SolverInterruptedError(SATBaseException):
    """
    Raised inside a search when the solver's interrupt flag has been set.
    """

    def __init__(self, message: str = "Solving was interrupted"):
        super().__init__(message)


class ConfigurationError(SATBaseException):
    """
    Raised when there's a problem with solver configuration.
    """
