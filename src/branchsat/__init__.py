"""
branchsat: exact Monien-Speckenmeyer branching SAT solver.
"""

__version__ = "0.1.0"

from branchsat.formula import AssignmentTable, CNFFormula, Value
from branchsat.solvers import (
    MonienSpeckenmeyerSolver,
    SolverRegistry,
    SolverResult,
    SolverStatus,
    solve,
)

__all__ = [
    "AssignmentTable",
    "CNFFormula",
    "Value",
    "MonienSpeckenmeyerSolver",
    "SolverRegistry",
    "SolverResult",
    "SolverStatus",
    "solve",
]
