"""
SAT solver package with unified interface.
"""

from .base import SolverBase, SolverResult, SolverStatus
from .config import SolverConfig, get_config, load_config, reset_config
from .registry import SolverRegistry, register_solver

# Importing the implementations registers them
from .monien_speckenmeyer import BranchingSearch, MonienSpeckenmeyerSolver, solve
from .brute_force import BruteForceSolver, brute_force_satisfiable

__all__ = [
    "SolverBase",
    "SolverResult",
    "SolverStatus",
    "SolverRegistry",
    "register_solver",
    "get_config",
    "load_config",
    "reset_config",
    "SolverConfig",
    "BranchingSearch",
    "MonienSpeckenmeyerSolver",
    "BruteForceSolver",
    "brute_force_satisfiable",
    "solve",
]
