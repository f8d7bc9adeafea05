"""
Utilities for the branchsat package.
"""

from branchsat.utils import cnf, exceptions, logging_utils
from branchsat.utils.cnf import (
    check_solution,
    compute_satisfied_clauses,
    formula_to_dimacs,
    load_cnf_file,
    parse_dimacs,
    save_cnf_file,
)

__all__ = [
    "load_cnf_file",
    "save_cnf_file",
    "parse_dimacs",
    "formula_to_dimacs",
    "check_solution",
    "compute_satisfied_clauses",
    "cnf",
    "exceptions",
    "logging_utils",
]
