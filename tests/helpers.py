"""
Formula generators shared by the test modules.
"""

import itertools
import random

from branchsat.formula import CNFFormula


def random_clauses(
    rng: random.Random, num_vars: int, num_clauses: int, max_width: int
) -> list[list[int]]:
    """Random clauses with distinct variables per clause and random signs."""
    clauses = []
    for _ in range(num_clauses):
        width = rng.randint(1, min(max_width, num_vars))
        variables = rng.sample(range(1, num_vars + 1), width)
        clauses.append([v if rng.random() < 0.5 else -v for v in variables])
    return clauses


def pigeonhole_clauses(pigeons: int, holes: int) -> list[list[int]]:
    """Clauses stating that each pigeon sits in a hole and no hole is shared."""

    def var(p, h):
        return p * holes + h + 1

    clauses = [[var(p, h) for h in range(holes)] for p in range(pigeons)]
    for h in range(holes):
        for p, q in itertools.combinations(range(pigeons), 2):
            clauses.append([-var(p, h), -var(q, h)])
    return clauses


def satisfiable_by_enumeration(formula: CNFFormula) -> bool:
    """Try all 2^n total assignments through the formula's own predicates."""
    with formula.branch():
        for values in itertools.product((False, True), repeat=formula.num_vars):
            for var, value in enumerate(values, start=1):
                formula.assign(var, value)
            if formula.is_formula_true():
                return True
    return False
