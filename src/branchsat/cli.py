"""
branchsat command line: decide DIMACS CNF files and print the verdict.

Exit codes follow the SAT competition convention: 10 satisfiable,
20 unsatisfiable, 0 undecided (timeout/interrupt), 1 on error.
"""
import argparse
import logging
import os
import sys
import traceback

import yaml

from branchsat.formula import CNFFormula
from branchsat.solvers import SolverRegistry, load_config
from branchsat.utils.exceptions import SATBaseException
from branchsat.utils.logging_utils import LoggingManager

EXIT_SAT = 10
EXIT_UNSAT = 20
EXIT_UNKNOWN = 0
EXIT_ERROR = 1

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="branchsat", description="Exact Monien-Speckenmeyer SAT solver"
    )
    subparsers = parser.add_subparsers(dest="command")

    solve_parser = subparsers.add_parser("solve", help="decide a DIMACS CNF file")
    solve_parser.add_argument("file", type=str, help="path to a .cnf file")
    solve_parser.add_argument("--solver", type=str, default=None)
    solve_parser.add_argument("--timeout", type=float, default=None)
    solve_parser.add_argument(
        "--workers", type=int, default=None, help="parallel root branches"
    )
    solve_parser.add_argument("--config", type=str, default=None)
    solve_parser.add_argument("--model", action="store_true", help="print the model")
    solve_parser.add_argument("--stats", action="store_true", help="print statistics")
    solve_parser.add_argument("--log-dir", type=str, default=None)
    solve_parser.add_argument("--debug", action="store_true")

    subparsers.add_parser("list", help="list registered solvers")
    return parser


def _solve(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
    except SATBaseException as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR
    run_name = os.path.splitext(os.path.basename(args.file))[0]

    if args.debug:
        console_level = logging.DEBUG
    else:
        console_level = logging.getLevelName(config.get("logging.level", "INFO"))
    manager = LoggingManager(
        run_name,
        output_dir=args.log_dir,
        console_level=console_level,
        log_format=config.get("logging.format"),
    )
    structured = manager.get_structured_logger()

    try:
        formula = CNFFormula.from_file(args.file)
        solver_name = args.solver or config.get("solver.name")
        options = {"num_vars": formula.num_vars}
        if args.workers is not None:
            options["parallel_workers"] = args.workers
        solver = SolverRegistry.create(solver_name, **options)
        solver.add_clauses([list(clause) for clause in formula.clauses])

        logger.info(f"Solving {args.file} with {solver_name}: {formula!r}")
        result = solver.solve(timeout=args.timeout)
        logger.info(f"{run_name}: {result}")

        if structured is not None:
            structured.log_solve_result(
                run_name,
                solver_name,
                result.status.value,
                result.runtime,
                result.statistics,
            )
    except (OSError, ValueError, SATBaseException) as e:
        logger.error(f"Failed on {args.file}: {e}")
        if structured is not None:
            structured.log_exception(
                run_name, type(e).__name__, str(e), traceback.format_exc()
            )
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        manager.close()

    if result.is_sat:
        print("SATISFIABLE")
        if args.model and result.solution is not None:
            print("v " + " ".join(str(lit) for lit in [*result.solution, 0]))
        code = EXIT_SAT
    elif result.is_unsat:
        print("UNSATISFIABLE")
        code = EXIT_UNSAT
    else:
        print("UNKNOWN")
        code = EXIT_UNKNOWN

    if args.stats:
        print(yaml.safe_dump({"statistics": result.statistics}, sort_keys=True), end="")

    return code


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "solve":
        return _solve(args)
    elif args.command == "list":
        for name in SolverRegistry.list_solvers():
            print(name)
        return 0
    else:
        parser.print_help()
        return EXIT_ERROR


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
