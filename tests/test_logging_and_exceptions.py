"""
Unit tests for logging and error handling components.

Tests the StructuredLogger, LoggingManager and exception classes to ensure
they work as expected.
"""

import csv
import json
import logging
import os
import shutil
import tempfile
import unittest

import numpy as np

from branchsat.utils.exceptions import (
    ClauseIndexError,
    ExhaustedPrefixError,
    InvalidClauseError,
    InvalidLiteralError,
    NoActiveClauseError,
    SATBaseException,
    SolverInterruptedError,
    SolverTimeoutError,
    UninitializedStateError,
)
from branchsat.utils.logging_utils import (
    LoggingManager,
    NumpyJSONEncoder,
    StructuredLogger,
    create_logger,
)


class TestExceptions(unittest.TestCase):
    """Test cases for custom exception classes."""

    def test_hierarchy(self):
        """Every error is a SATBaseException; clause indexing is also an IndexError."""
        for cls in (
            ClauseIndexError,
            InvalidLiteralError,
            UninitializedStateError,
            ExhaustedPrefixError,
            NoActiveClauseError,
            SolverTimeoutError,
            SolverInterruptedError,
        ):
            with self.subTest(cls=cls.__name__):
                self.assertTrue(issubclass(cls, SATBaseException))
        self.assertTrue(issubclass(ClauseIndexError, IndexError))
        self.assertTrue(issubclass(InvalidLiteralError, InvalidClauseError))

    def test_clause_index_error(self):
        error = ClauseIndexError(index=7, num_clauses=3)
        self.assertEqual(error.index, 7)
        self.assertIn("clause 7", str(error))
        self.assertIn("3 clauses", str(error))

    def test_invalid_literal_error(self):
        error = InvalidLiteralError(literal=-9, num_vars=4)
        self.assertEqual(error.literal, -9)
        self.assertEqual(error.num_vars, 4)
        self.assertIn("-9", str(error))

    def test_invalid_clause_error(self):
        """Test InvalidClauseError class."""
        error = InvalidClauseError()
        self.assertEqual(str(error), "Invalid clause detected")

        error = InvalidClauseError(clause=[0, 1, 2])
        self.assertIn("[0, 1, 2]", str(error))
        self.assertEqual(error.clause, [0, 1, 2])

    def test_exhausted_prefix_error(self):
        error = ExhaustedPrefixError(clause_index=2, prefix=4, active_size=3)
        self.assertEqual(
            str(error), "Illegal prefix 4 in clause 2 with 3 unassigned literals"
        )
        self.assertEqual(str(ExhaustedPrefixError()), "Illegal prefix")

    def test_solver_timeout_error(self):
        """Test SolverTimeoutError class."""
        error = SolverTimeoutError()
        self.assertEqual(str(error), "Solver exceeded time limit")

        error = SolverTimeoutError("Custom timeout message", time_spent=10.5, nodes=42)
        self.assertEqual(error.time_spent, 10.5)
        error_str = str(error)
        self.assertIn("Custom timeout message", error_str)
        self.assertIn("time_spent=10.50s", error_str)
        self.assertIn("nodes=42", error_str)

    def test_default_messages(self):
        self.assertEqual(
            str(UninitializedStateError()), "Assignment table is not initialized"
        )
        self.assertEqual(str(SolverInterruptedError()), "Solving was interrupted")


class TestStructuredLogger(unittest.TestCase):
    """Test cases for StructuredLogger class."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Tear down test fixtures."""
        shutil.rmtree(self.test_dir)

    def test_logger_initialization(self):
        logger = StructuredLogger(output_dir=self.test_dir, run_name="test_run")
        self.assertEqual(logger.run_name, "test_run")
        self.assertEqual(logger.output_dir, self.test_dir)
        self.assertEqual(logger.format_type, "json")
        logger.close()

    def test_unknown_format(self):
        with self.assertRaises(ValueError):
            StructuredLogger(output_dir=self.test_dir, run_name="x", format_type="xml")

    def test_json_logging(self):
        """Test JSON format logging, including numpy values."""
        logger = StructuredLogger(
            output_dir=self.test_dir,
            run_name="json_test",
            format_type=StructuredLogger.FORMAT_JSON,
        )
        logger.log_solve_result(
            "php-4-3",
            "monien_speckenmeyer",
            "unsatisfiable",
            0.25,
            {"nodes": np.int64(17), "max_depth": 5},
        )
        logger.close()

        result_file = os.path.join(self.test_dir, "json_test_solve_result.jsonl")
        self.assertTrue(os.path.exists(result_file))

        with open(result_file) as f:
            data = json.loads(f.readline())

        self.assertEqual(data["instance"], "php-4-3")
        self.assertEqual(data["solver"], "monien_speckenmeyer")
        self.assertEqual(data["status"], "unsatisfiable")
        self.assertEqual(data["runtime"], 0.25)
        self.assertEqual(data["statistics"], {"nodes": 17, "max_depth": 5})

    def test_csv_logging(self):
        """CSV rows flatten the statistics into stat_ columns."""
        logger = StructuredLogger(
            output_dir=self.test_dir,
            run_name="csv_test",
            format_type=StructuredLogger.FORMAT_CSV,
        )
        logger.log_solve_result("a", "brute_force", "satisfiable", 0.5, {"search_space": 8})
        logger.log_solve_result("b", "brute_force", "unsatisfiable", 0.7, {"search_space": 16})
        logger.close()

        with open(os.path.join(self.test_dir, "csv_test_solve_result.csv")) as f:
            rows = list(csv.DictReader(f))

        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]["instance"], "a")
        self.assertEqual(rows[0]["stat_search_space"], "8")
        self.assertEqual(rows[1]["status"], "unsatisfiable")
        self.assertEqual(rows[1]["runtime"], "0.7")

    def test_log_exception(self):
        logger = create_logger("exception_test", output_dir=self.test_dir)
        logger.log_exception(
            "broken.cnf", "InvalidLiteralError", "Illegal literal 9", "Stack trace"
        )
        logger.close()

        with open(os.path.join(self.test_dir, "exception_test_exception.jsonl")) as f:
            data = json.loads(f.readline())

        self.assertEqual(data["instance"], "broken.cnf")
        self.assertEqual(data["exception_type"], "InvalidLiteralError")
        self.assertEqual(data["exception_message"], "Illegal literal 9")
        self.assertEqual(data["stack_trace"], "Stack trace")

    def test_finalize_writes_metadata(self):
        logger = create_logger("meta", output_dir=self.test_dir, write_metadata=True)
        logger.log_solve_result("a", "monien_speckenmeyer", "satisfiable", 0.1)
        path = logger.finalize()

        with open(path) as f:
            metadata = json.load(f)
        self.assertEqual(metadata["run_name"], "meta")
        self.assertEqual(metadata["record_counts"], {"solve_result": 1})
        self.assertIn("end_time", metadata)

    def test_numpy_encoder(self):
        payload = {"a": np.arange(3), "b": np.float32(0.5), "c": np.bool_(True)}
        self.assertEqual(
            json.loads(json.dumps(payload, cls=NumpyJSONEncoder)),
            {"a": [0, 1, 2], "b": 0.5, "c": True},
        )


class TestLoggingManager(unittest.TestCase):
    """Test cases for LoggingManager."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_file_and_structured_logging(self):
        manager = LoggingManager("run", output_dir=self.test_dir, logger_name="branchsat.test")
        manager.get_logger().debug("hello from the test")
        self.assertIsNotNone(manager.get_structured_logger())
        manager.close()

        with open(os.path.join(self.test_dir, "run_log.txt")) as f:
            self.assertIn("hello from the test", f.read())
        self.assertTrue(os.path.exists(os.path.join(self.test_dir, "run_metadata.json")))
        self.assertEqual(logging.getLogger("branchsat.test").handlers, [])

    def test_console_only(self):
        manager = LoggingManager("run", logger_name="branchsat.test_console")
        self.assertIsNone(manager.get_structured_logger())
        self.assertEqual(len(manager.get_logger().handlers), 1)
        manager.close()


if __name__ == "__main__":
    unittest.main()
