"""
Structured logging utilities for SAT solving runs.

This module provides a StructuredLogger that records solver events as JSON
Lines or CSV files, a NumpyJSONEncoder for serializing numpy values, and a
LoggingManager that wires Python's logging system up alongside it.
"""

import csv
import json
import logging
import os
import time
from datetime import datetime
from typing import Any

import numpy as np


class NumpyJSONEncoder(json.JSONEncoder):
    """JSON encoder that can handle NumPy arrays and scalars."""

    def default(self, obj):
        """Convert numpy objects to standard Python types."""
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.bool_):
            return bool(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


class StructuredLogger:
    """
    A logger for structured solver events.

    Output is JSON Lines or CSV, with one file per event type.
    """

    FORMAT_JSON = "json"
    FORMAT_CSV = "csv"

    def __init__(
        self,
        output_dir: str,
        run_name: str,
        format_type: str = "json",
        write_metadata: bool = False,
    ):
        """
        Initialize the structured logger.

        Args:
            output_dir: Directory to save log files in
            run_name: Name of the run (used in filenames)
            format_type: Format to save logs in ("json" or "csv")
            write_metadata: Whether finalize() writes a metadata summary file
        """
        if format_type not in (self.FORMAT_JSON, self.FORMAT_CSV):
            raise ValueError(f"Unsupported log format: {format_type}")

        self.output_dir = output_dir
        self.run_name = run_name
        self.format_type = format_type
        self.write_metadata = write_metadata

        os.makedirs(output_dir, exist_ok=True)

        self.files = {}
        self.write_counts = {}

        self.metadata = {
            "run_name": run_name,
            "start_time": datetime.now().isoformat(),
            "log_files": {},
        }

    def _get_file(self, event_type: str) -> tuple:
        """
        Get the file handle for a given event type.

        Returns:
            Tuple of (file_handle, is_new)
        """
        if event_type not in self.files:
            ext = ".jsonl" if self.format_type == self.FORMAT_JSON else ".csv"
            filepath = os.path.join(self.output_dir, f"{self.run_name}_{event_type}{ext}")

            self.metadata["log_files"][event_type] = filepath

            file = open(
                filepath,
                "w",
                newline="" if self.format_type == self.FORMAT_CSV else None,
            )
            self.files[event_type] = file
            self.write_counts[event_type] = 0
            return file, True

        return self.files[event_type], False

    def _write_event(self, event_type: str, data: dict[str, Any]):
        file, is_new = self._get_file(event_type)

        if self.format_type == self.FORMAT_JSON:
            file.write(json.dumps(data, cls=NumpyJSONEncoder) + "\n")
        else:
            writer = csv.DictWriter(file, fieldnames=list(data.keys()))
            if is_new:
                writer.writeheader()
            writer.writerow(data)
        file.flush()

        self.write_counts[event_type] += 1

    def log_solve_result(
        self,
        instance: str,
        solver_name: str,
        status: str,
        runtime: float,
        statistics: dict[str, Any] | None = None,
    ):
        """
        Log the outcome of one solver run.

        Args:
            instance: Name of the solved instance (file name or label)
            solver_name: Registry name of the solver
            status: Result status value
            runtime: Wall-clock time in seconds
            statistics: Solver statistics
        """
        data = {
            "instance": instance,
            "solver": solver_name,
            "status": status,
            "runtime": runtime,
            "timestamp": time.time(),
        }
        # CSV rows stay flat
        if self.format_type == self.FORMAT_JSON:
            data["statistics"] = statistics or {}
        else:
            for key, value in (statistics or {}).items():
                data[f"stat_{key}"] = value
        self._write_event("solve_result", data)

    def log_exception(
        self,
        instance: str,
        exception_type: str,
        exception_message: str,
        stack_trace: str,
    ):
        """
        Log an exception raised while loading or solving an instance.
        """
        data = {
            "instance": instance,
            "exception_type": exception_type,
            "exception_message": exception_message,
            "stack_trace": stack_trace,
            "timestamp": time.time(),
        }
        self._write_event("exception", data)

    def close(self):
        """Close all open file handles."""
        for file in self.files.values():
            file.close()
        self.files = {}

    def finalize(self) -> str:
        """
        Close the log files and write the metadata summary if enabled.

        Returns:
            Path to metadata file if enabled, empty string otherwise
        """
        self.close()

        if self.write_metadata:
            self.metadata["end_time"] = datetime.now().isoformat()
            self.metadata["record_counts"] = self.write_counts

            metadata_path = os.path.join(
                self.output_dir, f"{self.run_name}_metadata.json"
            )
            with open(metadata_path, "w") as f:
                json.dump(self.metadata, f, indent=2)

            return metadata_path

        return ""


def create_logger(
    run_name: str,
    output_dir: str = "logs",
    format_type: str = "json",
    write_metadata: bool = False,
) -> StructuredLogger:
    """
    Create a structured logger with default settings.
    """
    return StructuredLogger(
        output_dir=output_dir,
        run_name=run_name,
        format_type=format_type,
        write_metadata=write_metadata,
    )


class LoggingManager:
    """
    Manager for configuring Python's built-in logging system alongside structured logging.

    Handlers are attached to the ``branchsat`` package logger so every module
    logger (``logging.getLogger(__name__)``) inherits them.
    """

    def __init__(
        self,
        run_name: str,
        output_dir: str | None = None,
        console_level: int = logging.INFO,
        file_level: int = logging.DEBUG,
        log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        logger_name: str = "branchsat",
    ):
        """
        Initialize the logging manager.

        Args:
            run_name: Name of the run
            output_dir: Directory for log files; console only if None
            console_level: Logging level for console output
            file_level: Logging level for file output
            log_format: Format string for both handlers
            logger_name: Logger to attach handlers to
        """
        self.run_name = run_name
        self.output_dir = output_dir

        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(
            min(console_level, file_level) if output_dir else console_level
        )

        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        formatter = logging.Formatter(log_format)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level)
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        self.structured_logger = None
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

            file_handler = logging.FileHandler(
                os.path.join(output_dir, f"{run_name}_log.txt")
            )
            file_handler.setLevel(file_level)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

            self.structured_logger = create_logger(
                run_name=run_name,
                output_dir=output_dir,
                format_type="json",
                write_metadata=True,
            )

    def get_logger(self) -> logging.Logger:
        """Get the Python logger."""
        return self.logger

    def get_structured_logger(self) -> StructuredLogger | None:
        """Get the structured event logger, if a log directory was given."""
        return self.structured_logger

    def close(self):
        """Close all loggers."""
        if self.structured_logger is not None:
            self.structured_logger.finalize()

        for handler in self.logger.handlers[:]:
            handler.close()
            self.logger.removeHandler(handler)
