"""
Exception Logger for the FAQ assistant

Central error log shared by the matcher, the generative client and the HTTP
layer. Every entry carries a timestamp, the module that raised it and an
optional free-text context; exceptions also get their stack trace.

When no log file is configured, entries are printed to stdout so a bare
`uvicorn` run still shows failures.
"""

import os
import threading
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional


class ExceptionLogger:
    """
    Append-only error log used across the FAQ assistant.

    Attributes:
        log_file (str): Path to the current log file, or None for stdout
        lock (threading.Lock): Serializes writes from concurrent requests
    """

    def __init__(self):
        self.log_file = None
        self.lock = threading.Lock()

    def set_log_file(self, log_file_path: Optional[str]):
        """
        Route subsequent entries to a file.

        Args:
            log_file_path (str): Full path to the error log file. Passing
                None or an empty string switches back to stdout.
        """
        if not log_file_path:
            self.log_file = None
            return

        self.log_file = log_file_path
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            Path(log_dir).mkdir(parents=True, exist_ok=True)

    def log_exception(self, exception: Exception, module: str = "unknown",
                      context: Optional[str] = None):
        """
        Log an exception with its stack trace.

        Args:
            exception (Exception): The exception that occurred
            module (str): Name of the module where the exception occurred
            context (str, optional): What the caller was doing at the time
        """
        if not self.log_file:
            suffix = f" ({context})" if context else ""
            print(f"Exception in {module}: {exception}{suffix}")
            return

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        log_entry = f"\n[{timestamp}] [{module.upper()}] {exception}\n"
        if context:
            log_entry += f"Context: {context}\n"

        log_entry += "Stack Trace:\n"
        log_entry += "".join(traceback.format_exception(
            type(exception), exception, exception.__traceback__
        ))
        log_entry += "\n" + "=" * 80 + "\n"

        self._write(log_entry)

    def log_error(self, error_message: str, module: str = "unknown",
                  context: Optional[str] = None):
        """
        Log a message that has no exception object attached.

        Args:
            error_message (str): The error message to log
            module (str): Name of the module reporting the error
            context (str, optional): Additional context information
        """
        if not self.log_file:
            suffix = f" ({context})" if context else ""
            print(f"Error in {module}: {error_message}{suffix}")
            return

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        log_entry = f"[{timestamp}] [{module.upper()}] {error_message}"
        if context:
            log_entry += f" | Context: {context}"
        log_entry += "\n"

        self._write(log_entry)

    def _write(self, log_entry: str):
        with self.lock:
            try:
                with open(self.log_file, "a", encoding="utf-8") as f:
                    f.write(log_entry)
            except OSError as write_error:
                print(f"Failed to write to error log: {write_error}")
                print(f"Original error: {log_entry}")


# Global exception logger instance
exception_logger = ExceptionLogger()


def log_exception(exc: Exception, module: str = "unknown", context: Optional[str] = None):
    """Log an exception through the global logger."""
    exception_logger.log_exception(exc, module, context)


def log_error(message: str, module: str = "unknown", context: Optional[str] = None):
    """Log an error message through the global logger."""
    exception_logger.log_error(message, module, context)
