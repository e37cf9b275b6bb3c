from __future__ import annotations

import os
import pprint
import traceback
from typing import Any, Callable, Iterable, Optional

from ..errors import ConfigurationError

ErrorCallback = Callable[[str], Any]

_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def caller_location(frames: Optional[Iterable[traceback.FrameSummary]] = None) -> str | None:
    """
    "<file> at line <N>" for the innermost frame outside the quicksql package.
    """
    stack = list(traceback.extract_stack() if frames is None else frames)
    for frame in reversed(stack):
        if not os.path.abspath(frame.filename).startswith(_PACKAGE_DIR + os.sep):
            return f"{frame.filename} at line {frame.lineno}"
    return None


def format_report(
    error: str,
    sql: str = "",
    bindings: Any = None,
    caller: str | None = None,
) -> str:
    sections = [("Error", error)]
    if sql:
        sections.append(("SQL Statement", sql))
    if bindings:
        sections.append(("Bind Parameters", pprint.pformat(bindings)))
    if caller:
        sections.append(("Backtrace", caller))

    msg = "SQL Error\n" + "-" * 50
    for key, val in sections:
        msg += f"\n\n{key}:\n{val}"
    return msg


class ErrorReporter:
    """
    Forwards formatted statement failures to a single optional callback.

    Disabled until a callback is set. Caller-location capture walks the
    current stack and is off unless capture_caller is set.
    """

    def __init__(
        self,
        callback: ErrorCallback | None = None,
        *,
        capture_caller: bool = False,
    ) -> None:
        self.capture_caller = capture_caller
        self.callback: ErrorCallback | None = None
        self.set_callback(callback)

    def set_callback(self, callback: ErrorCallback | None) -> None:
        """
        Register (or clear, with None) the error callback.

        Raises:
            ConfigurationError: If callback is not callable
        """
        if callback is not None and not callable(callback):
            raise ConfigurationError(
                f"error callback must be callable, got {type(callback).__name__}"
            )
        self.callback = callback

    @property
    def enabled(self) -> bool:
        return self.callback is not None

    def report(self, error: str, sql: str = "", bindings: Any = None) -> str | None:
        """
        Format and emit one failure. Returns the emitted message, or None when
        no callback is registered.
        """
        if self.callback is None:
            return None

        caller = caller_location() if self.capture_caller else None
        message = format_report(error, sql, bindings, caller)
        self.callback(message)
        return message
