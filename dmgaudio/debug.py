"""Debug output and fatal assertion reporting."""

from __future__ import annotations

import inspect
import sys
from typing import TextIO

_MAX_MESSAGE = 255


class AssertionFailure(AssertionError):
    """An assertion checked with :func:`assert_that` did not hold."""

    def __init__(self, predicate: str, file: str, line: int, function: str) -> None:
        self.predicate = predicate
        self.file = file
        self.line = line
        self.function = function
        super().__init__(
            f'assertion "{predicate}" failed: file "{file}", '
            f"line {line}, function: {function}"
        )


def debug_print(message: str, stream: TextIO | None = None) -> str:
    """Write a message, cut to 255 characters, and flush the stream.

    Returns the text actually written.
    """
    out = sys.stdout if stream is None else stream
    text = message[:_MAX_MESSAGE]
    out.write(text)
    out.flush()
    return text


def assert_that(condition: object, predicate: str) -> None:
    """Report and raise :class:`AssertionFailure` if ``condition`` is false."""
    if condition:
        return
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    try:
        if caller is not None:
            file, line, function = (
                caller.f_code.co_filename,
                caller.f_lineno,
                caller.f_code.co_name,
            )
        else:
            file, line, function = "<unknown>", 0, "<unknown>"
    finally:
        del frame, caller
    failure = AssertionFailure(predicate, file, line, function)
    sys.stdout.write(f"{failure}\n")
    sys.stdout.flush()
    raise failure