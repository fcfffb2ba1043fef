"""A scripted executor that records commands instead of running them."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field

from appservice.gitops import CommandError, Executor

__all__ = [
    "Execution",
    "ErrorStack",
    "OutputStack",
    "MockExecutor",
    "error_match",
]


@dataclass
class Execution:
    """One recorded command invocation."""

    base_dir: str
    command: str
    args: list[str] = field(default_factory=list)


@dataclass
class ErrorStack:
    """Errors handed out last-in, first-out; ``None`` means success."""

    errors: list[BaseException | None] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def push(self, error: BaseException | None) -> None:
        """Add an error to the top of the stack."""
        with self._lock:
            self.errors.append(error)

    def pop(self) -> BaseException | None:
        """Remove and return the top error, or None when the stack is empty."""
        with self._lock:
            return self.errors.pop() if self.errors else None


@dataclass
class OutputStack:
    """Command outputs handed out last-in, first-out."""

    outputs: list[bytes] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def pop(self) -> bytes:
        """Remove and return the top output, or empty bytes when the stack is empty."""
        with self._lock:
            return self.outputs.pop() if self.outputs else b""


class MockExecutor(Executor):
    """Records each command and answers with the next scripted output and error."""

    def __init__(self, *outputs: bytes) -> None:
        self.outputs = OutputStack(list(outputs))
        self.errors = ErrorStack()
        self.executed: list[Execution] = []

    def execute(self, base_dir: str, command: str, *args: str) -> bytes:
        self.executed.append(Execution(base_dir, command, list(args)))
        output = self.outputs.pop()
        error = self.errors.pop()
        if error is not None:
            raise CommandError(str(error), output) from error
        return output


def error_match(msg: str, error: BaseException | None) -> bool:
    """Return whether the error's message matches the regular expression ``msg``.

    No error matches only the empty pattern.
    """
    if error is None:
        return msg == ""
    return re.search(msg, str(error)) is not None