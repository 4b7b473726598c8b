"""
Mutineer Errors
===============
Exceptions produced on purpose by chaos (ChaosError, ChaosExit) and
exceptions signalling genuine misuse (MutineerError and subclasses).
"""

import asyncio
from typing import Any, Optional


DEFAULT_MESSAGE = "Mutiny!"


class ChaosError(Exception):
    """Raised when Mutineer triggers a RAISE or TIMEOUT failure."""

    def __init__(
        self,
        message: str = DEFAULT_MESSAGE,
        function: Optional[str] = None,
        module: Optional[str] = None,
    ) -> None:
        self.message = message
        self.function = function
        self.module = module
        super().__init__(message)

    def __str__(self) -> str:
        return f"Mutiny triggered in {self.module}.{self.function}: {self.message}"


class ChaosExit(SystemExit):
    """
    Abrupt termination requested by an EXIT failure.

    Derives from SystemExit so that ``except Exception`` blocks let it
    through. Uncaught in a worker thread it ends that thread only.
    """

    def __init__(self, reason: Any = "mutineer_chaos") -> None:
        super().__init__(reason)
        self.reason = reason


class ChaosTaskExit(asyncio.CancelledError):
    """
    EXIT raised on the async gateway.

    A task whose coroutine raises CancelledError ends as cancelled while
    the event loop and sibling tasks keep running.
    """

    def __init__(self, reason: Any = "mutineer_chaos") -> None:
        super().__init__(reason)
        self.reason = reason


class MutineerError(Exception):
    """Base class for configuration and usage errors."""


class InvalidFailureRate(MutineerError, ValueError):
    def __init__(self, rate: Any) -> None:
        super().__init__(f"failure rate must be a number in [0, 1], got {rate!r}")
        self.rate = rate


class UnknownFailureKind(MutineerError, ValueError):
    def __init__(self, kind: Any) -> None:
        super().__init__(f"Unknown failure kind: {kind!r}")
        self.kind = kind


class InvalidDelay(MutineerError, ValueError):
    def __init__(self, delay: Any, reason: str = "delay must be a non-negative number of milliseconds") -> None:
        super().__init__(f"{reason}, got {delay!r}")
        self.delay = delay


class InvalidOptions(MutineerError, ValueError):
    """Malformed option value, e.g. an empty candidate list."""
