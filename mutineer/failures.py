"""
Mutineer Failures
=================
Materialises one failure behaviour per triggering call.

    ERROR    -> return an error value (default CHAOS_ERROR)
    NIL      -> return None
    RAISE    -> raise ChaosError or a chosen exception
    EXIT     -> raise ChaosExit (ChaosTaskExit on the async path)
    DELAY    -> sleep, then return the operation's own result
    TIMEOUT  -> sleep, then raise as RAISE does
"""

import asyncio
import copy
import logging
import random
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .config import FailureKind
from .errors import (
    DEFAULT_MESSAGE,
    ChaosError,
    ChaosExit,
    ChaosTaskExit,
    InvalidDelay,
    InvalidOptions,
)
from .options import DelayRange, InvocationOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")

CHAOS_REASON = "mutineer_chaos"
CHAOS_ERROR = ("error", CHAOS_REASON)

# Window used when a DELAY/TIMEOUT has no explicit delay
DEFAULT_DELAY_RANGE = DelayRange(1000, 5000)


def select(value: Any, default: Any = None) -> Any:
    """Return ``value``, a random element when it is a list, or ``default`` when None."""
    if value is None:
        return default
    if isinstance(value, list):
        return random.choice(value)
    return value


def resolve_delay(spec: Any = None) -> int:
    """
    Turn a delay spec into milliseconds.

    Args:
        spec: None (random value in DEFAULT_DELAY_RANGE), an int, a
            DelayRange (inclusive) or a range.

    Returns:
        Non-negative delay in milliseconds
    """
    if spec is None:
        spec = DEFAULT_DELAY_RANGE

    if isinstance(spec, DelayRange):
        delay = random.randint(spec.low, spec.high)
    elif isinstance(spec, range):
        if len(spec) == 0:
            raise InvalidDelay(spec, "delay range must not be empty")
        delay = random.choice(spec)
    elif isinstance(spec, int) and not isinstance(spec, bool):
        delay = spec
    else:
        raise InvalidDelay(spec)

    if delay < 0:
        raise InvalidDelay(delay)
    return delay


def trigger_failure(
    kind: FailureKind,
    func: Callable[[], T],
    opts: Optional[InvocationOptions] = None,
) -> Any:
    """
    Execute exactly one failure behaviour.

    Args:
        kind: Failure to materialise
        func: The wrapped zero-argument operation (only DELAY runs it)
        opts: Per-call options

    Raises:
        UnknownFailureKind: if ``kind`` is not a FailureKind
    """
    kind = FailureKind.parse(kind)
    opts = opts or InvocationOptions()

    if kind is FailureKind.ERROR:
        return select(opts.errors, CHAOS_ERROR)

    elif kind is FailureKind.NIL:
        return None

    elif kind is FailureKind.RAISE:
        raise _build_exception(opts)

    elif kind is FailureKind.EXIT:
        raise ChaosExit(select(opts.exit_errors, CHAOS_REASON))

    elif kind is FailureKind.DELAY:
        _sleep(resolve_delay(opts.delay), opts)
        return func()

    elif kind is FailureKind.TIMEOUT:
        _sleep(resolve_delay(opts.delay), opts)
        raise _build_exception(opts)


async def trigger_failure_async(
    kind: FailureKind,
    func: Callable[[], Awaitable[T]],
    opts: Optional[InvocationOptions] = None,
) -> Any:
    """Async twin of trigger_failure; waits with asyncio.sleep."""
    kind = FailureKind.parse(kind)
    opts = opts or InvocationOptions()

    if kind is FailureKind.DELAY:
        await asyncio.sleep(resolve_delay(opts.delay) / 1000)
        return await func()

    if kind is FailureKind.TIMEOUT:
        await asyncio.sleep(resolve_delay(opts.delay) / 1000)
        raise _build_exception(opts)

    # Cancels the current task only
    if kind is FailureKind.EXIT:
        raise ChaosTaskExit(select(opts.exit_errors, CHAOS_REASON))

    # Remaining kinds never touch func
    return trigger_failure(kind, func, opts)


def _sleep(delay_ms: int, opts: InvocationOptions) -> None:
    logger.debug("Delaying %s.%s by %d ms", opts.module, opts.function, delay_ms)
    time.sleep(delay_ms / 1000)


def _build_exception(opts: InvocationOptions) -> BaseException:
    message = opts.message or DEFAULT_MESSAGE
    chosen = select(opts.raised_errors)

    if chosen is None:
        return ChaosError(message, function=opts.function, module=opts.module)

    if isinstance(chosen, type) and issubclass(chosen, ChaosError):
        return chosen(message, function=opts.function, module=opts.module)

    if isinstance(chosen, type) and issubclass(chosen, BaseException):
        return chosen(message)

    if isinstance(chosen, BaseException):
        return copy.copy(chosen).with_traceback(None)

    raise InvalidOptions(f"raised error must be an exception class or instance, got {chosen!r}")
