"""
Mutineer Injection Gateway
==========================
Single entry point that decides whether a call fails.

Usage:
    from mutineer import maybe_inject

    result = maybe_inject(lambda: fetch_user(42), failure_rate=0.2,
                          failure_types=["error", "timeout"], delay=(50, 200))

When injection is globally disabled the operation runs untouched.
"""

import logging
import random
from typing import Any, Awaitable, Callable, Mapping, Optional, Tuple, TypeVar, Union

from .config import ConfigStore, FailureKind, FailureTypes, MutineerConfig, default_store
from .errors import InvalidFailureRate
from .failures import trigger_failure, trigger_failure_async
from .options import InvocationOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")

OptionsLike = Union[InvocationOptions, Mapping[str, Any], None]


def should_fail(rate: float) -> bool:
    """
    Bernoulli trial: True with probability ``rate``.

    Raises:
        InvalidFailureRate: for non-numbers or values outside [0, 1]
    """
    if isinstance(rate, bool) or not isinstance(rate, (int, float)):
        raise InvalidFailureRate(rate)
    if not 0.0 <= rate <= 1.0:
        raise InvalidFailureRate(rate)
    return random.random() < rate


def build_options(options: OptionsLike = None, overrides: Optional[Mapping[str, Any]] = None) -> InvocationOptions:
    """Accept an InvocationOptions, a mapping, or keyword overrides (not both)."""
    if options is not None and overrides:
        raise TypeError("pass either an options object or keyword overrides, not both")
    if isinstance(options, InvocationOptions):
        return options
    if options is not None:
        return InvocationOptions.model_validate(dict(options))
    return InvocationOptions.model_validate(dict(overrides or {}))


def pick_kind(types: FailureTypes) -> FailureKind:
    if isinstance(types, tuple):
        return random.choice(types)
    return types


class Mutineer:
    """
    Injection gateway bound to a ConfigStore.

    Each call reads one config snapshot, so an administrative reload
    during the call cannot mix old and new defaults.
    """

    def __init__(self, store: Optional[ConfigStore] = None) -> None:
        self.store = store if store is not None else default_store

    @property
    def enabled(self) -> bool:
        return self.store.enabled

    def decide(self, config: MutineerConfig, opts: InvocationOptions) -> Tuple[float, FailureKind]:
        """Resolve the rate and the single failure kind for this call."""
        rate = opts.failure_rate if opts.failure_rate is not None else config.default_failure_rate
        types = opts.failure_types if opts.failure_types is not None else config.default_failure_types
        return rate, pick_kind(types)

    def maybe_inject(self, func: Callable[[], T], options: OptionsLike = None, **overrides) -> Any:
        """
        Run ``func`` or replace it with a failure.

        Args:
            func: Zero-argument operation
            options: InvocationOptions or mapping of option names
            **overrides: Option names as keywords (alternative to ``options``)

        Returns:
            The operation's result, or the failure outcome (ERROR/NIL)
        """
        config = self.store.snapshot()
        if not config.enabled:
            return func()

        opts = build_options(options, overrides)
        rate, kind = self.decide(config, opts)
        if not should_fail(rate):
            return func()

        logger.debug("Mutiny: %s in %s.%s (rate=%s)", kind.value, opts.module, opts.function, rate)
        return trigger_failure(kind, func, opts)

    async def maybe_inject_async(
        self, func: Callable[[], Awaitable[T]], options: OptionsLike = None, **overrides
    ) -> Any:
        """Coroutine variant of maybe_inject; ``func`` returns an awaitable."""
        config = self.store.snapshot()
        if not config.enabled:
            return await func()

        opts = build_options(options, overrides)
        rate, kind = self.decide(config, opts)
        if not should_fail(rate):
            return await func()

        logger.debug("Mutiny: %s in %s.%s (rate=%s)", kind.value, opts.module, opts.function, rate)
        return await trigger_failure_async(kind, func, opts)


default_mutineer = Mutineer(default_store)


def maybe_inject(func: Callable[[], T], options: OptionsLike = None, **overrides) -> Any:
    """maybe_inject on the process-wide default gateway."""
    return default_mutineer.maybe_inject(func, options, **overrides)


async def maybe_inject_async(func: Callable[[], Awaitable[T]], options: OptionsLike = None, **overrides) -> Any:
    return await default_mutineer.maybe_inject_async(func, options, **overrides)
