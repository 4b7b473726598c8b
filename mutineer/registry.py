"""
Mutineer Registry
=================
Marks existing functions for chaos without touching their call sites.

Usage:
    from mutineer import chaos

    @chaos
    def load_profile(user_id):
        ...

    @chaos(failure_rate=0.3, failure_types=["raise", "timeout"], delay=(100, 500))
    async def fetch_orders(user_id):
        ...

Options are validated once at registration. List-valued options are
still sampled on every triggering call.
"""

import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .injector import Mutineer, build_options, default_mutineer
from .options import InvocationOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WrappedFunction:
    """An original implementation paired with its resolved options."""

    original: Callable[..., Any]
    options: InvocationOptions
    mutineer: Mutineer

    @property
    def key(self) -> Tuple[str, str]:
        return (self.options.module, self.options.function)

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.original)

    def __call__(self, *args, **kwargs):
        return self.mutineer.maybe_inject(
            lambda: self.original(*args, **kwargs), self.options
        )

    async def call_async(self, *args, **kwargs):
        return await self.mutineer.maybe_inject_async(
            lambda: self.original(*args, **kwargs), self.options
        )


class ChaosRegistry:
    """Registry of functions marked for chaos, keyed by (module, qualname)."""

    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, str], WrappedFunction] = {}

    def register(
        self,
        func: Callable[..., Any],
        options: Optional[InvocationOptions] = None,
        mutineer: Optional[Mutineer] = None,
    ) -> WrappedFunction:
        """Capture ``func`` and its options; return the record."""
        options = (options or InvocationOptions()).with_identity(
            function=func.__qualname__, module=func.__module__
        )
        entry = WrappedFunction(
            original=func,
            options=options,
            mutineer=mutineer or default_mutineer,
        )
        self._entries[entry.key] = entry
        logger.debug("Registered %s.%s for chaos", options.module, options.function)
        return entry

    def unregister(self, module: str, function: str) -> None:
        self._entries.pop((module, function), None)

    def get(self, module: str, function: str) -> Optional[WrappedFunction]:
        return self._entries.get((module, function))

    def list_functions(self) -> List[Tuple[str, str]]:
        return sorted(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


default_registry = ChaosRegistry()


def wrap(
    func: Callable[..., Any],
    options: Optional[InvocationOptions] = None,
    *,
    mutineer: Optional[Mutineer] = None,
    registry: Optional[ChaosRegistry] = None,
    **overrides,
) -> Callable[..., Any]:
    """
    Wrap a function so each call goes through the injection gateway.

    Args:
        func: Function to wrap (sync or async)
        options: Pre-built InvocationOptions
        mutineer: Gateway to use (defaults to the process-wide one)
        registry: Registry to record the function in
        **overrides: Option names as keywords

    Returns:
        Wrapped function with the original available as ``__wrapped__``
    """
    registry = registry if registry is not None else default_registry
    entry = registry.register(func, build_options(options, overrides), mutineer)

    if entry.is_async:
        @functools.wraps(func)
        async def wrapped(*args, **kwargs):
            return await entry.call_async(*args, **kwargs)
    else:
        @functools.wraps(func)
        def wrapped(*args, **kwargs):
            return entry(*args, **kwargs)

    wrapped.__chaos__ = entry
    return wrapped


def chaos(func: Optional[Callable[..., Any]] = None, **overrides):
    """
    Decorator form of wrap; usable bare (``@chaos``) or with options.

    Accepts the same keywords as wrap, including ``mutineer`` and ``registry``.
    """
    if func is not None:
        return wrap(func, **overrides)

    def decorator(target: Callable[..., Any]) -> Callable[..., Any]:
        return wrap(target, **overrides)

    return decorator
