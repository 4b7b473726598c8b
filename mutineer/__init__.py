"""
Mutineer: controlled chaos for Python functions
===============================================

Makes wrapped operations fail on purpose, at a configurable rate, so
error handling and resilience paths can be exercised on demand.
Disabled by default; when disabled, wrapped calls run unchanged.

Quick Start:
    import mutineer

    mutineer.configure(enabled=True, default_failure_rate=0.1)

    @mutineer.chaos(failure_types=["error", "raise"])
    def fetch_user(user_id):
        ...

    result = mutineer.maybe_inject(lambda: fetch_user(1), failure_rate=0.5)

Failure kinds:
    - error:   return an error value (default ("error", "mutineer_chaos"))
    - raise:   raise ChaosError (or a chosen exception)
    - delay:   sleep 1-5 s (or the given delay), then run the function
    - timeout: sleep, then raise as "raise" does
    - nil:     return None
    - exit:    raise ChaosExit, which ``except Exception`` does not catch

Configuration (environment or .env):
    MUTINEER_ENABLED, MUTINEER_DEFAULT_FAILURE_RATE, MUTINEER_DEFAULT_FAILURE_TYPES
"""

from .errors import (
    ChaosError,
    ChaosExit,
    ChaosTaskExit,
    MutineerError,
    InvalidFailureRate,
    UnknownFailureKind,
    InvalidDelay,
    InvalidOptions,
)

from .config import (
    FailureKind,
    MutineerConfig,
    ConfigStore,
    default_store,
    configure,
    reload,
)

from .options import InvocationOptions, DelayRange
from .failures import (
    CHAOS_ERROR,
    CHAOS_REASON,
    select,
    resolve_delay,
    trigger_failure,
    trigger_failure_async,
)
from .injector import Mutineer, should_fail, maybe_inject, maybe_inject_async, default_mutineer
from .registry import ChaosRegistry, WrappedFunction, chaos, wrap, default_registry

__version__ = "0.1.1"

__all__ = [
    # Gateway
    "Mutineer",
    "maybe_inject",
    "maybe_inject_async",
    "should_fail",
    "default_mutineer",

    # Dispatch
    "trigger_failure",
    "trigger_failure_async",
    "select",
    "resolve_delay",
    "CHAOS_ERROR",
    "CHAOS_REASON",

    # Configuration
    "FailureKind",
    "MutineerConfig",
    "ConfigStore",
    "InvocationOptions",
    "DelayRange",
    "default_store",
    "configure",
    "reload",

    # Registration
    "ChaosRegistry",
    "WrappedFunction",
    "chaos",
    "wrap",
    "default_registry",

    # Errors
    "ChaosError",
    "ChaosExit",
    "ChaosTaskExit",
    "MutineerError",
    "InvalidFailureRate",
    "UnknownFailureKind",
    "InvalidDelay",
    "InvalidOptions",
]
