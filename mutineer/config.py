"""
Mutineer Configuration
======================
Process-wide settings for the chaos engine.

The global configuration is an immutable MutineerConfig held by a
ConfigStore. Readers take a snapshot per decision; administrative
updates build a new config and swap it in.
"""

import dataclasses
import logging
import os
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from dotenv import load_dotenv

from .errors import InvalidFailureRate, InvalidOptions, UnknownFailureKind

load_dotenv()

logger = logging.getLogger(__name__)


class FailureKind(Enum):
    """Failure behaviours the dispatcher can materialise"""
    ERROR = "error"        # Return an error value
    RAISE = "raise"        # Raise ChaosError (or a chosen exception)
    DELAY = "delay"        # Sleep, then run the operation
    TIMEOUT = "timeout"    # Sleep, then raise
    NIL = "nil"            # Return None
    EXIT = "exit"          # Raise ChaosExit

    @classmethod
    def parse(cls, value: Union["FailureKind", str]) -> "FailureKind":
        """Resolve a FailureKind from an enum member or its name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().lower()
            name = _KIND_ALIASES.get(name, name)
            try:
                return cls(name)
            except ValueError:
                pass
        raise UnknownFailureKind(value)


_KIND_ALIASES = {"null": "nil", "none": "nil"}


FailureTypes = Union[FailureKind, Tuple[FailureKind, ...]]


def parse_failure_types(value: Union[FailureKind, str, Iterable]) -> FailureTypes:
    """
    Normalise a kind or a collection of kinds.

    Strings may hold a comma separated list ("error,nil").
    """
    if isinstance(value, str) and "," in value:
        value = [part for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        kinds = tuple(FailureKind.parse(v) for v in value)
        if not kinds:
            raise InvalidOptions("failure types list must not be empty")
        return kinds
    return FailureKind.parse(value)


@dataclass(frozen=True)
class MutineerConfig:
    """Global chaos settings. Disabled unless explicitly turned on."""

    enabled: bool = False
    default_failure_rate: float = 0.1
    default_failure_types: FailureTypes = FailureKind.ERROR

    def __post_init__(self):
        object.__setattr__(
            self, "default_failure_types", parse_failure_types(self.default_failure_types)
        )

    def validate(self) -> "MutineerConfig":
        """Validate configuration"""
        rate = self.default_failure_rate
        if isinstance(rate, bool) or not isinstance(rate, (int, float)):
            raise InvalidFailureRate(rate)
        if not 0.0 <= rate <= 1.0:
            raise InvalidFailureRate(rate)
        types = self.default_failure_types
        members = types if isinstance(types, tuple) else (types,)
        if not members:
            raise InvalidOptions("default_failure_types must not be empty")
        for kind in members:
            if not isinstance(kind, FailureKind):
                raise UnknownFailureKind(kind)
        return self

    @classmethod
    def from_env(cls) -> "MutineerConfig":
        """Build a config from MUTINEER_* environment variables."""
        defaults = cls()
        enabled = os.getenv("MUTINEER_ENABLED")
        rate = os.getenv("MUTINEER_DEFAULT_FAILURE_RATE")
        types = os.getenv("MUTINEER_DEFAULT_FAILURE_TYPES")

        if rate is not None:
            try:
                parsed_rate = float(rate)
            except ValueError:
                raise InvalidFailureRate(rate) from None
        else:
            parsed_rate = defaults.default_failure_rate

        return cls(
            enabled=_truthy(enabled) if enabled is not None else defaults.enabled,
            default_failure_rate=parsed_rate,
            default_failure_types=(
                parse_failure_types(types) if types else defaults.default_failure_types
            ),
        ).validate()


def _truthy(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class ConfigStore:
    """
    Holder for the current MutineerConfig.

    snapshot() is a single reference read, so one decision always sees
    one consistent config even while an update is in flight.
    """

    def __init__(self, config: Optional[MutineerConfig] = None) -> None:
        self._config = (config or MutineerConfig()).validate()
        self._lock = threading.Lock()

    def snapshot(self) -> MutineerConfig:
        return self._config

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def update(self, **changes) -> MutineerConfig:
        """Replace selected fields of the current config."""
        with self._lock:
            config = dataclasses.replace(self._config, **changes).validate()
            self._config = config
        logger.info(
            "Mutineer config updated: enabled=%s rate=%s types=%s",
            config.enabled, config.default_failure_rate,
            describe_types(config.default_failure_types),
        )
        return config

    def replace(self, config: MutineerConfig) -> MutineerConfig:
        config.validate()
        with self._lock:
            self._config = config
        logger.info("Mutineer config replaced: %s", config)
        return config

    def reload(self) -> MutineerConfig:
        """Re-read the environment and swap in the result."""
        config = MutineerConfig.from_env()
        with self._lock:
            self._config = config
        logger.info(
            "Mutineer config reloaded from environment: enabled=%s rate=%s types=%s",
            config.enabled, config.default_failure_rate,
            describe_types(config.default_failure_types),
        )
        return config


def describe_types(types: FailureTypes) -> str:
    members: List[FailureKind] = list(types) if isinstance(types, tuple) else [types]
    return ",".join(kind.value for kind in members)


# Default store, populated from the environment at import
default_store = ConfigStore(MutineerConfig.from_env())


def configure(**changes) -> MutineerConfig:
    """Update the default store (enabled, default_failure_rate, default_failure_types)."""
    return default_store.update(**changes)


def reload() -> MutineerConfig:
    """Reload the default store from the environment."""
    return default_store.reload()
