"""
Mutineer Invocation Options
===========================
Per-call overrides accepted by the injection gateway.

Options that accept several candidates (failure types, error values,
raised errors, exit reasons) take either one value or a ``list`` of
values; a list is sampled once per triggering call. Only ``list`` means
"candidates": a tuple such as ``("error", "timeout")`` is a single value.
"""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .config import parse_failure_types
from .errors import InvalidDelay, InvalidFailureRate, InvalidOptions


@dataclass(frozen=True)
class DelayRange:
    """Inclusive range of milliseconds."""
    low: int
    high: int

    def __post_init__(self):
        for bound in (self.low, self.high):
            if isinstance(bound, bool) or not isinstance(bound, int) or bound < 0:
                raise InvalidDelay((self.low, self.high))
        if self.low > self.high:
            raise InvalidDelay((self.low, self.high), "delay range low bound exceeds high bound")


def _choice_field(*aliases: str) -> Any:
    return Field(default=None, validation_alias=AliasChoices(*aliases))


class InvocationOptions(BaseModel):
    """Per-call chaos settings. Unset fields fall back to the global config."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    failure_rate: Optional[float] = _choice_field("failure_rate", "failureRate")
    failure_types: Any = _choice_field(
        "failure_types", "failure_type", "failureTypes", "failureType"
    )
    errors: Any = _choice_field("errors", "error")
    raised_errors: Any = _choice_field(
        "raised_errors", "raised_error", "raisedErrors", "raisedError"
    )
    exit_errors: Any = _choice_field("exit_errors", "exit_error", "exitErrors", "exitError")
    delay: Any = None
    message: Optional[str] = None
    function: Optional[str] = None
    module: Optional[str] = None

    @field_validator("failure_rate", mode="before")
    @classmethod
    def _check_rate(cls, value):
        if value is None:
            return value
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidFailureRate(value)
        if not 0.0 <= value <= 1.0:
            raise InvalidFailureRate(value)
        return float(value)

    @field_validator("failure_types", mode="before")
    @classmethod
    def _parse_types(cls, value):
        if value is None:
            return value
        return parse_failure_types(value)

    @field_validator("errors", "raised_errors", "exit_errors", mode="before")
    @classmethod
    def _check_candidates(cls, value, info):
        if isinstance(value, list) and not value:
            raise InvalidOptions(f"{info.field_name} candidate list must not be empty")
        return value

    @field_validator("delay", mode="before")
    @classmethod
    def _parse_delay(cls, value):
        return parse_delay(value)

    def with_identity(self, function: Optional[str], module: Optional[str]) -> "InvocationOptions":
        """Fill in caller identity where it was not given explicitly."""
        return self.model_copy(update={
            "function": self.function if self.function is not None else function,
            "module": self.module if self.module is not None else module,
        })


def parse_delay(value):
    """Normalise a delay spec to None, int ms, DelayRange or range."""
    if value is None or isinstance(value, (DelayRange, range)):
        if isinstance(value, range) and (len(value) == 0 or min(value) < 0):
            raise InvalidDelay(value, "delay range must be non-empty and non-negative")
        return value
    if isinstance(value, (tuple, list)):
        if len(value) != 2:
            raise InvalidDelay(value, "delay range needs exactly two bounds")
        return DelayRange(*value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidDelay(value)
    if value < 0:
        raise InvalidDelay(value)
    return value
