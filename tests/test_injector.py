"""
Tests for the injection gateway
"""

import asyncio
import threading
import time
from collections import Counter

import pytest
from pydantic import ValidationError

from mutineer import (
    CHAOS_ERROR,
    ChaosError,
    ConfigStore,
    FailureKind,
    InvocationOptions,
    Mutineer,
    MutineerConfig,
)

SUCCESS = ("ok", "success")


def success():
    return SUCCESS


def test_disabled_runs_operation_even_at_full_rate():
    gateway = Mutineer(ConfigStore(MutineerConfig(enabled=False)))
    for _ in range(100):
        assert gateway.maybe_inject(success, failure_rate=1.0, failure_type="raise") == SUCCESS


def test_disabled_skips_option_parsing():
    gateway = Mutineer(ConfigStore(MutineerConfig(enabled=False)))
    assert gateway.maybe_inject(success, {"failure_rate": 7}) == SUCCESS


def test_zero_rate_never_fails(gateway, calls):
    """Round trip: N calls reach the original exactly N times"""
    results = [gateway.maybe_inject(calls, failure_rate=0.0, failure_type="error") for _ in range(500)]
    assert calls.count == 500
    assert all(r == SUCCESS for r in results)


def test_full_rate_always_fails(gateway, calls):
    results = [gateway.maybe_inject(calls, failure_rate=1.0, failure_type="error") for _ in range(500)]
    assert calls.count == 0
    assert all(r == CHAOS_ERROR for r in results)


def test_global_default_rate_applies(store, calls):
    """Default rate 0.1 over 10_000 calls stays in a 4-sigma band"""
    gateway = Mutineer(store)
    results = [gateway.maybe_inject(calls) for _ in range(10_000)]
    failures = sum(1 for r in results if r == CHAOS_ERROR)

    assert 880 <= failures <= 1120, f"Expected 880-1120 failures, got {failures}"
    assert calls.count == 10_000 - failures


def test_global_default_types_apply(calls):
    gateway = Mutineer(ConfigStore(MutineerConfig(
        enabled=True,
        default_failure_rate=1.0,
        default_failure_types=FailureKind.NIL,
    )))
    assert gateway.maybe_inject(calls) is None


def test_per_call_options_override_defaults():
    gateway = Mutineer(ConfigStore(MutineerConfig(enabled=True, default_failure_rate=0.0)))
    assert gateway.maybe_inject(success, failure_rate=1.0, failure_type="nil") is None


def test_failure_type_list_dispatches_one_kind_per_call(gateway):
    outcomes = Counter()
    for _ in range(200):
        result = gateway.maybe_inject(success, failure_rate=1.0, failure_types=["error", "nil"])
        outcomes["error" if result == CHAOS_ERROR else "nil" if result is None else "other"] += 1

    assert outcomes["other"] == 0
    assert outcomes["error"] > 0 and outcomes["nil"] > 0
    assert outcomes["error"] + outcomes["nil"] == 200


def test_raise_through_gateway(gateway):
    with pytest.raises(ChaosError):
        gateway.maybe_inject(success, failure_rate=1.0, failure_type="raise")


def test_custom_error_value(gateway):
    result = gateway.maybe_inject(
        success, failure_rate=1.0, failure_type="error", error=("error", "custom_error")
    )
    assert result == ("error", "custom_error")


def test_delay_through_gateway(gateway):
    start = time.monotonic()
    result = gateway.maybe_inject(success, failure_rate=1.0, failure_type="delay", delay=50)
    assert result == SUCCESS
    assert time.monotonic() - start >= 0.05


def test_delay_not_applied_when_roll_misses(gateway):
    start = time.monotonic()
    result = gateway.maybe_inject(success, failure_rate=0.0, failure_type="delay", delay=90_000_000)
    assert result == SUCCESS
    assert time.monotonic() - start < 1.0


def test_timeout_through_gateway(gateway):
    start = time.monotonic()
    with pytest.raises(ChaosError):
        gateway.maybe_inject(success, failure_rate=1.0, failure_type="timeout", delay=50)
    assert time.monotonic() - start >= 0.05


def test_timeout_not_applied_when_roll_misses(gateway):
    assert gateway.maybe_inject(success, failure_rate=0.0, failure_type="timeout", delay=50) == SUCCESS


def test_options_object_and_mapping(gateway):
    opts = InvocationOptions(failure_rate=1.0, failure_type=FailureKind.NIL)
    assert gateway.maybe_inject(success, opts) is None
    assert gateway.maybe_inject(success, {"failureRate": 1.0, "failureType": "nil"}) is None


def test_options_and_overrides_together_rejected(gateway):
    with pytest.raises(TypeError):
        gateway.maybe_inject(success, InvocationOptions(), failure_rate=1.0)


def test_invalid_rate_rejected_when_enabled(gateway):
    with pytest.raises(ValidationError):
        gateway.maybe_inject(success, failure_rate=1.5)


def test_unknown_option_rejected(gateway):
    with pytest.raises(ValidationError):
        gateway.maybe_inject(success, failure_rat=0.5)


def test_hot_reload_takes_effect(store):
    gateway = Mutineer(store)
    store.update(default_failure_rate=1.0, default_failure_types="nil")
    assert gateway.maybe_inject(success) is None

    store.update(enabled=False)
    assert gateway.maybe_inject(success) == SUCCESS


def test_delay_blocks_only_the_caller(gateway):
    """A delayed call in one thread does not hold up another caller"""
    slow_done = threading.Event()

    def slow():
        gateway.maybe_inject(success, failure_rate=1.0, failure_type="delay", delay=300)
        slow_done.set()

    thread = threading.Thread(target=slow)
    thread.start()
    try:
        start = time.monotonic()
        assert gateway.maybe_inject(success, failure_rate=0.0) == SUCCESS
        assert time.monotonic() - start < 0.2
        assert not slow_done.is_set()
    finally:
        thread.join()


def test_exit_ends_only_the_worker_thread(gateway):
    """EXIT unwinds the worker; only a supervising boundary sees it"""
    after_exit = []
    reasons = []

    def worker():
        gateway.maybe_inject(success, failure_rate=1.0, failure_type="exit")
        after_exit.append(True)

    def supervisor():
        try:
            worker()
        except SystemExit as e:
            reasons.append(e.reason)

    thread = threading.Thread(target=supervisor)
    thread.start()
    thread.join()

    assert after_exit == []
    assert reasons == ["mutineer_chaos"]
    assert gateway.maybe_inject(success, failure_rate=0.0) == SUCCESS


def test_async_gateway(gateway):
    async def fetch():
        return SUCCESS

    async def scenario():
        passed = await gateway.maybe_inject_async(fetch, failure_rate=0.0)
        nil = await gateway.maybe_inject_async(fetch, failure_rate=1.0, failure_type="nil")
        delayed = await gateway.maybe_inject_async(fetch, failure_rate=1.0, failure_type="delay", delay=20)
        return passed, nil, delayed

    assert asyncio.run(scenario()) == (SUCCESS, None, SUCCESS)


def test_async_timeout_does_not_block_other_tasks(gateway):
    async def fetch():
        return SUCCESS

    async def scenario():
        async def doomed():
            with pytest.raises(ChaosError):
                await gateway.maybe_inject_async(fetch, failure_rate=1.0, failure_type="timeout", delay=200)

        task = asyncio.create_task(doomed())
        await asyncio.sleep(0)
        start = time.monotonic()
        quick = await gateway.maybe_inject_async(fetch, failure_rate=0.0)
        quick_elapsed = time.monotonic() - start
        await task
        return quick, quick_elapsed

    quick, quick_elapsed = asyncio.run(scenario())
    assert quick == SUCCESS
    assert quick_elapsed < 0.1


def test_async_exit_cancels_only_the_calling_task(gateway):
    """Sibling tasks and the event loop keep running after an EXIT"""
    after_exit = []

    async def fetch():
        return SUCCESS

    async def doomed():
        await gateway.maybe_inject_async(fetch, failure_rate=1.0, failure_type="exit")
        after_exit.append(True)

    async def sibling():
        await asyncio.sleep(0.05)
        return SUCCESS

    async def scenario():
        doomed_task = asyncio.create_task(doomed())
        sibling_task = asyncio.create_task(sibling())
        sibling_result = await sibling_task
        return doomed_task.cancelled(), sibling_result

    cancelled, sibling_result = asyncio.run(scenario())
    assert cancelled is True
    assert sibling_result == SUCCESS
    assert after_exit == []
