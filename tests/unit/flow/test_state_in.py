"""Unit tests for state_in sharing policies and failure handling."""

import threading
import time
from datetime import timedelta

import pytest
from reactivex.subject import Subject
from reactivex.testing import TestScheduler

from stateflows import (
    FlowScope,
    MutableStateFlow,
    ScopeCancelledError,
    SharingMode,
    SharingStarted,
    state_in,
)

# ============================================================================
# POLICIES
# ============================================================================


@pytest.mark.unit
@pytest.mark.flow
def test_while_subscribed_accepts_timedelta():
    """while_subscribed() converts a timedelta to seconds"""
    policy = SharingStarted.while_subscribed(timedelta(milliseconds=1500))

    assert policy.mode is SharingMode.WHILE_SUBSCRIBED
    assert policy.stop_timeout == 1.5


@pytest.mark.unit
@pytest.mark.flow
def test_negative_stop_timeout_is_rejected():
    """A negative grace period is invalid"""
    with pytest.raises(ValueError):
        SharingStarted.while_subscribed(-1)


@pytest.mark.unit
@pytest.mark.flow
def test_policy_names():
    """Policies print the way they are spelled"""
    assert str(SharingStarted.EAGERLY) == "SharingStarted.EAGERLY"
    assert str(SharingStarted.LAZILY) == "SharingStarted.LAZILY"
    assert str(SharingStarted.while_subscribed(2)) == "SharingStarted.while_subscribed(2.0)"


@pytest.mark.unit
@pytest.mark.flow
def test_state_in_rejects_unknown_policy(scope):
    """Only SharingStarted policies are accepted"""
    with pytest.raises(TypeError):
        state_in(Subject(), scope, "eagerly", 0)


@pytest.mark.unit
@pytest.mark.flow
def test_state_in_rejects_cancelled_scope():
    """Sharing cannot start in a scope that has already ended"""
    scope = FlowScope()
    scope.cancel()

    with pytest.raises(ScopeCancelledError):
        state_in(Subject(), scope, SharingStarted.EAGERLY, 0)


# ============================================================================
# EAGER
# ============================================================================


@pytest.mark.unit
@pytest.mark.flow
def test_eager_subscribes_upstream_immediately(scope):
    """EAGERLY starts collecting without any downstream subscriber"""
    source = MutableStateFlow(1)

    shared = state_in(source, scope, SharingStarted.EAGERLY, 0)

    assert source.subscription_count.value == 1
    assert shared.is_active
    assert shared.value == 1


@pytest.mark.unit
@pytest.mark.flow
def test_initial_value_is_returned_before_first_emission(scope):
    """The initial value is readable until the upstream emits"""
    upstream = Subject()

    shared = state_in(upstream, scope, SharingStarted.EAGERLY, "initial")
    assert shared.value == "initial"

    upstream.on_next("next")
    assert shared.value == "next"


@pytest.mark.unit
@pytest.mark.flow
def test_subscribers_receive_cached_value_then_updates(scope, recorder):
    """Downstream subscribers see the cached value first"""
    upstream = Subject()
    shared = state_in(upstream, scope, SharingStarted.EAGERLY, 0)
    upstream.on_next(1)
    rec = recorder()

    shared.subscribe(rec)
    upstream.on_next(2)
    upstream.on_next(2)

    assert rec.values == [1, 2]


@pytest.mark.unit
@pytest.mark.flow
def test_scope_cancel_stops_upstream_and_keeps_value(recorder):
    """Cancelling the scope detaches upstream and freezes the cache"""
    scope = FlowScope()
    source = MutableStateFlow(1)
    shared = state_in(source, scope, SharingStarted.EAGERLY, 0)

    scope.cancel()
    source.value = 2

    assert source.subscription_count.value == 0
    assert not shared.is_active
    assert shared.value == 1


@pytest.mark.unit
@pytest.mark.flow
def test_upstream_completion_keeps_last_value(scope, recorder):
    """A completed upstream leaves the cached value in place"""
    upstream = Subject()
    shared = state_in(upstream, scope, SharingStarted.EAGERLY, 0)
    rec = recorder()
    shared.subscribe(rec)

    upstream.on_next(7)
    upstream.on_completed()

    assert shared.value == 7
    assert rec.values == [0, 7]
    assert not rec.completed


# ============================================================================
# LAZY
# ============================================================================


@pytest.mark.unit
@pytest.mark.flow
def test_lazily_waits_for_first_subscriber(scope):
    """LAZILY does not touch upstream until someone subscribes"""
    source = MutableStateFlow(1)
    shared = state_in(source, scope, SharingStarted.LAZILY, 0)

    assert source.subscription_count.value == 0
    assert shared.value == 0

    shared.subscribe(lambda _: None)

    assert source.subscription_count.value == 1
    assert shared.value == 1


@pytest.mark.unit
@pytest.mark.flow
def test_lazily_first_subscriber_sees_fresh_value_only(scope, recorder):
    """The first subscriber of a lazy flow is not handed the stale initial value"""
    source = MutableStateFlow(5)
    shared = state_in(source, scope, SharingStarted.LAZILY, 0)
    rec = recorder()

    shared.subscribe(rec)

    assert rec.values == [5]


@pytest.mark.unit
@pytest.mark.flow
def test_lazily_never_stops(scope):
    """LAZILY keeps upstream subscribed after the last subscriber leaves"""
    source = MutableStateFlow(1)
    shared = state_in(source, scope, SharingStarted.LAZILY, 0)
    subscription = shared.subscribe(lambda _: None)

    subscription.dispose()
    source.value = 2

    assert source.subscription_count.value == 1
    assert shared.value == 2


# ============================================================================
# WHILE SUBSCRIBED
# ============================================================================


@pytest.mark.unit
@pytest.mark.flow
def test_while_subscribed_stops_with_last_subscriber(scope):
    """With no grace period, upstream stops as soon as the last subscriber leaves"""
    source = MutableStateFlow(1)
    shared = state_in(source, scope, SharingStarted.while_subscribed(), 0)
    first = shared.subscribe(lambda _: None)
    second = shared.subscribe(lambda _: None)

    first.dispose()
    assert source.subscription_count.value == 1

    second.dispose()
    assert source.subscription_count.value == 0

    source.value = 2
    assert shared.value == 1


@pytest.mark.unit
@pytest.mark.flow
def test_while_subscribed_restarts_on_resubscription(scope, recorder):
    """A new subscriber restarts upstream and refreshes the cache"""
    source = MutableStateFlow(1)
    shared = state_in(source, scope, SharingStarted.while_subscribed(), 0)
    shared.subscribe(lambda _: None).dispose()
    source.value = 2
    rec = recorder()

    shared.subscribe(rec)

    assert source.subscription_count.value == 1
    assert shared.value == 2
    assert rec.values == [2]


@pytest.mark.unit
@pytest.mark.flow
def test_grace_period_keeps_upstream_alive(dispatched_scope, scheduler):
    """Upstream survives until the grace period elapses"""
    source = MutableStateFlow(1)
    shared = state_in(
        source, dispatched_scope, SharingStarted.while_subscribed(5.0), 0
    )
    subscription = shared.subscribe(lambda _: None)
    scheduler.advance_to(1.0)
    subscription.dispose()

    scheduler.advance_to(4.0)
    assert source.subscription_count.value == 1

    scheduler.advance_to(7.0)
    assert source.subscription_count.value == 0
    assert not shared.is_active


@pytest.mark.unit
@pytest.mark.flow
def test_resubscribing_within_grace_period_cancels_stop(dispatched_scope, scheduler):
    """A quick resubscription reuses the running upstream"""
    source = MutableStateFlow(1)
    shared = state_in(
        source, dispatched_scope, SharingStarted.while_subscribed(5.0), 0
    )
    shared.subscribe(lambda _: None).dispose()

    scheduler.advance_to(2.0)
    shared.subscribe(lambda _: None)
    scheduler.advance_to(10.0)

    assert source.subscription_count.value == 1
    assert shared.is_active


@pytest.mark.unit
@pytest.mark.flow
def test_stop_timeout_firing_while_subscribed_keeps_upstream(dispatched_scope):
    """A stop timer that fires after a resubscription does not detach upstream"""
    source = MutableStateFlow(1)
    shared = state_in(
        source, dispatched_scope, SharingStarted.while_subscribed(5.0), 0
    )
    shared.subscribe(lambda _: None)

    shared._on_stop_timeout(dispatched_scope.scheduler)

    assert shared.is_active
    assert source.subscription_count.value == 1


@pytest.mark.unit
@pytest.mark.flow
def test_stop_timeout_racing_a_new_subscriber_never_strands_it():
    """A subscriber attaching while the stop timer fires always ends up attached"""
    for _ in range(200):
        scope = FlowScope(dispatcher=TestScheduler())
        shared = state_in(Subject(), scope, SharingStarted.while_subscribed(5.0), 0)
        shared.subscribe(lambda _: None).dispose()
        barrier = threading.Barrier(2)

        def fire():
            barrier.wait()
            shared._on_stop_timeout(scope.scheduler)

        timer = threading.Thread(target=fire)
        timer.start()
        barrier.wait()
        shared.subscribe(lambda _: None)
        timer.join()

        assert shared.is_active
        scope.cancel()


# ============================================================================
# FAILURES
# ============================================================================


@pytest.mark.unit
@pytest.mark.flow
def test_upstream_error_freezes_value_and_terminates_subscribers(scope, recorder):
    """An upstream error is delivered to current and future subscribers"""
    upstream = Subject()
    shared = state_in(upstream, scope, SharingStarted.EAGERLY, 0)
    upstream.on_next(3)
    current = recorder()
    shared.subscribe(current)
    error = RuntimeError("boom")

    upstream.on_error(error)

    assert current.values == [3]
    assert current.errors == [error]
    assert shared.value == 3
    assert not shared.is_active

    late = recorder()
    shared.subscribe(late)
    assert late.values == []
    assert late.errors == [error]


@pytest.mark.unit
@pytest.mark.flow
def test_no_upstream_value_lands_after_cancel_returns():
    """Once the scope is cancelled the cached value is final"""
    scope = FlowScope(name="racing")
    shared = state_in(Subject(), scope, SharingStarted.EAGERLY, 0)
    stop = threading.Event()

    def produce():
        n = 0
        while not stop.is_set():
            n += 1
            shared._on_upstream_value(n)

    producer = threading.Thread(target=produce)
    producer.start()
    time.sleep(0.01)

    scope.cancel()
    frozen = shared.value
    time.sleep(0.01)
    stop.set()
    producer.join()

    assert shared.value == frozen
