# tests/test_lockout.py
from datetime import timedelta

import pytest

from pkg_authn.domain.entities import LockoutState
from pkg_authn.domain.lockout import LockoutPolicy

from conftest import NOW


@pytest.fixture
def policy():
    return LockoutPolicy(max_attempts=5, lock_duration=timedelta(seconds=900))


def test_fifth_failure_locks(policy):
    state = LockoutState()
    for _ in range(4):
        state = policy.on_failed_attempt(state, NOW)
        assert not policy.is_locked(state, NOW)

    assert state == LockoutState(4, None)

    state = policy.on_failed_attempt(state, NOW)
    assert state.failed_attempts == 5
    assert state.locked_until == NOW + timedelta(seconds=900)
    assert policy.is_locked(state, NOW)


def test_lock_expires_with_time_only(policy):
    state = LockoutState(5, NOW + timedelta(seconds=900))

    assert policy.is_locked(state, NOW + timedelta(seconds=899))
    assert not policy.is_locked(state, NOW + timedelta(seconds=900))
    assert not policy.is_locked(state, NOW + timedelta(hours=1))


def test_success_resets_after_lock_elapsed(policy):
    state = LockoutState(5, NOW + timedelta(seconds=900))
    later = NOW + timedelta(seconds=901)
    assert not policy.is_locked(state, later)

    assert policy.on_successful_attempt(state) == LockoutState(0, None)


def test_failure_past_threshold_extends_lock(policy):
    state = LockoutState(5, NOW - timedelta(seconds=1))
    state = policy.on_failed_attempt(state, NOW)

    assert state.failed_attempts == 6
    assert state.locked_until == NOW + timedelta(seconds=900)


def test_single_attempt_policy_locks_immediately():
    policy = LockoutPolicy(max_attempts=1, lock_duration=timedelta(seconds=1))
    state = policy.on_failed_attempt(LockoutState(), NOW)
    assert policy.is_locked(state, NOW)


@pytest.mark.parametrize(
    "max_attempts, duration",
    [(0, timedelta(seconds=60)), (5, timedelta(0)), (5, timedelta(milliseconds=500))],
)
def test_invalid_policy(max_attempts, duration):
    with pytest.raises(ValueError):
        LockoutPolicy(max_attempts=max_attempts, lock_duration=duration)


def test_from_settings(settings):
    policy = LockoutPolicy.from_settings(settings)
    assert policy.max_attempts == 5
    assert policy.lock_duration == timedelta(seconds=900)
