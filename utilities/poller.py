"""
Bounded poll-until-converged primitive shared by every wait in the harness.

A wait repeatedly fetches one resource through an accessor and hands the result to a predicate
`(resource, error) -> (done, fatal_error)` until the predicate is done, reports a fatal error,
the policy timeout elapses or the caller cancels.
Whatever the outcome, the last observed state is handed back: returned on success and attached
to the raised `ConditionWaitError` otherwise.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pprint import pformat
from threading import Event
from typing import Any, Callable

from timeout_sampler import TimeoutExpiredError, TimeoutSampler

from utilities.constants import (
    TIMEOUT_1SEC,
    TIMEOUT_5MIN,
    TIMEOUT_5SEC,
    TIMEOUT_10MIN,
    TIMEOUT_10SEC,
    TIMEOUT_20MIN,
    TIMEOUT_30SEC,
)
from utilities.exceptions import (
    ConditionEvaluationError,
    ConditionTimeoutError,
    ConditionWaitCancelledError,
    InvalidPollPolicyError,
)
from utilities.resources import ResourceListRef, ResourceRef

LOGGER = logging.getLogger(__name__)

Predicate = Callable[[Any, Exception | None], tuple[bool, Exception | None]]


@dataclass(frozen=True)
class PollPolicy:
    interval: float
    timeout: float
    immediate: bool = True

    def __post_init__(self):
        if self.interval <= 0:
            raise InvalidPollPolicyError(f"interval must be positive, got: {self.interval}")
        if self.timeout < self.interval:
            raise InvalidPollPolicyError(
                f"timeout ({self.timeout}) must not be shorter than interval ({self.interval})"
            )
        # Without an immediate probe the first interval is spent sleeping, leaving no room for a probe
        if not self.immediate and self.timeout == self.interval:
            raise InvalidPollPolicyError(
                f"timeout ({self.timeout}) must be longer than interval ({self.interval}) when the first probe is "
                "not immediate"
            )


FAST_POLICY = PollPolicy(interval=TIMEOUT_1SEC, timeout=TIMEOUT_30SEC)
SLOW_POLICY = PollPolicy(interval=TIMEOUT_5SEC, timeout=TIMEOUT_20MIN)
SUBSCRIPTION_POLICY = PollPolicy(interval=TIMEOUT_10SEC, timeout=TIMEOUT_5MIN)
RUN_POLICY = PollPolicy(interval=TIMEOUT_5SEC, timeout=TIMEOUT_10MIN)


@dataclass(frozen=True)
class ObservedState:
    ref: ResourceRef | ResourceListRef
    resource: Any = None
    error: Exception | None = None
    attempt: int = 0

    def describe(self):
        if not self.attempt:
            return "no probe performed"
        if self.error is not None:
            return f"probe {self.attempt} failed: {type(self.error).__name__}: {self.error}"
        to_dict = getattr(self.resource, "to_dict", None)
        return f"probe {self.attempt}: {pformat(to_dict() if to_dict else self.resource)}"


def describe_predicate(predicate):
    return getattr(predicate, "description", None) or getattr(predicate, "__name__", repr(predicate))


def _pause(seconds, stop_event):
    """Sleep for `seconds`; return True when `stop_event` was set meanwhile."""
    if stop_event is None:
        time.sleep(seconds)
        return False
    return stop_event.wait(timeout=seconds)


def wait_for(
    accessor,
    ref: ResourceRef | ResourceListRef,
    predicate: Predicate,
    policy: PollPolicy,
    stop_event: Event | None = None,
) -> ObservedState:
    """
    Poll `ref` until `predicate` is satisfied.

    Args:
        accessor: object with a `fetch(ref)` method returning the current representation or raising a fetch error.
        ref (ResourceRef | ResourceListRef): resource, or list of resources, to watch.
        predicate (callable): `(resource, error) -> (done, fatal_error)`.
        policy (PollPolicy): interval, timeout and whether the first probe is immediate.
        stop_event (threading.Event, optional): cancels the wait; checked while waiting for the first probe of a
            non immediate policy and after every probe. A cancel requested between two probes is noticed at the next
            probe, up to one policy.interval later.

    Returns:
        ObservedState: the state that satisfied the predicate.

    Raises:
        ConditionEvaluationError: the predicate reported a fatal error; no further probe is made.
        ConditionTimeoutError: the predicate was not satisfied within policy.timeout.
        ConditionWaitCancelledError: stop_event was set.
    """
    condition = describe_predicate(predicate=predicate)
    observed = ObservedState(ref=ref)
    attempt = 0

    def _probe():
        nonlocal attempt
        attempt += 1
        try:
            return ObservedState(ref=ref, resource=accessor.fetch(ref), attempt=attempt)
        except Exception as error:
            # Fetch errors are classified by the predicate
            return ObservedState(ref=ref, error=error, attempt=attempt)

    LOGGER.info(
        f"Waiting for {ref} to reach condition '{condition}': "
        f"interval={policy.interval}s timeout={policy.timeout}s immediate={policy.immediate}"
    )
    wait_timeout = policy.timeout
    if not policy.immediate:
        if _pause(seconds=policy.interval, stop_event=stop_event):
            raise ConditionWaitCancelledError(observed=observed, condition=condition)
        wait_timeout -= policy.interval

    sampler = TimeoutSampler(wait_timeout=wait_timeout, sleep=policy.interval, func=_probe)
    try:
        for observed in sampler:
            done, fatal_error = predicate(observed.resource, observed.error)
            if fatal_error is not None:
                LOGGER.error(f"{ref}: evaluating condition '{condition}' failed: {fatal_error}")
                raise ConditionEvaluationError(
                    observed=observed, error=fatal_error, condition=condition
                ) from fatal_error
            if done:
                LOGGER.info(f"{ref} reached condition '{condition}' after {observed.attempt} probe(s)")
                return observed
            LOGGER.debug(f"{ref} did not reach condition '{condition}' yet: {observed.describe()}")
            if stop_event is not None and stop_event.is_set():
                LOGGER.warning(f"Wait for {ref} to reach condition '{condition}' was cancelled")
                raise ConditionWaitCancelledError(observed=observed, condition=condition)
    except TimeoutExpiredError as exp:
        LOGGER.error(f"{ref} did not reach condition '{condition}' within {policy.timeout}s: {observed.describe()}")
        raise ConditionTimeoutError(observed=observed, condition=condition, timeout=policy.timeout) from exp


def wait_fast(accessor, ref, predicate, stop_event=None):
    return wait_for(accessor=accessor, ref=ref, predicate=predicate, policy=FAST_POLICY, stop_event=stop_event)


def wait_slow(accessor, ref, predicate, stop_event=None):
    return wait_for(accessor=accessor, ref=ref, predicate=predicate, policy=SLOW_POLICY, stop_event=stop_event)


def wait_for_subscription(accessor, ref, predicate, stop_event=None):
    return wait_for(accessor=accessor, ref=ref, predicate=predicate, policy=SUBSCRIPTION_POLICY, stop_event=stop_event)


def wait_for_run(accessor, ref, predicate, stop_event=None):
    return wait_for(accessor=accessor, ref=ref, predicate=predicate, policy=RUN_POLICY, stop_event=stop_event)
