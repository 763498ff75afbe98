import logging
from contextlib import contextmanager

import pytest

from utilities.exceptions import ConditionTimeoutError, ConditionWaitError

LOGGER = logging.getLogger(__name__)


def format_wait_failure(error, expectation=None):
    observed = error.observed
    kind = "never reached" if isinstance(error, ConditionTimeoutError) else "errored while checking"
    expectation = expectation or error.condition
    return (
        f"{observed.ref} {kind} '{expectation}'.\n"
        f"Last observed state: {observed.describe()}\n{error}"
    )


def assert_wait_succeeded(error, expectation=None):
    """
    Fail the running test when a wait ended with `error`.

    Args:
        error (ConditionWaitError | None): terminal error of a wait, None when the wait converged.
        expectation (str, optional): what the test expected, defaults to the waited condition.
    """
    if error is None:
        return
    message = format_wait_failure(error=error, expectation=expectation)
    LOGGER.error(message)
    pytest.fail(message, pytrace=False)


@contextmanager
def condition_assertion(expectation=None):
    """
    Turn a ConditionWaitError raised in the block into a test failure.

    Eg:
        with condition_assertion(expectation="TektonAddon is ready"):
            wait_for_tekton_addon_ready(...)
    """
    try:
        yield
    except ConditionWaitError as error:
        assert_wait_succeeded(error=error, expectation=expectation)
