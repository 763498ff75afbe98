"""
Predicates describing the desired state of each watched resource.

Every predicate is a callable `(resource, error) -> (done, fatal_error)` with no knowledge of polling.
`Condition` is the tagged form used across the harness: besides the check applied to a fetched
resource it names what a "not found" fetch means (`MissingPolicy`) and whether any other fetch
error ends the wait (`ErrorPolicy`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from utilities.constants import (
    CONDITION_READY,
    CONDITION_STATUS_FALSE,
    CONDITION_STATUS_TRUE,
    CONDITION_SUCCEEDED,
    INSTALLED_CSV_NONE,
    PHASE_COMPLETE,
    PHASE_SUCCEEDED,
    RUN_CANCELLED_REASONS,
    RUN_TIMEOUT_REASONS,
    RunStatus,
)
from utilities.exceptions import (
    ConditionUnreachableError,
    RunStatusMismatchError,
    UnexpectedResourcesCreatedError,
)
from utilities.resources import is_not_found

LOGGER = logging.getLogger(__name__)


class MissingPolicy(Enum):
    # The resource may not exist yet
    KEEP_WAITING = "keep-waiting"
    # Absence is the desired state
    SATISFIED = "satisfied"


class ErrorPolicy(Enum):
    RETRY = "retry"
    FAIL = "fail"


@dataclass(frozen=True)
class Condition:
    description: str
    check: Callable[[Any], bool] | None = None
    when_missing: MissingPolicy = MissingPolicy.KEEP_WAITING
    on_error: ErrorPolicy = ErrorPolicy.RETRY

    def __call__(self, resource, error):
        if error is not None:
            if is_not_found(error):
                return self.when_missing is MissingPolicy.SATISFIED, None
            if self.on_error is ErrorPolicy.FAIL:
                return False, error
            return False, None

        if self.when_missing is MissingPolicy.SATISFIED or resource is None:
            return False, None

        if self.check is None:
            return True, None

        try:
            return bool(self.check(resource)), None
        except ConditionUnreachableError as unreachable:
            return False, unreachable

    def __str__(self):
        return self.description


def get_status(resource):
    return resource.get("status") or {}


def get_status_condition(resource, condition_type):
    for condition in get_status(resource).get("conditions") or []:
        if condition.get("type") == condition_type:
            return condition


def get_name(resource):
    return (resource.get("metadata") or {}).get("name")


def get_labels(resource):
    return dict((resource.get("metadata") or {}).get("labels") or {})


def installed_csv_present(resource):
    installed_csv = get_status(resource).get("installedCSV")
    return bool(installed_csv) and installed_csv != INSTALLED_CSV_NONE


def installed_csv_changed(previous_csv):
    def _check(resource):
        return installed_csv_present(resource=resource) and get_status(resource).get("installedCSV") != previous_csv

    return Condition(description=f"installed CSV replaced {previous_csv}", check=_check)


def get_install_plan_name(resource):
    return (get_status(resource).get("installPlanRef") or {}).get("name")


def install_plan_ref_present(resource):
    return bool(get_install_plan_name(resource=resource))


def install_plan_ref_changed(previous_plan):
    def _check(resource):
        install_plan_name = get_install_plan_name(resource=resource)
        return bool(install_plan_name) and install_plan_name != previous_plan

    return Condition(description=f"install plan reference replaced {previous_plan}", check=_check)


def phase_succeeded(resource):
    return get_status(resource).get("phase") == PHASE_SUCCEEDED


def phase_complete(resource):
    return get_status(resource).get("phase") == PHASE_COMPLETE


def is_ready(resource):
    ready_condition = get_status_condition(resource=resource, condition_type=CONDITION_READY)
    return bool(ready_condition) and ready_condition.get("status") == CONDITION_STATUS_TRUE


def all_conditions_true(resource):
    conditions = get_status(resource).get("conditions") or []
    not_true = [condition.get("type") for condition in conditions if condition.get("status") != CONDITION_STATUS_TRUE]
    if not_true:
        LOGGER.info(f"Waiting for conditions {not_true} to become {CONDITION_STATUS_TRUE}")
    return bool(conditions) and not not_true


def get_run_status(resource):
    """
    Return the RunStatus a PipelineRun/TaskRun finished with, None while it is still running.
    """
    succeeded_condition = get_status_condition(resource=resource, condition_type=CONDITION_SUCCEEDED)
    if not succeeded_condition:
        return None

    status = succeeded_condition.get("status")
    if status == CONDITION_STATUS_TRUE:
        return RunStatus.SUCCESSFUL
    if status != CONDITION_STATUS_FALSE:
        return None

    reason = succeeded_condition.get("reason")
    if reason in RUN_TIMEOUT_REASONS:
        return RunStatus.TIMEOUT
    if reason in RUN_CANCELLED_REASONS:
        return RunStatus.CANCELLED
    return RunStatus.FAILURE


def run_reached_status(expected_status):
    def _check(resource):
        actual_status = get_run_status(resource=resource)
        if actual_status is None:
            return False
        if actual_status != expected_status:
            succeeded_condition = get_status_condition(resource=resource, condition_type=CONDITION_SUCCEEDED)
            raise RunStatusMismatchError(
                run_name=get_name(resource=resource),
                expected_status=expected_status,
                actual_status=actual_status,
                reason=succeeded_condition.get("reason"),
            )
        return True

    return Condition(description=f"run finished as {expected_status}", check=_check)


def resource_count_is(count):
    return Condition(description=f"{count} resource(s) present", check=lambda resources: len(resources) == count)


def no_resources_added(expected_count):
    """
    Never satisfied; fatal as soon as more than `expected_count` resources are listed.

    Waiting on it until the timeout asserts that nothing new was created meanwhile.
    """

    def _check(resources):
        if len(resources) > expected_count:
            raise UnexpectedResourcesCreatedError(
                expected_count=expected_count, names=[get_name(resource=resource) for resource in resources]
            )
        return False

    return Condition(description=f"no more than {expected_count} resource(s) present", check=_check)


INSTALLED_CSV_PRESENT = Condition(description="installed CSV reference present", check=installed_csv_present)
INSTALL_PLAN_REF_PRESENT = Condition(description="install plan reference present", check=install_plan_ref_present)
PHASE_SUCCEEDED_CONDITION = Condition(description=f"phase {PHASE_SUCCEEDED}", check=phase_succeeded)
INSTALL_PLAN_COMPLETE = Condition(description=f"phase {PHASE_COMPLETE}", check=phase_complete)
READY = Condition(description=f"{CONDITION_READY} condition {CONDITION_STATUS_TRUE}", check=is_ready)
ALL_CONDITIONS_TRUE = Condition(
    description=f"all conditions {CONDITION_STATUS_TRUE}", check=all_conditions_true, on_error=ErrorPolicy.FAIL
)
EXISTS = Condition(description="exists", on_error=ErrorPolicy.FAIL)
ABSENT = Condition(description="deleted", when_missing=MissingPolicy.SATISFIED, on_error=ErrorPolicy.FAIL)
