"""
PipelineRun and TaskRun validation: final status, number of runs and label propagation.
"""

import logging

from utilities.assertions import condition_assertion
from utilities.conditions import (
    get_labels,
    get_name,
    get_status,
    no_resources_added,
    resource_count_is,
    run_reached_status,
)
from utilities.constants import (
    PIPELINE_LABEL,
    PIPELINE_RUN_LABEL,
    TASK_LABEL,
    TASK_RUN_LABEL,
    TIMEOUT_30SEC,
    RunStatus,
)
from utilities.exceptions import ConditionTimeoutError, LabelPropagationError
from utilities.poller import RUN_POLICY, PollPolicy, wait_for, wait_for_run
from utilities.resources import ResourceKind, ResourceListRef, ResourceRef

LOGGER = logging.getLogger(__name__)

RUN_STATUSES = (RunStatus.SUCCESSFUL, RunStatus.FAILURE, RunStatus.TIMEOUT, RunStatus.CANCELLED)
RUN_KINDS = (ResourceKind.PIPELINE_RUN, ResourceKind.TASK_RUN)


def _verify_run_kind(kind):
    if kind not in RUN_KINDS:
        raise ValueError(f"{kind.value} is not a run kind")


def run_count_policy(timeout):
    return PollPolicy(interval=min(RUN_POLICY.interval, timeout), timeout=timeout)


def wait_for_run_status(accessor, kind, name, namespace, status, stop_event=None):
    """
    Wait for a PipelineRun/TaskRun to finish with `status`.

    A run that finishes with any other status ends the wait at once with a ConditionEvaluationError.

    Args:
        accessor (ClusterResourceAccessor): cluster accessor.
        kind (ResourceKind): PIPELINE_RUN or TASK_RUN.
        name (str): run name.
        namespace (str): run namespace.
        status (str): one of RUN_STATUSES.

    Returns:
        ObservedState: the finished run.
    """
    _verify_run_kind(kind=kind)
    if status not in RUN_STATUSES:
        raise ValueError(f"Unknown run status {status}, expected one of: {RUN_STATUSES}")

    return wait_for_run(
        accessor=accessor,
        ref=ResourceRef(kind=kind, name=name, namespace=namespace),
        predicate=run_reached_status(expected_status=status),
        stop_event=stop_event,
    )


def wait_for_run_count(accessor, kind, namespace, count, timeout, stop_event=None):
    """
    Wait until exactly `count` runs of `kind` are present in `namespace`.

    Args:
        timeout (int): seconds to wait for the runs to show up.

    Returns:
        ObservedState: the listed runs.
    """
    _verify_run_kind(kind=kind)
    return wait_for(
        accessor=accessor,
        ref=ResourceListRef(kind=kind, namespace=namespace),
        predicate=resource_count_is(count=count),
        policy=run_count_policy(timeout=timeout),
        stop_event=stop_event,
    )


def assert_number_of_pipeline_runs(accessor, namespace, count, timeout, stop_event=None):
    LOGGER.info(f"Verifying {count} PipelineRun(s) are present in {namespace} within {timeout} seconds")
    with condition_assertion(expectation=f"{count} PipelineRun(s) present within {timeout} seconds"):
        return wait_for_run_count(
            accessor=accessor,
            kind=ResourceKind.PIPELINE_RUN,
            namespace=namespace,
            count=count,
            timeout=timeout,
            stop_event=stop_event,
        )


def assert_number_of_task_runs(accessor, namespace, count, timeout, stop_event=None):
    LOGGER.info(f"Verifying {count} TaskRun(s) are present in {namespace} within {timeout} seconds")
    with condition_assertion(expectation=f"{count} TaskRun(s) present within {timeout} seconds"):
        return wait_for_run_count(
            accessor=accessor,
            kind=ResourceKind.TASK_RUN,
            namespace=namespace,
            count=count,
            timeout=timeout,
            stop_event=stop_event,
        )


def assert_no_new_runs_created(accessor, namespace, kind=ResourceKind.PIPELINE_RUN, timeout=TIMEOUT_30SEC):
    """
    Verify no run of `kind` is created in `namespace` during the next `timeout` seconds.

    Returns:
        ObservedState: the runs listed last, no more than when the check started.
    """
    _verify_run_kind(kind=kind)
    ref = ResourceListRef(kind=kind, namespace=namespace)
    existing_count = len(accessor.fetch(ref))
    LOGGER.info(f"Verifying no {kind.value} is created in {namespace} for {timeout} seconds, found: {existing_count}")
    with condition_assertion(expectation=f"no new {kind.value} created in {namespace}"):
        try:
            wait_for(
                accessor=accessor,
                ref=ref,
                predicate=no_resources_added(expected_count=existing_count),
                policy=run_count_policy(timeout=timeout),
            )
        except ConditionTimeoutError as exp:
            return exp.observed


def missing_labels(expected, actual):
    return {key: value for key, value in expected.items() if actual.get(key) != value}


def _verify_labels(resource_name, expected, actual):
    missing = missing_labels(expected=expected, actual=actual)
    if missing:
        raise LabelPropagationError(resource_name=resource_name, missing_labels=missing)
    LOGGER.info(f"{resource_name} carries the expected labels")


def _referenced_name(run, ref_field):
    return ((run.get("spec") or {}).get(ref_field) or {}).get("name")


def verify_pipeline_run_labels(accessor, name, namespace):
    """
    Verify the PipelineRun labels its pipeline and that its labels are propagated to its TaskRuns.

    Returns:
        list: names of the verified TaskRuns.
    """
    pipeline_run = accessor.fetch(ResourceRef(kind=ResourceKind.PIPELINE_RUN, name=name, namespace=namespace))
    labels = get_labels(resource=pipeline_run)
    pipeline_name = _referenced_name(run=pipeline_run, ref_field="pipelineRef")
    if pipeline_name:
        _verify_labels(resource_name=f"PipelineRun {name}", expected={PIPELINE_LABEL: pipeline_name}, actual=labels)

    expected = {**labels, PIPELINE_RUN_LABEL: name}
    task_runs = accessor.fetch(
        ResourceListRef(kind=ResourceKind.TASK_RUN, namespace=namespace, label_selector=f"{PIPELINE_RUN_LABEL}={name}")
    )
    task_run_names = []
    for task_run in task_runs:
        task_run_name = get_name(resource=task_run)
        _verify_labels(
            resource_name=f"TaskRun {task_run_name}", expected=expected, actual=get_labels(resource=task_run)
        )
        task_run_names.append(task_run_name)
    return task_run_names


def verify_task_run_label_propagation(accessor, name, namespace):
    """
    Verify the TaskRun labels its task and that its labels are propagated to the pod running it.
    """
    task_run = accessor.fetch(ResourceRef(kind=ResourceKind.TASK_RUN, name=name, namespace=namespace))
    labels = get_labels(resource=task_run)
    task_name = _referenced_name(run=task_run, ref_field="taskRef")
    if task_name:
        _verify_labels(resource_name=f"TaskRun {name}", expected={TASK_LABEL: task_name}, actual=labels)

    pod_name = get_status(task_run).get("podName")
    if not pod_name:
        raise ValueError(f"TaskRun {name} has no pod yet")
    pod = accessor.fetch(ResourceRef(kind=ResourceKind.POD, name=pod_name, namespace=namespace))
    _verify_labels(
        resource_name=f"Pod {pod_name}", expected={**labels, TASK_RUN_LABEL: name}, actual=get_labels(resource=pod)
    )


def validate_pipeline_run(accessor, name, status, namespace, label_check=False, stop_event=None):
    LOGGER.info(f"Validating PipelineRun {name} reaches status {status}")
    with condition_assertion(expectation=f"PipelineRun {name} is {status}"):
        observed = wait_for_run_status(
            accessor=accessor,
            kind=ResourceKind.PIPELINE_RUN,
            name=name,
            namespace=namespace,
            status=status,
            stop_event=stop_event,
        )
    if label_check:
        verify_pipeline_run_labels(accessor=accessor, name=name, namespace=namespace)
    return observed


def validate_task_run(accessor, name, status, namespace, stop_event=None):
    LOGGER.info(f"Validating TaskRun {name} reaches status {status}")
    with condition_assertion(expectation=f"TaskRun {name} is {status}"):
        return wait_for_run_status(
            accessor=accessor,
            kind=ResourceKind.TASK_RUN,
            name=name,
            namespace=namespace,
            status=status,
            stop_event=stop_event,
        )
