"""
Tekton operator custom resources: TektonConfig and the component CRs it owns, and the TektonAddon.
"""

import logging

from kubernetes.dynamic import DynamicClient
from ocp_resources.deployment import Deployment

from utilities.assertions import condition_assertion
from utilities.conditions import ABSENT, ALL_CONDITIONS_TRUE, EXISTS, READY
from utilities.constants import (
    PIPELINE_CONTROLLER_NAME,
    PIPELINE_WEBHOOK_NAME,
    TRIGGER_CONTROLLER_NAME,
    TRIGGER_WEBHOOK_NAME,
)
from utilities.exceptions import ResourceLeftoverError
from utilities.poller import wait_slow
from utilities.resources import ResourceKind, ResourceRef
from utilities.workflow import Stage, Workflow

LOGGER = logging.getLogger(__name__)


def tekton_addon_ref(names):
    return ResourceRef(kind=ResourceKind.TEKTON_ADDON, name=names.tekton_addon)


def ensure_tekton_addon_exists(accessor, names, stop_event=None):
    """
    Wait for the TektonAddon CR, created by the operator, to appear.

    Returns:
        ObservedState: the addon as first observed.
    """
    return wait_slow(accessor=accessor, ref=tekton_addon_ref(names=names), predicate=EXISTS, stop_event=stop_event)


def wait_for_tekton_addon_state(accessor, name, predicate, stop_event=None):
    return wait_slow(
        accessor=accessor,
        ref=ResourceRef(kind=ResourceKind.TEKTON_ADDON, name=name),
        predicate=predicate,
        stop_event=stop_event,
    )


def ensure_tekton_addons_status_installed(accessor, names, stop_event=None):
    with condition_assertion(expectation=f"TektonAddon {names.tekton_addon} install succeeded"):
        ensure_tekton_addon_exists(accessor=accessor, names=names, stop_event=stop_event)
        wait_for_tekton_addon_state(
            accessor=accessor, name=names.tekton_addon, predicate=ALL_CONDITIONS_TRUE, stop_event=stop_event
        )


def assert_tekton_addon_cr_ready_status(accessor, names, stop_event=None):
    with condition_assertion(expectation=f"TektonAddonCR {names.tekton_addon} reaches the READY status"):
        wait_for_tekton_addon_state(accessor=accessor, name=names.tekton_addon, predicate=READY, stop_event=stop_event)


def verify_no_tekton_addon_cr(accessor):
    addons = accessor.list_resources(kind=ResourceKind.TEKTON_ADDON)
    if addons:
        raise ResourceLeftoverError(kind=ResourceKind.TEKTON_ADDON.value, names=[addon.name for addon in addons])


def tekton_addon_cr_delete(accessor, names, stop_event=None):
    """
    Delete the TektonAddon CR and verify no TektonAddon is left, so cluster-scoped addon resources are removed.
    """
    ref = tekton_addon_ref(names=names)
    LOGGER.info(f"Deleting TektonAddon {ref.name}")
    accessor.resource(ref=ref).delete()
    with condition_assertion(expectation=f"TektonAddon {ref.name} is deleted"):
        wait_slow(accessor=accessor, ref=ref, predicate=ABSENT, stop_event=stop_event)
    verify_no_tekton_addon_cr(accessor=accessor)


def tekton_operator_crs(names):
    return [
        ResourceRef(kind=ResourceKind.TEKTON_CONFIG, name=names.tekton_config),
        ResourceRef(kind=ResourceKind.TEKTON_PIPELINE, name=names.tekton_pipeline),
        ResourceRef(kind=ResourceKind.TEKTON_TRIGGER, name=names.tekton_trigger),
        ResourceRef(kind=ResourceKind.TEKTON_ADDON, name=names.tekton_addon),
    ]


def wait_for_tekton_operator_crs_ready(accessor, names, stop_event=None):
    """
    Wait for TektonConfig and then each component CR it owns to report Ready, in that order.

    Returns:
        ObservedState: the last CR (TektonAddon) as observed when ready.
    """

    def _wait_ready(ref):
        return lambda _: wait_slow(accessor=accessor, ref=ref, predicate=READY, stop_event=stop_event)

    workflow = Workflow(
        name="tekton operator custom resources ready",
        stages=[Stage(name=f"wait for {ref} ready", run=_wait_ready(ref=ref)) for ref in tekton_operator_crs(names)],
    )
    return workflow.run()


def assert_tekton_operator_crs_ready(accessor, names, stop_event=None):
    with condition_assertion(expectation="Tekton operator custom resources are ready"):
        wait_for_tekton_operator_crs_ready(accessor=accessor, names=names, stop_event=stop_event)


def verify_operator_deployments_available(client: DynamicClient, namespace: str) -> None:
    """Verify the pipeline and trigger controller/webhook Deployments are available.

    Args:
        client (DynamicClient): Kubernetes dynamic client used to query cluster resources.
        namespace (str): namespace the operator deploys its components to.

    Raises:
        ResourceNotFoundError: If one of the deployments is not found.
        TimeoutExpiredError: If a deployment is not available within the timeout period.
    """
    for deployment_name in (
        PIPELINE_CONTROLLER_NAME,
        PIPELINE_WEBHOOK_NAME,
        TRIGGER_CONTROLLER_NAME,
        TRIGGER_WEBHOOK_NAME,
    ):
        LOGGER.info(f"Verifying deployment {namespace}/{deployment_name} is available")
        Deployment(name=deployment_name, namespace=namespace, client=client, ensure_exists=True).wait_for_replicas()
