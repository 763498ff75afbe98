"""
Operator lifecycle through OLM: subscribe, upgrade and uninstall the operator under test.

Each install/upgrade flow is a Workflow of dependent waits: the subscription must report an
installed CSV before that CSV can be waited on.
"""

import logging

from kubernetes.dynamic.exceptions import ResourceNotFoundError
from ocp_resources.resource import ResourceEditor
from ocp_resources.subscription import Subscription

from utilities.conditions import (
    ABSENT,
    INSTALL_PLAN_COMPLETE,
    INSTALL_PLAN_REF_PRESENT,
    INSTALLED_CSV_PRESENT,
    PHASE_SUCCEEDED_CONDITION,
    get_install_plan_name,
    get_status,
    install_plan_ref_changed,
    installed_csv_changed,
)
from utilities.constants import INSTALL_PLAN_AUTOMATIC
from utilities.poller import wait_for_subscription, wait_slow
from utilities.resources import ClusterResourceAccessor, ResourceKind, ResourceRef
from utilities.workflow import Stage, Workflow

LOGGER = logging.getLogger(__name__)


def subscription_ref(name, namespace):
    return ResourceRef(kind=ResourceKind.SUBSCRIPTION, name=name, namespace=namespace)


def create_subscription(
    client,
    subscription_name,
    namespace_name,
    catalogsource_name,
    catalogsource_namespace,
    channel_name,
    install_plan_approval=INSTALL_PLAN_AUTOMATIC,
):
    """
    Create a Subscription to the operator package named like the subscription.

    Returns:
        Subscription: the created subscription, left in place at the end of the test.
    """
    LOGGER.info(
        f"Create subscription {subscription_name} on namespace {namespace_name}: "
        f"channel={channel_name} source={catalogsource_name} approval={install_plan_approval}"
    )
    with Subscription(
        client=client,
        name=subscription_name,
        package_name=subscription_name,
        namespace=namespace_name,
        channel=channel_name,
        install_plan_approval=install_plan_approval,
        source=catalogsource_name,
        source_namespace=catalogsource_namespace,
        teardown=False,
    ) as subscription:
        return subscription


def get_subscription(client, name, namespace):
    subscription = Subscription(client=client, name=name, namespace=namespace)
    if subscription.exists:
        return subscription
    raise ResourceNotFoundError(f"Subscription {name} not found in namespace: {namespace}")


def update_subscription_channel(subscription, channel):
    LOGGER.info(f"Update subscription {subscription.name} channel to {channel}")
    ResourceEditor(patches={subscription: {"spec": {"channel": channel}}}).update()
    return subscription


def get_installed_csv_name(subscription_state):
    return get_status(subscription_state.resource).get("installedCSV")


def approve_install_plan(accessor, subscription_state, stop_event=None):
    install_plan_name = get_install_plan_name(resource=subscription_state.resource)
    install_plan_ref = ResourceRef(
        kind=ResourceKind.INSTALL_PLAN, name=install_plan_name, namespace=subscription_state.ref.namespace
    )
    LOGGER.info(f"Approve install plan {install_plan_name}")
    ResourceEditor(patches={accessor.resource(ref=install_plan_ref): {"spec": {"approved": True}}}).update()
    wait_slow(accessor=accessor, ref=install_plan_ref, predicate=INSTALL_PLAN_COMPLETE, stop_event=stop_event)
    return subscription_state


def operator_ready_stages(
    accessor,
    ref,
    installed_csv_condition=INSTALLED_CSV_PRESENT,
    install_plan_condition=INSTALL_PLAN_REF_PRESENT,
    manual_approval=False,
    stop_event=None,
):
    """
    Stages waiting for the subscription's installed CSV to appear and then to succeed.

    Args:
        accessor (ClusterResourceAccessor): cluster accessor.
        ref (ResourceRef): the subscription.
        installed_csv_condition (Condition): when the installed CSV reference counts as present.
        install_plan_condition (Condition): when the install plan reference to approve counts as present.
        manual_approval (bool): approve the subscription's install plan before waiting for the CSV.
        stop_event (threading.Event, optional): cancels the waits.

    Returns:
        list: Stage objects; the last one returns the subscription's observed state.
    """

    def _wait_for_install_plan(_):
        return wait_for_subscription(
            accessor=accessor, ref=ref, predicate=install_plan_condition, stop_event=stop_event
        )

    def _approve_install_plan(subscription_state):
        return approve_install_plan(accessor=accessor, subscription_state=subscription_state, stop_event=stop_event)

    def _wait_for_installed_csv(_):
        return wait_for_subscription(
            accessor=accessor, ref=ref, predicate=installed_csv_condition, stop_event=stop_event
        )

    def _wait_for_csv_succeeded(subscription_state):
        csv_ref = ResourceRef(
            kind=ResourceKind.CLUSTER_SERVICE_VERSION,
            name=get_installed_csv_name(subscription_state=subscription_state),
            namespace=ref.namespace,
        )
        wait_for_subscription(
            accessor=accessor, ref=csv_ref, predicate=PHASE_SUCCEEDED_CONDITION, stop_event=stop_event
        )
        return subscription_state

    stages = []
    if manual_approval:
        stages.extend([
            Stage(name="wait for install plan", run=_wait_for_install_plan),
            Stage(name="approve install plan", run=_approve_install_plan),
        ])
    stages.extend([
        Stage(name="wait for installed CSV", run=_wait_for_installed_csv),
        Stage(name="wait for CSV succeeded", run=_wait_for_csv_succeeded),
    ])
    return stages


def subscribe_and_wait_for_operator_to_be_ready(client, environment_config, stop_event=None):
    """
    Subscribe to the operator and wait for its CSV to succeed.

    Returns:
        ObservedState: the subscription as last observed, with its installed CSV set.
    """
    environment_config.require("subscription_name", "channel", "catalog_source")
    accessor = ClusterResourceAccessor(client=client)
    ref = subscription_ref(name=environment_config.subscription_name, namespace=environment_config.operators_namespace)

    def _create_subscription(_):
        return create_subscription(
            client=client,
            subscription_name=ref.name,
            namespace_name=ref.namespace,
            catalogsource_name=environment_config.catalog_source,
            catalogsource_namespace=environment_config.marketplace_namespace,
            channel_name=environment_config.channel,
            install_plan_approval=environment_config.install_plan,
        )

    workflow = Workflow(
        name=f"subscribe {ref.name}",
        stages=[
            Stage(name="create subscription", run=_create_subscription),
            *operator_ready_stages(
                accessor=accessor,
                ref=ref,
                manual_approval=environment_config.install_plan != INSTALL_PLAN_AUTOMATIC,
                stop_event=stop_event,
            ),
        ],
    )
    return workflow.run()


def update_subscription_and_wait_for_operator_to_be_ready(client, environment_config, channel, stop_event=None):
    """
    Move the subscription to `channel` and wait for the replacing CSV to succeed.

    Returns:
        ObservedState: the subscription as last observed, with the new installed CSV set.
    """
    accessor = ClusterResourceAccessor(client=client)
    ref = subscription_ref(name=environment_config.subscription_name, namespace=environment_config.operators_namespace)
    subscription = get_subscription(client=client, name=ref.name, namespace=ref.namespace)
    # Both references still point at the current install until OLM resolves the new channel
    previous_csv = get_status(subscription.instance).get("installedCSV")
    previous_plan = get_install_plan_name(resource=subscription.instance)
    LOGGER.info(f"Upgrading {ref.name} from CSV {previous_csv} (install plan {previous_plan}) to channel {channel}")
    installed_csv_condition = INSTALLED_CSV_PRESENT
    if previous_csv:
        installed_csv_condition = installed_csv_changed(previous_csv=previous_csv)
    install_plan_condition = INSTALL_PLAN_REF_PRESENT
    if previous_plan:
        install_plan_condition = install_plan_ref_changed(previous_plan=previous_plan)

    workflow = Workflow(
        name=f"upgrade {ref.name}",
        stages=[
            Stage(
                name="update subscription channel",
                run=lambda _: update_subscription_channel(subscription=subscription, channel=channel),
            ),
            *operator_ready_stages(
                accessor=accessor,
                ref=ref,
                installed_csv_condition=installed_csv_condition,
                install_plan_condition=install_plan_condition,
                manual_approval=environment_config.install_plan != INSTALL_PLAN_AUTOMATIC,
                stop_event=stop_event,
            ),
        ],
    )
    return workflow.run()


def operator_cleanup(client, environment_config, stop_event=None):
    """
    Uninstall the operator: delete the CSVs, the subscription's install plan and the subscriptions
    of the operators namespace, then wait for all of them to be gone.
    """
    accessor = ClusterResourceAccessor(client=client)
    namespace = environment_config.operators_namespace
    subscription = get_subscription(client=client, name=environment_config.subscription_name, namespace=namespace)
    subscription_status = get_status(subscription.instance)
    install_plan_name = (subscription_status.get("installPlanRef") or subscription_status.get("installplan") or {}).get(
        "name"
    )

    deleted_refs = []
    for csv in accessor.list_resources(kind=ResourceKind.CLUSTER_SERVICE_VERSION, namespace=namespace):
        LOGGER.info(f"Deleting CSV {csv.name}")
        csv.delete()
        deleted_refs.append(ResourceRef(kind=ResourceKind.CLUSTER_SERVICE_VERSION, name=csv.name, namespace=namespace))

    if install_plan_name:
        install_plan_ref = ResourceRef(kind=ResourceKind.INSTALL_PLAN, name=install_plan_name, namespace=namespace)
        LOGGER.info(f"Deleting InstallPlan {install_plan_name}")
        accessor.resource(ref=install_plan_ref).delete()
        deleted_refs.append(install_plan_ref)

    for _subscription in accessor.list_resources(kind=ResourceKind.SUBSCRIPTION, namespace=namespace):
        LOGGER.info(f"Deleting Subscription {_subscription.name}")
        _subscription.delete()
        deleted_refs.append(subscription_ref(name=_subscription.name, namespace=namespace))

    for ref in deleted_refs:
        wait_slow(accessor=accessor, ref=ref, predicate=ABSENT, stop_event=stop_event)
