"""
Cluster resources watched by the harness and the accessor used to fetch them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import NotFoundError, ResourceNotFoundError
from ocp_resources.cluster_service_version import ClusterServiceVersion
from ocp_resources.installplan import InstallPlan
from ocp_resources.pipeline_run import PipelineRun
from ocp_resources.pod import Pod
from ocp_resources.resource import Resource
from ocp_resources.subscription import Subscription
from ocp_resources.task_run import TaskRun

from utilities.constants import TEKTON_OPERATOR_API_GROUP

LOGGER = logging.getLogger(__name__)


class TektonConfig(Resource):
    api_group = TEKTON_OPERATOR_API_GROUP


class TektonPipeline(Resource):
    api_group = TEKTON_OPERATOR_API_GROUP


class TektonTrigger(Resource):
    api_group = TEKTON_OPERATOR_API_GROUP


class TektonAddon(Resource):
    api_group = TEKTON_OPERATOR_API_GROUP


class ResourceKind(Enum):
    SUBSCRIPTION = "subscription"
    CLUSTER_SERVICE_VERSION = "clusterserviceversion"
    INSTALL_PLAN = "installplan"
    TEKTON_CONFIG = "tektonconfig"
    TEKTON_PIPELINE = "tektonpipeline"
    TEKTON_TRIGGER = "tektontrigger"
    TEKTON_ADDON = "tektonaddon"
    PIPELINE_RUN = "pipelinerun"
    TASK_RUN = "taskrun"
    POD = "pod"

    @property
    def resource_class(self):
        return KIND_RESOURCE_CLASSES[self]

    @property
    def namespaced(self):
        return self not in CLUSTER_SCOPED_KINDS


KIND_RESOURCE_CLASSES = {
    ResourceKind.SUBSCRIPTION: Subscription,
    ResourceKind.CLUSTER_SERVICE_VERSION: ClusterServiceVersion,
    ResourceKind.INSTALL_PLAN: InstallPlan,
    ResourceKind.TEKTON_CONFIG: TektonConfig,
    ResourceKind.TEKTON_PIPELINE: TektonPipeline,
    ResourceKind.TEKTON_TRIGGER: TektonTrigger,
    ResourceKind.TEKTON_ADDON: TektonAddon,
    ResourceKind.PIPELINE_RUN: PipelineRun,
    ResourceKind.TASK_RUN: TaskRun,
    ResourceKind.POD: Pod,
}
CLUSTER_SCOPED_KINDS = {
    ResourceKind.TEKTON_CONFIG,
    ResourceKind.TEKTON_PIPELINE,
    ResourceKind.TEKTON_TRIGGER,
    ResourceKind.TEKTON_ADDON,
}


@dataclass(frozen=True)
class ResourceRef:
    kind: ResourceKind
    name: str
    namespace: str | None = None

    def __post_init__(self):
        if not self.name:
            raise ValueError(f"{self.kind.value} reference requires a name")
        if self.kind.namespaced and not self.namespace:
            raise ValueError(f"{self.kind.value} {self.name} is namespaced, namespace is required")
        if not self.kind.namespaced and self.namespace:
            raise ValueError(f"{self.kind.value} {self.name} is cluster-scoped, namespace must not be set")

    def __str__(self):
        if self.namespace:
            return f"{self.kind.value} {self.namespace}/{self.name}"
        return f"{self.kind.value} {self.name}"


@dataclass(frozen=True)
class ResourceListRef:
    """Every resource of a kind in a namespace, optionally narrowed by a label selector."""

    kind: ResourceKind
    namespace: str | None = None
    label_selector: str = ""

    def __str__(self):
        where = f" in {self.namespace}" if self.namespace else ""
        selected = f" with labels {self.label_selector}" if self.label_selector else ""
        return f"{self.kind.value} list{where}{selected}"


def is_not_found(error):
    return isinstance(error, (NotFoundError, ResourceNotFoundError))


class ClusterResourceAccessor:
    """
    Fetch the live representation of a resource from the cluster.

    `fetch` raises the kubernetes client error as-is; `NotFoundError` when the object does not exist and
    `ResourceNotFoundError` when its kind is not served (CRD not installed yet).
    A ResourceListRef is fetched as the list of raw matching objects, empty when none match.
    """

    def __init__(self, client: DynamicClient):
        self.client = client

    def resource(self, ref: ResourceRef) -> Resource:
        kwargs = {"client": self.client, "name": ref.name}
        if ref.namespace:
            kwargs["namespace"] = ref.namespace
        return ref.kind.resource_class(**kwargs)

    def fetch(self, ref: ResourceRef | ResourceListRef):
        if isinstance(ref, ResourceListRef):
            return self.list_resources(
                kind=ref.kind, namespace=ref.namespace, label_selector=ref.label_selector, raw=True
            )
        return self.resource(ref=ref).instance

    def list_resources(
        self, kind: ResourceKind, namespace: str | None = None, label_selector: str = "", raw: bool = False
    ) -> list:
        kwargs = {"namespace": namespace} if namespace else {}
        if label_selector:
            kwargs["label_selector"] = label_selector
        if raw:
            kwargs["raw"] = True
        return list(kind.resource_class.get(dyn_client=self.client, **kwargs))
