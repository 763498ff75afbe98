"""Unit tests for resources module"""

from unittest.mock import MagicMock, patch

import pytest
from kubernetes.dynamic.exceptions import ResourceNotFoundError
from ocp_resources.cluster_service_version import ClusterServiceVersion
from ocp_resources.subscription import Subscription

from utilities.resources import (
    ClusterResourceAccessor,
    ResourceKind,
    ResourceListRef,
    ResourceRef,
    TektonAddon,
    TektonConfig,
    is_not_found,
)


class TestResourceKind:
    """Test cases for ResourceKind"""

    def test_resource_class(self):
        """Test kinds map to their resource classes"""
        assert ResourceKind.SUBSCRIPTION.resource_class is Subscription
        assert ResourceKind.CLUSTER_SERVICE_VERSION.resource_class is ClusterServiceVersion
        assert ResourceKind.TEKTON_ADDON.resource_class is TektonAddon

    def test_every_kind_has_class(self):
        """Test every kind is mapped"""
        for kind in ResourceKind:
            assert kind.resource_class is not None

    def test_namespaced(self):
        """Test Tekton operator CRs are cluster scoped"""
        assert ResourceKind.PIPELINE_RUN.namespaced is True
        assert ResourceKind.TEKTON_CONFIG.namespaced is False

    def test_tekton_api_group(self):
        """Test Tekton operator CRs use the operator API group"""
        assert TektonConfig.api_group == "operator.tekton.dev"


class TestResourceRef:
    """Test cases for ResourceRef"""

    def test_namespaced_str(self):
        """Test a namespaced reference string"""
        ref = ResourceRef(kind=ResourceKind.SUBSCRIPTION, name="pipelines", namespace="openshift-operators")
        assert str(ref) == "subscription openshift-operators/pipelines"

    def test_cluster_scoped_str(self):
        """Test a cluster scoped reference string"""
        assert str(ResourceRef(kind=ResourceKind.TEKTON_CONFIG, name="config")) == "tektonconfig config"

    def test_name_required(self):
        """Test a reference without name is rejected"""
        with pytest.raises(ValueError, match="requires a name"):
            ResourceRef(kind=ResourceKind.TEKTON_CONFIG, name="")

    def test_namespace_required(self):
        """Test a namespaced kind without namespace is rejected"""
        with pytest.raises(ValueError, match="namespace is required"):
            ResourceRef(kind=ResourceKind.TASK_RUN, name="run")

    def test_namespace_forbidden(self):
        """Test a cluster scoped kind with namespace is rejected"""
        with pytest.raises(ValueError, match="cluster-scoped"):
            ResourceRef(kind=ResourceKind.TEKTON_ADDON, name="addon", namespace="openshift-pipelines")

    def test_hashable(self):
        """Test equal references are interchangeable"""
        first = ResourceRef(kind=ResourceKind.TEKTON_ADDON, name="addon")
        second = ResourceRef(kind=ResourceKind.TEKTON_ADDON, name="addon")
        assert first == second
        assert len({first, second}) == 1


class TestErrorClassification:
    """Test cases for is_not_found function"""

    def test_not_found(self, not_found):
        """Test NotFoundError is not found"""
        assert is_not_found(error=not_found()) is True

    def test_resource_kind_not_served(self):
        """Test ResourceNotFoundError (kind not served) is not found"""
        assert is_not_found(error=ResourceNotFoundError("No matches found for tektonaddon")) is True

    def test_other_error(self):
        """Test other errors are not not-found"""
        assert is_not_found(error=RuntimeError("forbidden")) is False


class TestClusterResourceAccessor:
    """Test cases for ClusterResourceAccessor"""

    @patch("utilities.resources.KIND_RESOURCE_CLASSES")
    def test_fetch_namespaced(self, mock_classes):
        """Test fetch builds the resource with client, name and namespace and returns its instance"""
        mock_class = MagicMock()
        mock_classes.__getitem__.return_value = mock_class
        client = MagicMock()
        ref = ResourceRef(kind=ResourceKind.PIPELINE_RUN, name="build-run", namespace="test-ns")

        result = ClusterResourceAccessor(client=client).fetch(ref=ref)

        mock_class.assert_called_once_with(client=client, name="build-run", namespace="test-ns")
        assert result is mock_class.return_value.instance

    @patch("utilities.resources.KIND_RESOURCE_CLASSES")
    def test_resource_cluster_scoped(self, mock_classes):
        """Test a cluster scoped resource is built without namespace"""
        mock_class = MagicMock()
        mock_classes.__getitem__.return_value = mock_class
        client = MagicMock()

        ClusterResourceAccessor(client=client).resource(ref=ResourceRef(kind=ResourceKind.TEKTON_ADDON, name="addon"))

        mock_class.assert_called_once_with(client=client, name="addon")

    @patch("utilities.resources.KIND_RESOURCE_CLASSES")
    def test_list_resources(self, mock_classes):
        """Test listing resources of a kind in a namespace"""
        mock_class = MagicMock()
        mock_class.get.return_value = iter(["csv-1", "csv-2"])
        mock_classes.__getitem__.return_value = mock_class
        client = MagicMock()

        result = ClusterResourceAccessor(client=client).list_resources(
            kind=ResourceKind.CLUSTER_SERVICE_VERSION, namespace="openshift-operators"
        )

        assert result == ["csv-1", "csv-2"]
        mock_class.get.assert_called_once_with(dyn_client=client, namespace="openshift-operators")

    @patch("utilities.resources.KIND_RESOURCE_CLASSES")
    def test_list_resources_cluster_scoped(self, mock_classes):
        """Test listing a cluster scoped kind without namespace"""
        mock_class = MagicMock()
        mock_class.get.return_value = iter([])
        mock_classes.__getitem__.return_value = mock_class
        client = MagicMock()

        assert ClusterResourceAccessor(client=client).list_resources(kind=ResourceKind.TEKTON_ADDON) == []
        mock_class.get.assert_called_once_with(dyn_client=client)

    @patch("utilities.resources.KIND_RESOURCE_CLASSES")
    def test_fetch_list(self, mock_classes):
        """Test a list reference is fetched as the raw objects matching its label selector"""
        mock_class = MagicMock()
        mock_class.get.return_value = iter([{"metadata": {"name": "build-run-compile"}}])
        mock_classes.__getitem__.return_value = mock_class
        client = MagicMock()
        ref = ResourceListRef(kind=ResourceKind.TASK_RUN, namespace="test-ns", label_selector="app=demo")

        result = ClusterResourceAccessor(client=client).fetch(ref=ref)

        assert result == [{"metadata": {"name": "build-run-compile"}}]
        mock_class.get.assert_called_once_with(
            dyn_client=client, namespace="test-ns", label_selector="app=demo", raw=True
        )


class TestResourceListRef:
    """Test cases for ResourceListRef"""

    def test_str(self):
        """Test a list reference string names the namespace and the label selector"""
        ref = ResourceListRef(kind=ResourceKind.TASK_RUN, namespace="test-ns", label_selector="app=demo")
        assert str(ref) == "taskrun list in test-ns with labels app=demo"

    def test_str_all_namespaces(self):
        """Test a list reference without namespace or selector"""
        assert str(ResourceListRef(kind=ResourceKind.TEKTON_ADDON)) == "tektonaddon list"
