"""
Pytest conftest file for OpenShift Pipelines release tests
"""

import logging

import pytest
from ocp_resources.resource import get_client
from pytest_testconfig import config as py_config

from utilities.config import build_environment_config, build_resource_names
from utilities.resources import ClusterResourceAccessor

LOGGER = logging.getLogger(__name__)


@pytest.fixture(scope="session")
def admin_client(environment_config):
    """
    Get DynamicClient
    """
    if environment_config.cluster:
        LOGGER.info(f"Using cluster context {environment_config.cluster} from {environment_config.kubeconfig}")
        return get_client(config_file=environment_config.kubeconfig, context=environment_config.cluster)
    return get_client(config_file=environment_config.kubeconfig)


@pytest.fixture(scope="session")
def environment_config(request):
    return build_environment_config(pytest_config=request.config, test_config=py_config)


@pytest.fixture(scope="session")
def resource_names():
    return build_resource_names(test_config=py_config)


@pytest.fixture(scope="session")
def accessor(admin_client):
    return ClusterResourceAccessor(client=admin_client)


@pytest.fixture(scope="session")
def runs_namespace():
    return py_config["runs_namespace"]
