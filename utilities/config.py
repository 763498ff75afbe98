"""
Run configuration, built once per test session and passed explicitly to whoever needs it.

Values come from pytest command line options; each option defaults to an environment variable
(see ENVIRONMENT_OPTIONS). Static cluster layout (namespaces, custom resource names) comes from
the pytest-testconfig file, tests/global_config.py.
"""

import logging
import os
from dataclasses import dataclass, fields

from utilities.constants import (
    INSTALL_PLAN_AUTOMATIC,
    MARKETPLACE_NAMESPACE,
    OPERATORS_NAMESPACE,
    TARGET_NAMESPACE,
    TEKTON_ADDON_NAME,
    TEKTON_CONFIG_NAME,
    TEKTON_DASHBOARD_NAME,
    TEKTON_PIPELINE_NAME,
    TEKTON_TRIGGER_NAME,
)
from utilities.exceptions import MissingEnvironmentVariableError

LOGGER = logging.getLogger(__name__)

# pytest option dest: (environment variable, help)
ENVIRONMENT_OPTIONS = {
    "docker_repo": ("KO_DOCKER_REPO", "Docker repo the test images were uploaded to"),
    "channel": ("CHANNEL", "Channel to subscribe the operator from"),
    "upgrade_channel": ("UPGRADE_CHANNEL", "Channel to move the subscription to when upgrading"),
    "catalog_source": ("CATALOG_SOURCE", "CatalogSource to subscribe the operator from"),
    "subscription_name": ("SUBSCRIPTION_NAME", "Subscription (and package) name of the operator"),
    "install_plan": ("INSTALL_PLAN", "Install plan approval of the subscription"),
    "operator_version": ("CSV_VERSION", "Operator version, appended to --csv"),
    "csv": ("CSV", "CSV name prefix of the operator, e.g. openshift-pipelines-operator."),
    "tkn_version": ("TKN_VERSION", "tkn CLI version to download"),
}


def get_default_kubeconfig():
    kubeconfig = os.environ.get("KUBECONFIG")
    if kubeconfig:
        return kubeconfig
    return os.path.join(os.path.expanduser("~"), ".kube", "config")


def get_option_default(dest):
    env_var, _ = ENVIRONMENT_OPTIONS[dest]
    return os.environ.get(env_var, "")


@dataclass(frozen=True)
class EnvironmentConfig:
    cluster: str = ""
    kubeconfig: str = ""
    docker_repo: str = ""
    channel: str = ""
    upgrade_channel: str = ""
    catalog_source: str = ""
    subscription_name: str = ""
    install_plan: str = INSTALL_PLAN_AUTOMATIC
    operator_version: str = ""
    csv: str = ""
    tkn_version: str = ""
    operators_namespace: str = OPERATORS_NAMESPACE
    marketplace_namespace: str = MARKETPLACE_NAMESPACE
    target_namespace: str = TARGET_NAMESPACE

    @property
    def csv_name(self):
        return f"{self.csv}{self.operator_version}"

    def require(self, *names):
        """
        Verify the given settings are set.

        Raises:
            MissingEnvironmentVariableError: listing every missing setting with its environment variable.
        """
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            hints = [
                f"--{name.replace('_', '-')} ({ENVIRONMENT_OPTIONS[name][0]})" if name in ENVIRONMENT_OPTIONS else name
                for name in missing
            ]
            raise MissingEnvironmentVariableError(f"Missing required settings: {', '.join(hints)}")


@dataclass(frozen=True)
class ResourceNames:
    tekton_pipeline: str = TEKTON_PIPELINE_NAME
    tekton_trigger: str = TEKTON_TRIGGER_NAME
    tekton_dashboard: str = TEKTON_DASHBOARD_NAME
    tekton_addon: str = TEKTON_ADDON_NAME
    tekton_config: str = TEKTON_CONFIG_NAME
    namespace: str = ""
    target_namespace: str = TARGET_NAMESPACE


def _known_values(cls, values):
    names = {field.name for field in fields(cls)}
    return {key: value for key, value in values.items() if key in names and value not in (None, "")}


def build_environment_config(pytest_config, test_config):
    """
    Args:
        pytest_config (pytest.Config): session config holding the command line options.
        test_config (dict): pytest-testconfig values.

    Returns:
        EnvironmentConfig: the run configuration.
    """
    values = {key: test_config.get(key) for key in ("operators_namespace", "marketplace_namespace", "target_namespace")}
    values["cluster"] = pytest_config.getoption("cluster")
    values["kubeconfig"] = pytest_config.getoption("kubeconfig")
    for dest in ENVIRONMENT_OPTIONS:
        values[dest] = pytest_config.getoption(dest) or test_config.get(f"default_{dest}")

    environment_config = EnvironmentConfig(**_known_values(cls=EnvironmentConfig, values=values))
    LOGGER.info(f"Environment config: {environment_config}")
    return environment_config


def build_resource_names(test_config, namespace=""):
    values = dict(test_config.get("resource_names") or {})
    values["namespace"] = namespace
    values.setdefault("target_namespace", test_config.get("target_namespace"))
    return ResourceNames(**_known_values(cls=ResourceNames, values=values))
