import logging

import pytest

from utilities.assertions import condition_assertion
from utilities.operator import (
    get_installed_csv_name,
    subscribe_and_wait_for_operator_to_be_ready,
    update_subscription_and_wait_for_operator_to_be_ready,
)

LOGGER = logging.getLogger(__name__)


@pytest.fixture(scope="module")
def installed_operator_subscription(admin_client, environment_config):
    with condition_assertion(expectation=f"operator {environment_config.subscription_name} is installed"):
        return subscribe_and_wait_for_operator_to_be_ready(client=admin_client, environment_config=environment_config)


@pytest.fixture(scope="module")
def upgraded_operator_subscription(admin_client, environment_config):
    environment_config.require("subscription_name", "upgrade_channel")
    with condition_assertion(expectation=f"operator {environment_config.subscription_name} is upgraded"):
        return update_subscription_and_wait_for_operator_to_be_ready(
            client=admin_client,
            environment_config=environment_config,
            channel=environment_config.upgrade_channel,
        )


@pytest.fixture(scope="module")
def installed_csv_name(installed_operator_subscription):
    csv_name = get_installed_csv_name(subscription_state=installed_operator_subscription)
    LOGGER.info(f"Installed CSV: {csv_name}")
    return csv_name
