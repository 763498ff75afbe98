# -*- coding: utf-8 -*-
"""
Pytest conftest file for OpenShift Pipelines release tests
"""

import logging

import pytest

from utilities.logger import setup_logging
from utilities.pytest_utils import add_environment_options, remove_stale_log_file, separator

LOGGER = logging.getLogger(__name__)
BASIC_LOGGER = logging.getLogger("basic")


def pytest_addoption(parser):
    add_environment_options(parser=parser)

    logging_group = parser.getgroup(name="Logging")
    logging_group.addoption(
        "--pytest-log-file",
        help="Path to pytest log file",
        default="pytest-tests.log",
    )

    install_upgrade_group = parser.getgroup(name="Upgrade")
    install_upgrade_group.addoption(
        "--install",
        help="Run operator install tests",
        action="store_true",
    )
    install_upgrade_group.addoption(
        "--upgrade",
        help="Run operator upgrade tests",
        action="store_true",
    )
    install_upgrade_group.addoption(
        "--uninstall",
        help="Run operator uninstall tests",
        action="store_true",
    )


def pytest_collection_modifyitems(session, config, items):
    """
    Deselect install/upgrade/uninstall tests unless their option was passed, they change the operator under test.
    """
    lifecycle_markers = [marker for marker in ("install", "upgrade", "uninstall") if not config.getoption(marker)]
    discard, keep = [], []
    for item in items:
        if set(lifecycle_markers).intersection(item.keywords):
            discard.append(item)
        else:
            keep.append(item)

    if discard:
        config.hook.pytest_deselected(items=discard)
        items[:] = keep


def pytest_fixture_setup(fixturedef, request):
    LOGGER.info(f"Executing {fixturedef.scope} fixture: {fixturedef.argname}")


def pytest_runtest_setup(item):
    BASIC_LOGGER.info(f"\n{separator(symbol_='-', val=item.name)}")
    BASIC_LOGGER.info(f"{separator(symbol_='-', val='SETUP')}")
    if "incremental" in item.keywords:
        previousfailed = getattr(item.parent, "_previousfailed", None)
        if previousfailed is not None:
            pytest.xfail(f"previous test failed ({previousfailed.name})")


def pytest_runtest_call(item):
    BASIC_LOGGER.info(f"{separator(symbol_='-', val='CALL')}")


def pytest_runtest_teardown(item):
    BASIC_LOGGER.info(f"{separator(symbol_='-', val='TEARDOWN')}")


def pytest_runtest_makereport(item, call):
    """
    incremental tests implementation
    """
    if call.excinfo is not None and "incremental" in item.keywords:
        parent = item.parent
        parent._previousfailed = item


def pytest_sessionstart(session):
    tests_log_file = session.config.getoption("pytest_log_file")
    remove_stale_log_file(log_file=tests_log_file)
    session.config.option.log_listener = setup_logging(
        log_file=tests_log_file,
        log_level=session.config.getoption("log_cli_level") or logging.INFO,
    )


def pytest_sessionfinish(session, exitstatus):
    reporter = session.config.pluginmanager.get_plugin("terminalreporter")
    if reporter:
        reporter.summary_stats()
    log_listener = getattr(session.config.option, "log_listener", None)
    if log_listener:
        log_listener.stop()


def pytest_exception_interact(node, call, report):
    BASIC_LOGGER.error(report.longreprtext)
