"""Pytest configuration for utilities tests - independent of cluster access"""

import time
from unittest.mock import MagicMock

import pytest
from kubernetes.dynamic.exceptions import NotFoundError

# Mock get_client to prevent K8s API calls
from ocp_resources import resource

resource.get_client = lambda: MagicMock()


class FakeAccessor:
    """
    Accessor returning scripted responses, one per fetch; the last response repeats.

    A response that is an exception instance is raised instead of returned.
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.fetches = []
        self.fetch_times = []

    def fetch(self, ref):
        self.fetches.append(ref)
        self.fetch_times.append(time.monotonic())
        response = self.responses[min(len(self.fetches), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


def not_found_error():
    api_exception = MagicMock()
    api_exception.status = 404
    api_exception.reason = "Not Found"
    api_exception.body = '{"message": "not found"}'
    api_exception.headers = {}
    return NotFoundError(api_exception)


@pytest.fixture(autouse=True)
def mock_get_client(monkeypatch):
    """Auto-mock get_client for all tests"""
    mock_client = MagicMock()
    monkeypatch.setattr("ocp_resources.resource.get_client", lambda: mock_client)
    return mock_client


@pytest.fixture
def fake_accessor():
    """Factory for FakeAccessor"""
    return FakeAccessor


@pytest.fixture
def not_found():
    """Factory for kubernetes NotFoundError instances"""
    return not_found_error
