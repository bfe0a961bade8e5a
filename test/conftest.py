"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient

from helpers import FakeClock, RecordingTransport
from gateway_app import USERS, app, state

import psdbapi

GATEWAY_HOST = "db.example.com"


class GatewayClientTransport:
    """Routes the driver's requests into the in-process gateway app."""

    def __init__(self, client: TestClient):
        self.client = client

    def send(self, url, headers, body, backend="", timeout=None):
        resp = self.client.post(url, content=body, headers=headers)
        return resp.status_code, resp.content

    def close(self):
        pass


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def clock(monkeypatch, transport):
    c = FakeClock()
    monkeypatch.setattr(psdbapi.connection, "time", c)
    transport.clock = c
    return c


@pytest.fixture
def conn(transport):
    c = psdbapi.connect("username=u&password=p&host=db.example.com&backend=edge", transport=transport)
    yield c
    c.close()


@pytest.fixture
def gateway():
    state.reset()
    with TestClient(app) as client:
        yield GatewayClientTransport(client)


@pytest.fixture
def gateway_conn(gateway):
    username, password = next(iter(USERS.items()))
    c = psdbapi.connect(host=GATEWAY_HOST, username=username, password=password, transport=gateway)
    yield c
    c.close()
