import pytest
from typing import Dict

from starlette.testclient import TestClient

from chunkstore.api import Api
from chunkstore.managers import MemoryLedgerManager


SECRET = "r4nD0m_p455"


class FakeClock:
    """Manually driven monotonic clock."""
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, secs: float) -> None:
        self.now += secs


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def app(clock):
    api = Api(debug=True, test=True, secret_key=SECRET)
    # Swap ledger for one driven by the test clock.
    api.ledger = api.uploads.ledger = MemoryLedgerManager(app=api, tombstone_ttl=600, clock=clock)
    return api


@pytest.fixture()
def client(app):
    with TestClient(app=app) as c:
        yield c


@pytest.fixture()
def auth() -> Dict[str, str]:
    return {"Authorization": f"Bearer {SECRET}"}


def binary_string(data: bytes) -> str:
    """One character per byte, as browsers send chunks."""
    return data.decode('latin-1')
