import httpx
import pytest

from neon_sdk import Config, new_client
from neon_sdk.client import Client
from neon_sdk.config import DEFAULT_TIMEOUT
from neon_sdk.http import HttpSession
from neon_sdk.mock import INVALID_API_KEY, MockTransport
from neon_sdk.types import SecretStr


@pytest.fixture
def mock_client():
    with new_client(Config(key="foo", transport=MockTransport())) as client:
        yield client


@pytest.fixture
def invalid_key_client():
    with new_client(Config(key=INVALID_API_KEY, transport=MockTransport())) as client:
        yield client


@pytest.fixture
def sent_requests():
    return []


@pytest.fixture
def make_client(sent_requests):
    """Build a ``Client`` whose requests are answered by ``handler`` (``request -> response``)
    instead of the network. Every request the handler sees is appended to ``sent_requests``.
    """
    clients = []

    def _make_client(handler, key="foo"):
        def record_and_handle(request: httpx.Request) -> httpx.Response:
            sent_requests.append(request)
            return handler(request)

        client = Client(
            key=SecretStr(key) if key else None,
            http_session=HttpSession(
                transport=httpx.MockTransport(record_and_handle),
                timeout=DEFAULT_TIMEOUT,
            ),
        )
        clients.append(client)
        return client

    yield _make_client

    for client in clients:
        client.close()
