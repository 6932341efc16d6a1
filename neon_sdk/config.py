import os
from dataclasses import dataclass
from typing import Optional

from .http import Transport

BASE_URL = "https://console.neon.tech/api/v2"
DEFAULT_TIMEOUT = 5 * 60  # seconds

API_KEY_ENV_VAR = "NEON_API_KEY"


@dataclass(frozen=True)
class Config:
    """Options for :func:`neon_sdk.client.new_client`.

    :param key: The Neon API access key. If not given, the ``NEON_API_KEY`` env var is used.
      See https://neon.tech/docs/manage/api-keys for how to generate one.
    :param transport: The ``httpx`` transport requests are sent through. Defaults to
      ``httpx.HTTPTransport()``. Pass a :class:`neon_sdk.mock.MockTransport` to work offline.
    """

    key: Optional[str] = None
    transport: Optional[Transport] = None


def resolve_api_key(key: Optional[str]) -> str:
    # Checked at call time rather than import time, so the env var can be set late.
    if key:
        return key
    return os.environ.get(API_KEY_ENV_VAR, "")
