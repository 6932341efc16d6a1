from .client import NOT_FOUND_BODY_THRESHOLD, Client, new_client  # noqa: F401
from .config import BASE_URL, DEFAULT_TIMEOUT, Config  # noqa: F401
from .errors import (  # noqa: F401
    APIError,
    ClientConfigError,
    NeonError,
    RequestEncodeError,
    ResponseDecodeError,
)
from .mock import MockTransport  # noqa: F401
