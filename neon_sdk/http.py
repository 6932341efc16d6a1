import httpx

# Anything with ``handle_request(request) -> response``: ``httpx.HTTPTransport`` for the real
# network, ``neon_sdk.mock.MockTransport`` or ``httpx.MockTransport`` for tests.
Transport = httpx.BaseTransport


# Adapted from the session pattern in
# https://github.com/tiangolo/fastapi/issues/236#issuecomment-716548461, made synchronous.
# The ``httpx.Client`` is built once, up front, so concurrent first calls share one connection
# pool. It is not reopened after ``stop()``: sending through a stopped session raises
# ``RuntimeError``.
class HttpSession:
    def __init__(self, transport: Transport, timeout: float) -> None:
        self.transport = transport
        self.timeout = timeout
        self.session = httpx.Client(transport=transport, timeout=timeout)

    def stop(self):
        self.session.close()

    @property
    def is_closed(self) -> bool:
        return self.session.is_closed

    def __call__(self) -> httpx.Client:
        return self.session
