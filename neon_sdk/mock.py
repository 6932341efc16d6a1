"""An offline stand-in for the Neon API.

``MockTransport`` answers every request the client can make with the canned example response
for its route, so code built on :class:`neon_sdk.client.Client` can be exercised without network
access or credentials. Errors are covered only partially:

- 403 is returned for any request made with the API key ``invalidApiKey``;
- 404 is returned when an identifier in the path is one of ``notFound``, ``notExist``,
  ``notExists``, ``missing``, or a negative number, e.g. ``/projects/notFound`` or
  ``/projects/p/branches/b/databases/-1``.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

import httpx
import yaml  # type: ignore

from .errors import APIError

EXAMPLES_PATH = Path(__file__).parent / "mock_responses.yaml"

INVALID_API_KEY = "invalidApiKey"

NOT_FOUND_IDS = ("notFound", "notExist", "notExists", "missing")

# Resource collections, and the placeholder their member identifiers are replaced with.
PLACEHOLDERS = {
    "projects": "{project_id}",
    "branches": "{branch_id}",
    "endpoints": "{endpoint_id}",
    "operations": "{operation_id}",
    "databases": "{database_name}",
    "roles": "{role_name}",
    "api_keys": "{key_id}",
    "organizations": "{org_id}",
    "members": "{member_id}",
}


@dataclass(frozen=True)
class MockResponse:
    code: int
    content: str


Endpoints = Mapping[str, Mapping[str, MockResponse]]


@lru_cache(maxsize=None)
def endpoint_response_examples() -> Endpoints:
    """The example response for every route and method, keyed by path template, e.g.
    ``examples["/projects/{project_id}"]["GET"]``. Read once per process and shared read-only
    between all ``MockTransport`` instances.
    """

    with open(EXAMPLES_PATH) as f:
        raw = yaml.safe_load(f)

    return MappingProxyType(
        {
            path: MappingProxyType(
                {method: MockResponse(**resp) for method, resp in methods.items()}
            )
            for path, methods in raw.items()
        }
    )


@dataclass(frozen=True)
class ObjPath:
    """A request path normalized to its route template.

    :param path: The template, e.g. ``/projects/{project_id}/branches``.
    :param obj_not_found: Whether any identifier in the path names an object which should be
      reported as missing.
    """

    path: str
    obj_not_found: bool = False


def is_not_found_id(s: str) -> bool:
    if s in NOT_FOUND_IDS:
        return True
    try:
        return float(s) < 0
    except ValueError:
        return False


def parse_path(path: str) -> ObjPath:
    """Normalize ``path`` (relative to the API root) to the template it is served by.

    Segments alternate between a collection name and an identifier within it. Identifiers of
    known collections are replaced by their placeholder; any other identifier (``users/me``)
    is kept as is.
    """

    segments = [s for s in path.split("/") if s]
    obj_not_found = False
    normalized = []
    for i, segment in enumerate(segments):
        if i % 2 == 0:
            normalized.append(segment)
            continue
        if is_not_found_id(segment):
            obj_not_found = True
        normalized.append(PLACEHOLDERS.get(segments[i - 1], segment))

    return ObjPath(path="/" + "/".join(normalized), obj_not_found=obj_not_found)


def json_response(resp: MockResponse, request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        status_code=resp.code,
        headers={"Content-Type": "application/json"},
        content=resp.content.encode("utf-8"),
        request=request,
    )


class MockTransport(httpx.BaseTransport):
    """An ``httpx`` transport which serves the example responses instead of calling the API.

    :param endpoints: The route table to serve. Defaults to :func:`endpoint_response_examples`.
    :param route_prefix: The path prefix of the API root, stripped before route lookup.
    """

    def __init__(self, endpoints: Optional[Endpoints] = None, route_prefix: str = "/api/v2"):
        self.endpoints = endpoint_response_examples() if endpoints is None else endpoints
        self.route_prefix = route_prefix.rstrip("/")

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        if request.headers.get("Authorization") == f"Bearer {INVALID_API_KEY}":
            return APIError(403, message="authorization failed").to_response(request)

        path = request.url.path
        if not path.startswith(self.route_prefix + "/"):
            return APIError(400, message="unknown endpoint").to_response(request)

        obj_path = parse_path(path[len(self.route_prefix) :])
        methods = self.endpoints.get(obj_path.path)
        if methods is None:
            return APIError(400, message="unknown endpoint").to_response(request)

        resp = methods.get(request.method)
        if resp is None:
            return APIError(405, message="method not allowed").to_response(request)

        if obj_path.obj_not_found:
            return APIError(404, message="object not found").to_response(request)

        return json_response(resp, request)
