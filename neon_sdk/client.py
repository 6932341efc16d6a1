import json
from dataclasses import dataclass, field
from typing import Any, List, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .config import API_KEY_ENV_VAR, BASE_URL, DEFAULT_TIMEOUT, Config, resolve_api_key
from .errors import (
    APIError,
    ClientConfigError,
    RequestEncodeError,
    ResponseDecodeError,
    convert_error_response,
)
from .http import HttpSession
from .logging import logger
from .mock import MockTransport
from .models import (
    ApiKeyCreateRequest,
    ApiKeyCreateResponse,
    ApiKeyRevokeResponse,
    ApiKeysListResponseItem,
    BranchCreateRequest,
    BranchesResponse,
    BranchOperations,
    BranchResponse,
    BranchUpdateRequest,
    ConnectionURIResponse,
    CreatedBranch,
    CreatedProject,
    CurrentUserInfoResponse,
    DatabaseCreateRequest,
    DatabaseOperations,
    DatabaseResponse,
    DatabasesResponse,
    DatabaseUpdateRequest,
    EndpointCreateRequest,
    EndpointOperations,
    EndpointResponse,
    EndpointsResponse,
    EndpointUpdateRequest,
    Member,
    OperationResponse,
    Organization,
    OrganizationInvitationsResponse,
    OrganizationMembersResponse,
    OrganizationMemberUpdateRequest,
    OrgApiKeyCreateRequest,
    PaginatedOperationsResponse,
    ProjectCreateRequest,
    ProjectResponse,
    ProjectsResponse,
    ProjectUpdateRequest,
    RoleCreateRequest,
    RoleOperations,
    RolePasswordResponse,
    RoleResponse,
    RolesResponse,
    UpdateProjectResponse,
)
from .types import SecretStr

# The API has been seen answering GET requests for objects which do not exist with a 200 and an
# (almost) empty body. Any successful GET response shorter than this is treated as a 404.
# TODO: remove once the API is confirmed to return a proper 404 in this case.
NOT_FOUND_BODY_THRESHOLD = 10


def encode_payload(payload: Any) -> bytes:
    if isinstance(payload, BaseModel):
        return payload.model_dump_json(exclude_none=True).encode("utf-8")
    return json.dumps(payload, allow_nan=False).encode("utf-8")


@dataclass
class Client:
    """A client for the Neon API. Every method maps to one API endpoint and makes exactly one
    HTTP call. Full API documentation is available at https://api-docs.neon.tech/reference.

    Use :func:`new_client` rather than instantiating this class directly. Close the client when
    done with it, or use it as a context manager::

        with new_client(Config(key="...")) as client:
            client.list_projects()

    :param key: The API key sent as a bearer token. ``None`` sends no ``Authorization`` header.
    :param http_session: The ``httpx.Client`` requests are sent through, shared by all calls.
    :param base_url: The API root, without a trailing forward slash.
    """

    key: Optional[SecretStr]
    http_session: HttpSession = field(repr=False)
    base_url: str = BASE_URL

    def close(self):
        """Release the connection pool. Calls made after this raise ``RuntimeError``."""
        self.http_session.stop()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _url(self, path: str, **params) -> str:
        url = f"{self.base_url}/{path}"
        query = {
            k: (str(v).lower() if isinstance(v, bool) else v)
            for k, v in params.items()
            if v is not None
        }
        if query:
            url = f"{url}?{urlencode(query)}"
        return url

    def request_handler(
        self,
        url: str,
        method: str,
        payload: Any = None,
        response_model: Any = None,
    ):
        """Send one request and decode the response.

        :param url: The full request URL, query string included.
        :param method: The HTTP method, e.g. ``'GET'``.
        :param payload: The request body: a pydantic model, or anything ``json.dumps`` accepts.
          ``None`` sends no body.
        :param response_model: The type to decode a successful response body into. If ``None``,
          the body is discarded and ``None`` is returned.
        :raises RequestEncodeError: If the payload cannot be serialized. Nothing is sent.
        :raises APIError: If the API returns a non-2xx status.
        :raises ResponseDecodeError: If a successful body does not match ``response_model``.
        """

        content = None
        if payload is not None:
            try:
                content = encode_payload(payload)
            except (TypeError, ValueError) as e:
                raise RequestEncodeError(f"cannot encode request payload: {e}") from e

        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.key:
            headers["Authorization"] = f"Bearer {self.key.get_secret_value()}"

        session = self.http_session()
        request = session.build_request(method, url, content=content, headers=headers)
        response = session.send(request, stream=True)
        try:
            logger.debug(f"{method} {url} -> {response.status_code}")

            if not response.is_success:
                raise convert_error_response(response)

            body = response.read()
            if method == "GET" and len(body) < NOT_FOUND_BODY_THRESHOLD:
                raise APIError(404, message="object not found")

            if response_model is None:
                return None
            try:
                return TypeAdapter(response_model).validate_json(body)
            except ValidationError as e:
                raise ResponseDecodeError(f"cannot decode response body: {e}") from e
        finally:
            response.close()

    def validate_api_key(self):
        """Check the key is accepted by calling ``GET /users/me``. Raises :class:`APIError` if
        not.
        """
        self.get_current_user_info()

    # API keys --------------------------------------------------------------------------

    def list_api_keys(self) -> List[ApiKeysListResponseItem]:
        """Retrieves the API keys for your Neon account. The response does not include the
        actual key values, only their metadata.
        """
        return self.request_handler(
            self._url("api_keys"), "GET", response_model=List[ApiKeysListResponseItem]
        )

    def create_api_key(self, cfg: ApiKeyCreateRequest) -> ApiKeyCreateResponse:
        """Creates an API key. The ``key`` in the response is only returned this once."""
        return self.request_handler(
            self._url("api_keys"), "POST", cfg, response_model=ApiKeyCreateResponse
        )

    def revoke_api_key(self, key_id: int) -> ApiKeyRevokeResponse:
        return self.request_handler(
            self._url(f"api_keys/{key_id}"), "DELETE", response_model=ApiKeyRevokeResponse
        )

    # Users -----------------------------------------------------------------------------

    def get_current_user_info(self) -> CurrentUserInfoResponse:
        return self.request_handler(
            self._url("users/me"), "GET", response_model=CurrentUserInfoResponse
        )

    # Organizations ---------------------------------------------------------------------

    def get_organization(self, org_id: str) -> Organization:
        return self.request_handler(
            self._url(f"organizations/{org_id}"), "GET", response_model=Organization
        )

    def list_org_api_keys(self, org_id: str) -> List[ApiKeysListResponseItem]:
        return self.request_handler(
            self._url(f"organizations/{org_id}/api_keys"),
            "GET",
            response_model=List[ApiKeysListResponseItem],
        )

    def create_org_api_key(self, org_id: str, cfg: OrgApiKeyCreateRequest) -> ApiKeyCreateResponse:
        """Creates an API key acting on behalf of the organization rather than a user. As with
        :meth:`create_api_key`, the ``key`` is only returned this once.
        """
        return self.request_handler(
            self._url(f"organizations/{org_id}/api_keys"),
            "POST",
            cfg,
            response_model=ApiKeyCreateResponse,
        )

    def revoke_org_api_key(self, org_id: str, key_id: int) -> ApiKeyRevokeResponse:
        return self.request_handler(
            self._url(f"organizations/{org_id}/api_keys/{key_id}"),
            "DELETE",
            response_model=ApiKeyRevokeResponse,
        )

    def list_organization_invitations(self, org_id: str) -> OrganizationInvitationsResponse:
        return self.request_handler(
            self._url(f"organizations/{org_id}/invitations"),
            "GET",
            response_model=OrganizationInvitationsResponse,
        )

    def list_organization_members(self, org_id: str) -> OrganizationMembersResponse:
        return self.request_handler(
            self._url(f"organizations/{org_id}/members"),
            "GET",
            response_model=OrganizationMembersResponse,
        )

    def get_organization_member(self, org_id: str, member_id: str) -> Member:
        return self.request_handler(
            self._url(f"organizations/{org_id}/members/{member_id}"),
            "GET",
            response_model=Member,
        )

    def update_organization_member(
        self, org_id: str, member_id: str, cfg: OrganizationMemberUpdateRequest
    ) -> Member:
        """Changes a member's role. Only organization admins can do this."""
        return self.request_handler(
            self._url(f"organizations/{org_id}/members/{member_id}"),
            "PATCH",
            cfg,
            response_model=Member,
        )

    # Projects --------------------------------------------------------------------------

    def list_projects(
        self,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        org_id: Optional[str] = None,
    ) -> ProjectsResponse:
        """Retrieves the projects the API key has access to.

        :param cursor: Continue listing after this project, from ``pagination.cursor`` of the
          previous page.
        :param limit: The maximum number of projects to return.
        :param search: Only return projects whose name or id contains this string.
        :param org_id: List the projects of this organization instead of the personal account.
        """
        url = self._url("projects", cursor=cursor, limit=limit, search=search, org_id=org_id)
        return self.request_handler(url, "GET", response_model=ProjectsResponse)

    def create_project(self, cfg: ProjectCreateRequest) -> CreatedProject:
        """Creates a project along with its root branch, a read-write compute endpoint, a
        default database and role.
        """
        return self.request_handler(
            self._url("projects"), "POST", cfg, response_model=CreatedProject
        )

    def get_project(self, project_id: str) -> ProjectResponse:
        return self.request_handler(
            self._url(f"projects/{project_id}"), "GET", response_model=ProjectResponse
        )

    def update_project(self, project_id: str, cfg: ProjectUpdateRequest) -> UpdateProjectResponse:
        return self.request_handler(
            self._url(f"projects/{project_id}"),
            "PATCH",
            cfg,
            response_model=UpdateProjectResponse,
        )

    def delete_project(self, project_id: str) -> ProjectResponse:
        """Deletes a project, with all its branches, endpoints, databases and roles."""
        return self.request_handler(
            self._url(f"projects/{project_id}"), "DELETE", response_model=ProjectResponse
        )

    def get_connection_uri(
        self,
        project_id: str,
        database_name: str,
        role_name: str,
        branch_id: Optional[str] = None,
        endpoint_id: Optional[str] = None,
        pooled: Optional[bool] = None,
    ) -> ConnectionURIResponse:
        """Retrieves a connection URI for a database and role.

        :param branch_id: Defaults to the project's default branch.
        :param endpoint_id: Defaults to the read-write endpoint of the branch.
        :param pooled: Whether to connect through the connection pooler.
        """
        url = self._url(
            f"projects/{project_id}/connection_uri",
            branch_id=branch_id,
            endpoint_id=endpoint_id,
            database_name=database_name,
            role_name=role_name,
            pooled=pooled,
        )
        return self.request_handler(url, "GET", response_model=ConnectionURIResponse)

    # Branches --------------------------------------------------------------------------

    def list_project_branches(self, project_id: str) -> BranchesResponse:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches"),
            "GET",
            response_model=BranchesResponse,
        )

    def create_project_branch(
        self, project_id: str, cfg: Optional[BranchCreateRequest] = None
    ) -> CreatedBranch:
        """Creates a branch. Without ``cfg``, the branch is created from the head of the
        default branch, with no compute endpoint.
        """
        return self.request_handler(
            self._url(f"projects/{project_id}/branches"),
            "POST",
            cfg,
            response_model=CreatedBranch,
        )

    def get_project_branch(self, project_id: str, branch_id: str) -> BranchResponse:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}"),
            "GET",
            response_model=BranchResponse,
        )

    def update_project_branch(
        self, project_id: str, branch_id: str, cfg: BranchUpdateRequest
    ) -> BranchOperations:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}"),
            "PATCH",
            cfg,
            response_model=BranchOperations,
        )

    def delete_project_branch(self, project_id: str, branch_id: str) -> BranchOperations:
        """Deletes a branch. The default branch, and branches with children, cannot be deleted.
        """
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}"),
            "DELETE",
            response_model=BranchOperations,
        )

    def set_default_project_branch(self, project_id: str, branch_id: str) -> BranchOperations:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}/set_as_default"),
            "POST",
            response_model=BranchOperations,
        )

    def list_project_branch_endpoints(self, project_id: str, branch_id: str) -> EndpointsResponse:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}/endpoints"),
            "GET",
            response_model=EndpointsResponse,
        )

    # Databases -------------------------------------------------------------------------

    def list_project_branch_databases(self, project_id: str, branch_id: str) -> DatabasesResponse:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}/databases"),
            "GET",
            response_model=DatabasesResponse,
        )

    def create_project_branch_database(
        self, project_id: str, branch_id: str, cfg: DatabaseCreateRequest
    ) -> DatabaseOperations:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}/databases"),
            "POST",
            cfg,
            response_model=DatabaseOperations,
        )

    def get_project_branch_database(
        self, project_id: str, branch_id: str, database_name: str
    ) -> DatabaseResponse:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}/databases/{database_name}"),
            "GET",
            response_model=DatabaseResponse,
        )

    def update_project_branch_database(
        self, project_id: str, branch_id: str, database_name: str, cfg: DatabaseUpdateRequest
    ) -> DatabaseOperations:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}/databases/{database_name}"),
            "PATCH",
            cfg,
            response_model=DatabaseOperations,
        )

    def delete_project_branch_database(
        self, project_id: str, branch_id: str, database_name: str
    ) -> DatabaseOperations:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}/databases/{database_name}"),
            "DELETE",
            response_model=DatabaseOperations,
        )

    # Roles -----------------------------------------------------------------------------

    def list_project_branch_roles(self, project_id: str, branch_id: str) -> RolesResponse:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}/roles"),
            "GET",
            response_model=RolesResponse,
        )

    def create_project_branch_role(
        self, project_id: str, branch_id: str, cfg: RoleCreateRequest
    ) -> RoleOperations:
        """Creates a role. The generated password is only returned in this response, and by
        :meth:`get_project_branch_role_password` if the project stores passwords.
        """
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}/roles"),
            "POST",
            cfg,
            response_model=RoleOperations,
        )

    def get_project_branch_role(
        self, project_id: str, branch_id: str, role_name: str
    ) -> RoleResponse:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}/roles/{role_name}"),
            "GET",
            response_model=RoleResponse,
        )

    def delete_project_branch_role(
        self, project_id: str, branch_id: str, role_name: str
    ) -> RoleOperations:
        return self.request_handler(
            self._url(f"projects/{project_id}/branches/{branch_id}/roles/{role_name}"),
            "DELETE",
            response_model=RoleOperations,
        )

    def reset_project_branch_role_password(
        self, project_id: str, branch_id: str, role_name: str
    ) -> RoleOperations:
        return self.request_handler(
            self._url(
                f"projects/{project_id}/branches/{branch_id}/roles/{role_name}/reset_password"
            ),
            "POST",
            response_model=RoleOperations,
        )

    def get_project_branch_role_password(
        self, project_id: str, branch_id: str, role_name: str
    ) -> RolePasswordResponse:
        return self.request_handler(
            self._url(
                f"projects/{project_id}/branches/{branch_id}/roles/{role_name}/reveal_password"
            ),
            "GET",
            response_model=RolePasswordResponse,
        )

    # Endpoints -------------------------------------------------------------------------

    def list_project_endpoints(self, project_id: str) -> EndpointsResponse:
        return self.request_handler(
            self._url(f"projects/{project_id}/endpoints"),
            "GET",
            response_model=EndpointsResponse,
        )

    def create_project_endpoint(
        self, project_id: str, cfg: EndpointCreateRequest
    ) -> EndpointOperations:
        return self.request_handler(
            self._url(f"projects/{project_id}/endpoints"),
            "POST",
            cfg,
            response_model=EndpointOperations,
        )

    def get_project_endpoint(self, project_id: str, endpoint_id: str) -> EndpointResponse:
        return self.request_handler(
            self._url(f"projects/{project_id}/endpoints/{endpoint_id}"),
            "GET",
            response_model=EndpointResponse,
        )

    def update_project_endpoint(
        self, project_id: str, endpoint_id: str, cfg: EndpointUpdateRequest
    ) -> EndpointOperations:
        return self.request_handler(
            self._url(f"projects/{project_id}/endpoints/{endpoint_id}"),
            "PATCH",
            cfg,
            response_model=EndpointOperations,
        )

    def delete_project_endpoint(self, project_id: str, endpoint_id: str) -> EndpointOperations:
        return self.request_handler(
            self._url(f"projects/{project_id}/endpoints/{endpoint_id}"),
            "DELETE",
            response_model=EndpointOperations,
        )

    def start_project_endpoint(self, project_id: str, endpoint_id: str) -> EndpointOperations:
        return self.request_handler(
            self._url(f"projects/{project_id}/endpoints/{endpoint_id}/start"),
            "POST",
            response_model=EndpointOperations,
        )

    def suspend_project_endpoint(self, project_id: str, endpoint_id: str) -> EndpointOperations:
        """Suspends the compute. Active connections are dropped."""
        return self.request_handler(
            self._url(f"projects/{project_id}/endpoints/{endpoint_id}/suspend"),
            "POST",
            response_model=EndpointOperations,
        )

    def restart_project_endpoint(self, project_id: str, endpoint_id: str) -> EndpointOperations:
        return self.request_handler(
            self._url(f"projects/{project_id}/endpoints/{endpoint_id}/restart"),
            "POST",
            response_model=EndpointOperations,
        )

    # Operations ------------------------------------------------------------------------

    def list_project_operations(
        self, project_id: str, cursor: Optional[str] = None, limit: Optional[int] = None
    ) -> PaginatedOperationsResponse:
        """Retrieves the operations run in a project, most recent first.

        :param cursor: Continue listing after this point, from ``pagination.cursor`` of the
          previous page.
        :param limit: The maximum number of operations to return.
        """
        return self.request_handler(
            self._url(f"projects/{project_id}/operations", cursor=cursor, limit=limit),
            "GET",
            response_model=PaginatedOperationsResponse,
        )

    def get_project_operation(self, project_id: str, operation_id: str) -> OperationResponse:
        return self.request_handler(
            self._url(f"projects/{project_id}/operations/{operation_id}"),
            "GET",
            response_model=OperationResponse,
        )


def new_client(cfg: Config = Config()) -> Client:
    """Create a :class:`Client`.

    :param cfg: The key and transport to use. The key falls back to the ``NEON_API_KEY`` env var.
    :raises ClientConfigError: If no key is given nor set in the environment. A key is not
      required when ``cfg.transport`` is a :class:`neon_sdk.mock.MockTransport`.
    """

    key = resolve_api_key(cfg.key)
    transport = cfg.transport
    if not key and not isinstance(transport, MockTransport):
        raise ClientConfigError(
            "authorization key must be provided, either in the config or the "
            f"{API_KEY_ENV_VAR} env var: https://neon.tech/docs/manage/api-keys"
        )

    if transport is None:
        transport = httpx.HTTPTransport()

    return Client(
        key=SecretStr(key) if key else None,
        http_session=HttpSession(transport=transport, timeout=DEFAULT_TIMEOUT),
    )
