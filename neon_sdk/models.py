from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ComputeUnit = float


class NeonModel(BaseModel):
    """Base for every request and response body. Fields the API returns which are not modelled
    here are kept (``extra="allow"``), so a decoded body can be re-encoded without loss.
    """

    model_config = ConfigDict(extra="allow")


# Shared --------------------------------------------------------------------------------


class Pagination(NeonModel):
    cursor: Optional[str] = None


class OperationStatus(str, Enum):
    scheduling = "scheduling"
    running = "running"
    finished = "finished"
    failed = "failed"
    error = "error"
    cancelling = "cancelling"
    cancelled = "cancelled"
    skipped = "skipped"


# Response fields typed with an enum also accept values added to the API after this release,
# kept as plain strings, so a new state does not fail decoding of the whole body.
OperationStatusValue = Annotated[Union[OperationStatus, str], Field(union_mode="left_to_right")]


class Operation(NeonModel):
    """A unit of work the control plane runs on behalf of an API call, e.g. starting a compute
    after a branch is created. Most mutating calls return the operations they scheduled.

    :param id: The operation UUID.
    :param action: What the operation does.
    :param status: The current status. ``finished`` and ``failed`` are terminal.
    :param failures_count: How many times the operation has failed so far.
    :param total_duration_ms: Time spent on the operation, once known.
    """

    id: str
    project_id: str
    branch_id: Optional[str] = None
    endpoint_id: Optional[str] = None
    action: str
    status: OperationStatusValue
    error: Optional[str] = None
    failures_count: int
    retry_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    total_duration_ms: Optional[int] = None


class OperationsResponse(NeonModel):
    operations: List[Operation]


class OperationResponse(NeonModel):
    operation: Operation


class PaginatedOperationsResponse(OperationsResponse):
    pagination: Optional[Pagination] = None


# API keys ------------------------------------------------------------------------------


class ApiKeyCreateRequest(NeonModel):
    key_name: str


class ApiKeyCreateResponse(NeonModel):
    """The only response which contains the secret ``key``. It cannot be retrieved again."""

    id: int
    key: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None


class ApiKeysListResponseItem(NeonModel):
    id: int
    name: str
    created_at: datetime
    created_by: Optional[Dict[str, Any]] = None
    last_used_at: Optional[datetime] = None
    last_used_from_addr: str


class ApiKeyRevokeResponse(NeonModel):
    id: int
    name: str
    revoked: bool
    last_used_at: Optional[datetime] = None
    last_used_from_addr: str


# Users ---------------------------------------------------------------------------------


class AuthAccount(NeonModel):
    provider: str
    email: str
    name: str
    login: str
    image: str


class CurrentUserInfoResponse(NeonModel):
    id: str
    email: str
    name: Optional[str] = None
    last_name: Optional[str] = None
    login: Optional[str] = None
    image: Optional[str] = None
    plan: Optional[str] = None
    projects_limit: Optional[int] = None
    branches_limit: Optional[int] = None
    max_autoscaling_limit: Optional[ComputeUnit] = None
    compute_seconds_limit: Optional[int] = None
    active_seconds_limit: Optional[int] = None
    auth_accounts: List[AuthAccount] = []


# Endpoints -----------------------------------------------------------------------------


class EndpointType(str, Enum):
    read_only = "read_only"
    read_write = "read_write"


EndpointTypeValue = Annotated[Union[EndpointType, str], Field(union_mode="left_to_right")]


class EndpointState(str, Enum):
    init = "init"
    active = "active"
    idle = "idle"


EndpointStateValue = Annotated[Union[EndpointState, str], Field(union_mode="left_to_right")]


class EndpointPoolerMode(str, Enum):
    transaction = "transaction"


EndpointPoolerModeValue = Annotated[
    Union[EndpointPoolerMode, str], Field(union_mode="left_to_right")
]


class EndpointSettingsData(NeonModel):
    """:param pg_settings: Postgres settings applied to the compute, e.g. ``{"work_mem": "4MB"}``.
    """

    pg_settings: Optional[Dict[str, str]] = None


class Endpoint(NeonModel):
    """A compute endpoint: the Postgres instance serving a branch.

    :param host: The hostname clients connect to.
    :param type: ``read_write`` (one per branch) or ``read_only``.
    :param autoscaling_limit_min_cu: The minimum compute size, in compute units.
    :param autoscaling_limit_max_cu: The maximum compute size, in compute units.
    :param current_state: The state of the compute right now.
    :param pending_state: The state the compute is transitioning to, if any.
    :param suspend_timeout_seconds: Inactivity period after which the compute is suspended.
      ``0`` means the platform default, ``-1`` means never.
    """

    id: str
    host: str
    project_id: str
    branch_id: str
    region_id: str
    type: EndpointTypeValue
    current_state: EndpointStateValue
    pending_state: Optional[EndpointStateValue] = None
    autoscaling_limit_min_cu: ComputeUnit
    autoscaling_limit_max_cu: ComputeUnit
    settings: EndpointSettingsData
    pooler_enabled: bool
    pooler_mode: EndpointPoolerModeValue
    disabled: bool
    passwordless_access: bool
    last_active: Optional[datetime] = None
    creation_source: Optional[str] = None
    provisioner: Optional[str] = None
    suspend_timeout_seconds: Optional[int] = None
    proxy_host: str
    created_at: datetime
    updated_at: datetime


class EndpointCreateRequestEndpoint(NeonModel):
    branch_id: str
    type: EndpointType
    region_id: Optional[str] = None
    settings: Optional[EndpointSettingsData] = None
    autoscaling_limit_min_cu: Optional[ComputeUnit] = None
    autoscaling_limit_max_cu: Optional[ComputeUnit] = None
    provisioner: Optional[str] = None
    pooler_enabled: Optional[bool] = None
    pooler_mode: Optional[EndpointPoolerMode] = None
    disabled: Optional[bool] = None
    passwordless_access: Optional[bool] = None
    suspend_timeout_seconds: Optional[int] = None


class EndpointCreateRequest(NeonModel):
    endpoint: EndpointCreateRequestEndpoint


class EndpointUpdateRequestEndpoint(NeonModel):
    branch_id: Optional[str] = None
    settings: Optional[EndpointSettingsData] = None
    autoscaling_limit_min_cu: Optional[ComputeUnit] = None
    autoscaling_limit_max_cu: Optional[ComputeUnit] = None
    provisioner: Optional[str] = None
    pooler_enabled: Optional[bool] = None
    pooler_mode: Optional[EndpointPoolerMode] = None
    disabled: Optional[bool] = None
    passwordless_access: Optional[bool] = None
    suspend_timeout_seconds: Optional[int] = None


class EndpointUpdateRequest(NeonModel):
    endpoint: EndpointUpdateRequestEndpoint


class EndpointResponse(NeonModel):
    endpoint: Endpoint


class EndpointsResponse(NeonModel):
    endpoints: List[Endpoint]


class EndpointOperations(EndpointResponse, OperationsResponse):
    pass


# Databases -----------------------------------------------------------------------------


class Database(NeonModel):
    """A Postgres database on a branch.

    :param owner_name: The role which owns the database.
    """

    id: int
    branch_id: str
    name: str
    owner_name: str
    created_at: datetime
    updated_at: datetime


class DatabaseCreateRequestDatabase(NeonModel):
    name: str
    owner_name: str


class DatabaseCreateRequest(NeonModel):
    database: DatabaseCreateRequestDatabase


class DatabaseUpdateRequestDatabase(NeonModel):
    name: Optional[str] = None
    owner_name: Optional[str] = None


class DatabaseUpdateRequest(NeonModel):
    database: DatabaseUpdateRequestDatabase


class DatabaseResponse(NeonModel):
    database: Database


class DatabasesResponse(NeonModel):
    databases: List[Database]


class DatabaseOperations(DatabaseResponse, OperationsResponse):
    pass


# Roles ---------------------------------------------------------------------------------


class Role(NeonModel):
    """A Postgres role on a branch. ``password`` is only set in responses which create or reset
    it.
    """

    branch_id: str
    name: str
    password: Optional[str] = None
    protected: Optional[bool] = None
    created_at: datetime
    updated_at: datetime


class RoleCreateRequestRole(NeonModel):
    name: str
    no_login: Optional[bool] = None


class RoleCreateRequest(NeonModel):
    role: RoleCreateRequestRole


class RoleResponse(NeonModel):
    role: Role


class RolesResponse(NeonModel):
    roles: List[Role]


class RoleOperations(RoleResponse, OperationsResponse):
    pass


class RolePasswordResponse(NeonModel):
    password: str


# Branches ------------------------------------------------------------------------------


class BranchState(str, Enum):
    init = "init"
    ready = "ready"
    archived = "archived"


BranchStateValue = Annotated[Union[BranchState, str], Field(union_mode="left_to_right")]


class Branch(NeonModel):
    """A copy-on-write branch of a project's data.

    :param parent_id: The branch this one was created from. Empty for the root branch.
    :param parent_lsn: The Log Sequence Number on the parent branch it was created from.
    :param default: Whether this is the project's default branch.
    :param logical_size: The logical size of the branch, in bytes.
    """

    id: str
    project_id: str
    parent_id: Optional[str] = None
    parent_lsn: Optional[str] = None
    parent_timestamp: Optional[datetime] = None
    name: str
    current_state: BranchStateValue
    pending_state: Optional[BranchStateValue] = None
    state_changed_at: Optional[datetime] = None
    logical_size: Optional[int] = None
    creation_source: Optional[str] = None
    default: Optional[bool] = None
    protected: Optional[bool] = None
    cpu_used_sec: Optional[int] = None
    compute_time_seconds: Optional[int] = None
    active_time_seconds: Optional[int] = None
    written_data_bytes: Optional[int] = None
    data_transfer_bytes: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class BranchCreateRequestBranch(NeonModel):
    name: Optional[str] = None
    parent_id: Optional[str] = None
    parent_lsn: Optional[str] = None
    parent_timestamp: Optional[datetime] = None
    protected: Optional[bool] = None


class BranchCreateRequestEndpointOptions(NeonModel):
    type: EndpointType
    autoscaling_limit_min_cu: Optional[ComputeUnit] = None
    autoscaling_limit_max_cu: Optional[ComputeUnit] = None
    provisioner: Optional[str] = None
    suspend_timeout_seconds: Optional[int] = None


class BranchCreateRequest(NeonModel):
    branch: Optional[BranchCreateRequestBranch] = None
    endpoints: Optional[List[BranchCreateRequestEndpointOptions]] = None


class BranchUpdateRequestBranch(NeonModel):
    name: Optional[str] = None
    protected: Optional[bool] = None


class BranchUpdateRequest(NeonModel):
    branch: BranchUpdateRequestBranch


class BranchResponse(NeonModel):
    branch: Branch


class BranchesResponse(NeonModel):
    branches: List[Branch]
    pagination: Optional[Dict[str, Any]] = None


class BranchOperations(BranchResponse, OperationsResponse):
    pass


class ConnectionDetails(NeonModel):
    connection_uri: str
    connection_parameters: Optional[Dict[str, Any]] = None


class CreatedBranch(BranchResponse, OperationsResponse):
    endpoints: List[Endpoint] = []
    roles: Optional[List[Role]] = None
    databases: Optional[List[Database]] = None
    connection_uris: Optional[List[ConnectionDetails]] = None


# Projects ------------------------------------------------------------------------------


class DefaultEndpointSettings(NeonModel):
    """Settings applied to every compute endpoint created in the project unless overridden.
    """

    pg_settings: Optional[Dict[str, str]] = None
    autoscaling_limit_min_cu: Optional[ComputeUnit] = None
    autoscaling_limit_max_cu: Optional[ComputeUnit] = None
    suspend_timeout_seconds: Optional[int] = None


class ProjectOwnerData(NeonModel):
    email: str
    name: str
    branches_limit: int
    subscription_type: str


class Project(NeonModel):
    """A Neon project: the top level container for branches, computes, databases and roles.

    :param id: The project id, e.g. ``quiet-river-711967``.
    :param platform_id: The cloud platform, e.g. ``aws``.
    :param region_id: The region the project lives in, e.g. ``aws-us-east-2``.
    :param pg_version: The major Postgres version.
    :param proxy_host: The proxy host compute endpoints of the project are reached through.
    :param store_passwords: Whether role passwords are stored so they can be revealed later.
    :param history_retention_seconds: How far back point-in-time restore and branching can go.
    :param maintenance_starts_at: The start of the next maintenance window, if one is scheduled.
    """

    id: str
    name: str
    platform_id: str
    region_id: str
    pg_version: int
    provisioner: Optional[str] = None
    proxy_host: Optional[str] = None
    store_passwords: Optional[bool] = None
    history_retention_seconds: Optional[int] = None
    creation_source: Optional[str] = None
    owner_id: Optional[str] = None
    owner: Optional[ProjectOwnerData] = None
    org_id: Optional[str] = None
    default_endpoint_settings: Optional[DefaultEndpointSettings] = None
    branch_logical_size_limit: Optional[int] = None
    branch_logical_size_limit_bytes: Optional[int] = None
    active_time: Optional[int] = None
    active_time_seconds: Optional[int] = None
    compute_time_seconds: Optional[int] = None
    cpu_used_sec: Optional[int] = None
    written_data_bytes: Optional[int] = None
    data_transfer_bytes: Optional[int] = None
    data_storage_bytes_hour: Optional[int] = None
    consumption_period_start: Optional[datetime] = None
    consumption_period_end: Optional[datetime] = None
    maintenance_starts_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ProjectCreateRequestProjectBranch(NeonModel):
    name: Optional[str] = None
    role_name: Optional[str] = None
    database_name: Optional[str] = None


class ProjectCreateRequestProject(NeonModel):
    name: Optional[str] = None
    region_id: Optional[str] = None
    pg_version: Optional[int] = None
    provisioner: Optional[str] = None
    store_passwords: Optional[bool] = None
    history_retention_seconds: Optional[int] = None
    org_id: Optional[str] = None
    default_endpoint_settings: Optional[DefaultEndpointSettings] = None
    branch: Optional[ProjectCreateRequestProjectBranch] = None


class ProjectCreateRequest(NeonModel):
    project: ProjectCreateRequestProject


class ProjectUpdateRequestProject(NeonModel):
    name: Optional[str] = None
    history_retention_seconds: Optional[int] = None
    default_endpoint_settings: Optional[DefaultEndpointSettings] = None


class ProjectUpdateRequest(NeonModel):
    project: ProjectUpdateRequestProject


class ProjectResponse(NeonModel):
    project: Project


class ProjectsResponse(NeonModel):
    projects: List[Project]
    pagination: Optional[Pagination] = None


class UpdateProjectResponse(ProjectResponse, OperationsResponse):
    pass


class CreatedProject(ProjectResponse, OperationsResponse):
    """Everything provisioned with a new project: its root branch, the branch's read-write
    endpoint, the default role and database, and ready-made connection URIs.
    """

    branch: Branch
    endpoints: List[Endpoint]
    roles: List[Role]
    databases: List[Database]
    connection_uris: List[ConnectionDetails]


class ConnectionURIResponse(NeonModel):
    uri: str


# Organizations -------------------------------------------------------------------------


class Organization(NeonModel):
    """:param handle: The unique, URL friendly name of the organization.
    :param managed_by: Whether billing and membership are managed in the console or by a partner.
    """

    id: str
    name: str
    handle: str
    plan: str
    managed_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OrgApiKeyCreateRequest(ApiKeyCreateRequest):
    """:param project_id: Limit the key to a single project of the organization."""

    project_id: Optional[str] = None


class Member(NeonModel):
    """A user's membership of an organization. ``role`` is ``admin`` or ``member``."""

    id: str
    user_id: str
    org_id: str
    role: str
    joined_at: Optional[datetime] = None


class MemberUserInfo(NeonModel):
    email: str


class MemberWithUser(NeonModel):
    member: Member
    user: MemberUserInfo


class OrganizationMembersResponse(NeonModel):
    members: List[MemberWithUser]


class OrganizationMemberUpdateRequest(NeonModel):
    role: str


class OrganizationInvitation(NeonModel):
    id: str
    email: str
    org_id: str
    invited_by: str
    invited_at: datetime
    role: str


class OrganizationInvitationsResponse(NeonModel):
    invitations: List[OrganizationInvitation]
