import json

import pytest

from neon_sdk import APIError
from neon_sdk.mock import endpoint_response_examples
from neon_sdk.models import (
    ApiKeyCreateRequest,
    BranchCreateRequest,
    BranchCreateRequestBranch,
    BranchCreateRequestEndpointOptions,
    BranchUpdateRequest,
    BranchUpdateRequestBranch,
    DatabaseCreateRequest,
    DatabaseCreateRequestDatabase,
    DatabaseUpdateRequest,
    DatabaseUpdateRequestDatabase,
    EndpointCreateRequest,
    EndpointCreateRequestEndpoint,
    EndpointType,
    EndpointUpdateRequest,
    EndpointUpdateRequestEndpoint,
    OrganizationMemberUpdateRequest,
    OrgApiKeyCreateRequest,
    ProjectCreateRequest,
    ProjectCreateRequestProject,
    ProjectUpdateRequest,
    ProjectUpdateRequestProject,
    RoleCreateRequest,
    RoleCreateRequestRole,
)

PROJECT = "shiny-wind-028834"
BRANCH = "br-aged-salad-637688"
ENDPOINT = "ep-little-smoke-851426"
ORG = "my-organization-morning-bread-81040908"
MEMBER = "d57833f2-d308-4ede-9d2e-468d9d013d1b"

BRANCHES = "/projects/{project_id}/branches"
DATABASE = BRANCHES + "/{branch_id}/databases/{database_name}"
ROLE = BRANCHES + "/{branch_id}/roles/{role_name}"
ENDPOINTS = "/projects/{project_id}/endpoints"
ORGANIZATION = "/organizations/{org_id}"

# (method name, args, route template, http method)
OPERATIONS = [
    ("list_api_keys", (), "/api_keys", "GET"),
    ("create_api_key", (ApiKeyCreateRequest(key_name="mykey"),), "/api_keys", "POST"),
    ("revoke_api_key", (165435,), "/api_keys/{key_id}", "DELETE"),
    ("get_current_user_info", (), "/users/me", "GET"),
    ("list_projects", (), "/projects", "GET"),
    (
        "create_project",
        (ProjectCreateRequest(project=ProjectCreateRequestProject(name="myproject")),),
        "/projects",
        "POST",
    ),
    ("get_project", ("quiet-river-711967",), "/projects/{project_id}", "GET"),
    (
        "update_project",
        (PROJECT, ProjectUpdateRequest(project=ProjectUpdateRequestProject(name="myproject"))),
        "/projects/{project_id}",
        "PATCH",
    ),
    ("delete_project", ("bold-cloud-468218",), "/projects/{project_id}", "DELETE"),
    (
        "get_connection_uri",
        (PROJECT, "neondb", "casey"),
        "/projects/{project_id}/connection_uri",
        "GET",
    ),
    ("list_project_branches", (PROJECT,), BRANCHES, "GET"),
    (
        "create_project_branch",
        (
            PROJECT,
            BranchCreateRequest(
                branch=BranchCreateRequestBranch(name="dev2", parent_id=BRANCH),
                endpoints=[BranchCreateRequestEndpointOptions(type=EndpointType.read_write)],
            ),
        ),
        BRANCHES,
        "POST",
    ),
    ("get_project_branch", (PROJECT, BRANCH), BRANCHES + "/{branch_id}", "GET"),
    (
        "update_project_branch",
        (PROJECT, BRANCH, BranchUpdateRequest(branch=BranchUpdateRequestBranch(name="mybranch"))),
        BRANCHES + "/{branch_id}",
        "PATCH",
    ),
    ("delete_project_branch", (PROJECT, BRANCH), BRANCHES + "/{branch_id}", "DELETE"),
    (
        "set_default_project_branch",
        (PROJECT, BRANCH),
        BRANCHES + "/{branch_id}/set_as_default",
        "POST",
    ),
    (
        "list_project_branch_endpoints",
        (PROJECT, BRANCH),
        BRANCHES + "/{branch_id}/endpoints",
        "GET",
    ),
    (
        "list_project_branch_databases",
        (PROJECT, BRANCH),
        BRANCHES + "/{branch_id}/databases",
        "GET",
    ),
    (
        "create_project_branch_database",
        (
            PROJECT,
            BRANCH,
            DatabaseCreateRequest(
                database=DatabaseCreateRequestDatabase(name="mydb", owner_name="casey")
            ),
        ),
        BRANCHES + "/{branch_id}/databases",
        "POST",
    ),
    ("get_project_branch_database", (PROJECT, BRANCH, "main"), DATABASE, "GET"),
    (
        "update_project_branch_database",
        (
            PROJECT,
            BRANCH,
            "mydb",
            DatabaseUpdateRequest(database=DatabaseUpdateRequestDatabase(owner_name="sally")),
        ),
        DATABASE,
        "PATCH",
    ),
    ("delete_project_branch_database", (PROJECT, BRANCH, "mydb"), DATABASE, "DELETE"),
    ("list_project_branch_roles", (PROJECT, BRANCH), BRANCHES + "/{branch_id}/roles", "GET"),
    (
        "create_project_branch_role",
        (PROJECT, BRANCH, RoleCreateRequest(role=RoleCreateRequestRole(name="sally"))),
        BRANCHES + "/{branch_id}/roles",
        "POST",
    ),
    ("get_project_branch_role", (PROJECT, BRANCH, "casey"), ROLE, "GET"),
    ("delete_project_branch_role", (PROJECT, BRANCH, "thomas"), ROLE, "DELETE"),
    (
        "reset_project_branch_role_password",
        (PROJECT, BRANCH, "sally"),
        ROLE + "/reset_password",
        "POST",
    ),
    (
        "get_project_branch_role_password",
        (PROJECT, BRANCH, "casey"),
        ROLE + "/reveal_password",
        "GET",
    ),
    ("list_project_endpoints", (PROJECT,), ENDPOINTS, "GET"),
    (
        "create_project_endpoint",
        (
            PROJECT,
            EndpointCreateRequest(
                endpoint=EndpointCreateRequestEndpoint(
                    branch_id=BRANCH, type=EndpointType.read_write
                )
            ),
        ),
        ENDPOINTS,
        "POST",
    ),
    ("get_project_endpoint", (PROJECT, ENDPOINT), ENDPOINTS + "/{endpoint_id}", "GET"),
    (
        "update_project_endpoint",
        (
            PROJECT,
            ENDPOINT,
            EndpointUpdateRequest(
                endpoint=EndpointUpdateRequestEndpoint(autoscaling_limit_max_cu=2)
            ),
        ),
        ENDPOINTS + "/{endpoint_id}",
        "PATCH",
    ),
    ("delete_project_endpoint", (PROJECT, ENDPOINT), ENDPOINTS + "/{endpoint_id}", "DELETE"),
    ("start_project_endpoint", (PROJECT, ENDPOINT), ENDPOINTS + "/{endpoint_id}/start", "POST"),
    (
        "suspend_project_endpoint",
        (PROJECT, ENDPOINT),
        ENDPOINTS + "/{endpoint_id}/suspend",
        "POST",
    ),
    (
        "restart_project_endpoint",
        (PROJECT, ENDPOINT),
        ENDPOINTS + "/{endpoint_id}/restart",
        "POST",
    ),
    ("list_project_operations", (PROJECT,), "/projects/{project_id}/operations", "GET"),
    (
        "get_project_operation",
        (PROJECT, "a07f8772-1877-4da9-a939-3a3ae62d1d8d"),
        "/projects/{project_id}/operations/{operation_id}",
        "GET",
    ),
    ("get_organization", (ORG,), ORGANIZATION, "GET"),
    ("list_org_api_keys", (ORG,), ORGANIZATION + "/api_keys", "GET"),
    (
        "create_org_api_key",
        (ORG, OrgApiKeyCreateRequest(key_name="orgkey")),
        ORGANIZATION + "/api_keys",
        "POST",
    ),
    ("revoke_org_api_key", (ORG, 165435), ORGANIZATION + "/api_keys/{key_id}", "DELETE"),
    ("list_organization_invitations", (ORG,), ORGANIZATION + "/invitations", "GET"),
    ("list_organization_members", (ORG,), ORGANIZATION + "/members", "GET"),
    (
        "get_organization_member",
        (ORG, MEMBER),
        ORGANIZATION + "/members/{member_id}",
        "GET",
    ),
    (
        "update_organization_member",
        (ORG, MEMBER, OrganizationMemberUpdateRequest(role="member")),
        ORGANIZATION + "/members/{member_id}",
        "PATCH",
    ),
]

OPERATION_IDS = [op[0] for op in OPERATIONS]


def dump(result):
    if isinstance(result, list):
        return [r.model_dump(mode="json", exclude_none=True) for r in result]
    return result.model_dump(mode="json", exclude_none=True)


def test_every_route_has_an_operation():
    covered = {(template, method) for _, _, template, method in OPERATIONS}
    examples = endpoint_response_examples()
    served = {(template, method) for template in examples for method in examples[template]}
    assert covered == served


@pytest.mark.parametrize("name, args, template, method", OPERATIONS, ids=OPERATION_IDS)
def test_operation(mock_client, name, args, template, method):
    result = getattr(mock_client, name)(*args)

    fixture = endpoint_response_examples()[template][method]
    assert dump(result) == json.loads(fixture.content)


@pytest.mark.parametrize("name, args, template, method", OPERATIONS, ids=OPERATION_IDS)
def test_operation_invalid_api_key(invalid_key_client, name, args, template, method):
    with pytest.raises(APIError) as e:
        getattr(invalid_key_client, name)(*args)
    assert e.value.http_code == 403
    assert e.value.code == ""
    assert e.value.message == "authorization failed"


@pytest.mark.parametrize(
    "name, args",
    [
        ("get_project", ("notFound",)),
        ("delete_project", ("missing",)),
        ("revoke_api_key", (-1,)),
        ("get_project_branch", (PROJECT, "notExist")),
        ("get_project_branch_database", (PROJECT, BRANCH, "notExists")),
        ("delete_project_branch_role", (PROJECT, BRANCH, "missing")),
        ("start_project_endpoint", (PROJECT, "notFound")),
        ("get_project_operation", (PROJECT, "-0.5")),
        ("get_organization", ("notFound",)),
        ("get_organization_member", (ORG, "missing")),
    ],
)
def test_operation_not_found(mock_client, name, args):
    with pytest.raises(APIError) as e:
        getattr(mock_client, name)(*args)
    assert e.value.http_code == 404
    assert e.value.message == "object not found"


def test_get_project(mock_client):
    resp = mock_client.get_project("quiet-river-711967")
    assert resp.project.id == "quiet-river-711967"
    assert resp.project.name == "quiet-river-711967"
    assert resp.project.owner.subscription_type == "scale"


def test_create_project(mock_client):
    resp = mock_client.create_project(ProjectCreateRequest(project=ProjectCreateRequestProject()))
    assert resp.branch.project_id == resp.project.id
    assert resp.endpoints[0].host == "ep-silent-smoke-806639.us-east-2.aws.neon.tech"
    assert resp.roles[0].password
    assert resp.connection_uris[0].connection_uri.startswith("postgresql://")
    assert [op.action for op in resp.operations] == ["create_timeline", "start_compute"]


def test_create_project_branch_without_config(mock_client):
    resp = mock_client.create_project_branch(PROJECT)
    assert resp.branch.name == "dev2"


def test_validate_api_key(mock_client, invalid_key_client):
    mock_client.validate_api_key()
    with pytest.raises(APIError) as e:
        invalid_key_client.validate_api_key()
    assert e.value.http_code == 403
