"""
Project and milestone tests: CRUD rules, progress and client visibility.
"""
from types import SimpleNamespace

import pytest

from app.core.exceptions import InvalidInputError, NotFoundError
from app.models.enums import MilestoneStatus, ProjectStatus
from app.projects import MilestoneCRUD, ProjectCRUD, milestone_progress


# --- Pure logic (no DB) ---


@pytest.mark.unit
def test_progress_of_no_milestones_is_zero():
    assert milestone_progress([]) == 0


@pytest.mark.unit
def test_progress_rounds_down():
    milestones = [
        SimpleNamespace(status=MilestoneStatus.COMPLETED),
        SimpleNamespace(status=MilestoneStatus.IN_PROGRESS),
        SimpleNamespace(status=MilestoneStatus.PENDING),
    ]
    assert milestone_progress(milestones) == 33


@pytest.mark.unit
def test_progress_all_done():
    milestones = [SimpleNamespace(status=MilestoneStatus.COMPLETED)] * 4
    assert milestone_progress(milestones) == 100


# --- CRUD ---


@pytest.mark.unit
def test_create_project_defaults(db_session, client_user):
    project = ProjectCRUD.create(
        db_session, client_id=client_user.id, name="Shop", description="An online shop build"
    )
    assert project.status == ProjectStatus.IN_PROGRESS
    assert project.start_date is not None
    assert project.completed_date is None


@pytest.mark.unit
def test_project_must_belong_to_client(db_session, support_user):
    with pytest.raises(InvalidInputError):
        ProjectCRUD.create(db_session, client_id=support_user.id, name="Nope", description="Staff-owned")


@pytest.mark.unit
def test_completing_project_stamps_date(db_session, client_user, admin_user):
    project = ProjectCRUD.create(
        db_session, client_id=client_user.id, name="Shop", description="An online shop build"
    )
    done = ProjectCRUD.update(db_session, project.id, updated_by=admin_user.id, status=ProjectStatus.COMPLETED)
    assert done.completed_date is not None

    reopened = ProjectCRUD.update(db_session, project.id, updated_by=admin_user.id, status=ProjectStatus.ON_HOLD)
    assert reopened.completed_date is None


@pytest.mark.unit
def test_milestone_requires_project(db_session, admin_user):
    with pytest.raises(NotFoundError):
        MilestoneCRUD.create(db_session, project_id=999, title="Design", created_by=admin_user.id)


@pytest.mark.unit
def test_completing_milestone_stamps_date(db_session, client_user, admin_user):
    project = ProjectCRUD.create(
        db_session, client_id=client_user.id, name="Shop", description="An online shop build"
    )
    milestone = MilestoneCRUD.create(db_session, project_id=project.id, title="Design", created_by=admin_user.id)
    assert milestone.completed_date is None

    done = MilestoneCRUD.update(
        db_session, milestone.id, updated_by=admin_user.id, status=MilestoneStatus.COMPLETED
    )
    assert done.completed_date is not None


# --- HTTP ---


@pytest.mark.integration
def test_client_requests_and_lists_projects(client, client_headers, other_client_headers):
    response = client.post(
        "/api/v1/projects",
        json={"name": "Mobile app", "description": "iOS and Android client app"},
        headers=client_headers,
    )
    assert response.status_code == 201
    project = response.json()
    assert project["status"] == "in_progress"

    mine = client.get("/api/v1/projects", headers=client_headers).json()
    assert [p["id"] for p in mine] == [project["id"]]

    theirs = client.get("/api/v1/projects", headers=other_client_headers).json()
    assert theirs == []


@pytest.mark.integration
def test_project_request_validation(client, client_headers):
    response = client.post(
        "/api/v1/projects",
        json={"name": "ab", "description": "short"},
        headers=client_headers,
    )
    assert response.status_code == 422


@pytest.mark.integration
def test_project_detail_with_progress(client, db_session, client_headers, client_user, admin_user):
    project = ProjectCRUD.create(
        db_session, client_id=client_user.id, name="Portal", description="Customer portal rebuild"
    )
    MilestoneCRUD.create(
        db_session, project_id=project.id, title="Design", created_by=admin_user.id,
        status=MilestoneStatus.COMPLETED,
    )
    MilestoneCRUD.create(db_session, project_id=project.id, title="Build", created_by=admin_user.id)

    response = client.get(f"/api/v1/projects/{project.id}", headers=client_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["project"]["id"] == project.id
    assert [m["title"] for m in body["milestones"]] == ["Design", "Build"]
    assert body["progress"] == 50

    milestones = client.get(f"/api/v1/projects/{project.id}/milestones", headers=client_headers)
    assert len(milestones.json()) == 2


@pytest.mark.integration
def test_foreign_project_is_forbidden(client, db_session, client_user, other_client_headers):
    project = ProjectCRUD.create(
        db_session, client_id=client_user.id, name="Portal", description="Customer portal rebuild"
    )
    response = client.get(f"/api/v1/projects/{project.id}", headers=other_client_headers)
    assert response.status_code == 403
    assert response.json()["error_code"] == "UNAUTHORIZED"


@pytest.mark.integration
def test_missing_project_is_404(client, client_headers):
    response = client.get("/api/v1/projects/777", headers=client_headers)
    assert response.status_code == 404
