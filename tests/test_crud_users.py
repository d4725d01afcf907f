"""Tests for users, team, settings and dashboard operations."""
import pytest
from taskflow_core import crud, schemas
from taskflow_core.audit import get_activities
from taskflow_core.errors import NotFoundError, PermissionDeniedError, ValidationError
from taskflow_core.store import ACTIVITIES


class TestRegisterUser:
    """Test sign-up profile creation."""

    def test_new_user_is_member(self, store):
        user_id = crud.register_user(
            store, schemas.UserCreate(id="uid-42", email="new@example.com", display_name="Nina New")
        )

        user = crud.get_user(store, user_id)
        assert user_id == "uid-42"
        assert user.role == "member"
        assert user.display_name == "Nina New"

        [activity] = get_activities(store)
        assert activity.action == "joined"
        assert activity.project_id is None
        assert activity.target_id == "uid-42"

    def test_duplicate_uid(self, store, member):
        with pytest.raises(ValidationError):
            crud.register_user(store, schemas.UserCreate(id=member.id, email="again@example.com"))

    def test_principal_lookup(self, store, manager):
        assert crud.get_principal(store, manager.id) == schemas.Principal(id=manager.id, role="manager")
        with pytest.raises(NotFoundError):
            crud.get_principal(store, "nobody")


class TestUserRole:
    """Test role changes."""

    def test_admin_promotes_member(self, store, admin, member):
        crud.update_user_role(store, admin, member.id, "manager")

        assert crud.get_user(store, member.id).role == "manager"
        latest = get_activities(store)[0]
        assert latest.action == "changed role to manager"
        assert latest.target_id == member.id
        assert latest.user_id == admin.id

    def test_manager_denied(self, store, manager, member):
        with pytest.raises(PermissionDeniedError):
            crud.update_user_role(store, manager, member.id, "admin")
        assert crud.get_user(store, member.id).role == "member"

    def test_admin_cannot_change_own_role(self, store, admin):
        with pytest.raises(PermissionDeniedError):
            crud.update_user_role(store, admin, admin.id, "member")
        assert store.count(ACTIVITIES) == 0

    def test_invalid_role(self, store, admin, member):
        with pytest.raises(ValidationError):
            crud.update_user_role(store, admin, member.id, "owner")

    def test_unknown_user(self, store, admin):
        with pytest.raises(NotFoundError):
            crud.update_user_role(store, admin, "nobody", "manager")


class TestProfile:
    """Test profile edits."""

    def test_edit_own_profile(self, store, member):
        crud.update_member_profile(
            store, member, member.id, schemas.UserProfileUpdate(department="Design", position="Lead")
        )

        user = crud.get_user(store, member.id)
        assert user.department == "Design"
        assert user.position == "Lead"
        assert get_activities(store)[0].action == "updated profile"

    def test_member_cannot_edit_others(self, store, member, other_member):
        with pytest.raises(PermissionDeniedError):
            crud.update_member_profile(
                store, member, other_member.id, schemas.UserProfileUpdate(display_name="Hacked")
            )

    def test_admin_edits_others(self, store, admin, member):
        crud.update_member_profile(store, admin, member.id, schemas.UserProfileUpdate(display_name="Mia M."))
        assert crud.get_user(store, member.id).display_name == "Mia M."

    def test_clear_optional_fields(self, store, member):
        crud.update_member_profile(
            store, member, member.id, schemas.UserProfileUpdate(department="Design", position="Lead", photo_url="a.png")
        )
        crud.update_member_profile(
            store, member, member.id, schemas.UserProfileUpdate(department=None, photo_url=None)
        )

        user = crud.get_user(store, member.id)
        assert user.department is None
        assert user.photo_url is None
        assert user.position == "Lead"

    def test_display_name_not_cleared_by_null(self, store, member):
        crud.update_member_profile(store, member, member.id, schemas.UserProfileUpdate(display_name=None))
        assert crud.get_user(store, member.id).display_name == "Mia Member"


class TestTeamAndSettings:
    """Test team listing and the settings overview."""

    def test_list_users_requires_view_team(self, store, member):
        with pytest.raises(PermissionDeniedError):
            crud.list_users(store, member)

    def test_list_users_counts_all_projects(self, store, manager, member, project_id):
        other = crud.create_project(store, manager, schemas.ProjectCreate(name="Other"))
        for pid in (project_id, other):
            task_id = crud.create_task(
                store, manager, schemas.TaskCreate(project_id=pid, title="Ship", assigned_to=member.id)
            )
            crud.update_task_status(store, member, task_id, "done")

        team = {u.id: u for u in crud.list_users(store, manager)}
        assert team[member.id].tasks_completed == 2
        assert team[member.id].tasks_in_progress == 0

    def test_admin_settings_include_users(self, store, admin, member):
        overview = crud.get_settings_overview(store, admin)

        assert overview.role_label == "Admin"
        assert "manageUsers" in overview.allowed_actions
        assert {u.id for u in overview.users} == {admin.id, member.id}

    def test_member_settings_without_users(self, store, member):
        overview = crud.get_settings_overview(store, member)

        assert overview.profile.id == member.id
        assert overview.role_label == "Member"
        assert overview.allowed_actions == ["updateTaskStatus"]
        assert overview.users is None


class TestDashboard:
    """Test dashboard summary numbers."""

    def test_summary_for_member(self, store, manager, member, project_id):
        mine = [
            crud.create_task(
                store, manager, schemas.TaskCreate(project_id=project_id, title=f"T{i}", assigned_to=member.id)
            )
            for i in range(3)
        ]
        crud.create_task(store, manager, schemas.TaskCreate(project_id=project_id, title="Not mine"))
        crud.update_task_status(store, member, mine[0], "done")
        issue = crud.create_issue(store, member, schemas.IssueCreate(project_id=project_id, title="Bug"))
        crud.create_issue(store, member, schemas.IssueCreate(project_id=project_id, title="Bug 2"))
        crud.update_issue(store, member, issue, schemas.IssueUpdate(status="closed"))

        summary = crud.get_dashboard_summary(store, member)
        assert summary.total_projects == 1
        assert summary.completed_tasks == 1
        assert summary.active_tasks == 2
        assert summary.completion_rate == 33
        assert summary.open_issues == 1
        assert len(summary.recent_activity) == 9
        assert summary.recent_activity[0].action == "updated issue status to closed"

    def test_empty_dashboard(self, store, admin):
        summary = crud.get_dashboard_summary(store, admin)
        assert summary.total_projects == 0
        assert summary.completion_rate == 0
        assert summary.recent_activity == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
