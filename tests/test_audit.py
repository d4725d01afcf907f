"""Tests for activity logging and the activity feed."""
from datetime import datetime, timedelta, timezone

import pytest
from taskflow_core import crud, schemas
from taskflow_core.audit import get_activities, log_activity
from taskflow_core.errors import StoreError, ValidationError
from taskflow_core.models import TargetType
from taskflow_core.store import ACTIVITIES, PROJECTS, TASKS, InMemoryStore

from conftest import add_user


class ActivityRejectingStore(InMemoryStore):
    """Store whose activity collection is unavailable."""

    def insert(self, collection, record):
        if collection == ACTIVITIES:
            raise StoreError("activities collection unavailable")
        return super().insert(collection, record)


class PrimaryWriteRejectingStore(InMemoryStore):
    """Store that refuses project inserts and task patches once closed."""

    def __init__(self):
        super().__init__()
        self.closed = False

    def insert(self, collection, record):
        if self.closed and collection == PROJECTS:
            raise StoreError("projects collection unavailable")
        return super().insert(collection, record)

    def patch(self, collection, record_id, partial):
        if self.closed and collection == TASKS:
            raise StoreError("tasks collection unavailable")
        return super().patch(collection, record_id, partial)


class TestLogActivity:
    """Test writing activity records."""

    def test_record_fields(self, store):
        """Test that every field is stored and the id is returned."""
        activity_id = log_activity(store, "p1", "u1", "created task", TargetType.TASK, "t1", "Write docs")

        record = store.get(ACTIVITIES, activity_id)
        assert record["project_id"] == "p1"
        assert record["user_id"] == "u1"
        assert record["action"] == "created task"
        assert record["target_type"] == "task"
        assert record["target_id"] == "t1"
        assert record["target_title"] == "Write docs"
        assert record["created_at"].tzinfo is not None

    def test_account_level_activity_has_no_project(self, store):
        activity_id = log_activity(store, None, "u1", "joined", "member", "u1", "User One")
        assert store.get(ACTIVITIES, activity_id)["project_id"] is None

    def test_store_failure_is_swallowed(self):
        """Test that a failing activity write returns None instead of raising."""
        assert log_activity(ActivityRejectingStore(), "p1", "u1", "created task", "task", "t1", "X") is None

    def test_mutation_survives_activity_failure(self):
        """Test that the primary write stands when the activity write fails."""
        store = ActivityRejectingStore()
        store.insert("users", {"id": "m1", "email": "m@example.com", "role": "manager"})
        manager = schemas.Principal(id="m1", role="manager")

        project_id = crud.create_project(store, manager, schemas.ProjectCreate(name="Resilient"))

        assert store.get(PROJECTS, project_id)["name"] == "Resilient"
        assert store.count(ACTIVITIES) == 0


class TestFailedWrites:
    """Test that a failed primary write leaves no activity behind."""

    def test_create_project_not_logged(self):
        store = PrimaryWriteRejectingStore()
        manager = add_user(store, "manager-1", "manager")
        store.closed = True

        with pytest.raises(StoreError):
            crud.create_project(store, manager, schemas.ProjectCreate(name="Doomed"))
        assert store.count(PROJECTS) == 0
        assert store.count(ACTIVITIES) == 0

    def test_update_task_not_logged(self):
        store = PrimaryWriteRejectingStore()
        manager = add_user(store, "manager-1", "manager")
        project_id = crud.create_project(store, manager, schemas.ProjectCreate(name="Intranet"))
        task_id = crud.create_task(store, manager, schemas.TaskCreate(project_id=project_id, title="Audit links"))
        store.closed = True
        before = store.count(ACTIVITIES)

        with pytest.raises(StoreError):
            crud.update_task(store, manager, task_id, schemas.TaskUpdate(title="Audit all links"))
        assert store.count(ACTIVITIES) == before
        assert crud.get_task(store, task_id).title == "Audit links"


@pytest.fixture
def seeded(store, admin, manager, member, other_member, project_id):
    """Ids and principals for a project with one task and one issue."""
    task_id = crud.create_task(
        store, manager, schemas.TaskCreate(project_id=project_id, title="Design homepage", assigned_to=member.id)
    )
    issue_id = crud.create_issue(store, member, schemas.IssueCreate(project_id=project_id, title="Login button broken"))
    return {
        "admin": admin,
        "manager": manager,
        "member": member,
        "project_id": project_id,
        "task_id": task_id,
        "issue_id": issue_id,
        "member_id": member.id,
        "other_member_id": other_member.id,
    }


# (call, key of the expected target id in seeded; None means the call's return value)
MUTATIONS = [
    pytest.param(
        lambda s, c: crud.create_project(s, c["manager"], schemas.ProjectCreate(name="Intranet")),
        None, id="create_project",
    ),
    pytest.param(
        lambda s, c: crud.update_project(s, c["manager"], c["project_id"], schemas.ProjectUpdate(status="on-hold")),
        "project_id", id="update_project",
    ),
    pytest.param(
        lambda s, c: crud.delete_project(s, c["admin"], c["project_id"]),
        "project_id", id="delete_project",
    ),
    pytest.param(
        lambda s, c: crud.add_project_member(s, c["manager"], c["project_id"], c["other_member_id"]),
        "other_member_id", id="add_project_member",
    ),
    pytest.param(
        lambda s, c: crud.create_task(s, c["manager"], schemas.TaskCreate(project_id=c["project_id"], title="Copy")),
        None, id="create_task",
    ),
    pytest.param(
        lambda s, c: crud.update_task(s, c["manager"], c["task_id"], schemas.TaskUpdate(priority="high")),
        "task_id", id="update_task",
    ),
    pytest.param(
        lambda s, c: crud.update_task_status(s, c["member"], c["task_id"], "review"),
        "task_id", id="update_task_status",
    ),
    pytest.param(
        lambda s, c: crud.advance_task(s, c["manager"], c["task_id"]),
        "task_id", id="advance_task",
    ),
    pytest.param(
        lambda s, c: crud.delete_task(s, c["manager"], c["task_id"]),
        "task_id", id="delete_task",
    ),
    pytest.param(
        lambda s, c: crud.create_issue(s, c["member"], schemas.IssueCreate(project_id=c["project_id"], title="Typo")),
        None, id="create_issue",
    ),
    pytest.param(
        lambda s, c: crud.update_issue(s, c["manager"], c["issue_id"], schemas.IssueUpdate(status="resolved")),
        "issue_id", id="update_issue",
    ),
    pytest.param(
        lambda s, c: crud.delete_issue(s, c["manager"], c["issue_id"]),
        "issue_id", id="delete_issue",
    ),
    pytest.param(
        lambda s, c: crud.register_user(s, schemas.UserCreate(id="new-1", email="new@example.com")),
        None, id="register_user",
    ),
    pytest.param(
        lambda s, c: crud.update_user_role(s, c["admin"], c["member_id"], "manager"),
        "member_id", id="update_user_role",
    ),
    pytest.param(
        lambda s, c: crud.update_member_profile(
            s, c["member"], c["member_id"], schemas.UserProfileUpdate(position="Designer")
        ),
        "member_id", id="update_member_profile",
    ),
]


class TestOneActivityPerMutation:
    """Test that every successful mutation records exactly one activity about its target."""

    @pytest.mark.parametrize("mutate, target_key", MUTATIONS)
    def test_single_activity(self, store, seeded, mutate, target_key):
        before = store.count(ACTIVITIES)

        result = mutate(store, seeded)

        assert store.count(ACTIVITIES) == before + 1
        expected = result if target_key is None else seeded[target_key]
        assert get_activities(store, limit=1)[0].target_id == expected


class TestActivityFeed:
    """Test reading the activity feed."""

    def test_newest_first(self, store):
        """Test ordering, including records written within the same instant."""
        for i in range(3):
            log_activity(store, "p1", "u1", f"action {i}", "task", f"t{i}", f"Task {i}")

        feed = get_activities(store)
        assert [a.action for a in feed] == ["action 2", "action 1", "action 0"]

    def test_limit(self, store):
        for i in range(5):
            log_activity(store, "p1", "u1", f"action {i}", "task", f"t{i}", "")

        feed = get_activities(store, limit=2)
        assert [a.action for a in feed] == ["action 4", "action 3"]

    def test_default_limit_is_configured_feed_size(self, store):
        for i in range(55):
            log_activity(store, "p1", "u1", "touched", "task", f"t{i}", "")

        assert len(get_activities(store)) == 50

    @pytest.mark.parametrize("limit", [0, -3])
    def test_limit_must_be_positive(self, store, limit):
        with pytest.raises(ValidationError) as exc_info:
            get_activities(store, limit=limit)
        assert exc_info.value.field == "limit"

    def test_filter_by_project_and_target_type(self, store):
        log_activity(store, "p1", "u1", "created task", "task", "t1", "")
        log_activity(store, "p1", "u1", "reported issue", "issue", "i1", "")
        log_activity(store, "p2", "u1", "created task", "task", "t2", "")

        assert [a.target_id for a in get_activities(store, project_id="p1")] == ["i1", "t1"]
        assert [a.target_id for a in get_activities(store, target_type=TargetType.TASK)] == ["t2", "t1"]

    def test_time_window(self, store):
        now = datetime.now(timezone.utc)
        store.insert(ACTIVITIES, {
            "project_id": "p1", "user_id": "u1", "action": "old", "target_type": "task",
            "target_id": "t0", "target_title": "", "created_at": now - timedelta(days=10),
        })
        log_activity(store, "p1", "u1", "recent", "task", "t1", "")

        feed = get_activities(store, since=now - timedelta(days=1))
        assert [a.action for a in feed] == ["recent"]
        feed = get_activities(store, until=now - timedelta(days=1))
        assert [a.action for a in feed] == ["old"]

    def test_naive_bounds_read_as_utc(self, store):
        log_activity(store, "p1", "u1", "recent", "task", "t1", "")
        yesterday = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=1)

        assert [a.action for a in get_activities(store, since=yesterday)] == ["recent"]
        assert get_activities(store, until=yesterday) == []

    def test_returns_schema_objects(self, store):
        log_activity(store, None, "u1", "joined", "member", "u1", "User")
        [activity] = get_activities(store)
        assert isinstance(activity, schemas.Activity)
        assert activity.target_type == "member"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
