"""Tests for quick search across tasks, projects and issues."""
import pytest
from taskflow_core import crud, schemas
from taskflow_core.store import ACTIVITIES


@pytest.fixture
def catalog(store, manager, member, other_member, project_id):
    """Two tasks (one per member) and an issue, all mentioning 'login'."""
    mine = crud.create_task(
        store, manager, schemas.TaskCreate(project_id=project_id, title="Fix Login redirect", assigned_to=member.id)
    )
    theirs = crud.create_task(
        store, manager, schemas.TaskCreate(project_id=project_id, title="Login audit", assigned_to=other_member.id)
    )
    issue_id = crud.create_issue(store, member, schemas.IssueCreate(project_id=project_id, title="LOGIN button broken"))
    return {"mine": mine, "theirs": theirs, "issue_id": issue_id}


class TestSearch:
    """Test crud.search."""

    def test_case_insensitive_substring(self, store, manager, project_id, catalog):
        results = crud.search(store, manager, "login")

        assert {t.id for t in results.tasks} == {catalog["mine"], catalog["theirs"]}
        assert [i.id for i in results.issues] == [catalog["issue_id"]]
        assert results.projects == []

        assert [p.id for p in crud.search(store, manager, "RELAUNCH").projects] == [project_id]

    def test_member_only_finds_own_tasks(self, store, member, catalog):
        results = crud.search(store, member, "login")

        assert [t.id for t in results.tasks] == [catalog["mine"]]
        assert [i.id for i in results.issues] == [catalog["issue_id"]]

    @pytest.mark.parametrize("q", ["", "   "])
    def test_blank_query_is_empty(self, store, manager, catalog, q):
        assert crud.search(store, manager, q) == schemas.SearchResults()

    def test_result_limits(self, store, manager):
        for i in range(4):
            project_id = crud.create_project(store, manager, schemas.ProjectCreate(name=f"Docs site {i}"))
            crud.create_issue(store, manager, schemas.IssueCreate(project_id=project_id, title=f"Docs typo {i}"))
        for i in range(7):
            crud.create_task(store, manager, schemas.TaskCreate(project_id=project_id, title=f"Docs page {i}"))

        results = crud.search(store, manager, "docs")
        assert len(results.tasks) == 5
        assert len(results.projects) == 3
        assert len(results.issues) == 3
        # newest first
        assert results.tasks[0].title == "Docs page 6"

    def test_search_writes_nothing(self, store, manager, catalog):
        before = store.count(ACTIVITIES)
        crud.search(store, manager, "login")
        assert store.count(ACTIVITIES) == before


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
