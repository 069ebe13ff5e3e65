import pytest

from src.api.errors import InvalidStatusError, NotFoundError, ValidationError
from src.api.models import Identity
from src.api.repositories import ScopedTaskRepository, TaskQuery
from src.api.utils import utcnow


def make_identity(user_id: str) -> Identity:
    return Identity(id=user_id, name=user_id, email=f"{user_id}@example.com", created_at=utcnow())


@pytest.fixture()
def alice(task_repo) -> ScopedTaskRepository:
    return ScopedTaskRepository(make_identity("alice"), task_repo)


@pytest.fixture()
def bob(task_repo) -> ScopedTaskRepository:
    return ScopedTaskRepository(make_identity("bob"), task_repo)


class TestCreateAndGet:
    def test_round_trip_with_defaults(self, alice):
        created = alice.create("  Complete project  ")
        fetched = alice.get(created["id"])
        assert fetched == created
        assert fetched["title"] == "Complete project"
        assert fetched["description"] == ""
        assert fetched["status"] == "pending"
        assert fetched["owner_id"] == "alice"
        assert fetched["created_at"] == fetched["updated_at"]

    def test_explicit_fields_kept(self, alice):
        created = alice.create("Write docs", description="API reference", status="in-progress")
        assert created["description"] == "API reference"
        assert created["status"] == "in-progress"

    @pytest.mark.parametrize("title", [None, "", "   "])
    def test_blank_title_rejected(self, alice, title):
        with pytest.raises(ValidationError):
            alice.create(title)

    @pytest.mark.parametrize("status", ["archived", "Pending", "", "done"])
    def test_unknown_status_rejected(self, alice, task_repo, status):
        with pytest.raises(InvalidStatusError):
            alice.create("Title", status=status)
        assert task_repo.find(TaskQuery(owner_id="alice")) == []

    def test_get_missing_task(self, alice):
        with pytest.raises(NotFoundError):
            alice.get("does-not-exist")


class TestOwnershipIsolation:
    def test_other_owner_cannot_read(self, alice, bob):
        task = alice.create("Private")
        with pytest.raises(NotFoundError) as not_owned:
            bob.get(task["id"])
        with pytest.raises(NotFoundError) as missing:
            bob.get("does-not-exist")
        assert not_owned.value.message == missing.value.message
        assert alice.get(task["id"])["id"] == task["id"]

    def test_other_owner_cannot_update_or_delete(self, alice, bob):
        task = alice.create("Private")
        with pytest.raises(NotFoundError):
            bob.update(task["id"], {"title": "Hijacked"})
        with pytest.raises(NotFoundError):
            bob.delete(task["id"])
        assert alice.get(task["id"])["title"] == "Private"

    def test_lists_are_disjoint(self, alice, bob):
        alice.create("Alice task")
        bob.create("Bob task")
        assert [t["title"] for t in alice.list()] == ["Alice task"]
        assert [t["title"] for t in bob.list()] == ["Bob task"]

    def test_owner_cannot_be_changed_by_update(self, alice, bob):
        task = alice.create("Mine")
        updated = alice.update(task["id"], {"owner_id": "bob", "title": "Still mine"})
        assert updated["owner_id"] == "alice"
        assert bob.list() == []


class TestList:
    def test_newest_first(self, alice):
        ids = [alice.create(f"Task {i}")["id"] for i in range(5)]
        assert [t["id"] for t in alice.list()] == list(reversed(ids))

    def test_empty_when_nothing_matches(self, alice):
        assert alice.list() == []
        alice.create("Something")
        assert alice.list(search="nothing like it") == []

    def test_search_is_case_insensitive_substring_of_title(self, alice):
        alice.create("Complete PROJECT report")
        alice.create("Buy milk", description="project")
        titles = [t["title"] for t in alice.list(search="project")]
        assert titles == ["Complete PROJECT report"]

    def test_search_folds_non_ascii_case(self, alice):
        alice.create("ÉLAN Résumé")
        alice.create("Elan plain")
        assert [t["title"] for t in alice.list(search="élan")] == ["ÉLAN Résumé"]
        assert [t["title"] for t in alice.list(search="STRASSE")] == []
        alice.create("Große Straße")
        assert [t["title"] for t in alice.list(search="STRASSE")] == ["Große Straße"]

    def test_search_is_literal(self, alice):
        alice.create("Plan (draft) v1.0")
        alice.create("Plan v100")
        assert [t["title"] for t in alice.list(search="v1.0")] == ["Plan (draft) v1.0"]
        assert [t["title"] for t in alice.list(search="(draft)")] == ["Plan (draft) v1.0"]

    def test_status_filter(self, alice):
        task = alice.create("Complete project", status="in-progress")
        assert alice.list(status="completed") == []
        assert [t["id"] for t in alice.list(status="in-progress")] == [task["id"]]

    def test_unknown_status_filter_is_ignored(self, alice):
        alice.create("One", status="pending")
        alice.create("Two", status="completed")
        assert len(alice.list(status="archived")) == 2

    def test_search_and_status_combine(self, alice):
        alice.create("Report draft", status="pending")
        alice.create("Report final", status="completed")
        alice.create("Groceries", status="completed")
        results = alice.list(search="report", status="completed")
        assert [t["title"] for t in results] == ["Report final"]


class TestQueryBuilder:
    def test_build_normalizes_inputs(self):
        q = TaskQuery.build("alice", search="  milk ", status="completed")
        assert q == TaskQuery(owner_id="alice", search="milk", status="completed")

    def test_build_drops_blank_search_and_unknown_status(self):
        assert TaskQuery.build("alice", search="   ", status="archived") == TaskQuery(owner_id="alice")

    @pytest.mark.parametrize("status", [" completed ", "Completed", "completed\n"])
    def test_build_requires_exact_status(self, status):
        assert TaskQuery.build("alice", status=status) == TaskQuery(owner_id="alice")


class TestUpdate:
    def test_partial_update_only_touches_present_fields(self, alice):
        task = alice.create("Partial", description="X")
        updated = alice.update(task["id"], {"status": "completed"})
        assert updated["status"] == "completed"
        assert updated["title"] == "Partial"
        assert updated["description"] == "X"
        assert updated["updated_at"] >= task["updated_at"]
        assert updated["created_at"] == task["created_at"]

    def test_any_status_transition_allowed(self, alice):
        task = alice.create("Cycle", status="completed")
        for status in ["pending", "completed", "in-progress", "pending"]:
            assert alice.update(task["id"], {"status": status})["status"] == status

    def test_invalid_status_rejects_whole_update(self, alice):
        task = alice.create("Original", description="keep", status="in-progress")
        with pytest.raises(InvalidStatusError):
            alice.update(task["id"], {"title": "Changed", "description": "changed", "status": "archived"})
        assert alice.get(task["id"]) == task

    def test_blank_title_rejects_whole_update(self, alice):
        task = alice.create("Original")
        with pytest.raises(ValidationError):
            alice.update(task["id"], {"title": "  ", "status": "completed"})
        assert alice.get(task["id"]) == task

    def test_null_description_clears_it(self, alice):
        task = alice.create("Title", description="something")
        assert alice.update(task["id"], {"description": None})["description"] == ""

    def test_missing_task(self, alice):
        with pytest.raises(NotFoundError):
            alice.update("nope", {"title": "x"})


class TestDelete:
    def test_repeated_delete_is_not_found_both_times(self, alice):
        task = alice.create("Temporary")
        alice.delete(task["id"])
        for _ in range(2):
            with pytest.raises(NotFoundError):
                alice.delete(task["id"])
        assert alice.list() == []
