from datetime import date

import pytest

from smart_tasks.errors import NotFound, ValidationError
from smart_tasks.models import FieldBundle, Priority, Source, TaskQuery


def _bundle(name, **kw):
    return FieldBundle(task_name=name, **kw)


def test_ids_are_sequential_and_never_reused(repository):
    a = repository.create(_bundle("A"))
    b = repository.create(_bundle("B"))
    repository.delete(b.id)
    c = repository.create(_bundle("C"))
    assert (a.id, b.id, c.id) == (1, 2, 3)


def test_create_sets_timestamps_and_defaults(repository, clock):
    record = repository.create(_bundle("Call client"), Source.SINGLE, "Call client")
    assert record.created_at == clock() == record.updated_at
    assert record.completed is False and record.completed_at is None
    assert record.tags == [] and record.notes == ""
    assert repository.get(record.id) == record


def test_create_many_defaults_to_meeting(repository):
    records = repository.create_many([_bundle("A", assignee="Rahul"), _bundle("B", assignee="Meera")])
    assert [r.source for r in records] == [Source.MEETING, Source.MEETING]
    assert repository.count() == 2


def test_returned_records_are_copies(repository):
    record = repository.create(_bundle("A"))
    record.tags.append("mutated")
    assert repository.get(record.id).tags == []


def test_get_missing(repository):
    assert repository.get_by_id(42) is None
    with pytest.raises(NotFound):
        repository.get(42)


def test_update_changes_fields_and_updated_at(repository, clock):
    record = repository.create(_bundle("Draft memo"))
    clock.advance(minutes=5)
    updated = repository.update(record.id, {"taskName": "Final memo", "priority": "p1", "notes": "hi"})
    assert updated.task_name == "Final memo"
    assert updated.priority is Priority.P1
    assert updated.notes == "hi"
    assert updated.updated_at > record.updated_at
    assert updated.created_at == record.created_at


def test_update_can_clear_optional_fields(repository):
    record = repository.create(_bundle("A", assignee="Bob", due_date=date(2024, 6, 3)))
    updated = repository.update(record.id, {"assignee": None, "dueDate": None})
    assert updated.assignee is None and updated.due_date is None


@pytest.mark.parametrize(
    "fields",
    [{"priority": "P7"}, {"taskName": "  "}, {"dueTime": "25:00"}, {"dueDate": "someday"}],
)
def test_update_rejects_invalid_values(repository, fields):
    record = repository.create(_bundle("A"))
    with pytest.raises(ValidationError):
        repository.update(record.id, fields)
    assert repository.get(record.id).task_name == "A"


def test_update_unknown_id(repository):
    with pytest.raises(NotFound):
        repository.update(99, {"notes": "x"})


def test_completion_timestamp_follows_transitions(repository, clock):
    record = repository.create(_bundle("A"))
    clock.advance(hours=1)
    done = repository.toggle_complete(record.id, True)
    assert done.completed and done.completed_at == clock()

    clock.advance(hours=1)
    again = repository.toggle_complete(record.id, True)
    assert again.completed_at == done.completed_at

    undone = repository.toggle_complete(record.id, False)
    assert undone.completed is False and undone.completed_at is None


def test_delete_returns_record(repository):
    record = repository.create(_bundle("A"))
    assert repository.delete(record.id).task_name == "A"
    with pytest.raises(NotFound):
        repository.delete(record.id)


def test_delete_by_source(repository):
    repository.create(_bundle("single"))
    repository.create_many([_bundle("m1", assignee="X"), _bundle("m2", assignee="Y")])
    result = repository.delete_by_source("meeting")
    assert result.count == 2
    assert {r.task_name for r in result.deleted} == {"m1", "m2"}
    assert [r.task_name for r in repository.all()] == ["single"]
    with pytest.raises(ValidationError):
        repository.delete_by_source("email")


def test_bulk_action_partial(repository):
    a = repository.create(_bundle("A"))
    b = repository.create(_bundle("B"))
    result = repository.bulk_action([a.id, 99, b.id, a.id], "complete")
    assert result.affected == [a.id, b.id]
    assert result.not_found == [99]
    assert all(r.completed for r in repository.all())


def test_bulk_update_priority_and_delete(repository):
    a = repository.create(_bundle("A"))
    b = repository.create(_bundle("B"))
    repository.bulk_action([a.id], "update_priority", {"priority": "P1"})
    assert repository.get(a.id).priority is Priority.P1

    with pytest.raises(ValidationError):
        repository.bulk_action([a.id], "update_priority", {"priority": "urgent"})
    with pytest.raises(ValidationError):
        repository.bulk_action([a.id], "archive")

    result = repository.bulk_action([a.id, b.id], "delete")
    assert result.affected == [a.id, b.id]
    assert repository.count() == 0


def test_query_order(repository):
    done = repository.create(_bundle("done", priority=Priority.P1, due_date=date(2024, 6, 1)))
    repository.toggle_complete(done.id, True)
    repository.create(_bundle("later", priority=Priority.P1, due_date=date(2024, 6, 10)))
    repository.create(_bundle("soon", priority=Priority.P2, due_date=date(2024, 6, 2)))
    repository.create(_bundle("undated", priority=Priority.P1))
    repository.create(_bundle("later-timed", priority=Priority.P1, due_date=date(2024, 6, 10), due_time="09:00"))

    names = [r.task_name for r in repository.query().items]
    assert names == ["later", "later-timed", "undated", "soon", "done"]


def test_query_newest_first_on_ties(repository, clock):
    repository.create(_bundle("old"))
    clock.advance(minutes=1)
    repository.create(_bundle("new"))
    assert [r.task_name for r in repository.query().items] == ["new", "old"]


def test_query_filters(repository):
    repository.create(_bundle("Send budget", assignee="Rahul", priority=Priority.P1))
    repository.create_many([_bundle("Book venue", assignee="Meera")])
    repository.create(_bundle("Call rahul's bank"))

    assert [r.task_name for r in repository.query({"assignee": "rah"}).items] == ["Send budget"]
    assert len(repository.query({"search": "RAHUL"}).items) == 2
    assert [r.task_name for r in repository.query({"source": "meeting"}).items] == ["Book venue"]
    assert [r.task_name for r in repository.query(TaskQuery(priority=Priority.P1)).items] == ["Send budget"]
    assert repository.query({"completed": True}).items == []


def test_query_overdue_filter(repository):
    repository.create(_bundle("yesterday", due_date=date(2024, 5, 31)))
    repository.create(_bundle("today", due_date=date(2024, 6, 1)))
    repository.create(_bundle("this morning", due_date=date(2024, 6, 1), due_time="08:00"))
    overdue = {r.task_name for r in repository.query({"overdue": True}).items}
    assert overdue == {"yesterday", "this morning"}


def test_query_pagination(repository):
    for i in range(5):
        repository.create(_bundle(f"T{i}"))
    result = repository.query({"page": 2, "limit": 2})
    assert len(result.items) == 2
    assert result.pagination.total == 5
    assert result.pagination.total_pages == 3
    assert result.stats.total == 5

    assert repository.query({"page": 4, "limit": 2}).items == []
    with pytest.raises(ValidationError):
        repository.query({"page": 0})


def test_stats(repository, clock):
    repository.create(_bundle("overdue", assignee="rahul", due_date=date(2024, 5, 31), priority=Priority.P1))
    repository.create(_bundle("today", assignee="Meera", due_date=date(2024, 6, 1)))
    repository.create(_bundle("next week", assignee="Rahul", due_date=date(2024, 6, 8)))
    repository.create(_bundle("far", due_date=date(2024, 7, 1)))
    finished = repository.create_many([_bundle("finished", assignee="Tom", due_date=date(2024, 6, 1))])[0]
    repository.toggle_complete(finished.id, True)

    stats = repository.stats()
    assert stats.total == 5
    assert stats.completed == 1
    assert stats.pending == 4
    assert stats.overdue == 1
    assert stats.due_today == 1
    assert stats.due_this_week == 2
    assert stats.by_priority == {"P1": 1, "P2": 0, "P3": 3, "P4": 0}
    assert stats.by_source == {"single": 4, "meeting": 1}
    assert stats.assignees == ["Meera", "rahul", "Tom"]
    assert (stats.today.created, stats.today.completed, stats.today.updated) == (5, 1, 5)

    clock.advance(days=1)
    assert repository.stats().today.created == 0
