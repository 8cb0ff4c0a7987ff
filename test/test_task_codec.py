from datetime import date

from smart_tasks.models import FieldBundle, Priority, Source
from storage.task_codec import EXPORT_VERSION, export_tasks, import_tasks
from storage.task_repository import TaskRepository


def test_export_shape(repository, clock):
    repository.create(FieldBundle(task_name="A", due_date=date(2024, 6, 3)), Source.SINGLE, "A on monday")
    snapshot = export_tasks(repository)
    assert snapshot.version == EXPORT_VERSION
    assert snapshot.task_count == 1
    assert snapshot.export_date == clock()

    public = snapshot.public()
    assert set(public) == {"exportDate", "version", "taskCount", "tasks"}
    task = public["tasks"][0]
    assert task["taskName"] == "A"
    assert task["dueDate"] == "2024-06-03"
    assert task["originalInput"] == "A on monday"


def test_export_then_import_replace_keeps_task_fields(repository, clock):
    first = repository.create(
        FieldBundle(task_name="Send budget", assignee="Rahul", due_date=date(2024, 6, 2), due_time="18:00", priority=Priority.P2)
    )
    repository.create_many([FieldBundle(task_name="Book venue", assignee="Meera")], original_input="transcript")
    repository.update(first.id, {"tags": ["finance"], "notes": "ask Priya"})
    repository.toggle_complete(first.id, True)
    before = export_tasks(repository).public()["tasks"]

    other = TaskRepository(clock=clock)
    other.create(FieldBundle(task_name="stale"))
    other.create(FieldBundle(task_name="stale too"))
    result = import_tasks(other, before, replace=True)
    assert (result.imported_count, result.skipped_count, result.total_tasks) == (2, 0, 2)

    after = export_tasks(other).public()["tasks"]
    assert [t["id"] for t in after] == [1, 2]
    keep = ("taskName", "assignee", "dueDate", "dueTime", "priority", "completed", "source", "tags", "notes", "originalInput")
    assert [{k: t[k] for k in keep} for t in after] == [{k: t[k] for k in keep} for t in before]
    assert after[0]["completedAt"] is not None


def test_import_appends_and_counts_skips(repository):
    repository.create(FieldBundle(task_name="existing"))
    items = [
        {"taskName": "New one", "priority": "P1", "source": "meeting"},
        {"task_name": "snake case", "tags": "a, b"},
        {"taskName": "   "},
        {"assignee": "nobody"},
        "not an object",
        42,
    ]
    result = import_tasks(repository, items)
    assert result.imported_count == 2
    assert result.skipped_count == 4
    assert result.total_tasks == 3

    records = sorted(repository.all(), key=lambda r: r.id)
    assert [r.id for r in records] == [1, 2, 3]
    assert records[1].source is Source.MEETING
    assert records[1].priority is Priority.P1
    assert records[2].tags == ["a", "b"]
    assert records[2].source is Source.SINGLE


def test_import_unknown_priority_and_source_get_defaults(repository):
    import_tasks(repository, [{"taskName": "x", "priority": "urgent", "source": "email"}])
    [record] = repository.all()
    assert record.priority is Priority.P3
    assert record.source is Source.SINGLE


def test_import_of_exported_records_keeps_source(repository, clock):
    repository.create(FieldBundle(task_name="A", assignee="X"), Source.SINGLE, "A for X")
    repository.create_many([FieldBundle(task_name="B", assignee="Y", due_date=date(2024, 6, 4))], original_input="meeting")
    snapshot = export_tasks(repository)

    other = TaskRepository(clock=clock)
    result = import_tasks(other, snapshot.tasks, replace=True)
    assert result.imported_count == 2

    def fields(records):
        return {(r.task_name, r.assignee, r.due_date, r.priority, r.source, r.original_input) for r in records}

    assert fields(other.all()) == fields(snapshot.tasks)


def test_import_accepts_enum_source_in_plain_dicts(repository):
    import_tasks(repository, [{"taskName": "x", "source": Source.MEETING}])
    assert repository.all()[0].source is Source.MEETING
