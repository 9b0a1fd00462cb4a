from datetime import date

import pytest

from app.models.domain.errors import NotFoundError
from app.repositories.task_repository import TaskRepository


@pytest.fixture
def tasks(store, clock):
    return TaskRepository(store, clock=clock)


def test_create_defaults(tasks):
    task = tasks.create({"title": "Llamar a Ana"})

    assert task.status == "pending"
    assert task.assigned_to == "Me"
    assert task.linked_type is None
    assert task.linked_id is None
    assert task.due_date is None


def test_create_with_link_and_due_date(tasks):
    task = tasks.create(
        {
            "title": "Enviar propuesta",
            "due_date": date(2024, 7, 1),
            "linked_type": "opportunity",
            "linked_id": "o-1",
        }
    )

    assert task.due_date == "2024-07-01"
    assert task.linked_type == "opportunity"
    assert task.linked_id == "o-1"


def test_update_status_and_notes(tasks):
    task = tasks.create({"title": "Seguimiento"})

    updated = tasks.update(task.id, {"status": "done", "notes": "Hecho"})

    assert updated.status == "done"
    assert updated.notes == "Hecho"
    assert updated.version == 2


def test_blank_status_falls_back_to_pending(tasks):
    task = tasks.create({"title": "Seguimiento", "status": "in-progress"})

    assert tasks.update(task.id, {"status": ""}).status == "pending"


def test_archive_task(tasks):
    task = tasks.create({"title": "Old"})

    tasks.archive(task.id)

    assert tasks.list() == []
    assert tasks.list(include_archived=True)[0].archived is True


def test_unknown_task(tasks):
    with pytest.raises(NotFoundError):
        tasks.archive("missing")
    with pytest.raises(NotFoundError):
        tasks.get("missing")


def test_unknown_legacy_linked_type_reads_as_unlinked(tasks, store):
    with store.transaction() as document:
        document.tasks.append({"id": "legacy", "title": None, "linkedType": "lead"})

    task = tasks.get("legacy")

    assert task.linked_type is None
    assert task.title == ""
