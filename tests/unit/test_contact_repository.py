from datetime import timedelta

import pytest

from app.models.domain.errors import ConflictError, NotFoundError, ValidationError
from app.repositories.contact_repository import ContactRepository, is_valid_email


@pytest.fixture
def contacts(store, clock):
    return ContactRepository(store, clock=clock)


def test_create_assigns_id_defaults_and_timestamps(contacts, clock):
    contact = contacts.create({"name": "Ana Ruiz", "email": "ana@example.com"})

    assert contact.id
    assert contact.status == "Prospect"
    assert contact.interaction_history == []
    assert contact.created_at == clock.now
    assert contact.updated_at == clock.now
    assert contact.archived is False
    assert contact.archived_at is None
    assert contact.version == 1


def test_created_ids_are_unique_and_stable(contacts, clock):
    first = contacts.create({"name": "A"})
    second = contacts.create({"name": "B"})
    assert first.id != second.id

    clock.now += timedelta(minutes=5)
    updated = contacts.update(first.id, {"name": "A2"})

    assert updated.id == first.id
    assert updated.created_at == first.created_at
    assert updated.updated_at == clock.now
    assert updated.version == 2


def test_create_rejects_bad_email(contacts):
    with pytest.raises(ValidationError):
        contacts.create({"email": "bad"})


def test_create_allows_missing_email(contacts):
    assert contacts.create({"name": "Sin correo"}).email == ""


def test_duplicate_active_email_conflicts_case_insensitively(contacts):
    contacts.create({"email": "ana@example.com"})

    with pytest.raises(ConflictError):
        contacts.create({"email": "ANA@example.com"})


def test_archived_contact_frees_its_email(contacts):
    original = contacts.create({"email": "ana@example.com"})
    contacts.archive(original.id)

    recreated = contacts.create({"email": "ana@example.com"})

    assert recreated.id != original.id


def test_update_rechecks_email_only_when_changed(contacts):
    ana = contacts.create({"email": "ana@example.com"})
    contacts.create({"email": "luis@example.com"})

    # Same email again is not a conflict with itself
    assert contacts.update(ana.id, {"email": "ana@example.com", "phone": "555"}).phone == "555"

    with pytest.raises(ConflictError):
        contacts.update(ana.id, {"email": "luis@example.com"})
    with pytest.raises(ValidationError):
        contacts.update(ana.id, {"email": "not an email"})


def test_update_unknown_id_leaves_store_untouched(contacts, store):
    contacts.create({"name": "Ana"})
    before = store.path.read_text(encoding="utf-8")

    with pytest.raises(NotFoundError):
        contacts.update("missing", {"name": "X"})

    assert store.path.read_text(encoding="utf-8") == before


def test_update_ignores_server_managed_fields(contacts):
    contact = contacts.create({"name": "Ana"})

    updated = contacts.update(contact.id, {"id": "hijack", "created_at": None, "name": "Ana M"})

    assert updated.id == contact.id
    assert updated.created_at == contact.created_at
    assert updated.name == "Ana M"


def test_update_with_stale_version_conflicts(contacts, store):
    contact = contacts.create({"name": "Ana"})
    contacts.update(contact.id, {"name": "Ana 2"}, expected_version=1)
    before = store.path.read_text(encoding="utf-8")

    with pytest.raises(ConflictError):
        contacts.update(contact.id, {"name": "Ana 3"}, expected_version=1)

    assert store.path.read_text(encoding="utf-8") == before


def test_archive_hides_from_default_list(contacts):
    keep = contacts.create({"name": "Keep"})
    gone = contacts.create({"name": "Gone"})

    contacts.archive(gone.id)

    assert [c.id for c in contacts.list()] == [keep.id]
    assert [c.id for c in contacts.list(include_archived=True)] == [keep.id, gone.id]


def test_archive_is_idempotent_and_restamps(contacts, clock):
    contact = contacts.create({"name": "Ana"})

    first = contacts.archive(contact.id)
    clock.now += timedelta(hours=1)
    second = contacts.archive(contact.id)

    assert first.archived is True and second.archived is True
    assert second.archived_at == clock.now
    assert second.archived_at > first.archived_at
    assert second.updated_at == clock.now


def test_archive_through_update_restamps(contacts, clock):
    contact = contacts.create({"name": "Ana"})
    first = contacts.archive(contact.id)
    clock.now += timedelta(hours=1)

    second = contacts.update(contact.id, {"archived": True})

    assert second.archived is True
    assert second.archived_at == clock.now
    assert second.archived_at > first.archived_at


def test_archive_unknown_id(contacts):
    with pytest.raises(NotFoundError):
        contacts.archive("missing")


def test_unarchive_through_update_does_not_recheck_email(contacts):
    original = contacts.create({"email": "ana@example.com"})
    contacts.archive(original.id)
    contacts.create({"email": "ana@example.com"})

    restored = contacts.update(original.id, {"archived": False})

    assert restored.archived is False
    assert restored.archived_at is None


def test_explicit_null_resets_text_field(contacts):
    contact = contacts.create({"name": "Ana", "notes": "vip"})

    updated = contacts.update(contact.id, {"notes": None, "status": None})

    assert updated.notes == ""
    assert updated.status == "Prospect"


def test_legacy_fields_survive_update(contacts, store):
    with store.transaction() as document:
        document.contacts.append({"id": "legacy-1", "name": "Old", "source": "import"})

    contacts.update("legacy-1", {"name": "Old Co"})

    record = store.snapshot().contacts[0]
    assert record["source"] == "import"
    assert record["name"] == "Old Co"
    assert record["version"] == 2


@pytest.mark.parametrize(
    "email, valid",
    [
        ("ana@example.com", True),
        ("a.b+c@sub.example.co", True),
        ("bad", False),
        ("ana@example", False),
        ("ana @example.com", False),
        ("@example.com", False),
    ],
)
def test_email_pattern(email, valid):
    assert is_valid_email(email) is valid


def test_legacy_nulls_and_numbers_are_readable(contacts, store):
    with store.transaction() as document:
        document.contacts.append(
            {"id": "legacy-2", "name": None, "phone": 5551234, "interactionHistory": None}
        )

    contact = contacts.get("legacy-2")

    assert contact.name == ""
    assert contact.phone == "5551234"
    assert contact.interaction_history == []
    assert [c.id for c in contacts.list()] == ["legacy-2"]
