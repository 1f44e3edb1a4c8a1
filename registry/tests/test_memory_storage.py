import uuid

import pytest

from registry.app.metadata.models import MetadataRecord
from registry.app.metadata.predicates import Condition, Predicate
from registry.app.storage.memory import MemoryMetadataRepository, MemorySchemaRepository
from registry.app.utils.identifiers import generate_registry_id

pytestmark = pytest.mark.anyio


async def test_schema_versions_most_recent_wins():
    repository = MemorySchemaRepository()
    await repository.add_raw({"title": "v1"})
    await repository.add_raw({"title": "v2"})

    assert await repository.get_current_raw() == {"title": "v2"}

    await repository.remove_most_recent()
    assert await repository.get_current_raw() == {"title": "v1"}

    await repository.remove_most_recent()
    await repository.remove_most_recent()
    assert await repository.get_current_raw() is None


async def test_stored_schema_is_isolated_from_callers():
    repository = MemorySchemaRepository()
    document = {"properties": {"upi": {"type": "string"}}}
    await repository.add_raw(document)

    document["properties"].clear()
    current = await repository.get_current_raw()
    current["properties"]["extra"] = {}

    assert await repository.get_current_raw() == {"properties": {"upi": {"type": "string"}}}


async def test_save_assigns_identity_and_timestamps():
    repository = MemoryMetadataRepository("upi")

    stored = await repository.save(
        MetadataRecord(registry_id="ignored", metadata={"upi": "00001"})
    )

    assert stored.registry_id != "ignored"
    assert uuid.UUID(stored.registry_id).version == 6
    assert stored.created_at is not None
    assert stored.created_at.tzinfo is not None
    assert stored.modified_at == stored.created_at


async def test_update_replaces_metadata_for_same_upi():
    repository = MemoryMetadataRepository("upi")
    original = await repository.save(MetadataRecord(metadata={"upi": "00001", "v": 1}))

    updated = await repository.update(MetadataRecord(metadata={"upi": "00001", "v": 2}))

    assert updated.registry_id == original.registry_id
    assert updated.created_at == original.created_at
    assert updated.modified_at >= original.modified_at
    assert (await repository.find_by_identifier("00001")).metadata["v"] == 2


async def test_update_of_unknown_upi_fails():
    repository = MemoryMetadataRepository("upi")

    with pytest.raises(LookupError):
        await repository.update(MetadataRecord(metadata={"upi": "00001"}))


async def test_find_by_filters_uses_predicate():
    repository = MemoryMetadataRepository("upi")
    await repository.save(MetadataRecord(metadata={"upi": "00001", "weight": 1}))
    await repository.save(MetadataRecord(metadata={"upi": "00002", "weight": 2}))

    found = await repository.find_by_filters(
        Predicate((Condition("weight", "numeric", 1),))
    )

    assert found.metadata["upi"] == "00001"


async def test_returned_records_are_copies():
    repository = MemoryMetadataRepository("upi")
    await repository.save(MetadataRecord(metadata={"upi": "00001"}))

    found = await repository.find_by_identifier("00001")
    found.metadata["upi"] = "tampered"

    assert await repository.find_by_identifier("00001") is not None


def test_registry_ids_are_unique_and_sort_by_issue_time():
    ids = [generate_registry_id() for _ in range(100)]

    assert len(set(ids)) == 100
    assert sorted(ids) == ids
    assert all(uuid.UUID(i).version == 6 for i in ids)
