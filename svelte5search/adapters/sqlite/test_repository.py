"""Tests for SQLite Index Store."""

from pathlib import Path

import pytest

from svelte5search.config.errors import IndexConsistencyError, QueryError, StorageError
from svelte5search.domains.corpus.models import ExampleItem, ItemKind, KnowledgeItem, SyncMetadata

from .repository import SQLiteIndexStore


@pytest.fixture
async def store(tmp_path: Path):
    """Create a test store with temporary database."""
    store = SQLiteIndexStore(tmp_path / "test.db")
    await store.initialize({"$state": ["state", "reactive state"]})
    yield store
    await store.close()


async def _insert(store: SQLiteIndexStore, *items) -> list[int]:
    async with store.transaction():
        return [await store.insert_item(item) for item in items]


async def test_initialize_creates_tables(store: SQLiteIndexStore):
    """Test that initialize creates all required tables and triggers."""
    conn = await store._get_connection()
    cursor = await conn.execute("SELECT name, type FROM sqlite_master")
    objects = {row[0]: row[1] for row in await cursor.fetchall()}

    for table in ("knowledge", "examples", "metadata", "synonyms", "knowledge_fts", "examples_fts"):
        assert objects.get(table) == "table"
    for trigger in ("knowledge_ai", "knowledge_au", "knowledge_ad", "examples_ai", "examples_au", "examples_ad"):
        assert objects.get(trigger) == "trigger"


async def test_use_before_initialize_raises(tmp_path: Path):
    store = SQLiteIndexStore(tmp_path / "fresh.db")
    with pytest.raises(StorageError):
        await store.count(ItemKind.KNOWLEDGE)


async def test_synonyms_persisted(store: SQLiteIndexStore):
    assert await store.load_synonyms() == {"$state": ["state", "reactive state"]}


async def test_insert_and_get_record(store: SQLiteIndexStore):
    """Test inserting and retrieving a knowledge row."""
    item = KnowledgeItem(question="What is $state?", answer="Reactive state rune.")
    [record_id] = await _insert(store, item)

    assert record_id > 0
    record = await store.get_record(ItemKind.KNOWLEDGE, "What is $state?")
    assert record is not None
    assert record.id == record_id
    assert record.content_hash == item.content_hash
    assert record.version == 1
    assert await store.count(ItemKind.KNOWLEDGE) == 1


async def test_update_preserves_id_and_bumps_version(store: SQLiteIndexStore):
    [record_id] = await _insert(store, KnowledgeItem(question="Q", answer="old answer"))

    changed = KnowledgeItem(question="Q", answer="new answer")
    async with store.transaction():
        await store.update_item(record_id, changed)

    record = await store.get_record(ItemKind.KNOWLEDGE, "Q")
    assert record.id == record_id
    assert record.answer == "new answer"
    assert record.version == 2
    assert record.content_hash == changed.content_hash

    # Trigger replaced the indexed text
    assert await store.query(ItemKind.KNOWLEDGE, '"old"') == []
    assert len(await store.query(ItemKind.KNOWLEDGE, '"new answer"')) == 1


async def test_transaction_rolls_back_on_error(store: SQLiteIndexStore):
    with pytest.raises(RuntimeError):
        async with store.transaction():
            await store.insert_item(KnowledgeItem(question="Q", answer="A"))
            raise RuntimeError("boom")

    assert await store.count(ItemKind.KNOWLEDGE) == 0
    assert await store.query(ItemKind.KNOWLEDGE, '"A"') == []


async def test_query_highlights_and_ranks(store: SQLiteIndexStore):
    """Test full-text search with highlighting."""
    await _insert(
        store,
        KnowledgeItem(question="How does $state work?", answer="Use $state for reactive state."),
        KnowledgeItem(question="What are snippets?", answer="Reusable markup blocks."),
    )

    rows = await store.query(ItemKind.KNOWLEDGE, '"state"', limit=5)

    assert len(rows) == 1
    row = rows[0]
    assert row["rank"] < 0
    assert row["highlighted_question"] == "How does $<mark>state</mark> work?"
    assert row["highlighted_answer"] == "Use $<mark>state</mark> for reactive <mark>state</mark>."


async def test_query_is_case_insensitive_phrase(store: SQLiteIndexStore):
    await _insert(
        store,
        ExampleItem(
            instruction="Counter with click handler",
            input="a counter",
            output="<button onclick={() => count++}>{count}</button>",
        ),
    )

    assert len(await store.query(ItemKind.EXAMPLES, '"CLICK HANDLER"')) == 1
    assert await store.query(ItemKind.EXAMPLES, '"handler click"') == []


async def test_query_rejects_malformed_expression(store: SQLiteIndexStore):
    await _insert(store, KnowledgeItem(question="Q", answer="A"))

    with pytest.raises(QueryError):
        await store.query(ItemKind.KNOWLEDGE, '"unterminated')


async def test_metadata_round_trip(store: SQLiteIndexStore):
    await store.set_metadata(SyncMetadata(data_version="1.0.0", knowledge_count=3))
    await store.set_metadata(SyncMetadata(data_version="1.1.0", knowledge_count=4))

    metadata = await store.get_metadata()
    assert metadata.data_version == "1.1.0"
    assert metadata.knowledge_count == 4


async def test_verify_detects_divergence_and_rebuild_recovers(store: SQLiteIndexStore):
    await _insert(store, KnowledgeItem(question="Indexed", answer="row"))
    await store.verify_index()

    # Bypass the insert trigger so a primary row never reaches the index
    conn = await store._get_connection()
    await conn.execute("DROP TRIGGER knowledge_ai")
    await conn.execute("INSERT INTO knowledge (question, answer) VALUES ('Orphan', 'row')")

    with pytest.raises(IndexConsistencyError):
        await store.verify_index()
    assert store.index_trusted is False
    with pytest.raises(IndexConsistencyError):
        await store.query(ItemKind.KNOWLEDGE, '"row"')

    await store.rebuild_index()
    await store.verify_index()

    assert store.index_trusted is True
    assert len(await store.query(ItemKind.KNOWLEDGE, '"orphan"')) == 1


async def test_metadata_unset_fields_are_cleared(store: SQLiteIndexStore):
    await store.set_metadata(SyncMetadata(data_version="1.0.0", source_name="seed"))
    await store.set_metadata(SyncMetadata(source_name="forced"))

    metadata = await store.get_metadata()
    assert metadata.data_version is None
    assert metadata.source_name == "forced"
