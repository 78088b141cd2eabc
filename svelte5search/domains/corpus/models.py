"""
Corpus Models - Knowledge Q&A items, code-pattern examples and sync bookkeeping.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from enum import Enum
from typing import Any, ClassVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from svelte5search.config.errors import CorpusValidationError


class ItemKind(str, Enum):
    """The two corpus item kinds."""

    KNOWLEDGE = "knowledge"
    EXAMPLES = "examples"


def compute_content_hash(*parts: str) -> str:
    """Digest of the concatenated semantic fields of an item."""
    return hashlib.md5("".join(parts).encode("utf-8")).hexdigest()


class KnowledgeItem(BaseModel):
    """Concept Q&A entry as supplied by the corpus."""

    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: ClassVar[ItemKind] = ItemKind.KNOWLEDGE
    key_field: ClassVar[str] = "question"
    text_fields: ClassVar[tuple[str, ...]] = ("question", "answer")

    @property
    def key(self) -> str:
        return self.question

    @property
    def content_hash(self) -> str:
        return compute_content_hash(self.question, self.answer)

    def field_values(self) -> tuple[str, ...]:
        return (self.question, self.answer)


class ExampleItem(BaseModel):
    """Code-pattern example as supplied by the corpus."""

    instruction: str = Field(..., min_length=1)
    input: str = Field(..., min_length=1)
    output: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: ClassVar[ItemKind] = ItemKind.EXAMPLES
    key_field: ClassVar[str] = "instruction"
    text_fields: ClassVar[tuple[str, ...]] = ("instruction", "input", "output")

    @property
    def key(self) -> str:
        return self.instruction

    @property
    def content_hash(self) -> str:
        return compute_content_hash(self.instruction, self.input, self.output)

    def field_values(self) -> tuple[str, ...]:
        return (self.instruction, self.input, self.output)


CorpusItem = Union[KnowledgeItem, ExampleItem]

ITEM_TYPES: dict[ItemKind, type[KnowledgeItem] | type[ExampleItem]] = {
    ItemKind.KNOWLEDGE: KnowledgeItem,
    ItemKind.EXAMPLES: ExampleItem,
}


def validate_item(kind: ItemKind, raw: CorpusItem | Mapping[str, Any], index: int) -> CorpusItem:
    """
    Coerce one raw corpus record into its typed item.

    Raises:
        CorpusValidationError: when a required field is missing, empty or not a string
    """
    item_type = ITEM_TYPES[kind]
    if isinstance(raw, item_type):
        return raw

    try:
        return item_type.model_validate(raw)
    except PydanticValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise CorpusValidationError(
            f"Invalid {kind.value} record at index {index}",
            details={"kind": kind.value, "index": index, "fields": fields},
        ) from e


class KnowledgeRecord(BaseModel):
    """Stored knowledge row."""

    id: int
    question: str
    answer: str
    content_hash: str | None = None
    version: int = 1
    created_at: str | None = None
    updated_at: str | None = None

    kind: ClassVar[ItemKind] = ItemKind.KNOWLEDGE
    text_fields: ClassVar[tuple[str, ...]] = ("question", "answer")


class ExampleRecord(BaseModel):
    """Stored example row."""

    id: int
    instruction: str
    input: str
    output: str
    content_hash: str | None = None
    version: int = 1
    created_at: str | None = None
    updated_at: str | None = None

    kind: ClassVar[ItemKind] = ItemKind.EXAMPLES
    text_fields: ClassVar[tuple[str, ...]] = ("instruction", "input", "output")


CorpusRecord = Union[KnowledgeRecord, ExampleRecord]

RECORD_TYPES: dict[ItemKind, type[KnowledgeRecord] | type[ExampleRecord]] = {
    ItemKind.KNOWLEDGE: KnowledgeRecord,
    ItemKind.EXAMPLES: ExampleRecord,
}


class SyncCounts(BaseModel):
    """Per-kind outcome of a sync."""

    inserted: int = 0
    updated: int = 0
    skipped: int = 0


class RejectedRecord(BaseModel):
    """A corpus record excluded from the sync by validation."""

    kind: ItemKind
    index: int
    error: dict[str, Any] = Field(default_factory=dict)


class SyncReport(BaseModel):
    """Result of one sync call."""

    knowledge: SyncCounts = Field(default_factory=SyncCounts)
    examples: SyncCounts = Field(default_factory=SyncCounts)
    rejected: list[RejectedRecord] = Field(default_factory=list)
    up_to_date: bool = False

    def counts(self, kind: ItemKind) -> SyncCounts:
        return self.knowledge if kind is ItemKind.KNOWLEDGE else self.examples

    @property
    def inserted(self) -> int:
        return self.knowledge.inserted + self.examples.inserted

    @property
    def updated(self) -> int:
        return self.knowledge.updated + self.examples.updated

    @property
    def skipped(self) -> int:
        return self.knowledge.skipped + self.examples.skipped


class SyncMetadata(BaseModel):
    """Key-value sync bookkeeping persisted next to the corpus."""

    last_sync_time: str | None = None
    data_version: str | None = None
    source_name: str | None = None
    knowledge_count: int = 0
    examples_count: int = 0

    def to_pairs(self) -> dict[str, str]:
        """Flatten to the string key/value pairs stored in the metadata table."""
        return {key: str(value) for key, value in self.model_dump().items() if value is not None}

    @classmethod
    def from_pairs(cls, pairs: Mapping[str, str]) -> SyncMetadata:
        known = {key: value for key, value in pairs.items() if key in cls.model_fields}
        return cls.model_validate(known)
