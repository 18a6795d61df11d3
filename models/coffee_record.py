from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class RecordStatus(str, Enum):
    """Lifecycle states of a coffee record."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (RecordStatus.COMPLETED, RecordStatus.ERROR)


@dataclass
class CoffeeRecord:
    """In-memory representation of a row in the coffee table.

    Attributes:
        id: Opaque primary key (None for records not yet inserted).
        user_name: Optional display name supplied by the user.
        user_birthday: Optional birthdate string (ISO `YYYY-MM-DD`).
        user_relation_status: Optional relationship status text.
        user_employment_status: Optional employment status text.
        photo_paths: Ordered bucket paths of the cup photos.
        status: Processing status.
        result: AI text on success, error payload dict on failure.
        ai: Metadata about the AI call (promptText, processedAt, source, skippedAssets).
        created_at: Unix timestamp (seconds) when the row was inserted.
    """

    id: Optional[str]
    user_name: Optional[str] = None
    user_birthday: Optional[str] = None
    user_relation_status: Optional[str] = None
    user_employment_status: Optional[str] = None
    photo_paths: List[str] = field(default_factory=list)
    status: RecordStatus = RecordStatus.PENDING
    result: Optional[Union[str, Dict[str, Any]]] = None
    ai: Optional[Dict[str, Any]] = None
    created_at: Optional[int] = None

    @property
    def has_result(self) -> bool:
        return bool(self.result)

    def to_document(self) -> Dict[str, Any]:
        """Return the record using the camelCase field names exposed to clients."""
        return {
            "id": self.id,
            "userName": self.user_name,
            "userBirthday": self.user_birthday,
            "userRelationStatus": self.user_relation_status,
            "userEmploymentStatus": self.user_employment_status,
            "photoPaths": list(self.photo_paths),
            "status": self.status.value,
            "result": self.result,
            "ai": self.ai,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class NormalizedAttributes:
    """User attributes cleaned for prompt composition; absent values are None."""

    name: Optional[str] = None
    age: Optional[int] = None
    relation_status: Optional[str] = None
    employment_status: Optional[str] = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.name, self.age, self.relation_status, self.employment_status)
        )


@dataclass(frozen=True)
class MaterializedAsset:
    """A photo staged locally and registered with the AI service."""

    reference: str
    local_path: str
    file_id: str
    mime_type: str


@dataclass(frozen=True)
class AssetOutcome:
    """Per-reference materialization result: either an asset or the error that skipped it."""

    reference: str
    asset: Optional[MaterializedAsset] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.asset is not None


@dataclass
class MaterializationResult:
    """Ordered outcomes for every reference of one record."""

    outcomes: List[AssetOutcome] = field(default_factory=list)

    @property
    def assets(self) -> List[MaterializedAsset]:
        return [outcome.asset for outcome in self.outcomes if outcome.asset is not None]

    @property
    def skipped(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.ok)


@dataclass(frozen=True)
class CoffeeCreatedEvent:
    """Creation event delivered for a new coffee record.

    `data` is the snapshot of the record at creation time; it may be None when
    the event carries no document.
    """

    record_id: str
    data: Optional[CoffeeRecord]
