from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

# --- Reserved ids ---
ROOT_ID = -1
RECYCLE_BIN_ID = -20

# Single-letter permission code, e.g. "U" for publish.
PermissionCode = str


def split_path(path: str) -> list[int]:
    """Parse a comma-joined materialized path into ids."""
    return [int(segment) for segment in path.split(",") if segment.strip()]


def join_path(ids: list[int]) -> str:
    return ",".join(str(i) for i in ids)


def same_culture(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return a.lower() == b.lower()


# --- Enums ---


class ContentAction(str, Enum):
    SAVE = "save"
    SAVE_NEW = "saveNew"
    PUBLISH = "publish"
    PUBLISH_NEW = "publishNew"
    SEND_PUBLISH = "sendPublish"
    SEND_PUBLISH_NEW = "sendPublishNew"
    UNPUBLISH = "unpublish"

    @property
    def is_creating(self) -> bool:
        return self in (
            ContentAction.SAVE_NEW,
            ContentAction.PUBLISH_NEW,
            ContentAction.SEND_PUBLISH_NEW,
        )

    @property
    def is_publish(self) -> bool:
        return self in (ContentAction.PUBLISH, ContentAction.PUBLISH_NEW)

    @property
    def is_send(self) -> bool:
        return self in (ContentAction.SEND_PUBLISH, ContentAction.SEND_PUBLISH_NEW)

    @property
    def is_save(self) -> bool:
        return self in (ContentAction.SAVE, ContentAction.SAVE_NEW)


class PublicationState(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    PARTIALLY_PUBLISHED = "partially_published"
    TRASHED = "trashed"
    DELETED = "deleted"


class PublishResultType(str, Enum):
    SUCCESS = "success"
    SUCCESS_ALREADY = "success_already"
    FAILED_CANCELLED_BY_EVENT = "failed_cancelled_by_event"
    FAILED_AWAITING_RELEASE = "failed_awaiting_release"
    FAILED_HAS_EXPIRED = "failed_has_expired"
    FAILED_IS_TRASHED = "failed_is_trashed"
    FAILED_CONTENT_INVALID = "failed_content_invalid"
    FAILED_BY_CULTURE = "failed_by_culture"
    FAILED_PATH_NOT_PUBLISHED = "failed_path_not_published"
    FAILED_CANNOT_PUBLISH = "failed_cannot_publish"

    @property
    def is_success(self) -> bool:
        return self in (PublishResultType.SUCCESS, PublishResultType.SUCCESS_ALREADY)


class OperationStatus(str, Enum):
    """Result of a mutating repository call."""

    SUCCESS = "success"
    CANCELLED_BY_EVENT = "cancelled_by_event"
    CONCURRENCY_CONFLICT = "concurrency_conflict"


# --- Languages & schema ---


class Language(BaseModel):
    id: int
    iso_code: str
    culture_name: str
    mandatory: bool = False
    is_default: bool = False


class PropertyType(BaseModel):
    alias: str
    mandatory: bool = False
    validation_regex: str | None = None
    varies_by_culture: bool = False


class ContentType(BaseModel):
    id: int
    alias: str
    varies_by_culture: bool = False
    allowed_as_root: bool = False
    allowed_child_type_ids: list[int] = Field(default_factory=list)
    property_types: list[PropertyType] = Field(default_factory=list)

    def allows_child(self, content_type_id: int) -> bool:
        return content_type_id in self.allowed_child_type_ids


# --- Users & permissions ---


class UserGroup(BaseModel):
    id: int
    alias: str
    name: str
    default_permissions: list[PermissionCode] = Field(default_factory=list)


class User(BaseModel):
    id: int
    name: str
    groups: list[UserGroup] = Field(default_factory=list)
    # Nodes the user may browse from; ROOT_ID grants the whole tree.
    start_content_ids: list[int] = Field(default_factory=lambda: [ROOT_ID])


class AssignedGroupPermission(BaseModel):
    group_id: int
    node_id: int
    permissions: list[PermissionCode]


class EntityPermission(BaseModel):
    node_id: int
    permissions: frozenset[PermissionCode]
    is_default: bool = False


class PermissionSet(BaseModel):
    """Effective permission codes keyed by node id."""

    entries: dict[int, EntityPermission] = Field(default_factory=dict)

    def get_permissions(self, node_id: int) -> frozenset[PermissionCode]:
        entry = self.entries.get(node_id)
        return entry.permissions if entry else frozenset()

    def get_all_permissions(self) -> frozenset[PermissionCode]:
        codes: set[PermissionCode] = set()
        for entry in self.entries.values():
            codes.update(entry.permissions)
        return frozenset(codes)


# --- Content ---


class CultureVariant(BaseModel):
    culture: str | None = None
    name: str = ""
    published: bool = False
    edited: bool = True
    properties: dict[str, Any] = Field(default_factory=dict)


class VariantRequest(BaseModel):
    """Requested edit of one variant, as posted by the editor."""

    culture: str | None = None
    name: str | None = None
    publish: bool = False
    properties: dict[str, Any] = Field(default_factory=dict)


class ContentNode(BaseModel):
    id: int = 0
    key: UUID = Field(default_factory=uuid4)
    parent_id: int = ROOT_ID
    path: str = ""
    level: int = 1
    sort_order: int = 0
    content_type_id: int
    trashed: bool = False

    variants: list[CultureVariant] = Field(default_factory=list)
    properties: dict[str, Any] = Field(default_factory=dict)

    release_date: datetime | None = None
    expire_date: datetime | None = None

    version: int = 1
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Stored stamps are always aware so they stay comparable.
        return value if value.tzinfo else value.replace(tzinfo=UTC)

    @model_validator(mode="after")
    def _check_path(self) -> "ContentNode":
        if not self.path:
            return self
        ids = split_path(self.path)
        if self.id > 0 and ids[-1] != self.id:
            raise ValueError(f"path {self.path!r} does not end with node id {self.id}")
        if self.trashed != (RECYCLE_BIN_ID in ids):
            raise ValueError("trashed flag must match recycle bin membership of the path")
        return self

    @property
    def path_ids(self) -> list[int]:
        return split_path(self.path)

    @property
    def is_new(self) -> bool:
        return self.id <= 0

    def get_variant(self, culture: str | None) -> CultureVariant | None:
        for variant in self.variants:
            if same_culture(variant.culture, culture):
                return variant
        return None

    def is_culture_published(self, culture: str | None) -> bool:
        variant = self.get_variant(culture)
        return bool(variant and variant.published)

    @property
    def published_cultures(self) -> list[str | None]:
        return [v.culture for v in self.variants if v.published]

    @property
    def name(self) -> str:
        return self.variants[0].name if self.variants else ""

    def touched(self, now: datetime) -> "ContentNode":
        """Copy stamped for commit: next row version, new update time."""
        return self.model_copy(update={"version": self.version + 1, "updated_at": now})


class Domain(BaseModel):
    id: int = 0
    name: str
    language_id: int | None = None
    root_content_id: int | None = None

    @property
    def is_wildcard(self) -> bool:
        return self.name.startswith("*")
