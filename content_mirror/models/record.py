"""Pydantic models for mirrored records, links and resolved records."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from content_mirror.errors import ResolutionError


class RecordKind(str, Enum):
    """Kind of a mirrored record."""

    ENTRY = "Entry"
    ASSET = "Asset"


class Link(BaseModel):
    """Typed reference from a field value to another record."""

    link_type: RecordKind = Field(default=..., description="Kind of the target record")
    id: str = Field(default=..., min_length=1, description="Identifier of the target record")

    @classmethod
    def from_value(cls, value: Any) -> "Link | None":
        """Parse a raw field value into a Link.

        Link values use the upstream wire shape
        ``{"sys": {"type": "Link", "linkType": "Entry", "id": "..."}}``.

        Args:
            value: Raw field value for a single locale (or one list element)

        Returns:
            Link if the value is a link placeholder, None otherwise

        Raises:
            ResolutionError: If the value is tagged as a link but is malformed
        """
        if not isinstance(value, dict):
            return None
        sys = value.get("sys")
        if not isinstance(sys, dict) or sys.get("type") != "Link":
            return None

        link_type = sys.get("linkType")
        target_id = sys.get("id")
        if link_type not in (RecordKind.ENTRY.value, RecordKind.ASSET.value):
            raise ResolutionError(f"Link has unsupported linkType: {link_type!r}")
        if not isinstance(target_id, str) or not target_id:
            raise ResolutionError(f"Link to {link_type} is missing a target id")

        return cls(link_type=RecordKind(link_type), id=target_id)

    def to_value(self) -> dict[str, Any]:
        """Render the link in its wire shape."""
        return {"sys": {"type": "Link", "linkType": self.link_type.value, "id": self.id}}


class Record(BaseModel):
    """An entry or asset mirrored from the upstream repository.

    ``fields`` maps field name to a mapping of locale code to the raw value,
    so link placeholders stay in wire form until resolution.
    """

    id: str = Field(default=..., min_length=1, description="Unique record identifier")
    kind: RecordKind = Field(default=..., description="Entry or Asset")
    content_type: str | None = Field(
        default=None, description="Content type identifier (entries only)"
    )
    revision: int | None = Field(default=None, ge=0, description="Upstream revision number")
    created_at: datetime | None = Field(default=None, description="Upstream creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Upstream update timestamp")
    fields: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Field name -> locale code -> value"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "5KsDBWseXY6QegucYAoacS",
                "kind": "Entry",
                "content_type": "blogPost",
                "revision": 3,
                "created_at": "2024-01-01T10:00:00Z",
                "updated_at": "2024-01-15T14:30:00Z",
                "fields": {
                    "title": {"en-US": "Hello world"},
                    "author": {
                        "en-US": {"sys": {"type": "Link", "linkType": "Entry", "id": "author-1"}}
                    },
                },
            }
        }
    }

    @property
    def is_entry(self) -> bool:
        return self.kind is RecordKind.ENTRY

    @property
    def is_asset(self) -> bool:
        return self.kind is RecordKind.ASSET


class UnresolvedLink(BaseModel):
    """Marker substituted for a link that could not be resolved."""

    link_type: RecordKind = Field(default=..., description="Kind of the target record")
    id: str = Field(default=..., description="Identifier of the target record")
    reason: Literal["missing", "cycle"] = Field(
        default=...,
        description="'missing' if the target is unknown, 'cycle' if it is already being resolved",
    )


class ResolvedRecord(BaseModel):
    """A record whose link values were replaced by their targets."""

    id: str = Field(default=..., description="Unique record identifier")
    kind: RecordKind = Field(default=..., description="Entry or Asset")
    content_type: str | None = Field(default=None, description="Content type identifier")
    fields: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Field name -> locale code -> value, ResolvedRecord or UnresolvedLink",
    )
