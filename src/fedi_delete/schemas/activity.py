from __future__ import annotations

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DeleteActivity(BaseModel):
    """Schema for an inbound, already signature-verified Delete activity."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    context: Optional[Any] = Field(default=None, alias="@context")
    id: str = Field(min_length=1)
    type: str
    actor: str = Field(min_length=1)
    object: Union[str, Dict[str, Any]]

    @field_validator("type")
    @classmethod
    def _must_be_delete(cls, value: str) -> str:
        if value != "Delete":
            raise ValueError(f"expected a Delete activity, got {value!r}")
        return value

    @field_validator("actor", mode="before")
    @classmethod
    def _actor_id(cls, value: Any) -> Any:
        """Embedded actor documents are reduced to their id."""
        if isinstance(value, dict):
            return value.get("id")
        return value

    @field_validator("object")
    @classmethod
    def _object_has_id(cls, value: Union[str, Dict[str, Any]]):
        if isinstance(value, dict):
            if not isinstance(value.get("id"), str) or not value["id"]:
                raise ValueError("embedded object must carry an id")
        elif not value:
            raise ValueError("object must not be empty")
        return value

    @property
    def object_uri(self) -> str:
        """The object reference, with embedded documents reduced to their id."""
        if isinstance(self.object, dict):
            return self.object["id"]
        return self.object

    @property
    def object_atom_uri(self) -> Optional[str]:
        """Legacy OStatus identifier some servers still embed next to the id."""
        if isinstance(self.object, dict):
            atom_uri = self.object.get("atomUri")
            if isinstance(atom_uri, str) and atom_uri and atom_uri != self.object_uri:
                return atom_uri
        return None


class DeleteActivityResponse(BaseModel):
    """Schema for the response returned once a Delete activity has been processed."""

    status: str
    activity_id: str
    kind: str
    state: str
    deliveries_enqueued: int = Field(ge=0)
