"""
Application model representing a registered API-management Application (read-only view).
"""

import re
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Application(BaseModel):
    """
    An Application registered on the management service.

    Note: the pipeline only holds a transient view of the Application for the
    duration of one run, it never writes it back.

    Attributes:
        id: Application UUID (unique on the management service)
        name: Display name
        description: Free-text description (empty when not set)
        type: Application type ("SIMPLE", "BROWSER", "WEB", ...)
        status: Application status ("ACTIVE", "ARCHIVED")
        owner: Primary owner as returned by the service
        groups: Group ids the Application belongs to
        settings: Nested application settings (client id, OAuth settings, ...)
    """

    id: str = Field(..., min_length=1)
    name: str
    description: str = ""
    type: str | None = None
    status: str | None = None
    owner: dict[str, Any] | None = None
    groups: list[str] = Field(default_factory=list)
    settings: dict[str, Any] = Field(default_factory=dict)

    @field_validator("description", mode="before")
    @classmethod
    def none_description_as_empty(cls, v):
        """Service returns null for Applications created without description."""
        return "" if v is None else v

    @field_validator("groups", "settings", mode="before")
    @classmethod
    def none_collection_as_empty(cls, v, info):
        if v is None:
            return [] if info.field_name == "groups" else {}
        return v

    @property
    def runtime_key(self) -> str:
        """Identifier scoping the runtime event queries."""
        return self.id

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "8a4f6c3e-0d2b-4c55-8f6c-3e0d2b4c55aa",
                "name": "Billing - Invoicing - FR",
                "description": "Invoicing back-office consuming the billing APIs",
                "type": "SIMPLE",
                "status": "ACTIVE",
                "owner": {"id": "admin", "displayName": "Admin"},
                "groups": [],
                "settings": {"app": {"client_id": "invoicing-fr"}},
            }
        }


class ApplicationFilter(BaseModel):
    """
    Filter applied to the Application listing.

    Attributes:
        by_name: Case-insensitive regular expression searched in the Application name
    """

    by_name: str | None = None

    @field_validator("by_name")
    @classmethod
    def check_regex(cls, v):
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"Invalid name filter: {e}")
        return v

    def matches(self, application: Application) -> bool:
        if not self.by_name:
            return True
        return re.search(self.by_name, application.name, re.IGNORECASE) is not None
