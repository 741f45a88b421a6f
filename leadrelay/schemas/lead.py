from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _text_or_none(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


class ColumnValue(BaseModel):
    column_id: str = ""
    string_value: str = ""

    @field_validator("column_id", "string_value", mode="before")
    def _as_text(cls, value):
        return _text_or_none(value) or ""


class GoogleLeadPayload(BaseModel):
    """Webhook body sent by Google Ads lead form extensions.

    Parsing is lenient: odd values become empty rather than failing the lead.
    """

    model_config = ConfigDict(extra="ignore")

    google_key: Optional[str] = None
    user_column_data: List[ColumnValue] = Field(default_factory=list)
    lead_id: Optional[str] = None
    api_version: Optional[str] = None
    form_id: Optional[str] = None
    campaign_id: Optional[str] = None
    adgroup_id: Optional[str] = None
    creative_id: Optional[str] = None
    gcl_id: Optional[str] = None
    is_test: bool = False

    @field_validator(
        "google_key",
        "lead_id",
        "api_version",
        "form_id",
        "campaign_id",
        "adgroup_id",
        "creative_id",
        "gcl_id",
        mode="before",
    )
    def _ids_as_strings(cls, value):
        return _text_or_none(value)

    @field_validator("user_column_data", mode="before")
    def _column_entries(cls, value):
        if not isinstance(value, list):
            return []
        return [entry for entry in value if isinstance(entry, dict)]

    @field_validator("is_test", mode="before")
    def _loose_bool(cls, value):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return bool(value)


class LeadFields(BaseModel):
    """Raw contact fields pulled out of an inbound submission."""

    full_name: str = ""
    email: str = ""
    phone: str = ""
    location_hint: str = ""
    extra_notes: str = ""


class LocationFieldShape(str, Enum):
    """Which key(s) carry the location id in the outbound form body."""

    BOTH = "both"
    LOCATION_ID = "location_id"
    LOCATION = "location"


class CanonicalLead(BaseModel):
    first_name: str
    last_name: str
    source: str
    location_id: str
    phone: Optional[str] = None
    email: Optional[str] = None
    location_label: Optional[str] = None
    notes: Optional[str] = None

    def to_form_fields(
        self, shape: LocationFieldShape = LocationFieldShape.BOTH
    ) -> List[Tuple[str, str]]:
        fields: List[Tuple[str, str]] = [
            ("first_name", self.first_name),
            ("last_name", self.last_name),
        ]
        if self.phone:
            fields.append(("phone", self.phone))
        if self.email:
            fields.append(("email", self.email))
        fields.append(("source", self.source))
        if shape in (LocationFieldShape.BOTH, LocationFieldShape.LOCATION_ID):
            fields.append(("location_id", self.location_id))
        if shape in (LocationFieldShape.BOTH, LocationFieldShape.LOCATION):
            fields.append(("location", self.location_id))
        if self.location_label:
            fields.append(("locations_select", self.location_label))
        if self.notes:
            fields.append(("notes", self.notes))
        return fields


class WebhookAck(BaseModel):
    ok: bool = True
