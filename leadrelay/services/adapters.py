"""Pull contact fields out of the two inbound webhook shapes.

Adapters never fail on missing data: anything absent comes back as ``""``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from leadrelay.schemas.lead import ColumnValue, GoogleLeadPayload, LeadFields

logger = logging.getLogger(__name__)

FULL_NAME_COLUMN = "FULL_NAME"
FIRST_NAME_COLUMN = "FIRST_NAME"
LAST_NAME_COLUMN = "LAST_NAME"
EMAIL_COLUMN = "EMAIL"
PHONE_COLUMN = "PHONE_NUMBER"

# field -> literal keys tried in order against a flat form body
SITE_FORM_ALIASES: Dict[str, Sequence[str]] = {
    "full_name": ("Name *", "Full Name", "Name", "name"),
    "email": ("Email *", "Email", "email"),
    "phone": ("Phone *", "Phone", "phone"),
    "location_hint": ("Select Location *", "Location", "location"),
}
PAGE_URL_KEYS: Sequence[str] = ("pageUrl", "page_url")

# field -> lower-case substrings matched against labeled entries
SITE_FORM_LABEL_KEYWORDS: Dict[str, Sequence[str]] = {
    "full_name": ("name",),
    "email": ("email",),
    "phone": ("phone", "tel"),
    "location_hint": ("location", "campus", "school"),
}
LABEL_KEYS: Sequence[str] = ("label", "fieldLabel", "title")


def fold_columns(columns: Iterable[ColumnValue]) -> Dict[str, str]:
    folded: Dict[str, str] = {}
    for column in columns:
        folded[column.column_id] = column.string_value or ""
    return folded


def extract_google_lead_fields(
    payload: GoogleLeadPayload, *, location_column_id: str
) -> LeadFields:
    columns = fold_columns(payload.user_column_data)

    full_name = columns.get(FULL_NAME_COLUMN, "").strip()
    if not full_name:
        parts = [columns.get(FIRST_NAME_COLUMN, ""), columns.get(LAST_NAME_COLUMN, "")]
        full_name = " ".join(part.strip() for part in parts if part.strip())

    notes: List[str] = []
    if payload.is_test:
        notes.append("TEST LEAD")
    for label, value in (
        ("campaign", payload.campaign_id),
        ("ad group", payload.adgroup_id),
        ("form", payload.form_id),
        ("gclid", payload.gcl_id),
    ):
        if value:
            notes.append(f"{label} {value}")

    return LeadFields(
        full_name=full_name,
        email=columns.get(EMAIL_COLUMN, "").strip(),
        phone=columns.get(PHONE_COLUMN, "").strip(),
        location_hint=columns.get(location_column_id, "").strip(),
        extra_notes=" | ".join(notes),
    )


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(_as_text(item) for item in value if item not in (None, ""))
    return str(value).strip()


def _first_present(body: Mapping[str, Any], keys: Sequence[str]) -> str:
    for key in keys:
        value = _as_text(body.get(key))
        if value:
            return value
    return ""


def _entry_label(entry: Mapping[str, Any]) -> str:
    for key in LABEL_KEYS:
        label = entry.get(key)
        if label:
            return str(label).lower()
    return ""


def _find_labeled(entries: Sequence[Mapping[str, Any]], keywords: Sequence[str]) -> str:
    for entry in entries:
        label = _entry_label(entry)
        if label and any(keyword in label for keyword in keywords):
            return _as_text(entry.get("value"))
    return ""


def extract_site_form_fields(body: Mapping[str, Any]) -> LeadFields:
    """Read a site form submission in flat-key or labeled-array shape.

    Flat keys are tried first. The labeled ``data`` array is only scanned when
    none of the contact fields turned up as flat keys.
    """

    page_url = _first_present(body, PAGE_URL_KEYS)
    found = {
        field: _first_present(body, aliases)
        for field, aliases in SITE_FORM_ALIASES.items()
    }

    if not any(found.values()):
        raw_entries = body.get("data")
        entries = [
            entry for entry in raw_entries if isinstance(entry, Mapping)
        ] if isinstance(raw_entries, list) else []
        if entries:
            logger.debug("Site form has no flat fields; scanning %s labeled entries", len(entries))
        found = {
            field: _find_labeled(entries, keywords)
            for field, keywords in SITE_FORM_LABEL_KEYWORDS.items()
        }

    return LeadFields(extra_notes=page_url, **found)
