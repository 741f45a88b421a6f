from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from leadrelay.config import Settings
from leadrelay.schemas.lead import CanonicalLead, LeadFields
from leadrelay.schemas.tenant import Location, TenantConfig
from leadrelay.services.exceptions import TenantConfigError
from leadrelay.services.locations import LocationResolver, keyword_table

logger = logging.getLogger(__name__)

_PHONE_STRIP = re.compile(r"[^\d]")


@dataclass(frozen=True)
class LeadOrigin:
    """Per-inbound-source defaults used when a submission is incomplete."""

    label: str
    placeholder_name: str
    fallback_source: str


def split_name(
    full_name: str,
    *,
    default_first: str = "Lead",
    default_last: str = "From Website",
) -> Tuple[str, str]:
    parts = (full_name or "").split()
    if not parts:
        return default_first, default_last
    first = parts[0]
    last = " ".join(parts[1:]) or default_last
    return first, last


def normalize_phone(raw: str, *, country_code: str = "+1") -> str:
    """Strip formatting and prefix bare national numbers with ``country_code``."""

    value = (raw or "").strip()
    if not value:
        return ""
    leading_plus = value.startswith("+")
    digits = _PHONE_STRIP.sub("", value)
    if leading_plus:
        return f"+{digits}" if digits else ""

    code_digits = country_code.lstrip("+")
    if len(digits) == 10:
        return f"+{code_digits}{digits}"
    if code_digits and len(digits) == 10 + len(code_digits) and digits.startswith(code_digits):
        return f"+{digits}"
    return digits


def resolve_source(
    configured: str,
    approved: Sequence[str],
    *,
    force: bool,
    fallback: str,
) -> str:
    if force and configured:
        return configured
    if configured and configured in approved:
        return configured
    if approved:
        return approved[0]
    return fallback


class LeadNormalizer:
    def __init__(
        self,
        settings: Settings,
        *,
        resolver: LocationResolver | None = None,
    ) -> None:
        self._settings = settings
        self._resolver = resolver or LocationResolver(keyword_table(settings.location_keywords))

    def google_origin(self) -> LeadOrigin:
        return LeadOrigin(
            label="Google Lead Form",
            placeholder_name=self._settings.google_placeholder_name,
            fallback_source=self._settings.google_fallback_source,
        )

    def site_origin(self) -> LeadOrigin:
        return LeadOrigin(
            label="Website Form",
            placeholder_name=self._settings.site_placeholder_name,
            fallback_source=self._settings.site_fallback_source,
        )

    def resolve_location_id(self, hint: str, locations: Sequence[Location]) -> str:
        match: Optional[Location] = self._resolver.resolve(hint, locations)
        if match is not None:
            return match.id
        if locations:
            return locations[0].id
        if self._settings.fallback_location_id:
            logger.warning(
                "Tenant has no locations; using fallback location %s",
                self._settings.fallback_location_id,
            )
            return self._settings.fallback_location_id
        raise TenantConfigError("Tenant config has no locations to assign the lead to")

    def normalize(
        self, fields: LeadFields, origin: LeadOrigin, tenant: TenantConfig
    ) -> CanonicalLead:
        first, last = split_name(
            fields.full_name or origin.placeholder_name,
            default_first=self._settings.default_first_name,
            default_last=self._settings.default_last_name,
        )
        source = resolve_source(
            self._settings.source_value,
            tenant.sources,
            force=self._settings.force_source,
            fallback=origin.fallback_source,
        )
        phone = normalize_phone(fields.phone, country_code=self._settings.country_calling_code)

        notes = f"From {origin.label}"
        if fields.extra_notes:
            notes = f"{notes} | {fields.extra_notes}"

        return CanonicalLead(
            first_name=first,
            last_name=last,
            phone=phone or None,
            email=fields.email or None,
            source=source,
            location_id=self.resolve_location_id(fields.location_hint, tenant.locations),
            location_label=fields.location_hint or None,
            notes=notes,
        )
