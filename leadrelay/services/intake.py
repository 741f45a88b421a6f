from __future__ import annotations

import hmac
import logging
from typing import Any, Mapping

from leadrelay.config import Settings
from leadrelay.schemas.lead import CanonicalLead, GoogleLeadPayload, LeadFields
from leadrelay.services.adapters import extract_google_lead_fields, extract_site_form_fields
from leadrelay.services.config_cache import ConfigCache
from leadrelay.services.exceptions import InvalidWebhookKeyError, ServiceError
from leadrelay.services.forwarder import LeadForwarder
from leadrelay.services.normalizer import LeadNormalizer, LeadOrigin

logger = logging.getLogger(__name__)


class LeadIntakeService:
    """Runs an inbound submission through normalization and delivery."""

    def __init__(
        self,
        settings: Settings,
        cache: ConfigCache,
        forwarder: LeadForwarder,
        *,
        normalizer: LeadNormalizer | None = None,
    ) -> None:
        self._settings = settings
        self._cache = cache
        self._forwarder = forwarder
        self._normalizer = normalizer or LeadNormalizer(settings)

    def verify_google_key(self, key: Any) -> None:
        expected = self._settings.google_lead_key
        if not expected or not isinstance(key, str) or not key or not hmac.compare_digest(
            key.encode("utf-8"), expected.encode("utf-8")
        ):
            raise InvalidWebhookKeyError("Invalid google_key")

    async def submit_google_lead(self, body: Mapping[str, Any]) -> CanonicalLead:
        """Check the shared key on the raw body, then parse and relay the lead."""

        self.verify_google_key(body.get("google_key"))
        payload = GoogleLeadPayload.model_validate(dict(body))
        fields = extract_google_lead_fields(
            payload, location_column_id=self._settings.location_question_column_id
        )
        return await self._process(fields, self._normalizer.google_origin(), tag="GLF")

    async def submit_site_form(self, body: Mapping[str, Any]) -> CanonicalLead:
        fields = extract_site_form_fields(body)
        return await self._process(fields, self._normalizer.site_origin(), tag="site form")

    async def _process(self, fields: LeadFields, origin: LeadOrigin, *, tag: str) -> CanonicalLead:
        try:
            tenant = await self._cache.ensure_loaded()
            lead = self._normalizer.normalize(fields, origin, tenant)
            logger.info(
                "Resolved (%s) -> name: %s %s | email: %s | phone: %s | locLabel: %s | locId: %s | source: %s",
                tag,
                lead.first_name,
                lead.last_name,
                lead.email or "(none)",
                lead.phone or "(none)",
                lead.location_label or "(none)",
                lead.location_id,
                lead.source,
            )
            await self._forwarder.forward(lead, tag=tag)
            return lead
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while processing %s lead", tag)
            raise ServiceError("Failed to process lead", cause=exc)
