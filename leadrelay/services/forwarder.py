from __future__ import annotations

import logging
from typing import List, Sequence
from urllib.parse import urlencode

from leadrelay.clients.crm import CrmClient
from leadrelay.schemas.lead import CanonicalLead, LocationFieldShape
from leadrelay.services.exceptions import DownstreamServiceError, ForwardingError

logger = logging.getLogger(__name__)

LEAD_PATH = "/lead/simplified"

PRIMARY_SHAPES: Sequence[LocationFieldShape] = (LocationFieldShape.BOTH,)
ALTERNATE_SHAPES: Sequence[LocationFieldShape] = (
    LocationFieldShape.BOTH,
    LocationFieldShape.LOCATION_ID,
    LocationFieldShape.LOCATION,
)


class LeadForwarder:
    """Posts canonical leads to the CRM's simplified lead endpoint."""

    def __init__(
        self,
        client: CrmClient,
        *,
        try_alternate_shapes: bool = False,
        path: str = LEAD_PATH,
    ) -> None:
        self._client = client
        self._path = path
        self._shapes = ALTERNATE_SHAPES if try_alternate_shapes else PRIMARY_SHAPES

    @property
    def shapes(self) -> List[LocationFieldShape]:
        return list(self._shapes)

    async def forward(self, lead: CanonicalLead, *, tag: str = "lead") -> LocationFieldShape:
        """Deliver ``lead`` and return the body shape the CRM accepted."""

        failures: List[str] = []
        last_error: DownstreamServiceError | None = None
        for shape in self._shapes:
            fields = lead.to_form_fields(shape)
            logger.info("Posting to CRM (%s, %s): %s", tag, shape.value, urlencode(fields))
            try:
                await self._client.post_form(self._path, fields)
            except DownstreamServiceError as exc:
                last_error = exc
                failures.append(f"{shape.value}: {exc} ({exc.status_code or 'no response'})")
                logger.warning("CRM rejected %s lead using %s shape: %s", tag, shape.value, exc)
                continue
            logger.info("CRM OK (%s)", tag)
            return shape

        raise ForwardingError(
            "CRM did not accept the lead",
            attempts=failures,
            status_code=last_error.status_code if last_error else None,
            cause=last_error,
        )
