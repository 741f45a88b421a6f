import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from leadrelay.dependencies.services import get_lead_intake_service
from leadrelay.schemas.lead import WebhookAck
from leadrelay.services.exceptions import InvalidWebhookKeyError, ServiceError
from leadrelay.services.intake import LeadIntakeService

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_form_body(request: Request) -> Dict[str, Any]:
    """Parse a JSON, urlencoded or multipart webhook body into a dict.

    A top-level JSON array is read as the labeled-field list under ``data``.
    """

    content_type = request.headers.get("content-type", "").lower()
    if "application/x-www-form-urlencoded" in content_type or "multipart/form-data" in content_type:
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Body is not valid JSON") from exc
    if isinstance(body, list):
        return {"data": body}
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object or array")
    return body


@router.post("/google-leads")
async def google_leads(
    request: Request,
    service: LeadIntakeService = Depends(get_lead_intake_service),
):
    body = await read_form_body(request)
    try:
        await service.submit_google_lead(body)
    except InvalidWebhookKeyError as exc:
        logger.warning("Rejected Google lead %s: %s", body.get("lead_id"), exc)
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except ServiceError as exc:
        logger.error("CRM error (GLF): %s", exc)
        raise HTTPException(status_code=502, detail="Upstream error") from exc
    return {}


@router.post("/duda-form", response_model=WebhookAck)
async def duda_form(
    request: Request,
    service: LeadIntakeService = Depends(get_lead_intake_service),
):
    body = await read_form_body(request)
    logger.info("Site form hit -> body: %s", body)
    try:
        await service.submit_site_form(body)
    except ServiceError as exc:
        logger.error("Site form -> CRM error: %s", exc)
        raise HTTPException(status_code=502, detail="Upstream error") from exc
    return WebhookAck(ok=True)
