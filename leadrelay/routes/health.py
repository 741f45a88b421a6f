# leadrelay/routes/health.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from leadrelay.config import Settings, get_settings
from leadrelay.routes.webhooks import read_form_body

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
def root():
    return "OK - webhook up"


@router.get("/health")
def health():
    return {"ok": True}


@router.post("/echo")
async def echo(request: Request, settings: Settings = Depends(get_settings)):
    if not settings.enable_echo:
        raise HTTPException(status_code=404, detail="Not Found")
    body = await read_form_body(request)
    logger.info("ECHO headers: %s", dict(request.headers))
    logger.info("ECHO body: %s", body)
    return {"ok": True}
