from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leadrelay.config import get_settings
from leadrelay.dependencies.services import get_crm_client_cached

from leadrelay.routes.health import router as health_router
from leadrelay.routes.webhooks import router as webhooks_router


def configure_logging() -> None:
    """Ensure application logs use the INFO level by default."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(logging.INFO)

configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    settings = get_settings()

    settings_snapshot = settings.model_dump(
        exclude={"crm_token", "google_lead_key"},
    )
    logger.info("Application settings on startup: %s", settings_snapshot)
    if not settings.google_lead_key:
        logger.warning("LEADRELAY_GOOGLE_LEAD_KEY is not set; Google lead webhooks will be rejected")
    if not settings.crm_token:
        logger.warning("LEADRELAY_CRM_TOKEN is not set; CRM calls will be unauthenticated")

    client = get_crm_client_cached()
    logger.info("Application startup complete.")

    try:
        yield
    finally:
        logger.info("Closing CRM client connection.")
        await client.close()
        logger.info("Application shutdown complete.")


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    redirect_slashes=False,
)

if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["POST"],
        allow_headers=["*"],
    )

app.include_router(webhooks_router)
app.include_router(health_router)
