from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional

from pydantic import ValidationError

from leadrelay.clients.crm import CrmClient
from leadrelay.schemas.tenant import Location, TenantConfig
from leadrelay.services.exceptions import DownstreamServiceError, TenantConfigError

logger = logging.getLogger(__name__)

ConfigFetcher = Callable[[], Awaitable[TenantConfig]]

CONFIG_PATH = "/lead/config"


class ConfigCache:
    """Process-wide memo of the tenant's approved locations and sources.

    The first caller that finds the cache empty fetches the configuration.
    A fetch that returns no locations is handed to that caller but not kept,
    so the next caller fetches again; once locations are cached they are
    never refreshed. Concurrent first calls may each fetch, and the last one
    to finish replaces the value.
    """

    def __init__(self, fetch: ConfigFetcher) -> None:
        self._fetch = fetch
        self._config: Optional[TenantConfig] = None

    @property
    def is_loaded(self) -> bool:
        return self._config is not None

    @property
    def locations(self) -> List[Location]:
        return list(self._config.locations) if self._config else []

    @property
    def sources(self) -> List[str]:
        return list(self._config.sources) if self._config else []

    async def ensure_loaded(self) -> TenantConfig:
        if self._config is not None:
            return self._config

        config = await self._fetch()
        if not config.locations:
            logger.warning(
                "Tenant config has no locations (sources=%s); it will be fetched again",
                config.sources,
            )
            return config

        self._config = config
        logger.info(
            "Tenant config loaded: locations=%s sources=%s",
            [f"{loc.id}:{loc.name}" for loc in config.locations][:20],
            config.sources,
        )
        return config


def parse_tenant_config(body: Any) -> TenantConfig:
    """Read locations and sources from a ``/lead/config`` response.

    The lists may sit at the top level or be nested under ``data``.
    """

    if not isinstance(body, dict):
        raise TenantConfigError("Tenant config response is not an object")

    nested = body.get("data") if isinstance(body.get("data"), dict) else {}
    locations = body.get("locations")
    if not isinstance(locations, list):
        locations = nested.get("locations") or []
    sources = body.get("sources")
    if not isinstance(sources, list):
        sources = nested.get("sources") or []

    try:
        return TenantConfig(
            locations=[Location.model_validate(item) for item in locations],
            sources=[str(item) for item in sources if item not in (None, "")],
        )
    except ValidationError as exc:
        raise TenantConfigError("Tenant config response is malformed", cause=exc) from exc


def crm_config_fetcher(client: CrmClient) -> ConfigFetcher:
    async def fetch() -> TenantConfig:
        try:
            body = await client.get(CONFIG_PATH)
        except DownstreamServiceError as exc:
            raise TenantConfigError(
                "Failed to load tenant config",
                status_code=exc.status_code,
                cause=exc,
            ) from exc
        return parse_tenant_config(body)

    return fetch
