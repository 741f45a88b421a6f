from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from leadrelay.clients.crm import CrmClient
from leadrelay.config import Settings, get_settings
from leadrelay.services.config_cache import ConfigCache, crm_config_fetcher
from leadrelay.services.forwarder import LeadForwarder
from leadrelay.services.intake import LeadIntakeService


@lru_cache(maxsize=1)
def get_crm_client_cached() -> CrmClient:
    settings = get_settings()
    return CrmClient(
        str(settings.crm_base_url),
        token=settings.crm_token,
        timeout=settings.crm_timeout,
    )


@lru_cache(maxsize=1)
def get_config_cache_cached() -> ConfigCache:
    return ConfigCache(crm_config_fetcher(get_crm_client_cached()))


def get_crm_client() -> CrmClient:
    return get_crm_client_cached()


def get_config_cache() -> ConfigCache:
    return get_config_cache_cached()


def get_lead_forwarder(
    client: CrmClient = Depends(get_crm_client),
    settings: Settings = Depends(get_settings),
) -> LeadForwarder:
    return LeadForwarder(client, try_alternate_shapes=settings.forward_alternate_shapes)


def get_lead_intake_service(
    settings: Settings = Depends(get_settings),
    cache: ConfigCache = Depends(get_config_cache),
    forwarder: LeadForwarder = Depends(get_lead_forwarder),
) -> LeadIntakeService:
    return LeadIntakeService(settings, cache, forwarder)
