"""Explicit Azure SDK client handle shared by every provisioning call."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from azure.core.credentials import TokenCredential
from azure.identity import AzureCliCredential, DefaultAzureCredential
from azure.mgmt.appplatform import AppPlatformManagementClient
from azure.mgmt.resource import ResourceManagementClient

from ..config import AzureConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AzureClients:
    """Authenticated management clients for one subscription."""

    subscription_id: str
    resources: ResourceManagementClient
    spring: AppPlatformManagementClient


def build_credential(config: AzureConfig) -> TokenCredential:
    """Create the credential selected by ``credential_type``."""
    if config.credential_type == "cli":
        return AzureCliCredential(tenant_id=config.tenant_id or None)
    if config.tenant_id:
        return DefaultAzureCredential(additionally_allowed_tenants=[config.tenant_id])
    return DefaultAzureCredential()


def build_clients(config: AzureConfig) -> AzureClients:
    """Authenticate once and build both management clients on the same credential."""
    credential = build_credential(config)
    clients = AzureClients(
        subscription_id=config.subscription_id,
        resources=ResourceManagementClient(
            credential, config.subscription_id, logging_enable=config.http_logging,
        ),
        spring=AppPlatformManagementClient(
            credential, config.subscription_id, logging_enable=config.http_logging,
        ),
    )
    logger.info("Selected subscription %s", config.subscription_id)
    return clients
