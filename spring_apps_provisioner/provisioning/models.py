"""Local descriptors that thread identifiers between provisioning steps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class BuildInfra:
    """The default build service, builder and agent pool of an Enterprise-tier service."""

    build_service: Any
    builder: Any
    agent_pool: Any

    @property
    def build_service_name(self) -> str:
        return self.build_service.name


@dataclass
class ProvisionResult:
    """Everything a provisioning run produced or found."""

    resource_group: Any
    service: Any
    application: Any
    deployment: Any
    build_infra: BuildInfra | None = None

    @property
    def url(self) -> str | None:
        """Public URL of the application, when one is assigned."""
        props = getattr(self.application, "properties", None)
        return getattr(props, "url", None) if props is not None else None
