"""Provisioning package — get-or-create operations against Azure Spring Apps."""

from __future__ import annotations

from .clients import AzureClients, build_clients
from .lookup import Absent, Found, get_or_create, lookup
from .models import BuildInfra, ProvisionResult
from .provisioner import Provisioner
from .uploader import ArtifactUploader

__all__ = [
    "Absent",
    "ArtifactUploader",
    "AzureClients",
    "BuildInfra",
    "Found",
    "ProvisionResult",
    "Provisioner",
    "build_clients",
    "get_or_create",
    "lookup",
]
