"""Frozen dataclasses for configuration and YAML loader with env-var interpolation."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError
from .naming import random_resource_name

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

TIERS = ("basic", "standard", "enterprise")
CREDENTIAL_TYPES = ("default", "cli")
SOURCE_MODES = ("placeholder", "artifact")

RESOURCE_GROUP_PREFIX = "rg-"
SERVICE_NAME_PREFIX = "demo-svc-"
GENERATED_NAME_LENGTH = 24


def _interpolate_env(value: str) -> str:
    """Replace ${ENV_VAR} placeholders with environment variable values."""

    def _replace(match: re.Match) -> str:
        env_key = match.group(1)
        env_val = os.environ.get(env_key)
        if env_val is None:
            raise ConfigError(f"Environment variable '{env_key}' is not set")
        return env_val

    return _ENV_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: Any) -> Any:
    """Recursively interpolate env vars in strings throughout a nested structure."""
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(v) for v in obj]
    return obj


@dataclass(frozen=True)
class AzureConfig:
    tenant_id: str = ""
    subscription_id: str = ""
    region: str = "eastus"
    credential_type: str = "default"  # "default" uses DefaultAzureCredential, "cli" uses AzureCliCredential
    http_logging: bool = False  # SDK network trace (headers and bodies) at DEBUG


@dataclass(frozen=True)
class ResourcesConfig:
    resource_group: str = ""  # empty -> random "rg-..." name
    service_name: str = ""  # empty -> random "demo-svc-..." name


@dataclass(frozen=True)
class ServiceConfig:
    tier: str = "enterprise"  # "basic", "standard" or "enterprise"


@dataclass(frozen=True)
class ApplicationConfig:
    name: str = "demo-app"
    public: bool = True
    https_only: bool = False
    enable_end_to_end_tls: bool = False
    temporary_disk_size_gb: int = 5
    temporary_disk_mount_path: str = "/tmp"


@dataclass(frozen=True)
class DeploymentConfig:
    name: str = "default"
    cpu: str = "1"
    memory: str = "1Gi"
    instance_count: int = 1
    jvm_options: str = ""
    environment_variables: dict[str, str] = field(default_factory=dict)
    runtime_version: str = "Java_17"
    source: str = "placeholder"  # "placeholder" or "artifact"
    placeholder_build_result_id: str = "<default>"
    artifact_path: str = ""
    build_timeout_seconds: int = 900
    build_poll_interval_seconds: int = 10
    upload_timeout_seconds: int = 300


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "text"  # "json" or "text"


@dataclass(frozen=True)
class ProvisionerConfig:
    azure: AzureConfig = field(default_factory=AzureConfig)
    resources: ResourcesConfig = field(default_factory=ResourcesConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    application: ApplicationConfig = field(default_factory=ApplicationConfig)
    deployment: DeploymentConfig = field(default_factory=DeploymentConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _build_nested(cls: type, data: dict[str, Any]) -> Any:
    """Construct a frozen dataclass, recursively building nested dataclass fields."""
    if not isinstance(data, dict):
        return data
    field_types = {f.name: f.type for f in cls.__dataclass_fields__.values()}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        # An empty YAML key ("resources:") loads as None and keeps the default
        if key not in field_types or value is None:
            continue
        ft = field_types[key]
        # Resolve string annotations to actual types in the module scope
        if isinstance(ft, str):
            ft = eval(ft, globals(), {cls.__name__: cls})  # noqa: S307
        if isinstance(ft, type) and hasattr(ft, "__dataclass_fields__"):
            if not isinstance(value, dict):
                raise ConfigError(f"{key} must be a mapping")
            kwargs[key] = _build_nested(ft, value)
        else:
            kwargs[key] = value
    return cls(**kwargs)


def load_config(path: str | Path | None = None) -> ProvisionerConfig:
    """Load and validate configuration from a YAML file, or built-in defaults when path is None."""
    raw: Any = {}
    if path is not None:
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path}")

        with open(path) as f:
            raw = yaml.safe_load(f)

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must be a YAML mapping")

    raw = _walk_and_interpolate(raw)
    config = _apply_defaults(_build_nested(ProvisionerConfig, raw))
    _validate(config)
    return config


def _apply_defaults(config: ProvisionerConfig) -> ProvisionerConfig:
    """Fill identity settings from the environment and generate missing resource names."""
    azure = config.azure
    if not azure.subscription_id:
        azure = replace(azure, subscription_id=os.environ.get("AZURE_SUBSCRIPTION_ID", ""))
    if not azure.tenant_id:
        azure = replace(azure, tenant_id=os.environ.get("AZURE_TENANT_ID", ""))

    resources = config.resources
    if not resources.resource_group:
        resources = replace(
            resources,
            resource_group=random_resource_name(RESOURCE_GROUP_PREFIX, GENERATED_NAME_LENGTH),
        )
    if not resources.service_name:
        resources = replace(
            resources,
            service_name=random_resource_name(SERVICE_NAME_PREFIX, GENERATED_NAME_LENGTH),
        )

    return replace(config, azure=azure, resources=resources)


def _validate(config: ProvisionerConfig) -> None:
    """Validate configuration values."""
    if not config.azure.subscription_id:
        raise ConfigError("azure.subscription_id is required (or set AZURE_SUBSCRIPTION_ID)")

    if config.azure.credential_type not in CREDENTIAL_TYPES:
        raise ConfigError("azure.credential_type must be 'default' or 'cli'")

    if not config.azure.region:
        raise ConfigError("azure.region is required")

    if config.service.tier not in TIERS:
        raise ConfigError("service.tier must be 'basic', 'standard' or 'enterprise'")

    if not config.application.name:
        raise ConfigError("application.name is required")

    if config.application.temporary_disk_size_gb < 0:
        raise ConfigError("application.temporary_disk_size_gb must be >= 0")

    deployment = config.deployment
    if not deployment.name:
        raise ConfigError("deployment.name is required")

    if not deployment.cpu or not deployment.memory:
        raise ConfigError("deployment.cpu and deployment.memory are required")

    if deployment.instance_count < 1:
        raise ConfigError("deployment.instance_count must be >= 1")

    if deployment.source not in SOURCE_MODES:
        raise ConfigError("deployment.source must be 'placeholder' or 'artifact'")

    if deployment.source == "artifact" and not deployment.artifact_path:
        raise ConfigError("deployment.artifact_path is required when deployment.source is 'artifact'")

    if deployment.build_timeout_seconds < 1 or deployment.build_poll_interval_seconds < 1:
        raise ConfigError("deployment.build_timeout_seconds and build_poll_interval_seconds must be >= 1")

    if config.logging.format not in ("json", "text"):
        raise ConfigError("logging.format must be 'json' or 'text'")
