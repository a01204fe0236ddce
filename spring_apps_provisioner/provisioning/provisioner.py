"""Get-or-create provisioning of a resource group, Spring Apps service, app and deployment."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from azure.mgmt.appplatform.models import (
    AppResource,
    AppResourceProperties,
    Build,
    BuildProperties,
    BuildResultUserSourceInfo,
    DeploymentResource,
    DeploymentResourceProperties,
    DeploymentSettings,
    JarUploadedUserSourceInfo,
    ResourceRequests,
    ServiceResource,
    Sku,
    TemporaryDisk,
    UserSourceInfo,
)
from azure.mgmt.resource.resources.models import ResourceGroup

from ..config import ProvisionerConfig
from ..exceptions import BuildFailedError, BuildTimeoutError, MissingBuildInfraError
from .clients import AzureClients
from .lookup import get_or_create, lookup
from .models import BuildInfra, ProvisionResult
from .uploader import ArtifactUploader

logger = logging.getLogger(__name__)

# tier -> (sku name, sku tier)
TIER_SKUS: dict[str, tuple[str, str]] = {
    "basic": ("B0", "Basic"),
    "standard": ("S0", "Standard"),
    "enterprise": ("E0", "Enterprise"),
}

BUILD_SUCCEEDED = "Succeeded"
BUILD_FAILED_STATES = frozenset({"Failed", "Deleting"})


class Provisioner:
    """Ensures each Spring Apps resource exists, creating it only when the lookup reports it absent.

    Every remote failure other than "not found" propagates unchanged; there is
    no retry and nothing created earlier in a run is rolled back.
    """

    def __init__(
        self,
        clients: AzureClients,
        config: ProvisionerConfig,
        uploader: ArtifactUploader | None = None,
    ):
        self._clients = clients
        self._config = config
        self._uploader = uploader or ArtifactUploader(timeout=config.deployment.upload_timeout_seconds)

    @property
    def _spring(self):
        return self._clients.spring

    # ── Driver ──────────────────────────────────────────────────────

    def run(self) -> ProvisionResult:
        """Provision everything described by the configuration, in dependency order."""
        start = time.monotonic()
        cfg = self._config

        rg = self.ensure_resource_group(cfg.resources.resource_group, cfg.azure.region)
        service = self.ensure_service(rg, cfg.resources.service_name, cfg.service.tier)

        tier = self.effective_tier(service)
        build_infra = None
        if tier == "enterprise":
            build_infra = self.fetch_default_build_infra(rg, service)

        app = self.ensure_application(rg, service, cfg.application.name)

        if cfg.deployment.source == "artifact":
            deployment = self.deploy(rg, service, app, cfg.deployment.artifact_path, build_infra)
            # Pick up the public URL assigned during deploy
            app = self._spring.apps.get(rg.name, service.name, app.name)
        else:
            deployment = self.ensure_deployment(
                rg, service, app, cfg.deployment.name, self._placeholder_source(tier),
            )

        result = ProvisionResult(
            resource_group=rg,
            service=service,
            application=app,
            deployment=deployment,
            build_infra=build_infra,
        )
        logger.info(
            "Provisioning complete",
            extra={"elapsed_seconds": round(time.monotonic() - start, 2), "app": app.name},
        )
        return result

    # ── Resource group ──────────────────────────────────────────────

    def ensure_resource_group(self, name: str, region: str):
        """Return the resource group, creating it in ``region`` if it does not exist."""
        groups = self._clients.resources.resource_groups
        outcome = lookup(name, groups.get, name)

        def create():
            logger.info("Creating resource group %s in %s", name, region, extra={"resource_group": name})
            rg = groups.create_or_update(name, ResourceGroup(location=region))
            logger.info("Created resource group %s", name, extra={"resource_group": name})
            return rg

        rg, created = get_or_create(outcome, create)
        if not created:
            logger.info("Got resource group %s", name, extra={"resource_group": name})
        return rg

    # ── Spring Apps service ─────────────────────────────────────────

    def ensure_service(self, resource_group, name: str, tier: str):
        """Return the Spring Apps service, creating it with ``tier`` if it does not exist.

        The tier is only applied on creation; an existing service keeps its own.
        """
        sku_name, sku_tier = TIER_SKUS[tier]
        outcome = lookup(name, self._spring.services.get, resource_group.name, name)

        def create():
            logger.info(
                "Creating Azure Spring Apps service %s (%s) in resource group %s",
                name, sku_tier, resource_group.name,
                extra={"resource_group": resource_group.name, "service": name},
            )
            poller = self._spring.services.begin_create_or_update(
                resource_group.name,
                name,
                ServiceResource(location=resource_group.location, sku=Sku(name=sku_name, tier=sku_tier)),
            )
            service = poller.result()
            logger.info("Created Azure Spring Apps service %s", name, extra={"service": name})
            return service

        service, created = get_or_create(outcome, create)
        if not created:
            logger.info(
                "Got Azure Spring Apps service %s in resource group %s", name, resource_group.name,
                extra={"resource_group": resource_group.name, "service": name},
            )
        return service

    def effective_tier(self, service) -> str:
        """The tier the service actually runs on; the configured tier only applies to new services."""
        configured = self._config.service.tier
        sku_tier = getattr(getattr(service, "sku", None), "tier", None)
        actual = sku_tier.lower() if isinstance(sku_tier, str) else None
        if actual not in TIER_SKUS:
            return configured
        if actual != configured:
            logger.warning(
                "Service %s is %s tier, configured tier %s ignored", service.name, actual, configured,
                extra={"service": service.name},
            )
        return actual

    # ── Build infrastructure (Enterprise tier) ──────────────────────

    def fetch_default_build_infra(self, resource_group, service) -> BuildInfra:
        """Read the default build service, builder and agent pool.

        Listings are issued in order and the first empty one raises
        MissingBuildInfraError before the next is attempted.
        """
        rg_name, svc_name = resource_group.name, service.name

        build_service = self._first(
            self._spring.build_service.list_build_services(rg_name, svc_name), "build service", svc_name,
        )
        logger.info("Got default build service %s", build_service.name, extra={"service": svc_name})

        builder = self._first(
            self._spring.build_service_builder.list(rg_name, svc_name, build_service.name), "builder", svc_name,
        )
        logger.info("Got default builder %s", builder.name, extra={"service": svc_name})

        agent_pool = self._first(
            self._spring.build_service_agent_pool.list(rg_name, svc_name, build_service.name),
            "agent pool", svc_name,
        )
        logger.info("Got default agent pool %s", agent_pool.name, extra={"service": svc_name})

        return BuildInfra(build_service=build_service, builder=builder, agent_pool=agent_pool)

    @staticmethod
    def _first(listing, kind: str, service_name: str) -> Any:
        item = next(iter(listing), None)
        if item is None:
            raise MissingBuildInfraError(kind, service_name)
        return item

    # ── Application ─────────────────────────────────────────────────

    def ensure_application(self, resource_group, service, app_name: str):
        """Return the app, creating it with the configured network, TLS and disk settings if absent."""
        app_cfg = self._config.application
        rg_name, svc_name = resource_group.name, service.name
        outcome = lookup(app_name, self._spring.apps.get, rg_name, svc_name, app_name)

        def create():
            logger.info("Creating app %s", app_name, extra={"service": svc_name, "app": app_name})
            resource = AppResource(
                properties=AppResourceProperties(
                    public=app_cfg.public,
                    https_only=app_cfg.https_only,
                    enable_end_to_end_tls=app_cfg.enable_end_to_end_tls,
                    temporary_disk=TemporaryDisk(
                        size_in_gb=app_cfg.temporary_disk_size_gb,
                        mount_path=app_cfg.temporary_disk_mount_path,
                    ),
                ),
            )
            app = self._spring.apps.begin_create_or_update(rg_name, svc_name, app_name, resource).result()
            logger.info("Created app %s", app_name, extra={"service": svc_name, "app": app_name})
            return app

        app, created = get_or_create(outcome, create)
        if not created:
            logger.info("Got app %s", app_name, extra={"service": svc_name, "app": app_name})
        return app

    # ── Deployment ──────────────────────────────────────────────────

    def ensure_deployment(self, resource_group, service, app, deployment_name: str, source: UserSourceInfo):
        """Return the deployment, creating it active with the configured resources and ``source`` if absent."""
        rg_name, svc_name, app_name = resource_group.name, service.name, app.name
        outcome = lookup(
            deployment_name, self._spring.deployments.get, rg_name, svc_name, app_name, deployment_name,
        )
        deployment, created = get_or_create(
            outcome, lambda: self._create_deployment(resource_group, service, app, deployment_name, source),
        )
        if not created:
            logger.info(
                "Got deployment %s, already active", deployment_name,
                extra={"app": app_name, "deployment": deployment_name},
            )
        return deployment

    def _create_deployment(self, resource_group, service, app, deployment_name: str, source: UserSourceInfo):
        log_extra = {"app": app.name, "deployment": deployment_name}
        logger.info("Creating deployment %s for app %s", deployment_name, app.name, extra=log_extra)
        deployment = self._spring.deployments.begin_create_or_update(
            resource_group.name, service.name, app.name, deployment_name,
            self._deployment_resource(service, source),
        ).result()
        logger.info("Created deployment %s", deployment_name, extra=log_extra)
        return deployment

    def _deployment_resource(self, service, source: UserSourceInfo) -> DeploymentResource:
        dep_cfg = self._config.deployment
        env = dict(dep_cfg.environment_variables or {})
        # Build-result sources carry no JVM options field of their own
        if dep_cfg.jvm_options and isinstance(source, BuildResultUserSourceInfo):
            env.setdefault("JAVA_OPTS", dep_cfg.jvm_options)

        sku = getattr(service, "sku", None)
        sku_name, sku_tier = TIER_SKUS[self._config.service.tier]
        return DeploymentResource(
            properties=DeploymentResourceProperties(
                source=source,
                deployment_settings=DeploymentSettings(
                    resource_requests=ResourceRequests(cpu=dep_cfg.cpu, memory=dep_cfg.memory),
                    environment_variables=env or None,
                ),
                active=True,
            ),
            sku=Sku(
                name=getattr(sku, "name", None) or sku_name,
                tier=getattr(sku, "tier", None) or sku_tier,
                capacity=dep_cfg.instance_count,
            ),
        )

    def _placeholder_source(self, tier: str) -> UserSourceInfo:
        dep_cfg = self._config.deployment
        if tier == "enterprise":
            return BuildResultUserSourceInfo(build_result_id=dep_cfg.placeholder_build_result_id)
        return JarUploadedUserSourceInfo(
            relative_path=dep_cfg.placeholder_build_result_id,
            runtime_version=dep_cfg.runtime_version,
            jvm_options=dep_cfg.jvm_options or None,
        )

    # ── Artifact deploy ─────────────────────────────────────────────

    def deploy(self, resource_group, service, app, artifact_path: str | Path, build_infra: BuildInfra | None = None):
        """Upload ``artifact_path``, bind it as the deployment source, then give the app a public endpoint."""
        dep_name = self._config.deployment.name
        rg_name, svc_name, app_name = resource_group.name, service.name, app.name

        source = self.upload_artifact(resource_group, service, app, artifact_path, build_infra)

        outcome = lookup(dep_name, self._spring.deployments.get, rg_name, svc_name, app_name, dep_name)
        deployment, created = get_or_create(
            outcome, lambda: self._create_deployment(resource_group, service, app, dep_name, source),
        )
        if not created:
            logger.info(
                "Binding new source to existing deployment %s", dep_name,
                extra={"app": app_name, "deployment": dep_name},
            )
            deployment = self._spring.deployments.begin_update(
                rg_name, svc_name, app_name, dep_name,
                DeploymentResource(properties=DeploymentResourceProperties(source=source)),
            ).result()

        self.assign_public_endpoint(resource_group, service, app)
        return deployment

    def upload_artifact(self, resource_group, service, app, artifact_path: str | Path,
                        build_infra: BuildInfra | None = None) -> UserSourceInfo:
        """Upload the artifact and return the source reference a deployment should point at."""
        rg_name, svc_name, app_name = resource_group.name, service.name, app.name
        dep_cfg = self._config.deployment

        if build_infra is None:
            upload = self._spring.apps.get_resource_upload_url(rg_name, svc_name, app_name)
            self._uploader.upload(upload.upload_url, artifact_path)
            return JarUploadedUserSourceInfo(
                relative_path=upload.relative_path,
                runtime_version=dep_cfg.runtime_version,
                jvm_options=dep_cfg.jvm_options or None,
            )

        build_service_name = build_infra.build_service_name
        upload = self._spring.build_service.get_resource_upload_url(rg_name, svc_name, build_service_name)
        self._uploader.upload(upload.upload_url, artifact_path)

        logger.info("Triggering build %s", app_name, extra={"service": svc_name, "app": app_name})
        build = self._spring.build_service.create_or_update_build(
            rg_name, svc_name, build_service_name, app_name,
            Build(
                properties=BuildProperties(
                    relative_path=upload.relative_path,
                    builder=build_infra.builder.id,
                    agent_pool=build_infra.agent_pool.id,
                ),
            ),
        )
        build_result_id = build.properties.triggered_build_result.id
        self._wait_for_build(rg_name, svc_name, build_service_name, app_name, build_result_id)
        return BuildResultUserSourceInfo(build_result_id=build_result_id)

    def _wait_for_build(self, rg_name: str, svc_name: str, build_service_name: str,
                        build_name: str, build_result_id: str) -> None:
        """Poll the build result until it succeeds, fails, or the configured timeout passes."""
        dep_cfg = self._config.deployment
        result_name = build_result_id.rstrip("/").split("/")[-1]
        deadline = time.monotonic() + dep_cfg.build_timeout_seconds

        while True:
            result = self._spring.build_service.get_build_result(
                rg_name, svc_name, build_service_name, build_name, result_name,
            )
            state = result.properties.provisioning_state
            logger.debug("Build result %s is %s", result_name, state, extra={"build_result_id": build_result_id})
            if state == BUILD_SUCCEEDED:
                logger.info("Build succeeded", extra={"build_result_id": build_result_id})
                return
            if state in BUILD_FAILED_STATES:
                raise BuildFailedError(build_result_id, state)
            if time.monotonic() >= deadline:
                raise BuildTimeoutError(build_result_id, dep_cfg.build_timeout_seconds)
            time.sleep(dep_cfg.build_poll_interval_seconds)

    # ── Public endpoint ─────────────────────────────────────────────

    def assign_public_endpoint(self, resource_group, service, app):
        """Make the app public; a no-op when the app already reports a public endpoint."""
        rg_name, svc_name, app_name = resource_group.name, service.name, app.name
        current = self._spring.apps.get(rg_name, svc_name, app_name)
        if current.properties is not None and current.properties.public:
            logger.debug("App %s already has a public endpoint", app_name, extra={"app": app_name})
            return current

        logger.info("Assigning public endpoint to app %s", app_name, extra={"app": app_name})
        return self._spring.apps.begin_update(
            rg_name, svc_name, app_name,
            AppResource(properties=AppResourceProperties(public=True)),
        ).result()
