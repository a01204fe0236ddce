"""Custom exception hierarchy for the Spring Apps provisioner."""


class ProvisionerError(Exception):
    """Base exception for all provisioner errors."""


class ConfigError(ProvisionerError):
    """Invalid or missing configuration."""


class MissingBuildInfraError(ProvisionerError):
    """An Enterprise-tier service has no default build service, builder or agent pool."""

    def __init__(self, kind: str, service_name: str):
        super().__init__(f"Cannot find default {kind} for service {service_name}")
        self.kind = kind
        self.service_name = service_name


class ArtifactError(ProvisionerError):
    """The local artifact is missing or could not be uploaded."""

    def __init__(self, message: str, status_code: int | None = None, response_body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class BuildFailedError(ProvisionerError):
    """The build triggered from an uploaded artifact ended in a failure state."""

    def __init__(self, build_result_id: str, state: str):
        super().__init__(f"Build {build_result_id} finished in state {state}")
        self.build_result_id = build_result_id
        self.state = state


class BuildTimeoutError(ProvisionerError):
    """The triggered build did not finish within the configured timeout."""

    def __init__(self, build_result_id: str, timeout: int):
        super().__init__(f"Build {build_result_id} did not finish within {timeout}s")
        self.build_result_id = build_result_id
        self.timeout = timeout
