"""Custom exceptions for Agent-Cloud."""

from typing import Any


class AgentCloudError(Exception):
    """Base exception for Agent-Cloud."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def suggestions(self) -> list[str]:
        """Remediation hints shown to the user."""
        return []


class AuthenticationError(AgentCloudError):
    """Vendor CLI session is missing or invalid."""

    def __init__(self, message: str, cloud: str, suggestions: list[str] | None = None):
        super().__init__(message, {"cloud": cloud})
        self.cloud = cloud
        self._suggestions = list(suggestions or [])

    @property
    def suggestions(self) -> list[str]:
        return self._suggestions


class DeploymentError(AgentCloudError):
    """A cloud provider operation failed."""

    def __init__(
        self,
        message: str,
        code: str,
        cloud: str | None = None,
        recoverable: bool = False,
        suggestions: list[str] | None = None,
    ):
        super().__init__(
            message,
            {"code": code, "cloud": cloud, "recoverable": recoverable},
        )
        self.code = code
        self.cloud = cloud
        self.recoverable = recoverable
        self._suggestions = list(suggestions or [])

    @property
    def suggestions(self) -> list[str]:
        return self._suggestions


class ValidationError(AgentCloudError):
    """Malformed user input."""

    def __init__(self, message: str, field: str, value: Any = None):
        details: dict[str, Any] = {"field": field}
        if value is not None:
            details["value"] = value
        super().__init__(message, details)
        self.field = field
        self.value = value


class WorkflowError(AgentCloudError):
    """A named workflow phase failed."""

    def __init__(self, message: str, step: str, recoverable: bool = False):
        super().__init__(message, {"step": step, "recoverable": recoverable})
        self.step = step
        self.recoverable = recoverable


# Remediation hints per cloud
_DEPLOYMENT_SUGGESTIONS: dict[str, list[str]] = {
    "aws": [
        "Check AWS CLI is installed: aws --version",
        "Verify authentication: aws sts get-caller-identity",
        "Ensure you have necessary permissions",
        "Check AWS service quotas",
    ],
    "gcp": [
        "Check gcloud CLI is installed: gcloud --version",
        "Verify authentication: gcloud auth list",
        "Set project: gcloud config set project YOUR_PROJECT",
        "Enable required APIs in GCP Console",
    ],
    "azure": [
        "Check Azure CLI is installed: az --version",
        "Verify authentication: az account show",
        "Set subscription: az account set --subscription YOUR_SUBSCRIPTION",
        "Check resource provider registration",
    ],
}

_AUTH_SUGGESTIONS: dict[str, list[str]] = {
    "aws": [
        "Run: aws configure",
        "Set access key and secret key",
        "Or use environment variables: AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY",
    ],
    "gcp": [
        "Run: gcloud auth login",
        "Or use service account: export GOOGLE_APPLICATION_CREDENTIALS=/path/to/key.json",
        "Set project: gcloud config set project YOUR_PROJECT",
    ],
    "azure": [
        "Run: az login",
        "Or use service principal with environment variables",
        "Set subscription: az account set --subscription YOUR_SUBSCRIPTION",
    ],
}

_CLOUD_LABELS = {"aws": "AWS", "gcp": "GCP", "azure": "Azure"}


def deployment_failed(cloud: str, message: str, recoverable: bool = False) -> DeploymentError:
    """Build the deployment error for a cloud."""
    return DeploymentError(
        message,
        f"{cloud.upper()}_DEPLOYMENT_FAILED",
        cloud,
        recoverable,
        _DEPLOYMENT_SUGGESTIONS.get(cloud, []),
    )


def auth_failed(cloud: str) -> AuthenticationError:
    """Build the authentication error for a cloud."""
    label = _CLOUD_LABELS.get(cloud, cloud.upper())
    return AuthenticationError(
        f"{label} authentication failed",
        cloud,
        _AUTH_SUGGESTIONS.get(cloud, []),
    )


def workflow_step_failed(step: str, message: str) -> WorkflowError:
    # Agent-side failures can be retried by starting a new run
    return WorkflowError(message, step, recoverable=True)


def invalid_cloud(cloud: str) -> ValidationError:
    return ValidationError(
        f"Invalid cloud provider: {cloud}. Must be one of: aws, gcp, azure",
        "cloud",
        cloud,
    )


def missing_project_path(path: str | None = None) -> ValidationError:
    if path:
        return ValidationError(f"Project path does not exist: {path}", "projectPath", path)
    return ValidationError("Project path is required", "projectPath")
