"""Core functionality for agent-cloud."""

from agent_cloud.core.exceptions import (
    AgentCloudError,
    AuthenticationError,
    DeploymentError,
    ValidationError,
    WorkflowError,
)

__all__ = [
    "AgentCloudError",
    "AuthenticationError",
    "DeploymentError",
    "ValidationError",
    "WorkflowError",
]
