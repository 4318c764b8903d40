"""Command line interface for agent-cloud."""

from agent_cloud.cli.commands import app

__all__ = ["app"]
