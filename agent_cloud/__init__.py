"""Agent-Cloud: AI-assisted multi-cloud deployment CLI."""

__version__ = "1.0.0"
