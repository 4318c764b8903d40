"""HTTP API for agent-cloud."""
