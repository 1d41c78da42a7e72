"""Command-line interface for agentauth."""
