# servedby/errors.py
from __future__ import annotations


class ConfigError(Exception):
    """Missing or invalid command-line input."""


class BindError(Exception):
    """The listening socket could not be created."""


class AgentLookupError(Exception):
    """An outbound lookup (metadata, cluster agent, orchestrator agent) failed."""

    def __init__(self, agent: str, message: str):
        super().__init__(message)
        self.agent = agent
