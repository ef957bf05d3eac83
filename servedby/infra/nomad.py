# servedby/infra/nomad.py
# Workload-orchestrator agent adapter: node id, datacenter and region of the local client.

from __future__ import annotations

import requests
from pydantic import BaseModel, Field, ValidationError

from servedby.errors import AgentLookupError

from .agent_http import agent_get_json, describe_validation_error

AGENT = "nomad"


class NomadClientStats(BaseModel):
    node_id: str


class NomadStats(BaseModel):
    client: NomadClientStats


class NomadConfig(BaseModel):
    datacenter: str = Field(..., alias="Datacenter")
    region: str = Field(..., alias="Region")


class NomadAgentSelf(BaseModel):
    config: NomadConfig
    stats: NomadStats

    @property
    def node_id(self) -> str:
        return self.stats.client.node_id


class NomadAgentClient:
    def __init__(
        self,
        addr: str,
        timeout: float,
        token: str = "",
        region: str = "",
        verify: bool = True,
        session: requests.Session | None = None,
    ):
        self.addr = addr.rstrip("/")
        self.timeout = timeout
        self.token = token
        self.region = region
        self.verify = verify
        self.session = session

    def agent_self(self) -> NomadAgentSelf:
        headers = {"X-Nomad-Token": self.token} if self.token else None
        params = {"region": self.region} if self.region else None
        payload = agent_get_json(
            self.session,
            AGENT,
            f"{self.addr}/v1/agent/self",
            timeout=self.timeout,
            headers=headers,
            params=params,
            verify=self.verify,
        )
        # Server-only agents have no "client" stats block; that is a failed lookup here.
        try:
            return NomadAgentSelf.model_validate(payload)
        except ValidationError as e:
            raise AgentLookupError(
                AGENT, f"{AGENT}: malformed agent/self response ({describe_validation_error(e)})"
            ) from e
