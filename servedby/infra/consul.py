# servedby/infra/consul.py
# Service-discovery agent adapter: reads the local agent's own member record.

from __future__ import annotations

import requests
from pydantic import BaseModel, Field, ValidationError

from servedby.errors import AgentLookupError

from .agent_http import agent_get_json, describe_validation_error

AGENT = "consul"


class ConsulMember(BaseModel):
    addr: str = Field(..., alias="Addr", description="Gossip address of this agent")
    name: str | None = Field(None, alias="Name")
    port: int | None = Field(None, alias="Port")


class ConsulAgentSelf(BaseModel):
    member: ConsulMember = Field(..., alias="Member")


class ConsulAgentClient:
    def __init__(
        self,
        addr: str,
        timeout: float,
        token: str = "",
        verify: bool = True,
        session: requests.Session | None = None,
    ):
        self.addr = addr.rstrip("/")
        self.timeout = timeout
        self.token = token
        self.verify = verify
        self.session = session

    def member(self) -> ConsulMember:
        headers = {"X-Consul-Token": self.token} if self.token else None
        payload = agent_get_json(
            self.session,
            AGENT,
            f"{self.addr}/v1/agent/self",
            timeout=self.timeout,
            headers=headers,
            verify=self.verify,
        )
        try:
            return ConsulAgentSelf.model_validate(payload).member
        except ValidationError as e:
            raise AgentLookupError(
                AGENT, f"{AGENT}: malformed agent/self response ({describe_validation_error(e)})"
            ) from e

