# servedby/lookups.py
# Bundles the three outbound lookups the page needs so handlers (and tests)
# receive them as plain callables.

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import requests

from servedby.config import Settings
from servedby.errors import AgentLookupError
from servedby.infra.consul import ConsulAgentClient, ConsulMember
from servedby.infra.metadata import InstanceMetadataClient
from servedby.infra.nomad import NomadAgentClient, NomadAgentSelf
from servedby.metrics import record_lookup

T = TypeVar("T")


def _counted(agent: str, fn: Callable[[], T]) -> Callable[[], T]:
    def call() -> T:
        try:
            result = fn()
        except AgentLookupError:
            record_lookup(agent, ok=False)
            raise
        record_lookup(agent, ok=True)
        return result

    return call


@dataclass(frozen=True)
class Lookups:
    zone: Callable[[], str]
    member: Callable[[], ConsulMember]
    agent_self: Callable[[], NomadAgentSelf]

    @classmethod
    def from_settings(cls, settings: Settings, session: requests.Session | None = None) -> Lookups:
        timeout = settings.lookup_timeout_secs

        metadata = InstanceMetadataClient(settings.metadata_host, timeout, session=session)
        consul = ConsulAgentClient(
            settings.consul_addr,
            timeout,
            token=settings.consul_token,
            verify=settings.consul_verify,
            session=session,
        )
        nomad = NomadAgentClient(
            settings.nomad_addr,
            timeout,
            token=settings.nomad_token,
            region=settings.nomad_region,
            verify=settings.nomad_verify,
            session=session,
        )
        return cls(
            zone=_counted("metadata", metadata.zone),
            member=_counted("consul", consul.member),
            agent_self=_counted("nomad", nomad.agent_self),
        )
