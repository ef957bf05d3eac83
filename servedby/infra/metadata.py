# servedby/infra/metadata.py
# Cloud instance-metadata adapter: resolves the zone this instance runs in.

from __future__ import annotations

import requests

from servedby.errors import AgentLookupError

from .agent_http import agent_get

AGENT = "metadata"
ZONE_PATH = "/computeMetadata/v1/instance/zone"


class InstanceMetadataClient:
    def __init__(self, host: str, timeout: float, session: requests.Session | None = None):
        self.base_url = f"http://{host}"
        self.timeout = timeout
        self.session = session

    def zone(self) -> str:
        """
        Return the short zone name, e.g. "us-central1-a".

        The service answers with "projects/<number>/zones/<zone>"; only the
        final path segment is kept.
        """
        resp = agent_get(
            self.session,
            AGENT,
            self.base_url + ZONE_PATH,
            timeout=self.timeout,
            headers={"Metadata-Flavor": "Google"},
        )
        zone = resp.text.strip().rsplit("/", 1)[-1]
        if not zone:
            raise AgentLookupError(AGENT, f"{AGENT}: empty zone in response")
        return zone
