# servedby/infra/agent_http.py
# Shared GET helper for the local agents and the metadata service.
# Every failure mode surfaces as AgentLookupError.

from __future__ import annotations

from typing import Any

import requests
from pydantic import ValidationError

from servedby.errors import AgentLookupError


def agent_get(
    session: requests.Session | None,
    agent: str,
    url: str,
    *,
    timeout: float,
    headers: dict[str, str] | None = None,
    params: dict[str, str] | None = None,
    verify: bool = True,
) -> requests.Response:
    try:
        # Without an injected session each call gets its own connection pool
        get = session.get if session is not None else requests.get
        resp = get(url, headers=headers, params=params, timeout=timeout, verify=verify)
    except requests.Timeout as e:
        raise AgentLookupError(agent, f"{agent}: timed out after {timeout}s") from e
    except requests.RequestException as e:
        raise AgentLookupError(agent, f"{agent}: {e}") from e

    if not 200 <= resp.status_code < 300:
        raise AgentLookupError(agent, f"{agent}: unexpected status {resp.status_code}")
    return resp


def agent_get_json(
    session: requests.Session | None,
    agent: str,
    url: str,
    *,
    timeout: float,
    headers: dict[str, str] | None = None,
    params: dict[str, str] | None = None,
    verify: bool = True,
) -> Any:
    resp = agent_get(
        session, agent, url, timeout=timeout, headers=headers, params=params, verify=verify
    )
    try:
        return resp.json()
    except ValueError as e:
        raise AgentLookupError(agent, f"{agent}: response is not valid JSON") from e


def describe_validation_error(e: ValidationError) -> str:
    """First pydantic error as "field.path: message"."""
    err = e.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg', 'invalid')}"
