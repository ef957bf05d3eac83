# servedby/page.py
from __future__ import annotations

from html import escape

from servedby.errors import AgentLookupError
from servedby.lookups import Lookups

# Zone suffix (the "a" in "us-central1-a") -> pug photo
ZONE_IMAGES = {
    "a": "https://storage.googleapis.com/radek-devfest-2017/red-pug.jpg",
    "b": "https://storage.googleapis.com/radek-devfest-2017/blue-pug.jpg",
    "c": "https://storage.googleapis.com/radek-devfest-2017/green-pug.jpg",
}

UNKNOWN_ZONE = "unknown"


def _text(value: str) -> str:
    # Element text only: quotes stay literal so error strings read as raised
    return escape(value, quote=False)


def zone_suffix(zone: str) -> str:
    return zone.split("-")[-1]


def image_for_zone(suffix: str) -> str:
    """Unknown suffixes map to "" (a broken image, not an error)."""
    return ZONE_IMAGES.get(suffix, "")


def render_page(lookups: Lookups) -> str:
    """
    Build the root page. Lookups run in order: zone, cluster member, orchestrator
    self. A failed orchestrator lookup ends the page early with an "unknown node" line.
    """
    try:
        zone = lookups.zone()
        suffix = zone_suffix(zone)
    except AgentLookupError:
        zone, suffix = UNKNOWN_ZONE, ""

    parts = [f'<center><img src="{escape(image_for_zone(suffix))}"></center>\n']

    try:
        ip = lookups.member().addr
    except AgentLookupError as e:
        ip = f"unknown / {e}"

    try:
        node = lookups.agent_self()
    except AgentLookupError as e:
        parts.append(f"<center>Served from unknown node ({_text(str(e))})</center>")
        return "".join(parts)

    parts.append(
        f"<br><center>Served from <strong>{_text(node.node_id)}</strong> "
        f"IP: {_text(ip)} "
        f"(Zone: {_text(zone)}, DC: {_text(node.config.datacenter)}, "
        f"region: {_text(node.config.region)})</center>"
    )
    return "".join(parts)
