from __future__ import annotations

import logging

from bsky_archive.client import BskyClient
from bsky_archive.core.exceptions import TransportError

logger = logging.getLogger(__name__)


def submit_to_wayback(client: BskyClient, url: str) -> bool:
    """Ask the web archive to snapshot *url*.

    Best effort: the response is never inspected and failures are only
    logged. Returns whether the request went through.
    """
    target = f"{client.settings.mirror_url}{url}"
    logger.info("Archiving externally...")
    try:
        client.request("GET", target)
    except TransportError as exc:
        logger.warning("External archive request failed: %s", exc)
        return False
    return True
