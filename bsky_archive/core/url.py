from __future__ import annotations

import re

from bsky_archive.core.exceptions import InputFormatError
from bsky_archive.core.types import PostReference

POST_URL_PATTERN = re.compile(r"profile/([a-zA-Z0-9._-]+)/post/([A-Za-z0-9._:~-]+)")


def extract_post_reference(url: str) -> PostReference:
    """Pull the handle and record key out of a post URL.

    Raises:
        InputFormatError: if *url* has no ``profile/<handle>/post/<rkey>`` part.
    """
    match = POST_URL_PATTERN.search(url)
    if match is None:
        raise InputFormatError(url)
    return PostReference(handle=match.group(1), record_key=match.group(2))
