"""
URL canonicalization for agency/feed matching

Agencies and feeds rarely share a stable identifier, so they are matched on
the host part of their URLs. Both sides go through canonicalize_url and are
compared for exact equality.
"""

import re
from typing import Optional

# leading junk, optional scheme, any number of leading "www." labels, then the host
_CANONICAL_HOST = re.compile(r"^\W*(?:https?://)?(?:www\.)*([a-z0-9\-_.]*)")


def canonicalize_url(url: Optional[str]) -> Optional[str]:
    """
    Reduce a URL to a lowercase host string.

    Strips the http/https scheme, leading "www." labels and everything after
    the host (port, path, query, fragment). Applying it to its own output
    returns the same value.

    Examples:
        >>> canonicalize_url("HTTP://WWW.Foo.org/x")
        'foo.org'
        >>> canonicalize_url("foo.org")
        'foo.org'

    Returns:
        The canonical host, or None when nothing host-like remains
    """
    if url is None:
        return None

    host = url.strip().lower()
    while True:
        # each pass only ever shortens the string, repeat until stable
        match = _CANONICAL_HOST.match(host)
        reduced = match.group(1) if match else ""
        if reduced == host:
            break
        host = reduced
    return host or None
