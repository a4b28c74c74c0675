"""HTTP session for the 100x REST API.

No retries and no rate limiting: every failure goes straight back to the caller.
"""

import logging

from requests import Session
from requests.adapters import HTTPAdapter

from eth_hundredx.constants import DEFAULT_POOL_MAXSIZE

logger = logging.getLogger(__name__)


def create_hundredx_session(pool_maxsize: int = DEFAULT_POOL_MAXSIZE) -> Session:
    """Create a requests Session configured for the 100x API.

    The session is thread safe for concurrent requests, so a single
    :py:class:`eth_hundredx.api.HundredXApiClient` can be shared across threads.

    :param pool_maxsize:
        Maximum number of connections to keep in the connection pool.
    """
    session = Session()
    adapter = HTTPAdapter(
        pool_connections=pool_maxsize,
        pool_maxsize=pool_maxsize,
        max_retries=0,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"Accept": "application/json"})
    return session
