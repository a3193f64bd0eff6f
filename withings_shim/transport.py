import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)


class HttpTransport:
    """
    Executes signed GET requests against Withings.

    ``get`` is a context manager so the connection goes back to the pool on
    every exit path, including when the body read fails. httpx errors
    propagate to the caller.
    """

    def __init__(self, timeout: float = 30.0, client: Optional[httpx.Client] = None) -> None:
        self._client = client or httpx.Client(timeout=timeout)

    @contextmanager
    def get(self, url: str) -> Iterator[Tuple[int, bytes]]:
        with self._client.stream("GET", url) as response:
            content = response.read()
            logger.debug(f"Withings responded {response.status_code} ({len(content)} bytes)")
            yield response.status_code, content

    def close(self) -> None:
        self._client.close()
