from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import httpx
import structlog


class BaseHTTPService:
    """Base class for services that talk to third-party HTTP APIs.

    A shared ``httpx.AsyncClient`` can be injected (tests pass one backed by
    ``httpx.MockTransport``); otherwise a short-lived client is opened per call.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        user_agent: str = "JARVIS-News-Assistant/1.0",
    ):
        self._client = client
        self.timeout = timeout
        self.user_agent = user_agent
        self.logger = structlog.get_logger(self.__class__.__name__)

    def _default_headers(self) -> Dict[str, str]:
        return {"User-Agent": self.user_agent}

    @asynccontextmanager
    async def http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return

        async with httpx.AsyncClient(timeout=self.timeout, headers=self._default_headers()) as client:
            yield client
