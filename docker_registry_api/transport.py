#!/usr/bin/env python

"""Abstract HTTP capability and its AIOHTTP implementation."""

import logging
import os

from typing import Any, Dict, Optional, Protocol

from aiohttp import (
    AsyncResolver,
    BasicAuth,
    ClientSession,
    ClientTimeout,
    TCPConnector,
)
from aiohttp.typedefs import LooseHeaders

from .typing import TransportResponse

LOGGER = logging.getLogger(__name__)


class HttpTransport(Protocol):
    # pylint: disable=too-few-public-methods
    """Issues a single HTTP request and returns its status, headers and body."""

    async def request(
        self,
        method: str,
        url: str,
        *,
        auth: Optional[BasicAuth] = None,
        data: Optional[bytes] = None,
        headers: LooseHeaders = None,
        raise_for_status: bool = False,
    ) -> TransportResponse:
        """
        Args:
            method: The HTTP method.
            url: The absolute request url.
            auth: Optional HTTP basic authentication credentials.
            data: Optional request body.
            headers: Optional request headers.
            raise_for_status: If True, non-2xx statuses raise instead of being returned.

        Returns:
            The completed response.
        """


class AiohttpTransport:
    """
    HttpTransport backed by a lazily created AIOHTTP client session.
    """

    DEBUG = os.environ.get("DRA_DEBUG", "")
    DEFAULT_TIMEOUT = float(os.environ.get("DRA_TIMEOUT", 60))

    def __init__(
        self,
        *,
        client_session: ClientSession = None,
        client_session_kwargs: Dict = None,
        resolver_kwargs: Dict = None,
        tcp_connector_kwargs: Dict = None,
        timeout: float = None,
    ):
        """
        Args:
            client_session: The underlying client session to use when making connections.
            client_session_kwargs: Arguments to be passed to the client session.
            resolver_kwargs: Arguments to be passed to the resolver
            tcp_connector_kwargs: Arguments to be passed to the TCP connector.
            timeout: Total timeout of a single request, in seconds.
        """
        if not client_session_kwargs:
            client_session_kwargs = {}
        if not resolver_kwargs:
            resolver_kwargs = {}
        if not tcp_connector_kwargs:
            tcp_connector_kwargs = {}
        if timeout is None:
            timeout = AiohttpTransport.DEFAULT_TIMEOUT

        self.client_session = client_session
        self.client_session_kwargs = client_session_kwargs
        self.resolver_kwargs = resolver_kwargs
        self.tcp_connector_kwargs = tcp_connector_kwargs
        self.timeout = timeout

    async def __aenter__(self) -> "AiohttpTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self):
        """Gracefully closes this instance."""
        if self.client_session:
            await self.client_session.close()
        self.client_session = None

    async def _get_client_session(self) -> ClientSession:
        """
        Initializes and / or retrieves an AIOHTTP client session.

        Returns:
            The AIOHTTP client session.
        """
        if not self.client_session:
            if "resolver" not in self.tcp_connector_kwargs:
                self.tcp_connector_kwargs["resolver"] = AsyncResolver(
                    **self.resolver_kwargs
                )
            if "connector" not in self.client_session_kwargs:
                self.client_session_kwargs["connector"] = TCPConnector(
                    **self.tcp_connector_kwargs
                )
            if "timeout" not in self.client_session_kwargs:
                self.client_session_kwargs["timeout"] = ClientTimeout(
                    total=self.timeout
                )
            self.client_session = ClientSession(**self.client_session_kwargs)

        return self.client_session

    async def request(
        self,
        method: str,
        url: str,
        *,
        auth: Optional[BasicAuth] = None,
        data: Optional[bytes] = None,
        headers: LooseHeaders = None,
        raise_for_status: bool = False,
    ) -> TransportResponse:
        """Issues a request and reads the complete response body."""
        client_session = await self._get_client_session()
        kwargs = {}  # type: Dict[str, Any]
        if auth is not None:
            kwargs["auth"] = auth
        if data is not None:
            kwargs["data"] = data
        if AiohttpTransport.DEBUG:
            LOGGER.debug("%s %s", method, url)
        async with client_session.request(
            method,
            url,
            headers=headers,
            raise_for_status=raise_for_status,
            **kwargs,
        ) as client_response:
            body = await client_response.read()
            return TransportResponse(
                status=client_response.status,
                headers=client_response.headers,
                body=body,
            )
