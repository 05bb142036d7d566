#!/usr/bin/env python

"""Bearer token authentication driven by registry challenges."""

import asyncio
import logging
import os
import re
import time

from http import HTTPStatus
from typing import Mapping, Optional
from urllib.parse import quote, unquote, urlencode, urlparse

import www_authenticate

from aiohttp import BasicAuth

from .exceptions import (
    AuthUrlUnavailable,
    MalformedChallengeHeader,
    RequestTimeout,
    TokenExchangeFailed,
)
from .specs import WwwAuthenticate
from .transport import HttpTransport
from .typing import AuthChallenge, AuthToken, TransportResponse
from .utils import must_be_mapping, must_be_successful

LOGGER = logging.getLogger(__name__)


class AuthenticatingRequester:
    """
    Issues registry requests with a bearer token, exchanging credentials for a new token when challenged.

    A request answered with 401 triggers exactly one token exchange against the url described by the
    "WWW-Authenticate" header (or the last known one), followed by exactly one retry of the request.
    """

    DEBUG = os.environ.get("DRA_DEBUG", "")

    def __init__(
        self,
        transport: HttpTransport,
        *,
        base_url: str,
        username: str = None,
        api_key: str = None,
    ):
        """
        Args:
            transport: The HTTP transport used for all requests.
        Keyword Args:
            base_url: Url against which relative request paths are resolved.
            username: The username used for the token exchange.
            api_key: The api key (password) used for the token exchange.
        """
        self.api_key = api_key
        self.auth_token = None  # type: Optional[AuthToken]
        self.auth_url = None  # type: Optional[str]
        self.base_url = base_url.rstrip("/")
        self.token_lock = None  # type: Optional[asyncio.Lock]
        self.transport = transport
        self.username = username

    def _get_token_lock(self) -> asyncio.Lock:
        """Lazily creates the lock that serializes token exchanges."""
        if self.token_lock is None:
            self.token_lock = asyncio.Lock()
        return self.token_lock

    def _get_url(self, path: str) -> str:
        if "://" in path:
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _token_expired(self) -> bool:
        return (
            self.auth_token is not None
            and self.auth_token.expires_at is not None
            and self.auth_token.expires_at <= time.monotonic()
        )

    async def _send(self, method: str, url: str, **kwargs) -> TransportResponse:
        """
        Delegates a request to the transport, retrying once on timeout.

        Args:
            method: The HTTP method.
            url: The absolute request url.

        Returns:
            The transport response.
        """
        try:
            return await self.transport.request(method, url, **kwargs)
        except asyncio.TimeoutError:
            LOGGER.warning("Request timed out; retrying: %s %s", method, url)
        try:
            return await self.transport.request(method, url, **kwargs)
        except asyncio.TimeoutError as exception:
            raise RequestTimeout(f"Request timed out: {method} {url}") from exception

    async def _refresh_token(self, response: TransportResponse, stale: str):
        """
        Exchanges credentials for a new token, unless another exchange already replaced the stale one.

        Args:
            response: The 401 response that rejected the stale token.
            stale: The token value that was rejected.
        """
        async with self._get_token_lock():
            if self.get_auth_token() != stale:
                return
            await self.fetch_new_auth_token(response)

    def get_auth_token(self) -> str:
        """
        Retrieves the current bearer token.

        Returns:
            The current token value, or an empty string if none was fetched.
        """
        return self.auth_token.value if self.auth_token else ""

    async def request(
        self, method: str, path: str, *, allow_token_fetch: bool = True, **kwargs
    ) -> TransportResponse:
        """
        Issues an authenticated request; HTTP errors are returned, never raised.

        Args:
            method: The HTTP method.
            path: Path relative to the base url, or an absolute url.
            allow_token_fetch: If True, a 401 response triggers a token exchange and a single retry.
        Keyword Args:
            data: Optional request body.
            headers: Optional request headers.

        Returns:
            The transport response.
        """
        url = self._get_url(path)
        if allow_token_fetch and self.auth_url and self._token_expired():
            stale = self.get_auth_token()
            async with self._get_token_lock():
                if self.get_auth_token() == stale:
                    if AuthenticatingRequester.DEBUG:
                        LOGGER.debug(
                            "Token expired; refreshing from: %s", self.auth_url
                        )
                    await self.fetch_new_auth_token(auth_url=self.auth_url)

        token = self.get_auth_token()
        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {token}"
        kwargs["raise_for_status"] = False
        response = await self._send(method, url, headers=headers, **kwargs)

        if response.status == HTTPStatus.UNAUTHORIZED and allow_token_fetch:
            if AuthenticatingRequester.DEBUG:
                LOGGER.debug("Unauthorized; fetching new token for: %s %s", method, url)
            await self._refresh_token(response, token)
            return await self.request(
                method, path, allow_token_fetch=False, headers=headers, **kwargs
            )

        return response

    async def fetch_new_auth_token(
        self, response: TransportResponse = None, auth_url: str = None
    ) -> str:
        """
        Exchanges the configured credentials for a new bearer token.

        Args:
            response: Optional 401 response carrying a "WWW-Authenticate" header.
            auth_url: Optional token endpoint url; takes precedence over the response header.

        Returns:
            The new token value.
        """
        if (
            not auth_url
            and response is not None
            and WwwAuthenticate.HEADER in response.headers
        ):
            auth_url = self.parse_www_authenticate_header(
                response.headers[WwwAuthenticate.HEADER]
            )
        if not auth_url:
            auth_url = self.auth_url
        if not auth_url:
            raise AuthUrlUnavailable(
                "Attempted to authenticate with no auth url available"
            )
        self.auth_url = auth_url

        auth = None
        if self.username:
            auth = BasicAuth(self.username, self.api_key or "")
        auth_response = await self._send(
            "GET", auth_url, auth=auth, raise_for_status=False
        )
        must_be_successful(
            auth_response, "Token exchange failed", error_type=TokenExchangeFailed
        )
        try:
            payload = auth_response.json()
        except ValueError as exception:
            raise TokenExchangeFailed("Unparsable token response") from exception
        must_be_mapping(
            payload, "Invalid token response", error_type=TokenExchangeFailed
        )

        # Registries may return either field; "access_token" wins when both are present
        value = payload.get("access_token") or payload.get("token")
        if not value or not isinstance(value, str):
            raise TokenExchangeFailed("Token response does not contain a token")

        expires_at = None
        expires_in = payload.get("expires_in")
        if isinstance(expires_in, (int, float)) and expires_in > 0:
            expires_at = time.monotonic() + expires_in

        self.auth_token = AuthToken(value=value, expires_at=expires_at)
        if AuthenticatingRequester.DEBUG:
            LOGGER.debug("Fetched new token from: %s", auth_url)
        return value

    @staticmethod
    def parse_challenge(header: str) -> AuthChallenge:
        """
        Parses a "WWW-Authenticate" header of the form: <scheme> <key>="<value>"(,<key>="<value>")*

        Args:
            header: The header value.

        Returns:
            The parsed challenge.
        """
        match = re.match(r"^(?P<scheme>\S+) (?P<data>.*)", header or "")
        if not match:
            raise MalformedChallengeHeader(f"Invalid header: {header}")
        scheme = match.group("scheme")
        try:
            challenges = www_authenticate.parse(header)
        except ValueError as exception:
            raise MalformedChallengeHeader(f"Invalid header: {header}") from exception

        params = None
        for name, value in challenges.items():
            if name.lower() == scheme.lower():
                params = value
                break
        if not isinstance(params, Mapping):
            raise MalformedChallengeHeader(f"Invalid header: {header}")

        params = {key.lower(): value for key, value in params.items()}
        if not params.get("realm"):
            raise MalformedChallengeHeader(f"No realm in header: {header}")
        realm = urlparse(params["realm"])
        if realm.scheme not in ("http", "https") or not realm.netloc:
            raise MalformedChallengeHeader(f"Realm is not an absolute url: {header}")
        return AuthChallenge(
            scheme=scheme,
            realm=params["realm"],
            params={
                key: value
                for key, value in params.items()
                if key not in WwwAuthenticate.NOT_FORWARDED
            },
        )

    @staticmethod
    def get_auth_url(challenge: AuthChallenge) -> str:
        """
        Builds the token endpoint url described by a challenge.

        Args:
            challenge: The parsed challenge.

        Returns:
            The percent-decoded token endpoint url.
        """
        if not challenge.params:
            return challenge.realm
        query = urlencode(challenge.params, quote_via=quote)
        return unquote(f"{challenge.realm}?{query}")

    @staticmethod
    def parse_www_authenticate_header(header: str) -> str:
        """
        Retrieves the token endpoint url from a "WWW-Authenticate" header.

        Args:
            header: The header value.

        Returns:
            The percent-decoded token endpoint url.
        """
        return AuthenticatingRequester.get_auth_url(
            AuthenticatingRequester.parse_challenge(header)
        )
