#!/usr/bin/env python

# pylint: disable=missing-class-docstring,too-few-public-methods

"""Typing classes."""

import json

from typing import Any, Dict, NamedTuple, Optional

from multidict import CIMultiDictProxy


class AuthChallenge(NamedTuple):
    scheme: str
    realm: str
    params: Dict[str, str]


class AuthToken(NamedTuple):
    value: str
    expires_at: Optional[float]


class TransportResponse(NamedTuple):
    """Status, headers and body of a completed HTTP round-trip."""

    status: int
    headers: CIMultiDictProxy
    body: bytes

    def json(self) -> Any:
        """Decodes the body as UTF-8 JSON."""
        return json.loads(self.body.decode("utf-8"))


class RegistryClientPutManifest(NamedTuple):
    response: TransportResponse
    digest: Optional[str]
