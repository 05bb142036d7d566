#!/usr/bin/env python

"""An AIOHTTP based Python REST client for the Docker Registry with bearer token authentication."""

from .authenticatingrequester import AuthenticatingRequester
from .exceptions import (
    AuthUrlUnavailable,
    DockerRegistryApiError,
    MalformedChallengeHeader,
    ManifestParseFailed,
    RegistryResponseInvalid,
    RequestTimeout,
    TokenExchangeFailed,
    UnsupportedSchemaVersion,
)
from .manifest import Manifest
from .manifestcodec import ManifestCodec
from .registryclient import RegistryClient
from .specs import DockerMediaTypes, Indices, MediaTypes, SchemaVersions
from .transport import AiohttpTransport, HttpTransport
from .typing import AuthChallenge, AuthToken, TransportResponse

__version__ = "0.1.0"
