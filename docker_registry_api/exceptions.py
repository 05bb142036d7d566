#!/usr/bin/env python

# pylint: disable=too-few-public-methods

"""Error kinds raised by the registry client."""


class DockerRegistryApiError(Exception):
    """Base class for all registry client errors."""


class AuthUrlUnavailable(DockerRegistryApiError):
    """No challenge header was provided and no re-authentication url is known."""


class MalformedChallengeHeader(DockerRegistryApiError):
    """The "WWW-Authenticate" header does not match the expected grammar."""


class TokenExchangeFailed(DockerRegistryApiError):
    """The token endpoint returned an error or an unparsable response."""


class RegistryResponseInvalid(DockerRegistryApiError):
    """The registry returned an unexpected status or an unparsable response."""


class ManifestParseFailed(DockerRegistryApiError):
    """A manifest is not valid JSON or lacks a schema version."""


class UnsupportedSchemaVersion(DockerRegistryApiError):
    """A manifest schema version is unknown, or known but not implemented."""

    def __init__(self, schema_version, msg: str = "Unsupported schema version"):
        super().__init__(f"{msg}: {schema_version}")
        self.schema_version = schema_version


class RequestTimeout(DockerRegistryApiError):
    """A request timed out twice in a row."""
