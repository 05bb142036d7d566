#!/usr/bin/env python

# pylint: disable=too-few-public-methods

"""Reusable string literals."""


class DockerMediaTypes:
    """https://github.com/docker/distribution/blob/master/docs/spec/manifest-v2-1.md"""

    DISTRIBUTION_MANIFEST_V1 = "application/vnd.docker.distribution.manifest.v1+json"
    DISTRIBUTION_MANIFEST_V1_SIGNED = (
        "application/vnd.docker.distribution.manifest.v1+prettyjws"
    )
    DISTRIBUTION_MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"


class Indices:
    """Common registry indices."""

    DOCKERHUB = "index.docker.io"
    QUAY = "quay.io"


class MediaTypes:
    """Generic mime types."""

    APPLICATION_JSON = "application/json"


class SchemaVersions:
    """Values of the "schemaVersion" manifest field."""

    V1 = 1
    V2 = 2


class WwwAuthenticate:
    """https://github.com/docker/distribution/blob/master/docs/spec/auth/token.md"""

    HEADER = "Www-Authenticate"
    # Challenge fields that are not forwarded to the token endpoint
    NOT_FORWARDED = ("realm", "error")
