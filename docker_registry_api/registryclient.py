#!/usr/bin/env python

"""Docker Registry client with bearer token authentication and manifest caching."""

import logging
import os

from http import HTTPStatus
from typing import AsyncGenerator, Dict, List, Mapping, Optional

from .authenticatingrequester import AuthenticatingRequester
from .exceptions import RegistryResponseInvalid
from .manifest import Manifest
from .manifestcodec import ManifestCodec
from .specs import DockerMediaTypes, Indices, MediaTypes
from .transport import AiohttpTransport, HttpTransport
from .typing import RegistryClientPutManifest, TransportResponse
from .utils import must_be_equal, must_be_mapping, must_be_successful

LOGGER = logging.getLogger(__name__)


class RegistryClient:
    # pylint: disable=too-many-instance-attributes
    """
    AIOHTTP based Python REST client for a single Docker Registry repository.
    """

    DEBUG = os.environ.get("DRA_DEBUG", "")
    DEFAULT_MEDIA_TYPES_MANIFEST = (
        f"{DockerMediaTypes.DISTRIBUTION_MANIFEST_V1_SIGNED};q=1.0,"
        f"{DockerMediaTypes.DISTRIBUTION_MANIFEST_V1};q=0.9,"
        f"{MediaTypes.APPLICATION_JSON};q=0.5"
    )
    DEFAULT_PROTOCOL = os.environ.get("DRA_DEFAULT_PROTOCOL", "https")
    DEFAULT_REGISTRY = os.environ.get(
        "DRA_DEFAULT_REGISTRY", f"https://{Indices.DOCKERHUB}"
    )

    def __init__(
        self,
        repository: str,
        *,
        username: str = None,
        api_key: str = None,
        registry: str = None,
        transport: HttpTransport = None,
        codec: ManifestCodec = None,
    ):
        # pylint: disable=too-many-arguments
        """
        Args:
            repository: The target repository, in the form <namespace>/<name>.
        Keyword Args:
            username: The username used for the token exchange.
            api_key: The api key used for the token exchange.
            registry: Base url of the registry; a bare host name is prefixed with the default protocol.
            transport: The HTTP transport; an AiohttpTransport owned by this instance when omitted.
            codec: The manifest codec.
        """
        if not registry:
            registry = RegistryClient.DEFAULT_REGISTRY
        if "://" not in registry:
            registry = f"{RegistryClient.DEFAULT_PROTOCOL}://{registry}"
        self.transport_owned = transport is None
        if transport is None:
            transport = AiohttpTransport()

        self.codec = codec if codec else ManifestCodec()
        # Tag -> manifest
        self.manifests = {}  # type: Dict[str, Manifest]
        self.registry = registry
        self.repository = repository.strip("/")
        self.requester = AuthenticatingRequester(
            transport, base_url=registry, username=username, api_key=api_key
        )
        self.tags = None  # type: Optional[List[str]]
        self.transport = transport

    async def __aenter__(self) -> "RegistryClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self):
        """Gracefully closes this instance."""
        if self.transport_owned:
            await self.transport.close()

    async def _get_tags(self) -> TransportResponse:
        return await self.requester.request(
            "GET",
            f"/v2/{self.repository}/tags/list",
            headers={"Accept": MediaTypes.APPLICATION_JSON},
        )

    async def _get_manifest(self, tag: str) -> TransportResponse:
        return await self.requester.request(
            "GET",
            f"/v2/{self.repository}/manifests/{tag}",
            headers={"Accept": RegistryClient.DEFAULT_MEDIA_TYPES_MANIFEST},
        )

    async def _put_manifest(
        self, tag: str, data: bytes, *, media_type: str
    ) -> TransportResponse:
        return await self.requester.request(
            "PUT",
            f"/v2/{self.repository}/manifests/{tag}",
            data=data,
            headers={"Content-Type": media_type},
        )

    async def list_tags(self, refetch: bool = False) -> List[str]:
        """
        Fetch the tags under the repository.

        Args:
            refetch: If True, the cached tag list is replaced by a fresh one.

        Returns:
            The list of image tags.
        """
        if self.tags is not None and not refetch:
            if RegistryClient.DEBUG:
                LOGGER.debug("Using cached tags for: %s", self.repository)
            return list(self.tags)

        response = await self._get_tags()
        must_be_equal(
            HTTPStatus.OK,
            response.status,
            "Invalid response from registry",
            error_type=RegistryResponseInvalid,
        )
        try:
            payload = response.json()
        except ValueError as exception:
            raise RegistryResponseInvalid(
                "Invalid response from registry: unparsable tag list"
            ) from exception
        must_be_mapping(
            payload,
            "Invalid response from registry",
            error_type=RegistryResponseInvalid,
        )
        if "tags" not in payload:
            raise RegistryResponseInvalid("Invalid response from registry: no tags")

        # Repositories without tags report null
        tags = payload["tags"] or []
        if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
            raise RegistryResponseInvalid("Invalid response from registry: bad tags")
        self.tags = tags
        return list(self.tags)

    async def get_manifest(self, tag: str, refetch: bool = False) -> Manifest:
        """
        Fetch the manifest identified by tag.

        Args:
            tag: The image tag.
            refetch: If True, the cached manifest is replaced by a fresh one.

        Returns:
            The decoded manifest.
        """
        if tag in self.manifests and not refetch:
            if RegistryClient.DEBUG:
                LOGGER.debug("Using cached manifest for: %s:%s", self.repository, tag)
            return self.manifests[tag]

        response = await self._get_manifest(tag)
        must_be_equal(
            HTTPStatus.OK,
            response.status,
            f"Invalid response from registry for manifest {tag}",
            error_type=RegistryResponseInvalid,
        )
        media_type = response.headers.get("Content-Type")
        if media_type:
            media_type = media_type.split(";")[0].strip()
        self.manifests[tag] = self.codec.decode(
            response.body, media_type=media_type, tag=tag
        )
        return self.manifests[tag]

    async def search_labels(
        self, label_key: str, label_value
    ) -> AsyncGenerator[Manifest, None]:
        """
        Lazily yields the manifests whose image carries a given label value.

        Manifests are fetched one tag at a time, as the generator is consumed. Manifests without the
        label are skipped.

        Args:
            label_key: The label key.
            label_value: The label value to match.

        Yields:
            The matching manifests, in tag order.
        """
        for tag in await self.list_tags():
            manifest = await self.get_manifest(tag)
            labels = manifest.get_labels()
            if label_key in labels and labels[label_key] == label_value:
                yield manifest

    async def retag(
        self, manifest: Mapping, new_tag: str
    ) -> RegistryClientPutManifest:
        """
        Stores a manifest under a new tag.

        Args:
            manifest: The decoded manifest.
            new_tag: The tag to be assigned.

        Returns:
            dict:
                response: The underlying transport response.
                digest: The digest reported by the registry, or None.
        """
        data = self.codec.encode(manifest)
        media_type = None
        if isinstance(manifest, Manifest):
            media_type = manifest.get_media_type()
        if not media_type or media_type == MediaTypes.APPLICATION_JSON:
            media_type = DockerMediaTypes.DISTRIBUTION_MANIFEST_V1_SIGNED

        if RegistryClient.DEBUG:
            LOGGER.debug("Tagging %s:%s (%s)", self.repository, new_tag, media_type)
        response = await self._put_manifest(new_tag, data, media_type=media_type)
        must_be_successful(
            response,
            f"Invalid response from registry for manifest {new_tag}",
            error_type=RegistryResponseInvalid,
        )

        self.manifests.pop(new_tag, None)
        if self.tags is not None and new_tag not in self.tags:
            self.tags.append(new_tag)
        return RegistryClientPutManifest(
            response=response, digest=response.headers.get("Docker-Content-Digest")
        )
