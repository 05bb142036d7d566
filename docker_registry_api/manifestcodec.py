#!/usr/bin/env python

"""Schema version aware manifest decoding and encoding."""

import json
import logging

from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Callable, Dict, Optional, Union

import canonicaljson

from .exceptions import ManifestParseFailed, UnsupportedSchemaVersion
from .manifest import Manifest
from .specs import SchemaVersions
from .utils import must_be_mapping

LOGGER = logging.getLogger(__name__)


class ManifestCodec:
    """
    Converts manifests between their wire form and their decoded form.

    Only schema version 1 is implemented; schema version 2 is recognized but rejected with
    UnsupportedSchemaVersion, as is any unknown version.
    """

    def __init__(self):
        self.decoders = {
            SchemaVersions.V1: self._decode_v1,
            SchemaVersions.V2: self._decode_v2,
        }  # type: Dict[int, Callable[[Dict], Dict]]
        self.encoders = {
            SchemaVersions.V1: self._encode_v1,
            SchemaVersions.V2: self._encode_v2,
        }  # type: Dict[int, Callable[[Dict], bytes]]

    @staticmethod
    def _get_handler(schema_version, handlers: Dict[int, Callable]) -> Callable:
        # bool is an int, but never a schema version
        if (
            isinstance(schema_version, bool)
            or not isinstance(schema_version, int)
            or schema_version not in handlers
        ):
            raise UnsupportedSchemaVersion(schema_version)
        return handlers[schema_version]

    @staticmethod
    def _parse(raw: Union[bytes, str, Mapping]) -> Dict:
        """
        Parses the outer manifest document.

        Args:
            raw: The raw manifest, or an already parsed manifest.

        Returns:
            A private copy of the parsed manifest.
        """
        if isinstance(raw, Mapping):
            manifest = deepcopy(dict(raw))
        else:
            try:
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8")
                manifest = json.loads(raw)
            except (TypeError, ValueError) as exception:
                raise ManifestParseFailed(
                    f"Malformed manifest: {exception}"
                ) from exception
        must_be_mapping(manifest, "Malformed manifest", error_type=ManifestParseFailed)
        if "schemaVersion" not in manifest:
            raise ManifestParseFailed("Manifest does not declare a schema version")
        return manifest

    @staticmethod
    def _decode_v1(manifest: Dict) -> Dict:
        history = manifest.get("history", [])
        if not isinstance(history, list):
            raise ManifestParseFailed("Manifest history is not a list")
        for index, entry in enumerate(history):
            must_be_mapping(
                entry,
                f"Malformed history entry {index}",
                error_type=ManifestParseFailed,
            )
            v1_compatibility = entry.get("v1Compatibility")
            if isinstance(v1_compatibility, str):
                try:
                    entry["v1Compatibility"] = json.loads(v1_compatibility)
                except ValueError as exception:
                    raise ManifestParseFailed(
                        f"Malformed v1Compatibility in history entry {index}"
                    ) from exception
            if "v1Compatibility" in entry:
                must_be_mapping(
                    entry["v1Compatibility"],
                    f"Malformed v1Compatibility in history entry {index}",
                    error_type=ManifestParseFailed,
                )
        return manifest

    @staticmethod
    def _decode_v2(manifest: Dict) -> Dict:
        raise UnsupportedSchemaVersion(
            manifest.get("schemaVersion"), "Schema version not implemented"
        )

    @staticmethod
    def _encode_v1(manifest: Dict) -> bytes:
        for entry in manifest.get("history", []):
            v1_compatibility = entry.get("v1Compatibility")
            if isinstance(v1_compatibility, Mapping):
                entry["v1Compatibility"] = canonicaljson.encode_canonical_json(
                    v1_compatibility
                ).decode("utf-8")
        return canonicaljson.encode_canonical_json(manifest)

    @staticmethod
    def _encode_v2(manifest: Dict) -> bytes:
        raise UnsupportedSchemaVersion(
            manifest.get("schemaVersion"), "Schema version not implemented"
        )

    def decode(
        self,
        raw: Union[bytes, str, Mapping],
        schema_version: Any = None,
        *,
        media_type: str = None,
        tag: Optional[str] = None,
    ) -> Manifest:
        """
        Decodes a manifest according to its schema version.

        Args:
            raw: The raw manifest, or an already parsed manifest.
            schema_version: The schema version to decode; read from the manifest when omitted.
            media_type: The media type with which the manifest was served.
            tag: The tag from which the manifest was retrieved.

        Returns:
            The decoded manifest.
        """
        manifest = ManifestCodec._parse(raw)
        if schema_version is None:
            schema_version = manifest["schemaVersion"]
        decoder = ManifestCodec._get_handler(schema_version, self.decoders)
        LOGGER.debug("Decoding manifest with schema version: %s", schema_version)
        return Manifest(decoder(manifest), media_type=media_type, tag=tag)

    def encode(self, manifest: Mapping) -> bytes:
        """
        Encodes a decoded manifest to its canonical wire form.

        Args:
            manifest: The decoded manifest.

        Returns:
            The canonical JSON encoding of the manifest.
        """
        if isinstance(manifest, Manifest):
            manifest = manifest.get_json()
        else:
            manifest = ManifestCodec._parse(manifest)
        if "schemaVersion" not in manifest:
            raise ManifestParseFailed("Manifest does not declare a schema version")
        encoder = ManifestCodec._get_handler(manifest["schemaVersion"], self.encoders)
        return encoder(manifest)
