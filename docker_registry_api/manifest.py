#!/usr/bin/env python

"""
Abstraction of a decoded image manifest, as defined in:

* https://github.com/docker/distribution/blob/master/docs/spec/manifest-v2-1.md
"""

from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Dict, List, Optional

from .specs import DockerMediaTypes, MediaTypes, SchemaVersions
from .utils import get_nested


class Manifest(Mapping):
    """
    Read-only view of a decoded image manifest.

    For schema version 1 the "v1Compatibility" value of each history entry is held as a nested
    structure rather than the JSON string found on the wire.
    """

    def __init__(
        self, manifest: Dict, *, media_type: str = None, tag: Optional[str] = None
    ):
        """
        Args:
            manifest: The decoded manifest.
            media_type: The media type of the image manifest.
            tag: The tag from which the manifest was retrieved.
        """
        self.json = manifest
        self.media_type = None
        self.tag = tag
        self._set_media_type(media_type)
        if not self.media_type:
            self._detect_media_type()

    def __getitem__(self, key):
        return self.json[key]

    def __iter__(self):
        return iter(self.json)

    def __len__(self):
        return len(self.json)

    def __repr__(self):
        return f"Manifest(schema_version={self.get_schema_version()}, tag={self.tag})"

    def _detect_media_type(self):
        """
        Attempts to detect the media type of the image manifest.
        """
        schema_version = self.get_schema_version()

        # Is there a declared media type (applies to all of Docker manifest v2.2)?
        if "mediaType" in self.json:
            self._set_media_type(self.json["mediaType"])

        # Is this a signed Docker manifest v2.1?
        elif schema_version == SchemaVersions.V1 and "signatures" in self.json:
            self._set_media_type(DockerMediaTypes.DISTRIBUTION_MANIFEST_V1_SIGNED)

        elif schema_version == SchemaVersions.V1:
            self._set_media_type(DockerMediaTypes.DISTRIBUTION_MANIFEST_V1)

        # Give up
        else:
            self._set_media_type(MediaTypes.APPLICATION_JSON)

    def _set_media_type(self, media_type: str):
        self.media_type = media_type

    def get_history(self) -> List[Dict]:
        """
        Retrieves the history entries of a schema version 1 manifest.

        Returns:
            The ordered history entries, or an empty list.
        """
        return deepcopy(self.json.get("history", []))

    def get_json(self):
        """
        Retrieves the decoded manifest.

        Returns:
            A copy of the decoded manifest.
        """
        return deepcopy(self.json)

    def get_label(self, key: str, *, index: int = 0) -> Any:
        """
        Retrieves the value of a single image label.

        Args:
            key: The label key.
            index: Index of the history entry from which to read the label.

        Returns:
            The label value, or None if the label, or the path to it, does not exist.
        """
        return get_nested(
            self.json, "history", index, "v1Compatibility", "config", "Labels", key
        )

    def get_labels(self, *, index: int = 0) -> Dict[str, Any]:
        """
        Retrieves the image labels recorded in a history entry.

        Args:
            index: Index of the history entry from which to read the labels.

        Returns:
            A copy of the labels; empty if there are none.
        """
        labels = get_nested(
            self.json, "history", index, "v1Compatibility", "config", "Labels"
        )
        return dict(labels) if isinstance(labels, Mapping) else {}

    def get_media_type(self) -> str:
        """
        Retrieves the media type of the image manifest.

        Returns:
            The media type of the image manifest.
        """
        return self.media_type

    def get_schema_version(self) -> Any:
        """Retrieves the declared schema version."""
        return self.json.get("schemaVersion")

    def get_tag(self) -> Optional[str]:
        """Retrieves the tag from which the manifest was retrieved."""
        return self.tag

    def get_v1_compatibility(self, index: int = 0) -> Optional[Dict]:
        """
        Retrieves the decoded "v1Compatibility" value of a history entry.

        Args:
            index: Index of the history entry.

        Returns:
            A copy of the value, or None if the entry does not exist.
        """
        return deepcopy(get_nested(self.json, "history", index, "v1Compatibility"))
