#!/usr/bin/env python

# pylint: disable=redefined-outer-name

"""Manifest tests."""

import pytest

from docker_registry_api import DockerMediaTypes, Manifest, ManifestCodec, MediaTypes

from .testutils import make_v1_compatibility, make_v1_manifest, make_v2_manifest


@pytest.fixture()
def manifest() -> Manifest:
    """Provides a decoded schema version 1 manifest."""
    return ManifestCodec().decode(make_v1_manifest({"X": "b"}), tag="1.0")


def test___init__(manifest: Manifest):
    """Test that a manifest can be instantiated."""
    assert manifest.json
    assert manifest.media_type == DockerMediaTypes.DISTRIBUTION_MANIFEST_V1
    assert manifest.tag == "1.0"


def test_mapping(manifest: Manifest):
    """Test read-only mapping access."""
    assert "schemaVersion" in manifest
    assert len(manifest) == len(manifest.json)
    assert set(manifest) == set(manifest.json)
    assert manifest == manifest.json
    assert "1.0" in repr(manifest)


@pytest.mark.parametrize(
    "json,media_type",
    [
        (make_v1_manifest(), DockerMediaTypes.DISTRIBUTION_MANIFEST_V1),
        (
            {**make_v1_manifest(), "signatures": []},
            DockerMediaTypes.DISTRIBUTION_MANIFEST_V1_SIGNED,
        ),
        (make_v2_manifest(), DockerMediaTypes.DISTRIBUTION_MANIFEST_V2),
        ({"schemaVersion": 9}, MediaTypes.APPLICATION_JSON),
    ],
)
def test__detect_media_type(json, media_type: str):
    """Test that media types can be detected."""
    assert Manifest(json).get_media_type() == media_type


def test_get_json(manifest: Manifest):
    """Test that a copy of the decoded manifest is returned."""
    json = manifest.get_json()
    json["name"] = "changed"
    assert manifest["name"] == "ns/repo"


def test_get_history(manifest: Manifest):
    """Test history retrieval."""
    history = manifest.get_history()
    assert len(history) == 2
    assert history[0]["v1Compatibility"] == make_v1_compatibility({"X": "b"}, layer="a")


def test_get_labels(manifest: Manifest):
    """Test label retrieval."""
    assert manifest.get_labels() == {"X": "b"}
    assert manifest.get_labels(index=1) == {}
    assert manifest.get_labels(index=5) == {}
    assert manifest.get_label("X") == "b"
    assert manifest.get_label("Y") is None


def test_get_labels_missing_path():
    """Test that missing intermediate keys are tolerated."""
    for json in [
        {"schemaVersion": 1},
        {"schemaVersion": 1, "history": []},
        {"schemaVersion": 1, "history": [{}]},
        {"schemaVersion": 1, "history": [{"v1Compatibility": {}}]},
        {"schemaVersion": 1, "history": [{"v1Compatibility": {"config": None}}]},
    ]:
        manifest = Manifest(json)
        assert manifest.get_labels() == {}
        assert manifest.get_label("X") is None


def test_get_schema_version(manifest: Manifest):
    """Test schema version retrieval."""
    assert manifest.get_schema_version() == 1


def test_get_v1_compatibility(manifest: Manifest):
    """Test v1Compatibility retrieval."""
    assert manifest.get_v1_compatibility()["id"] == "a" * 64
    assert manifest.get_v1_compatibility(1)["id"] == "b" * 64
    assert manifest.get_v1_compatibility(2) is None
