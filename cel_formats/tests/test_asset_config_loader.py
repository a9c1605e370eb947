#!/usr/bin/env python3
"""
Tests for asset_config_loader.py
Registry loading, short-name lookup, frame sizes and frame type classifiers
"""

import json
from pathlib import Path

import pytest

from cel_formats.asset_config_loader import (
    METADATA_ENV_VAR,
    AssetRegistry,
    FrameClassifier,
    FrameTypeRule,
    get_config,
    get_registry,
    parse_asset_config,
)
from cel_formats.constants import DEFAULT_PALETTE
from cel_formats.exceptions import AssetUnknown, MetadataError, UnknownFrameType
from cel_formats.frame_types import FrameType

PIXEL_COUNTS_PATH = Path(__file__).parent / "data" / "pixel_counts.json"


@pytest.fixture(scope="module")
def registry():
    return AssetRegistry()


@pytest.fixture(scope="module")
def pixel_counts():
    with PIXEL_COUNTS_PATH.open() as f:
        return json.load(f)


@pytest.mark.unit
class TestBundledRegistry:
    """Test the bundled asset metadata"""

    def test_loads_all_assets(self, registry):
        """Every bundled entry is parsed"""
        assert len(registry) == 290
        assert "objcurs.cel" in registry
        assert registry.default_palette == DEFAULT_PALETTE

    def test_lookup_by_short_name_and_path(self, registry):
        """Short names, relative paths and full paths resolve to the same entry"""
        by_name = registry.get("golddrop.cel")
        assert by_name.rel_path == "ctrlpan/golddrop.cel"
        assert registry.get("ctrlpan/golddrop.cel") is by_name
        assert registry.get("diabdat/ctrlpan/golddrop.cel") is by_name
        assert registry.rel_path("golddrop.cel") == "ctrlpan/golddrop.cel"
        assert registry.rel_paths["p8bulbs.cel"] == "ctrlpan/p8bulbs.cel"

    def test_backslash_paths(self, registry):
        """Windows-style archive paths resolve like forward-slash ones"""
        assert "data\\inv\\objcurs.cel" in registry
        assert registry.get("ctrlpan\\golddrop.cel").rel_path == "ctrlpan/golddrop.cel"
        assert "data\\inv\\nosuch.cel" not in registry

    def test_unknown_asset(self, registry):
        """Unregistered names raise AssetUnknown"""
        with pytest.raises(AssetUnknown):
            registry.get("nosuch.cel")
        assert "nosuch.cel" not in registry

    def test_golddrop_dimensions(self, registry):
        """golddrop.cel frames are 261x136 with no header"""
        config = registry.get("golddrop.cel")
        assert config.frame_size(0) == (261, 136)
        assert config.header == 0
        assert not config.is_archive
        assert config.classify_frame(0) == FrameType.SPRITE

    def test_objcurs_overrides(self, registry):
        """Per-frame overrides apply to their frames only"""
        config = registry.get("objcurs.cel")
        assert config.header == 10
        assert config.frame_size(0) == (33, 29)
        assert config.frame_size(5) == (32, 32)
        assert config.frame_size(10) == (23, 35)
        assert config.frame_size(61) == (28, 56)
        assert config.frame_size(86) == (56, 56)
        assert config.frame_size(150) == (56, 84)

    def test_square_header(self, registry):
        """square.cel is 64x128 with a 10-byte frame header"""
        config = registry.get("square.cel")
        assert config.frame_size(0) == (64, 128)
        assert config.header == 10

    def test_level_cel(self, registry):
        """Level CELs are 32x32 plain frames drawn with their level palette"""
        config = registry.get("l1.cel")
        assert config.frame_size(0) == (32, 32)
        assert config.classify_frame(0) == FrameType.PLAIN
        assert config.palette_paths() == ("levels/l1data/l1.pal",)

    def test_cl2_archive(self, registry):
        """CL2 monster graphics are 8-image archives of type 6 frames"""
        config = registry.get("zombiea.cl2")
        assert config.is_archive
        assert config.nimgs == 8
        assert config.header == 10
        assert config.classify_frame(3) == FrameType.RLE_SPRITE
        assert config.transitions == ("monsters/zombie/bluered.trn",)

    def test_default_palette_fallback(self, registry):
        """Assets without palettes render with the town palette"""
        assert registry.get("golddrop.cel").palette_paths() == (DEFAULT_PALETTE,)

    def test_pixel_counts_cover_registry(self, registry, pixel_counts):
        """Every registered asset has golden pixel counts and vice versa"""
        assert set(pixel_counts) == {config.rel_path for config in registry}

    def test_pixel_counts_match_dimensions(self, registry, pixel_counts):
        """width * height of every listed and overridden frame equals its pixel count"""
        mismatches = []
        for config in registry:
            counts = pixel_counts[config.rel_path]
            frames = set(range(len(counts))) | set(config.frame_widths) | set(config.frame_heights)
            for frame_index in sorted(frames):
                width, height = config.frame_size(frame_index)
                if frame_index >= len(counts) or width * height != counts[frame_index]:
                    mismatches.append((config.rel_path, frame_index))
        assert mismatches == []


@pytest.mark.unit
class TestFrameClassifier:
    """Test range-based frame type selection"""

    def test_default_only(self):
        """Without ranges every frame gets the default"""
        classifier = FrameClassifier(FrameType.PLAIN)
        assert classifier.classify(0) == FrameType.PLAIN
        assert classifier.classify(1000) == FrameType.PLAIN

    def test_ranges_are_half_open(self):
        """Ranges cover [start, stop)"""
        classifier = FrameClassifier(
            FrameType.SPRITE,
            (
                FrameTypeRule(10, 20, FrameType.TRIANGLE_LEFT),
                FrameTypeRule(2, 5, FrameType.PLAIN),
            ),
        )
        assert classifier.classify(1) == FrameType.SPRITE
        assert classifier.classify(2) == FrameType.PLAIN
        assert classifier.classify(4) == FrameType.PLAIN
        assert classifier.classify(5) == FrameType.SPRITE
        assert classifier.classify(10) == FrameType.TRIANGLE_LEFT
        assert classifier.classify(19) == FrameType.TRIANGLE_LEFT
        assert classifier.classify(20) == FrameType.SPRITE

    def test_overlapping_ranges_rejected(self):
        """Overlapping ranges are a metadata error"""
        with pytest.raises(MetadataError):
            FrameClassifier(
                FrameType.SPRITE,
                (FrameTypeRule(0, 5, FrameType.PLAIN), FrameTypeRule(4, 8, FrameType.PLAIN)),
            )

    def test_empty_range_rejected(self):
        """A range must contain at least one frame"""
        with pytest.raises(MetadataError):
            FrameClassifier(FrameType.SPRITE, (FrameTypeRule(3, 3, FrameType.PLAIN),))

    def test_parsed_from_json(self):
        """frame_types objects parse into a classifier"""
        config = parse_asset_config("levels/test/test.cel", {
            "width": 32,
            "height": 32,
            "frame_types": {"default": 0, "ranges": [[4, 6, 2], [6, 8, 5]]},
        })
        assert config.classify_frame(0) == FrameType.PLAIN
        assert config.classify_frame(5) == FrameType.TRIANGLE_LEFT
        assert config.classify_frame(7) == FrameType.TRAPEZOID_RIGHT

    def test_unknown_code_in_json(self):
        """Codes outside 0-6 are rejected while loading"""
        with pytest.raises(UnknownFrameType):
            parse_asset_config("x.cel", {"width": 1, "height": 1, "frame_types": {"default": 7}})


@pytest.mark.unit
class TestParseAssetConfig:
    """Test parsing of single registry entries"""

    def test_frame_key_ranges(self):
        """Keys like "1-3" expand to inclusive frame ranges"""
        config = parse_asset_config("x.cel", {
            "width": 10,
            "height": 20,
            "frame_widths": {"0": 5, "1-3": 6},
        })
        assert config.frame_size(0) == (5, 20)
        assert config.frame_size(3) == (6, 20)
        assert config.frame_size(4) == (10, 20)

    @pytest.mark.parametrize("entry", [
        {"width": 1, "height": 1, "nimgs": 9},
        {"width": 1, "height": 1, "nimgs": -1},
        {"width": 1, "height": 1, "header": -2},
        {"width": 1, "height": 1, "frame_widths": {"a": 1}},
        {"width": 1, "height": 1, "frame_widths": {"5-2": 1}},
    ])
    def test_invalid_entries(self, entry):
        """Out-of-range counts and bad frame keys are rejected"""
        with pytest.raises(MetadataError):
            parse_asset_config("x.cel", entry)

    def test_missing_dimensions(self):
        """Entries without width or height are rejected by the registry"""
        with pytest.raises(MetadataError):
            AssetRegistry.from_dict({"assets": {"x.cel": {"width": 1}}})

    def test_duplicate_short_names(self):
        """Two paths with the same file name cannot be told apart"""
        with pytest.raises(MetadataError):
            AssetRegistry.from_dict({"assets": {
                "a/x.cel": {"width": 1, "height": 1},
                "b/x.cel": {"width": 1, "height": 1},
            }})


@pytest.mark.unit
class TestRegistryFiles:
    """Test loading registries from files and the environment"""

    def test_custom_file(self, temp_dir):
        """An explicit config path is honoured"""
        path = temp_dir / "meta.json"
        path.write_text(json.dumps({"assets": {"gfx/one.cel": {"width": 2, "height": 3}}}))
        registry = AssetRegistry(str(path))
        assert registry.names() == ["one.cel"]
        assert registry.get("one.cel").frame_size(0) == (2, 3)

    def test_invalid_json(self, temp_dir):
        """Unparseable files raise MetadataError"""
        path = temp_dir / "meta.json"
        path.write_text("{not json")
        with pytest.raises(MetadataError):
            AssetRegistry(str(path))

    def test_missing_file(self, temp_dir):
        """A missing metadata file raises MetadataError"""
        with pytest.raises(MetadataError):
            AssetRegistry(str(temp_dir / "missing.json"))

    def test_environment_override(self, temp_dir, monkeypatch):
        """CEL_FORMATS_METADATA selects the process-wide registry file"""
        path = temp_dir / "meta.json"
        path.write_text(json.dumps({"assets": {"gfx/env.cel": {"width": 1, "height": 1}}}))
        monkeypatch.setenv(METADATA_ENV_VAR, str(path))
        assert "env.cel" in get_registry()
        monkeypatch.delenv(METADATA_ENV_VAR)
        assert "env.cel" not in get_registry()
        assert "objcurs.cel" in get_registry()

    def test_get_config_shortcut(self, monkeypatch):
        """get_config looks up the process-wide registry"""
        monkeypatch.delenv(METADATA_ENV_VAR, raising=False)
        assert get_config("data/inv/objcurs.cel").header == 10
