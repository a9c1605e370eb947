"""
Asset metadata registry for cel_formats
Loads frame dimensions, header sizes, palettes and frame type classifiers
from an external configuration file
"""
from __future__ import annotations

import json
import os
import posixpath
from bisect import bisect_right
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from .constants import DEFAULT_PALETTE, MAX_ARCHIVE_IMAGES
from .exceptions import AssetUnknown, MetadataError, UnknownFrameType
from .frame_types import FrameType
from .logging_config import get_logger

logger = get_logger(__name__)

METADATA_ENV_VAR = "CEL_FORMATS_METADATA"


@dataclass(frozen=True)
class FrameTypeRule:
    """Frames in [start, stop) use frame_type."""

    start: int
    stop: int
    frame_type: FrameType


@dataclass(frozen=True)
class FrameClassifier:
    """
    Per-frame type selection: a default code plus sorted, non-overlapping
    range overrides looked up by binary search.
    """

    default: FrameType = FrameType.SPRITE
    rules: tuple[FrameTypeRule, ...] = ()
    _starts: tuple[int, ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        rules = tuple(sorted(self.rules, key=lambda r: r.start))
        prev_stop = None
        for rule in rules:
            if rule.start < 0 or rule.stop <= rule.start:
                raise MetadataError(f"invalid frame range [{rule.start}, {rule.stop})")
            if prev_stop is not None and rule.start < prev_stop:
                raise MetadataError(f"overlapping frame range starting at {rule.start}")
            prev_stop = rule.stop
        object.__setattr__(self, "rules", rules)
        object.__setattr__(self, "_starts", tuple(r.start for r in rules))

    def classify(self, frame_index: int) -> FrameType:
        i = bisect_right(self._starts, frame_index) - 1
        if i >= 0:
            rule = self.rules[i]
            if frame_index < rule.stop:
                return rule.frame_type
        return self.default


@dataclass(frozen=True)
class AssetConfig:
    """Decoding metadata for a single CEL or CL2 asset"""

    rel_path: str
    width: int
    height: int
    header: int = 0
    nimgs: int = 0
    frame_widths: Mapping[int, int] = field(default_factory=dict)
    frame_heights: Mapping[int, int] = field(default_factory=dict)
    palettes: tuple[str, ...] = ()
    transitions: tuple[str, ...] = ()
    classifier: FrameClassifier = field(default_factory=FrameClassifier)

    def __post_init__(self) -> None:
        object.__setattr__(self, "frame_widths", MappingProxyType(dict(self.frame_widths)))
        object.__setattr__(self, "frame_heights", MappingProxyType(dict(self.frame_heights)))
        object.__setattr__(self, "palettes", tuple(self.palettes))
        object.__setattr__(self, "transitions", tuple(self.transitions))

    @property
    def name(self) -> str:
        """Short file name, e.g. objcurs.cel"""
        return posixpath.basename(self.rel_path)

    @property
    def is_archive(self) -> bool:
        return self.nimgs > 0

    def frame_size(self, frame_index: int) -> tuple[int, int]:
        """Effective (width, height) of a frame, honouring overrides."""
        return (
            self.frame_widths.get(frame_index, self.width),
            self.frame_heights.get(frame_index, self.height),
        )

    def classify_frame(self, frame_index: int) -> FrameType:
        return self.classifier.classify(frame_index)

    def palette_paths(self, default: str = DEFAULT_PALETTE) -> tuple[str, ...]:
        """Palettes to render with; the level default when none are listed."""
        return self.palettes or (default,)


def _parse_frame_keys(raw: Mapping[str, Any], what: str, asset: str) -> dict[int, int]:
    """Expand {"0": 33, "1-9": 32} into a frame index mapping."""
    result = {}
    for key, value in raw.items():
        try:
            if "-" in key:
                first, last = (int(part) for part in key.split("-", 1))
            else:
                first = last = int(key)
        except ValueError:
            raise MetadataError(f"{asset}: invalid {what} key {key!r}") from None
        if last < first:
            raise MetadataError(f"{asset}: empty {what} range {key!r}")
        for frame_index in range(first, last + 1):
            result[frame_index] = int(value)
    return result


def _parse_classifier(raw: Mapping[str, Any] | None, asset: str) -> FrameClassifier:
    if raw is None:
        return FrameClassifier()
    try:
        default = FrameType.from_code(raw.get("default", FrameType.SPRITE))
        rules = tuple(
            FrameTypeRule(int(start), int(stop), FrameType.from_code(code))
            for start, stop, code in raw.get("ranges", [])
        )
    except UnknownFrameType as e:
        raise e.with_path(asset)
    except (TypeError, ValueError) as e:
        raise MetadataError(f"{asset}: invalid frame_types: {e}") from e
    return FrameClassifier(default, rules)


def parse_asset_config(rel_path: str, data: Mapping[str, Any]) -> AssetConfig:
    """Build an AssetConfig from one JSON registry entry"""
    nimgs = int(data.get("nimgs", 0))
    if nimgs < 0 or nimgs > MAX_ARCHIVE_IMAGES:
        raise MetadataError(f"{rel_path}: nimgs must be 0-{MAX_ARCHIVE_IMAGES}, got {nimgs}")
    header = int(data.get("header", 0))
    if header < 0:
        raise MetadataError(f"{rel_path}: negative header length {header}")
    return AssetConfig(
        rel_path=rel_path,
        width=int(data["width"]),
        height=int(data["height"]),
        header=header,
        nimgs=nimgs,
        frame_widths=_parse_frame_keys(data.get("frame_widths", {}), "frame_widths", rel_path),
        frame_heights=_parse_frame_keys(data.get("frame_heights", {}), "frame_heights", rel_path),
        palettes=tuple(data.get("palettes", ())),
        transitions=tuple(data.get("transitions", ())),
        classifier=_parse_classifier(data.get("frame_types"), rel_path),
    )


def _short_name(name) -> str:
    return posixpath.basename(str(name).replace("\\", "/"))


class AssetRegistry:
    """Loads and serves asset metadata, keyed by short name or relative path"""

    DEFAULT_CONFIG_PATH: str = str(
        Path(__file__).parent / "config" / "asset_metadata.json"
    )

    def __init__(self, config_path: str | None = None) -> None:
        """
        Initialize the registry.

        Args:
            config_path: Path to metadata file (uses default if None)
        """
        self.config_path: str = config_path or self.DEFAULT_CONFIG_PATH
        self.default_palette: str = DEFAULT_PALETTE
        self._configs: dict[str, AssetConfig] = {}
        self._rel_paths: dict[str, str] = {}
        self.load_config()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AssetRegistry:
        """Build a registry from already-parsed metadata (no file access)."""
        registry = cls.__new__(cls)
        registry.config_path = "<memory>"
        registry.default_palette = DEFAULT_PALETTE
        registry._configs = {}
        registry._rel_paths = {}
        registry._load_data(data)
        return registry

    def load_config(self) -> None:
        """Load asset metadata from the JSON file"""
        config_path_obj = Path(self.config_path)
        try:
            with config_path_obj.open() as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.exception("Failed to load asset metadata")
            raise MetadataError(f"could not load asset metadata: {e}",
                                path=self.config_path) from e
        self._load_data(data)
        logger.info(f"Loaded {len(self._configs)} asset configurations from {self.config_path}")

    def _load_data(self, data: Mapping[str, Any]) -> None:
        self.default_palette = data.get("default_palette", DEFAULT_PALETTE)
        for rel_path, entry in data.get("assets", {}).items():
            # Skip metadata entries like "_note"
            if rel_path.startswith("_"):
                continue
            try:
                config = parse_asset_config(rel_path, entry)
            except KeyError as e:
                raise MetadataError(f"{rel_path}: missing field {e}",
                                    path=self.config_path) from e
            name = config.name
            if name in self._rel_paths:
                raise MetadataError(
                    f"duplicate short name {name!r} for {rel_path} and {self._rel_paths[name]}",
                    path=self.config_path,
                )
            self._configs[name] = config
            self._rel_paths[name] = rel_path

    def get(self, name: str) -> AssetConfig:
        """
        Look up the metadata of an asset.

        Args:
            name: Short name ("objcurs.cel"), relative or absolute path

        Raises:
            AssetUnknown: If the asset is not registered
        """
        short = _short_name(name)
        try:
            return self._configs[short]
        except KeyError:
            raise AssetUnknown(f"no metadata for asset {short!r}", path=str(name)) from None

    def rel_path(self, name: str) -> str:
        """Archive-relative path of an asset, e.g. data/inv/objcurs.cel"""
        return self.get(name).rel_path

    @property
    def rel_paths(self) -> Mapping[str, str]:
        """Short name to archive-relative path."""
        return MappingProxyType(self._rel_paths)

    def names(self) -> list[str]:
        return sorted(self._configs)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _short_name(name) in self._configs

    def __iter__(self) -> Iterator[AssetConfig]:
        for name in self.names():
            yield self._configs[name]

    def __len__(self) -> int:
        return len(self._configs)


@lru_cache(maxsize=1)
def _load_default_registry(config_path: str | None) -> AssetRegistry:
    return AssetRegistry(config_path)


def get_registry() -> AssetRegistry:
    """Process-wide registry, honouring the CEL_FORMATS_METADATA override"""
    return _load_default_registry(os.environ.get(METADATA_ENV_VAR) or None)


def get_config(name: str) -> AssetConfig:
    """Shortcut for get_registry().get(name)"""
    return get_registry().get(name)
