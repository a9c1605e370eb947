#!/usr/bin/env python3
"""
Decoding of whole CEL and CL2 files

Plain files decode to a list of frames; archives decode to one list of
frames per sub-image. Frame dimensions, header length and frame types come
from the asset metadata registry, since the files do not record them.
"""
from __future__ import annotations

import os
from collections.abc import Mapping

from PIL import Image

from .asset_config_loader import AssetConfig, AssetRegistry, get_registry
from .cel_splitter import CelImage, split_archive, split_frames
from .constants import MAX_CEL_FILE_SIZE, MIN_BLOCKS_PER_PIECE
from .dpiece import load_min
from .exceptions import CelFormatsError, ContainerKindMismatch
from .file_utils import read_binary
from .frame_decoder import decode_asset_frame
from .frame_types import FrameType
from .logging_config import get_logger
from .palette_utils import Palette, load_palette, load_transition_table

logger = get_logger(__name__)

FrameTypeOverrides = Mapping[int, FrameType | int]


def decode_image(image: CelImage, config: AssetConfig, palette: Palette,
                 frame_types: FrameTypeOverrides | None = None) -> list[Image.Image]:
    """
    Decode every frame of one split CEL image.

    Args:
        image: Raw frames of a plain file or an archive sub-image
        config: Metadata of the asset
        palette: Colours for the decoded palette indices
        frame_types: Frame index to frame type, overriding the registry
            classifier for the listed frames

    Returns:
        One RGBA image per frame
    """
    frames = []
    for i in range(image.nframes):
        payload = image.payload(i, config.header)
        # Offset of the first pixel byte, for error reporting
        offset = image.frame_offset(i) + (config.header if payload else 0)
        frame_type = frame_types.get(i) if frame_types else None
        frames.append(decode_asset_frame(config, i, payload, palette, frame_type, offset))
    return frames


def decode_bytes(data: bytes, config: AssetConfig, palette: Palette,
                 frame_types: FrameTypeOverrides | None = None) -> list[Image.Image]:
    """
    Decode the in-memory contents of a plain CEL or CL2 file.

    Raises:
        ContainerKindMismatch: If the asset is registered as an archive
        TruncatedContainer, InvalidOffsetTable: On a damaged offset table
        MalformedFrame, UnknownFrameType: On undecodable frame data
    """
    if config.is_archive:
        raise ContainerKindMismatch(
            f"{config.name} is an archive of {config.nimgs} images; decode it as an archive",
            path=config.rel_path,
        )
    frames = decode_image(split_frames(data), config, palette, frame_types)
    logger.debug(f"Decoded {len(frames)} frames of {config.name}")
    return frames


def decode_archive_bytes(data: bytes, config: AssetConfig, palette: Palette,
                         frame_types: FrameTypeOverrides | None = None
                         ) -> list[list[Image.Image]]:
    """
    Decode the in-memory contents of a CEL or CL2 archive.

    Frame indices restart at 0 in every sub-image, both for the metadata
    overrides and for frame_types.

    Raises:
        ContainerKindMismatch: If the asset is registered as a plain file
    """
    if not config.is_archive:
        raise ContainerKindMismatch(
            f"{config.name} is a plain file; decode it without the archive table",
            path=config.rel_path,
        )
    groups = [
        decode_image(image, config, palette, frame_types)
        for image in split_archive(data, config.nimgs)
    ]
    logger.debug(f"Decoded {sum(len(g) for g in groups)} frames in "
                 f"{len(groups)} sub-images of {config.name}")
    return groups


def _read_asset(path, registry: AssetRegistry | None) -> tuple[AssetConfig, bytes]:
    config = (registry or get_registry()).get(str(path))
    return config, read_binary(path, max_size=MAX_CEL_FILE_SIZE)


def decode_all(path, palette: Palette, registry: AssetRegistry | None = None,
               frame_types: FrameTypeOverrides | None = None) -> list[Image.Image]:
    """
    Decode every frame of a plain CEL or CL2 file.

    The asset is looked up in the registry by its file name.

    Args:
        path: Path to the file
        palette: Colours for the decoded palette indices
        registry: Metadata registry (default: the process-wide one)
        frame_types: Per-frame type overrides, e.g. MinFile.frame_types()

    Returns:
        One RGBA image per frame

    Raises:
        AssetUnknown: If the file name is not registered
        ContainerKindMismatch: If the asset is an archive
        CelFormatsError: Any decoding error, carrying path and file offset
    """
    try:
        config, data = _read_asset(path, registry)
        frames = decode_bytes(data, config, palette, frame_types)
    except CelFormatsError as e:
        raise e.with_path(path)
    logger.info(f"Decoded {len(frames)} frames from {path}")
    return frames


def decode_archive(path, palette: Palette, registry: AssetRegistry | None = None,
                   frame_types: FrameTypeOverrides | None = None
                   ) -> list[list[Image.Image]]:
    """
    Decode every sub-image of a CEL or CL2 archive.

    Returns:
        For each sub-image, one RGBA image per frame

    Raises:
        AssetUnknown: If the file name is not registered
        ContainerKindMismatch: If the asset is a plain file
        CelFormatsError: Any decoding error, carrying path and file offset
    """
    try:
        config, data = _read_asset(path, registry)
        groups = decode_archive_bytes(data, config, palette, frame_types)
    except CelFormatsError as e:
        raise e.with_path(path)
    logger.info(f"Decoded {len(groups)} sub-images from {path}")
    return groups


def level_frame_types(cel_path) -> dict[int, FrameType] | None:
    """Frame types of a level CEL read from the MIN file beside it (l1.cel -> l1.min)."""
    min_path = os.path.splitext(str(cel_path))[0] + ".min"
    if os.path.basename(min_path).lower() not in MIN_BLOCKS_PER_PIECE:
        return None
    if not os.path.isfile(min_path):
        logger.debug(f"No MIN file beside {cel_path}, using configured frame types")
        return None
    try:
        return load_min(min_path).frame_types()
    except CelFormatsError as e:
        raise e.with_path(min_path)


def render_asset(mpq_dir, rel_path: str, registry: AssetRegistry | None = None,
                 frame_types: FrameTypeOverrides | None = None
                 ) -> dict[tuple[str, str | None], list]:
    """
    Decode an asset with every palette and transition table it is drawn with.

    Assets without palettes fall back to the registry's default palette. When
    transition tables are configured, each is applied to each palette in turn.
    Level CELs take their frame types from the matching MIN file when one is
    present next to them.

    Args:
        mpq_dir: Directory of the extracted game archive
        rel_path: Path of the asset relative to mpq_dir
        registry: Metadata registry (default: the process-wide one)
        frame_types: Per-frame type overrides (default: read from the MIN file)

    Returns:
        Mapping of (palette path, transition path or None) to the decoded
        frames, a list of images for plain files and a list of lists for
        archives
    """
    registry = registry or get_registry()
    config = registry.get(rel_path)
    path = os.path.join(mpq_dir, rel_path)
    decode = decode_archive if config.is_archive else decode_all
    if frame_types is None and not config.is_archive:
        frame_types = level_frame_types(path)

    results = {}
    for pal_path in config.palette_paths(registry.default_palette):
        palette = load_palette(os.path.join(mpq_dir, pal_path))
        variants: list[tuple[str | None, Palette]] = [(None, palette)]
        if config.transitions:
            variants = [
                (trn_path, load_transition_table(os.path.join(mpq_dir, trn_path)).apply(palette))
                for trn_path in config.transitions
            ]
        for trn_path, variant in variants:
            results[(pal_path, trn_path)] = decode(path, variant, registry, frame_types)
    logger.info(f"Rendered {rel_path} with {len(results)} palette variants")
    return results
