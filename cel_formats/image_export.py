#!/usr/bin/env python3
"""
PNG export of decoded frames, dungeon pieces and tiles
"""
from __future__ import annotations

import hashlib
from collections.abc import Sequence
from pathlib import Path

from PIL import Image

from .exceptions import AssetFileError
from .logging_config import get_logger

logger = get_logger(__name__)


def raster_sha1(image: Image.Image) -> str:
    """Upper-case hex SHA-1 of the RGBA pixel bytes, top-down row-major."""
    return hashlib.sha1(image.convert("RGBA").tobytes()).hexdigest().upper()


def save_png(image: Image.Image, path) -> Path:
    """
    Save an image as an RGBA PNG, creating parent directories.

    Raises:
        AssetFileError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        image.convert("RGBA").save(path, "PNG")
    except OSError as e:
        raise AssetFileError(f"Could not write PNG: {e}", path=str(path)) from e
    logger.debug(f"Saved {image.size[0]}x{image.size[1]} PNG to {path}")
    return path


def _save_numbered(images: Sequence[Image.Image], dst_dir, prefix: str) -> list[Path]:
    dst_dir = Path(dst_dir)
    return [save_png(img, dst_dir / f"{prefix}_{i:04d}.png") for i, img in enumerate(images, 1)]


def save_frames(images: Sequence[Image.Image], dst_dir, stem: str) -> list[Path]:
    """
    Save the frames of one image.

    A single frame is written as stem.png, several as stem_0001.png,
    stem_0002.png and so on.
    """
    if len(images) == 1:
        return [save_png(images[0], Path(dst_dir) / f"{stem}.png")]
    paths = _save_numbered(images, dst_dir, stem)
    logger.info(f"Saved {len(paths)} frames of {stem} to {dst_dir}")
    return paths


def save_archive(groups: Sequence[Sequence[Image.Image]], dst_dir, stem: str) -> list[Path]:
    """Save archive sub-images into stem_0/, stem_1/, ... sub-directories."""
    paths = []
    for k, images in enumerate(groups):
        paths.extend(save_frames(images, Path(dst_dir) / f"{stem}_{k}", stem))
    return paths


def save_dungeon_pieces(images: Sequence[Image.Image], dst_dir) -> list[Path]:
    """Save rendered dungeon pieces as dpiece_0001.png, ..."""
    paths = _save_numbered(images, dst_dir, "dpiece")
    logger.info(f"Saved {len(paths)} dungeon pieces to {dst_dir}")
    return paths


def save_tiles(images: Sequence[Image.Image], dst_dir) -> list[Path]:
    """Save rendered tiles as tile_0001.png, ..."""
    paths = _save_numbered(images, dst_dir, "tile")
    logger.info(f"Saved {len(paths)} tiles to {dst_dir}")
    return paths
