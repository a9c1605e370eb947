"""
CEL/CL2 sprite and level tile formats
Decodes frame containers, palettes, transition tables, dungeon pieces and tiles
"""

from .asset_config_loader import AssetConfig, AssetRegistry, get_config, get_registry
from .cel_decoder import decode_all, decode_archive, decode_bytes, render_asset
from .dpiece import Block, DungeonPiece, MinFile, load_min, parse_min
from .frame_decoder import decode_frame
from .frame_types import FrameType
from .image_export import raster_sha1, save_frames, save_png
from .logging_config import get_logger, setup_logging
from .palette_utils import Palette, TransitionTable, load_palette, load_transition_table
from .tile import Tile, load_til, parse_til, render_tiles

__version__ = "1.0.0"
__all__ = [
    "AssetConfig",
    "AssetRegistry",
    "Block",
    "DungeonPiece",
    "FrameType",
    "MinFile",
    "Palette",
    "Tile",
    "TransitionTable",
    "decode_all",
    "decode_archive",
    "decode_bytes",
    "decode_frame",
    "get_config",
    "get_logger",
    "get_registry",
    "load_min",
    "load_palette",
    "load_til",
    "load_transition_table",
    "parse_min",
    "parse_til",
    "raster_sha1",
    "render_asset",
    "render_tiles",
    "save_frames",
    "save_png",
    "setup_logging",
]
