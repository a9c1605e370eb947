"""
Shared pytest fixtures for cel_formats tests
"""

import os
import tempfile
from pathlib import Path

import pytest

from cel_formats.asset_config_loader import AssetRegistry
from cel_formats.constants import DEFAULT_MPQ_DIR
from cel_formats.palette_utils import Palette

MPQ_DIR_ENV_VAR = "CEL_FORMATS_MPQ_DIR"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def palette_bytes():
    """768 bytes of RGB triples, distinct for every index"""
    data = bytearray()
    for i in range(256):
        data.extend((i, 255 - i, (i * 7) % 256))
    return bytes(data)


@pytest.fixture
def palette(palette_bytes):
    return Palette.from_rgb_bytes(palette_bytes)


@pytest.fixture
def palette_file(temp_dir, palette_bytes):
    path = temp_dir / "test.pal"
    path.write_bytes(palette_bytes)
    return path


@pytest.fixture
def test_registry():
    """Small in-memory registry covering every container and frame kind"""
    return AssetRegistry.from_dict({
        "assets": {
            "data/sprite.cel": {"width": 4, "height": 2},
            "data/headed.cel": {"width": 4, "height": 2, "header": 10},
            "data/mixed.cel": {
                "width": 4,
                "height": 2,
                "frame_widths": {"1": 2},
                "frame_heights": {"1": 1},
            },
            "levels/l9data/l9.cel": {
                "width": 32,
                "height": 32,
                "frame_types": {"default": 0},
            },
            "monsters/test/testa.cl2": {
                "width": 4,
                "height": 2,
                "header": 10,
                "nimgs": 8,
                "frame_types": {"default": 6},
            },
        }
    })


@pytest.fixture
def mpq_dir():
    """Extracted game data directory; skips the test when absent"""
    path = Path(os.environ.get(MPQ_DIR_ENV_VAR, DEFAULT_MPQ_DIR))
    if not path.is_dir():
        pytest.skip(f"game data directory {path} not available")
    return path
