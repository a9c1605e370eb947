#!/usr/bin/env python3
"""
File utilities for safe reading of game asset files
"""

import pathlib

from .exceptions import AssetFileError


def _check_path_format(file_path_str):
    """Reject URI schemes; asset paths are always local files"""
    if any(file_path_str.startswith(scheme) for scheme in ["file:", "http:", "https:", "ftp:", "sftp:"]):
        raise AssetFileError("URI schemes not allowed", path=file_path_str)


def validate_file_path(file_path, max_size=64 * 1024 * 1024):
    """
    Validate an input file path

    Args:
        file_path: Path to validate
        max_size: Maximum allowed file size in bytes (default 64MB)

    Returns:
        Resolved path

    Raises:
        AssetFileError: If the path is missing, not a file, or too large
    """
    file_path_str = str(file_path)
    _check_path_format(file_path_str)

    try:
        path = pathlib.Path(file_path).resolve()
    except (ValueError, RuntimeError) as e:
        raise AssetFileError(f"Invalid path: {e}", path=file_path_str) from e

    if not path.exists():
        raise AssetFileError("File does not exist", path=file_path_str)
    if not path.is_file():
        raise AssetFileError("Path is not a file", path=file_path_str)

    file_size = path.stat().st_size
    if file_size > max_size:
        raise AssetFileError(
            f"File too large: {file_size} bytes (max {max_size})",
            path=file_path_str,
        )

    return path


def read_binary(file_path, max_size=64 * 1024 * 1024) -> bytes:
    """Validate and read the whole contents of a binary asset file"""
    path = validate_file_path(file_path, max_size=max_size)
    try:
        return path.read_bytes()
    except OSError as e:
        raise AssetFileError(f"Could not read file: {e}", path=str(file_path)) from e
