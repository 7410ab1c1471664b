#!/usr/bin/env python3
"""
JSON Utilities Module

Centralized JSON reading and writing for session files, cache files and
pending listing requests, so every file on disk shares one format.
"""

import json
import os
from pathlib import Path
from typing import Any


def write_json(filepath: str | Path, data: Any, sort_keys: bool = False) -> None:
    """
    Write data to a JSON file with standard pretty-printing.

    The file is written to a temporary sibling first and moved into place,
    so readers never observe a half-written file.

    Args:
        filepath: Path to the JSON file
        data: Data to write to the file
        sort_keys: If True, sort dictionary keys (default: False)
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = filepath.with_name(f".{filepath.name}.tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=sort_keys, default=str)
    os.replace(tmp_path, filepath)


def read_json(filepath: str | Path) -> Any:
    """
    Read data from a JSON file.

    Args:
        filepath: Path to the JSON file

    Returns:
        The parsed JSON data

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    with open(filepath, encoding="utf-8") as f:
        return json.load(f)


def format_json(data: Any, sort_keys: bool = False) -> str:
    """Format data as a pretty-printed JSON string for terminal display."""
    return json.dumps(data, indent=2, ensure_ascii=False, sort_keys=sort_keys, default=str)
