"""
Fast JSON IO helpers built on orjson.
- read_json(Path)  -> Any | None (None when the file is missing)
- write_json(Path, data) -> binary write through a temp file + rename

Notes:
- orjson returns/expects bytes; files are opened in binary mode.
- write_json replaces the target atomically so a concurrent reader sees
  either the previous document or the new one, never a partial file.
"""
import os
import orjson as json
from pathlib import Path
from typing import Any


def read_json(path: Path) -> Any:
    """Read a JSON file (or None if it does not exist)."""
    if not path.exists():
        return None
    with path.open("rb") as f:
        return json.loads(f.read())


def write_json(path: Path, data: Any) -> None:
    """Write a JSON file (parent folder created when missing)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with tmp_path.open("wb") as f:
        f.write(json.dumps(data, option=json.OPT_INDENT_2))
    os.replace(tmp_path, path)
