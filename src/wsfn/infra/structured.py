# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Read and write structured text files (TOML, JSON, YAML).

The format is picked from the file extension. Anything else is a
FormatError, as is content that does not decode to a mapping.
"""

from __future__ import annotations

import json
import os
import tempfile
import tomllib
from pathlib import Path
from typing import Any, Dict, Union

import tomli_w
import yaml

from wsfn.errors import FormatError

PathLike = Union[str, os.PathLike]

FORMATS = {
    ".toml": "toml",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


def detect_format(path: PathLike) -> str:
    """Return "toml", "json" or "yaml" for path, or raise FormatError."""
    suffix = Path(path).suffix.lower()
    fmt = FORMATS.get(suffix)
    if fmt is None:
        raise FormatError(f"{str(path)!r}, unsupported format")
    return fmt


def decode(src: str, fmt: str, *, source: str = "<string>") -> Dict[str, Any]:
    try:
        if fmt == "toml":
            data = tomllib.loads(src)
        elif fmt == "json":
            data = json.loads(src) if src.strip() else {}
        elif fmt == "yaml":
            data = yaml.safe_load(src) or {}
        else:
            raise FormatError(f"{source!r}, unsupported format {fmt!r}")
    except (tomllib.TOMLDecodeError, json.JSONDecodeError, yaml.YAMLError) as err:
        raise FormatError(f"{source!r}, {err}") from err
    if not isinstance(data, dict):
        raise FormatError(f"{source!r}, expected a mapping at the top level")
    return data


def encode(data: Dict[str, Any], fmt: str) -> str:
    if fmt == "toml":
        return tomli_w.dumps(_drop_none(data))
    if fmt == "json":
        return json.dumps(data, indent=4) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    raise FormatError(f"unsupported format {fmt!r}")


def load_structured(path: PathLike) -> Dict[str, Any]:
    """Load a mapping from path.

    A missing file raises FileNotFoundError, bad content FormatError.
    """
    fmt = detect_format(path)
    src = Path(path).read_text(encoding="utf-8")
    return decode(src, fmt, source=str(path))


def dump_structured(path: PathLike, data: Dict[str, Any], *, mode: int = 0o600) -> None:
    """Write data to path atomically with the given permission bits."""
    fmt = detect_format(path)
    text = encode(data, fmt)
    write_private(path, text, mode=mode)


def write_private(path: PathLike, text: str, *, mode: int = 0o600) -> None:
    target = Path(path)
    directory = target.parent
    # mkstemp creates the file 0600, so secrets are never briefly world readable
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=str(directory))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            fp.write(text)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def _drop_none(value: Any) -> Any:
    # TOML has no null
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_none(v) for v in value if v is not None]
    return value
