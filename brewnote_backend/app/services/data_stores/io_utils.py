# brewnote_backend/app/services/data_stores/io_utils.py
from __future__ import annotations

import json, os, tempfile
from pathlib import Path
from typing import Any, Optional

def atomic_write_bytes(path: Path, data: bytes) -> None:
    """
    Write-to-temp then rename, so readers never see a half-written blob.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("wb", delete=False, dir=path.parent) as tf:
        tf.write(data)
        tmp = Path(tf.name)
    try:
        os.replace(tmp, path)   # atomic where supported
    except OSError:
        tmp.unlink(missing_ok=True)
        raise

def read_bytes(path: Path) -> Optional[bytes]:
    """
    Raw blob or None if the file is missing.
    """
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None

def dumps_json(obj: Any) -> bytes:
    return json.dumps(obj, ensure_ascii=False, indent=2).encode("utf-8")

def loads_json(raw: Optional[bytes], default: Any):
    """
    Decode a JSON blob. Returns `default` for a missing or empty blob;
    raises ValueError for a corrupt one so callers can decide how loud to be.
    """
    if raw is None:
        return default
    text = raw.decode("utf-8")
    if not text.strip():
        return default
    return json.loads(text)
