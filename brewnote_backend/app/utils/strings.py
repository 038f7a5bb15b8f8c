# brewnote_backend/app/utils/strings.py

import re
from unicodedata import normalize

# What it does:
# Strip whitespace or convert falsy/nulls to None
def null_to_none_or_strip(x) -> str | None:
    if not x:
        return None
    return str(x).strip() or None

def key_to_filename(key: str, fallback: str = "blob") -> str:
    """
    Map a store key to a portable file stem:
    - normalizes unicode
    - keeps only [A-Za-z0-9._-]
    - collapses repeats and trims leading/trailing dots/underscores
    """
    if not key:
        return fallback
    key = normalize("NFKD", key)
    key = re.sub(r"[^A-Za-z0-9._-]+", "_", key)
    key = re.sub(r"_+", "_", key).strip("._")
    return key or fallback
