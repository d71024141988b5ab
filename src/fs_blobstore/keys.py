"""Blob key validation and file naming.

Keys map verbatim onto a single file name inside the store directory, so the
only safety rules are the host platform's file name rules plus a ban on the
``.`` and ``..`` directory entries.
"""

import os
import uuid
from functools import lru_cache
from pathlib import PurePath
from typing import FrozenSet

from .errors import InvalidKeyError

# Names that resolve to a directory rather than a file
RESERVED_NAMES = frozenset({".", ".."})


@lru_cache(maxsize=None)
def invalid_filename_chars(platform: str = os.name) -> FrozenSet[str]:
    """
    Characters that may not appear in a file name on the given platform.

    Args:
        platform: ``os.name`` value (``"posix"`` or ``"nt"``)

    Returns:
        Frozen set of forbidden characters
    """
    if platform == "nt":
        control = {chr(i) for i in range(32)}
        return frozenset(control | set('"<>|:*?\\/'))
    return frozenset({"\0", "/"})


def validate_key(key, platform: str = os.name) -> str:
    """
    Validate a blob key.

    Args:
        key: Candidate key
        platform: ``os.name`` value selecting the forbidden character set

    Returns:
        The key, unchanged

    Raises:
        InvalidKeyError: If the key is missing, empty, reserved or contains
            characters that are invalid in a file name
    """
    if key is None or not isinstance(key, str):
        raise InvalidKeyError(key, "key must be a non-empty string")
    if not key:
        raise InvalidKeyError(key, "key must not be empty")
    if key in RESERVED_NAMES:
        raise InvalidKeyError(key, "key is a reserved directory name")

    bad = invalid_filename_chars(platform).intersection(key)
    if bad:
        shown = ", ".join(sorted(repr(c) for c in bad))
        raise InvalidKeyError(key, f"contains invalid file name characters: {shown}")
    return key


def temp_name_for(name: str) -> str:
    """
    Build a unique temp file name next to ``name``.

    ``data.bin`` becomes ``data.<32 hex>.bin``; a name without an extension
    just gains the ``.<32 hex>`` token.
    """
    p = PurePath(name)
    return f"{p.stem}.{uuid.uuid4().hex}{p.suffix}"
