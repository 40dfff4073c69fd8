"""MD5 helpers for node fingerprints.

These lightweight hashes let the differencer compare serialized subtrees
in constant time once they have been fingerprinted.  They are **not** used
for security purposes.
"""

from __future__ import annotations

import hashlib
import json


def md5_hash(data: str) -> str:
    """Return the hex-encoded MD5 digest of *data*.

    The string is encoded as UTF-8 before hashing.

    Parameters
    ----------
    data:
        Arbitrary string to hash.

    Returns
    -------
    str
        A 32-character lowercase hexadecimal string.

    Examples
    --------
    >>> md5_hash("hello")
    '5d41402abc4b2a76b9719d911017c592'
    """
    return hashlib.md5(data.encode("utf-8")).hexdigest()


def hash_dict(d: dict) -> str:
    """Return the hex-encoded MD5 of a JSON-serialized dict.

    Keys are sorted so that attribute dicts built in a different order
    hash identically.

    Examples
    --------
    >>> hash_dict({"b": 2, "a": 1}) == hash_dict({"a": 1, "b": 2})
    True
    """
    return md5_hash(json.dumps(d, sort_keys=True, ensure_ascii=False, default=str))
