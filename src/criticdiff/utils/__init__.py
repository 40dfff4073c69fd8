from .hashing import hash_dict, md5_hash

__all__ = [
    "md5_hash",
    "hash_dict",
]
