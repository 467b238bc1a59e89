import logging
import re
from pathlib import Path

from stowage.errors import PathTraversalError

logger = logging.getLogger(__name__)

_LEADING_SLASHES = re.compile(r"^[/\\]+")
_SEGMENT_SPLIT = re.compile(r"[/\\]")


def normalize_key(key: str) -> str:
    return _LEADING_SLASHES.sub("", key)


def resolve_local_path(root: str | Path, bucket: str, key: str) -> Path:
    """Map an object key to an absolute path under ``root/bucket``.

    Raises PathTraversalError for ``..`` segments, empty keys, and any key
    whose canonical path (symlinks included) leaves the bucket directory.
    """
    safe_key = normalize_key(key)
    if not safe_key:
        raise PathTraversalError("Object key is empty")
    if ".." in _SEGMENT_SPLIT.split(safe_key):
        logger.warning("Rejected key with parent segment: %r", key)
        raise PathTraversalError(f"Invalid object key: {key!r}")

    bucket_root = (Path(root) / bucket).resolve()
    resolved = (bucket_root / safe_key).resolve()
    if bucket_root not in resolved.parents:
        logger.warning("Rejected key escaping %s: %r", bucket_root, key)
        raise PathTraversalError(f"Invalid object key: {key!r}")
    return resolved
