"""Encode/decode exported history to the string form storage expects."""

from __future__ import annotations

import json
import logging
from typing import Any

import numpy as np

from undoable.core.types import ExportedHistory

logger = logging.getLogger(__name__)


def _default_serializer(obj: Any) -> Any:
    """Convert non-serializable payload values for JSON."""
    if isinstance(obj, np.ndarray):
        return {"__ndarray__": True, "data": obj.tolist(), "dtype": str(obj.dtype)}
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, (tuple, set, frozenset)):
        return list(obj)
    raise TypeError(f"Cannot serialize {type(obj)}")


def _walk_object_hook(obj: Any) -> Any:
    """Recursively reconstruct numpy arrays from deserialized dicts."""
    if isinstance(obj, dict):
        obj = {k: _walk_object_hook(v) for k, v in obj.items()}
        if obj.get("__ndarray__"):
            return np.array(obj["data"], dtype=obj["dtype"])
        return obj
    if isinstance(obj, list):
        return [_walk_object_hook(item) for item in obj]
    return obj


def encode_history(exported: ExportedHistory) -> str:
    return json.dumps(exported.to_dict(), default=_default_serializer)


def decode_history(raw: str | bytes) -> ExportedHistory:
    """Parse a stored history.  Raises ``ValueError`` on malformed input."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    data = _walk_object_hook(json.loads(raw))
    if not isinstance(data, dict):
        raise ValueError(f"Stored history must be an object, got {type(data).__name__}")
    return ExportedHistory.from_dict(data)
