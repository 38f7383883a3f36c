"""
Canonical JSON Serialization

Deterministic JSON serialization with sorted keys, used for result
records and the phase trace hash chain.
"""

import json
import hashlib
import math
from typing import Any

import numpy as np


def _jsonable(obj: Any) -> Any:
    """Map numpy values and non-finite floats onto plain JSON types."""
    if isinstance(obj, dict):
        return {str(k): _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(v) for v in obj]
    if isinstance(obj, np.ndarray):
        return _jsonable(obj.tolist())
    if isinstance(obj, np.generic):
        return _jsonable(obj.item())
    if isinstance(obj, float) and not math.isfinite(obj):
        # JSON has no inf/nan literals
        return repr(obj)
    return obj


def canonical_dumps(obj: Any, indent: int = None) -> str:
    """
    Canonical JSON serialization with sorted keys.

    Identical objects produce identical JSON strings. Arrays are written
    as lists and non-finite floats as the strings 'inf', '-inf', 'nan'.

    Args:
        obj: Object to serialize
        indent: Indentation level (None for compact)

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        _jsonable(obj),
        sort_keys=True,
        separators=(',', ':') if indent is None else None,
        indent=indent,
        default=str
    )


def canonical_hash(obj: Any) -> str:
    """Compute SHA-256 hash of canonical JSON."""
    return hashlib.sha256(canonical_dumps(obj).encode()).hexdigest()
