"""
Core Module - Foundational Components

Provides:
- Canonical JSON serialization
- Result record and termination statuses
- Output gate (enforces the result invariants)
"""

from .canonical_json import canonical_dumps, canonical_hash
from .output_gate import (
    TerminationStatus,
    SIPResult,
    OutputGate,
)

__all__ = [
    'canonical_dumps',
    'canonical_hash',
    'TerminationStatus',
    'SIPResult',
    'OutputGate',
]
