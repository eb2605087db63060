"""TinyMT32 (RFC 8682) generator with an oracle service and state-recovery tooling."""

from .oracle.rng32 import MAT1, MAT2, TMAT, TinyMT32

__all__ = [
    "MAT1",
    "MAT2",
    "TMAT",
    "TinyMT32",
]
