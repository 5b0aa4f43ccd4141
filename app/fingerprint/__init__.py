"""Device fingerprinting - signal collection and hashing."""

from app.fingerprint.environment import DeviceEnvironment, Navigator, Screen, host_environment
from app.fingerprint.hasher import (
    FingerprintHasher,
    HashAlgorithm,
    canonicalize,
    generate_fingerprint,
    is_fingerprinting_supported,
    rolling_hash,
    sha256_hex,
)
from app.fingerprint.signals import (
    MINIMAL_SIGNALS,
    SIGNAL_DEFAULTS,
    SignalSet,
    collect_minimal_signals,
    collect_signals,
)

__all__ = [
    # Environment
    "DeviceEnvironment",
    "Navigator",
    "Screen",
    "host_environment",
    # Signals
    "SignalSet",
    "SIGNAL_DEFAULTS",
    "MINIMAL_SIGNALS",
    "collect_signals",
    "collect_minimal_signals",
    # Hashing
    "HashAlgorithm",
    "FingerprintHasher",
    "canonicalize",
    "sha256_hex",
    "rolling_hash",
    "generate_fingerprint",
    "is_fingerprinting_supported",
]
