"""Fingerprint hasher - canonical serialization and digest of a Signal Set."""

import hashlib
import json
from enum import StrEnum
from typing import Any

from loguru import logger

from app.fingerprint.environment import DeviceEnvironment
from app.fingerprint.signals import SignalSet, collect_minimal_signals, collect_signals

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class HashAlgorithm(StrEnum):
    SHA256 = "sha256"
    ROLLING = "rolling"


def _normalize(value: Any) -> Any:
    # 8.0 and 8 must serialize identically
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def canonicalize(signals: SignalSet) -> str:
    """Compact JSON with keys sorted ascending."""
    return json.dumps(
        {k: _normalize(v) for k, v in signals.items()},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, r = divmod(n, 36)
        digits.append(_BASE36[r])
    return "".join(reversed(digits))


def rolling_hash(text: str) -> str:
    """32-bit polynomial hash (h = h*31 + c) over UTF-16 code units, abs value in base 36."""
    h = 0
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        h = (h * 31 + int.from_bytes(data[i : i + 2], "little")) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return _to_base36(abs(h))


def is_fingerprinting_supported() -> bool:
    """Whether the cryptographic digest is available."""
    return "sha256" in hashlib.algorithms_available


class FingerprintHasher:
    """Digests Signal Sets with one algorithm, fixed for the hasher's lifetime."""

    def __init__(self, algorithm: HashAlgorithm | str = HashAlgorithm.SHA256):
        algorithm = HashAlgorithm(algorithm)
        if algorithm is HashAlgorithm.SHA256 and not is_fingerprinting_supported():
            logger.warning("SHA-256 unavailable, using rolling hash for all fingerprints")
            algorithm = HashAlgorithm.ROLLING
        self.algorithm = algorithm

    def digest(self, text: str) -> str:
        if self.algorithm is HashAlgorithm.SHA256:
            return sha256_hex(text)
        return rolling_hash(text)

    def hash_signals(self, signals: SignalSet) -> str:
        return self.digest(canonicalize(signals))


def generate_fingerprint(env: DeviceEnvironment, hasher: FingerprintHasher | None = None) -> str:
    """Collect signals from `env` and return their fingerprint.

    If collection or serialization fails as a whole, the fingerprint is computed
    over the minimal signal set with the same hasher instead of failing.
    """
    hasher = hasher or FingerprintHasher()
    try:
        return hasher.hash_signals(collect_signals(env))
    except (TypeError, ValueError, AttributeError) as e:
        logger.warning("Fingerprint generation failed, using minimal signals: {}", e)
        return hasher.hash_signals(collect_minimal_signals(env))
