"""Ephemeral keyed store: TTL envelopes over session-scoped backends."""
from .backends import Backend, MemoryBackend, RedisBackend, RedisKeys
from .store import Envelope, EphemeralStore, epoch_millis

__all__ = [
    "Backend",
    "MemoryBackend",
    "RedisBackend",
    "RedisKeys",
    "Envelope",
    "EphemeralStore",
    "epoch_millis",
]
