"""Storage adapters - device-local verified-email markers."""

from .json_file import JsonFileVerificationStore
from .memory import InMemoryVerificationStore

__all__ = ["InMemoryVerificationStore", "JsonFileVerificationStore"]
