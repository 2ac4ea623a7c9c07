"""
Value codecs turning application payloads into storable values.

The codec is chosen once per cache from its configuration. A cache with
compression enabled always decompresses on read; it never inspects the
stored value to decide whether it was compressed.
"""

import gzip
import zlib
from typing import Union

from ..shared.errors import CorruptData, EntryTooLarge
from .config import CacheConfig


StoredValue = Union[str, bytes]


class PlainCodec:
    """Identity codec used when compression is disabled."""

    compressed = False

    def encode(self, payload: str) -> StoredValue:
        return payload

    def decode(self, raw: StoredValue, key: str = "") -> str:
        # Clients that do not decode responses hand back the UTF-8 bytes we wrote
        if isinstance(raw, (bytes, bytearray)):
            try:
                return bytes(raw).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise CorruptData(key, f"Stored value is not valid UTF-8: {exc}") from exc
        return raw


class GzipCodec:
    """Size-checked gzip codec used when compression is enabled."""

    compressed = True

    def __init__(self, max_entry_size: int, compression_level: int = 6):
        self.max_entry_size = max_entry_size
        self.compression_level = compression_level

    def encode(self, payload: str) -> StoredValue:
        data = payload.encode("utf-8")
        if len(data) > self.max_entry_size:
            raise EntryTooLarge(len(data), self.max_entry_size)
        return gzip.compress(data, compresslevel=self.compression_level, mtime=0)

    def decode(self, raw: StoredValue, key: str = "") -> str:
        if not isinstance(raw, (bytes, bytearray)):
            raise CorruptData(key, "Expected a binary value from a compressed cache")
        try:
            return gzip.decompress(bytes(raw)).decode("utf-8")
        except (OSError, EOFError, zlib.error, UnicodeDecodeError) as exc:
            raise CorruptData(key, f"Failed to decompress stored value: {exc}") from exc


ValueCodec = Union[PlainCodec, GzipCodec]


def build_codec(config: CacheConfig) -> ValueCodec:
    """Pick the codec for a cache configuration."""
    if config.compression:
        return GzipCodec(config.max_entry_size, config.compression_level)
    return PlainCodec()
