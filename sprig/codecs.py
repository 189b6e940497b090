import zlib
from abc import ABC, abstractmethod
from sprig.errors import CodecError

class ObjectCodec(ABC):
    """Compression applied to object records before they are persisted."""
    @abstractmethod
    def compress(self, data:bytes) -> bytes:
        pass

    @abstractmethod
    def decompress(self, data:bytes) -> bytes:
        pass

class ZlibCodec(ObjectCodec):
    level:int

    def __init__(self, level:int=zlib.Z_DEFAULT_COMPRESSION):
        if level != zlib.Z_DEFAULT_COMPRESSION and not 0 <= level <= 9:
            raise ValueError(f"zlib compression level must be -1 or between 0 and 9, not {level}.")
        self.level = level

    def compress(self, data:bytes) -> bytes:
        try:
            return zlib.compress(data, self.level)
        except (zlib.error, MemoryError) as e:
            raise CodecError(f"zlib compression failed: {e}") from e

    def decompress(self, data:bytes) -> bytes:
        # zlib.decompress accepts trailing bytes after the end of the stream,
        # a decompress object is needed to detect them
        decompressor = zlib.decompressobj()
        try:
            result = decompressor.decompress(data)
            result += decompressor.flush()
        except (zlib.error, MemoryError) as e:
            raise CodecError(f"zlib decompression failed: {e}") from e
        if not decompressor.eof:
            raise CodecError("zlib decompression failed: stream is truncated.")
        if decompressor.unused_data:
            raise CodecError(f"zlib decompression failed: {len(decompressor.unused_data)} bytes after end of stream.")
        return result

    def __repr__(self) -> str:
        return f"ZlibCodec(level={self.level})"
