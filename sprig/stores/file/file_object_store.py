import logging
import os
import uuid
import aiofiles
import aiofiles.os
from functools import lru_cache
from typing import AsyncIterator, Iterator
from async_lru import alru_cache
from sprig.object_model import *
from sprig.object_serialization import *
from sprig.object_store import ObjectStore
from sprig.codecs import ObjectCodec, ZlibCodec
from sprig.errors import CodecError, CorruptObject, ObjectIOError

logger = logging.getLogger(__name__)

_TMP_PREFIX = 'tmp_obj_'
_SHARD_LEN = 2
_LOWER_HEX_DIGITS = "0123456789abcdef"

class FileObjectStore(ObjectStore):
    """Stores compressed, framed objects as loose files.

    Layout: <store_path>/<first 2 hex chars>/<remaining 38 hex chars>

    New records are written to a temporary file in the shard directory and
    then renamed onto their final path, so other processes sharing the same
    directory either see no file or the complete record. No in-process lock
    is taken.
    """

    def __init__(self, store_path:str|os.PathLike, codec:ObjectCodec|None=None):
        super().__init__()
        self.store_path = os.fspath(store_path)
        self.codec = codec if codec is not None else ZlibCodec()
        #ensure that the path exists
        try:
            os.makedirs(self.store_path, exist_ok=True)
        except OSError as e:
            raise ObjectIOError(self.store_path, f"cannot create object directory ({e.strerror})") from e

    #============================================================
    # Writing
    #============================================================
    async def put_if_absent(self, framed:bytes) -> PutResult:
        header, object_id, object_path = self._to_header_and_path(framed)
        if await aiofiles.os.path.exists(object_path):
            logger.debug(f"Object {object_id.hex()} already stored, skipping write.")
            return PutResult(object_id, False, header.type, header.size)
        compressed = self.codec.compress(framed)
        shard_path = os.path.dirname(object_path)
        try:
            await aiofiles.os.makedirs(shard_path, exist_ok=True)
        except OSError as e:
            raise ObjectIOError(shard_path, f"cannot create shard directory ({e.strerror})") from e
        tmp_path = self._to_tmp_path(shard_path)
        try:
            async with aiofiles.open(tmp_path, 'xb') as f:
                await f.write(compressed)
            await aiofiles.os.replace(tmp_path, object_path)
        except OSError as e:
            self._remove_orphan(tmp_path)
            raise ObjectIOError(object_path, f"cannot write object ({e.strerror})") from e
        logger.debug(f"Stored {header.type} {object_id.hex()} ({header.size} bytes, {len(compressed)} compressed).")
        return PutResult(object_id, True, header.type, header.size)

    def put_if_absent_sync(self, framed:bytes) -> PutResult:
        header, object_id, object_path = self._to_header_and_path(framed)
        if os.path.exists(object_path):
            logger.debug(f"Object {object_id.hex()} already stored, skipping write.")
            return PutResult(object_id, False, header.type, header.size)
        compressed = self.codec.compress(framed)
        shard_path = os.path.dirname(object_path)
        try:
            os.makedirs(shard_path, exist_ok=True)
        except OSError as e:
            raise ObjectIOError(shard_path, f"cannot create shard directory ({e.strerror})") from e
        tmp_path = self._to_tmp_path(shard_path)
        try:
            with open(tmp_path, 'xb') as f:
                f.write(compressed)
            os.replace(tmp_path, object_path)
        except OSError as e:
            self._remove_orphan(tmp_path)
            raise ObjectIOError(object_path, f"cannot write object ({e.strerror})") from e
        logger.debug(f"Stored {header.type} {object_id.hex()} ({header.size} bytes, {len(compressed)} compressed).")
        return PutResult(object_id, True, header.type, header.size)

    def _to_header_and_path(self, framed:bytes) -> tuple[ParsedHeader, ObjectId, str]:
        framed = bytes(framed)
        header = parse_header(framed)
        object_id = get_object_id(framed)
        return header, object_id, self._to_path(object_id)

    def _to_tmp_path(self, shard_path:str) -> str:
        # unique per writer, so that processes storing the same object never share a temp file
        return os.path.join(shard_path, f"{_TMP_PREFIX}{os.getpid()}_{uuid.uuid4().hex}")

    def _remove_orphan(self, tmp_path:str):
        if not os.path.exists(tmp_path):
            return
        logger.warning(f"Removing orphaned temporary object file '{tmp_path}'.")
        try:
            os.remove(tmp_path)
        except OSError as e:
            logger.warning(f"Could not remove temporary object file '{tmp_path}': {e}")

    #============================================================
    # Reading
    #============================================================
    async def read(self, object_id:ObjectId) -> ReadResult | None:
        object_id = enforce_object_id(object_id)
        try:
            return await self._load(object_id)
        except FileNotFoundError:
            return None

    def read_sync(self, object_id:ObjectId) -> ReadResult | None:
        object_id = enforce_object_id(object_id)
        try:
            return self._load_sync(object_id)
        except FileNotFoundError:
            return None

    # records are immutable, so successful loads can be cached
    # a missing object raises FileNotFoundError, which is not cached
    @alru_cache(maxsize=1024)
    async def _load(self, object_id:ObjectId) -> ReadResult:
        object_path = self._to_path(object_id)
        try:
            async with aiofiles.open(object_path, 'rb') as f:
                compressed = await f.read()
        except FileNotFoundError:
            raise
        except OSError as e:
            raise ObjectIOError(object_path, f"cannot read object ({e.strerror})") from e
        return self._decode(object_id, compressed)

    @lru_cache(maxsize=1024)  # noqa: B019
    def _load_sync(self, object_id:ObjectId) -> ReadResult:
        object_path = self._to_path(object_id)
        try:
            with open(object_path, 'rb') as f:
                compressed = f.read()
        except FileNotFoundError:
            raise
        except OSError as e:
            raise ObjectIOError(object_path, f"cannot read object ({e.strerror})") from e
        return self._decode(object_id, compressed)

    def _decode(self, object_id:ObjectId, compressed:bytes) -> ReadResult:
        try:
            framed = self.codec.decompress(compressed)
        except CodecError as e:
            raise CorruptObject(f"Object {object_id.hex()} is corrupt: {e}", object_id) from e
        header = parse_header(framed)
        return ReadResult(header.type, header.size, framed[header.header_len:])

    async def has(self, object_id:ObjectId) -> bool:
        return await aiofiles.os.path.exists(self._to_path(enforce_object_id(object_id)))

    def has_sync(self, object_id:ObjectId) -> bool:
        return os.path.exists(self._to_path(enforce_object_id(object_id)))

    #============================================================
    # Enumeration
    #============================================================
    async def enumerate(self) -> AsyncIterator[ObjectId]:
        for shard in await self._listdir(self.store_path):
            shard_path = os.path.join(self.store_path, shard)
            if not _is_shard_name(shard) or not await aiofiles.os.path.isdir(shard_path):
                continue
            for file_name in await self._listdir(shard_path):
                object_id = _to_object_id_or_none(shard, file_name)
                if object_id is None:
                    logger.debug(f"Skipping '{os.path.join(shard_path, file_name)}', not an object file.")
                    continue
                if await aiofiles.os.path.isfile(os.path.join(shard_path, file_name)):
                    yield object_id

    def enumerate_sync(self) -> Iterator[ObjectId]:
        for shard in self._listdir_sync(self.store_path):
            shard_path = os.path.join(self.store_path, shard)
            if not _is_shard_name(shard) or not os.path.isdir(shard_path):
                continue
            for file_name in self._listdir_sync(shard_path):
                object_id = _to_object_id_or_none(shard, file_name)
                if object_id is None:
                    logger.debug(f"Skipping '{os.path.join(shard_path, file_name)}', not an object file.")
                    continue
                if os.path.isfile(os.path.join(shard_path, file_name)):
                    yield object_id

    async def _listdir(self, path:str) -> list[str]:
        try:
            return await aiofiles.os.listdir(path)
        except OSError as e:
            raise ObjectIOError(path, f"cannot list directory ({e.strerror})") from e

    def _listdir_sync(self, path:str) -> list[str]:
        try:
            return os.listdir(path)
        except OSError as e:
            raise ObjectIOError(path, f"cannot list directory ({e.strerror})") from e

    def _to_path(self, object_id:ObjectId) -> str:
        object_id_str = object_id.hex()
        return os.path.join(self.store_path, object_id_str[:_SHARD_LEN], object_id_str[_SHARD_LEN:])

def _is_shard_name(name:str) -> bool:
    return len(name) == _SHARD_LEN and all(c in _LOWER_HEX_DIGITS for c in name)

def _to_object_id_or_none(shard:str, file_name:str) -> ObjectId | None:
    object_id_str = shard + file_name
    # the store only writes lower case names, which is what read and has look up
    if not is_object_id_str(object_id_str) or object_id_str != object_id_str.lower():
        return None
    return to_object_id(object_id_str)
