from enum import Enum
from typing import Iterable, Iterator, NamedTuple
from sprig.object_model import *
from sprig.object_serialization import OBJECT_ID_LEN, enforce_object_id, frame_object
from sprig.errors import CorruptTree, TreeErrorReason

# Binary codec for the content of "tree" objects.
#
# A tree payload is a concatenation of entries without any separator:
#   <mode (ascii)> SP <name (bytes, no NUL)> NUL <20 raw digest bytes>
# The next entry's mode starts right after the previous entry's digest.

_STR_ENCODING = 'ascii'

class EntryKind(str, Enum):
    TREE = "tree"
    BLOB = "blob"
    COMMIT = "commit"
    UNKNOWN = "unknown"

_MODE_KINDS = {
    "040000": EntryKind.TREE, # directory
    "100644": EntryKind.BLOB, # regular file
    "100755": EntryKind.BLOB, # executable file
    "120000": EntryKind.BLOB, # symlink, the target is stored as blob content
    "160000": EntryKind.COMMIT, # submodule
}

MODE_TREE = "040000"
MODE_FILE = "100644"
MODE_EXECUTABLE = "100755"

def mode_to_kind(mode:str) -> EntryKind:
    return _MODE_KINDS.get(mode, EntryKind.UNKNOWN)

class TreeEntry(NamedTuple):
    mode:str
    name:bytes
    object_id:ObjectId

    @property
    def kind(self) -> EntryKind:
        return mode_to_kind(self.mode)

class ParserState(Enum):
    SCANNING = "scanning"
    EXHAUSTED = "exhausted"
    ERRORED = "errored"

class TreeEntryParser:
    """Reads tree entries one at a time from a tree payload.

    Once the payload is used up the parser is EXHAUSTED. Once any entry fails
    to parse the parser is ERRORED, keeps the CorruptTree in `error`, and every
    later call to `parse_next` returns None without looking at the payload
    again, so misaligned bytes after a corrupt entry never turn into entries.
    """
    _payload:bytes
    _pos:int
    state:ParserState
    error:CorruptTree|None

    def __init__(self, payload:bytes):
        self._payload = bytes(payload)
        self._pos = 0
        self.state = ParserState.SCANNING
        self.error = None

    @property
    def position(self) -> int:
        return self._pos

    def parse_next(self) -> TreeEntry | None:
        if self.state != ParserState.SCANNING:
            return None
        payload = self._payload
        begin = self._pos
        if begin >= len(payload):
            self.state = ParserState.EXHAUSTED
            return None

        sp = payload.find(b' ', begin)
        if sp == -1 or sp == begin:
            return self._fail(TreeErrorReason.MISSING_MODE)
        mode_bytes = payload[begin:sp]
        if not mode_bytes.isascii():
            return self._fail(TreeErrorReason.MISSING_MODE)

        nul = payload.find(b'\x00', sp + 1)
        if nul == -1:
            return self._fail(TreeErrorReason.MISSING_NAME_TERMINATOR)
        name = payload[sp+1:nul]

        id_begin = nul + 1
        id_end = id_begin + OBJECT_ID_LEN
        if id_end > len(payload):
            return self._fail(TreeErrorReason.TRUNCATED_DIGEST)

        self._pos = id_end
        return TreeEntry(mode_bytes.decode(_STR_ENCODING), name, payload[id_begin:id_end])

    def _fail(self, reason:TreeErrorReason) -> None:
        self.state = ParserState.ERRORED
        self.error = CorruptTree(reason, self._pos)
        return None

    def __iter__(self) -> Iterator[TreeEntry]:
        while (entry := self.parse_next()) is not None:
            yield entry

class TreeParseResult(NamedTuple):
    entries:list[TreeEntry]
    error:CorruptTree|None # set if parsing stopped at a corrupt entry

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

def parse_all(payload:bytes) -> TreeParseResult:
    parser = TreeEntryParser(payload)
    entries = list(parser)
    return TreeParseResult(entries, parser.error)

def parse_tree(payload:bytes) -> list[TreeEntry]:
    result = parse_all(payload)
    result.raise_for_error()
    return result.entries

def serialize_entries(entries:Iterable[TreeEntry]) -> bytes:
    result = bytearray()
    for mode, name, object_id in entries:
        if not mode or not mode.isascii() or ' ' in mode or '\x00' in mode:
            raise ValueError(f"Invalid tree entry mode '{mode}'.")
        if isinstance(name, str):
            name = name.encode('utf-8')
        if b'\x00' in name:
            raise ValueError(f"Tree entry name must not contain NUL, but was {name!r}.")
        result += mode.encode(_STR_ENCODING)
        result += b' '
        result += name
        result += b'\x00'
        result += enforce_object_id(object_id)
    return bytes(result)

def tree_to_bytes(entries:Iterable[TreeEntry]) -> bytes:
    return frame_object('tree', serialize_entries(entries))
