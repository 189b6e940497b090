import logging
import os
import uuid
from typing import NamedTuple
from sprig.object_model import ObjectId
from sprig.object_serialization import to_object_id, to_object_id_str

logger = logging.getLogger(__name__)

# The staging index is a plain text file with one entry per line:
#   <mode> <40 hex object id> <path>
# The path is the rest of the line and may contain spaces.

class IndexEntry(NamedTuple):
    path:str
    mode:str
    object_id:ObjectId

class Index:
    index_path:str
    _by_path:dict[str, IndexEntry]

    def __init__(self, index_path:str|os.PathLike):
        self.index_path = os.fspath(index_path)
        self._by_path = {}

    def load(self) -> None:
        self._by_path = {}
        if not os.path.exists(self.index_path):
            return
        with open(self.index_path, 'r', encoding='utf-8', newline='\n') as f:
            for line_no, line in enumerate(f, start=1):
                line = line.rstrip('\n')
                if line == "":
                    continue
                parts = line.split(' ', 2)
                if len(parts) != 3 or parts[0] == "" or parts[2] == "":
                    raise ValueError(f"Malformed index line {line_no}: '{line}'.")
                mode, object_id_str, path = parts
                # raises InvalidDigestEncoding, a ValueError
                object_id = to_object_id(object_id_str)
                self._by_path[path] = IndexEntry(path, mode, object_id)
        logger.debug(f"Loaded {len(self._by_path)} index entries from '{self.index_path}'.")

    def upsert(self, entry:IndexEntry) -> None:
        if entry.path == "" or '\n' in entry.path or '\r' in entry.path:
            raise ValueError(f"Invalid index path '{entry.path}'.")
        self._by_path[entry.path] = entry

    def remove(self, path:str) -> bool:
        return self._by_path.pop(path, None) is not None

    def get(self, path:str) -> IndexEntry | None:
        return self._by_path.get(path)

    def entries(self) -> list[IndexEntry]:
        return [self._by_path[path] for path in sorted(self._by_path)]

    def __len__(self) -> int:
        return len(self._by_path)

    def flush(self) -> None:
        dir_path = os.path.dirname(self.index_path)
        if dir_path != "":
            os.makedirs(dir_path, exist_ok=True)
        tmp_path = f"{self.index_path}.{os.getpid()}_{uuid.uuid4().hex}.tmp"
        try:
            with open(tmp_path, 'w', encoding='utf-8', newline='\n') as f:
                for entry in self.entries():
                    f.write(f"{entry.mode} {to_object_id_str(entry.object_id)} {entry.path}\n")
            os.replace(tmp_path, self.index_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
