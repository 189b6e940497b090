from typing import AsyncIterator, Iterable, Iterator
from sprig.object_model import *
from sprig.object_store import ObjectLoader, ObjectStore
from sprig.tree_entries import *
from sprig.index import IndexEntry

# Helpers for building trees from the index and for walking stored trees.

# Note: there is an async and a sync version of each public helper.
# To maintainer: whenever you make a change, also change the sync version
# and vice versa.

#============================================================
# Internal Helpers
#============================================================
def _index_path_parts(path:str) -> list[str]:
    if(path == "" or path is None):
        raise ValueError(f"Index path cannot be empty, but was '{path}'.")
    if(path[0] == "/"):
        raise ValueError(f"Index path must be relative, but was '{path}'.")
    if(path[-1] == "/"):
        raise ValueError(f"Index path must not end with a slash, but was '{path}'.")
    parts = path.split("/")
    if any(part in ("", ".", "..") for part in parts):
        raise ValueError(f"Index path contains an empty or relative part: '{path}'.")
    return parts

def _index_to_nodes(index_entries:Iterable[IndexEntry]) -> dict:
    """Turns the flat index paths into nested dicts, leaves are IndexEntry"""
    root = {}
    for entry in index_entries:
        parts = _index_path_parts(entry.path)
        node = root
        for part in parts[:-1]:
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                raise ValueError(f"'{entry.path}' uses the file '{part}' as a directory.")
            node = child
        if isinstance(node.get(parts[-1]), dict):
            raise ValueError(f"'{entry.path}' is both a file and a directory.")
        node[parts[-1]] = entry
    return root

def _tree_sort_key(entry:TreeEntry) -> bytes:
    # git orders directories as if their name had a trailing slash
    if entry.kind == EntryKind.TREE:
        return entry.name + b"/"
    return entry.name

def _leaf_entry(name:str, index_entry:IndexEntry) -> TreeEntry:
    return TreeEntry(index_entry.mode, name.encode('utf-8'), index_entry.object_id)

def _check_tree(tree_id:TreeId, result:ReadResult|None) -> ReadResult:
    if result is None:
        raise KeyError(f"Tree '{tree_id.hex()}' not found.")
    if result.type != 'tree':
        raise TypeError(f"Object '{tree_id.hex()}' is a {result.type}, not a tree.")
    return result

#============================================================
# Write Helpers
#============================================================
async def write_tree(store:ObjectStore, index_entries:Iterable[IndexEntry]) -> TreeId:
    """Stores the trees for the index entries, returns the root tree id"""
    return await _write_node(store, _index_to_nodes(index_entries))

async def _write_node(store:ObjectStore, node:dict) -> TreeId:
    entries = []
    for name, value in node.items():
        if isinstance(value, dict):
            sub_tree_id = await _write_node(store, value)
            entries.append(TreeEntry(MODE_TREE, name.encode('utf-8'), sub_tree_id))
        else:
            entries.append(_leaf_entry(name, value))
    entries.sort(key=_tree_sort_key)
    result = await store.put_if_absent(tree_to_bytes(entries))
    return result.object_id

def write_tree_sync(store:ObjectStore, index_entries:Iterable[IndexEntry]) -> TreeId:
    """Stores the trees for the index entries, returns the root tree id"""
    return _write_node_sync(store, _index_to_nodes(index_entries))

def _write_node_sync(store:ObjectStore, node:dict) -> TreeId:
    entries = []
    for name, value in node.items():
        if isinstance(value, dict):
            sub_tree_id = _write_node_sync(store, value)
            entries.append(TreeEntry(MODE_TREE, name.encode('utf-8'), sub_tree_id))
        else:
            entries.append(_leaf_entry(name, value))
    entries.sort(key=_tree_sort_key)
    return store.put_if_absent_sync(tree_to_bytes(entries)).object_id

#============================================================
# Read Helpers
#============================================================
async def read_tree(loader:ObjectLoader, tree_id:TreeId) -> TreeParseResult:
    result = _check_tree(tree_id, await loader.read(tree_id))
    return parse_all(result.content)

def read_tree_sync(loader:ObjectLoader, tree_id:TreeId) -> TreeParseResult:
    result = _check_tree(tree_id, loader.read_sync(tree_id))
    return parse_all(result.content)

async def walk_tree(
    loader:ObjectLoader,
    tree_id:TreeId,
    recursive:bool=False,
    prefix:bytes=b"",
    ) -> AsyncIterator[tuple[bytes, TreeEntry]]:
    """Yields (path, entry) pairs. Entries that parsed are yielded before a CorruptTree is raised."""
    parsed = await read_tree(loader, tree_id)
    for entry in parsed.entries:
        path = prefix + entry.name
        if recursive and entry.kind == EntryKind.TREE:
            async for item in walk_tree(loader, entry.object_id, True, path + b"/"):
                yield item
        else:
            yield path, entry
    parsed.raise_for_error()

def walk_tree_sync(
    loader:ObjectLoader,
    tree_id:TreeId,
    recursive:bool=False,
    prefix:bytes=b"",
    ) -> Iterator[tuple[bytes, TreeEntry]]:
    """Yields (path, entry) pairs. Entries that parsed are yielded before a CorruptTree is raised."""
    parsed = read_tree_sync(loader, tree_id)
    for entry in parsed.entries:
        path = prefix + entry.name
        if recursive and entry.kind == EntryKind.TREE:
            yield from walk_tree_sync(loader, entry.object_id, True, path + b"/")
        else:
            yield path, entry
    parsed.raise_for_error()
