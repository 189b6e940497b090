import os
import pytest
from sprig import *

def get_random_object_id() -> ObjectId:
    return get_object_id(os.urandom(20))

def test_round_trip():
    d1 = get_random_object_id()
    d2 = get_random_object_id()
    entries = [
        TreeEntry("100644", b"a.txt", d1),
        TreeEntry("040000", b"dir", d2)]
    payload = serialize_entries(entries)
    assert payload == b"100644 a.txt\x00" + d1 + b"040000 dir\x00" + d2
    result = parse_all(payload)
    assert result.ok
    assert result.entries == entries
    assert result.entries[0].kind == EntryKind.BLOB
    assert result.entries[1].kind == EntryKind.TREE

def test_order_is_preserved():
    entries = [TreeEntry("100644", name, get_random_object_id()) for name in [b"z", b"a", b"m", b"a"]]
    assert parse_tree(serialize_entries(entries)) == entries

def test_empty_payload():
    result = parse_all(b"")
    assert result.entries == []
    assert result.error is None

def test_empty_name_is_accepted():
    object_id = get_random_object_id()
    entries = parse_tree(b"100644 \x00" + object_id)
    assert entries == [TreeEntry("100644", b"", object_id)]

def test_name_with_arbitrary_bytes():
    object_id = get_random_object_id()
    name = b"caf\xc3\xa9 \xff with spaces"
    entries = parse_tree(serialize_entries([TreeEntry("100644", name, object_id)]))
    assert entries[0].name == name

def test_digest_with_nul_and_space_bytes():
    object_id = b"\x00 " * 10
    entries = [TreeEntry("100644", b"a", object_id), TreeEntry("100644", b"b", get_random_object_id())]
    assert parse_tree(serialize_entries(entries)) == entries

def test_unknown_mode_tolerated():
    object_id = get_random_object_id()
    entries = parse_tree(b"999999 odd\x00" + object_id)
    assert entries[0].mode == "999999"
    assert entries[0].kind == EntryKind.UNKNOWN

def test_mode_to_kind():
    assert mode_to_kind("040000") == EntryKind.TREE
    assert mode_to_kind("100644") == EntryKind.BLOB
    assert mode_to_kind("100755") == EntryKind.BLOB
    assert mode_to_kind("120000") == EntryKind.BLOB
    assert mode_to_kind("160000") == EntryKind.COMMIT
    assert mode_to_kind("40000") == EntryKind.UNKNOWN
    assert mode_to_kind("") == EntryKind.UNKNOWN

def test_truncated_digest_is_sticky():
    d1 = get_random_object_id()
    payload = b"100644 a.txt\x00" + d1 + b"100644 b.txt\x00" + d1[:3]
    result = parse_all(payload)
    assert result.entries == [TreeEntry("100644", b"a.txt", d1)]
    assert isinstance(result.error, CorruptTree)
    assert result.error.reason == TreeErrorReason.TRUNCATED_DIGEST
    assert result.error.offset == len(b"100644 a.txt\x00") + 20

def test_truncated_first_entry():
    result = parse_all(b"100644 a.txt\x00abc")
    assert result.entries == []
    assert result.error.reason == TreeErrorReason.TRUNCATED_DIGEST

def test_missing_mode():
    result = parse_all(b"100644")
    assert result.entries == []
    assert result.error.reason == TreeErrorReason.MISSING_MODE

def test_empty_mode():
    result = parse_all(b" a.txt\x00" + get_random_object_id())
    assert result.entries == []
    assert result.error.reason == TreeErrorReason.MISSING_MODE

def test_missing_name_terminator():
    result = parse_all(b"100644 a.txt")
    assert result.entries == []
    assert result.error.reason == TreeErrorReason.MISSING_NAME_TERMINATOR

def test_parser_state_machine():
    d1 = get_random_object_id()
    # the garbage after the truncated entry would parse as an entry if the parser resumed
    payload = b"100644 a\x00" + d1 + b"100644 b\x00" + b"xy"
    parser = TreeEntryParser(payload)
    assert parser.state == ParserState.SCANNING
    assert parser.parse_next() == TreeEntry("100644", b"a", d1)
    assert parser.state == ParserState.SCANNING
    assert parser.parse_next() is None
    assert parser.state == ParserState.ERRORED
    error = parser.error
    assert parser.parse_next() is None
    assert parser.parse_next() is None
    assert parser.state == ParserState.ERRORED
    assert parser.error is error

def test_parser_exhausted():
    parser = TreeEntryParser(serialize_entries([TreeEntry("100644", b"a", get_random_object_id())]))
    assert len(list(parser)) == 1
    assert parser.state == ParserState.EXHAUSTED
    assert parser.error is None
    assert parser.parse_next() is None

def test_parse_tree_raises():
    with pytest.raises(CorruptTree) as e_info:
        parse_tree(b"100644 a\x00short")
    assert e_info.value.reason == TreeErrorReason.TRUNCATED_DIGEST

def test_raise_for_error():
    result = parse_all(b"garbage")
    with pytest.raises(CorruptTree):
        result.raise_for_error()

def test_serialize_rejects_invalid_entries():
    object_id = get_random_object_id()
    with pytest.raises(ValueError):
        serialize_entries([TreeEntry("", b"a", object_id)])
    with pytest.raises(ValueError):
        serialize_entries([TreeEntry("100 644", b"a", object_id)])
    with pytest.raises(ValueError):
        serialize_entries([TreeEntry("100644", b"a\x00b", object_id)])
    with pytest.raises(InvalidDigestEncoding):
        serialize_entries([TreeEntry("100644", b"a", object_id[:10])])

def test_tree_to_bytes_is_framed():
    object_id = get_random_object_id()
    framed = tree_to_bytes([TreeEntry("100644", b"a", object_id)])
    header = parse_header(framed)
    assert header.type == "tree"
    assert parse_tree(framed[header.header_len:]) == [TreeEntry("100644", b"a", object_id)]

def test_empty_tree_matches_git():
    assert to_object_id_str(get_object_id(tree_to_bytes([]))) == "4b825dc642cb6eb9a060e54bf8d69288fbee4904"
