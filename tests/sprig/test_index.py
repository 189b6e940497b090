import os
import pytest
from sprig import *
from sprig.index import Index, IndexEntry

def get_random_object_id() -> ObjectId:
    return get_object_id(os.urandom(20))

def test_load_missing_file(tmp_path):
    index = Index(tmp_path / "index")
    index.load()
    assert index.entries() == []
    assert len(index) == 0

def test_flush_and_load(tmp_path):
    index_path = tmp_path / "index"
    index = Index(index_path)
    a = IndexEntry("src/a.py", "100644", get_random_object_id())
    b = IndexEntry("b with spaces.txt", "100755", get_random_object_id())
    index.upsert(a)
    index.upsert(b)
    index.flush()

    index_2 = Index(index_path)
    index_2.load()
    assert index_2.entries() == [b, a]
    assert index_2.get("src/a.py") == a

def test_file_format(tmp_path):
    index_path = tmp_path / "index"
    index = Index(index_path)
    object_id = get_random_object_id()
    index.upsert(IndexEntry("dir/file name.txt", "100644", object_id))
    index.flush()
    assert index_path.read_text() == f"100644 {object_id.hex()} dir/file name.txt\n"
    # no temporary files left behind
    assert os.listdir(tmp_path) == ["index"]

def test_upsert_replaces(tmp_path):
    index = Index(tmp_path / "index")
    index.upsert(IndexEntry("a", "100644", get_random_object_id()))
    newer = IndexEntry("a", "100755", get_random_object_id())
    index.upsert(newer)
    assert index.entries() == [newer]

def test_remove(tmp_path):
    index = Index(tmp_path / "index")
    index.upsert(IndexEntry("a", "100644", get_random_object_id()))
    assert index.remove("a")
    assert not index.remove("a")
    assert len(index) == 0

def test_load_skips_blank_lines(tmp_path):
    object_id = get_random_object_id()
    (tmp_path / "index").write_text(f"\n100644 {object_id.hex()} a\n\n")
    index = Index(tmp_path / "index")
    index.load()
    assert index.entries() == [IndexEntry("a", "100644", object_id)]

def test_load_malformed_line(tmp_path):
    (tmp_path / "index").write_text("100644 onlytwo\n")
    index = Index(tmp_path / "index")
    with pytest.raises(ValueError):
        index.load()

def test_load_invalid_object_id(tmp_path):
    (tmp_path / "index").write_text(f"100644 {'zz' * 20} a\n")
    index = Index(tmp_path / "index")
    with pytest.raises(InvalidDigestEncoding):
        index.load()

def test_upsert_rejects_invalid_path(tmp_path):
    index = Index(tmp_path / "index")
    with pytest.raises(ValueError):
        index.upsert(IndexEntry("", "100644", get_random_object_id()))
    with pytest.raises(ValueError):
        index.upsert(IndexEntry("a\nb", "100644", get_random_object_id()))
    with pytest.raises(ValueError):
        index.upsert(IndexEntry("a\rb", "100644", get_random_object_id()))

def test_load_keeps_carriage_return_in_path(tmp_path):
    object_id = get_random_object_id()
    with open(tmp_path / "index", "w", encoding="utf-8", newline="") as f:
        f.write(f"100644 {object_id.hex()} a\rb\n")
    index = Index(tmp_path / "index")
    index.load()
    assert index.entries() == [IndexEntry("a\rb", "100644", object_id)]
