from . object_model import *
from . errors import (SprigError, InvalidDigestEncoding, MalformedObject, SizeMismatch, CodecError, CorruptObject,
                      CorruptTree, TreeErrorReason, ObjectIOError)
from . object_serialization import (get_object_id, is_object_id_str, is_object_id, to_object_id_str, to_object_id,
                                    enforce_object_id, build_header, parse_header, frame_object, blob_to_bytes,
                                    OBJECT_ID_LEN, OBJECT_ID_STR_LEN, OBJECT_TYPES)
from . codecs import ObjectCodec, ZlibCodec
from . object_store import ObjectLoader, ObjectStore
from . tree_entries import (TreeEntry, EntryKind, TreeEntryParser, ParserState, TreeParseResult, mode_to_kind,
                            parse_all, parse_tree, serialize_entries, tree_to_bytes, MODE_TREE, MODE_FILE, MODE_EXECUTABLE)
