import hashlib
import string
from sprig.object_model import *
from sprig.errors import InvalidDigestEncoding, MalformedObject, SizeMismatch

_STR_ENCODING = 'ascii'
OBJECT_ID_LEN = 20
OBJECT_ID_STR_LEN = 40
OBJECT_TYPES = ('blob', 'tree', 'commit')

#============================================================
# Object ids
#============================================================
def get_object_id(bytes:bytes | bytearray) -> ObjectId:
    return hashlib.sha1(bytes).digest()

def is_object_id_str(object_id_str:str) -> bool:
    return (isinstance(object_id_str, str) and len(object_id_str) == OBJECT_ID_STR_LEN
        and all(c in string.hexdigits for c in object_id_str))

def is_object_id(object_id:ObjectId) -> bool:
    return (isinstance(object_id, bytes) or isinstance(object_id, bytearray)) and len(object_id) == OBJECT_ID_LEN

def to_object_id_str(object_id:ObjectId) -> str:
    return enforce_object_id(object_id).hex()

def to_object_id(object_id_str:str) -> ObjectId:
    if not is_object_id_str(object_id_str):
        raise InvalidDigestEncoding(f"Expected {OBJECT_ID_STR_LEN} hex characters but got '{object_id_str}'.")
    return bytes.fromhex(object_id_str)

def enforce_object_id(object_id:ObjectId) -> ObjectId:
    if not is_object_id(object_id):
        raise InvalidDigestEncoding(f"Expected object id of {OBJECT_ID_LEN} bytes but got {object_id!r}.")
    return bytes(object_id)

#============================================================
# Object header framing: "<type> <size>\0<content>"
#============================================================
def build_header(object_type:ObjectType, content_len:int) -> bytes:
    if not object_type or not object_type.isascii() or ' ' in object_type or '\x00' in object_type:
        raise ValueError(f"Invalid object type '{object_type}'.")
    if content_len < 0:
        raise ValueError(f"Content length must not be negative, but was {content_len}.")
    return f"{object_type} {content_len}\x00".encode(_STR_ENCODING)

def parse_header(framed:bytes) -> ParsedHeader:
    sp = framed.find(b' ')
    if sp == -1:
        raise MalformedObject("Invalid object: missing space after type.")
    if sp == 0:
        raise MalformedObject("Invalid object: empty type.")
    nul = framed.find(b'\x00', sp + 1)
    if nul == -1:
        raise MalformedObject("Invalid object: missing NUL after size.")
    type_bytes = framed[:sp]
    if not type_bytes.isascii():
        raise MalformedObject("Invalid object: type is not ascii.")
    size_bytes = framed[sp+1:nul]
    # bytes.isdigit only accepts ascii digits
    if not size_bytes.isdigit():
        raise MalformedObject(f"Invalid object: size {bytes(size_bytes)!r} is not decimal.")
    size = int(size_bytes)
    header_len = nul + 1
    if len(framed) < header_len + size:
        raise SizeMismatch(
            f"Invalid object: declared size {size} but only {len(framed) - header_len} content bytes available.")
    return ParsedHeader(type_bytes.decode(_STR_ENCODING), size, header_len)

def frame_object(object_type:ObjectType, content:bytes) -> bytes:
    return build_header(object_type, len(content)) + bytes(content)

def blob_to_bytes(data:bytes) -> bytes:
    return frame_object('blob', data)
