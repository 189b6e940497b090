from enum import Enum

class SprigError(Exception):
    pass

class InvalidDigestEncoding(SprigError, ValueError):
    pass

class MalformedObject(SprigError, ValueError):
    pass

class SizeMismatch(MalformedObject):
    pass

class CodecError(SprigError):
    pass

class CorruptObject(SprigError):
    object_id:bytes|None

    def __init__(self, message:str, object_id:bytes|None=None):
        super().__init__(message)
        self.object_id = object_id

class TreeErrorReason(str, Enum):
    MISSING_MODE = "missing mode"
    MISSING_NAME_TERMINATOR = "missing name terminator"
    TRUNCATED_DIGEST = "truncated digest"

class CorruptTree(SprigError, ValueError):
    reason:TreeErrorReason
    offset:int

    def __init__(self, reason:TreeErrorReason, offset:int):
        super().__init__(f"corrupt tree entry at offset {offset}: {reason.value}")
        self.reason = reason
        self.offset = offset

class ObjectIOError(SprigError, OSError):
    path:str

    def __init__(self, path:str, message:str):
        super().__init__(f"{message}: '{path}'")
        self.path = path
