from typing import NamedTuple

# Type aliases and structures that define the object model for the sprig object store.

ObjectId = bytes #20 bytes, sha1 of the framed (uncompressed) bytes of the object

BlobId = ObjectId
TreeId = ObjectId
CommitId = ObjectId

ObjectType = str # "blob" | "tree" | "commit"

ParsedHeader = NamedTuple("ParsedHeader",
    [('type', ObjectType),
     ('size', int), # declared content size
     ('header_len', int)]) # bytes up to and including the NUL

PutResult = NamedTuple("PutResult",
    [('object_id', ObjectId),
     ('inserted', bool), # False if the object was already stored
     ('type', ObjectType),
     ('size', int)])

ReadResult = NamedTuple("ReadResult",
    [('type', ObjectType),
     ('size', int),
     ('content', bytes)])
