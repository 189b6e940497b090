from abc import ABC, abstractmethod
from typing import AsyncIterator, Iterator
from sprig.object_model import *

class ObjectLoader(ABC):
    """Interface for loading objects from the sprig object store."""
    @abstractmethod
    async def read(self, object_id:ObjectId) -> ReadResult | None:
        pass

    @abstractmethod
    def read_sync(self, object_id:ObjectId) -> ReadResult | None:
        pass

    @abstractmethod
    async def has(self, object_id:ObjectId) -> bool:
        pass

    @abstractmethod
    def has_sync(self, object_id:ObjectId) -> bool:
        pass

    @abstractmethod
    def enumerate(self) -> AsyncIterator[ObjectId]:
        pass

    @abstractmethod
    def enumerate_sync(self) -> Iterator[ObjectId]:
        pass

class ObjectStore(ObjectLoader, ABC):
    """Interface for persisting framed objects in the sprig object store."""
    @abstractmethod
    async def put_if_absent(self, framed:bytes) -> PutResult:
        pass

    @abstractmethod
    def put_if_absent_sync(self, framed:bytes) -> PutResult:
        pass
