from .store import ExecutionMirrorClient, MemoryStoreClient, StoreReader

__all__ = ["ExecutionMirrorClient", "MemoryStoreClient", "StoreReader"]
