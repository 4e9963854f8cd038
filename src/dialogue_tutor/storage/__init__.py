from .kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore

__all__ = ["KeyValueStore", "InMemoryKeyValueStore", "JsonFileKeyValueStore"]
