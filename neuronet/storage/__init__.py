from neuronet.storage.repository import InMemoryRepository

__all__ = [
    "InMemoryRepository",
]
