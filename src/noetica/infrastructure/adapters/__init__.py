# Infrastructure Storage Adapters Package
from .memory_repository import InMemoryCardRepository
from .yaml_repository import YamlCardRepository

__all__ = ["InMemoryCardRepository", "YamlCardRepository"]
