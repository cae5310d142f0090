"""Tenant-defined intents matched by training-phrase similarity."""

from .store import EntitySlot, InMemoryIntentStore, IntentDefinition, IntentStore
from .trainable import TrainableIntentMatcher, jaccard_similarity

__all__ = [
    "EntitySlot",
    "InMemoryIntentStore",
    "IntentDefinition",
    "IntentStore",
    "TrainableIntentMatcher",
    "jaccard_similarity",
]
