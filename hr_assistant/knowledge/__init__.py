"""Knowledge article lookup used as an intent fallback."""

from .matcher import KnowledgeFallbackMatcher
from .retriever import (
    ArticleHit,
    AzureSearchKnowledgeStore,
    InMemoryKnowledgeStore,
    KnowledgeArticle,
    KnowledgeStore,
)

__all__ = [
    "ArticleHit",
    "AzureSearchKnowledgeStore",
    "InMemoryKnowledgeStore",
    "KnowledgeArticle",
    "KnowledgeFallbackMatcher",
    "KnowledgeStore",
]
