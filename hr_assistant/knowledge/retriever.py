"""
Knowledge article stores.

Provides tenant-scoped, relevance-ranked search over published
knowledge articles, backed by Azure AI Search or kept in memory.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from azure.core.credentials import AzureKeyCredential
from azure.search.documents import SearchClient
from pydantic import BaseModel, Field

from hr_assistant.config import Settings, get_settings
from hr_assistant.errors import CollaboratorUnavailable
from hr_assistant.nlp import tokenize

logger = logging.getLogger(__name__)


class ArticleStatus(str, Enum):
    """Publication status of a knowledge article."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class KnowledgeArticle(BaseModel):
    """A tenant-scoped knowledge article as stored by the admin service."""

    id: str
    tenant_id: str
    category: str = "general"
    title: str
    content: str
    keywords: list[str] = Field(default_factory=list)
    variations: list[str] = Field(default_factory=list)
    intent: str
    response_text: str = ""
    status: ArticleStatus = ArticleStatus.DRAFT


@dataclass
class ArticleHit:
    """A ranked search hit."""

    id: str
    title: str
    intent: str
    score: float

    def __str__(self) -> str:
        return f"[{self.title}] -> {self.intent} (score: {self.score:.3f})"


class KnowledgeStore(ABC):
    """Read-only, tenant-scoped search over published articles."""

    @abstractmethod
    async def search_published(
        self,
        tenant_id: str,
        query: str,
        top: int = 1,
    ) -> list[ArticleHit]:
        """Return published articles ranked by relevance, best first."""
        pass


class AzureSearchKnowledgeStore(KnowledgeStore):
    """
    Searches knowledge articles indexed in Azure AI Search.

    The index is expected to carry ``tenant_id``, ``status``, ``title``
    and ``intent`` fields next to the searchable text.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        search_client: Optional[SearchClient] = None,
    ):
        """Initialize the store from settings or an existing client."""
        self.settings = settings or get_settings()

        if search_client is None:
            credential = AzureKeyCredential(
                self.settings.azure_search_api_key.get_secret_value()
            )
            search_client = SearchClient(
                endpoint=self.settings.azure_search_endpoint,
                index_name=self.settings.azure_search_index_name,
                credential=credential,
            )
        self.search_client = search_client

    def _search(self, tenant_id: str, query: str, top: int) -> list[ArticleHit]:
        # Escape quotes to prevent filter injection
        safe_tenant = tenant_id.replace("'", "''")
        # Cancelling the awaiting task leaves this thread running, so the
        # transport gets the same bound as the caller's wait.
        timeout = self.settings.knowledge_search_timeout_seconds
        results = self.search_client.search(
            search_text=query,
            filter=f"tenant_id eq '{safe_tenant}' and status eq 'published'",
            select=["id", "title", "intent"],
            top=top,
            connection_timeout=timeout,
            read_timeout=timeout,
        )
        return [
            ArticleHit(
                id=result["id"],
                title=result.get("title", ""),
                intent=result["intent"],
                score=result.get("@search.score", 0.0),
            )
            for result in results
        ]

    async def search_published(
        self,
        tenant_id: str,
        query: str,
        top: int = 1,
    ) -> list[ArticleHit]:
        """
        Search published articles for a tenant.

        Args:
            tenant_id: Owning tenant
            query: Normalized user utterance
            top: Maximum hits to return

        Returns:
            Hits ordered by Azure relevance score

        Raises:
            CollaboratorUnavailable: If the search service fails
        """
        try:
            hits = await asyncio.to_thread(self._search, tenant_id, query, top)
        except Exception as e:
            raise CollaboratorUnavailable("knowledge-search", str(e)) from e

        logger.debug(f"Knowledge search returned {len(hits)} hits for tenant {tenant_id}")
        return hits


class InMemoryKnowledgeStore(KnowledgeStore):
    """
    Keyword-scored article store for development and tests.

    Each query term scores the field weight once per occurrence in that
    field: title and keywords weigh 3, variations 2, content 1.
    """

    FIELD_WEIGHTS = {"title": 3.0, "keywords": 3.0, "variations": 2.0, "content": 1.0}
    STOP_WORDS = frozenset({
        "a", "an", "the", "is", "are", "i", "my", "me", "do", "does", "how",
        "what", "to", "for", "of", "and", "or", "can", "in", "on", "about",
    })

    def __init__(self, articles: Optional[list[KnowledgeArticle]] = None):
        self._articles: dict[str, KnowledgeArticle] = {}
        for article in articles or []:
            self.add(article)

    def add(self, article: KnowledgeArticle) -> None:
        """Add or replace an article."""
        self._articles[article.id] = article

    def _field_tokens(self, article: KnowledgeArticle) -> dict[str, Counter]:
        return {
            "title": Counter(tokenize(article.title)),
            "keywords": Counter(tokenize(" ".join(article.keywords))),
            "variations": Counter(tokenize(" ".join(article.variations))),
            "content": Counter(tokenize(article.content)),
        }

    def score(self, article: KnowledgeArticle, query: str) -> float:
        """Relevance of an article for a query."""
        terms = {t for t in tokenize(query) if t not in self.STOP_WORDS}
        fields = self._field_tokens(article)
        return sum(
            self.FIELD_WEIGHTS[name] * counts[term]
            for term in terms
            for name, counts in fields.items()
        )

    async def search_published(
        self,
        tenant_id: str,
        query: str,
        top: int = 1,
    ) -> list[ArticleHit]:
        """Rank this tenant's published articles by keyword score."""
        hits = []
        for article in self._articles.values():
            if article.tenant_id != tenant_id or article.status != ArticleStatus.PUBLISHED:
                continue
            score = self.score(article, query)
            if score > 0:
                hits.append(
                    ArticleHit(
                        id=article.id,
                        title=article.title,
                        intent=article.intent,
                        score=score,
                    )
                )

        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:top]
