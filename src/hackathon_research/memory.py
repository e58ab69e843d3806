"""Project categorization and the bounded query memory."""

from __future__ import annotations

import logging
import re
import threading
from collections import deque

from hackathon_research.models import Category, Project, QueryMemoryEntry

logger = logging.getLogger(__name__)


# ── Categorization ───────────────────────────────────────────────────────────

# Checked in order; the first category with a hit wins.
_CATEGORY_KEYWORDS: list[tuple[Category, set[str], tuple[str, ...]]] = [
    (
        Category.AI_ML,
        {
            "ai", "ml", "llm", "llms", "gpt", "nlp", "tensorflow", "pytorch", "keras",
            "openai", "huggingface", "langchain", "sklearn", "scikit",
        },
        ("artificial intelligence", "machine learning", "deep learning", "computer vision"),
    ),
    (
        Category.BLOCKCHAIN,
        {"blockchain", "web3", "crypto", "ethereum", "solidity", "solana", "nft", "defi", "bitcoin"},
        ("smart contract",),
    ),
    (
        Category.MOBILE,
        {"mobile", "ios", "android", "swift", "swiftui", "kotlin", "flutter"},
        ("react native",),
    ),
    (
        Category.HARDWARE,
        {"hardware", "iot", "arduino", "raspberry", "esp32", "embedded", "fpga"},
        ("raspberry pi",),
    ),
]

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def categorize(project: Project) -> Category:
    """Route a project to a category by technology and description keywords."""
    tech = " ".join(project.technologies).lower()
    desc = (project.description or "").lower()
    text = f"{tech} {desc}"
    tokens = set(_TOKEN_RE.findall(text))

    for category, words, phrases in _CATEGORY_KEYWORDS:
        if tokens & words or any(p in text for p in phrases):
            return category
    return Category.GENERAL


# ── Query memory ─────────────────────────────────────────────────────────────


class QueryMemory:
    """Bounded, advisory record of which queries worked per project category.

    Safe for interleaved use by concurrent runs: appends and reads take a lock,
    and the oldest entry is evicted once capacity is reached.
    """

    def __init__(self, capacity: int = 50) -> None:
        self._entries: deque[QueryMemoryEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def find_similar(self, project: Project, max_entries: int = 5) -> list[str]:
        """Successful queries from the newest entries of the project's category."""
        category = categorize(project)
        with self._lock:
            similar = [e for e in self._entries if e.category == category]
        similar.sort(key=lambda e: e.timestamp, reverse=True)

        queries: list[str] = []
        for entry in similar[:max_entries]:
            for q in sorted(entry.successful_queries):
                if q not in queries:
                    queries.append(q)
        return queries

    def record(
        self,
        project: Project,
        successful: list[str],
        failed: list[str] | None = None,
    ) -> QueryMemoryEntry:
        entry = QueryMemoryEntry(
            category=categorize(project),
            successful_queries=set(successful),
            failed_queries=set(failed or []),
            context=f"{project.name} - {project.hackathon_name}",
        )
        with self._lock:
            self._entries.append(entry)
        logger.debug(
            "Recorded %d successful / %d failed queries for %s",
            len(entry.successful_queries),
            len(entry.failed_queries),
            entry.category,
        )
        return entry
