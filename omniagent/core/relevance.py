"""Relevance Scorer - Rank capability entries against a free-text query.

The keyword scorer is a linear combination of substring-match signals. It is
pure and deterministic: the same (query, entry, query type) always yields the
same score and reasons. Callers depend only on the ``RelevanceScorer``
interface so the heuristic can be swapped for an embedding-based scorer.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field

from omniagent.models import (
    CapabilityEntry,
    CapabilityKind,
    QueryType,
    RankedCapability,
    RelevanceScore,
)

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "can", "you", "help", "me", "how", "what",
    "when", "where", "why", "is", "are", "do", "does", "please",
})

INTEGRATIONS = ("slack", "github", "jira", "notion", "google", "salesforce", "hubspot")

ANALYSIS_MARKERS = ("analysis", "analyze", "analytics", "summar", "digest", "report", "insight")
TASK_MARKERS = ("create", "generate", "build")
HELP_PROMPTS = frozenset({"get-started", "help"})

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


@dataclass(frozen=True)
class RelevanceReport:
    """Outcome of a relevance search over the registry."""

    resources: list[RankedCapability] = field(default_factory=list)
    prompts: list[RankedCapability] = field(default_factory=list)
    total_resources: int = 0
    total_prompts: int = 0
    suggestions: list[str] = field(default_factory=list)

    @property
    def should_use_resources(self) -> bool:
        return self.total_resources > 0

    @property
    def should_use_prompts(self) -> bool:
        return self.total_prompts > 0


class RelevanceScorer(ABC):
    """Interface for scoring capability entries against a query."""

    threshold: float = 0.3

    @abstractmethod
    def score(
        self,
        query: str,
        entry: CapabilityEntry,
        query_type: QueryType | None = None,
    ) -> RelevanceScore:
        """Score one entry against a query."""

    def rank(
        self,
        query: str,
        entries: Sequence[CapabilityEntry],
        query_type: QueryType | None = None,
    ) -> list[RankedCapability]:
        """Return the relevant entries, best first.

        Only entries scoring strictly above ``threshold`` are returned. Ties on
        score are broken by the longer reason text, then by input order.
        """
        scored = [
            (index, RankedCapability(entry=entry, relevance=self.score(query, entry, query_type)))
            for index, entry in enumerate(entries)
        ]
        relevant = [item for item in scored if item[1].relevance.score > self.threshold]
        relevant.sort(
            key=lambda item: (
                -item[1].relevance.score,
                -len(item[1].relevance.reason_text),
                item[0],
            )
        )
        return [ranked for _, ranked in relevant]

    def find_relevant(
        self,
        query: str,
        resources: Sequence[CapabilityEntry],
        prompts: Sequence[CapabilityEntry],
        query_type: QueryType | None = None,
        top_k: int = 5,
    ) -> RelevanceReport:
        """Rank resources and prompts together and build usage suggestions."""
        ranked_resources = self.rank(query, resources, query_type)
        ranked_prompts = self.rank(query, prompts, query_type)
        return RelevanceReport(
            resources=ranked_resources[:top_k],
            prompts=ranked_prompts[:top_k],
            total_resources=len(ranked_resources),
            total_prompts=len(ranked_prompts),
            suggestions=suggestions_for(query, ranked_resources, ranked_prompts),
        )


class KeywordRelevanceScorer(RelevanceScorer):
    """Substring-match relevance heuristic."""

    def __init__(self, threshold: float = 0.3) -> None:
        self.threshold = threshold

    @staticmethod
    def extract_keywords(query: str) -> list[str]:
        """Tokenize a query into keywords, plus any known integration names.

        Order is first occurrence; duplicates are removed.
        """
        lowered = query.lower()
        words = [
            word
            for word in _NON_ALNUM.sub(" ", lowered).split()
            if len(word) > 2 and word not in STOP_WORDS
        ]
        integrations = [name for name in INTEGRATIONS if name in lowered]
        return list(dict.fromkeys(words + integrations))

    def score(
        self,
        query: str,
        entry: CapabilityEntry,
        query_type: QueryType | None = None,
    ) -> RelevanceScore:
        keywords = self.extract_keywords(query)
        if entry.kind == CapabilityKind.PROMPT:
            return self.score_prompt(entry, keywords, query_type)
        return self.score_resource(entry, keywords, query_type)

    def score_resource(
        self,
        entry: CapabilityEntry,
        keywords: Sequence[str],
        query_type: QueryType | None = None,
    ) -> RelevanceScore:
        name = entry.name.lower()
        uri = (entry.uri or "").lower()
        text = f"{name} {uri} {(entry.description or '').lower()}"

        total = 0.0
        reasons = []
        for keyword in keywords:
            if keyword in text:
                total += 0.2
                reasons.append(f"Contains keyword: {keyword}")

        if query_type == QueryType.INFORMATION and (
            entry.mime_type == "text/markdown"
            or any(marker in name or marker in uri for marker in ("doc", "guide"))
        ):
            total += 0.3
            reasons.append("Documentation resource")

        if "config" in uri or "settings" in uri:
            total += 0.2
            reasons.append("Configuration resource")

        if "example" in uri or "template" in uri:
            total += 0.25
            reasons.append("Example/template resource")

        return _finish(total, reasons)

    def score_prompt(
        self,
        entry: CapabilityEntry,
        keywords: Sequence[str],
        query_type: QueryType | None = None,
    ) -> RelevanceScore:
        # Prompts are matched on name and description only, never on a URI.
        text = f"{entry.name} {entry.description or ''}".lower()

        total = 0.0
        reasons = []
        for keyword in keywords:
            if keyword in text:
                total += 0.25
                reasons.append(f"Contains keyword: {keyword}")

        if query_type == QueryType.ANALYSIS and any(m in text for m in ANALYSIS_MARKERS):
            total += 0.4
            reasons.append("Analysis prompt")

        if query_type == QueryType.TASK and any(m in text for m in TASK_MARKERS):
            total += 0.3
            reasons.append("Task execution prompt")

        for integration in INTEGRATIONS:
            if integration in text and integration in keywords:
                total += 0.5
                reasons.append(f"{integration} integration prompt")

        if entry.name in HELP_PROMPTS:
            total += 0.1
            reasons.append("General help prompt")

        return _finish(total, reasons)


def _finish(total: float, reasons: list[str]) -> RelevanceScore:
    # Rounding keeps float drift from crossing the threshold.
    return RelevanceScore(score=round(min(total, 1.0), 4), reasons=reasons)


def suggestions_for(
    query: str,
    resources: Sequence[RankedCapability],
    prompts: Sequence[RankedCapability],
) -> list[str]:
    """Human-readable hints on how to use the relevant capabilities."""
    suggestions = []

    if resources:
        suggestions.append(
            f"Found {len(resources)} relevant resources that might help with your request"
        )
        if any(
            "doc" in r.entry.name.lower()
            or "guide" in r.entry.name.lower()
            or ".md" in (r.entry.uri or "").lower()
            for r in resources
        ):
            suggestions.append("Consider checking the documentation resources first for guidance")

    if prompts:
        suggestions.append(
            f"Found {len(prompts)} relevant prompts that can structure the response"
        )
        if "analyz" in query.lower() and any(
            "analysis" in p.entry.name.lower() for p in prompts
        ):
            suggestions.append("Use an analysis prompt for a comprehensive structured analysis")
        if any(
            "slack" in p.entry.name.lower()
            or "github" in p.entry.name.lower()
            or "integration" in (p.entry.description or "").lower()
            for p in prompts
        ):
            suggestions.append("Integration-specific prompts are available for better results")

    if not resources and not prompts:
        suggestions.append("No directly relevant MCP resources or prompts found")
        suggestions.append("Proceeding with general knowledge and available tools")

    return suggestions
