"""find_relevant_capabilities - Surface resources and prompts worth using."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from omniagent.models import QueryType
from omniagent.tools.base import Capability, RunContext

if TYPE_CHECKING:
    from omniagent.core.capabilities import CapabilityRegistry
    from omniagent.core.relevance import RelevanceScorer


class FindRelevantArgs(BaseModel):
    user_query: str = Field(..., min_length=1, description="The user's original query or request")
    query_type: QueryType | None = Field(
        default=None, description="Type of query to help narrow search"
    )

    model_config = {"extra": "forbid"}


class FindRelevantCapability(Capability):
    """Scores every registered resource and prompt against the user query."""

    name = "find_relevant_capabilities"
    description = (
        "Find resources and prompts from connected capability servers that are "
        "relevant to the user's request. Use this at the start of handling a request."
    )
    args_model = FindRelevantArgs

    def __init__(
        self, registry: CapabilityRegistry, scorer: RelevanceScorer, top_k: int = 5
    ) -> None:
        self._registry = registry
        self._scorer = scorer
        self._top_k = top_k

    async def run(self, args: FindRelevantArgs, run_context: RunContext) -> dict[str, Any]:
        report = self._scorer.find_relevant(
            args.user_query,
            self._registry.list_resources(),
            self._registry.list_prompts(),
            query_type=args.query_type,
            top_k=self._top_k,
        )
        return {
            "relevant_resources": [
                {
                    "server": ranked.entry.provider_id,
                    "name": ranked.entry.name,
                    "uri": ranked.entry.uri,
                    "score": ranked.relevance.score,
                    "relevance_reason": ranked.relevance.reason_text,
                }
                for ranked in report.resources
            ],
            "relevant_prompts": [
                {
                    "server": ranked.entry.provider_id,
                    "name": ranked.entry.name,
                    "description": ranked.entry.description,
                    "score": ranked.relevance.score,
                    "relevance_reason": ranked.relevance.reason_text,
                }
                for ranked in report.prompts
            ],
            "suggestions": report.suggestions,
            "should_use_resources": report.should_use_resources,
            "should_use_prompts": report.should_use_prompts,
        }
