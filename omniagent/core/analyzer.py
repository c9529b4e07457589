"""Task Analyzer - Size the step budget for an incoming request.

The analysis is advisory: it only decides how many steps the orchestrator
agent gets and which sub-agents are plausibly involved. The orchestrator may
still call any tool or sub-agent it sees fit.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from omniagent.models import Complexity, TaskAnalysis


@dataclass(frozen=True)
class Domain:
    """A sub-agent domain detected by keyword."""

    agent_id: str
    keywords: tuple[str, ...]
    intent: str | None = None


# Ordered by intent priority: the first detected domain with an intent names
# it. Weather requests bring in the weather agent but keep the default intent.
DEFAULT_DOMAINS: tuple[Domain, ...] = (
    Domain("email_agent", ("email", "send", "reply"), "email management"),
    Domain("calendar_agent", ("meeting", "schedule", "calendar"), "scheduling"),
    Domain("web_search_agent", ("search", "find", "research"), "information retrieval"),
    Domain("weather_agent", ("weather", "forecast")),
)

DEFAULT_INTENT = "general assistance"

APPROACHES = {
    Complexity.COMPLEX: "Break down into subtasks and coordinate multiple agents",
    Complexity.MODERATE: "Delegate to specialized agents with coordination",
    Complexity.SIMPLE: "Direct execution by primary agent",
}

_AND = re.compile(r"\band\b")


class TaskAnalyzer:
    """Keyword-based classifier producing a ``TaskAnalysis``."""

    def __init__(
        self,
        main_agent_id: str = "main_agent",
        domains: tuple[Domain, ...] = DEFAULT_DOMAINS,
    ) -> None:
        self.main_agent_id = main_agent_id
        self.domains = domains

    def analyze(self, message: str) -> TaskAnalysis:
        lowered = message.lower()
        detected = [
            domain
            for domain in self.domains
            if any(keyword in lowered for keyword in domain.keywords)
        ]
        required = [self.main_agent_id] + [domain.agent_id for domain in detected]
        agent_count = len(set(required))

        word_count = len(message.split())
        conjunctions = len(_AND.findall(lowered))

        if agent_count > 3 or conjunctions > 1 or word_count > 50:
            complexity = Complexity.COMPLEX
        elif agent_count > 1 or word_count > 20:
            complexity = Complexity.MODERATE
        else:
            complexity = Complexity.SIMPLE

        return TaskAnalysis(
            primary_intent=next(
                (domain.intent for domain in detected if domain.intent), DEFAULT_INTENT
            ),
            required_agents=required,
            complexity=complexity,
            estimated_steps=max(3, agent_count * 2),
            suggested_approach=APPROACHES[complexity],
        )
