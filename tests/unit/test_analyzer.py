"""Task analyzer unit tests."""

import pytest

from omniagent.core.analyzer import APPROACHES, DEFAULT_INTENT, Domain, TaskAnalyzer
from omniagent.models import Complexity


@pytest.fixture
def analyzer() -> TaskAnalyzer:
    return TaskAnalyzer()


class TestTaskAnalyzer:
    """Test TaskAnalyzer class."""

    def test_research_and_schedule_request(self, analyzer):
        analysis = analyzer.analyze(
            "Find information about productivity tips and schedule a workshop "
            "about it next week"
        )

        assert {"web_search_agent", "calendar_agent"} <= set(analysis.required_agents)
        assert analysis.complexity in (Complexity.MODERATE, Complexity.COMPLEX)
        assert analysis.estimated_steps >= 4

    def test_simple_greeting(self, analyzer):
        analysis = analyzer.analyze("Hello there")

        assert analysis.primary_intent == DEFAULT_INTENT
        assert analysis.required_agents == ["main_agent"]
        assert analysis.complexity == Complexity.SIMPLE
        assert analysis.estimated_steps == 3
        assert analysis.suggested_approach == APPROACHES[Complexity.SIMPLE]

    def test_intent_follows_domain_priority(self, analyzer):
        analysis = analyzer.analyze("What's the weather forecast, and email it to Bob")

        assert analysis.primary_intent == "email management"
        assert analysis.required_agents == ["main_agent", "email_agent", "weather_agent"]

    def test_many_domains_is_complex(self, analyzer):
        analysis = analyzer.analyze("Email the weather forecast to the meeting attendees")

        assert analysis.complexity == Complexity.COMPLEX
        assert analysis.estimated_steps == 8

    def test_multiple_conjunctions_is_complex(self, analyzer):
        analysis = analyzer.analyze("Tidy up and sort and label things")

        assert analysis.complexity == Complexity.COMPLEX

    def test_long_message_is_moderate(self, analyzer):
        message = " ".join(["word"] * 21)

        analysis = analyzer.analyze(message)

        assert analysis.complexity == Complexity.MODERATE

    def test_estimated_steps_grow_with_agents(self, analyzer):
        messages = [
            "Hello",
            "Send a note",
            "Send a note about the meeting",
            "Send a note about the meeting weather research",
        ]

        steps = [analyzer.analyze(message).estimated_steps for message in messages]

        assert steps == sorted(steps)
        assert all(step >= 1 for step in steps)

    def test_required_agents_have_no_duplicates(self, analyzer):
        analysis = analyzer.analyze("email email email send reply")

        assert analysis.required_agents == ["main_agent", "email_agent"]

    def test_custom_domains_and_main_agent(self):
        analyzer = TaskAnalyzer(
            main_agent_id="orchestrator",
            domains=(Domain("project_agent", ("project", "ticket"), "project management"),),
        )

        analysis = analyzer.analyze("Open a ticket")

        assert analysis.required_agents == ["orchestrator", "project_agent"]
        assert analysis.primary_intent == "project management"

    def test_weather_only_keeps_default_intent(self, analyzer):
        analysis = analyzer.analyze("What's the forecast for Busan?")

        assert analysis.required_agents == ["main_agent", "weather_agent"]
        assert analysis.primary_intent == DEFAULT_INTENT
