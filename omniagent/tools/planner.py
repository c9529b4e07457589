"""plan_task - Turn a request into an ordered, agent-assigned plan."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from omniagent.models import Complexity, Priority
from omniagent.tools.base import Capability, RunContext

if TYPE_CHECKING:
    from omniagent.core.analyzer import TaskAnalyzer

# (action, estimated time) pairs per sub-agent. The second step of a domain
# depends on its first.
STEP_TEMPLATES: dict[str, tuple[tuple[str, str], ...]] = {
    "email_agent": (
        ("Search for relevant emails or contacts", "1-2 minutes"),
        ("Compose or prepare email content", "2-5 minutes"),
    ),
    "calendar_agent": (
        ("Check calendar availability", "1 minute"),
        ("Create or update calendar event", "2 minutes"),
    ),
    "web_search_agent": (
        ("Search web for relevant information", "2-3 minutes"),
        ("Synthesize and summarize findings", "1-2 minutes"),
    ),
    "weather_agent": (("Look up the forecast for the requested place and time", "1 minute"),),
}

RISKS: dict[str, tuple[str, ...]] = {
    "email_agent": (
        "Email delivery might be delayed",
        "Recipient contact information might be outdated",
    ),
    "calendar_agent": (
        "Scheduling conflicts might arise",
        "Time zone differences need consideration",
    ),
}
COMPLEX_RISKS = (
    "Task might require user input at multiple steps",
    "Some sub-tasks might fail and need alternatives",
)

ALTERNATIVES: dict[str, tuple[str, ...]] = {
    "email_agent": (
        "Use instant messaging for urgent communications",
        "Schedule a call instead of lengthy email exchanges",
    ),
    "calendar_agent": (
        "Use scheduling polls for group meetings",
        "Consider asynchronous communication for updates",
    ),
}

_MINUTES = re.compile(r"\d+")


class PlanTaskArgs(BaseModel):
    task_description: str = Field(..., min_length=1, description="Description of the task to plan")
    deadline: str | None = Field(default=None, description="When the task needs to be completed")
    priority: Priority = Field(default=Priority.MEDIUM, description="Priority of the task")

    model_config = {"extra": "forbid"}


def estimate_duration(times: list[str]) -> str:
    total = 0
    for text in times:
        match = _MINUTES.search(text)
        total += int(match.group()) if match else 2
    if total < 5:
        return "Less than 5 minutes"
    if total < 15:
        return "5-15 minutes"
    if total < 30:
        return "15-30 minutes"
    return "More than 30 minutes"


class PlanTaskCapability(Capability):
    """Builds a step-by-step plan from the task analyzer's domain detection."""

    name = "plan_task"
    description = (
        "Create a structured plan for a complex multi-step task, naming the agent "
        "that should handle each step."
    )
    args_model = PlanTaskArgs

    def __init__(self, analyzer: TaskAnalyzer) -> None:
        self._analyzer = analyzer

    async def run(self, args: PlanTaskArgs, run_context: RunContext) -> dict[str, Any]:
        analysis = self._analyzer.analyze(args.task_description)
        main_agent = self._analyzer.main_agent_id
        sub_agents = [a for a in analysis.required_agents if a != main_agent]

        steps: list[dict[str, Any]] = []
        for agent_id in sub_agents:
            first = None
            for action, estimate in STEP_TEMPLATES.get(agent_id, ()):
                order = len(steps) + 1
                steps.append({
                    "order": order,
                    "action": action,
                    "agent": agent_id,
                    "dependencies": [first] if first else [],
                    "estimated_time": estimate,
                })
                first = first or order

        if analysis.complexity != Complexity.SIMPLE and len(steps) > 2:
            steps.append({
                "order": len(steps) + 1,
                "action": "Coordinate results and prepare final output",
                "agent": main_agent,
                "dependencies": [step["order"] for step in steps],
                "estimated_time": "2 minutes",
                "notes": "Combine all previous results",
            })
        if not steps:
            steps.append({
                "order": 1,
                "action": "Process request and provide response",
                "agent": main_agent,
                "dependencies": [],
                "estimated_time": "1-3 minutes",
            })

        risks = [risk for agent_id in sub_agents for risk in RISKS.get(agent_id, ())]
        if analysis.complexity == Complexity.COMPLEX:
            risks.extend(COMPLEX_RISKS)

        title = " ".join(word.capitalize() for word in args.task_description.split()[:5])
        return {
            "plan": {
                "title": title,
                "overview": f"Plan to {args.task_description.lower()}",
                "priority": args.priority.value,
                "deadline": args.deadline,
                "complexity": analysis.complexity.value,
                "estimated_duration": estimate_duration(
                    [step["estimated_time"] for step in steps]
                ),
                "steps": steps,
                "risks": risks,
                "alternatives": [
                    alt for agent_id in sub_agents for alt in ALTERNATIVES.get(agent_id, ())
                ],
            }
        }
