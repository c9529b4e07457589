#!/usr/bin/env python
"""Local Capabilities Example - in-process tools, resources and prompts.

Exposes a small static capability provider next to (or instead of) MCP
servers and sends one request through the coordinator. The weather agent
picks up ``local_get_forecast`` because its description mentions weather.

Usage:
    OPENAI_API_KEY=... python examples/local_capabilities.py
"""

import asyncio
import sys
from pathlib import Path
from typing import Any

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from omniagent.main import build_application, configure_runtime  # noqa: E402
from omniagent.providers import (  # noqa: E402
    StaticCapabilityProvider,
    StaticPrompt,
    StaticResource,
    StaticTool,
)
from omniagent.utils.config import init_config  # noqa: E402

FORECASTS = {"seoul": "sunny, 21°C", "busan": "light rain, 18°C"}


async def get_forecast(city: str) -> dict[str, Any]:
    return {"city": city, "forecast": FORECASTS.get(city.lower(), "no data")}


def build_local_provider() -> StaticCapabilityProvider:
    return StaticCapabilityProvider(
        "local",
        tools=[
            StaticTool(
                name="get_forecast",
                handler=get_forecast,
                description="Current weather forecast for a city",
                input_schema={
                    "type": "object",
                    "properties": {"city": {"type": "string"}},
                    "required": ["city"],
                },
            )
        ],
        resources=[
            StaticResource(
                uri="file:///docs/travel-policy.md",
                name="travel-policy",
                text="# Travel policy\nBook trains for trips under 400 km.",
                mime_type="text/markdown",
                description="Company travel policy",
            )
        ],
        prompts=[
            StaticPrompt(
                name="trip-brief",
                description="Short travel briefing for a city",
                messages=[("user", "Write a two-line travel brief for {city}.")],
                arguments=["city"],
                required=["city"],
            )
        ],
    )


async def main() -> None:
    config = init_config()
    configure_runtime(config)

    async with build_application(config, providers=[build_local_provider()]) as app:
        result = await app.chat(
            user_id="demo-user",
            message="I'm going to Busan tomorrow. What's the weather and our travel policy?",
        )

    print(f"success: {result.success}")
    print(f"agents:  {', '.join(result.agents_used)}")
    print(f"time:    {result.execution_time:.2f}s")
    print()
    print(result.response)


if __name__ == "__main__":
    asyncio.run(main())
