#!/usr/bin/env python
"""Interactive chat loop.

Usage:
    python scripts/run_chat.py [--config PATH] [--user USER_ID] [--thread THREAD_ID]

Commands inside the loop:
    /history   Show the last messages of the current thread
    /clear     Clear the current thread
    /new       Start a new thread
    /quit      Exit
"""

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from omniagent.main import build_application, configure_runtime  # noqa: E402
from omniagent.utils.config import init_config  # noqa: E402

console = Console()


async def chat_loop(config_path: Path, user_id: str, thread: str | None) -> None:
    config = init_config(yaml_path=config_path if config_path.exists() else None)
    configure_runtime(config)

    async with build_application(config) as app:
        console.print(
            Panel(
                f"{config.app.name} {config.app.version}\n"
                f"agents: {', '.join(agent.agent_id for agent in app.agents) or 'none'}",
                title="OmniAgent",
            )
        )
        while True:
            try:
                message = await asyncio.to_thread(console.input, "[bold cyan]you> [/]")
            except (EOFError, KeyboardInterrupt):
                break

            message = message.strip()
            if not message:
                continue
            if message == "/quit":
                break
            if message == "/new":
                thread = None
                console.print("[dim]new thread[/]")
                continue
            if message == "/history":
                for item in await app.coordinator.get_conversation_history(user_id, thread):
                    console.print(f"[dim]{item.role.value}:[/] {item.content}")
                continue
            if message == "/clear":
                cleared = await app.coordinator.clear_conversation_history(user_id, thread)
                console.print("[dim]cleared[/]" if cleared else "[red]clear failed[/]")
                continue

            with console.status("thinking..."):
                result = await app.chat(user_id, message, thread=thread)
            thread = result.thread or thread

            style = "green" if result.success else "red"
            console.print(
                Panel(
                    Markdown(result.response),
                    title=", ".join(result.agents_used) or "omniagent",
                    subtitle=f"{result.execution_time:.2f}s",
                    border_style=style,
                )
            )


def main() -> None:
    """Run the interactive chat loop."""
    parser = argparse.ArgumentParser(description="Chat with OmniAgent")
    parser.add_argument(
        "--config",
        type=Path,
        default=project_root / "configs" / "app.yaml",
        help="Path to app.yaml (default: configs/app.yaml)",
    )
    parser.add_argument("--user", default="local-user", help="User id")
    parser.add_argument("--thread", default=None, help="Existing thread id")
    args = parser.parse_args()

    asyncio.run(chat_loop(args.config, args.user, args.thread))


if __name__ == "__main__":
    main()
