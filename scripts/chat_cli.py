#!/usr/bin/env python3
"""Interactive console for chatting with the ReAct agent."""

import argparse
import os
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt

from react_agent.clients.anthropic import AnthropicClient
from react_agent.exceptions import MaxIterationsError
from react_agent.models.agent import AgentConfig
from react_agent.services.agent import ReActAgent
from react_agent.tools import ToolsRegistry
from react_agent.utils.logging import setup_logging

DEFAULT_STATE_FILE = "agent_state.json"

CHAT_PROMPT = """You are a helpful AI assistant with access to various tools.
When you need to perform calculations, get weather information, check the time,
or search for information, use the appropriate tools available to you.
Always explain your reasoning and the results clearly to the user."""

EVAL_ONLY_PROMPT = """You are a helpful AI assistant. You have access to an "eval" tool that runs Python 3 code.

The eval tool is your ONLY way to interact with external capabilities.
All tool functionality must be accessed by writing Python code that calls wrapper functions.

AVAILABLE TOOL FUNCTIONS:
When you use the "eval" tool, the following functions are already defined:

```python
{library}
```

Each function returns the tool result as a dict. Print what you want to see:

```python
weather = get_weather(location="London", unit="celsius")
fahrenheit = calculator(operation="multiply", a=weather["temperature"], b=9 / 5)
converted = calculator(operation="add", a=fahrenheit["result"], b=32)
print(f"{{weather['location']}}: {{weather['temperature']}}C = {{converted['result']}}F")
```

GUIDELINES:
1. Always use the eval tool for any computation or external data
2. Use print() to output results you want to see
3. Handle potential errors in your code; failed tool calls raise ToolCallError
4. Store important user information in memory for future conversations

You have a maximum of {max_iterations} iterations, so accomplish tasks in as few eval calls as possible."""


class ChatCLI:
    """Interactive chat interface around a ReActAgent."""

    def __init__(self, agent: ReActAgent, registry: ToolsRegistry, model: str):
        """Initialize chat CLI."""
        self.agent = agent
        self.registry = registry
        self.model = model
        self.console = Console()

    def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]ReAct Agent - Interactive Console[/bold blue]\n"
                f"Model: {self.model}\n"
                f"Tools: {', '.join(self.registry.get_tool_names())}\n"
                "Commands: :help, :tools, :messages, :clear, :verbose, :quit",
                border_style="blue",
            )
        )

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]").strip()

                if not user_input:
                    continue
                if user_input.startswith(":"):
                    if not self.handle_command(user_input):
                        break
                    continue

                self._send_message(user_input)

        except (KeyboardInterrupt, EOFError):
            pass
        finally:
            self.console.print("\n[yellow]Goodbye![/yellow]")

    def handle_command(self, command: str) -> bool:
        """Run a console command. Returns False when the session should end."""
        match command.lower():
            case ":quit" | ":exit":
                return False
            case ":help":
                self._show_help()
            case ":tools":
                self._show_tools()
            case ":messages":
                self._show_messages()
            case ":clear":
                self.agent.reset()
                self.console.print("[yellow]Conversation history cleared[/yellow]")
            case ":verbose":
                self.agent.set_verbose(not self.agent.config.verbose)
                state = "enabled" if self.agent.config.verbose else "disabled"
                self.console.print(f"[yellow]Verbose mode {state}[/yellow]")
            case _:
                self.console.print(f"[red]Unknown command: {command}[/red]")
        return True

    def _send_message(self, message: str) -> None:
        client = self.agent.client
        if isinstance(client, AnthropicClient):
            try:
                client.validate_message_tokens(message)
            except ValueError as e:
                self.console.print(f"[red]{e}[/red]")
                return

        try:
            with self.console.status("[dim]Thinking...[/dim]"):
                response = self.agent.run(message)
        except MaxIterationsError as e:
            self.console.print(f"[red]{e}[/red]")
            return
        except Exception as e:
            self.console.print(f"[red]Error: {e}[/red]")
            return

        self.console.print(
            Panel(
                Markdown(response or "_(empty response)_"),
                title="[bold green]Assistant[/bold green]",
                border_style="green",
                padding=(1, 2),
            )
        )

    def _show_tools(self) -> None:
        descriptions = "".join(tool.describe() for tool in self.registry.tools())
        self.console.print(Panel(descriptions.rstrip(), title="[cyan]Available Tools[/cyan]", border_style="cyan"))

    def _show_messages(self) -> None:
        messages = self.agent.messages
        if not messages:
            self.console.print("[dim]No messages in conversation history.[/dim]")
            return

        for index, message in enumerate(messages, start=1):
            self.console.print(Panel(message.format().rstrip(), title=f"Message {index}", border_style="dim"))

    def _show_help(self) -> None:
        help_text = """
[bold]Available Commands:[/bold]
• :help - Show this help message
• :tools - List available tools and their parameters
• :messages - Print the conversation history
• :clear - Clear conversation history (memory is kept)
• :verbose - Toggle logging of tool calls
• :quit or :exit - Exit the console
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--eval-only",
        action="store_true",
        help="Expose only the eval tool; other tools are called from generated code",
    )
    parser.add_argument(
        "--state-file",
        type=Path,
        default=Path(os.getenv("AGENT_STATE_FILE", DEFAULT_STATE_FILE)),
        help="Where agent memory is persisted (default: $AGENT_STATE_FILE or agent_state.json)",
    )
    parser.add_argument("--max-iterations", type=int, default=10)
    parser.add_argument("--verbose", action="store_true", help="Log tool calls")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the chat CLI."""
    args = parse_args(argv)
    setup_logging()

    registry = ToolsRegistry(eval_only=args.eval_only)
    if args.eval_only:
        system_prompt = EVAL_ONLY_PROMPT.format(library=registry.tool_library(), max_iterations=args.max_iterations)
    else:
        system_prompt = CHAT_PROMPT

    config = AgentConfig(
        system_prompt=system_prompt,
        max_iterations=args.max_iterations,
        state_file_path=args.state_file,
        verbose=args.verbose,
    )
    client = AnthropicClient()

    with ReActAgent(client, registry.tools(), config) as agent:
        ChatCLI(agent, registry, client.config.model).start()


if __name__ == "__main__":
    main()
