"""Interactive chat runner for the chatflow CLI.

Plays the contact's side of a conversation against a single graph file:
messages the graph sends are printed, and every line typed becomes the
``user_message`` of the next turn.
"""

import uuid
from contextlib import AsyncExitStack
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.prompt import Prompt

from chatflow.config.loader import ConfigLoader
from chatflow.config.models import EngineConfig
from chatflow.core.state import Contact, Execution
from chatflow.graph.loader import GraphLoader
from chatflow.graph.models import GraphDefinition
from chatflow.persistence.memory import InMemoryGraphStore
from chatflow.runtime.bootstrap import ChatflowRuntime, open_runtime
from chatflow.runtime.engine import TurnResult

EXIT_COMMANDS = ("quit", "exit", "q", "/quit", "/exit")


class ConsoleChannel:
    """Channel that prints to rich console."""

    def __init__(self, console: Console):
        self.console = console
        self.sent = 0

    async def send(self, destination: str, text: str) -> bool:
        self.sent += 1
        self.console.print(f"[bold blue]Bot > [/]{text}\n")
        return True


@dataclass
class ChatConfig:
    """Configuration for chat runner."""

    graph_path: Path
    config_path: Path | None = None
    contact_name: str | None = None
    contact_phone: str = "+5500000000000"
    debug: bool = False


class ChatRunner:
    """Interactive chat session runner.

    Encapsulates the setup, execution, and cleanup of an
    interactive chat session with the chatflow runtime.
    """

    def __init__(self, config: ChatConfig, console: Console | None = None):
        self.config = config
        self.console = console or Console()
        self.channel = ConsoleChannel(self.console)
        self.graph: GraphDefinition | None = None
        self.runtime: ChatflowRuntime | None = None
        self.execution: Execution | None = None
        self._stack = AsyncExitStack()

    async def setup(self) -> None:
        """Load the graph and open a runtime around it."""
        from dotenv import load_dotenv

        load_dotenv()

        engine_config = (
            ConfigLoader.load(self.config.config_path)
            if self.config.config_path
            else EngineConfig()
        )
        self.graph = GraphLoader.load(self.config.graph_path)
        self.runtime = await self._stack.enter_async_context(
            open_runtime(
                engine_config,
                channel=self.channel,
                graphs=InMemoryGraphStore([self.graph]),
            )
        )

    async def begin(self) -> TurnResult:
        """Create the execution and run its first turn."""
        if self.runtime is None or self.graph is None:
            raise RuntimeError("ChatRunner not initialized. Use 'async with' context.")

        session = uuid.uuid4().hex[:6]
        self.execution = await self.runtime.service.start_execution(
            graph_id=self.graph.id,
            company_id=self.graph.company_id,
            conversation_id=f"cli_{session}",
            contact=Contact(
                id=f"contact_{session}",
                name=self.config.contact_name,
                phone=self.config.contact_phone,
            ),
            destination=self.config.contact_phone,
            version=self.graph.version,
        )
        return await self.turn(None)

    async def turn(self, user_message: str | None) -> TurnResult:
        if self.runtime is None or self.execution is None:
            raise RuntimeError("Chat session has not begun")
        result = await self.runtime.engine.process_turn(
            self.execution.id, user_message=user_message, company_id=self.execution.company_id
        )
        self.execution = result.execution
        if self.config.debug:
            self.console.print(
                f"[dim]status={result.status.value} node={result.current_node_id} "
                f"steps={result.steps}[/]"
            )
        return result

    async def start(self) -> None:
        """Start the interactive session."""
        if self.runtime is None:
            await self.setup()

        assert self.graph is not None
        title = self.graph.name or self.graph.id
        self.console.print(f"[bold blue]{title}[/] v{self.graph.version}")
        self.console.print("Type 'exit' or 'quit' to end session.\n")

        result = await self.begin()
        while result.execution.is_active:
            try:
                user_input = Prompt.ask("[bold green]You[/]", console=self.console)
            except (KeyboardInterrupt, EOFError):
                break

            if self._is_exit_command(user_input):
                break
            result = await self.turn(user_input)

        self._report_end(result)

    def _report_end(self, result: TurnResult) -> None:
        execution = result.execution
        if execution.is_active:
            self.console.print("\n[yellow]Goodbye![/]")
        elif execution.failure_reason:
            self.console.print(f"[red]Flow failed: {execution.failure_reason}[/]")
        else:
            self.console.print(f"[yellow]Flow ended: {execution.status.value}[/]")

    def _is_exit_command(self, user_input: str) -> bool:
        """Check if input is an exit command."""
        return user_input.strip().lower() in EXIT_COMMANDS

    async def cleanup(self) -> None:
        """Clean up resources."""
        await self._stack.aclose()
        self.runtime = None

    async def __aenter__(self) -> "ChatRunner":
        """Async context manager entry."""
        await self.setup()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.cleanup()


async def run_chat_session(config: ChatConfig) -> None:
    """Run an interactive chat session.

    Args:
        config: Chat configuration
    """
    async with ChatRunner(config) as runner:
        await runner.start()
