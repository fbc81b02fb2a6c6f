"""CLI - interactive terminal client for CareerOS."""

from __future__ import annotations

import asyncio
import mimetypes
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from careeros.core.config import DEFAULT_CONFIG_PATH, CareerConfig, load_config
from careeros.core.context import CareerSession
from careeros.core.conversation import ConversationTurn, TurnRole
from careeros.core.orchestrator import ChainResult, SessionBusyError
from careeros.core.state import AppView, view_label
from careeros.core.transport import Attachment
from careeros.domain.prompts import DEFAULT_RESUME_STYLE, SERVICE_ERROR_TEXT
from careeros.providers import create_provider
from careeros.providers.base import ChatProvider

console = Console()

COMMANDS = ["/help", "/quit", "/view", "/state", "/reset", "/attach", "/job", "/resume", "/profile"]


@dataclass
class CliContext:
    config: CareerConfig
    provider: ChatProvider
    session: CareerSession
    verbose: bool = False

    def new_session(self) -> None:
        self.session = CareerSession.create(self.config, self.provider, verbose=self.verbose)


def print_banner():
    banner = """
╔═══════════════════════════════════════════════════════════╗
║                        CareerOS                           ║
║     Job post in, tailored application artifacts out       ║
╠═══════════════════════════════════════════════════════════╣
║  /help  - Show all commands       /quit - Exit            ║
╚═══════════════════════════════════════════════════════════╝
"""
    console.print(banner, style="cyan")


def print_help():
    help_text = """
## Available Commands

| Command | Description |
|---------|-------------|
| `/help` | Show this help message |
| `/view <name>` | Switch view (dashboard, resume, roadmap, ats, projects, interview, profile) |
| `/state` | Show the active view and every generated artifact |
| `/reset` | Start a fresh session (conversation, artifacts, ATS retry budget) |
| `/attach <path> <message>` | Send a message with a file attached |
| `/job <path>` | Analyze a job post screenshot |
| `/resume [style] [reference]` | Generate a resume from your profile, optionally mimicking a reference |
| `/profile` | Show where your profile is stored and whether it is complete |
| `/quit` | Exit |

Anything else is sent to the assistant.
"""
    console.print(Markdown(help_text))


def load_attachment(path: str) -> Attachment:
    file_path = Path(path).expanduser()
    mime_type, _ = mimetypes.guess_type(file_path.name)
    return Attachment(
        data=file_path.read_bytes(),
        mime_type=mime_type or "application/octet-stream",
        name=file_path.name,
    )


def print_turns(turns: Iterable[ConversationTurn]):
    for turn in turns:
        if turn.role != TurnRole.ASSISTANT or not turn.visible:
            continue
        style = "red" if turn.text == SERVICE_ERROR_TEXT else "green"
        console.print(Panel(Markdown(turn.text), title="CareerOS", border_style=style))


def print_result(session: CareerSession, result: Optional[ChainResult]):
    if result is not None:
        print_turns(result.turns)
        if result.truncated:
            console.print("⚠️ Stopped a runaway chain of automatic follow-ups.", style="yellow")
    console.print(f"[dim]view: {view_label(session.state.active_view)}[/dim]")


def print_state(session: CareerSession):
    state = session.state
    table = Table(title=f"Session {session.session_id}")
    table.add_column("Item", style="cyan")
    table.add_column("Value")

    table.add_row("View", view_label(state.active_view))
    table.add_row("Optimizing", "yes" if session.policy.is_optimizing else "no")
    table.add_row("Job", f"{state.job.title} @ {state.job.company}" if state.job else "-")
    table.add_row("Resume", state.resume.personal_info.name or "generated" if state.resume else "-")
    table.add_row("Roadmap", f"{len(state.roadmap.steps)} steps" if state.roadmap else "-")
    table.add_row("ATS", f"{state.ats.score:g}%" if state.ats else "-")
    table.add_row("Interview", f"{len(state.interview.questions)} questions" if state.interview else "-")
    table.add_row("Deck", f"{len(state.deck.slides)} slides" if state.deck else "-")
    stats = session.observer.get_session_stats()
    table.add_row("Model turns", str(stats["model_turns"]))
    table.add_row("Tokens", str(stats["total_tokens"]))
    console.print(table)


async def handle_command(command: str, ctx: CliContext) -> bool:
    """Handle special commands. Returns True if should continue, False to exit."""
    try:
        parts = shlex.split(command)
    except ValueError as e:
        console.print(f"❌ {e}", style="red")
        return True
    cmd, args = parts[0].lower(), parts[1:]
    session = ctx.session

    if cmd in ["/quit", "/exit", "/q"]:
        console.print("\n👋 Goodbye!", style="yellow")
        return False

    elif cmd == "/help":
        print_help()

    elif cmd == "/view":
        if not args:
            console.print("Usage: /view <name>", style="yellow")
            return True
        try:
            view = AppView(args[0].lower())
        except ValueError:
            console.print(f"Unknown view '{args[0]}'. Choose from: {', '.join(v.value for v in AppView)}", style="yellow")
            return True
        session.orchestrator.navigate(view)
        console.print(f"→ {view_label(session.state.active_view)}", style="green")

    elif cmd == "/state":
        print_state(session)

    elif cmd == "/reset":
        await session.close()
        ctx.new_session()
        console.print("🔄 Session reset.", style="green")

    elif cmd == "/attach":
        if not args:
            console.print("Usage: /attach <path> <message>", style="yellow")
            return True
        attachment = load_attachment(args[0])
        result = await session.orchestrator.send_message(" ".join(args[1:]), attachment=attachment)
        print_result(session, result)

    elif cmd == "/job":
        if not args:
            console.print("Usage: /job <path>", style="yellow")
            return True
        result = await session.orchestrator.analyze_job_post(load_attachment(args[0]))
        print_result(session, result)

    elif cmd == "/resume":
        style = args[0] if args else DEFAULT_RESUME_STYLE
        reference = load_attachment(args[1]) if len(args) > 1 else None
        result = await session.orchestrator.generate_resume(session.profile, reference=reference, style=style)
        if result is None:
            console.print(
                f"⚠️ Add your name to the profile first ({session.lifecycle.store.path}).", style="yellow"
            )
        print_result(session, result)

    elif cmd == "/profile":
        status = "complete" if session.lifecycle.is_complete() else "incomplete"
        console.print(f"Profile: {session.lifecycle.store.path} ({status})")

    else:
        console.print(f"Unknown command: {cmd}. Type /help for commands.", style="yellow")

    return True


async def run_interactive(ctx: CliContext):
    """Run interactive chat loop."""
    history_file = Path.home() / ".careeros_history"
    prompt_session = PromptSession(
        history=FileHistory(str(history_file)),
        completer=WordCompleter(COMMANDS, sentence=True),
        complete_while_typing=False,
    )

    print_banner()

    try:
        while True:
            try:
                user_input = await prompt_session.prompt_async("\n📝 You: ")
                user_input = user_input.strip()
                if not user_input:
                    continue

                if user_input.startswith("/"):
                    if not await handle_command(user_input, ctx):
                        break
                    continue

                console.print("\n🤔 Thinking...", style="dim")
                result = await ctx.session.orchestrator.send_message(user_input)
                print_result(ctx.session, result)
            except (OSError, ValueError, SessionBusyError) as e:
                console.print(f"\n❌ Error: {str(e)}", style="red")
            except KeyboardInterrupt:
                console.print("\n⚠️ Interrupted.", style="yellow")
            except EOFError:
                console.print("\n👋 Goodbye!", style="yellow")
                break
    finally:
        await ctx.session.close()


def main():
    """Main entry point."""
    import argparse

    from dotenv import load_dotenv

    load_dotenv()

    parser = argparse.ArgumentParser(description="CareerOS - turn a job post into a tailored application")
    parser.add_argument(
        "--config",
        "-c",
        default=DEFAULT_CONFIG_PATH,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--prompt",
        "-p",
        help="Run a single prompt and exit (non-interactive mode)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Verbose output (log model turns and tool dispatches)",
    )
    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except FileNotFoundError:
        console.print(f"⚠️ Config file not found: {args.config}", style="yellow")
        console.print("Using default configuration. Set GEMINI_API_KEY environment variable.", style="dim")
        config = CareerConfig()

    try:
        provider = create_provider(
            config.provider,
            config.api_key,
            config.model,
            search_grounding=config.search_grounding,
            image_model=config.image_model,
        )
    except ValueError as e:
        console.print(f"❌ {e}", style="red")
        console.print(
            "💡 Quick fix: export GEMINI_API_KEY=your_key_here\n"
            "   Or copy config/config.yaml → config/config.local.yaml and set api_key",
            style="dim",
        )
        return 1

    ctx = CliContext(
        config=config,
        provider=provider,
        session=CareerSession.create(config, provider, verbose=args.verbose),
        verbose=args.verbose,
    )

    if args.prompt:

        async def run_once():
            try:
                result = await ctx.session.orchestrator.send_message(args.prompt)
                print_result(ctx.session, result)
            finally:
                await ctx.session.close()

        asyncio.run(run_once())
    else:
        asyncio.run(run_interactive(ctx))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
