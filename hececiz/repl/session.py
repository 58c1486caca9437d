#!/usr/bin/env python3
"""
Interactive terminal practice session.

The learner hears a syllable, draws it with 'draw' strokes and asks for
a 'check'. Verdicts, delayed turn changes and notices arrive as session
events and are printed above the prompt.
"""

import asyncio
from pathlib import Path
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_config_dir
from ..practice import EventKind, FeedbackState, PracticeSession, SessionEvent, Snapshot, Tool
from .commands import get_command_help, parse_points

PREVIEW_RAMP = ' .:-=+*#%@'


def ascii_preview(snapshot: Snapshot, columns: int = 48) -> str:
    """Coarse character rendering of a snapshot, darker pixels to denser glyphs"""
    image = snapshot.to_image().convert('L')
    # Terminal cells are roughly twice as tall as wide
    rows = max(1, round(image.height * columns / image.width / 2))
    small = image.resize((columns, rows))
    pixels = list(small.getdata())

    steps = len(PREVIEW_RAMP) - 1
    lines = []
    for r in range(rows):
        row = pixels[r * columns:(r + 1) * columns]
        lines.append(''.join(PREVIEW_RAMP[round((255 - p) / 255 * steps)] for p in row).rstrip())
    return '\n'.join(lines)


class PracticeREPL:
    """Terminal front end for one PracticeSession"""

    def __init__(self, session: PracticeSession, console: Optional[Console] = None,
                 prompt_session: Optional[PromptSession] = None):
        self.console = console or Console()
        self.session = session
        self.session.subscribe(self._on_event)
        self._turns = 0
        self.prompt_session = prompt_session

    def _create_prompt_session(self) -> PromptSession:
        history_path = get_config_dir() / 'repl_history'
        return PromptSession(
            history=FileHistory(str(history_path)),
            auto_suggest=AutoSuggestFromHistory(),
        )

    def run(self):
        """Blocking entry point"""
        asyncio.run(self.run_async())

    async def run_async(self):
        """Main REPL loop"""
        if self.prompt_session is None:
            self.prompt_session = self._create_prompt_session()
        self._print_welcome()
        self.session.start()

        try:
            while True:
                try:
                    with patch_stdout():
                        user_input = await self.prompt_session.prompt_async(self._get_prompt())

                    if not user_input.strip():
                        continue

                    result = await self._process_command(user_input.strip())
                    if result == 'exit':
                        break

                except KeyboardInterrupt:
                    self.console.print("\n[dim]Use 'exit' to quit[/dim]")
                except EOFError:
                    break
                except Exception as e:
                    self.console.print(f"[red]Error: {e}[/red]")
        finally:
            self.session.close()
            self._print_summary()

    def _print_welcome(self):
        welcome = """
[bold blue]Hece Ciz[/bold blue] - Syllable Handwriting Coach

Listen to the syllable, draw it, then check your writing.

[dim]Commands: draw, pen, eraser, clear, hint, listen, check, skip, help
Type 'help' for all commands or 'help <cmd>' for details.[/dim]
"""
        self.console.print(Panel(welcome, border_style="blue"))

        if not self.session.gateway.is_available():
            self.console.print("[yellow]Note: No classifier configured; every check will fail. "
                               "Run 'hececiz --setup' or set GOOGLE_API_KEY.[/yellow]")
        if self.session.profile:
            p = self.session.profile
            self.console.print(f"[green]Practicing as {p.avatar} {p.name}[/green]")
        else:
            self.console.print("[dim]Guest session: progress is not saved.[/dim]")

    def _get_prompt(self) -> str:
        parts = ['hececiz', f"[{self._turns}]"]
        if self.session.surface.tool is Tool.ERASE:
            parts.append('(eraser)')
        if self.session.state is not FeedbackState.IDLE:
            parts.append(f"({self.session.state.value.lower()})")
        return ' '.join(parts) + '> '

    async def _process_command(self, user_input: str) -> Optional[str]:
        """Process user input and dispatch to handlers"""
        parts = user_input.split(maxsplit=1)
        command = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ''

        handlers = {
            'draw': self._cmd_draw,
            'pen': self._cmd_pen,
            'eraser': self._cmd_eraser,
            'clear': self._cmd_clear,
            'hint': self._cmd_hint,
            'skip': self._cmd_skip,
            'listen': self._cmd_listen,
            'check': self._cmd_check,
            'show': self._cmd_show,
            'save': self._cmd_save,
            'score': self._cmd_score,
            'help': self._cmd_help,
            'exit': lambda _: 'exit',
            'quit': lambda _: 'exit',
        }

        handler = handlers.get(command)
        if handler is None:
            self.console.print(f"[red]Unknown command: {command}[/red]")
            self.console.print("[dim]Type 'help' for commands.[/dim]")
            return None

        result = handler(args)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    def _busy(self) -> bool:
        if self.session.state is FeedbackState.IDLE:
            return False
        self.console.print(f"[dim]Wait a moment ({self.session.state.value.lower()})...[/dim]")
        return True

    # === Command Handlers ===

    def _cmd_draw(self, args: str) -> None:
        if self._busy():
            return
        try:
            points = parse_points(args)
        except ValueError as e:
            self.console.print(f"[red]{e}[/red]")
            self.console.print("[dim]Usage: draw x,y x,y ...[/dim]")
            return
        self.session.surface.draw_stroke(points)
        self.console.print(f"[dim]Stroke of {len(points)} point(s) drawn.[/dim]")

    def _cmd_pen(self, args: str) -> None:
        if self.session.set_tool(Tool.INK):
            self.console.print("[dim]Pen selected.[/dim]")

    def _cmd_eraser(self, args: str) -> None:
        if self.session.set_tool(Tool.ERASE):
            self.console.print("[dim]Eraser selected.[/dim]")

    def _cmd_clear(self, args: str) -> None:
        if self.session.clear_drawing():
            self.console.print("[dim]Drawing cleared.[/dim]")

    def _cmd_hint(self, args: str) -> None:
        if self._busy():
            return
        if self.session.toggle_hint():
            self.console.print(Panel(f"[bold]{self.session.current.text}[/bold]",
                                     title="Hint", border_style="yellow", expand=False))
        else:
            self.console.print("[dim]Hint hidden.[/dim]")

    def _cmd_skip(self, args: str) -> None:
        if not self._busy():
            self.session.skip()

    def _cmd_listen(self, args: str) -> None:
        if not self._busy():
            self.session.replay_pronunciation()

    async def _cmd_check(self, args: str) -> None:
        task = self.session.submit()
        if task is not None:
            await task

    def _cmd_show(self, args: str) -> None:
        snapshot = self.session.surface.export_snapshot()
        if snapshot is None:
            self.console.print("[yellow]Nothing drawn yet.[/yellow]")
            return
        self.console.print(Panel(ascii_preview(snapshot), border_style="dim", expand=False))

    def _cmd_save(self, args: str) -> None:
        if not args:
            self.console.print("[red]Usage: save <path>[/red]")
            return
        snapshot = self.session.surface.export_snapshot()
        if snapshot is None:
            self.console.print("[yellow]Nothing drawn yet.[/yellow]")
            return
        try:
            path = snapshot.save(Path(args).expanduser())
        except OSError as e:
            self.console.print(f"[red]Could not save: {e}[/red]")
            return
        self.console.print(f"[green]Saved {snapshot.width}x{snapshot.height} drawing to {path}[/green]")

    def _cmd_score(self, args: str) -> None:
        self.console.print(self._score_table("Score"))

    def _cmd_help(self, args: str) -> None:
        self.console.print(get_command_help(args.strip() or None))

    # === Events ===

    def _on_event(self, event: SessionEvent):
        if event.kind is EventKind.TURN:
            self._turns += 1
            self.console.print(f"\n[bold blue]Syllable {self._turns}[/bold blue] - "
                               "listen and write it. [dim]('listen' to hear it again)[/dim]")
        elif event.kind is EventKind.NOTICE:
            self.console.print(f"[yellow]{event.message}[/yellow]")
        elif event.kind is EventKind.VERDICT:
            if event.result and event.result.is_correct:
                self.console.print(Panel(f"[bold green]Correct! {event.syllable.text}[/bold green]",
                                         border_style="green", expand=False))
            else:
                reason = event.message or "That does not look right"
                self.console.print(f"[red]Not quite: {reason}[/red]")
        elif event.kind is EventKind.STATE:
            if event.state is FeedbackState.CHECKING:
                self.console.print("[dim]Checking...[/dim]")
            elif event.state is FeedbackState.IDLE and self.session.history[-2:-1] == [FeedbackState.WRONG]:
                self.console.print("[dim]Try again: fix your drawing or 'clear' and start over.[/dim]")
        elif event.kind is EventKind.PROFILE and event.profile:
            self.console.print(f"[dim]Saved. {event.profile.name}: "
                               f"{event.profile.total_correct_audio} by ear, "
                               f"{event.profile.total_correct_hint} with hint[/dim]")

    # === Summary ===

    def _score_table(self, title: str) -> Table:
        ledger = self.session.ledger
        table = Table(title=title)
        table.add_column("", style="cyan")
        table.add_column("By ear", justify="right")
        table.add_column("With hint", justify="right")

        table.add_row("This session", str(ledger.unassisted_correct), str(ledger.assisted_correct))
        profile = self.session.profile
        if profile:
            table.add_row(f"{profile.avatar} {profile.name} (all time)",
                          str(profile.total_correct_audio), str(profile.total_correct_hint))
        return table

    def _print_summary(self):
        self.console.print()
        self.console.print(self._score_table("Session Summary"))
        self.console.print(f"[dim]{self._turns} syllable(s) seen, {self.session.ledger.total} written correctly.[/dim]")
