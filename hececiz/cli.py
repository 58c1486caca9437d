#!/usr/bin/env python3
"""
Hece Ciz - Syllable Handwriting Coach CLI

Usage:
    hececiz                        # guest practice session
    hececiz --profile 3f9a0c12     # practice and save progress
    hececiz --profiles             # list learners
    hececiz --new-profile "Ada"    # add a learner
"""

import argparse
import logging
import sys

from rich.console import Console
from rich.table import Table

from .config import configure_logging, get_db_path
from .db import ProfileStore

logger = logging.getLogger(__name__)


def list_profiles(store: ProfileStore, console: Console):
    profiles = store.list_profiles()
    if not profiles:
        console.print("[yellow]No profiles yet.[/yellow] Create one with 'hececiz --new-profile NAME'.")
        return

    table = Table(title="Learners")
    table.add_column("ID", style="cyan")
    table.add_column("")
    table.add_column("Name")
    table.add_column("By ear", justify="right")
    table.add_column("With hint", justify="right")

    for p in profiles:
        table.add_row(p.id, p.avatar, p.name, str(p.total_correct_audio), str(p.total_correct_hint))
    console.print(table)


def run_setup():
    from .config import load_config, prompt_for_api_key
    from .llm import PROVIDERS

    print("Hece Ciz Setup")
    print("=" * 40)
    config = load_config()
    configured = [p for p, info in PROVIDERS.items() if config.get(info['config_key'])]
    if configured:
        print(f"\nConfigured providers: {', '.join(configured)}")
        replace = input("Add or replace a key? [y/N]: ").strip().lower()
        if replace != 'y':
            print("Setup complete.")
            return
    prompt_for_api_key()


def main():
    """Main CLI entry point"""

    parser = argparse.ArgumentParser(
        description='Hece Ciz - practice writing Turkish syllables',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  hececiz --setup                  # Configure a handwriting checker (first time)
  hececiz                          # Practice as a guest
  hececiz --new-profile "Ada"      # Create a learner
  hececiz --profiles               # List learners and their totals
  hececiz --profile 3f9a0c12       # Practice and save progress
  hececiz --no-audio -v            # Silent, with debug logging
        """
    )

    parser.add_argument('--profile', metavar='ID', help='Practice as this learner (progress is saved)')
    parser.add_argument('--profiles', action='store_true', help='List learners')
    parser.add_argument('--new-profile', metavar='NAME', help='Create a learner')
    parser.add_argument('--delete-profile', metavar='ID', help='Delete a learner')
    parser.add_argument('--provider', choices=['gemini', 'anthropic', 'openai'],
                        help='Handwriting checker provider (default: preferred or first configured)')
    parser.add_argument('--no-audio', action='store_true', help='Do not play sounds or speech')
    parser.add_argument('--setup', action='store_true', help='Configure an API key')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    args = parser.parse_args()
    configure_logging(args.verbose)
    console = Console()

    if args.setup:
        run_setup()
        return

    store = ProfileStore(str(get_db_path()))
    try:
        if args.profiles:
            list_profiles(store, console)
            return

        if args.new_profile is not None:
            try:
                profile = store.create_profile(args.new_profile)
            except ValueError as e:
                console.print(f"[red]{e}[/red]")
                sys.exit(1)
            console.print(f"[green]Created {profile.avatar} {profile.name}[/green] (id: {profile.id})")
            return

        if args.delete_profile:
            if store.delete_profile(args.delete_profile):
                console.print(f"[green]Deleted profile {args.delete_profile}[/green]")
            else:
                console.print(f"[red]Profile not found: {args.delete_profile}[/red]")
                sys.exit(1)
            return

        profile = None
        if args.profile:
            profile = store.get_profile(args.profile)
            if profile is None:
                console.print(f"[red]Profile not found: {args.profile}[/red]")
                console.print("[dim]Use 'hececiz --profiles' to list learners[/dim]")
                sys.exit(1)

        run_practice(store, profile, args.provider, audio_enabled=not args.no_audio, console=console)
    finally:
        store.close()


def run_practice(store, profile, provider=None, audio_enabled=True, console=None):
    """Build a session from config and hand it to the REPL"""
    from .audio import create_audio_player
    from .practice import PracticeSession, SessionTimings, VerificationGateway
    from .repl import PracticeREPL

    audio = create_audio_player(audio_enabled)
    session = PracticeSession(
        gateway=VerificationGateway.from_config(provider),
        audio=audio,
        profile_store=store,
        profile=profile,
        timings=SessionTimings.from_config(),
    )
    try:
        PracticeREPL(session, console=console).run()
    finally:
        audio.close()


if __name__ == '__main__':
    main()
