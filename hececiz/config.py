#!/usr/bin/env python3
"""
Configuration management for Hece Ciz.
Handles API keys, session tunables and logging setup with local storage.
"""

import os
import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any
from getpass import getpass

from rich.logging import RichHandler


# Defaults for every tunable read through get_config_value
DEFAULTS: Dict[str, Any] = {
    'celebration_delay': 2.5,    # seconds the success state stays visible
    'retry_delay': 1.5,          # seconds the failure state stays visible
    'pronounce_delay': 0.5,      # seconds before a new syllable is spoken
    'classifier_timeout': 30.0,  # seconds before a verification is abandoned
    'audio_dir': None,           # directory of recorded <syllable>.mp3 clips
    'db_path': None,             # profile database, defaults to <config dir>/profiles.db
}


def get_config_dir() -> Path:
    """Get the Hece Ciz config directory (~/.hececiz or $HECECIZ_HOME)"""
    override = os.getenv('HECECIZ_HOME')
    config_dir = Path(override) if override else Path.home() / '.hececiz'
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the config file path"""
    return get_config_dir() / 'config.json'


def get_db_path() -> Path:
    """Get the profile database path"""
    configured = get_config_value('db_path')
    if configured:
        return Path(configured).expanduser()
    return get_config_dir() / 'profiles.db'


def load_config() -> Dict[str, Any]:
    """Load configuration from file"""
    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError):
            return {}
    return {}


def save_config(config: Dict[str, Any]) -> None:
    """Save configuration to file"""
    config_path = get_config_path()
    with open(config_path, 'w') as f:
        json.dump(config, f, indent=2)
    # Owner read/write only, the file holds API keys
    config_path.chmod(0o600)


def prompt_for_api_key(provider: str = None) -> Optional[str]:
    """
    Interactively prompt user for API key and offer to save it.

    Args:
        provider: Specific provider to configure. If None, user chooses.

    Returns:
        API key string or None if user declines
    """
    from .llm import PROVIDERS

    print("\n" + "=" * 60)
    print("Handwriting Checker Setup")
    print("=" * 60)

    if not provider:
        print("\nHece Ciz can check handwriting with these vision models:")
        providers_list = list(PROVIDERS.keys())
        for i, p in enumerate(providers_list, 1):
            info = PROVIDERS[p]
            print(f"  {i}. {info['display_name']}")

        print()
        try:
            choice = input(f"Choose provider [1-{len(providers_list)}] (default: 1): ").strip()
            if not choice:
                choice = "1"
            idx = int(choice) - 1
            if 0 <= idx < len(providers_list):
                provider = providers_list[idx]
            else:
                print("Invalid choice.")
                return None
        except (ValueError, KeyboardInterrupt):
            print("\nCancelled.")
            return None

    info = PROVIDERS[provider]
    print(f"\n{info['display_name']} selected.")
    print(f"Get your API key at: {info['url']}")
    print(f"\nYour key will be stored locally in {get_config_path()}")
    print()

    try:
        api_key = getpass("Paste your API key (input hidden): ").strip()

        if not api_key:
            print("\nNo key provided. Drawings cannot be checked without one.")
            return None

        expected_prefix = info['key_prefix']
        if not api_key.startswith(expected_prefix):
            print(f"\nWarning: Key doesn't look like a {provider} key (expected prefix: '{expected_prefix}')")
            confirm = input("Save anyway? [y/N]: ").strip().lower()
            if confirm != 'y':
                return None

        save = input(f"\nSave key to {get_config_path()} for future sessions? [Y/n]: ").strip().lower()

        if save != 'n':
            config = load_config()
            config[info['config_key']] = api_key
            config['preferred_provider'] = provider
            save_config(config)
            print(f"Key saved! {info['display_name']} set as preferred provider.")
        else:
            print("Key will only be used for this session.")

        return api_key

    except (KeyboardInterrupt, EOFError):
        print("\nCancelled.")
        return None


def get_config_value(key: str, default: Any = None) -> Any:
    """Get a specific config value, falling back to the built-in default"""
    config = load_config()
    if key in config:
        return config[key]
    if default is None:
        return DEFAULTS.get(key)
    return default


def set_config_value(key: str, value: Any) -> None:
    """Set a specific config value"""
    config = load_config()
    config[key] = value
    save_config(config)


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Route package logs through rich; WARNING by default, DEBUG when verbose"""
    logger = logging.getLogger('hececiz')
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(show_path=verbose, markup=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter('%(message)s'))
        logger.addHandler(handler)
    logger.propagate = False
    return logger
