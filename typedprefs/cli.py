"""
CLI — Inspect and edit preferences from the shell

    typedprefs get network.retries --type int
    typedprefs set network.retries 5 --type int
    typedprefs clear network.retries
    typedprefs list
    typedprefs config
    typedprefs config --set store.backend=json

The store is the one configuration selects for the project directory
(see typedprefs.config).
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import yaml

from . import __version__
from .config import ConfigManager, build_store
from .core.converters import TYPE_CONVERTERS, for_type_name
from .core.stores import MutableStore
from .errors import PreferencesError
from .preference import MutablePreference, ReadOnlyPreference


class PrefsCLI:
    """Command handlers over the configured store."""

    def __init__(self, project_dir: Path):
        self.project_dir = project_dir
        self.config_manager = ConfigManager(project_dir)
        self._store: Optional[MutableStore] = None

    @property
    def config(self):
        return self.config_manager.load()

    @property
    def store(self) -> MutableStore:
        if self._store is None:
            self._store = build_store(self.config, self.project_dir)
        return self._store

    def _emit(self, mapping: dict):
        if self.config.display.format == "yaml":
            print(yaml.safe_dump(mapping, default_flow_style=False, sort_keys=True), end="")
        else:
            for key, value in mapping.items():
                print(f"{key}: {value}")

    def get(self, key: str, type_name: str = "str") -> int:
        """Print one preference."""
        pref = ReadOnlyPreference(self.store, key, for_type_name(type_name))
        if not pref.has_value:
            print(f"{key}: (not set)")
            return 1
        value = pref.value
        if value is None:
            print(f"Error: stored value of '{key}' is not a valid {type_name}")
            return 1
        self._emit({key: value})
        return 0

    def set(self, key: str, text: str, type_name: str = "str") -> int:
        """Parse text as type_name and store it."""
        transformation = for_type_name(type_name)
        value = transformation.forward(text)
        if value is None:
            print(f"Error: '{text}' is not a valid {type_name}")
            return 1
        MutablePreference(self.store, key, transformation).set(value)
        print(f"Set {key} = {value}")
        return 0

    def clear(self, key: str) -> int:
        pref = MutablePreference(self.store, key)
        if not pref.has_value:
            print(f"{key}: (not set)")
            return 0
        pref.clear()
        print(f"Cleared {key}")
        return 0

    def list(self) -> int:
        keys = sorted(self.store.keys(), key=str)
        if not keys:
            print("No preferences set.")
            return 0
        self._emit({str(key): self.store.raw_value(key) for key in keys})
        return 0

    def show_config(self) -> int:
        print(self.config_manager.display())
        return 0

    def set_config(self, assignment: str, scope: str) -> int:
        if "=" not in assignment:
            print("Error: Use format KEY=VALUE (e.g., store.backend=json)")
            return 1
        key, value = assignment.split("=", 1)
        error = self.config_manager.set(key.strip(), value.strip(), scope)
        if error:
            print(f"Error: {error}")
            return 1
        print(f"Set {key.strip()} = {value.strip()} ({scope})")
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typedprefs",
        description="typedprefs -- typed preferences over a key-value store",
    )
    parser.add_argument(
        '--project', '-p',
        default=os.environ.get("TYPEDPREFS_PROJECT_PATH", "."),
        help='Project directory (default: TYPEDPREFS_PROJECT_PATH or current)'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Log debug output')
    parser.add_argument('--version', '-V', action='version', version=f'typedprefs {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Commands')
    types = sorted(TYPE_CONVERTERS)

    p_get = subparsers.add_parser('get', help='Show a preference')
    p_get.add_argument('key')
    p_get.add_argument('--type', '-t', choices=types, default='str')

    p_set = subparsers.add_parser('set', help='Set a preference')
    p_set.add_argument('key')
    p_set.add_argument('value')
    p_set.add_argument('--type', '-t', choices=types, default='str')

    p_clear = subparsers.add_parser('clear', help='Remove a preference')
    p_clear.add_argument('key')

    subparsers.add_parser('list', help='List all preferences')

    p_config = subparsers.add_parser('config', help='View or set configuration')
    p_config.add_argument('--set', metavar='KEY=VALUE',
                          help='Set config value (e.g., store.backend=json)')
    p_config.add_argument('--user', action='store_true',
                          help='Apply to user config instead of project')
    return parser


def dispatch(cli: PrefsCLI, args: argparse.Namespace) -> int:
    if args.command == 'get':
        return cli.get(args.key, args.type)
    if args.command == 'set':
        return cli.set(args.key, args.value, args.type)
    if args.command == 'clear':
        return cli.clear(args.key)
    if args.command == 'list':
        return cli.list()
    if args.command == 'config':
        if args.set:
            return cli.set_config(args.set, "user" if args.user else "project")
        return cli.show_config()
    raise KeyError(f"Unknown command: {args.command}")


def main(argv=None) -> int:
    """Entry point for the typedprefs console script."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if not args.command:
        parser.print_help()
        return 0

    cli = PrefsCLI(Path(args.project))
    try:
        return dispatch(cli, args)
    except (PreferencesError, ValueError, OSError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
