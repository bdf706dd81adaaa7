"""
Check Config File

This script loads a config.kdl, runs the same setup checks the server runs
at startup, and prints a summary of every route group.

Usage:
    python scripts/check_config.py [config_path] [--online]

If no config_path is provided, it will use CONFIG_FILE from .env.
With --online, the Firefly PAT is tried against the budgets endpoint and
the budget of every shortcut is resolved.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config import Config
from reasonable_excuse.services import (
    CalendarService,
    ConfigError,
    FireflyClient,
    FireflyError,
    UploadService,
    load_settings,
)


def main():
    """Check the config file."""
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    online = "--online" in sys.argv[1:]
    path = args[0] if args else Config.CONFIG_FILE

    print("=" * 60)
    print("reasonable-excuse Config Check")
    print("=" * 60)
    print(f"Config File: {path}")
    print()

    try:
        settings = load_settings(path)
    except ConfigError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print(f"Address: {settings.address}")
    print(f"Allow Origin: {settings.allow_origin or 'NOT SET'}")
    print()

    failed = False

    if settings.upload:
        print(f"Upload: {settings.upload.route} -> {settings.upload.target_dir}")
        try:
            UploadService(settings.upload)
            print("  ✓ Target directory exists")
        except ConfigError as e:
            print(f"  ✗ {e}")
            failed = True

    if settings.firefly_shortcuts:
        firefly = settings.firefly_shortcuts
        print(f"Firefly: {firefly.route} -> {firefly.firefly_url}")
        for shortcut in firefly.shortcuts:
            print(f"  [{shortcut.shortcut_id}] {shortcut.shortcut_icon} {shortcut.shortcut_name}")
        try:
            client = FireflyClient.from_settings(firefly)
            print("  ✓ PAT file readable")
            if online:
                names = {budget.attributes.name for budget in client.list_budgets()}
                print(f"  ✓ PAT accepted, {len(names)} budgets")
                for shortcut in firefly.shortcuts:
                    if shortcut.budget and shortcut.budget not in names:
                        print(f"  ✗ Shortcut {shortcut.shortcut_name!r}: unknown budget {shortcut.budget!r}")
                        failed = True
        except (ConfigError, FireflyError) as e:
            print(f"  ✗ {e}")
            failed = True

    if settings.calendar:
        print(f"Calendar: {settings.calendar.route} -> {settings.calendar.base_url}")
        try:
            CalendarService(settings.calendar)
            print("  ✓ Filter regex compiles")
        except ConfigError as e:
            print(f"  ✗ {e}")
            failed = True

    print("=" * 60)
    if failed:
        print("✗ Config has problems")
        sys.exit(1)
    print("✓ Config is ready to use!")


if __name__ == '__main__':
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nCancelled by user")
        sys.exit(1)
