import argparse
import getpass
import sys
from dataclasses import replace
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from quotebook.config import load_settings
from quotebook.service import QuoteService
from quotebook.storage import resolve_database_path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a quotebook user")
    parser.add_argument("name", help="Unique user name")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (overrides the configured database path)",
    )
    return parser.parse_args()


def prompt_for_pin() -> str:
    for _ in range(3):
        pin_code = getpass.getpass("PIN code: ")
        confirm = getpass.getpass("Confirm PIN code: ")
        if pin_code != confirm:
            print("PIN codes do not match. Try again.", file=sys.stderr)
            continue
        if not pin_code:
            print("PIN code must not be empty.", file=sys.stderr)
            continue
        return pin_code
    raise SystemExit("Failed to set a PIN code after three attempts.")


def main() -> int:
    args = parse_args()
    pin_code = prompt_for_pin()

    try:
        settings = load_settings()
    except (OSError, ValueError) as exc:
        print(f"Error: unable to load settings: {exc}", file=sys.stderr)
        return 1
    if args.db_path:
        settings = replace(settings, database_path=resolve_database_path(args.db_path))

    result = QuoteService.from_settings(settings).new_user({"name": args.name.strip(), "pinCode": pin_code})
    if result.error is not None:
        print(f"Error: {result.error.message}", file=sys.stderr)
        return 1

    user = result.value
    print(f"Created user {user.id}: {user.name}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
