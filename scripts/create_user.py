import argparse
import asyncio
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from authgate.config import load_settings
from authgate.errors import AuthFlowError
from authgate.passwords import PasswordHasher
from authgate.store import build_store
from authgate.workflow import AuthWorkflow


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Register an authgate account")
    parser.add_argument("name", help="Display name for the user")
    parser.add_argument("email", help="Unique email address for sign in")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML configuration file (defaults to AUTHGATE_CONFIG)",
    )
    return parser.parse_args()


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if not password:
            print("Password must not be empty.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def main() -> int:
    args = parse_args()
    password = prompt_for_password()

    settings = load_settings(args.config)
    store = build_store(settings)
    store.initialize()
    workflow = AuthWorkflow(store, PasswordHasher())

    try:
        record = asyncio.run(workflow.signup(args.name, args.email, password))
    except AuthFlowError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    print(f"Created user {record.name} <{record.email}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
