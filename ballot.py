#!/usr/bin/env python3
"""
Fingerprint ballot command line.

Usage:
    python ballot.py fingerprint                       # Print this device's fingerprint
    python ballot.py status                            # Ballot state for this device
    python ballot.py vote President=<candidate_id> ... # Cast a ballot (one choice per position)
    python ballot.py results <election_id>             # Results of a closed election
    python ballot.py elections                         # List elections (admin)
    python ballot.py create-election "Title" ["Description"]
    python ballot.py add-candidate <election_id> "Name" "Position" ["Description"]
    python ballot.py open <election_id>                # Open the voting session
    python ballot.py close <election_id>               # Close the voting session
    python ballot.py export <election_id> [dir]        # Write results CSV

Without BALLOT_URL and BALLOT_ANON_KEY a local store is used; set
BALLOT_LOCAL_DB=ballot.duckdb to keep its data between runs.
"""

import asyncio
import json
import sys

import settings
from app.container import Container
from app.models.common import Err, Result
from app.services.base import invalid
from settings.logging import setup_logging

logger = setup_logging(level="INFO", to_file=False)

ADMIN_COMMANDS = {"elections", "create-election", "add-candidate", "open", "close", "export"}


def show(result: Result) -> bool:
    """Print a result as JSON; returns success."""
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return result.success


def parse_selections(args: list[str]) -> dict[str, str] | None:
    selections = {}
    for arg in args:
        position, sep, candidate = arg.partition("=")
        if not sep or not position or not candidate:
            return None
        selections[position] = candidate
    return selections


async def run(command: str, args: list[str]) -> bool:
    async with Container() as c:
        if command in ADMIN_COMMANDS:
            signed_in = await c.auth.sign_in(settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
            if not signed_in.success:
                return show(signed_in)

        if command == "fingerprint":
            print(c.fingerprint())
            return True
        if command == "status":
            return show(await c.ballot.load(c.fingerprint()))
        if command == "vote" and args:
            selections = parse_selections(args)
            if selections is None:
                return show(Err.from_api(invalid("vote expects Position=<candidate_id> pairs")))
            return show(await c.ballot.cast(c.fingerprint(), selections))
        if command == "results" and len(args) == 1:
            return show(await c.ballot.results(args[0]))
        if command == "elections":
            return show(await c.admin.all_elections())
        if command == "create-election" and args:
            return show(await c.admin.create_election(args[0], args[1] if len(args) > 1 else None))
        if command == "add-candidate" and len(args) >= 3:
            election_id, name, position = args[:3]
            data = {"name": name, "position": position, "description": args[3] if len(args) > 3 else None}
            return show(await c.admin.create_candidate(election_id, data))
        if command in ("open", "close") and len(args) == 1:
            return show(await c.admin.toggle_election_status(args[0], command == "open"))
        if command == "export" and args:
            return show(await c.admin.save_results_csv(args[0], args[1] if len(args) > 1 else "."))

    print(__doc__)
    return False


def main():
    args = sys.argv[1:]
    if not args or args[0] in ("-h", "--help"):
        print(__doc__)
        sys.exit(0 if args else 1)

    if settings.MOCK_MODE:
        logger.info("No hosted store configured, using local store at {}", settings.LOCAL_DB_PATH)

    ok = asyncio.run(run(args[0], args[1:]))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
