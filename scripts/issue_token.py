#!/usr/bin/env python3
"""
Issue a development bearer token for the cashier terminal.

The token is signed with the mock backend's secret and names the cashier
and the branch sales are booked to.

Usage:
    python scripts/issue_token.py --cashier cashier-01 --branch 1
    python scripts/issue_token.py --write    # store as POS_API_TOKEN in config/.env
"""

import argparse
import sys
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from mock_backend.security.auth import issue_token


def write_env(env_file: Path, token: str) -> None:
    """Set POS_API_TOKEN in the env file, keeping other lines"""
    env_file.parent.mkdir(parents=True, exist_ok=True)
    lines = env_file.read_text().splitlines() if env_file.exists() else []
    lines = [line for line in lines if not line.startswith("POS_API_TOKEN=")]
    lines.append(f"POS_API_TOKEN={token}")
    env_file.write_text("\n".join(lines) + "\n")


def main():
    parser = argparse.ArgumentParser(description="Issue a development bearer token")
    parser.add_argument("--cashier", default="cashier-01", help="Cashier id claim")
    parser.add_argument("--branch", type=int, default=1, help="Branch id claim")
    parser.add_argument("--role", default="Cashier", help="Role claim")
    parser.add_argument("--write", action="store_true", help="Write to config/.env")
    args = parser.parse_args()

    token = issue_token(args.cashier, args.branch, role=args.role)

    if args.write:
        env_file = PROJECT_ROOT / "config" / ".env"
        write_env(env_file, token)
        print(f"✓ POS_API_TOKEN written to {env_file}")
    else:
        print(token)


if __name__ == "__main__":
    main()
