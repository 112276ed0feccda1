#!/usr/bin/env python3
"""Show (or run) memory sync for the current project.

Usage:
    python scripts/memory_status.py
    python scripts/memory_status.py --push
    python scripts/memory_status.py --pull --cwd ~/code/myproject
"""

import argparse
import os
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from session_memory.config import MemoryConfig, resolve_memory_dir
from session_memory.sync_engine import SyncEngine, find_repo, format_age


def print_status(engine: SyncEngine) -> None:
    status = engine.status()

    print(f"Repo:   {status.repo_path}")
    print(f"Memory: {engine.memory_dir}")

    if status.error:
        print(f"\nCould not read git log: {status.error}")
    elif status.recent_commits:
        print("\nRecent syncs:")
        for line in status.recent_commits:
            print(f"  {line}")

    if status.files:
        print("\nSynced files:")
        for synced in status.files:
            print(f"  {synced.name:<24} {format_age(synced.age_minutes)}")
    else:
        print("\nNo memory files in the repository yet.")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Session memory sync status")
    parser.add_argument(
        "--cwd",
        default=os.getcwd(),
        help="Project directory (default: current directory)",
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "--pull",
        action="store_true",
        help="Copy repository documents into the local memory directory",
    )
    action.add_argument(
        "--push",
        action="store_true",
        help="Publish local documents to the repository",
    )

    args = parser.parse_args()

    config = MemoryConfig.load()
    repo = find_repo(config)
    if repo is None:
        print("No memory repository found. Set SESSION_MEMORY_REPO or repo_path.")
        return 1

    project_dir = str(Path(args.cwd).expanduser())
    engine = SyncEngine(repo, resolve_memory_dir(project_dir, config))

    if args.pull or args.push:
        result = engine.pull() if args.pull else engine.push()
        report = result.value
        if report is not None:
            for warning in report.warnings:
                print(f"Warning: {warning}")
            print(f"{report.direction}: {report.copied} file(s) copied, committed={report.committed}")
        if result.is_failed:
            print(f"Sync failed: {result.detail}")
            return 1
        if result.is_empty:
            print(f"Nothing to do: {result.detail}")
        print()

    print_status(engine)
    return 0


if __name__ == "__main__":
    sys.exit(main())
