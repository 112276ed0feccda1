#!/usr/bin/env python3
"""
Mirror memory documents through the shared git repository.

Called by: hooks/hooks.json PreCompact, SessionEnd

PreCompact and SessionEnd push (local -> repo, commit only when something
changed). SessionStart and Stop sync from their own chained hooks.
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from session_memory.hooks import main, on_sync


if __name__ == "__main__":
    main(on_sync)
