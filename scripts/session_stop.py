#!/usr/bin/env python3
"""
Capture and publish memory when the agent stops.

Called by: hooks/hooks.json Stop

Appends [DONE] items to today's development log, refreshes the
auto-captured section of session-handoff.md, then pushes the memory
directory to the sync repository. Each step keeps its own transcript
cursor.
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from session_memory.hooks import main, on_stop


if __name__ == "__main__":
    main(on_stop)
