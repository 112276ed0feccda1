#!/usr/bin/env python3
"""
Inject memory context when a session starts.

Called by: hooks/hooks.json SessionStart

Prints the memory-protocol reminder, the latest auto-captured handoff state
and the last two days of development logs. Stdout is added to the session.
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from session_memory.hooks import main, on_session_start


if __name__ == "__main__":
    main(on_session_start)
