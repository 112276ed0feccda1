#!/usr/bin/env python3
"""
Remind the agent to update session-handoff.md when it has gone stale.

Called by: hooks/hooks.json UserPromptSubmit
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from session_memory.hooks import main, on_prompt_submit


if __name__ == "__main__":
    main(on_prompt_submit)
