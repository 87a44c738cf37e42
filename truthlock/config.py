"""Runtime configuration, read once from the environment (.env supported).

Only the boundary modules (oracle, generator) and main.py read these; the
layout engine and validator take everything as explicit arguments.
"""

import os

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DEFAULT_THEME = os.getenv("TRUTHLOCK_THEME", "professional")
MAX_PAGES = int(os.getenv("TRUTHLOCK_MAX_PAGES", "2"))
OUTPUT_DIR = os.getenv("TRUTHLOCK_OUTPUT_DIR", os.path.join(PROJECT_ROOT, "output"))
LOG_LEVEL = os.getenv("TRUTHLOCK_LOG_LEVEL", "INFO").upper()

# Rewrite oracle
CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-5")
ORACLE_MAX_TOKENS = int(os.getenv("TRUTHLOCK_ORACLE_MAX_TOKENS", "4096"))
