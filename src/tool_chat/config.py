# config.py
# Environment-driven settings. Values come from the process environment or a
# local .env file; nothing here talks to the network.

import os

from dotenv import load_dotenv

load_dotenv()

# Fixed storage key for the single credential slot.
API_KEY_ENV = "OPENAI_API_KEY"

# Keys at or below this length are treated as truncated or placeholders.
MIN_CREDENTIAL_LENGTH = 40

BASE_URL = os.getenv("OPENAI_BASE_URL") or None
DEFAULT_MODEL = os.getenv("TOOL_CHAT_MODEL", "gpt-4o-mini")
MAX_TOOL_ROUNDS = int(os.getenv("TOOL_CHAT_MAX_TOOL_ROUNDS", "1"))
REQUEST_TIMEOUT = float(os.getenv("TOOL_CHAT_TIMEOUT", "60"))
LOG_LEVEL = os.getenv("TOOL_CHAT_LOG_LEVEL", "warning")
