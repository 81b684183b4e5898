# Environment configuration for the Cube Brain service.
# Values come from the process environment, optionally seeded from a .env file.

import os

from dotenv import load_dotenv

load_dotenv()

# Paths
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CORPUS_PATH = os.path.join(BASE_DIR, "brain.json")


def _env_number(name: str, default, cast):
    """Read a numeric env var, falling back to the default on junk values."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        print(f"[WARNING] {name}={raw!r} is not a valid number, using {default}")
        return default


CORPUS_PATH = os.getenv("CORPUS_PATH", DEFAULT_CORPUS_PATH)

# Seconds between corpus file polls; 0 turns hot reload off.
CORPUS_POLL_SECONDS = _env_number("CORPUS_POLL_SECONDS", 2.0, float)

# Default token budget for a single Markov walk.
MAX_TOKENS = _env_number("MAX_TOKENS", 40, int)

# Comma-separated list of origins (no trailing slashes), "*" for any.
ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]

PORT = _env_number("PORT", 3000, int)
