import dotenv
import os

dotenv.load_dotenv()

PORT = int(os.getenv("PORT", "8000"))
DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() in ("1", "true", "yes")

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None

AVAILABLE_MODELS = [
    model.strip()
    for model in os.getenv("AVAILABLE_MODELS", "gpt-3.5-turbo,gpt-4").split(",")
    if model.strip()
]
DEFAULT_MODEL = os.getenv("DEFAULT_MODEL", "gpt-4")

PROGRAMMING_LANGUAGE = os.getenv("PROGRAMMING_LANGUAGE", "C++")

# Seconds; the completion call itself is attempted only once
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "60"))
EDITOR_TIMEOUT = float(os.getenv("EDITOR_TIMEOUT", "5"))


if not PORT:
    raise ValueError("PORT is not set")

if DEFAULT_MODEL not in AVAILABLE_MODELS:
    raise ValueError(f"DEFAULT_MODEL {DEFAULT_MODEL!r} is not in AVAILABLE_MODELS")

if not OPENAI_API_KEY:
    print("Warning: OPENAI_API_KEY is not set. A key must be provided via /api-key.")
