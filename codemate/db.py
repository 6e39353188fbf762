# In-memory registry of open chat sessions and the user's API key.
# Nothing here survives a restart; a closed overlay discards its session.
import threading
from typing import Optional

from codemate.agent import ChatSession
import config

_sessions = {}
_api_key = None
_lock = threading.Lock()


def save_session(session: ChatSession):
    """Register an open session under its id"""
    with _lock:
        _sessions[session.session_id] = session
        return True


def get_session(session_id: str) -> Optional[ChatSession]:
    with _lock:
        return _sessions.get(session_id)


def discard_session(session_id: str) -> bool:
    """Forget a session; returns False if it was not open"""
    with _lock:
        return _sessions.pop(session_id, None) is not None


def set_api_key(api_key: Optional[str]):
    global _api_key
    with _lock:
        _api_key = api_key or None


def get_api_key() -> Optional[str]:
    """Stored key, else the one from the environment; None when neither is set"""
    with _lock:
        return _api_key or config.OPENAI_API_KEY or None


def clear():
    """Clear all sessions and the stored key (useful for testing)"""
    global _api_key
    with _lock:
        _sessions.clear()
        _api_key = None
