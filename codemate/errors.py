"""Failures that end a turn or an editor write and are shown to the user"""

from typing import Optional


class AssistantError(Exception):
    kind = "assistant_error"
    user_message = "Something went wrong. Please try again."

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or self.user_message)
        self.detail = detail


class MissingCredential(AssistantError):
    """No API key is configured; raised before any request is sent"""

    kind = "missing_credential"
    user_message = "OpenAI API Key is required"


class TransportFailure(AssistantError):
    """The completion API call failed (network, auth, rate limit, timeout)"""

    kind = "transport_failure"
    user_message = "Error generating AI response. Please try again."


class EditorNotFound(AssistantError):
    """The host page has no editable code region to write into"""

    kind = "editor_not_found"
    user_message = "Could not find the code editor"
