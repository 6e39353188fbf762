"""Conversation session: one user turn at a time against the completion API"""

import inspect
import uuid
from datetime import datetime
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from codemate import llm
from codemate.editor import EditorSurface
from codemate.errors import AssistantError, MissingCredential, TransportFailure
from codemate.models import Message, PageContext, SessionState
from codemate.prompt import SYSTEM_PROMPT
from codemate.utils import extract_code
from codemate.logger import get_logger
import config

logger = get_logger(__name__)

IDLE = "idle"
AWAITING_RESPONSE = "awaiting_response"

Notifier = Callable[[str], Union[Awaitable[None], None]]


@dataclass
class TurnResult:
    """Result of submitting one user message"""

    status: str  # "success", "error" or "ignored"
    message: str
    reply: Optional[Message] = None
    error: Optional[str] = None  # error kind, or "busy" for a rejected submission


@dataclass(frozen=True)
class InFlightTurn:
    text: str
    model: str
    started_at: str


class ChatSession:
    """Owns the conversation history and runs turns against the completion client"""

    def __init__(
        self,
        context: PageContext,
        editor: EditorSurface,
        get_api_key: Callable[[], Optional[str]],
        client: llm.CompletionClient,
        template: str = SYSTEM_PROMPT,
        model: str | None = None,
        notify: Notifier | None = None,
        session_id: str | None = None,
    ):
        llm.validate_template(template)
        self.session_id = session_id or str(uuid.uuid4())
        self.context = context
        self.editor = editor
        self.client = client
        self.template = template
        self.pending_input = ""
        self.status = IDLE
        self.in_flight: Optional[InFlightTurn] = None
        self._get_api_key = get_api_key
        self._notify_callback = notify
        self._history: List[Message] = []
        self._selected_model = config.DEFAULT_MODEL
        if model is not None:
            self.select_model(model)

    @property
    def history(self) -> Tuple[Message, ...]:
        return tuple(self._history)

    @property
    def selected_model(self) -> str:
        return self._selected_model

    def select_model(self, model: str) -> None:
        """Pick the model for the next request; a turn in flight keeps its model"""
        if model not in config.AVAILABLE_MODELS:
            raise ValueError(
                f"Unknown model {model!r}, expected one of {', '.join(config.AVAILABLE_MODELS)}"
            )
        self._selected_model = model

    @property
    def is_busy(self) -> bool:
        return self.status == AWAITING_RESPONSE

    async def submit(self, text: str | None = None) -> TurnResult:
        """Run one turn for `text`, or for the pending input when no text is given"""
        if text is None:
            text = self.pending_input

        if not text or not text.strip():
            return TurnResult(status="ignored", message="Message is empty")

        if self.is_busy:
            logger.warning(f"Session {self.session_id}: turn rejected, a response is pending")
            return TurnResult(
                status="ignored",
                message="A response is already being generated",
                error="busy",
            )

        # Turns sent before this one; the new message goes last in the request
        prior_history = tuple(self._history)

        # Add user message to conversation history before any network call
        self._history.append(Message.user(text))
        self.pending_input = ""
        self.status = AWAITING_RESPONSE
        self.in_flight = InFlightTurn(
            text=text, model=self._selected_model, started_at=datetime.now().isoformat()
        )
        logger.info(f"Session {self.session_id}: turn started with model {self._selected_model}")

        try:
            reply = await self._generate(text, prior_history)
        except AssistantError as e:
            logger.error(f"Session {self.session_id}: {e.kind}: {e}")
            await self._notify(e.user_message)
            return TurnResult(status="error", message=e.user_message, error=e.kind)
        except Exception as e:
            logger.error(f"Session {self.session_id}: Exception: {str(e)}", exc_info=True)
            await self._notify(TransportFailure.user_message)
            return TurnResult(
                status="error",
                message=TransportFailure.user_message,
                error=TransportFailure.kind,
            )
        finally:
            self.status = IDLE
            self.in_flight = None

        if reply is None:
            logger.warning(f"Session {self.session_id}: empty reply, nothing appended")
            return TurnResult(status="success", message="")

        self._history.append(reply)
        logger.info(
            f"Session {self.session_id}: reply appended (code: {'yes' if reply.code else 'no'})"
        )
        return TurnResult(status="success", message=reply.text, reply=reply)

    async def _generate(self, text: str, prior_history: Tuple[Message, ...]) -> Optional[Message]:
        """Build the request, call the client and interpret the reply"""
        api_key = self._get_api_key()
        if not api_key:
            raise MissingCredential()

        user_code = extract_code(await self.editor.read())
        system_prompt = llm.build_system_prompt(self.template, self.context, user_code)
        messages = llm.build_messages(system_prompt, prior_history, text)

        raw = await self.client.complete(messages, model=self.in_flight.model, api_key=api_key)

        reply = llm.parse_reply(raw)
        if reply is None:
            return None
        return Message.from_reply(reply)

    async def _notify(self, message: str) -> None:
        """Tell the user about a failure without touching session state"""
        if self._notify_callback is None:
            return
        try:
            result = self._notify_callback(message)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Session {self.session_id}: failed to deliver notification: {e}")

    def snapshot(self) -> SessionState:
        return SessionState(
            session_id=self.session_id,
            status=self.status,
            selected_model=self._selected_model,
            available_models=list(config.AVAILABLE_MODELS),
            context=self.context,
            history=list(self._history),
        )
