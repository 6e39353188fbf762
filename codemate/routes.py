import uuid
from fastapi import APIRouter, Depends, HTTPException, WebSocket

from codemate import db
from codemate.agent import ChatSession
from codemate.editor import RemoteEditorSurface, inject_code
from codemate.errors import EditorNotFound
from codemate.llm import CompletionClient
from codemate.utils import page_context_from_html
from codemate.websocket_manager import ws_manager
from codemate.logger import get_logger
from codemate.models import (
    ApplyCodeRequest,
    CreateSessionRequest,
    PageContext,
    SelectModelRequest,
    SendMessageRequest,
    SendMessageResponse,
    SessionState,
    SetApiKeyRequest,
)
import config

logger = get_logger(__name__)


router = APIRouter()

ERROR_STATUS_CODES = {
    "missing_credential": 400,
    "transport_failure": 502,
    "busy": 409,
}

_completion_client = CompletionClient()


def get_completion_client() -> CompletionClient:
    return _completion_client


def _get_open_session(session_id: str) -> ChatSession:
    session = db.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _notifier(session_id: str):
    async def notify(message: str):
        await ws_manager.send_message(
            session_id, {"type": "notification", "level": "error", "message": message}
        )

    return notify


@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "Codemate API is running"}


@router.get("/models")
def list_models():
    return {"models": config.AVAILABLE_MODELS, "default": config.DEFAULT_MODEL}


@router.post("/api-key")
def set_api_key(request: SetApiKeyRequest):
    """Store the user's OpenAI API key for this process"""
    db.set_api_key(request.api_key)
    return {"success": True}


@router.delete("/api-key")
def clear_api_key():
    db.set_api_key(None)
    return {"success": True, "has_fallback": bool(config.OPENAI_API_KEY)}


@router.post("/sessions", response_model=SessionState)
async def create_session(
    request: CreateSessionRequest,
    client: CompletionClient = Depends(get_completion_client),
):
    """Open a chat session for the page the overlay is shown on"""
    session_id = str(uuid.uuid4())
    language = request.programming_language or config.PROGRAMMING_LANGUAGE

    if request.html is not None:
        context = page_context_from_html(request.html, language, request.problem_statement)
    else:
        context = PageContext(
            problem_statement=request.problem_statement or "",
            programming_language=language,
        )

    try:
        session = ChatSession(
            context=context,
            editor=RemoteEditorSurface(session_id, ws_manager),
            get_api_key=db.get_api_key,
            client=client,
            model=request.model,
            notify=_notifier(session_id),
            session_id=session_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    db.save_session(session)
    logger.info(f"Created chat session: {session_id} ({language})")
    return session.snapshot()


@router.get("/sessions/{session_id}", response_model=SessionState)
async def get_session_state(session_id: str):
    """Get status and conversation history for an open session"""
    return _get_open_session(session_id).snapshot()


@router.post("/sessions/{session_id}/messages", response_model=SendMessageResponse)
async def send_message(session_id: str, request: SendMessageRequest):
    """Run one turn: user message in, assistant reply appended"""
    session = _get_open_session(session_id)
    logger.info(f"Processing message for session: {session_id}")

    result = await session.submit(request.text)

    if result.error is not None:
        raise HTTPException(
            status_code=ERROR_STATUS_CODES.get(result.error, 500), detail=result.message
        )

    return SendMessageResponse(
        status=result.status,
        message=result.message,
        reply=result.reply,
        session=session.snapshot(),
    )


@router.put("/sessions/{session_id}/model", response_model=SessionState)
async def select_model(session_id: str, request: SelectModelRequest):
    session = _get_open_session(session_id)
    try:
        session.select_model(request.model)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return session.snapshot()


@router.post("/sessions/{session_id}/apply")
async def apply_code(session_id: str, request: ApplyCodeRequest):
    """Insert the code of an assistant message into the page's editor"""
    session = _get_open_session(session_id)
    history = session.history

    if not 0 <= request.message_index < len(history):
        raise HTTPException(status_code=404, detail="Message not found")
    message = history[request.message_index]
    if message.role != "assistant" or not message.code:
        raise HTTPException(status_code=400, detail="Message has no code to insert")

    try:
        await inject_code(session.editor, message.code)
    except EditorNotFound as e:
        raise HTTPException(status_code=404, detail=e.user_message)

    return {"success": True, "session_id": session_id}


@router.delete("/sessions/{session_id}")
async def close_session(session_id: str):
    """Discard a session when the overlay is closed"""
    if not db.discard_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    await ws_manager.disconnect(session_id)
    logger.info(f"Discarded chat session: {session_id}")
    return {"success": True}


@router.websocket("/sessions/{session_id}/ws")
async def editor_bridge(websocket: WebSocket, session_id: str):
    """Overlay connection used to read and write the host editor and to push notifications"""
    if not db.get_session(session_id):
        await websocket.close(code=4404)
        return

    await ws_manager.connect(session_id, websocket)
    try:
        while True:
            message = await ws_manager.receive_message(session_id, websocket)
            if message is None:
                break
            if message.get("request_id"):
                ws_manager.resolve(message)
            else:
                logger.debug(f"Ignoring WebSocket message for {session_id}: {message.get('type')}")
    finally:
        await ws_manager.disconnect(session_id, websocket)
