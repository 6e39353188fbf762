"""Editor surfaces: reading the host editor's code and writing code back into it"""

import html
from dataclasses import dataclass, asdict
from typing import List, Protocol

from codemate.errors import EditorNotFound
from codemate.utils import find_element
from codemate.logger import get_logger
import config

logger = get_logger(__name__)

# Monaco's line container; it also carries role="presentation"
CODE_CONTAINER_CLASS = "view-lines"
EDITABLE_ROLE = "presentation"


@dataclass
class InputEvent:
    """Synthetic edit notification so the host editor picks up the new text"""

    type: str = "input"
    bubbles: bool = True
    cancelable: bool = True
    composed: bool = True


class EditorSurface(Protocol):
    async def read(self) -> str:
        """Markup of the visible code lines, or an empty string"""
        ...

    async def write(self, code: str) -> bool:
        """Replace the editable region's text; False when there is no such region"""
        ...


class HtmlEditorSurface:
    """Editor surface over an in-memory snapshot of the host page"""

    def __init__(
        self,
        page_html: str,
        code_container_class: str = CODE_CONTAINER_CLASS,
        editable_role: str = EDITABLE_ROLE,
    ):
        self.html = page_html
        self.code_container_class = code_container_class
        self.editable_role = editable_role
        self.events: List[InputEvent] = []

    async def read(self) -> str:
        span = find_element(self.html, class_name=self.code_container_class)
        if span is None:
            return ""
        return self.html[span.inner_start : span.inner_end]

    async def write(self, code: str) -> bool:
        span = find_element(self.html, role=self.editable_role)
        if span is None:
            return False

        # Same effect as assigning textContent: children replaced by escaped text
        self.html = (
            self.html[: span.inner_start]
            + html.escape(code, quote=False)
            + self.html[span.inner_end :]
        )
        self.events.append(InputEvent())
        return True


class RemoteEditorSurface:
    """Editor surface backed by the overlay's WebSocket connection"""

    def __init__(self, session_id: str, manager, timeout: float | None = None):
        self.session_id = session_id
        self.manager = manager
        self.timeout = timeout if timeout is not None else config.EDITOR_TIMEOUT

    async def read(self) -> str:
        reply = await self.manager.request(
            self.session_id, {"type": "editor.read"}, timeout=self.timeout
        )
        if reply is None:
            logger.warning(f"Session {self.session_id}: no editor content received")
            return ""
        markup = reply.get("markup")
        return markup if isinstance(markup, str) else ""

    async def write(self, code: str) -> bool:
        reply = await self.manager.request(
            self.session_id,
            {"type": "editor.write", "code": code, "event": asdict(InputEvent())},
            timeout=self.timeout,
        )
        return bool(reply and reply.get("ok") is True)


async def inject_code(surface: EditorSurface, code: str) -> None:
    """Write code into the host editor, raising EditorNotFound if it has no editable region"""
    if not await surface.write(code):
        logger.error("Editor not found")
        raise EditorNotFound()
    logger.info(f"Injected {len(code)} characters into the editor")
