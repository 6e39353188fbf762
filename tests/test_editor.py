"""Tests for editor surfaces and code injection."""

from unittest.mock import AsyncMock

import pytest

from codemate.editor import HtmlEditorSurface, InputEvent, RemoteEditorSurface, inject_code
from codemate.errors import EditorNotFound
from codemate.utils import extract_code

PAGE = (
    "<html><body><h1>Two Sum</h1>"
    '<div class="monaco-editor"><div class="lines-content">'
    '<div class="view-lines monaco-mouse-cursor-text" role="presentation">'
    '<div style="top:0px;" class="view-line"><span><span class="mtk1">int&nbsp;x;</span></span></div>'
    '<div style="top:19px;" class="view-line"><span><span class="mtk1">x&nbsp;&lt;&nbsp;1;</span></span></div>'
    "</div></div></div>"
    "<footer>done</footer></body></html>"
)


@pytest.mark.asyncio
async def test_read_returns_line_container_markup():
    surface = HtmlEditorSurface(PAGE)

    markup = await surface.read()

    assert markup.startswith('<div style="top:0px;" class="view-line">')
    assert extract_code(markup) == "int x;\nx < 1;"


@pytest.mark.asyncio
async def test_read_without_editor_is_empty():
    assert await HtmlEditorSurface("<html><body></body></html>").read() == ""


@pytest.mark.asyncio
async def test_inject_replaces_text_and_fires_input_event():
    surface = HtmlEditorSurface(PAGE)

    await inject_code(surface, "if (a < b) {}")

    assert 'role="presentation">if (a &lt; b) {}</div>' in surface.html
    assert surface.html.endswith("<footer>done</footer></body></html>")
    assert surface.events == [InputEvent(type="input", bubbles=True, cancelable=True, composed=True)]
    # The container now holds escaped text only, as textContent leaves it
    assert await surface.read() == "if (a &lt; b) {}"


@pytest.mark.asyncio
async def test_repeated_injection_leaves_same_content():
    surface = HtmlEditorSurface(PAGE)

    await inject_code(surface, "int y;")
    after_first = surface.html
    await inject_code(surface, "int y;")

    assert surface.html == after_first
    assert len(surface.events) == 2


@pytest.mark.asyncio
async def test_missing_editable_region_raises_and_leaves_page_alone():
    page = '<html><body><div class="view-lines">int x;</div></body></html>'
    surface = HtmlEditorSurface(page)

    with pytest.raises(EditorNotFound):
        await inject_code(surface, "int y;")

    assert surface.html == page
    assert surface.events == []


@pytest.mark.asyncio
async def test_editable_region_found_by_role_not_class():
    page = '<section role="presentation" class="renamed-editor-v2">old</section>'
    surface = HtmlEditorSurface(page)

    await inject_code(surface, "new")

    assert surface.html == '<section role="presentation" class="renamed-editor-v2">new</section>'


@pytest.mark.asyncio
async def test_remote_read_asks_the_overlay():
    manager = AsyncMock()
    manager.request.return_value = {"type": "editor.code", "markup": "<div class='view-line'>x</div>"}
    surface = RemoteEditorSurface("s1", manager, timeout=2)

    assert await surface.read() == "<div class='view-line'>x</div>"
    manager.request.assert_awaited_once_with("s1", {"type": "editor.read"}, timeout=2)


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [None, {"type": "editor.code"}, {"markup": 5}])
async def test_remote_read_without_markup_is_empty(reply):
    manager = AsyncMock()
    manager.request.return_value = reply

    assert await RemoteEditorSurface("s1", manager).read() == ""


@pytest.mark.asyncio
async def test_remote_write_sends_code_and_event():
    manager = AsyncMock()
    manager.request.return_value = {"ok": True}
    surface = RemoteEditorSurface("s1", manager, timeout=2)

    await inject_code(surface, "print(1)")

    manager.request.assert_awaited_once_with(
        "s1",
        {
            "type": "editor.write",
            "code": "print(1)",
            "event": {"type": "input", "bubbles": True, "cancelable": True, "composed": True},
        },
        timeout=2,
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [None, {"ok": False}, {}])
async def test_remote_write_failure_is_editor_not_found(reply):
    manager = AsyncMock()
    manager.request.return_value = reply

    with pytest.raises(EditorNotFound):
        await inject_code(RemoteEditorSurface("s1", manager), "print(1)")
