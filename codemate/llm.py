"""
LLM module for building prompts, calling the completion API and reading replies
"""

import json
import re
from typing import Optional, List, Dict, Sequence

import openai

from codemate.models import (
    FallbackReply,
    Message,
    PageContext,
    Reply,
    StructuredReply,
)
from codemate.prompt import PROBLEM_STATEMENT, PROGRAMMING_LANGUAGE, USER_CODE
from codemate.errors import MissingCredential, TransportFailure
from codemate.logger import get_logger
import config

logger = get_logger(__name__)

_PLACEHOLDER = re.compile(
    "|".join(re.escape(p) for p in (PROBLEM_STATEMENT, PROGRAMMING_LANGUAGE, USER_CODE))
)


def validate_template(template: str) -> None:
    """Raise ValueError if the template lacks any of the three placeholders"""
    missing = [
        placeholder
        for placeholder in (PROBLEM_STATEMENT, PROGRAMMING_LANGUAGE, USER_CODE)
        if placeholder not in template
    ]
    if missing:
        raise ValueError(f"Prompt template is missing placeholders: {', '.join(missing)}")


def build_system_prompt(template: str, context: PageContext, user_code: str) -> str:
    """Fill the template with the page context and the code from the editor"""
    values = {
        PROBLEM_STATEMENT: context.problem_statement or "",
        PROGRAMMING_LANGUAGE: context.programming_language or "",
        USER_CODE: user_code or "",
    }
    # One pass, so placeholder text inside the user's code is never expanded again
    return _PLACEHOLDER.sub(lambda match: values[match.group(0)], template)


def build_messages(
    system_prompt: str, history: Sequence[Message], user_text: str
) -> List[Dict[str, str]]:
    """Build the chat-completions message list for one turn.

    `history` holds the turns that came before this one; the current user
    message is appended last and must not already be part of `history`.
    """
    messages = [{"role": "system", "content": system_prompt}]
    messages.extend({"role": message.role, "content": message.text} for message in history)
    messages.append({"role": "user", "content": user_text})
    return messages


def _strip_code_fence(text: str) -> str:
    """Remove a markdown code block wrapper if present"""
    json_text = text.strip()
    if json_text.startswith("```json"):
        json_text = json_text[7:]
    if json_text.startswith("```"):
        json_text = json_text[3:]
    if json_text.endswith("```"):
        json_text = json_text[:-3]
    return json_text.strip()


def parse_reply(text: Optional[str]) -> Optional[Reply]:
    """Read a raw model reply as {output, code?}, falling back to the verbatim text.

    Returns None only for an empty reply. Never raises.
    """
    if not text:
        return None

    try:
        result = json.loads(_strip_code_fence(text))
    except (ValueError, RecursionError) as e:
        logger.info(f"Reply is not JSON, showing it as plain text: {e}")
        return FallbackReply(text=text)

    if not isinstance(result, dict) or not isinstance(result.get("output"), str):
        logger.info("Reply JSON has no 'output' field, showing it as plain text")
        return FallbackReply(text=text)

    code = result.get("code")
    if not isinstance(code, str) or not code:
        code = None

    return StructuredReply(output=result["output"], code=code)


class CompletionClient:
    """Sends one chat-completions request per call and returns the raw reply text"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        response_format: Dict[str, str] | None = None,
    ):
        self.base_url = base_url if base_url is not None else config.OPENAI_BASE_URL
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT
        self.response_format = response_format or {"type": "json_object"}

    def _create_client(self, api_key: str) -> openai.AsyncOpenAI:
        # The key can change between turns, so a client is built and closed per request
        return openai.AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )

    async def complete(
        self, messages: List[Dict[str, str]], model: str, api_key: str | None
    ) -> str:
        if not api_key:
            raise MissingCredential()

        logger.info(f"Calling completion API with model: {model}, {len(messages)} messages")

        try:
            async with self._create_client(api_key) as client:
                response = await client.chat.completions.create(
                    model=model,
                    messages=messages,
                    response_format=self.response_format,
                )
        except openai.OpenAIError as e:
            logger.error(f"Completion API error ({model}): {e}")
            raise TransportFailure(str(e)) from e

        if not response.choices:
            logger.error(f"Completion API returned no choices ({model})")
            raise TransportFailure("No choices in completion response")

        text = response.choices[0].message.content or ""
        preview = text[:100].replace("\n", " ").strip()
        logger.info(f"Completion response ({model}): length {len(text)}, preview: {preview}")
        return text
