from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Literal, Union


class PageContext(BaseModel):
    problem_statement: str = ""
    programming_language: str


class StructuredReply(BaseModel):
    """Reply that parsed into the {output, code?} schema"""

    kind: Literal["structured"] = "structured"
    output: str
    code: Optional[str] = None


class FallbackReply(BaseModel):
    """Reply that did not parse; shown verbatim"""

    kind: Literal["fallback"] = "fallback"
    text: str


Reply = Union[StructuredReply, FallbackReply]


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    kind: Literal["text", "markdown"]
    text: str
    code: Optional[str] = None

    @model_validator(mode="after")
    def check_user_message(self):
        if self.role == "user" and (self.kind != "text" or self.code is not None):
            raise ValueError("user messages are plain text without code")
        return self

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role="user", kind="text", text=text)

    @classmethod
    def from_reply(cls, reply: Reply) -> "Message":
        if isinstance(reply, StructuredReply):
            return cls(role="assistant", kind="markdown", text=reply.output, code=reply.code)
        return cls(role="assistant", kind="markdown", text=reply.text)


class SessionState(BaseModel):
    session_id: str
    status: Literal["idle", "awaiting_response"]
    selected_model: str
    available_models: List[str]
    context: PageContext
    history: List[Message] = Field(default_factory=list)


# --- API request/response models ---


class CreateSessionRequest(BaseModel):
    problem_statement: Optional[str] = None
    programming_language: Optional[str] = None
    html: Optional[str] = None
    model: Optional[str] = None


class SendMessageRequest(BaseModel):
    text: str


class SendMessageResponse(BaseModel):
    status: Literal["success", "ignored"]
    message: str
    reply: Optional[Message] = None
    session: SessionState


class SelectModelRequest(BaseModel):
    model: str


class ApplyCodeRequest(BaseModel):
    message_index: int


class SetApiKeyRequest(BaseModel):
    api_key: str = Field(min_length=1)
