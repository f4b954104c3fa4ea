"""OpenAI 流式响应的几种线上格式。

每种响应形态对应一个 Pydantic 模型，解析时按固定优先级逐个尝试：
chat 增量 -> error 包 -> 失败。未知字段一律忽略，保证厂商新增字段不会破坏解析。
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

T = TypeVar("T", bound=BaseModel)


class WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ChatDelta(WireModel):
    role: Optional[str] = None
    content: Optional[str] = None
    tool_calls: Optional[List[Dict[str, Any]]] = None
    function_call: Optional[Dict[str, Any]] = None


class ChatStreamChoice(WireModel):
    index: Optional[int] = None
    delta: ChatDelta = Field(default_factory=ChatDelta)
    finish_reason: Optional[str] = None

    @field_validator("delta", mode="before")
    @classmethod
    def _null_delta(cls, v: Any) -> Any:
        return {} if v is None else v


class ChatStreamResponse(WireModel):
    """chat.completion.chunk；choices 字段必须存在（可以为空列表）。"""

    id: Optional[str] = None
    model: Optional[str] = None
    choices: List[ChatStreamChoice]

    @field_validator("choices", mode="before")
    @classmethod
    def _null_choices(cls, v: Any) -> Any:
        return [] if v is None else v


class CompletionChoice(WireModel):
    index: Optional[int] = None
    text: Optional[str] = None
    finish_reason: Optional[str] = None


class CompletionResponse(WireModel):
    """旧版 /completions 接口的响应。"""

    id: Optional[str] = None
    model: Optional[str] = None
    choices: List[CompletionChoice] = Field(default_factory=list)

    @field_validator("choices", mode="before")
    @classmethod
    def _null_choices(cls, v: Any) -> Any:
        return [] if v is None else v


class ErrorDetail(WireModel):
    message: Optional[str] = None
    type: Optional[str] = None
    code: Optional[Any] = None


class ChatStreamErrorResponse(WireModel):
    error: ErrorDetail


def decode(model_cls: Type[T], data: str) -> Optional[T]:
    """按给定结构解析一行 JSON，失败（非法 JSON、null、结构不符）返回 None。"""

    try:
        return model_cls.model_validate_json(data)
    except ValidationError:
        return None
