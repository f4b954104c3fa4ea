"""OpenAI 请求消息格式化与流式响应行解析。

- format_messages: ChatMessage 列表 -> OpenAI messages（视觉模型拆分图文）。
- process_line: 单行流式 JSON -> Chunk，或抛出对应的业务异常。
- get_robustness_result: 结构化解析失败时，用正则兜底提取 content。
"""

import json
import re
from typing import Any, Dict, List, Optional

from chat_adapter.domain.exceptions import (
    ImageError,
    ParserError,
    ProviderError,
    ReasoningExhaustedError,
)
from chat_adapter.domain.models import USER, ChatMessage, Chunk
from chat_adapter.infrastructure.images import ImageBuffer, ImageResolver, excerpt, extract_images
from chat_adapter.infrastructure.logging.logger import logger
from chat_adapter.providers.openai.schemas import (
    ChatStreamErrorResponse,
    ChatStreamResponse,
    CompletionResponse,
    decode,
)
from chat_adapter.providers.registry import is_vision_model

_CONTENT_RE = re.compile(r'"content"\s*:\s*"((?:[^"\\]|\\.)*)"')
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\", "/": "/"}


# ---- 请求消息 ----


def message_to_payload(message: ChatMessage, content: Any = None) -> Dict[str, Any]:
    """ChatMessage -> OpenAI message；content 为 None 时使用原始文本。"""

    payload: Dict[str, Any] = {
        "role": message.role,
        "content": message.content if content is None else content,
    }
    if message.name:
        payload["name"] = message.name
    if message.function_call:
        payload["function_call"] = {
            "name": message.function_call.name,
            "arguments": message.function_call.arguments,
        }
    if message.tool_calls:
        payload["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.name,
                    "arguments": json.dumps(call.arguments, ensure_ascii=False),
                },
            }
            for call in message.tool_calls
        ]
    if message.tool_call_id:
        payload["tool_call_id"] = message.tool_call_id
    return payload


def format_messages(
    messages: List[ChatMessage],
    model: str,
    buffer: Optional[ImageBuffer] = None,
    resolver: Optional[ImageResolver] = None,
) -> List[Dict[str, Any]]:
    """构造 OpenAI messages。

    非视觉模型：原样输出纯文本消息。
    视觉模型：user 消息拆成 [图片..., 文本]，图片解析失败只记录日志并跳过；
    其他角色始终是单段文本。成功解析的图片会登记到调用方的 buffer。
    """

    if not is_vision_model(model):
        return [message_to_payload(m) for m in messages]

    resolver = resolver or ImageResolver()
    formatted: List[Dict[str, Any]] = []
    for message in messages:
        if message.role != USER:
            formatted.append(message_to_payload(message, [{"type": "text", "text": message.content}]))
            continue

        text, urls = extract_images(message.content)
        parts: List[Dict[str, Any]] = []
        for url in urls:
            try:
                image = resolver.resolve(url)
            except ImageError as e:
                logger.warning(f"cannot process image: {e.message} (source: {excerpt(url)})")
                continue
            if buffer is not None:
                buffer.add_image(image)
            parts.append({"type": "image_url", "image_url": {"url": url}})
        parts.append({"type": "text", "text": text})
        formatted.append(message_to_payload(message, parts))
    return formatted


# ---- 流式响应 ----


def _unescape(raw: str) -> str:
    try:
        return json.loads(f'"{raw}"')
    except json.JSONDecodeError:
        # 截断的转义序列：逐个替换常见转义，其余原样保留
        return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(0)), raw)


def get_robustness_result(chunk: str) -> str:
    """从损坏/截断的 JSON 行中尽力提取第一个 "content" 字段，找不到返回空串。"""

    match = _CONTENT_RE.search(chunk)
    if not match:
        return ""
    return _unescape(match.group(1))


def get_choices(form: ChatStreamResponse) -> Chunk:
    """只取第一个 choice；没有 choice 的心跳行返回空 Chunk。"""

    if not form.choices:
        return Chunk(content="")

    choice = form.choices[0]
    delta = choice.delta
    content = delta.content or ""

    # finish_reason 为 length 但没有任何可见输出：推理模型在思考阶段耗尽了 token
    if (
        choice.finish_reason == "length"
        and content == ""
        and delta.tool_calls is None
        and delta.function_call is None
    ):
        raise ReasoningExhaustedError()

    return Chunk(
        content=content,
        tool_calls=delta.tool_calls,
        function_call=delta.function_call,
    )


def get_completion_choices(form: CompletionResponse) -> str:
    if not form.choices:
        return ""
    return form.choices[0].text or ""


def process_line(data: str, is_completion: bool) -> Chunk:
    """解析一行流式数据（已去掉 ``data:`` 前缀）。

    Raises:
        ParserError: 无法匹配任何已知结构。
        ProviderError: 行内容是 Provider 返回的错误包。
        ReasoningExhaustedError: 推理阶段耗尽 token。
    """

    if is_completion:
        # openai legacy support
        completion = decode(CompletionResponse, data)
        if completion is not None:
            return Chunk(content=get_completion_choices(completion))

        logger.warning(f"openai error: cannot parse completion response: {data}")
        raise ParserError(
            "parser error: cannot parse completion response",
            raw=data,
            recovered=get_robustness_result(data),
        )

    form = decode(ChatStreamResponse, data)
    if form is not None:
        return get_choices(form)

    error = decode(ChatStreamErrorResponse, data)
    if error is not None:
        raise ProviderError(error.error.message or "", error.error.type or "")

    logger.warning(f"openai error: cannot parse chat completion response: {data}")
    raise ParserError(
        "parser error: cannot parse chat completion response",
        raw=data,
        recovered=get_robustness_result(data),
    )
