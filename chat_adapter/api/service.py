"""对外 API 服务模块。

提供简化的函数接口供上层应用调用。
"""

from typing import Any, Iterable, List, Optional

from chat_adapter.domain.directives import extract_directive_from_messages
from chat_adapter.domain.models import ChatMessage, ChatRequest, Chunk
from chat_adapter.infrastructure.images import ImageBuffer
from chat_adapter.infrastructure.logging.logger import logger
from chat_adapter.providers import create_provider
from chat_adapter.providers.base import ProviderClient


_provider: Optional[ProviderClient] = None


def get_default_provider() -> ProviderClient:
    """获取默认的 Provider 实例（单例）。"""
    global _provider
    if _provider is None:
        _provider = create_provider()
    return _provider


def prepare_request(messages: List[ChatMessage], model: str, **options: Any) -> ChatRequest:
    """剥离消息中的 /think、/no_think 指令并构造 ChatRequest。

    options 中显式传入的 thinking 优先于消息里的指令。
    """

    messages, directive = extract_directive_from_messages(messages)
    thinking = options.pop("thinking", None)
    if thinking is None:
        thinking = directive
    return ChatRequest(model=model, messages=messages, thinking=thinking, **options)


def stream_chat(
    messages: List[ChatMessage],
    model: str,
    buffer: Optional[ImageBuffer] = None,
    provider: Optional[ProviderClient] = None,
    **options: Any,
) -> Iterable[Chunk]:
    """运行一次流式对话。

    Args:
        messages: 对话消息（会被就地剥离推理指令）
        model: 目标模型 ID
        buffer: 调用方持有的图片收集器（可选）
        provider: 指定 Provider（可选，默认使用配置中的 Provider）

    Raises:
        各种 domain.exceptions 中定义的异常
    """
    req = prepare_request(messages, model, **options)
    client = provider or get_default_provider()
    logger.info(
        "chat stream started",
        extra={"extra": {"provider": client.name, "model": model, "thinking": req.thinking}},
    )
    yield from client.chat_stream(req, buffer)


def collect_content(chunks: Iterable[Chunk]) -> str:
    """把流式 Chunk 的文本拼接为完整回复。"""

    return "".join(chunk.content for chunk in chunks)
