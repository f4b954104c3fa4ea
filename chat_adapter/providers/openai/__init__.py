"""OpenAI 兼容接口适配（消息格式化、流式行解析、HTTP 客户端）。"""

from chat_adapter.providers.openai.client import OpenAIClient
from chat_adapter.providers.openai.processor import format_messages, get_robustness_result, process_line

__all__ = ["OpenAIClient", "format_messages", "get_robustness_result", "process_line"]
