"""Chat Adapter 顶层包。

该包把统一的内部对话结构转换为 OpenAI 兼容接口的请求格式，
并把流式响应逐行归一化为 Chunk，包括推理指令提取、视觉模型图文拆分、
Provider 错误包与推理耗尽检测等能力。
"""

from chat_adapter.api.service import collect_content, prepare_request, stream_chat

__all__ = ["collect_content", "prepare_request", "stream_chat"]
