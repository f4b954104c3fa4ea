"""Provider 抽象接口。

上层调用方不直接依赖具体厂商的 HTTP 协议，而是依赖此协议：

- 每个厂商实现一个 ProviderClient（如 OpenAIClient）。
- 负责：将 ChatRequest 转成具体 API 请求，并把流式响应的每一行解析为 Chunk。

这样可以在不改调用方代码的前提下接入更多厂商。
"""

from typing import Iterable, Optional, Protocol

from chat_adapter.domain.models import ChatRequest, Chunk
from chat_adapter.infrastructure.images import ImageBuffer


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - chat_stream(req, buffer): 执行一次流式调用，逐个产出 Chunk。
    - process_line(data, is_completion): 把单行响应归一化为 Chunk。
    """

    name: str

    def chat_stream(self, req: ChatRequest, buffer: Optional[ImageBuffer] = None) -> Iterable[Chunk]:
        ...

    def process_line(self, data: str, is_completion: bool) -> Chunk:
        ...
