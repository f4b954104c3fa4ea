"""OpenAI 兼容接口的 Provider 适配器。

本模块负责：

1. 接收统一的 ChatRequest，回填推理指令并格式化消息（含视觉模型图文拆分）。
2. 以流式方式调用 /chat/completions（旧版模型走 /completions）。
3. 按 SSE 规则切分响应行，逐行交给 process_line 归一化为 Chunk。
"""

import copy
from typing import Any, Dict, Iterable, List, Optional

import httpx

from chat_adapter.config.settings import settings
from chat_adapter.domain.directives import apply_directive
from chat_adapter.domain.exceptions import (
    ApiError,
    NetworkError,
    ParserError,
    RateLimitError,
    ValidationError,
)
from chat_adapter.domain.models import ChatRequest, Chunk
from chat_adapter.infrastructure.images import ImageBuffer, ImageResolver
from chat_adapter.infrastructure.logging.logger import logger
from chat_adapter.providers.openai.processor import format_messages, process_line
from chat_adapter.providers.registry import OPENAI_CONFIG, is_completion_model
from chat_adapter.tools.definitions import ToolDef


class OpenAIClient:
    """OpenAI 提供方客户端实现。

    - name: Provider 名称（供日志/调试使用）。
    - chat_stream: 对外统一调用入口，逐个 yield Chunk。
    """

    name = "openai"

    def __init__(self, cfg=settings, resolver: Optional[ImageResolver] = None):
        self._settings = cfg
        self._resolver = resolver

    def chat_stream(self, req: ChatRequest, buffer: Optional[ImageBuffer] = None) -> Iterable[Chunk]:
        """执行一次流式对话调用。

        Provider 错误包与推理耗尽会直接抛出并终止流；
        无法解析的行默认跳过，可通过配置改为抛错或正则兜底输出。
        """

        if not getattr(self._settings, "openai_api_key", None):
            raise ValidationError(code="MISSING_API_KEY", message="OPENAI_API_KEY not set")
        is_completion = is_completion_model(req.model)
        payload = self.build_payload(req, buffer)
        endpoint = "completions" if is_completion else "chat/completions"
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                base = getattr(self._settings, "openai_base_url", None) or OPENAI_CONFIG.base_url
                with client.stream(
                    "POST",
                    f"{base.rstrip('/')}/{endpoint}",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self._settings.openai_api_key}",
                        "Content-Type": "application/json",
                    },
                ) as resp:
                    if resp.status_code == 429:
                        raise RateLimitError(code="RATE_LIMIT", message="OpenAI rate limit")
                    if resp.status_code >= 400:
                        resp.read()
                        raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
                    for line in resp.iter_lines():
                        data_str = self._frame(line)
                        if data_str is None:
                            continue
                        chunk = self._process(data_str, is_completion)
                        if chunk is not None:
                            yield chunk
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))

    def process_line(self, data: str, is_completion: bool) -> Chunk:
        return process_line(data, is_completion)

    # ---- 辅助方法 ----

    def build_payload(self, req: ChatRequest, buffer: Optional[ImageBuffer] = None) -> Dict[str, Any]:
        """将 ChatRequest 转成请求 JSON；调用方的消息列表不会被修改。"""

        messages = apply_directive(copy.deepcopy(req.messages), req.thinking)
        payload: Dict[str, Any] = {"model": req.model, "stream": True}
        if is_completion_model(req.model):
            payload["prompt"] = "\n".join(m.content for m in messages if m.content)
        else:
            resolver = self._resolver or ImageResolver(self._settings)
            payload["messages"] = format_messages(messages, req.model, buffer, resolver)
            if req.tools:
                payload["tools"] = [self._serialize_tool(tool) for tool in req.tools]
                payload["tool_choice"] = req.tool_choice

        optional = {
            "temperature": req.temperature,
            "top_p": req.top_p,
            "max_tokens": req.max_tokens,
            "presence_penalty": req.presence_penalty,
            "frequency_penalty": req.frequency_penalty,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        return payload

    @staticmethod
    def _frame(line: str) -> Optional[str]:
        """从一行 SSE 文本中取出 data 负载；注释、空行、[DONE] 返回 None。"""

        data_str = line.strip()
        if not data_str or data_str.startswith(":"):
            return None
        if data_str.startswith(("event:", "id:", "retry:")):
            return None
        if data_str.startswith("data:"):
            data_str = data_str[5:].strip()
        if not data_str or data_str == "[DONE]":
            return None
        return data_str

    def _process(self, data_str: str, is_completion: bool) -> Optional[Chunk]:
        try:
            return process_line(data_str, is_completion)
        except ParserError as e:
            if getattr(self._settings, "strict_stream_parsing", False):
                raise
            if getattr(self._settings, "robust_stream_fallback", False) and e.recovered:
                logger.info("openai stream: recovered content from malformed line")
                return Chunk(content=e.recovered)
            return None

    def _serialize_tool(self, tool: ToolDef) -> Dict[str, Any]:
        """把内部的 ToolDef 转成 OpenAI 的 function tool 描述。"""

        properties: Dict[str, Any] = {}
        required: List[str] = []
        for name, param in tool.params.items():
            schema = param.schema or {"type": "string"}
            if param.description:
                schema = {**schema, "description": param.description}
            properties[name] = schema
            if param.required:
                required.append(name)
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": required,
                },
            },
        }
