"""统一的对话与结果数据模型。

本模块定义了适配层内部与 Provider 无关的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant/tool/function）。
- ChatRequest: 发给底层 LLM Provider 的完整请求。
- Chunk: 流式响应中每一行归一化后的增量。

Provider 适配器（如 OpenAIClient）只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass
from typing import Literal, Optional, Any, Dict, List, TYPE_CHECKING

if TYPE_CHECKING:
    # 仅在类型检查时导入，避免运行时循环依赖
    from chat_adapter.tools.definitions import FunctionCall, ToolCall, ToolDef


# LLM 消息角色类型（与 OpenAI 的 role 字段对应）
Role = Literal["system", "user", "assistant", "tool", "function"]

USER: Role = "user"
SYSTEM: Role = "system"


@dataclass
class ChatMessage:
    """一条对话消息。

    - role: 消息角色，如 system/user/assistant。
    - content: 纯文本内容，图片以 markdown 或 URL 形式内嵌在文本中。
    - name: 可选的发言者名称。
    - function_call: 旧版函数调用（assistant 历史消息）。
    - tool_calls: assistant 发起的工具调用列表。
    - tool_call_id: 当 role 为 "tool" 时，用于关联某一次工具调用。
    """

    role: Role
    content: str
    name: Optional[str] = None
    function_call: Optional["FunctionCall"] = None
    tool_calls: Optional[List["ToolCall"]] = None
    tool_call_id: Optional[str] = None


@dataclass
class ChatRequest:
    """一次完整的聊天请求。

    thinking 为推理模式指令：None 表示未指定，True/False 表示开启/关闭，
    由 Provider 在发送前以 /think、/no_think 形式追加到消息文本中。
    """

    model: str
    messages: List[ChatMessage]
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_tokens: Optional[int] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    tools: Optional[List["ToolDef"]] = None
    tool_choice: Literal["auto", "none", "required"] = "auto"
    thinking: Optional[bool] = None


@dataclass
class Chunk:
    """流式输出的归一化增量。

    tool_calls / function_call 保留厂商返回的原始增量结构（dict），
    由下游负责按 index 累积拼接。
    """

    content: str = ""
    tool_calls: Optional[List[Dict[str, Any]]] = None
    function_call: Optional[Dict[str, Any]] = None
