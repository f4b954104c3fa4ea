"""推理模式指令（/think、/no_think）的提取与回填。

用户可以在消息文本里写入 /think 或 /no_think 来切换模型的推理模式。
发送前先把指令从文本中剥离（extract_*），再按统一格式回填到
最后一条 user/system 消息末尾（apply_directive）。

指令是三态值：None 表示未出现，True 表示开启，False 表示关闭。
"""

import re
from typing import List, Optional, Tuple

from chat_adapter.domain.models import SYSTEM, USER, ChatMessage

THINK_TOKEN = "/think"
NO_THINK_TOKEN = "/no_think"

# 斜杠形式：/think、/no_think、/no-think、/nothink；无斜杠时只接受 no_think / no-think
DIRECTIVE_PATTERN = re.compile(r"(?:/(?:no[_-]?think|think)|\bno[_-]think)\b", re.IGNORECASE)


def extract_directive(content: str) -> Tuple[str, Optional[bool]]:
    """剥离文本中的所有指令，返回清理后的文本与指令值。

    多个指令同时出现时，按阅读顺序最后一个生效。
    """

    if not content:
        return content, None

    directive: Optional[bool] = None

    def _strip(match: "re.Match[str]") -> str:
        nonlocal directive
        directive = "no" not in match.group(0).lower()
        return ""

    sanitized = DIRECTIVE_PATTERN.sub(_strip, content)
    return sanitized.strip(), directive


def extract_directive_from_messages(
    messages: List[ChatMessage],
) -> Tuple[List[ChatMessage], Optional[bool]]:
    """对每条消息依次执行 extract_directive，后出现的消息覆盖先前的指令。"""

    directive: Optional[bool] = None
    for message in messages:
        content, found = extract_directive(message.content)
        if found is not None:
            directive = found
        message.content = content
    return messages, directive


def apply_directive(messages: List[ChatMessage], directive: Optional[bool]) -> List[ChatMessage]:
    """把指令追加到最后一条 user/system 消息末尾；找不到目标时保持原样。"""

    if directive is None or not messages:
        return messages

    target = next(
        (m for m in reversed(messages) if m.role in (USER, SYSTEM)),
        None,
    )
    if target is None:
        return messages

    token = THINK_TOKEN if directive else NO_THINK_TOKEN
    content = target.content.strip()
    target.content = f"{content}\n{token}" if content else token
    return messages
