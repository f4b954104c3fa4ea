"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型能力配置 (registry)。
- 提供各厂商的具体实现 (如 openai)。
"""

from typing import Optional

from chat_adapter.config.settings import settings
from chat_adapter.providers.base import ProviderClient
from chat_adapter.providers.openai import OpenAIClient


def create_provider(name: Optional[str] = None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。"""

    provider_name = (name or getattr(settings, "default_provider", "openai")).lower()
    if provider_name == "openai":
        return OpenAIClient(settings)
    raise KeyError(f"Unknown provider: {provider_name!r}")
