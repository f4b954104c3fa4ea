"""Provider 与模型能力配置。

本模块集中维护 OpenAI 兼容接口的模型能力表：

- vision_models: 支持图片输入的模型，请求时需要把 user 消息拆成图文多段。
- completion_models: 只支持旧版 /completions 接口的模型，流式响应是纯文本 choices。

内置列表之外的模型可以通过配置项 vision_models / completion_models 追加。"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable

from chat_adapter.config.settings import settings


@dataclass(frozen=True)
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    vision_models: FrozenSet[str] = field(default_factory=frozenset)
    completion_models: FrozenSet[str] = field(default_factory=frozenset)


OPENAI_CONFIG = ProviderConfig(
    name="openai",
    base_url="https://api.openai.com/v1",
    vision_models=frozenset({
        "gpt-4-vision-preview",
        "gpt-4-turbo",
        "gpt-4o",
        "gpt-4o-mini",
        "gpt-4.1",
        "gpt-4.1-mini",
        "gpt-4.1-nano",
        "gpt-4.5-preview",
        "gpt-5",
        "gpt-5-mini",
        "gpt-5-nano",
        "o1",
        "o3",
        "o4-mini",
        "chatgpt-4o-latest",
    }),
    completion_models=frozenset({
        "gpt-3.5-turbo-instruct",
        "davinci-002",
        "babbage-002",
    }),
)


def _matches(model: str, candidates: Iterable[str]) -> bool:
    # 精确匹配，或匹配带日期/后缀的版本（gpt-4o -> gpt-4o-2024-08-06）
    name = model.strip().lower()
    for candidate in candidates:
        c = candidate.strip().lower()
        if c and (name == c or name.startswith(c + "-")):
            return True
    return False


def is_vision_model(model: str, cfg: ProviderConfig = OPENAI_CONFIG) -> bool:
    return _matches(model, [*cfg.vision_models, *settings.vision_models])


def is_completion_model(model: str, cfg: ProviderConfig = OPENAI_CONFIG) -> bool:
    return _matches(model, [*cfg.completion_models, *settings.completion_models])
