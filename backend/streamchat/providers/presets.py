"""Static catalog of provider presets shown in the settings UI (order matters)."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderPreset:
    name: str
    base_url: str
    models: tuple[str, ...]

    def to_dict(self) -> dict:
        return {"name": self.name, "base_url": self.base_url, "models": list(self.models)}


PROVIDER_PRESETS: tuple[ProviderPreset, ...] = (
    ProviderPreset(
        name="OpenAI",
        base_url="https://api.openai.com/v1",
        models=("gpt-4o", "gpt-4o-mini", "gpt-4-turbo", "gpt-4", "gpt-3.5-turbo"),
    ),
    ProviderPreset(
        name="Moonshot (Kimi)",
        base_url="https://api.moonshot.cn/v1",
        models=("moonshot-v1-128k", "moonshot-v1-32k", "moonshot-v1-8k"),
    ),
    ProviderPreset(
        name="DeepSeek",
        base_url="https://api.deepseek.com/v1",
        models=("deepseek-chat", "deepseek-coder"),
    ),
    ProviderPreset(
        name="智谱 (Zhipu)",
        base_url="https://open.bigmodel.cn/api/paas/v4",
        models=("glm-4-plus", "glm-4", "glm-4-flash"),
    ),
    ProviderPreset(
        name="通义千问 (Qwen)",
        base_url="https://dashscope.aliyuncs.com/compatible-mode/v1",
        models=("qwen-turbo", "qwen-plus", "qwen-max"),
    ),
    ProviderPreset(
        name="百川 (Baichuan)",
        base_url="https://api.baichuan-ai.com/v1",
        models=("Baichuan4", "Baichuan3-Turbo", "Baichuan2-Turbo"),
    ),
    ProviderPreset(
        name="Ollama (本地)",
        base_url="http://localhost:11434/v1",
        models=("llama3", "llama2", "mistral", "codellama", "qwen2"),
    ),
    ProviderPreset(
        name="自定义",
        base_url="",
        models=(),
    ),
)
