from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .prompts import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, OPENAI_CHAT_COMPLETIONS_URL


@dataclass
class ProxyConfig:
    host: str = "127.0.0.1"
    port: int = 8110
    upstream_url: str = OPENAI_CHAT_COMPLETIONS_URL
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    upstream_timeout_ms: int = 120_000
    # 0 disables the decoded-size guard
    max_image_bytes: int = 6_000_000
    validate_image: bool = True
    # Empty string keeps the per-request JSONL log off
    request_log_path: str = ""
    max_log_bytes: int = 25_000_000
    log_level: str = "INFO"
    openai_api_key: Optional[str] = None
    config_file_path: Optional[str] = None

    @classmethod
    def load(cls) -> "ProxyConfig":
        from .config_loader import load_proxy_config

        return load_proxy_config()

    def masked_api_key(self) -> str:
        key = self.openai_api_key or ""
        if not key:
            return "<unset>"
        if len(key) <= 8:
            return "****"
        return f"{key[:3]}…{key[-4:]}"
