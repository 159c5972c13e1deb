from __future__ import annotations

import os
from dataclasses import dataclass

import httpx
from dotenv import load_dotenv

from structured_chat.errors import ConfigError
from structured_chat.schema.derive import TitlePolicy


@dataclass(frozen=True)
class Settings:
    llm_backend: str

    api_key: str
    model: str
    base_url: str

    timeout_s: float
    title_policy: TitlePolicy

    def __repr__(self) -> str:
        # Keep the key out of tracebacks and logs.
        return (
            f"Settings(llm_backend={self.llm_backend!r}, model={self.model!r}, "
            f"base_url={self.base_url!r}, timeout_s={self.timeout_s!r}, "
            f"title_policy={self.title_policy.value!r}, api_key='***')"
        )


def _getenv(key: str, default: str | None = None) -> str | None:
    v = os.getenv(key)
    if v is None or v.strip() == "":
        return default
    return v.strip()


def load_title_policy() -> TitlePolicy:
    """`SC_TITLE_POLICY` alone; needs no credentials."""
    load_dotenv(override=False)
    raw_policy = (_getenv("SC_TITLE_POLICY", TitlePolicy.STRIP_ROOT.value) or "").lower()
    try:
        return TitlePolicy(raw_policy)
    except ValueError:
        choices = "|".join(p.value for p in TitlePolicy)
        raise ConfigError(f"unknown SC_TITLE_POLICY={raw_policy!r}, expected {choices}") from None


def _check_base_url(base_url: str) -> str:
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as exc:
        raise ConfigError(f"SC_OPENAI_BASE_URL is not a valid URL: {exc}") from None
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigError(f"SC_OPENAI_BASE_URL must be an absolute http(s) URL, got {base_url!r}")
    return base_url


def load_settings() -> Settings:
    # Allow users to keep secrets in a local `.env` (not committed).
    load_dotenv(override=False)

    llm_backend = (_getenv("SC_LLM_BACKEND", "openai") or "openai").lower()
    if llm_backend not in ("openai", "mock"):
        raise ConfigError(f"unknown SC_LLM_BACKEND={llm_backend!r}, expected openai|mock")

    api_key = _getenv("OPENAI_API_KEY")
    model = _getenv("OPENAI_MODEL")
    if llm_backend == "openai":
        if not api_key:
            raise ConfigError("OPENAI_API_KEY not set")
        if not model:
            raise ConfigError("OPENAI_MODEL not set")

    base_url = _check_base_url(_getenv("SC_OPENAI_BASE_URL", "https://api.openai.com/v1") or "")

    raw_timeout = _getenv("SC_TIMEOUT_S", "120") or "120"
    try:
        timeout_s = float(raw_timeout)
    except ValueError:
        raise ConfigError(f"SC_TIMEOUT_S must be a number, got {raw_timeout!r}") from None
    if timeout_s <= 0:
        raise ConfigError(f"SC_TIMEOUT_S must be positive, got {timeout_s}")

    title_policy = load_title_policy()

    return Settings(
        llm_backend=llm_backend,
        api_key=api_key or "",
        model=model or "mock",
        base_url=base_url,
        timeout_s=timeout_s,
        title_policy=title_policy,
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, loaded on first use and read-only afterwards."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings (tests, or after changing the environment)."""
    global _settings
    _settings = None
