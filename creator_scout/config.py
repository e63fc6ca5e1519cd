"""Configuration management"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables
load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


class Config(BaseModel):
    """Application configuration"""

    # API Keys
    youtube_api_key: str = Field(default_factory=lambda: os.getenv("YOUTUBE_API_KEY", ""))
    openai_api_key: str = Field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    anthropic_api_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY")
    )
    deepseek_api_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("DEEPSEEK_API_KEY")
    )
    perplexity_api_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("PERPLEXITY_API_KEY")
    )

    # MCP Server Configuration
    mcp_server_name: str = Field(
        default_factory=lambda: os.getenv("MCP_SERVER_NAME", "creator-scout")
    )

    # AI Model Configuration
    ai_provider: str = Field(
        default_factory=lambda: os.getenv("AI_PROVIDER", "perplexity")
    )  # "openai", "deepseek", "perplexity", "anthropic"
    analysis_model: Optional[str] = Field(
        default_factory=lambda: os.getenv("ANALYSIS_MODEL")
    )  # None = provider default
    max_analysis_tokens: int = Field(
        default_factory=lambda: _env_int("MAX_ANALYSIS_TOKENS", 4000)
    )

    # Related channel discovery
    min_subscribers: int = Field(
        default_factory=lambda: _env_int("MIN_SUBSCRIBERS", 10_000), ge=0
    )
    max_subscribers: int = Field(
        default_factory=lambda: _env_int("MAX_SUBSCRIBERS", 500_000), ge=0
    )

    # Performance
    max_concurrent_searches: int = Field(
        default_factory=lambda: _env_int("MAX_CONCURRENT_SEARCHES", 3), ge=1
    )
    request_delay_seconds: float = Field(
        default_factory=lambda: _env_float("REQUEST_DELAY_SECONDS", 0.15), ge=0
    )

    def analysis_api_key(self) -> Optional[str]:
        """Return the API key for the configured AI provider"""
        return {
            "openai": self.openai_api_key,
            "deepseek": self.deepseek_api_key,
            "perplexity": self.perplexity_api_key,
            "anthropic": self.anthropic_api_key,
        }.get(self.ai_provider)

    def validate_keys(self) -> list[str]:
        """Validate required API keys and return list of missing keys"""
        missing = []
        if not self.youtube_api_key:
            missing.append("YOUTUBE_API_KEY")

        # Validate AI provider key
        if not self.analysis_api_key():
            missing.append(f"{self.ai_provider.upper()}_API_KEY")

        return missing
