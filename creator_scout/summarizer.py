"""Language-model access for channel analysis, keyword extraction and idea generation"""

import logging
from typing import Any, Optional

from openai import OpenAI

from .config import Config

logger = logging.getLogger(__name__)

# Provider -> (OpenAI-compatible base URL, default model)
OPENAI_COMPATIBLE_PROVIDERS = {
    "openai": (None, "gpt-4-turbo-preview"),
    "deepseek": ("https://api.deepseek.com", "deepseek-chat"),
    "perplexity": ("https://api.perplexity.ai", "sonar"),
}
ANTHROPIC_DEFAULT_MODEL = "claude-3-5-sonnet-20241022"


def strip_code_fence(content: str) -> str:
    """Remove a surrounding ```/```json fence from model output"""
    content = content.strip()
    if content.startswith("```"):
        first_newline = content.find("\n")
        content = content[first_newline + 1:] if first_newline != -1 else content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


class TextAnalyzer:
    """Send prompts to the configured AI provider and return the text answer"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        provider: Optional[str] = None,
        config: Optional[Config] = None,
        client: Any = None,
    ):
        self.config = config or Config()
        self.provider = provider or self.config.ai_provider
        self.max_tokens = self.config.max_analysis_tokens

        if self.provider in OPENAI_COMPATIBLE_PROVIDERS:
            base_url, default_model = OPENAI_COMPATIBLE_PROVIDERS[self.provider]
            self.model = self.config.analysis_model or default_model
            if client is not None:
                self.client = client
                return
            self.api_key = api_key or self.config.analysis_api_key()
            if not self.api_key:
                raise ValueError(f"{self.provider} API key is required")
            if base_url:
                self.client = OpenAI(api_key=self.api_key, base_url=base_url)
            else:
                self.client = OpenAI(api_key=self.api_key)

        elif self.provider == "anthropic":
            self.model = self.config.analysis_model or ANTHROPIC_DEFAULT_MODEL
            if client is not None:
                self.client = client
                return
            self.api_key = api_key or self.config.anthropic_api_key
            if not self.api_key:
                raise ValueError("Anthropic API key is required")
            try:
                from anthropic import Anthropic
                self.client = Anthropic(api_key=self.api_key)
            except ImportError:
                raise ImportError(
                    "Anthropic SDK not installed. Install with: pip install anthropic"
                )

        else:
            raise ValueError(f"Unsupported AI provider: {self.provider}")

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> Optional[str]:
        """
        Ask the model a question

        Args:
            system_prompt: Instructions for the model
            user_prompt: The request itself
            temperature: Sampling temperature
            json_mode: Request a JSON object (where the provider supports it)

        Returns:
            Response text, or None if the call failed or came back empty
        """
        try:
            if self.provider == "anthropic":
                response = self.client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    temperature=temperature,
                    system=system_prompt,
                    messages=[{"role": "user", "content": user_prompt}],
                )
                content = response.content[0].text if response.content else ""

            else:
                api_params = {
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    "temperature": temperature,
                    "max_tokens": self.max_tokens,
                }
                # Perplexity rejects response_format=json_object
                if json_mode and self.provider != "perplexity":
                    api_params["response_format"] = {"type": "json_object"}

                logger.info(f"Calling {self.provider} API with model {self.model}...")
                response = self.client.chat.completions.create(**api_params)
                content = response.choices[0].message.content

            if not content or not content.strip():
                logger.error(f"Empty content from {self.provider} API")
                return None

            logger.info(f"Raw content preview: {content[:200]}...")
            return content

        except Exception as e:
            logger.error(f"Error calling {self.provider} API: {e}")
            return None


def create_analyzer(config: Config) -> Optional[TextAnalyzer]:
    """Build a TextAnalyzer, or return None when the provider is not configured"""
    try:
        return TextAnalyzer(config=config)
    except (ValueError, ImportError) as e:
        logger.warning(f"AI analysis unavailable: {e}")
        return None
