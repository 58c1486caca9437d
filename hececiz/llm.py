#!/usr/bin/env python3
"""
Unified vision client supporting multiple providers.
Sends one image plus an instruction and returns the model's text reply,
with a consistent interface across Google Gemini, Anthropic and OpenAI.
"""

import os
import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, List

from .config import load_config

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Unified response from any LLM provider"""
    content: str
    model: str
    provider: str
    usage: Optional[Dict[str, int]] = None


class BaseLLMClient(ABC):
    """Abstract base class for vision-capable LLM clients"""

    provider: str = ''
    model_name: str = ''

    @abstractmethod
    def classify_image(
        self,
        image: bytes,
        mime_type: str,
        prompt: str,
        max_tokens: int = 200,
        temperature: float = 0.0,
    ) -> LLMResponse:
        """Ask the model about one image and request a JSON reply"""
        pass


class GeminiClient(BaseLLMClient):
    """Google Gemini client"""

    DEFAULT_MODEL = "gemini-2.5-pro"

    def __init__(self, api_key: str, model: str = None):
        import google.generativeai as genai
        genai.configure(api_key=api_key)
        self.model_name = model or self.DEFAULT_MODEL
        self.model = genai.GenerativeModel(self.model_name)
        self.provider = "gemini"

    def classify_image(
        self,
        image: bytes,
        mime_type: str,
        prompt: str,
        max_tokens: int = 200,
        temperature: float = 0.0,
    ) -> LLMResponse:
        response = self.model.generate_content(
            [{"mime_type": mime_type, "data": image}, prompt],
            generation_config={
                "max_output_tokens": max_tokens,
                "temperature": temperature,
                "response_mime_type": "application/json",
            }
        )
        return LLMResponse(
            content=response.text,
            model=self.model_name,
            provider=self.provider,
        )


class AnthropicClient(BaseLLMClient):
    """Anthropic Claude client"""

    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(self, api_key: str, model: str = None):
        from anthropic import Anthropic
        self.client = Anthropic(api_key=api_key)
        self.model_name = model or self.DEFAULT_MODEL
        self.provider = "anthropic"

    def classify_image(
        self,
        image: bytes,
        mime_type: str,
        prompt: str,
        max_tokens: int = 200,
        temperature: float = 0.0,
    ) -> LLMResponse:
        response = self.client.messages.create(
            model=self.model_name,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{
                "role": "user",
                "content": [
                    {
                        "type": "image",
                        "source": {
                            "type": "base64",
                            "media_type": mime_type,
                            "data": base64.b64encode(image).decode('ascii'),
                        },
                    },
                    {"type": "text", "text": prompt},
                ],
            }],
        )
        return LLMResponse(
            content=response.content[0].text,
            model=self.model_name,
            provider=self.provider,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            }
        )


class OpenAIClient(BaseLLMClient):
    """OpenAI GPT client"""

    DEFAULT_MODEL = "gpt-4o"

    def __init__(self, api_key: str, model: str = None):
        from openai import OpenAI
        self.client = OpenAI(api_key=api_key)
        self.model_name = model or self.DEFAULT_MODEL
        self.provider = "openai"

    def classify_image(
        self,
        image: bytes,
        mime_type: str,
        prompt: str,
        max_tokens: int = 200,
        temperature: float = 0.0,
    ) -> LLMResponse:
        data_url = f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"
        response = self.client.chat.completions.create(
            model=self.model_name,
            max_tokens=max_tokens,
            temperature=temperature,
            response_format={"type": "json_object"},
            messages=[{
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": data_url}},
                ],
            }],
        )
        return LLMResponse(
            content=response.choices[0].message.content,
            model=self.model_name,
            provider=self.provider,
            usage={
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            } if response.usage else None
        )


# Provider registry, in default preference order
PROVIDERS = {
    "gemini": {
        "client_class": GeminiClient,
        "env_var": "GOOGLE_API_KEY",
        "config_key": "gemini_api_key",
        "key_prefix": "AI",
        "display_name": "Google (Gemini)",
        "url": "https://aistudio.google.com/app/apikey",
    },
    "anthropic": {
        "client_class": AnthropicClient,
        "env_var": "ANTHROPIC_API_KEY",
        "config_key": "anthropic_api_key",
        "key_prefix": "sk-ant-",
        "display_name": "Anthropic (Claude)",
        "url": "https://console.anthropic.com/settings/keys",
    },
    "openai": {
        "client_class": OpenAIClient,
        "env_var": "OPENAI_API_KEY",
        "config_key": "openai_api_key",
        "key_prefix": "sk-",
        "display_name": "OpenAI (GPT-4o)",
        "url": "https://platform.openai.com/api-keys",
    },
}


def get_available_providers() -> List[str]:
    """Get list of providers with configured API keys"""
    config = load_config()
    available = []
    for provider, info in PROVIDERS.items():
        if os.getenv(info["env_var"]) or config.get(info["config_key"]):
            available.append(provider)
    return available


def get_api_key_for_provider(provider: str) -> Optional[str]:
    """Get API key for a specific provider"""
    if provider not in PROVIDERS:
        return None

    info = PROVIDERS[provider]

    # Environment wins over the config file
    api_key = os.getenv(info["env_var"])
    if api_key:
        return api_key

    config = load_config()
    return config.get(info["config_key"])


def get_preferred_provider() -> Optional[str]:
    """Get the user's preferred provider from config, or first available"""
    config = load_config()
    preferred = config.get("preferred_provider")

    if preferred and get_api_key_for_provider(preferred):
        return preferred

    available = get_available_providers()
    return available[0] if available else None


def create_llm_client(
    provider: str = None,
    model: str = None,
) -> Optional[BaseLLMClient]:
    """
    Create a vision client for the specified or preferred provider.

    Args:
        provider: Provider name (gemini, anthropic, openai). If None, uses preferred.
        model: Model name override. If None, uses provider default.

    Returns:
        Client instance or None if no provider available.
    """
    if provider is None:
        provider = get_preferred_provider()

    if provider is None or provider not in PROVIDERS:
        return None

    api_key = get_api_key_for_provider(provider)
    if not api_key:
        return None

    client_class = PROVIDERS[provider]["client_class"]

    try:
        return client_class(api_key=api_key, model=model)
    except ImportError:
        logger.warning("%s SDK not installed. Run: pip install %s", provider, _get_package_name(provider))
        return None
    except Exception as e:
        logger.warning("Failed to initialize %s client: %s", provider, e)
        return None


def _get_package_name(provider: str) -> str:
    """Get pip package name for a provider"""
    packages = {
        "anthropic": "anthropic",
        "openai": "openai",
        "gemini": "google-generativeai",
    }
    return packages.get(provider, provider)
