import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI


class ModelConfig:
    """Manages model configuration from JSON files."""

    def __init__(self, manifest_dir: Optional[Path] = None):
        manifest_dir = manifest_dir or Path(__file__).parent / "manifest"

        # models.json maps custom model names to provider + model id + parameters
        with open(manifest_dir / "models.json", "r") as f:
            self.llm_config = json.load(f)

        # providers.json holds the SDK, env key and base URL per provider
        with open(manifest_dir / "providers.json", "r") as f:
            self.manifest = json.load(f)

    def get_model_config(self, model_id: str) -> Optional[Dict]:
        """Get model configuration from llm_config."""
        return self.llm_config.get(model_id)

    def get_provider_info(self, provider: str) -> Dict:
        """Get provider configuration from manifest."""
        return self.manifest["provider_config"].get(provider, {})


class LLM:
    """Factory class for creating LangChain LLM clients."""

    # Class-level model config instance
    _model_config = None

    @classmethod
    def get_model_config(cls) -> ModelConfig:
        """Get or create the model configuration singleton."""
        if cls._model_config is None:
            cls._model_config = ModelConfig()
        return cls._model_config

    def __init__(self, model: str, **override_params):
        """
        Initializes the LLM factory.

        Args:
            model: The customized model name (key in models.json).
            **override_params: Additional parameters to override defaults.
        """
        self.model_config = self.get_model_config()

        model_info = self.model_config.get_model_config(model)
        if not model_info:
            raise ValueError(f"Model {model} not found in models.json")

        self.custom_model_name = model
        self.model = model_info["model_id"]  # Use model_id for API calls
        self.provider = model_info["provider"]
        self.parameters = model_info.get("parameters", {}).copy()
        self.parameters.update(override_params)

        self.provider_info = self.model_config.get_provider_info(self.provider)
        self.sdk = self.provider_info.get("sdk")
        self.env_key = self.provider_info.get("env_key")
        self.base_url = self.provider_info.get("base_url")

    def get_llm(self) -> BaseChatModel:
        """
        Initializes and returns a LangChain LLM client for the configured provider.

        Raises:
            ValueError: If required API keys are not set or provider is unsupported.
        """
        if self.sdk == "openai":
            return self._get_openai_llm()
        elif self.sdk == "anthropic":
            return self._get_anthropic_llm()
        elif self.sdk == "gemini":
            return self._get_gemini_llm()
        else:
            raise ValueError(f"Unsupported SDK: {self.sdk} for provider {self.provider}")

    def _require_api_key(self, default_env_key: str) -> str:
        env_key = self.env_key or default_env_key
        api_key = os.getenv(env_key)
        if not api_key:
            raise ValueError(f"{env_key} environment variable is not set")
        return api_key

    def _get_openai_llm(self):
        """Get OpenAI or OpenAI-compatible LLM."""
        params = {
            "model": self.model,
            "api_key": self._require_api_key("OPENAI_API_KEY"),
            "max_retries": 5,
            "timeout": 600.0,
        }
        if self.base_url:
            params["base_url"] = self.base_url

        params.update(self.parameters)
        return ChatOpenAI(**params)

    def _get_anthropic_llm(self):
        """Get Anthropic LLM."""
        from langchain_anthropic import ChatAnthropic

        params = {
            "model": self.model,
            "api_key": self._require_api_key("ANTHROPIC_API_KEY"),
            "max_retries": 5,
            "timeout": 600.0,
        }
        if self.base_url:
            params["base_url"] = self.base_url

        params.update(self.parameters)
        return ChatAnthropic(**params)

    def _get_gemini_llm(self):
        """Get Gemini LLM."""
        from langchain_google_genai import ChatGoogleGenerativeAI

        params = {
            "model": self.model,
            "api_key": self._require_api_key("GEMINI_API_KEY"),
            "timeout": 600.0,
        }

        params.update(self.parameters)
        return ChatGoogleGenerativeAI(**params)


def create_llm(model: str, **kwargs) -> BaseChatModel:
    """
    Convenience function for creating an LLM instance.

    Args:
        model: The model name
        **kwargs: Additional parameters to override

    Returns:
        A LangChain chat model instance
    """
    return LLM(model, **kwargs).get_llm()


def get_configured_llm_models() -> dict[str, list[str]]:
    """
    Get all configured LLM models grouped by provider.

    Returns:
        Dictionary mapping provider to list of configured model names.
    """
    config = LLM.get_model_config()
    models: dict[str, list[str]] = {}
    for model_name, model_info in config.llm_config.items():
        provider = model_info.get("provider", "unknown")
        models.setdefault(provider, []).append(model_name)
    return models
