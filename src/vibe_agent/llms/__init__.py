from .content_utils import extract_text, get_text_content
from .llm import LLM, ModelConfig, create_llm, get_configured_llm_models

__all__ = [
    "LLM",
    "ModelConfig",
    "create_llm",
    "extract_text",
    "get_configured_llm_models",
    "get_text_content",
]
