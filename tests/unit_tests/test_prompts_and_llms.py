"""Tests for prompt rendering, text extraction and the model manifest."""

import pytest

from vibe_agent.agent.prompts import TASK_SUMMARY_MARKER, get_loader, reset_loader
from vibe_agent.llms import create_llm, extract_text, get_configured_llm_models, get_text_content


class TestPromptLoader:
    """Tests for PromptLoader."""

    def setup_method(self):
        reset_loader()

    def test_system_prompt_mentions_environment(self):
        prompt = get_loader().get_system_prompt(working_directory="/work", preview_port=4000)

        assert "/work" in prompt
        assert "4000" in prompt
        assert TASK_SUMMARY_MARKER in prompt
        for tool in ("createOrUpdateFiles", "readFiles", "listFiles", "terminal"):
            assert tool in prompt

    def test_auxiliary_prompts_render(self):
        loader = get_loader()

        assert loader.get_title_prompt()
        assert loader.get_response_prompt()

    def test_loader_is_singleton(self):
        assert get_loader() is get_loader()


class TestContentUtils:
    """Tests for extract_text and get_text_content."""

    def test_extracts_text_blocks_only(self):
        content = [{"type": "text", "text": "a"}, {"type": "thinking", "thinking": "x"}, "b"]

        assert extract_text(content) == "ab"

    def test_blank_text_is_none(self):
        class Message:
            content = "  \n"

        assert get_text_content(Message()) is None


class TestModelManifest:
    """Tests for the LLM factory manifest."""

    def test_models_grouped_by_provider(self):
        models = get_configured_llm_models()

        assert "gemini-2.5-pro" in models["gemini"]
        assert "gpt-4.1" in models["openai"]

    def test_unknown_model_rejected(self):
        with pytest.raises(ValueError, match="not found"):
            create_llm("no-such-model")

    def test_missing_api_key_rejected(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            create_llm("gpt-4.1")
