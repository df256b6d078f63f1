"""Single-shot auxiliary generations run after the agent loop."""

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from vibe_agent.agent.prompts import get_loader
from vibe_agent.llms import get_text_content

logger = structlog.get_logger(__name__)

DEFAULT_TITLE = "Untitled"
DEFAULT_RESPONSE = "Here you go."


async def _generate(llm: BaseChatModel, system_prompt: str, summary: str) -> str | None:
    response = await llm.ainvoke([
        SystemMessage(content=system_prompt),
        HumanMessage(content=summary),
    ])
    text = get_text_content(response)
    return text.strip() if text else None


async def generate_title(llm: BaseChatModel, summary: str) -> str:
    """Short title for the artifact. Never raises; falls back to "Untitled"."""
    try:
        title = await _generate(llm, get_loader().get_title_prompt(), summary)
    except Exception as e:
        logger.warning("Title generation failed", error=str(e))
        return DEFAULT_TITLE
    if not title:
        return DEFAULT_TITLE
    return title.strip("\"'").splitlines()[0].strip() or DEFAULT_TITLE


async def generate_response(llm: BaseChatModel, summary: str) -> str:
    """User-facing closing message. Never raises; falls back to "Here you go."."""
    try:
        response = await _generate(llm, get_loader().get_response_prompt(), summary)
    except Exception as e:
        logger.warning("Response generation failed", error=str(e))
        return DEFAULT_RESPONSE
    return response or DEFAULT_RESPONSE
