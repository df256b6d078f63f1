"""
Text extraction for LLM messages.

Providers return message content either as a plain string or as a list of
content blocks (text, thinking, tool_use, ...). These helpers reduce both
shapes to plain text.
"""

from typing import Any, Optional


def extract_text(content: Any) -> str:
    """
    Concatenate the text parts of a message content payload.

    Reasoning/thinking blocks and non-text blocks are ignored.

    Examples:
        >>> extract_text("Hello")
        'Hello'

        >>> extract_text([{"type": "text", "text": "a"}, {"type": "thinking", "thinking": "x"}, "b"])
        'ab'
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, dict):
        if content.get("type", "text") == "text":
            return str(content.get("text", ""))
        return ""
    if isinstance(content, list):
        return "".join(extract_text(item) for item in content)
    return str(content)


def get_text_content(message: Any) -> Optional[str]:
    """
    Text content of a LangChain message, or None when it carries no text.
    """
    content = getattr(message, "content", message)
    text = extract_text(content)
    return text if text.strip() else None
