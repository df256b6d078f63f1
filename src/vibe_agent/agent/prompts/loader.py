"""Jinja2 template loader for the agent's prompts."""

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

TASK_SUMMARY_MARKER = "<task_summary>"

STALL_NUDGE = (
    "You replied without text or tool calls. If the task is finished, reply with a "
    f"{TASK_SUMMARY_MARKER} block describing what you built. Otherwise continue using the tools."
)

FAILURE_SUMMARY = "Something went wrong. Please try again."


class PromptLoader:
    """Load and render Jinja2 prompt templates.

    Uses Jinja2's built-in template object caching for efficient
    repeated template lookups.
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render(self, template_name: str, **kwargs: Any) -> str:
        """Render a template with variables.

        Args:
            template_name: Path to template relative to templates_dir
            **kwargs: Variables to pass to the template

        Returns:
            Rendered template string
        """
        template = self.env.get_template(template_name)
        context = {"marker": TASK_SUMMARY_MARKER, **kwargs}
        return template.render(**context).strip()

    def get_system_prompt(
        self,
        working_directory: str = "/home/daytona",
        preview_port: int = 3000,
        **kwargs: Any,
    ) -> str:
        """Get the coding agent's system instruction."""
        return self.render(
            "system.md.j2",
            working_directory=working_directory,
            preview_port=preview_port,
            **kwargs,
        )

    def get_title_prompt(self, **kwargs: Any) -> str:
        return self.render("title.md.j2", **kwargs)

    def get_response_prompt(self, **kwargs: Any) -> str:
        return self.render("response.md.j2", **kwargs)


# Singleton instance
_loader: PromptLoader | None = None


def get_loader() -> PromptLoader:
    """Get the singleton PromptLoader instance."""
    global _loader
    if _loader is None:
        _loader = PromptLoader()
    return _loader


def reset_loader() -> None:
    """Reset the singleton loader (useful for testing)."""
    global _loader
    _loader = None
