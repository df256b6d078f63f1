"""Bounded reasoning/tool-call loop driving the coding agent."""

from collections.abc import Sequence

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from vibe_agent.agent.prompts import (
    FAILURE_SUMMARY,
    STALL_NUDGE,
    TASK_SUMMARY_MARKER,
    get_loader,
)
from vibe_agent.agent.state import (
    AgentRunResult,
    AgentRunState,
    ConversationMessage,
    FileSet,
)
from vibe_agent.agent.tools import ToolRegistry
from vibe_agent.llms import get_text_content

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ITERATIONS = 15


def build_degraded_summary(reason: str, files: FileSet) -> str:
    """Summary for a run that stopped early but left files behind."""
    listed = ", ".join(sorted(files)[:20])
    if len(files) > 20:
        listed += f" and {len(files) - 20} more"
    return (
        f"{TASK_SUMMARY_MARKER}\n"
        f"Partially completed: {reason}. "
        f"The project contains {len(files)} file(s): {listed}.\n"
        f"</task_summary>"
    )


class AgentLoop:
    """Drives a chat model against a ToolRegistry until it reports completion.

    Each iteration sends the full history with the tool contracts, records
    the assistant reply, dispatches requested tool calls in order and feeds
    their results back. The loop stops on the first reply containing
    `<task_summary>`, on a model error, or at `max_iterations`.
    """

    def __init__(
        self,
        llm: BaseChatModel,
        registry: ToolRegistry,
        *,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        system_prompt: str | None = None,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.llm = llm
        self.registry = registry
        self.max_iterations = max_iterations
        self.system_prompt = system_prompt or get_loader().get_system_prompt()
        self.model = llm.bind_tools(registry.tools)

    def _seed_messages(
        self,
        request: str,
        prior_messages: Sequence[ConversationMessage],
    ) -> list:
        messages = [SystemMessage(content=self.system_prompt)]
        messages.extend(message.to_langchain() for message in prior_messages)
        messages.append(HumanMessage(content=request))
        return messages

    async def run(
        self,
        request: str,
        prior_files: FileSet | None = None,
        prior_messages: Sequence[ConversationMessage] = (),
    ) -> AgentRunResult:
        """Run the loop for one request.

        Args:
            request: The user's build request
            prior_files: FileSet of the project being extended
            prior_messages: Earlier conversation turns, oldest first

        Returns:
            AgentRunResult describing how the run ended
        """
        state = AgentRunState(
            files=dict(prior_files or {}),
            messages=self._seed_messages(request, prior_messages),
        )
        abort_reason: str | None = None

        logger.info(
            "Agent run started",
            max_iterations=self.max_iterations,
            prior_files=len(state.files),
            prior_messages=len(prior_messages),
        )

        while state.iteration_count < self.max_iterations:
            state.iteration_count += 1

            try:
                response = await self.model.ainvoke(state.messages)
            except Exception as e:
                abort_reason = f"model call failed on iteration {state.iteration_count}: {e!s}"
                logger.error(
                    "Model inference failed",
                    iteration=state.iteration_count,
                    error=str(e),
                    exc_info=True,
                )
                break

            text = get_text_content(response)
            tool_calls = list(getattr(response, "tool_calls", None) or [])

            if not text and not tool_calls:
                logger.info("Empty model response, nudging for a summary", iteration=state.iteration_count)
                state.messages.append(HumanMessage(content=STALL_NUDGE))
                continue

            if isinstance(response, AIMessage):
                state.messages.append(response)
            else:
                state.messages.append(AIMessage(content=text or "", tool_calls=tool_calls))

            finished = bool(text and TASK_SUMMARY_MARKER in text and state.record_summary(text))

            for call in tool_calls:
                name = call.get("name", "")
                outcome = await self.registry.dispatch(name, call.get("args") or {})
                state.apply(outcome)
                state.messages.append(
                    ToolMessage(
                        content=outcome.result.to_text(),
                        tool_call_id=call.get("id") or name,
                        name=name,
                        status="success" if outcome.result.success else "error",
                    )
                )
                logger.info(
                    "Tool call completed",
                    tool=name,
                    success=outcome.result.success,
                    iteration=state.iteration_count,
                )

            if finished:
                logger.info("Agent reported completion", iteration=state.iteration_count, files=len(state.files))
                break

        return self._finish(state, abort_reason)

    def _finish(self, state: AgentRunState, abort_reason: str | None) -> AgentRunResult:
        if state.summary:
            return AgentRunResult(
                summary=state.summary,
                files=state.files,
                messages=state.messages,
                success=True,
                iterations=state.iteration_count,
            )

        reason = abort_reason or f"reached the limit of {self.max_iterations} iterations before finishing"

        if state.files:
            logger.warning("Agent run degraded", reason=reason, files=len(state.files))
            return AgentRunResult(
                summary=build_degraded_summary(reason, state.files),
                files=state.files,
                messages=state.messages,
                success=True,
                degraded=True,
                iterations=state.iteration_count,
                error=abort_reason,
            )

        logger.warning("Agent run failed", reason=reason)
        return AgentRunResult(
            summary=FAILURE_SUMMARY,
            files={},
            messages=state.messages,
            success=False,
            iterations=state.iteration_count,
            error=reason,
        )
