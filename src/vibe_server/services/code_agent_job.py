"""
Code Agent Job

Handler for the "code-agent/run" event. One job owns one sandbox for its
whole lifetime:

1. resolve (or create) the project
2. seed prior messages and the prior artifact's files
3. create a sandbox and restore the prior files into it
4. run the AgentLoop
5. generate a title and a user-facing response
6. persist a RESULT (with artifact) or an ERROR message

Unless a RESULT is persisted, the sandbox is deleted when the job ends,
cancellation included.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from langchain_core.language_models import BaseChatModel

from vibe_agent.agent import (
    AgentLoop,
    ConversationMessage,
    FileSet,
    create_tool_registry,
    generate_response,
    generate_title,
    merge_files,
)
from vibe_agent.agent.prompts import get_loader
from vibe_agent.config import AgentConfig, CoreConfig
from vibe_agent.core import SandboxHandle
from vibe_agent.llms import create_llm
from vibe_server.database.artifacts import get_latest_artifact_for_project
from vibe_server.database.messages import create_message, get_recent_messages
from vibe_server.database.projects import create_project, get_project
from vibe_server.models.events import CodeAgentRunPayload
from vibe_server.models.message import MessageRole, MessageType
from vibe_server.services.artifact_persister import ArtifactPersister
from vibe_server.services.errors import ProjectNotFoundError
from vibe_server.utils.naming import generate_slug

logger = logging.getLogger(__name__)

SandboxFactory = Callable[[CoreConfig], Awaitable[SandboxHandle]]
LLMFactory = Callable[[str], BaseChatModel]

_ROLE_MAP = {
    MessageRole.USER.value: "user",
    MessageRole.ASSISTANT.value: "assistant",
}


def build_prior_messages(
    recent_newest_first: List[Dict[str, Any]],
    request: str,
    limit: int,
) -> List[ConversationMessage]:
    """
    Turn stored messages (newest first) into chronological conversation turns.

    The newest message is dropped when it is the user message carrying the
    request being processed, so the request is not sent twice.
    """
    rows = list(recent_newest_first)
    if rows and rows[0]["role"] == MessageRole.USER.value and rows[0]["content"] == request:
        rows = rows[1:]
    rows = rows[:limit]

    return [
        ConversationMessage(role=_ROLE_MAP.get(row["role"], "user"), content=row["content"])
        for row in reversed(rows)
    ]


class CodeAgentJob:
    """Callable event handler running one code agent request end to end."""

    def __init__(
        self,
        config: AgentConfig,
        *,
        llm_factory: LLMFactory = create_llm,
        sandbox_factory: Optional[SandboxFactory] = None,
        persister: Optional[ArtifactPersister] = None,
    ):
        self.config = config
        self.llm_factory = llm_factory
        self.sandbox_factory = sandbox_factory or SandboxHandle.create
        self.persister = persister or ArtifactPersister()

    async def __call__(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.run(CodeAgentRunPayload.model_validate(payload))

    async def _resolve_project(self, data: CodeAgentRunPayload) -> str:
        if data.project_id:
            project = await get_project(data.project_id)
            if project is None:
                raise ProjectNotFoundError(data.project_id)
            return str(project["id"])

        project = await create_project(generate_slug())
        project_id = str(project["id"])
        await create_message(project_id, data.content, MessageRole.USER.value, MessageType.RESULT.value)
        logger.info(f"Created project {project_id} for a run without project_id")
        return project_id

    async def load_context(
        self,
        project_id: str,
        data: CodeAgentRunPayload,
    ) -> Tuple[List[ConversationMessage], FileSet]:
        """
        Load prior conversation turns and the FileSet to extend.

        An explicit prior_artifact in the payload wins over the stored one.
        """
        limit = self.config.agent.history_limit
        recent = await get_recent_messages(project_id, limit=limit + 1) if limit > 0 else []
        prior_messages = build_prior_messages(recent, data.content, limit)

        if data.prior_artifact is not None:
            prior_files = dict(data.prior_artifact.files)
        else:
            artifact = await get_latest_artifact_for_project(project_id)
            prior_files = dict(artifact["files"] or {}) if artifact else {}

        logger.debug(
            f"Seeded project {project_id}: {len(prior_messages)} prior messages, "
            f"{len(prior_files)} prior files"
        )
        return prior_messages, prior_files

    async def run(self, data: CodeAgentRunPayload) -> Dict[str, Any]:
        project_id = await self._resolve_project(data)
        prior_messages, prior_files = await self.load_context(project_id, data)

        try:
            llm = self.llm_factory(self.config.llm.name)
            auxiliary_llm = (
                self.llm_factory(self.config.llm.auxiliary) if self.config.llm.auxiliary else llm
            )
        except Exception as e:
            logger.error(f"Could not create model for project {project_id}: {e}", exc_info=True)
            await self.persister.persist_error(project_id)
            return {"project_id": project_id, "success": False, "error": str(e)}

        try:
            sandbox = await self.sandbox_factory(self.config.to_core_config())
        except Exception as e:
            logger.error(f"Sandbox creation failed for project {project_id}: {e}", exc_info=True)
            await self.persister.persist_error(project_id)
            return {"project_id": project_id, "success": False, "error": str(e)}

        # The sandbox outlives the job only as the preview of a persisted RESULT.
        keep_sandbox = False
        try:
            result = await self._run_in_sandbox(
                sandbox, llm, auxiliary_llm, project_id, data, prior_files, prior_messages
            )
            keep_sandbox = result["success"]
            return result
        finally:
            if not keep_sandbox:
                await sandbox.delete()

    async def _run_in_sandbox(
        self,
        sandbox: SandboxHandle,
        llm: BaseChatModel,
        auxiliary_llm: BaseChatModel,
        project_id: str,
        data: CodeAgentRunPayload,
        prior_files: FileSet,
        prior_messages: List[ConversationMessage],
    ) -> Dict[str, Any]:
        try:
            await sandbox.set_timeout(self.config.daytona.auto_stop_interval)
            if prior_files:
                await sandbox.write_files(prior_files)
        except Exception as e:
            logger.error(f"Sandbox setup failed for project {project_id}: {e}", exc_info=True)
            await self.persister.persist_error(project_id)
            return {"project_id": project_id, "success": False, "error": str(e)}

        system_prompt = get_loader().get_system_prompt(
            working_directory=self.config.filesystem.working_directory,
            preview_port=self.config.daytona.preview_port,
        )
        loop = AgentLoop(
            llm,
            create_tool_registry(sandbox, terminal_timeout=self.config.agent.terminal_timeout),
            max_iterations=self.config.agent.max_iterations,
            system_prompt=system_prompt,
        )
        result = await loop.run(data.content, prior_files, prior_messages)

        if not result.success:
            logger.warning(f"Agent run failed for project {project_id}: {result.error}")
            await self.persister.persist_error(project_id, result.summary)
            return {"project_id": project_id, "success": False, "error": result.error}

        files = result.files
        try:
            if self.config.agent.snapshot_workspace:
                snapshot = await sandbox.snapshot_files()
                files = merge_files(snapshot, files)
            sandbox_url = await sandbox.get_preview_url(self.config.daytona.preview_port)
        except Exception as e:
            logger.error(f"Could not finalize sandbox for project {project_id}: {e}", exc_info=True)
            await self.persister.persist_error(project_id)
            return {"project_id": project_id, "success": False, "error": str(e)}

        title = await generate_title(auxiliary_llm, result.summary)
        response = await generate_response(auxiliary_llm, result.summary)

        message = await self.persister.persist_result(
            project_id=project_id,
            content=response,
            sandbox_url=sandbox_url,
            title=title,
            files=files,
            sandbox_id=sandbox.sandbox_id,
        )

        logger.info(
            f"Code agent run finished for project {project_id} "
            f"(iterations={result.iterations}, degraded={result.degraded}, files={len(files)})"
        )
        return {
            "project_id": project_id,
            "success": True,
            "degraded": result.degraded,
            "message_id": str(message["id"]),
            "url": sandbox_url,
            "title": title,
            "files": files,
            "summary": result.summary,
        }
