"""Domain errors raised by server services and mapped to HTTP responses by the API layer."""


class ProjectNotFoundError(LookupError):
    """Raised when a project id does not exist."""

    def __init__(self, project_id: str):
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class ArtifactNotFoundError(LookupError):
    """Raised when an artifact id does not exist."""

    def __init__(self, artifact_id: str):
        super().__init__(f"Artifact not found: {artifact_id}")
        self.artifact_id = artifact_id


class RecreationError(RuntimeError):
    """Raised when rebuilding an artifact's sandbox fails. The recreation flag is already cleared."""

    def __init__(self, artifact_id: str, reason: str):
        super().__init__(f"Sandbox recreation failed for artifact {artifact_id}: {reason}")
        self.artifact_id = artifact_id
