from __future__ import annotations


class SandboxError(Exception):
    """Base class for everything the orchestration pipeline raises."""


class ProvisionError(SandboxError):
    pass


class ContainerError(SandboxError):
    pass


class StagingError(SandboxError):
    pass


class ExecutionError(SandboxError):
    pass


class CollectionError(SandboxError):
    pass


class MalformedResultError(CollectionError):
    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class Cancelled(SandboxError):
    pass


class WaitTimeout(SandboxError):
    """A poll loop hit its deadline. Components rewrap it in their own error."""


class ArchiveError(SandboxError):
    pass


# ---- raised by RuntimeClient implementations ----

class RuntimeClientError(SandboxError):
    pass


class RuntimePathNotFound(RuntimeClientError):
    """The container exists but the requested path does not (yet)."""


class RuntimeFailure(RuntimeClientError):
    pass
