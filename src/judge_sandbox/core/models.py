from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import MalformedResultError


class ContainerState(str, Enum):
    CREATED = "CREATED"
    STARTED = "STARTED"
    EXEC_RUNNING = "EXEC_RUNNING"
    EXEC_FINISHED = "EXEC_FINISHED"
    REMOVED = "REMOVED"


@dataclass(frozen=True)
class InputFile:
    name: str
    data: bytes
    mode: int = 0o644


@dataclass(frozen=True)
class StagedFile:
    name: str
    mode: int
    uid: int
    gid: int
    data: bytes


@dataclass(frozen=True)
class Options:
    program: str
    file_stdin: str = ""
    file_stdout: str = ""
    file_stderr: str = ""
    time_limit: int = 0             # seconds
    time_limit_reserve: int = 1
    memory_limit: int = 0           # KiB
    memory_limit_reserve: int = 32 * 1024
    output_limit: int = 0           # bytes
    process_limit: int = 0
    input_files: Tuple[InputFile, ...] = ()
    output_files: Tuple[str, ...] = ()

    def __post_init__(self):
        if not self.program:
            raise ValueError("program is required")
        for name in ("time_limit", "time_limit_reserve", "memory_limit",
                     "memory_limit_reserve", "output_limit", "process_limit"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        # lists are accepted for convenience, stored as tuples
        object.__setattr__(self, "input_files", tuple(self.input_files))
        object.__setattr__(self, "output_files", tuple(self.output_files))


@dataclass
class ContainerHandle:
    container_id: str
    state: ContainerState = ContainerState.CREATED
    exec_id: Optional[str] = None


@dataclass(frozen=True)
class ExecState:
    running: bool
    exit_code: Optional[int] = None


@dataclass(frozen=True)
class Result:
    status: str
    debug_info: str
    time_usage: int
    memory_usage: int

    @classmethod
    def parse(cls, text: str) -> "Result":
        """
        Parse the four-line result file:
            <status>\\n<debug info>\\n<time usage>\\n<memory usage>
        A trailing newline is allowed, anything shorter is malformed.
        """
        lines = text.split("\n")
        if len(lines) < 4:
            raise MalformedResultError(f"result file has {len(lines)} line(s), expected 4", raw=text)
        status = lines[0].strip()
        if not status:
            raise MalformedResultError("result file has an empty status line", raw=text)
        try:
            time_usage = int(lines[2].strip())
            memory_usage = int(lines[3].strip())
        except ValueError as e:
            raise MalformedResultError(f"non-integer usage field: {e}", raw=text) from e
        return cls(status=status, debug_info=lines[1], time_usage=time_usage, memory_usage=memory_usage)

    def to_text(self) -> str:
        return f"{self.status}\n{self.debug_info}\n{self.time_usage}\n{self.memory_usage}\n"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "debug_info": self.debug_info,
            "time_usage": self.time_usage,
            "memory_usage": self.memory_usage,
        }


@dataclass(frozen=True)
class OutputFile:
    name: str
    data: Optional[bytes]           # None = never became retrievable
    error: Optional[str] = None

    @property
    def present(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class RunOutcome:
    result: Result
    output_files: List[OutputFile] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result.to_dict(),
            "output_files": [{"name": f.name, "data": f.data} for f in self.output_files],
        }


# ---- typed outcome of a single-file fetch ----

@dataclass(frozen=True)
class Ready:
    file: StagedFile


@dataclass(frozen=True)
class NotYetAvailable:
    attempts: int


@dataclass(frozen=True)
class PermanentFailure:
    cause: Exception


FetchOutcome = Union[Ready, NotYetAvailable, PermanentFailure]
