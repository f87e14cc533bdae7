from __future__ import annotations
import base64
import binascii
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .core.errors import SandboxError
from .core.models import InputFile, Options
from .core.settings import load_settings
from .core.utils import basename
from .logging import setup_logging
from .services.orchestrator import Orchestrator

app = FastAPI(title="Judge Sandbox API")


@lru_cache(maxsize=1)
def get_orchestrator() -> Orchestrator:
    from .runtime.docker_client import DockerRuntimeClient

    s = load_settings()
    setup_logging(s.log_level)
    return Orchestrator(DockerRuntimeClient.from_settings(s), s)


# --------- Schemas ---------
class InputFileReq(BaseModel):
    name: str
    data: str                      # base64
    mode: int = 0o644


class RunReq(BaseModel):
    program_name: str = "a.out"
    program: str                   # base64
    file_stdin: str = ""
    file_stdout: str = ""
    file_stderr: str = ""
    time_limit: int = Field(0, ge=0)
    time_limit_reserve: int = Field(1, ge=0)
    memory_limit: int = Field(0, ge=0)
    memory_limit_reserve: int = Field(32 * 1024, ge=0)
    output_limit: int = Field(0, ge=0)
    process_limit: int = Field(0, ge=0)
    input_files: List[InputFileReq] = []
    output_files: List[str] = []


class ResultRes(BaseModel):
    status: str
    debug_info: str
    time_usage: int
    memory_usage: int


class OutputFileRes(BaseModel):
    name: str
    data: Optional[str] = None     # base64, null if never produced


class RunRes(BaseModel):
    result: ResultRes
    output_files: List[OutputFileRes]


def _b64(field: str, value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"{field}: invalid base64") from e


# --------- Endpoints ---------

@app.get("/health")
def health(orc: Orchestrator = Depends(get_orchestrator)):
    ok = orc.client.ping()
    return JSONResponse({"ok": ok}, status_code=200 if ok else 503)


@app.post("/runs", response_model=RunRes)
def create_run(req: RunReq, orc: Orchestrator = Depends(get_orchestrator)):
    program_data = _b64("program", req.program)
    inputs = [InputFile(name=f.name, data=_b64(f"input_files[{f.name}]", f.data), mode=f.mode) for f in req.input_files]
    name = basename(req.program_name)
    if not name:
        raise HTTPException(status_code=400, detail="program_name: empty")

    with tempfile.TemporaryDirectory(prefix="sbx-") as tmp:
        program_path = Path(tmp) / name
        program_path.write_bytes(program_data)
        options = Options(
            program=str(program_path),
            file_stdin=req.file_stdin,
            file_stdout=req.file_stdout,
            file_stderr=req.file_stderr,
            time_limit=req.time_limit,
            time_limit_reserve=req.time_limit_reserve,
            memory_limit=req.memory_limit,
            memory_limit_reserve=req.memory_limit_reserve,
            output_limit=req.output_limit,
            process_limit=req.process_limit,
            input_files=inputs,
            output_files=req.output_files,
        )
        try:
            outcome = orc.run(options)
        except SandboxError as e:
            raise HTTPException(status_code=502, detail={"error": type(e).__name__, "message": str(e)})

    return RunRes(
        result=ResultRes(**outcome.result.to_dict()),
        output_files=[
            OutputFileRes(name=f.name, data=base64.b64encode(f.data).decode("ascii") if f.present else None)
            for f in outcome.output_files
        ],
    )
