"""
Action and Receipt models — one delegated command and its outcome.

A stage describes the command it needs as an ``Action``; the adapter
registry routes it to the adapter named in ``Action.adapter``; the
adapter answers with a ``Receipt``.  A non-zero exit is a failed
Receipt, never an exception, so the stage decides what is fatal.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class Action(BaseModel):
    """One external operation requested by a pipeline stage.

    Params shared by the command-running adapters:
        command (list[str]): argv to execute.
        cwd (str): working directory.
        env (dict[str, str]): variables layered on top of os.environ.
        stream (bool): let output go straight to the terminal.
    """

    id: str                         # "patch:apply", "packages:query:bison", ...
    name: str = ""
    adapter: str                    # registry key: shell, git, packages, python
    stage: str = ""
    params: dict[str, Any] = Field(default_factory=dict)


class Receipt(BaseModel):
    """What happened when an adapter ran an Action.

    ``metadata`` carries the argv (``command``), the exit status
    (``return_code``) and adapter-specific facts such as ``installed``
    for package queries or ``version`` for interpreter probes.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "failed"] = "ok"
    duration_ms: int = 0
    output: str = ""
    error: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def return_code(self) -> int | None:
        return self.metadata.get("return_code")

    @property
    def command(self) -> list[str]:
        return list(self.metadata.get("command") or [])

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)
