from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RequestEnvelope(BaseModel):
    """The part of a JSON-RPC message the router reads before routing."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    method: str


class ServerSettings(BaseModel):
    multi_file: bool = False
    disable_folding: bool = False
    frontend: Optional[str] = None
    store_lock_timeout: float = Field(default=1.0, gt=0)
    log_level: str = "WARNING"
    experimental_diagnostics: bool = True
    contrib_diagnostics: bool = True
    reserved_identifiers: List[str] = ["v", "task", "params"]


class InitializationOptions(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    support_multiple_files: Optional[bool] = Field(
        default=None, alias="supportMultipleFiles"
    )
