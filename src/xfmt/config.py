"""Runtime configuration for xfmt"""

from __future__ import annotations

import os
from typing import Mapping

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "XFMT_"


class XfmtConfig(BaseModel):
    """Settings shared by the compile cache, the compiler and the CLI"""

    cache_size: int = Field(default=256, ge=0)  # 0 disables the compile cache
    merge_literals: bool = True
    debug: bool = False

    model_config = {"frozen": True}

    @field_validator("merge_literals", "debug", mode="before")
    @classmethod
    def _parse_flag(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower() not in {"", "0", "false", "no", "off"}
        return value

    @classmethod
    def load(cls, environ: Mapping[str, str] | None = None) -> "XfmtConfig":
        """Load config from `XFMT_*` environment variables"""
        environ = os.environ if environ is None else environ
        data = {}
        for name in cls.model_fields:
            value = environ.get(ENV_PREFIX + name.upper())
            if value is not None:
                data[name] = value
        return cls.model_validate(data)
