"""
Build result: either the assembled pipeline or the reason it was not built
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import ConfigError, MissingSection, MissingField
from .pipeline import Pipeline


class ErrorKind(Enum):
    """Configuration failure kind"""
    MISSING_SECTION = "missing_section"
    MISSING_FIELD = "missing_field"


@dataclass
class BuildResult:
    """Outcome of one pipeline build call"""
    pipeline: Optional[Pipeline] = None
    error_kind: Optional[ErrorKind] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.pipeline is not None and self.error_kind is None

    @classmethod
    def success(cls, pipeline: Pipeline) -> "BuildResult":
        return cls(pipeline=pipeline)

    @classmethod
    def failure(cls, error: ConfigError) -> "BuildResult":
        if isinstance(error, MissingSection):
            kind = ErrorKind.MISSING_SECTION
        elif isinstance(error, MissingField):
            kind = ErrorKind.MISSING_FIELD
        else:
            raise TypeError(f"Unsupported configuration error: {type(error).__name__}")
        return cls(error_kind=kind, detail=str(error))

    def unwrap(self) -> Pipeline:
        """Return the pipeline, raise ConfigError if the build failed"""
        if not self.ok:
            raise ConfigError(f"{self.error_kind.value}: {self.detail}")
        return self.pipeline
