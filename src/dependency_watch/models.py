"""Pydantic models for watch targets and check results."""

from __future__ import annotations

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import CoordinateError


def _check_part(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    if ":" in value:
        raise ValueError(f"must not contain ':' ({value!r})")
    return value


class Artifact(BaseModel):
    """A ``group:artifact`` pair. Watching one watches every published version."""

    model_config = ConfigDict(frozen=True)

    group: str
    artifact: str

    @field_validator("group", "artifact")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        return _check_part(value)

    def coordinate(self, version: str) -> Coordinate:
        return Coordinate(group=self.group, artifact=self.artifact, version=version)

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}"


class Coordinate(BaseModel):
    """An exact ``group:artifact:version`` package version.

    Equality and hashing cover all three fields, so two coordinates are the
    same watch target iff their canonical strings match.
    """

    model_config = ConfigDict(frozen=True)

    group: str
    artifact: str
    version: str

    @field_validator("group", "artifact", "version")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        return _check_part(value)

    @classmethod
    def parse(cls, text: str) -> Coordinate:
        """Parse ``group:artifact:version``."""
        target = parse_target(text)
        if not isinstance(target, Coordinate):
            raise CoordinateError(
                f"Expected group:artifact:version, got {text!r} (missing version)"
            )
        return target

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}:{self.version}"


WatchTarget = Union[Coordinate, Artifact]


def parse_target(text: str) -> WatchTarget:
    """Parse ``group:artifact`` or ``group:artifact:version``."""
    parts = str(text).strip().split(":")
    try:
        if len(parts) == 2:
            return Artifact(group=parts[0], artifact=parts[1])
        if len(parts) == 3:
            return Coordinate(group=parts[0], artifact=parts[1], version=parts[2])
    except ValidationError as e:
        raise CoordinateError(f"Invalid coordinate {text!r}: {e.errors()[0]['msg']}") from e
    raise CoordinateError(
        f"Invalid coordinate {text!r}: expected group:artifact[:version]"
    )


class CheckResult(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    TRANSIENT_ERROR = "transient_error"
