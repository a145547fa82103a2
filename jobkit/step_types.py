from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from jobkit.artifact import Artifact
from jobkit.errors import NothingToEncode, NothingToProcess

if TYPE_CHECKING:
    from jobkit.engine.job import Job


def freeze_arg(value: Any) -> Any:
    """Lists (the only sequence the wire format carries) become tuples, recursively."""

    if isinstance(value, (list, tuple)):
        return tuple(freeze_arg(item) for item in value)
    return value


def thaw_arg(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [thaw_arg(item) for item in value]
    if isinstance(value, dict):
        return {key: thaw_arg(item) for key, item in value.items()}
    return value


@dataclass(frozen=True, init=False)
class Step:
    """One declared unit of work with an ordered argument list."""

    args: tuple[Any, ...]

    def __init__(self, *args: Any) -> None:
        object.__setattr__(self, "args", tuple(freeze_arg(arg) for arg in args))

    @classmethod
    def step_name(cls) -> str:
        # Fetch -> fetch, FetchFile -> fetch_file
        return re.sub(r"(?<!^)([A-Z])", r"_\1", cls.__name__).lower()

    @classmethod
    def abbreviation(cls) -> str:
        # Fetch -> f, FetchFile -> ff
        return "".join(ch for ch in cls.__name__ if ch.isupper()).lower()

    def apply(self, job: "Job") -> Artifact:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.step_name()}({', '.join(repr(arg) for arg in self.args)})"


class Fetch(Step):
    """Load an artifact from the datastore."""

    @property
    def uid(self) -> Any:
        return self.args[0] if self.args else None

    def apply(self, job: "Job") -> Artifact:
        return Artifact.from_result(job.context.datastore.retrieve(self.uid))


class Process(Step):
    """Run a named processor operation over the current artifact."""

    @property
    def name(self) -> Any:
        return self.args[0] if self.args else None

    @property
    def arguments(self) -> tuple[Any, ...]:
        return self.args[1:]

    def apply(self, job: "Job") -> Artifact:
        if job.artifact is None:
            raise NothingToProcess(
                "Can't process because the artifact has not been initialized. Need to fetch first?"
            )
        return Artifact.from_result(
            job.context.processor.process(job.artifact, self.name, *self.arguments)
        )


class Encode(Step):
    """Encode the current artifact into an output format."""

    @property
    def format(self) -> Any:
        return self.args[0] if self.args else None

    @property
    def arguments(self) -> tuple[Any, ...]:
        return self.args[1:]

    def apply(self, job: "Job") -> Artifact:
        if job.artifact is None:
            raise NothingToEncode(
                "Can't encode because the artifact has not been initialized. Need to fetch first?"
            )
        return Artifact.from_result(
            job.context.encoder.encode(job.artifact, self.format, *self.arguments)
        )


class Generate(Step):
    """Create an artifact from scratch; any existing artifact is ignored."""

    def apply(self, job: "Job") -> Artifact:
        return Artifact.from_result(job.context.generator.generate(*self.args))


STEP_TYPES: tuple[type[Step], ...] = (Fetch, Process, Encode, Generate)
