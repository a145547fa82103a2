"""Collaborator contracts consumed by `Job.apply` and `Job.analyse`.

Contexts supply concrete implementations; the kernel only relies on the
shapes below.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Protocol

from jobkit.artifact import Artifact

if TYPE_CHECKING:
    from jobkit.engine.job import Job

JobDefinition = Callable[..., Any]


class DataStore(Protocol):
    def retrieve(self, key: Any) -> Any: ...


class Processor(Protocol):
    def process(self, artifact: Artifact, name: Any, *params: Any) -> Any: ...


class Encoder(Protocol):
    def encode(self, artifact: Artifact, format: Any, *params: Any) -> Any: ...


class Generator(Protocol):
    def generate(self, name: Any, *params: Any) -> Any: ...


class Analyser(Protocol):
    def analyse(self, artifact: Artifact, method: str, *params: Any) -> Any: ...


@dataclass(frozen=True)
class JobCapabilities:
    """Enumerated extension operations a context offers to its jobs.

    `definitions` are named recipes called as `fn(job, *args)`; they append
    steps in place with the `*_` builders. `analysis_methods` restricts
    `Job.analyse`; an empty tuple leaves it unrestricted.
    """

    definitions: Mapping[str, JobDefinition] = field(default_factory=dict)
    analysis_methods: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name, fn in self.definitions.items():
            if not isinstance(name, str) or not name.strip():
                raise TypeError("Job definition names must be non-empty strings")
            if not callable(fn):
                raise TypeError(f"Job definition {name} must be callable (type={type(fn).__name__})")
        object.__setattr__(self, "definitions", dict(self.definitions))
        object.__setattr__(
            self, "analysis_methods", tuple(str(m).strip() for m in self.analysis_methods)
        )

    def definition_names(self) -> tuple[str, ...]:
        return tuple(sorted(self.definitions.keys()))

    def with_definition(self, name: str, fn: JobDefinition) -> "JobCapabilities":
        if not isinstance(name, str) or not name.strip():
            raise TypeError("Job definition name must be a non-empty string")
        key = name.strip()
        if key in self.definitions:
            raise ValueError(f"Duplicate job definition: {key}")
        definitions = dict(self.definitions)
        definitions[key] = fn
        return JobCapabilities(definitions=definitions, analysis_methods=self.analysis_methods)

    def with_analysis_methods(self, methods: tuple[str, ...]) -> "JobCapabilities":
        return JobCapabilities(definitions=self.definitions, analysis_methods=tuple(methods))


NO_CAPABILITIES = JobCapabilities()


class JobContext(Protocol):
    logger: logging.Logger
    datastore: DataStore
    processor: Processor
    encoder: Encoder
    generator: Generator
    analyser: Analyser
    capabilities: JobCapabilities

    def mime_type_for(self, format: str) -> str | None: ...

    def url_for(self, job: "Job") -> str: ...
