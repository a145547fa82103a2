"""Lazy, serializable pipelines of steps over a single artifact.

A job only records steps until something needs its artifact; `apply` then
runs the pending steps in order. `steps[:cursor]` is history that has
already been applied, `steps[cursor:]` is still pending.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from jobkit import serializer
from jobkit.artifact import Artifact
from jobkit.engine.collaborators import NO_CAPABILITIES, JobCapabilities, JobContext
from jobkit.engine.recorder import DefaultStepRecorder, StepRecorder, validate_recorder
from jobkit.errors import (
    AlreadyAppliedConflict,
    ContextMismatch,
    MalformedStepArray,
    NothingToAnalyse,
    StepPreconditionError,
    UnknownCapability,
)
from jobkit.step_registry import DEFAULT_STEP_REGISTRY, StepRegistry
from jobkit.step_types import Encode, Fetch, Generate, Process, Step, thaw_arg

logger = logging.getLogger(__name__)


class Job:
    def __init__(
        self,
        context: JobContext,
        artifact: Any = None,
        *,
        registry: StepRegistry | None = None,
        recorder: StepRecorder | None = None,
    ):
        self._context = context
        self._registry = registry or DEFAULT_STEP_REGISTRY
        self._recorder = recorder or DefaultStepRecorder()
        validate_recorder(self._recorder)
        self._steps: list[Step] = []
        self._cursor = 0
        self.artifact: Artifact | None = (
            None if artifact is None else Artifact.from_result(artifact)
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def context(self) -> JobContext:
        return self._context

    @property
    def registry(self) -> StepRegistry:
        return self._registry

    @property
    def logger(self) -> logging.Logger:
        return getattr(self._context, "logger", None) or logger

    @property
    def capabilities(self) -> JobCapabilities:
        return getattr(self._context, "capabilities", None) or NO_CAPABILITIES

    @property
    def steps(self) -> tuple[Step, ...]:
        return tuple(self._steps)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def applied_steps(self) -> tuple[Step, ...]:
        return tuple(self._steps[: self._cursor])

    @property
    def pending_steps(self) -> tuple[Step, ...]:
        return tuple(self._steps[self._cursor :])

    @property
    def is_applied(self) -> bool:
        return self._cursor == len(self._steps)

    @property
    def is_empty(self) -> bool:
        return not self._steps

    def copy(self) -> "Job":
        """Structural copy: own step list, shared context and artifact reference."""

        new_job = type(self)(self._context, registry=self._registry, recorder=self._recorder)
        new_job._steps = list(self._steps)
        new_job._cursor = self._cursor
        new_job.artifact = self.artifact
        return new_job

    # ------------------------------------------------------------------
    # Builders: `name` returns a new job, `name_` appends in place
    # ------------------------------------------------------------------

    def _with_step(self, step: Step) -> "Job":
        new_job = self.copy()
        new_job._steps.append(step)
        return new_job

    def _append_step(self, step: Step) -> "Job":
        self._steps.append(step)
        return self

    def fetch(self, *args: Any) -> "Job":
        return self._with_step(Fetch(*args))

    def fetch_(self, *args: Any) -> "Job":
        return self._append_step(Fetch(*args))

    def process(self, *args: Any) -> "Job":
        return self._with_step(Process(*args))

    def process_(self, *args: Any) -> "Job":
        return self._append_step(Process(*args))

    def encode(self, *args: Any) -> "Job":
        return self._with_step(Encode(*args))

    def encode_(self, *args: Any) -> "Job":
        return self._append_step(Encode(*args))

    def generate(self, *args: Any) -> "Job":
        return self._with_step(Generate(*args))

    def generate_(self, *args: Any) -> "Job":
        return self._append_step(Generate(*args))

    def define(self, name: str, *args: Any) -> "Job":
        return self.copy().define_(name, *args)

    def define_(self, name: str, *args: Any) -> "Job":
        definition = self.capabilities.definitions.get(name)
        if definition is None:
            available = ", ".join(self.capabilities.definition_names()) or "<none>"
            raise UnknownCapability(f"Unknown job definition: {name} (available: {available})")
        definition(self, *args)
        return self

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def apply(self) -> "Job":
        """Run every pending step in order.

        The cursor only moves once the whole pending range has succeeded; a
        failing step leaves it where it was, so a retry replays from there.
        """

        pending = self._steps[self._cursor :]
        if not pending:
            return self

        for index, step in enumerate(pending, start=self._cursor):
            self._recorder.on_step_start(self, index, step)
            try:
                self.artifact = step.apply(self)
            except Exception as exc:
                try:
                    self._recorder.on_step_error(self, index, step, exc)
                except Exception:
                    self.logger.exception("Step recorder failed during error handling for %r", step)
                raise

            self._recorder.on_step_end(
                self,
                {
                    "index": index,
                    "step": repr(step),
                    "size": self.artifact.size,
                    "name": self.artifact.name,
                },
            )

        self._cursor = len(self._steps)
        return self

    def to_artifact(self) -> Artifact | None:
        self.apply()
        return self.artifact

    @property
    def data(self) -> bytes:
        return self._require_artifact().data

    @property
    def size(self) -> int:
        return self._require_artifact().size

    @property
    def name(self) -> str | None:
        return self._require_artifact().name

    def _require_artifact(self) -> Artifact:
        artifact = self.to_artifact()
        if artifact is None:
            raise StepPreconditionError("Job has no artifact. Need to fetch or generate first?")
        return artifact

    def analyse(self, method: str, *args: Any) -> Any:
        artifact = self.to_artifact()
        if artifact is None:
            raise NothingToAnalyse(
                "Can't analyse because the artifact has not been initialized. Need to fetch first?"
            )
        allowed = self.capabilities.analysis_methods
        if allowed and method not in allowed:
            raise UnknownCapability(
                f"Unknown analysis method: {method} (available: {', '.join(allowed)})"
            )
        return self._context.analyser.analyse(artifact, method, *args)

    # ------------------------------------------------------------------
    # Derived attributes
    # ------------------------------------------------------------------

    def format(self) -> Any:
        for step in reversed(self._steps):
            if isinstance(step, Encode):
                return step.format
        return None

    def mime_type(self) -> str | None:
        fmt = self.format()
        if fmt is None:
            return None
        return self._context.mime_type_for(fmt)

    def url(self) -> str:
        return self._context.url_for(self)

    # ------------------------------------------------------------------
    # Combination
    # ------------------------------------------------------------------

    def combine(self, other: "Job") -> "Job":
        if not isinstance(other, Job):
            raise TypeError(f"Can only combine jobs (type={type(other).__name__})")
        if self._context != other._context:
            raise ContextMismatch(
                f"Cannot add jobs belonging to different contexts "
                f"({self._context!r} is not {other._context!r})"
            )
        if other._cursor != 0:
            raise AlreadyAppliedConflict(
                f"Cannot add jobs when the second one has already been applied ({other!r})"
            )

        new_job = type(self)(self._context, registry=self._registry, recorder=self._recorder)
        new_job._steps = [*self._steps, *other._steps]
        new_job._cursor = self._cursor
        new_job.artifact = self.artifact
        return new_job

    def __add__(self, other: "Job") -> "Job":
        if not isinstance(other, Job):
            return NotImplemented
        return self.combine(other)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_array(self) -> list[list[Any]]:
        return [
            [self._registry.lookup_by_kind(type(step)), *(thaw_arg(arg) for arg in step.args)]
            for step in self._steps
        ]

    def serialize(self) -> str:
        return serializer.encode(self.to_array())

    @classmethod
    def from_array(
        cls,
        steps_array: Any,
        context: JobContext,
        *,
        registry: StepRegistry | None = None,
        recorder: StepRecorder | None = None,
    ) -> "Job":
        lookup = registry or DEFAULT_STEP_REGISTRY
        if not isinstance(steps_array, Sequence) or isinstance(steps_array, (str, bytes)):
            raise MalformedStepArray(f"can't define a job from {steps_array!r}")

        steps: list[Step] = []
        for entry in steps_array:
            if not isinstance(entry, (list, tuple)) or not entry:
                raise MalformedStepArray(f"can't define a job from {steps_array!r}")
            step_type = lookup.lookup_by_code(entry[0])
            steps.append(step_type(*entry[1:]))

        job = cls(context, registry=lookup, recorder=recorder)
        job._steps = steps
        return job

    @classmethod
    def deserialize(
        cls,
        string: str | None,
        context: JobContext,
        *,
        registry: StepRegistry | None = None,
        recorder: StepRecorder | None = None,
    ) -> "Job":
        return cls.from_array(
            serializer.decode(string), context, registry=registry, recorder=recorder
        )

    def __repr__(self) -> str:
        return (
            f"<Job steps={list(self._steps)!r} artifact={self.artifact!r} "
            f"applied={self._cursor}/{len(self._steps)}>"
        )
