"""Reusable job kernel: lazy step pipelines with a compact wire format.

This package is intentionally independent of `image_jobs.*`. Concrete
collaborators (datastores, processors, encoders, generators, analysers) and
application conventions such as URL layout live in the consuming application.
"""

from jobkit.artifact import Artifact
from jobkit.engine.collaborators import JobCapabilities, JobContext
from jobkit.engine.job import Job
from jobkit.engine.recorder import DefaultStepRecorder, NullStepRecorder, StepRecorder
from jobkit.errors import (
    AlreadyAppliedConflict,
    ContextMismatch,
    DecodeFailure,
    JobError,
    MalformedStepArray,
    NothingToAnalyse,
    NothingToEncode,
    NothingToProcess,
    StepPreconditionError,
    UnknownCapability,
)
from jobkit.step_registry import DEFAULT_STEP_REGISTRY, StepRegistry
from jobkit.step_types import STEP_TYPES, Encode, Fetch, Generate, Process, Step

__all__ = [
    "DEFAULT_STEP_REGISTRY",
    "STEP_TYPES",
    "AlreadyAppliedConflict",
    "Artifact",
    "ContextMismatch",
    "DecodeFailure",
    "DefaultStepRecorder",
    "Encode",
    "Fetch",
    "Generate",
    "Job",
    "JobCapabilities",
    "JobContext",
    "JobError",
    "MalformedStepArray",
    "NothingToAnalyse",
    "NothingToEncode",
    "NothingToProcess",
    "NullStepRecorder",
    "Process",
    "Step",
    "StepPreconditionError",
    "StepRecorder",
    "StepRegistry",
    "UnknownCapability",
]
