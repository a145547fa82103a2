"""Engine primitives for building, applying and combining jobs."""

from jobkit.engine.collaborators import (
    NO_CAPABILITIES,
    Analyser,
    DataStore,
    Encoder,
    Generator,
    JobCapabilities,
    JobContext,
    JobDefinition,
    Processor,
)
from jobkit.engine.job import Job
from jobkit.engine.recorder import DefaultStepRecorder, NullStepRecorder, StepRecorder

__all__ = [
    "NO_CAPABILITIES",
    "Analyser",
    "DataStore",
    "DefaultStepRecorder",
    "Encoder",
    "Generator",
    "Job",
    "JobCapabilities",
    "JobContext",
    "JobDefinition",
    "NullStepRecorder",
    "Processor",
    "StepRecorder",
]
