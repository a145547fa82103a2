"""Exceptions raised by the job kernel.

Collaborator failures (datastore, processor, encoder, generator, analyser) are
never wrapped in these; they propagate unchanged.
"""

from __future__ import annotations


class JobError(Exception):
    """Base class for every error the kernel raises itself."""


class ContextMismatch(JobError):
    pass


class AlreadyAppliedConflict(JobError):
    pass


class StepPreconditionError(JobError):
    """A step needs an artifact but the job has none yet."""


class NothingToProcess(StepPreconditionError):
    pass


class NothingToEncode(StepPreconditionError):
    pass


class NothingToAnalyse(StepPreconditionError):
    pass


class MalformedStepArray(JobError, ValueError):
    pass


class DecodeFailure(JobError, ValueError):
    pass


class UnknownCapability(JobError, LookupError):
    pass
