import logging

import pytest

from jobkit import Job
from jobkit.errors import AlreadyAppliedConflict, ContextMismatch


class FakeContext:
    def __init__(self):
        self.logger = logging.getLogger("test.job_combine")
        self.datastore = self
        self.processor = self

    def retrieve(self, uid):
        return uid.encode(), {"name": uid}

    def process(self, artifact, name, *params):
        return artifact.data + b"+" + name.encode()


def test_combining_applied_job_with_fresh_tail_keeps_cursor():
    ctx = FakeContext()
    a = Job(ctx).fetch("a").process("one").apply()
    b = Job(ctx).process("two")

    combined = a + b

    assert combined.cursor == 2
    assert combined.steps == a.steps + b.steps
    assert combined.artifact is a.artifact
    assert combined.context is ctx
    assert combined.data == b"a+one+two"
    assert a.cursor == 2
    assert len(a.steps) == 2


def test_combine_method_matches_operator():
    ctx = FakeContext()
    a = Job(ctx).fetch("a")
    b = Job(ctx).process("x")
    assert a.combine(b).to_array() == (a + b).to_array() == [["f", "a"], ["p", "x"]]


def test_combining_unapplied_jobs_leaves_everything_pending():
    ctx = FakeContext()
    combined = Job(ctx).fetch("a") + Job(ctx).process("x")
    assert combined.cursor == 0
    assert len(combined.pending_steps) == 2


def test_combining_with_applied_job_raises():
    ctx = FakeContext()
    a = Job(ctx).fetch("a")
    b = Job(ctx).fetch("b").apply()
    with pytest.raises(AlreadyAppliedConflict, match="already been applied"):
        a + b


def test_combining_jobs_from_different_contexts_raises():
    with pytest.raises(ContextMismatch, match="different contexts"):
        Job(FakeContext()).fetch("a") + Job(FakeContext()).process("x")


def test_combining_with_non_job_is_unsupported():
    with pytest.raises(TypeError):
        Job(FakeContext()) + "fetch"
    with pytest.raises(TypeError, match="Can only combine jobs"):
        Job(FakeContext()).combine("fetch")


def test_combined_job_owns_its_steps():
    ctx = FakeContext()
    a = Job(ctx).fetch("a")
    b = Job(ctx).process("x")
    combined = a + b
    combined.process_("y")
    assert len(a.steps) == 1
    assert len(b.steps) == 1
    assert len(combined.steps) == 3
