from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from jobkit.step_types import Step

if TYPE_CHECKING:
    from jobkit.engine.job import Job


class StepRecorder(Protocol):
    def on_step_start(self, job: "Job", index: int, step: Step) -> None:
        ...

    def on_step_end(self, job: "Job", record: dict[str, Any]) -> None:
        ...

    def on_step_error(self, job: "Job", index: int, step: Step, exc: Exception) -> None:
        ...


class DefaultStepRecorder:
    def on_step_start(self, job: "Job", index: int, step: Step) -> None:
        job.logger.info("Step: %d/%d %r", index + 1, len(job.steps), step)

    def on_step_end(self, job: "Job", record: dict[str, Any]) -> None:
        tokens: list[str] = [f"size={int(record.get('size', 0) or 0)}"]
        name = record.get("name")
        if isinstance(name, str) and name.strip():
            tokens.append(f"name={name.strip()}")
        job.logger.info(
            "Completed step %d/%d %s (%s)",
            int(record.get("index", 0)) + 1,
            len(job.steps),
            record.get("step", "<unknown>"),
            ", ".join(tokens),
        )

    def on_step_error(self, job: "Job", index: int, step: Step, exc: Exception) -> None:
        job.logger.error("Step failed: %d/%d %r (%s)", index + 1, len(job.steps), step, exc)


class NullStepRecorder:
    def on_step_start(self, job: "Job", index: int, step: Step) -> None:
        return

    def on_step_end(self, job: "Job", record: dict[str, Any]) -> None:
        return

    def on_step_error(self, job: "Job", index: int, step: Step, exc: Exception) -> None:
        return


def validate_recorder(recorder: Any) -> None:
    required = ("on_step_start", "on_step_end", "on_step_error")
    for name in required:
        method = getattr(recorder, name, None)
        if method is None or not callable(method):
            raise TypeError(f"Step recorder missing required method: {name}")

