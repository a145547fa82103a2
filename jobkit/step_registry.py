from __future__ import annotations

import difflib
from dataclasses import dataclass
from typing import Any, Iterable

from jobkit.errors import MalformedStepArray
from jobkit.step_types import STEP_TYPES, Step


@dataclass(frozen=True)
class StepRegistry:
    """Bijective lookup between compact step codes and step types."""

    _by_code: dict[str, type[Step]]
    _by_type: dict[type[Step], str]

    @classmethod
    def from_steps(cls, step_types: Iterable[type[Step]]) -> "StepRegistry":
        by_code: dict[str, type[Step]] = {}
        by_type: dict[type[Step], str] = {}
        for step_type in step_types:
            if not isinstance(step_type, type) or not issubclass(step_type, Step):
                raise TypeError(f"Not a step type: {step_type!r}")
            code = step_type.abbreviation()
            if not code:
                raise ValueError(f"Step type {step_type.__name__} has an empty code")
            if step_type in by_type:
                raise ValueError(f"Duplicate step type: {step_type.__name__}")
            if code in by_code:
                raise ValueError(
                    f"Duplicate step code: {code} "
                    f"({by_code[code].__name__} and {step_type.__name__})"
                )
            by_code[code] = step_type
            by_type[step_type] = code
        return cls(_by_code=by_code, _by_type=by_type)

    def codes(self) -> tuple[str, ...]:
        return tuple(self._by_code.keys())

    def step_names(self) -> tuple[str, ...]:
        return tuple(step_type.step_name() for step_type in self._by_code.values())

    def describe(self) -> tuple[dict[str, Any], ...]:
        rows: list[dict[str, Any]] = []
        for code, step_type in self._by_code.items():
            doc = (step_type.__doc__ or "").strip() or None
            rows.append({"code": code, "step": step_type.step_name(), "doc": doc})
        return tuple(rows)

    def lookup_by_code(self, code: Any) -> type[Step]:
        step_type = self._by_code.get(code) if isinstance(code, str) else None
        if step_type is None:
            message = f"Unknown step code: {code!r}"
            suggestions = self.suggest(code) if isinstance(code, str) else ()
            if suggestions:
                message += f" (did you mean: {', '.join(suggestions)}?)"
            else:
                message += f" (available: {', '.join(self.codes()) or '<none>'})"
            raise MalformedStepArray(message)
        return step_type

    def lookup_by_kind(self, step_type: type[Step]) -> str:
        code = self._by_type.get(step_type)
        if code is None:
            name = getattr(step_type, "__name__", repr(step_type))
            raise MalformedStepArray(f"Unregistered step type: {name}")
        return code

    def suggest(self, code: str, *, limit: int = 3) -> tuple[str, ...]:
        key = (code or "").strip().lower()
        if not key:
            return ()

        by_name = {step_type.step_name(): c for c, step_type in self._by_code.items()}
        if key in by_name:
            return (by_name[key],)
        matches = difflib.get_close_matches(key, list(by_name.keys()), n=limit)
        return tuple(by_name[m] for m in matches)


DEFAULT_STEP_REGISTRY = StepRegistry.from_steps(STEP_TYPES)
