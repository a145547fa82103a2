from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Artifact:
    """Opaque computed value (bytes plus metadata) held by a job."""

    data: bytes
    meta: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.data, bytearray):
            object.__setattr__(self, "data", bytes(self.data))
        if not isinstance(self.data, bytes):
            raise TypeError(f"Artifact data must be bytes (type={type(self.data).__name__})")
        if self.meta is None:
            object.__setattr__(self, "meta", {})
        if not isinstance(self.meta, Mapping):
            raise TypeError(f"Artifact meta must be a mapping (type={type(self.meta).__name__})")
        object.__setattr__(self, "meta", dict(self.meta))

    @classmethod
    def from_result(cls, result: Any) -> "Artifact":
        """Wrap a collaborator result: bytes, a (data, meta) pair or an Artifact."""

        if isinstance(result, Artifact):
            return result
        if isinstance(result, (bytes, bytearray)):
            return cls(bytes(result))
        if isinstance(result, tuple) and len(result) == 2:
            data, meta = result
            return cls(data, meta or {})
        raise TypeError(
            f"Collaborator returned an unsupported result (type={type(result).__name__})"
        )

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def name(self) -> str | None:
        return self.meta.get("name")

    @property
    def format(self) -> str | None:
        return self.meta.get("format")

    def __repr__(self) -> str:
        return f"Artifact(size={self.size}, meta={dict(self.meta)!r})"
