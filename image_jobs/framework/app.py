from __future__ import annotations

import logging
import mimetypes
import os
from collections.abc import Mapping
from typing import Any

from jobkit import Job, JobCapabilities
from jobkit.engine.collaborators import (
    Analyser,
    DataStore,
    Encoder,
    Generator,
    JobDefinition,
    Processor,
)

from image_jobs.framework.config import AppConfig
from image_jobs.framework.media import (
    FileDataStore,
    PillowAnalyser,
    PillowEncoder,
    PillowGenerator,
    PillowProcessor,
)

# `mimetypes` has no entry for some formats on older platforms.
MIME_TYPE_OVERRIDES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}


class App:
    """Job context: owns the collaborators and capabilities every job uses."""

    def __init__(
        self,
        *,
        datastore: DataStore,
        processor: Processor,
        encoder: Encoder,
        generator: Generator,
        analyser: Analyser,
        logger: logging.Logger | None = None,
        url_path_prefix: str = "/media",
        default_format: str | None = None,
        definitions: Mapping[str, JobDefinition] | None = None,
    ):
        self.datastore = datastore
        self.processor = processor
        self.encoder = encoder
        self.generator = generator
        self.analyser = analyser
        self.logger = logger or logging.getLogger("image_jobs")
        self.url_path_prefix = url_path_prefix.rstrip("/")
        self.default_format = default_format
        capabilities = JobCapabilities(
            definitions={"thumb": self._thumb, "convert": self._convert},
            analysis_methods=tuple(getattr(analyser, "analysis_methods", ()) or ()),
        )
        for name, fn in (definitions or {}).items():
            capabilities = capabilities.with_definition(name, fn)
        self._capabilities = capabilities

    @classmethod
    def from_config(
        cls,
        cfg: AppConfig,
        *,
        logger: logging.Logger | None = None,
        definitions: Mapping[str, JobDefinition] | None = None,
    ) -> "App":
        return cls(
            datastore=FileDataStore(cfg.datastore_root, create=cfg.datastore_create),
            processor=PillowProcessor(),
            encoder=PillowEncoder(default_quality=cfg.quality),
            generator=PillowGenerator(),
            analyser=PillowAnalyser(),
            logger=logger,
            url_path_prefix=cfg.url_path_prefix,
            default_format=cfg.default_format,
            definitions=definitions,
        )

    def __repr__(self) -> str:
        return f"<App id={id(self):#x} url_path_prefix={self.url_path_prefix or '/'}>"

    @property
    def capabilities(self) -> JobCapabilities:
        # Fixed at construction.
        return self._capabilities

    def _thumb(self, job: Job, geometry: str, format: str | None = None) -> None:
        job.process_("thumb", geometry)
        job.encode_(format or self.default_format or "png")

    def _convert(self, job: Job, format: str, *params: Any) -> None:
        job.encode_(format, *params)

    # Job entry points

    def new_job(self, artifact: Any = None) -> Job:
        return Job(self, artifact)

    def fetch(self, uid: str) -> Job:
        return self.new_job().fetch_(uid)

    def generate(self, *args: Any) -> Job:
        return self.new_job().generate_(*args)

    def create(self, data: bytes, *, name: str | None = None) -> Job:
        return self.new_job((data, {"name": name}))

    # Collaborator-facing helpers

    def mime_type_for(self, format: str) -> str | None:
        key = str(format).strip().lower().lstrip(".")
        if not key:
            return None
        if key in MIME_TYPE_OVERRIDES:
            return MIME_TYPE_OVERRIDES[key]
        mime_type, _encoding = mimetypes.guess_type(f"file.{key}")
        return mime_type

    def url_for(self, job: Job) -> str:
        url = f"{self.url_path_prefix}/{job.serialize()}"
        fmt = job.format()
        if fmt:
            url += f".{fmt}"
        return url

    def job_from_path(self, path: str) -> Job:
        """Inverse of `url_for`: strip the prefix and any extension, then deserialize."""

        prefix = self.url_path_prefix + "/"
        if not path.startswith(prefix):
            raise ValueError(f"Path {path!r} is not under {prefix!r}")
        serialized, _ext = os.path.splitext(path[len(prefix) :])
        return Job.deserialize(serialized, self)

    def store(self, job: Job, *, name: str | None = None) -> str:
        artifact = job.to_artifact()
        if artifact is None:
            raise ValueError("Cannot store a job without an artifact")
        uid = self.datastore.store(artifact.data, name=name or artifact.name)
        self.logger.info("Stored job output as %s (%d bytes)", uid, artifact.size)
        return uid
