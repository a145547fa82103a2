from __future__ import annotations

import sys

from jobkit import Job, JobError

from image_jobs.foundation.config_io import load_config
from image_jobs.foundation.logging_utils import setup_operational_logger
from image_jobs.framework.app import App
from image_jobs.framework.config import AppConfig


def configure_stdio_utf8() -> None:
    """Force stdout/stderr to UTF-8 so non-ASCII names never crash on Windows consoles."""
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        sys.stderr.reconfigure(encoding="utf-8", errors="replace")
    except (AttributeError, OSError, ValueError):
        # Replaced streams may not support reconfigure; keep their defaults.
        pass


def build_app(config_path: str | None = None) -> App:
    cfg_dict, cfg_meta = load_config(config_path=config_path)
    cfg, warnings = AppConfig.from_dict(cfg_dict)

    logger, _log_file = setup_operational_logger(
        "image_jobs", level=cfg.log_level, log_dir=cfg.log_path
    )
    logger.info("Loaded config (%s): %s", cfg_meta["mode"], ", ".join(cfg_meta["paths"]))
    for warning in warnings:
        logger.warning(warning)

    return App.from_config(cfg, logger=logger)


def run_job(serialized: str, *, out_path: str, config_path: str | None = None) -> int:
    configure_stdio_utf8()
    app = build_app(config_path)

    job = Job.deserialize(serialized, app)
    app.logger.info("Running job %r", job)
    try:
        artifact = job.to_artifact()
    except JobError:
        app.logger.exception("Job failed: %s", serialized)
        raise
    except Exception as exc:  # noqa: BLE001
        app.logger.exception("Job failed in a collaborator: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if artifact is None:
        app.logger.error("Job produced no artifact: %s", serialized)
        return 1

    with open(out_path, "wb") as handle:
        handle.write(artifact.data)

    app.logger.info("Wrote %d bytes to %s", artifact.size, out_path)
    print(job.mime_type() or "application/octet-stream")
    return 0
