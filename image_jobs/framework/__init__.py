"""Application framework: typed config, the App context and reference collaborators."""

from image_jobs.framework.app import App
from image_jobs.framework.config import AppConfig

__all__ = ["App", "AppConfig"]
