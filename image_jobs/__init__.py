"""Image job pipelines: configuration, Pillow collaborators and CLI on top of `jobkit`."""
