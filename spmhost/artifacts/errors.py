"""Exceptions raised by the artifact store and upload workflow.

The router translates these into HTTP responses; nothing below the router
knows about status codes.
"""


class ArtifactError(Exception):
    """Base class for artifact storage errors."""


class InvalidArtifactError(ArtifactError, ValueError):
    """The upload cannot be accepted (bad name, extension or empty body)."""


class ArtifactNotFoundError(ArtifactError, LookupError):
    """No artifact with the requested name exists in the artifacts directory."""

    def __init__(self, filename: str) -> None:
        super().__init__(f"Artifact not found: {filename!r}")
        self.filename = filename
