"""Exception hierarchy for the card image pipeline.

Every failure the reconciler can record maps to one of these types, so a
report can say *why* an artifact could not be repaired.
"""


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    pass


class NetworkError(PipelineError):
    """Transport failures talking to an image provider (timeouts, 5xx)."""

    pass


class NotFoundError(NetworkError):
    """No provider has an image for the requested card and language.

    This is an expected outcome: cards are legitimately missing from some
    providers for some languages.
    """

    pass


class AssetError(PipelineError):
    """Problems with an artifact on disk."""

    pass


class CorruptFileError(AssetError):
    """An artifact exists but cannot be decoded."""

    pass


class DimensionMismatchError(AssetError):
    """An image does not have the pixel size a step requires."""

    def __init__(self, message: str, actual=None, expected=None):
        super().__init__(message)
        self.actual = actual
        self.expected = expected


class CodecError(PipelineError):
    """Image resize, crop or encode failed."""

    pass


class ConfigurationError(PipelineError):
    """Invalid run configuration or settings."""

    pass
