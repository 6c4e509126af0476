"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class StageError(PipelineError):
    """Raised for stage failures that halt the run."""

    error_code = "STAGE_ERROR"


class InsufficientDataError(StageError):
    """Raised when a sample would need more rows than a group holds."""

    error_code = "INSUFFICIENT_DATA"


class MissingKeyError(StageError):
    """Raised when a sampled record has no usable location code."""

    error_code = "MISSING_KEY"


class RemoteLookupError(StageError):
    """Raised when the distance service fails for the whole request."""

    error_code = "REMOTE_LOOKUP_ERROR"
