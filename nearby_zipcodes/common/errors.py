"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ContractError(PipelineError):
    """Raised when the adjacency map does not cover every input point."""

    error_code = "CONTRACT_ERROR"


class StageError(PipelineError):
    """Raised for stage failures that should halt the run."""

    error_code = "STAGE_ERROR"


class AcquisitionError(StageError):
    """Raised when the postal code dataset cannot be fetched or opened."""

    error_code = "ACQUISITION_ERROR"


class QueueClosedError(PipelineError):
    """Raised by a closed work queue: on put after close, or on get once drained."""

    error_code = "QUEUE_CLOSED"
