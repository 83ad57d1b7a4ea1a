"""
AquaSight - Error taxonomy for the analysis pipeline.
Every failure raised by the pipeline is a WaterAnalysisError; the HTTP layer maps
status_code to the response and never leaks the underlying detail.
"""


class WaterAnalysisError(RuntimeError):
    """Base class for all analysis failures.

    The pipeline is all-or-nothing: when one of these is raised no partial
    result exists.
    """
    status_code = 500
    public_message = "Failed to analyze the image"


class InvalidInputError(WaterAnalysisError):
    """No file supplied, or the upload is empty or not usable as a binary blob."""
    status_code = 400
    public_message = "Invalid file input"


class DecodeError(WaterAnalysisError):
    """Bytes are not a recognizable image, or width/height cannot be determined."""


class ProcessingError(WaterAnalysisError):
    """Unexpected failure while computing color statistics or metrics."""
