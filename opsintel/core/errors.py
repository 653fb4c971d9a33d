"""
Error taxonomy for OpsIntel.

Every failure the dashboard can surface to the user maps to one of these
classes.  None of them is fatal to a session: the controller catches them,
records a user-facing message and leaves the session usable.

::

    OpsIntelError
        IngestionError          -- upload could not be turned into content
            UnsupportedFormatError
            FileParseError
        ClipboardError          -- clipboard denied or empty
        SchemaValidationError   -- model output does not match the schema
        ServiceError            -- transport / generative service failure
        AnalysisError           -- per-dataset analysis failed
        SynthesisError          -- cross-period synthesis failed
"""


class OpsIntelError(Exception):
    """Base class for all errors raised by the package."""


class IngestionError(OpsIntelError):
    """An uploaded file could not be converted into dataset content."""


class UnsupportedFormatError(IngestionError):
    """The upload has an extension the dashboard does not read."""


class FileParseError(IngestionError):
    """The upload has a supported extension but its bytes are unreadable."""


class ClipboardError(OpsIntelError):
    """The system clipboard is unavailable, denied or empty."""


class SchemaValidationError(OpsIntelError, ValueError):
    """A model response is valid JSON but violates the response schema.

    Attributes:
        path: Dotted location of the offending field (e.g.
            ``shift_analysis[2].stress_score``).
    """

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class ServiceError(OpsIntelError):
    """The generative service could not be reached or returned an error."""


class AnalysisError(OpsIntelError):
    """A per-dataset analysis request failed."""


class SynthesisError(OpsIntelError):
    """A cross-period synthesis request failed."""
