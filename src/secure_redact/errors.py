"""Exception hierarchy for the redaction pipeline."""


class RedactionError(Exception):
    """Base class for all pipeline errors."""


class DocumentLoadError(RedactionError):
    """The source document could not be opened or rasterized."""


class DetectionError(RedactionError):
    """Base class for detection-client failures."""


class DetectionConfigError(DetectionError):
    """No usable credential, or the detector rejected the configuration."""


class DetectionRateLimitError(DetectionError):
    """The detector throttled the request. Retry later, do not reconfigure."""


class DetectionServiceError(DetectionError):
    """Transport or server-side failure while calling the detector."""


class MalformedResponseError(DetectionError):
    """The detector answered, but not with a decodable detection list."""


class RunAbortedError(RedactionError):
    """A detection run was stopped by an abort request."""


class ExportError(RedactionError):
    """The output document could not be produced."""


class SessionBusyError(RedactionError):
    """Another operation is already in progress on the session."""
