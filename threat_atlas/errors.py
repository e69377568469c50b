"""Exception hierarchy shared by the ingestion pipeline and the store."""


class ThreatAtlasError(RuntimeError):
    """Base class for every failure raised by this package."""

    kind = 'error'

    def __init__(self, message: str = '', detail: str = ''):
        super().__init__(message)
        self.detail = detail or message


class UnsupportedFormat(ThreatAtlasError):
    """The source names a file type the text pipeline cannot handle."""

    kind = 'unsupported_format'


class DuplicateSource(ThreatAtlasError):
    """A record for this source URL is already stored."""

    kind = 'duplicate'


class FetchFailure(ThreatAtlasError):
    """The content fetcher could not retrieve the source."""

    kind = 'fetch_failure'


class InvocationError(ThreatAtlasError):
    """A single backend model call failed or returned nothing."""

    kind = 'invocation_error'


class ModelDiscoveryError(ThreatAtlasError):
    """The backend could not report which models are available."""

    kind = 'model_discovery_error'


class ExtractionFailure(ThreatAtlasError):
    """Every candidate model failed."""

    kind = 'extraction_failure'

    def __init__(self, message: str = '', detail: str = '', attempted=None):
        super().__init__(message, detail)
        self.attempted = list(attempted or [])


class ParseFailure(ThreatAtlasError):
    """The model answered, but not with the expected JSON object."""

    kind = 'parse_failure'

    def __init__(self, message: str = '', detail: str = '', raw_text: str = ''):
        super().__init__(message, detail)
        self.raw_text = raw_text


class ValidationFailure(ThreatAtlasError):
    """The candidate record failed validation (e.g. no threat actor)."""

    kind = 'validation_failure'


class StoreIOFailure(ThreatAtlasError):
    """The backing CSV file could not be read or written."""

    kind = 'store_io_failure'
