from typing import Any, Optional

GENERIC_RETRY_MESSAGE = "Something went wrong. Please try again."


class ScreeningError(Exception):
    """Base error for the screening backend.

    Attributes:
        message: text returned to the caller.
        code: short machine-readable identifier.
        status_code: HTTP status the API layer responds with.
    """

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, detail: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(ScreeningError):
    """Missing or invalid intake fields, shown to the submitter verbatim."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, missing: Optional[list[str]] = None) -> None:
        super().__init__(message, detail=missing)
        self.missing = list(missing or [])


class NotFoundError(ScreeningError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, message: str = "Candidate not found") -> None:
        super().__init__(message)


class AnalysisExistsError(ScreeningError):
    code = "ANALYSIS_EXISTS"
    status_code = 409

    def __init__(self, message: str = "Analysis already exists for this candidate") -> None:
        super().__init__(message)


class AnalysisNotReadyError(ScreeningError):
    code = "ANALYSIS_NOT_READY"
    status_code = 409

    def __init__(self, message: str = "Candidate has not been scored yet") -> None:
        super().__init__(message)


class UpstreamError(ScreeningError):
    """A Gemini or Speech-to-Text call failed.

    The caller only ever sees ``public_message``; ``message`` carries the
    details for the server log.
    """

    code = "UPSTREAM_ERROR"
    status_code = 502
    public_message = GENERIC_RETRY_MESSAGE


class AnalysisUnavailableError(UpstreamError):
    code = "ANALYSIS_UNAVAILABLE"
    public_message = "Analysis is unavailable right now. Please try again."


class TranscriptionError(UpstreamError):
    code = "TRANSCRIPTION_FAILED"
    public_message = "Failed to transcribe audio. Please try again or type your answer."


class MalformedResponseError(UpstreamError):
    """The model answered, but not with the JSON shape we asked for."""

    code = "MALFORMED_UPSTREAM_RESPONSE"
    public_message = "Analysis is unavailable right now. Please try again."


class StorageError(ScreeningError):
    code = "STORAGE_ERROR"
    status_code = 500


class NoAudioError(ScreeningError):
    code = "NO_AUDIO"
    status_code = 200

    def __init__(self, message: str = "No audio files to analyze") -> None:
        super().__init__(message)


class NothingToSyncError(ScreeningError):
    code = "NOTHING_TO_SYNC"
    status_code = 200

    def __init__(self, message: str = "No audio files found in storage") -> None:
        super().__init__(message)
