"""Error types raised by the backend client and the submission workflow."""


class BackendError(Exception):
    """A storage, database or auth call against the backend failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SubmissionError(Exception):
    """Base class for errors that end a submission attempt.

    ``message`` is the single line shown to the user.
    """

    prefix = ""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @classmethod
    def from_backend(cls, error: BackendError) -> "SubmissionError":
        return cls(f"{cls.prefix}{error.message}")


class ValidationError(SubmissionError):
    """File or text rejected before any backend call."""


class UploadError(SubmissionError):
    prefix = "Failed to upload file: "


class PersistError(SubmissionError):
    prefix = "Failed to save metadata: "


class UpdateError(SubmissionError):
    prefix = "Failed to update record: "


class UrlError(SubmissionError):
    def __init__(self, message: str = "Failed to get public URL for the processed file") -> None:
        super().__init__(message)

    @classmethod
    def from_backend(cls, error: BackendError) -> "SubmissionError":
        return cls()


class UnknownError(SubmissionError):
    def __init__(self, message: str = "An unknown error occurred. Please try again.") -> None:
        super().__init__(message)


class SubmissionInProgressError(SubmissionError):
    def __init__(self, message: str = "A submission is already in progress.") -> None:
        super().__init__(message)
