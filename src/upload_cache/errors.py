from __future__ import annotations


class UploadError(Exception):
    """Base class for every error raised by upload_cache."""


class FormNotMultipart(UploadError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or (
                "You tried to assign a String or a Path to an uploader, for security "
                "reasons, this is not allowed.\n\n"
                "If this is a file upload, please check that your upload form is "
                "multipart encoded."
            )
        )


class InvalidParameter(UploadError, ValueError):
    pass


class InvalidIdentifier(InvalidParameter):
    pass
