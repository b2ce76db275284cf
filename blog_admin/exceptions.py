"""
Exceptions raised by the image crop and upload pipeline.

Every error carries a human-readable ``message`` that views and editors
can show as-is.
"""


class BlogAdminError(Exception):
    """Base class for blog_admin errors."""

    default_message = "Something went wrong"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnknownRatio(BlogAdminError, LookupError):
    """No aspect ratio matches the given name or directory."""

    def __init__(self, key):
        self.key = key
        super().__init__(f"Unknown aspect ratio: {key!r}")


class NoCropArea(BlogAdminError):
    default_message = "Select a crop area before adding the image"


class InvalidCropArea(BlogAdminError, ValueError):
    default_message = "Crop area lies outside the source image"


class EmptyBatch(BlogAdminError):
    default_message = "No files provided"


class RenderFailure(BlogAdminError):
    default_message = "Could not render the cropped image"


class BatchRejected(BlogAdminError):
    """An upload batch failed validation; nothing was written."""

    default_message = "Invalid upload batch"


class BatchMismatch(BatchRejected):
    default_message = "Mismatch between files and aspect ratios"


class UnsupportedType(BatchRejected):
    default_message = "Invalid file type. Only images are allowed."


class PayloadTooLarge(BatchRejected):
    default_message = "File too large. Maximum size is 5MB."


class InvalidBaseIdentifier(BatchRejected):
    default_message = "Invalid base filename"


class UploadFailed(BlogAdminError):
    """A batch submission did not complete. Nothing should be recorded."""

    default_message = "Upload failed"
    user_message = "Failed to upload image"


class TransportFailure(UploadFailed):
    default_message = "Could not reach the upload endpoint"


class ServerRejected(UploadFailed):
    def __init__(self, message=None, status_code=None):
        self.status_code = status_code
        super().__init__(message)
