class LearningPlatformError(Exception):
    """Base class for errors raised by the learning platform services."""


class SchemaViolation(LearningPlatformError):
    """The LLM response did not match the expected response contract."""


class OperationFailed(LearningPlatformError):
    """A whole service operation failed; the cause is logged, not exposed."""


class FileValidationError(LearningPlatformError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SessionNotFound(LearningPlatformError):
    def __init__(self, session_id: str):
        super().__init__(f"Assessment session not found: {session_id}")
        self.session_id = session_id


class NoConceptsAvailable(LearningPlatformError):
    """An assessment was requested before any concepts were extracted."""


class UploadNotFound(LearningPlatformError):
    def __init__(self, upload_id: str):
        super().__init__(f"Upload not found: {upload_id}")
        self.upload_id = upload_id
