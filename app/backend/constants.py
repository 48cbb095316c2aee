MATERIALS_SEPARATOR = "\n\n---\n\n"
DEFAULT_MIME_TYPE = "application/octet-stream"
UPLOAD_PREFIX = "uploads"
MIN_STARTUP_NAME_CHARS = 2
MIN_PITCH_CHARS = 50
MAX_ERROR_CHARS = 1200
GENERIC_FAILURE_MESSAGE = (
    "An error occurred during the AI evaluation. Please check the server logs."
)
