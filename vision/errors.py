class ModelError(Exception):
    """Descriptor extraction failed (no face, several faces, model error)."""


class BackendError(Exception):
    """The attendance backend could not be reached or refused a request."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code
