class DataNotFoundError(FileNotFoundError):
    """Raised when a read, delete or metadata lookup targets a missing file."""

    def __init__(self, path: str, message: str = None):
        self.path = path
        super().__init__(message or f"Data not found: {path}")


class InvalidPathError(ValueError):
    """Raised when a path argument does not have the shape an operation needs."""

    def __init__(self, argument_name: str, message: str):
        self.argument_name = argument_name
        super().__init__(message)
