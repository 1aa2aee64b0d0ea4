from __future__ import annotations


class SamplingConfigError(ValueError):
    """Raised before any round starts when the run cannot be configured."""


class PathSpaceExhausted(SamplingConfigError):
    pass


class StoreError(RuntimeError):
    """The leaf store answered with an error or could not be reached."""

    def __init__(self, message: str, *, code: int | None = None):
        super().__init__(message)
        self.code = code


class LeafDecodeError(ValueError):
    pass


class LeafFetchError(RuntimeError):
    def __init__(self, path: str, cause: BaseException):
        super().__init__(f"could not get {path} from dag: {cause}")
        self.path = path
        self.cause = cause


class OutputError(OSError):
    pass
