class BrZipError(Exception):
    """Base class for BrZip-specific errors."""


# Contract
class ArgumentNoneError(BrZipError, ValueError):
    def __init__(self, name: str):
        super().__init__(f"'{name}' must not be None")
        self.name = name


class UnseekableStreamError(BrZipError, ValueError):
    pass


class ArchiveNotOpenError(BrZipError, RuntimeError):
    pass


# Container structure
class MalformedArchiveError(BrZipError, ValueError):
    pass


class BadSignatureError(MalformedArchiveError):
    pass


class TruncatedRecordError(MalformedArchiveError):
    pass


# Payload
class CodecError(BrZipError, RuntimeError):
    pass
