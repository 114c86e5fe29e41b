"""Object database custom exception module."""


class InvalidObjectId(Exception):
    """Custom exception thrown when a value used as an object identity is not a
    40 character lowercase hex string (ex. a tree entry or a commit's tree reference)."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors


class ObjectEncodingError(Exception):
    """Custom exception thrown when an object's fields cannot be encoded into its
    canonical byte form (ex. non-ASCII characters in a commit author line)."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors


class DuplicateTreeEntry(Exception):
    """Custom exception thrown when a tree is encoded with two entries sharing the
    same path. A path can only ever reference one object within a tree."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors


class UnsupportedAlgorithm(Exception):
    """Custom exception thrown when a given algorithm cannot be used to address
    objects. Only SHA-1 produces identities compatible with git's object format."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors
