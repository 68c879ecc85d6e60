"""Exceptions raised by the upload engine."""


class UploadError(RuntimeError):
    """A strategy could not deliver a file to remote storage."""


class InvalidTransition(RuntimeError):
    """A file upload record was asked to move backwards or out of a terminal state."""


class UnknownUploaderError(KeyError):
    """No uploader is registered under the requested key."""


class ConfigurationError(ValueError):
    """Storage configuration could not be resolved."""
