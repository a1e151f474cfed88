import os.path
from typing import List

from ._output import output

with open(os.path.dirname(__file__) + "/version.txt") as f:
    __version__ = f.read().strip()


def prepare_error(error):
    return f"{error.__class__.__name__}: {error}"


class ReportingException(Exception):
    """Exceptions that support user-readable reporting."""

    def __str__(self):
        raise NotImplementedError()

    def report(self):
        raise NotImplementedError()


class ConfigurationError(ReportingException):
    """The configuration file is missing, broken or incomplete."""

    message: str

    @classmethod
    def from_context(cls, message):
        self = cls()
        self.message = message
        return self

    def __str__(self):
        return str(self.message)

    def report(self):
        output.error(self.message)


class EnvironmentNotFoundError(ConfigurationError):
    """A named environment is not part of the configuration."""

    name: str
    available: List[str]

    @classmethod
    def from_context(cls, name, available):
        self = cls()
        self.name = name
        self.available = list(available)
        self.message = "Environment '{}' not found. Available: {}".format(
            name, ", ".join(self.available) or "(none)"
        )
        return self

    def report(self):
        output.error(f"Environment '{self.name}' not found")
        output.tabular(
            "available", ", ".join(self.available) or "(none)", red=True
        )


class LocalFileNotFoundError(ReportingException, FileNotFoundError):
    """The local file of an environment does not exist."""

    filename: str

    @classmethod
    def from_context(cls, filename):
        self = cls()
        self.filename = filename
        return self

    def __str__(self):
        return "File not found: {}".format(self.filename)

    def report(self):
        output.error(str(self))


class LocalFileEncodingError(ReportingException):
    """The local file of an environment is not UTF-8 text."""

    filename: str
    reason: str

    @classmethod
    def from_context(cls, filename, reason):
        self = cls()
        self.filename = filename
        self.reason = str(reason)
        return self

    def __str__(self):
        return "Not a UTF-8 text file: {}".format(self.filename)

    def report(self):
        output.error(str(self))
        output.tabular("reason", self.reason, red=True)


class StorageNotFoundError(ReportingException):
    """There is no object stored under the requested key."""

    url: str

    @classmethod
    def from_context(cls, url):
        self = cls()
        self.url = url
        return self

    def __str__(self):
        return "File not found: {}".format(self.url)

    def report(self):
        output.error(str(self))


class StorageTransferError(ReportingException):
    """Talking to the remote storage failed (network, permissions, ...)."""

    operation: str
    url: str
    error: str

    @classmethod
    def from_context(cls, operation, url, error):
        self = cls()
        self.operation = operation
        self.url = url
        self.error = str(error)
        return self

    def __str__(self):
        return f"Failed to {self.operation} {self.url}: {self.error}"

    def report(self):
        output.error(f"Failed to {self.operation} {self.url}")
        output.tabular("message", self.error, red=True)


class MalformedEnvelopeError(ReportingException):
    """A stored blob can not be split into salt, IV and ciphertext."""

    message: str

    @classmethod
    def from_context(cls, message):
        self = cls()
        self.message = message
        return self

    def __str__(self):
        return "Malformed envelope: {}".format(self.message)

    def report(self):
        output.error("Stored data is not a valid envelope")
        output.tabular("message", self.message, red=True)


class DecryptionError(ReportingException):
    """Decrypting failed.

    A wrong passphrase and corrupted data look exactly the same to the
    cipher, so the report can not tell them apart either.

    """

    reason: str

    @classmethod
    def from_context(cls, reason):
        self = cls()
        self.reason = reason
        return self

    def __str__(self):
        return "Failed to decrypt: {}".format(self.reason)

    def report(self):
        output.error(
            "Could not decrypt: check your passphrase or the stored data "
            "may be corrupted."
        )
        output.tabular("reason", self.reason, red=True)
