#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from smithy_core.exceptions import SmithyIdentityError


class ResolutionError(SmithyIdentityError):
    """Base exception type for all failures to resolve storage credentials."""


class TransportError(ResolutionError):
    """Raised when a metadata endpoint could not be reached.

    The underlying transport exception is available as ``__cause__``.
    """

    def __init__(self, url: str, message: str | None = None) -> None:
        self.url = url
        super().__init__(message or f"Unable to reach metadata endpoint {url}")


class UnexpectedStatusError(ResolutionError):
    """Raised when a metadata endpoint responds with a status other than 200."""

    def __init__(self, url: str, status: int, body: bytes) -> None:
        self.url = url
        self.status = status
        self.body = body
        super().__init__(
            f"Metadata endpoint {url} returned {status}: "
            f"{body.decode('utf-8', errors='replace')}"
        )


class MalformedDocumentError(ResolutionError):
    """Raised when a metadata response body isn't a usable credential document."""

    def __init__(self, message: str, body: bytes = b"") -> None:
        self.body = body
        super().__init__(message)


class InvalidTimestampError(ResolutionError):
    """Raised when the expiration of a credential document can't be parsed."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid ISO-8601 expiration timestamp: {value!r}")


class NoCredentialSourceError(ResolutionError):
    """Raised when no credential source is available in the current environment."""

    def __init__(self, message: str = "no credential source available") -> None:
        super().__init__(message)
