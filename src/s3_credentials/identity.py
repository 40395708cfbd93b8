#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass
from datetime import datetime
from typing import TypedDict

from smithy_core.interfaces.identity import Identity


@dataclass(kw_only=True)
class StorageCredentials(Identity):
    """A complete set of object-storage credentials."""

    access_key_id: str
    """A unique identifier for the user or role the credentials belong to."""

    secret_access_key: str
    """A secret key used in conjunction with the access key ID to sign requests."""

    session_token: str | None = None
    """A temporary token for the session the credentials were issued to."""

    expiration: datetime | None = None
    """The expiration time of the credentials.

    If None, the credentials never expire. If time zone is provided, it is updated
    to UTC. The value must always be in UTC.
    """

    def __repr__(self) -> str:
        return (
            f"StorageCredentials(access_key_id={mask(self.access_key_id)!r}, "
            f"expiration={self.expiration!r})"
        )


@dataclass(kw_only=True)
class TargetCredentials:
    """The credential fields of an object-storage client that need to be filled in."""

    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None

    @property
    def is_complete(self) -> bool:
        """Whether both the access key id and the secret access key are set."""
        return self.access_key_id is not None and self.secret_access_key is not None

    def __repr__(self) -> str:
        return (
            f"TargetCredentials(access_key_id={mask(self.access_key_id)!r}, "
            f"is_complete={self.is_complete})"
        )


class StorageIdentityProperties(TypedDict, total=False):
    access_key_id: str | None
    secret_access_key: str | None
    session_token: str | None


def mask(value: str | None) -> str | None:
    """Hide all but the last four characters of a credential value."""
    if value is None:
        return None
    return "*" * max(len(value) - 4, 0) + value[-4:]
