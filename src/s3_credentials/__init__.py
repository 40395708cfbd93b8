#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0

import importlib.metadata

__version__: str = importlib.metadata.version("s3-credentials")


from .config import ResolverConfig
from .environment import Environment, OSEnvironment
from .exceptions import (
    InvalidTimestampError,
    MalformedDocumentError,
    NoCredentialSourceError,
    ResolutionError,
    TransportError,
    UnexpectedStatusError,
)
from .identity import StorageCredentials, StorageIdentityProperties, TargetCredentials
from .resolver import CredentialsMethod, CredentialsResolver, Validity

__all__ = (
    "CredentialsMethod",
    "CredentialsResolver",
    "Environment",
    "InvalidTimestampError",
    "MalformedDocumentError",
    "NoCredentialSourceError",
    "OSEnvironment",
    "ResolutionError",
    "ResolverConfig",
    "StorageCredentials",
    "StorageIdentityProperties",
    "TargetCredentials",
    "TransportError",
    "UnexpectedStatusError",
    "Validity",
)
