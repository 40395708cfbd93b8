#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import os
from typing import Protocol


class Environment(Protocol):
    """Read access to environment variables."""

    def get_var(self, name: str) -> str | None:
        """Return the value of the named variable, or None if it isn't set."""
        ...


class OSEnvironment:
    """Reads variables from the process environment."""

    def get_var(self, name: str) -> str | None:
        return os.environ.get(name)
