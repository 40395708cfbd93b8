#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass, fields
from urllib.parse import urlparse

DEFAULT_EC2_ENDPOINT = "http://169.254.169.254/latest/meta-data/iam/security-credentials"
DEFAULT_ECS_ENDPOINT = "http://169.254.170.2"


@dataclass(frozen=True, kw_only=True)
class ResolverConfig:
    """Configuration for credential resolution.

    Endpoints must be absolute ``http`` or ``https`` URLs. The ``*_var`` fields name
    the environment variables consulted during resolution.
    """

    _ALLOWED_SCHEMES = frozenset({"http", "https"})

    ec2_endpoint: str = DEFAULT_EC2_ENDPOINT
    """Base URL listing the instance's IAM roles."""

    ecs_endpoint: str = DEFAULT_ECS_ENDPOINT
    """Base URL the container credential path is appended to."""

    ecs_path_var: str = "AWS_CONTAINER_CREDENTIALS_RELATIVE_URI"
    access_key_id_var: str = "AWS_ACCESS_KEY_ID"
    secret_access_key_var: str = "AWS_SECRET_ACCESS_KEY"
    session_token_var: str = "AWS_SESSION_TOKEN"

    def __post_init__(self) -> None:
        self._validate_endpoint(self.ec2_endpoint, "ec2_endpoint")
        self._validate_endpoint(self.ecs_endpoint, "ecs_endpoint")
        for field in fields(self):
            if field.name.endswith("_var"):
                self._validate_var_name(getattr(self, field.name), field.name)

    def _validate_endpoint(self, value: str, field_name: str) -> None:
        parsed = urlparse(value)
        if parsed.scheme not in self._ALLOWED_SCHEMES or not parsed.hostname:
            raise ValueError(
                f"{field_name} must be an absolute http or https URL, got {value!r}."
            )

    def _validate_var_name(self, value: str, field_name: str) -> None:
        if not value:
            raise ValueError(f"{field_name} must be a non-empty variable name.")
