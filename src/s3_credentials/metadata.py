#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Final
from urllib.parse import urlparse

from smithy_core import URI
from smithy_core.exceptions import SmithyError
from smithy_core.utils import ensure_utc
from smithy_http import Field, Fields
from smithy_http.aio import HTTPRequest
from smithy_http.aio.interfaces import HTTPClient

from . import __version__
from .exceptions import (
    InvalidTimestampError,
    MalformedDocumentError,
    TransportError,
    UnexpectedStatusError,
)
from .identity import StorageCredentials

logger: Final = logging.getLogger(__name__)

_USER_AGENT_FIELD = Field(
    name="User-Agent",
    values=[f"s3-credentials/{__version__}"],
)


@dataclass(frozen=True, kw_only=True)
class MetadataResponse:
    """A fully read response from a metadata endpoint."""

    url: str
    status: int
    body: bytes = field(repr=False)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class MetadataClient:
    """Issues GET requests against instance and container metadata endpoints."""

    def __init__(self, http_client: HTTPClient):
        self._http_client = http_client

    async def get(self, url: str, *, accept: str | None = None) -> MetadataResponse:
        """Fetch ``url`` and read the whole response body.

        :param url: The absolute URL to fetch.
        :param accept: An optional media type to send in the ``Accept`` header.
        :raises TransportError: If the URL is unusable or the request fails.
        """
        headers = Fields([_USER_AGENT_FIELD])
        if accept is not None:
            headers.set_field(Field(name="Accept", values=[accept]))
        request = HTTPRequest(method="GET", destination=_to_uri(url), fields=headers)

        logger.debug("Requesting metadata from %s.", url)
        try:
            response = await self._http_client.send(request=request)
            body = await response.consume_body_async()
        except Exception as e:
            raise TransportError(url) from e

        logger.debug("Metadata endpoint %s returned %s.", url, response.status)
        return MetadataResponse(url=url, status=response.status, body=body)


def _to_uri(url: str) -> URI:
    try:
        parsed = urlparse(url)
        return URI(
            scheme=parsed.scheme,
            username=parsed.username,
            password=parsed.password,
            host=parsed.hostname or "",
            port=parsed.port,
            path=parsed.path or None,
            query=parsed.query or None,
            fragment=parsed.fragment or None,
        )
    except (ValueError, SmithyError) as e:
        raise TransportError(url, f"Invalid metadata endpoint URL: {url}") from e


def _expect_ok(response: MetadataResponse) -> None:
    if response.status != 200:
        raise UnexpectedStatusError(response.url, response.status, response.body)


def parse_role_name(response: MetadataResponse) -> str:
    """Return the first role listed in an instance-metadata role listing."""
    _expect_ok(response)
    role = response.text.split("\n", 1)[0].strip()
    if not role:
        raise MalformedDocumentError(
            f"No role name found in response from {response.url}", response.body
        )
    return role


def parse_credentials_document(response: MetadataResponse) -> StorageCredentials:
    """Parse a credential document returned by a metadata endpoint.

    The document is a JSON object with the string fields ``AccessKeyId``,
    ``SecretAccessKey``, and ``Expiration``, and optionally ``Token``.
    """
    _expect_ok(response)
    try:
        document = json.loads(response.body)
    except ValueError as e:
        raise MalformedDocumentError(
            f"Unable to parse JSON from {response.url}: {response.text}",
            response.body,
        ) from e

    if not isinstance(document, dict):
        raise MalformedDocumentError(
            f"Expected valid credential map, got: {response.text}", response.body
        )

    access_key_id = _required_string(document, "AccessKeyId", response.body)
    secret_access_key = _required_string(document, "SecretAccessKey", response.body)
    raw_expiration = document.get("Expiration")
    if raw_expiration is None:
        raise MalformedDocumentError(
            "Credential document is missing required field Expiration", response.body
        )
    expiration = parse_expiration(raw_expiration)

    session_token = document.get("Token")
    if session_token is not None and not isinstance(session_token, str):
        raise MalformedDocumentError(
            "Credential document field Token must be a string", response.body
        )

    return StorageCredentials(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=session_token,
        expiration=expiration,
    )


def parse_expiration(value: Any) -> datetime:
    """Parse an ISO-8601 expiration, treating values without an offset as UTC."""
    if not isinstance(value, str):
        raise InvalidTimestampError(value)
    try:
        return ensure_utc(datetime.fromisoformat(value))
    except ValueError as e:
        raise InvalidTimestampError(value) from e


def _required_string(document: dict[str, Any], key: str, body: bytes) -> str:
    value = document.get(key)
    if value is None:
        raise MalformedDocumentError(
            f"Credential document is missing required field {key}", body
        )
    if not isinstance(value, str):
        raise MalformedDocumentError(
            f"Credential document field {key} must be a string", body
        )
    return value
