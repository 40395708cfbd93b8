#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Final

from smithy_core.aio.interfaces.identity import IdentityResolver
from smithy_http.aio.interfaces import HTTPClient

from .config import ResolverConfig
from .environment import Environment, OSEnvironment
from .exceptions import NoCredentialSourceError, TransportError
from .identity import (
    StorageCredentials,
    StorageIdentityProperties,
    TargetCredentials,
    mask,
)
from .metadata import MetadataClient, parse_credentials_document, parse_role_name

logger: Final = logging.getLogger(__name__)

EXPIRY_MARGIN: Final = timedelta(seconds=5)
"""Credentials expiring within this margin are treated as already expired."""


class CredentialsMethod(Enum):
    """The strategy used to discover credentials."""

    UNKNOWN = "unknown"
    ENVIRONMENT = "environment"
    ECS = "ecs"
    EC2 = "ec2"
    NONE = "none"


class Validity(Enum):
    """The state of the cached credentials."""

    VALID = "valid"
    MISSING = "missing"
    EXPIRED = "expired"


@dataclass(frozen=True, kw_only=True)
class ResolverState:
    """Everything a resolver knows. Replaced as a whole, never mutated in place."""

    config: ResolverConfig
    method: CredentialsMethod = CredentialsMethod.UNKNOWN
    cache: StorageCredentials | None = None


class CredentialsResolver(
    IdentityResolver[StorageCredentials, StorageIdentityProperties]
):
    """Resolves and caches object-storage credentials.

    The discovery method is inferred once, checking in order the environment,
    the container metadata endpoint, and the instance metadata endpoint. The
    credentials it yields are cached until they are about to expire.

    All access to the resolver's state is serialized by a single lock, so
    concurrent callers never issue duplicate metadata requests. Callers that
    queue behind a refresh receive the refreshed credentials.

    The lock is an ``asyncio.Lock``, so a resolver must only be used from a single
    event loop. Callers on other threads or loops are not serialized with it, and
    contending for it from a second loop raises ``RuntimeError``. Create one
    resolver per event loop.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        *,
        config: ResolverConfig | None = None,
        environment: Environment | None = None,
    ):
        """
        :param http_client: The client used to reach metadata endpoints.
        :param config: Endpoints and variable names. Defaults to ``ResolverConfig()``.
        :param environment: Where variables are read from. Defaults to the process
            environment.
        """
        self._metadata_client = MetadataClient(http_client)
        self._environment = environment or OSEnvironment()
        self._state = ResolverState(config=config or ResolverConfig())
        self._lock = asyncio.Lock()

    @property
    def config(self) -> ResolverConfig:
        return self._state.config

    @property
    def method(self) -> CredentialsMethod:
        return self._state.method

    @property
    def cached_credentials(self) -> StorageCredentials | None:
        return self._state.cache

    async def ensure_credentials(self, target: TargetCredentials) -> TargetCredentials:
        """Fill in the credentials of ``target`` if it doesn't have them.

        A target that already has both an access key id and a secret access key is
        returned unchanged without consulting the resolver.

        :param target: The credentials to fill in.
        :returns: A copy of ``target`` carrying the resolved credentials.
        :raises ResolutionError: If no credentials could be resolved.
        """
        if target.is_complete:
            return target

        credentials = await self._resolve()
        return replace(
            target,
            access_key_id=credentials.access_key_id,
            secret_access_key=credentials.secret_access_key,
            session_token=credentials.session_token,
        )

    async def get_identity(
        self, *, properties: StorageIdentityProperties
    ) -> StorageCredentials:
        access_key_id = properties.get("access_key_id")
        secret_access_key = properties.get("secret_access_key")
        if access_key_id is not None and secret_access_key is not None:
            return StorageCredentials(
                access_key_id=access_key_id,
                secret_access_key=secret_access_key,
                session_token=properties.get("session_token"),
            )
        return await self._resolve()

    def validate_credentials(self) -> Validity:
        """Check whether the cached credentials can still be used."""
        cache = self._state.cache
        if cache is None:
            return Validity.MISSING
        if cache.expiration is None:
            return Validity.VALID
        if cache.expiration - datetime.now(UTC) > EXPIRY_MARGIN:
            return Validity.VALID
        return Validity.EXPIRED

    async def reconfigure(self, config: ResolverConfig) -> None:
        """Replace the resolver's configuration."""
        async with self._lock:
            self._state = replace(self._state, config=config)

    async def set_cached_credentials(
        self, credentials: StorageCredentials | None
    ) -> None:
        """Overwrite the cached credentials."""
        async with self._lock:
            self._state = replace(self._state, cache=credentials)

    async def reset(self) -> None:
        """Forget the cached credentials and the inferred method."""
        async with self._lock:
            self._state = replace(
                self._state, method=CredentialsMethod.UNKNOWN, cache=None
            )

    async def _resolve(self) -> StorageCredentials:
        async with self._lock:
            validity = self.validate_credentials()
            if validity is Validity.VALID:
                assert self._state.cache is not None  # noqa: S101
                return self._state.cache

            logger.debug("Cached credentials are %s, refreshing.", validity.value)
            return await self._refresh()

    async def _refresh(self) -> StorageCredentials:
        state = self._state
        if state.method is CredentialsMethod.UNKNOWN:
            state = replace(state, method=await self._infer_method(state.config))
            self._state = state
            logger.debug("Inferred credentials method: %s.", state.method.value)

        credentials = await self._fetch(state.config, state.method)
        self._state = replace(state, cache=credentials)
        logger.debug(
            "Resolved credentials %s from %s, expiring at %s.",
            mask(credentials.access_key_id),
            state.method.value,
            credentials.expiration,
        )
        return credentials

    async def _infer_method(self, config: ResolverConfig) -> CredentialsMethod:
        if self._has_var(config.access_key_id_var) and self._has_var(
            config.secret_access_key_var
        ):
            return CredentialsMethod.ENVIRONMENT
        if self._has_var(config.ecs_path_var):
            return CredentialsMethod.ECS
        if await self._is_ec2(config):
            return CredentialsMethod.EC2
        return CredentialsMethod.NONE

    def _has_var(self, name: str) -> bool:
        return bool(self._environment.get_var(name))

    async def _is_ec2(self, config: ResolverConfig) -> bool:
        try:
            response = await self._metadata_client.get(config.ec2_endpoint)
        except TransportError as e:
            logger.debug("Instance metadata endpoint is unreachable: %s", e)
            return False

        if response.status != 200:
            return False
        if not response.body:
            # An empty listing may also mean the role list isn't populated yet.
            logger.debug("Instance metadata endpoint returned no roles.")
            return False
        return True

    async def _fetch(
        self, config: ResolverConfig, method: CredentialsMethod
    ) -> StorageCredentials:
        match method:
            case CredentialsMethod.ENVIRONMENT:
                return self._fetch_environment(config)
            case CredentialsMethod.EC2:
                return await self._fetch_ec2(config)
            case CredentialsMethod.ECS:
                return await self._fetch_ecs(config)
            case _:
                raise NoCredentialSourceError()

    def _fetch_environment(self, config: ResolverConfig) -> StorageCredentials:
        access_key_id = self._environment.get_var(config.access_key_id_var)
        secret_access_key = self._environment.get_var(config.secret_access_key_var)
        if not access_key_id or not secret_access_key:
            raise NoCredentialSourceError(
                f"{config.access_key_id_var} and {config.secret_access_key_var} "
                "are no longer set."
            )
        return StorageCredentials(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=self._environment.get_var(config.session_token_var) or None,
        )

    async def _fetch_ec2(self, config: ResolverConfig) -> StorageCredentials:
        listing = await self._metadata_client.get(config.ec2_endpoint)
        role = parse_role_name(listing)
        response = await self._metadata_client.get(
            f"{config.ec2_endpoint}/{role}", accept="application/json"
        )
        return parse_credentials_document(response)

    async def _fetch_ecs(self, config: ResolverConfig) -> StorageCredentials:
        path = self._environment.get_var(config.ecs_path_var)
        if not path:
            raise NoCredentialSourceError(f"{config.ecs_path_var} is no longer set.")
        response = await self._metadata_client.get(
            f"{config.ecs_endpoint}{path}", accept="application/json"
        )
        return parse_credentials_document(response)
