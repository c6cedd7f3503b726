"""Shared boto3 plumbing for the AWS-backed providers."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from app_config.core.errors import (
    ProviderError,
    ProviderNotFoundError,
    ProviderTransientError,
    ProviderUnauthorizedError,
)

_NOT_FOUND_CODES = frozenset({
    "ResourceNotFoundException",
    "ParameterNotFound",
    "ParameterVersionNotFound",
    "BadRequestException",
})

_UNAUTHORIZED_CODES = frozenset({
    "AccessDenied",
    "AccessDeniedException",
    "UnrecognizedClientException",
    "InvalidClientTokenId",
    "InvalidSignatureException",
    "MissingAuthenticationToken",
    "ExpiredToken",
    "ExpiredTokenException",
})


def build_client(service: str, *, region: str | None, timeout: float) -> Any:
    """Create a boto3 client whose calls are bounded by *timeout* seconds.

    botocore retries are disabled; one invocation makes one attempt and
    the external scheduler provides the retry cadence.
    """
    config = Config(
        connect_timeout=timeout,
        read_timeout=timeout,
        retries={"max_attempts": 1, "mode": "standard"},
    )
    return boto3.client(service, region_name=region, config=config)


def translate_error(exc: Exception, what: str) -> ProviderError:
    """Map a boto3/botocore exception onto the provider error taxonomy."""
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code", "")
        message = error.get("Message", "") or str(exc)
        if code in _NOT_FOUND_CODES:
            return ProviderNotFoundError(f"{what} not found: {code}: {message}")
        if code in _UNAUTHORIZED_CODES:
            return ProviderUnauthorizedError(
                f"Not authorised to read {what}: {code}: {message}"
            )
        return ProviderTransientError(f"Error fetching {what}: {code}: {message}")
    if isinstance(exc, (NoCredentialsError, PartialCredentialsError)):
        return ProviderUnauthorizedError(f"No usable AWS credentials for {what}: {exc}")
    if isinstance(exc, BotoCoreError):
        return ProviderTransientError(f"Error fetching {what}: {exc}")
    return ProviderTransientError(f"Unexpected error fetching {what}: {exc}")
