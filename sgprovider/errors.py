"""
Exceptions raised by the provider and expected from compute clients.
"""
from typing import List


class ProviderError(Exception):
    """Base class for every error raised by sgprovider."""


class ConfigError(ProviderError):
    pass


class UnknownResourceType(ProviderError):
    def __init__(self, resource_type: str):
        super().__init__(f"unknown resource type '{resource_type}'")
        self.resource_type = resource_type


class ValidationError(ProviderError):
    """Raised when attributes violate the declared schema. No API call has been made."""

    def __init__(self, resource_type: str, errors: List[str]):
        self.resource_type = resource_type
        self.errors = list(errors)
        super().__init__(
            f"invalid {resource_type}: " + "; ".join(self.errors)
        )


class ApiError(ProviderError):
    """Failure reported by the remote compute API (network, auth or server side)."""


class NotFoundError(ApiError):
    pass


class SecurityGroupNotFound(NotFoundError):
    def __init__(self, ref: str):
        super().__init__(f"security group '{ref}' not found")
        self.ref = ref
