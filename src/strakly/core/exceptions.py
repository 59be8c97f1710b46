"""Error taxonomy for tenant schema orchestration and routing.

Unit-of-work errors are not wrapped: whatever the caller's function
raises propagates unchanged through the router.
"""

from __future__ import annotations


class TenancyError(Exception):
    """Base class for errors raised by the tenancy layer."""


class ProvisioningError(TenancyError):
    """Creating a tenant schema failed and the transaction was rolled back."""

    def __init__(self, schema_name: str, message: str | None = None) -> None:
        self.schema_name = schema_name
        super().__init__(message or f"Failed to provision tenant schema '{schema_name}'")


class MigrationError(TenancyError):
    """Migrating one tenant schema failed.

    The sweep records these per schema instead of raising them.
    """

    def __init__(self, schema_name: str, cause: BaseException) -> None:
        self.schema_name = schema_name
        self.cause = cause
        super().__init__(f"Migration of '{schema_name}' failed: {cause}")


class PoolExhaustedError(TenancyError):
    """No pooled connection became available within the acquire timeout."""


class UnitOfWorkTimeoutError(TenancyError):
    """A tenant unit of work ran longer than UNIT_OF_WORK_TIMEOUT."""


class TenantContextError(TenancyError):
    """A tenant-bound connection was used outside its unit of work."""
