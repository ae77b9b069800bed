"""Resource-level error classes.

Raised by request validation hooks and import identifier parsing. Neither
involves the network, so neither is ever retried.
"""

from typing import Optional

from ploicloud_provider.core.errors.client import ProviderError


class ResourceValidationError(ProviderError):
    """Desired state failed a pre-flight check before any request was sent.

    Attributes:
        field: Attribute that failed validation, if a single one is at fault
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        self.field = field
        super().__init__(message=message, operation=operation)


class ImportIdError(ProviderError):
    """Import identifier has the wrong shape or a non-numeric segment.

    Attributes:
        import_id: The identifier as supplied
        segment: Name of the segment that failed (e.g. "application_id")
    """

    def __init__(
        self,
        message: str,
        import_id: str,
        segment: Optional[str] = None,
    ):
        self.import_id = import_id
        self.segment = segment
        super().__init__(message=message, operation="import resource")
