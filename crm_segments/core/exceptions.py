# crm_segments/core/exceptions.py
"""
Exception hierarchy for the segment and campaign targeting core.
Every error carries a human-readable message, a stable error code and an
HTTP status so the API layer can render it without inspecting the type.
"""

from typing import List, Optional


class CRMServiceError(Exception):
    """Base exception for all targeting-core errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: str = "CRM_ERROR",
        details: Optional[dict] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(CRMServiceError):
    """Missing/empty required input, unknown rule field or operator, or a
    value that does not fit the operator."""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        errors: Optional[List[dict]] = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if errors:
            details["errors"] = errors
        super().__init__(message, error_code="VALIDATION_ERROR", details=details)


class NotFoundError(CRMServiceError):
    status_code = 404

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            message=f"{resource} not found",
            error_code="NOT_FOUND",
            details={"id": resource_id},
        )


class ConflictError(CRMServiceError):
    """A segment cannot be removed while campaigns still reference it."""

    status_code = 409

    def __init__(self, message: str, campaigns: List[dict]):
        self.campaigns = campaigns
        super().__init__(
            message=message,
            error_code="CONFLICT",
            details={"campaigns": campaigns},
        )


class StoreError(CRMServiceError):
    """Connection or query failure in the underlying store.

    The message is generic. The driver error is chained and
    logged but never returned to the caller.
    """

    def __init__(self, message: str = "Data store operation failed"):
        super().__init__(message, error_code="STORE_ERROR")


class PreviewComputationError(StoreError):
    """The preview count query failed for a predicate that compiled."""

    def __init__(self):
        super().__init__("Failed to compute audience preview")
        self.error_code = "PREVIEW_FAILED"


class AudienceResolutionError(StoreError):
    """The campaign audience could not be materialized."""

    def __init__(self, campaign_id: str):
        self.campaign_id = campaign_id
        super().__init__("Failed to resolve campaign audience")
        self.error_code = "AUDIENCE_RESOLUTION_FAILED"
        self.details = {"campaign_id": campaign_id}
