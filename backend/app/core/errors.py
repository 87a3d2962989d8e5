"""Error Hierarchy — typed, categorized exceptions for all Okeyo failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces REST envelope; to_sse_event() produces SSE envelope;
      to_tool_result() produces the dict fed back to the model as a tool_result
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with OkeyoError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Tool results keep the `success: false` + `error` shape the assistant prompt
      is written against (ADR: model sees the same contract for every tool)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFIGURATION = "configuration"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    conversation_id: str | None = None
    tool_name: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class OkeyoError(Exception):
    """Base exception for all Okeyo errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "conversation_id": self.context.conversation_id,
                    "tool_name": self.context.tool_name,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }

    def to_sse_event(self) -> dict:
        """Convert to SSE error event."""
        return {
            "type": "error",
            "data": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "severity": self.severity.value,
                "recoverable": self.severity in (
                    ErrorSeverity.INFO, ErrorSeverity.WARNING,
                ),
                "tool_name": self.context.tool_name,
            },
        }

    def to_tool_result(self) -> dict:
        """Convert to a tool_result payload the model can read and recover from."""
        return {
            "success": False,
            "error": self.message,
            "error_code": self.code,
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ToolValidationError(OkeyoError):
    """Tool or request input validation failed."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(OkeyoError):
    """Requested resource does not exist (or is not visible to the caller)."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type


class AuthenticationRequiredError(OkeyoError):
    """Caller must present a valid access token."""
    def __init__(
        self, message: str = "Authentication required",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "AUTHENTICATION_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )

    def to_tool_result(self) -> dict:
        result = super().to_tool_result()
        result["requires_auth"] = True
        return result


class BookingRuleError(OkeyoError):
    """Booking request violates a pricing or availability rule."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "BOOKING_RULE_VIOLATED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 422,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class ConfigurationError(OkeyoError):
    """Required server configuration is missing."""
    def __init__(self, setting: str, context: ErrorContext | None = None):
        super().__init__(
            "Server configuration error",
            "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.setting = setting


class DatabaseError(OkeyoError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class AnthropicAPIError(OkeyoError):
    """Anthropic API call failed."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Anthropic API error ({api_error_type}): {message}",
            "ANTHROPIC_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.api_error_type = api_error_type


class ExternalServiceError(OkeyoError):
    """Third-party HTTP service (Brevo) rejected or failed a call."""
    def __init__(
        self,
        message: str,
        service: str,
        upstream_status: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "EXTERNAL_SERVICE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, upstream_status or 502,
        )
        self.service = service
        self.upstream_status = upstream_status
