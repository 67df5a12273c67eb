"""
Kaggle MCP Error Module

Error taxonomy and classification for every tool call.

Failures coming back from the Kaggle CLI or REST API are plain text: exit
codes, stderr, HTTP status lines. They are mapped onto a small closed set of
categories by keyword search over the lowercased message, in a fixed
priority order:

1. Authentication
2. Validation
3. External execution (404 / 403 / CLI invocation failures)
4. File system
5. Network
6. Unknown (default)

The raw text is logged for operators (with secrets redacted) but only the
fixed, category-level message reaches the caller.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from kaggle_mcp.config import logger


class ErrorCategory(str, Enum):
    AUTHENTICATION = "Authentication"
    VALIDATION = "Validation"
    EXTERNAL_EXECUTION = "ExternalExecution"
    FILE_SYSTEM = "FileSystem"
    NETWORK = "Network"
    UNKNOWN = "Unknown"


class ErrorCode(str, Enum):
    MISSING_CREDENTIALS = "MissingCredentials"
    INVALID_CREDENTIALS = "InvalidCredentials"
    INVALID_INPUT = "InvalidInput"
    NOT_FOUND = "NotFound"
    ACCESS_DENIED = "AccessDenied"
    TIMEOUT = "Timeout"
    COMMAND_FAILED = "CommandFailed"
    FILE_NOT_FOUND = "FileNotFound"
    PERMISSION_DENIED = "PermissionDenied"
    NETWORK_ERROR = "NetworkError"


# Keyword table, checked in order. First category with a matching keyword wins.
CATEGORY_KEYWORDS: tuple[tuple[ErrorCategory, tuple[str, ...]], ...] = (
    (ErrorCategory.AUTHENTICATION, ("credential", "authentication", "unauthorized", "401")),
    (ErrorCategory.VALIDATION, ("validation", "invalid")),
    (ErrorCategory.EXTERNAL_EXECUTION, ("404", "403", "command", "exec")),
    (ErrorCategory.FILE_SYSTEM, ("file", "directory")),
    (ErrorCategory.NETWORK, ("network", "timeout", "timed out", "connection")),
)

USER_MESSAGES = {
    ErrorCategory.AUTHENTICATION: "Authentication failed. Please check your credentials.",
    ErrorCategory.VALIDATION: "Invalid input provided. Please check your parameters and try again.",
    ErrorCategory.EXTERNAL_EXECUTION: "Command execution failed. Please try again later.",
    ErrorCategory.FILE_SYSTEM: "File system operation failed. Please check permissions and available space.",
    ErrorCategory.NETWORK: "Network error occurred. Please check your connection and try again.",
    ErrorCategory.UNKNOWN: "An unexpected error occurred. Please try again later.",
}

# Finer-grained messages that override the category message
CODE_MESSAGES = {
    ErrorCode.NOT_FOUND: "The requested resource was not found or access is denied.",
    ErrorCode.ACCESS_DENIED: "Access denied. You may need to accept competition rules or check permissions.",
}


@dataclass(frozen=True)
class Failure:
    """A classified failure. raw_detail is for logs only."""

    category: ErrorCategory
    code: ErrorCode
    message: str
    raw_detail: Any = None

    @classmethod
    def of(cls, category: ErrorCategory, code: ErrorCode, raw_detail: Any = None) -> "Failure":
        return cls(category, code, user_message(category, code), raw_detail)


class InputValidationError(Exception):
    """Raised when tool input fails its schema."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        self.message = f"Invalid value for '{field}': {reason}"
        super().__init__(self.message)


class ToolExecutionError(Exception):
    """
    Raised by tool handlers when the external operation failed.

    Carries either an already classified Failure (e.g. missing credentials,
    timeout) or the raw diagnostic text to classify, plus an optional
    tool-specific context string and extra payload fields for the caller.
    """

    def __init__(
        self,
        detail: str,
        failure: Failure | None = None,
        context: str | None = None,
        extra: dict | None = None,
    ):
        self.detail = detail
        self.failure = failure
        self.context = context
        self.extra = extra or {}
        super().__init__(detail)

    def classified(self) -> Failure:
        return self.failure if self.failure is not None else classify(self.detail)


# -------------------------------------------------------------------
# Classification
# -------------------------------------------------------------------

def categorize(message: str) -> ErrorCategory:
    """Map a failure message onto its category."""
    lower_message = str(message).lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lower_message for keyword in keywords):
            return category
    return ErrorCategory.UNKNOWN


def error_code(message: str, category: ErrorCategory) -> ErrorCode:
    lower_message = str(message).lower()

    if category is ErrorCategory.AUTHENTICATION:
        if "missing" in lower_message or "required" in lower_message:
            return ErrorCode.MISSING_CREDENTIALS
        return ErrorCode.INVALID_CREDENTIALS

    if category is ErrorCategory.VALIDATION:
        return ErrorCode.INVALID_INPUT

    if category is ErrorCategory.EXTERNAL_EXECUTION:
        if "404" in lower_message:
            return ErrorCode.NOT_FOUND
        if "403" in lower_message:
            return ErrorCode.ACCESS_DENIED
        if "timeout" in lower_message or "timed out" in lower_message:
            return ErrorCode.TIMEOUT
        return ErrorCode.COMMAND_FAILED

    if category is ErrorCategory.FILE_SYSTEM:
        if "not found" in lower_message or "no such file" in lower_message:
            return ErrorCode.FILE_NOT_FOUND
        if "permission" in lower_message:
            return ErrorCode.PERMISSION_DENIED
        return ErrorCode.COMMAND_FAILED

    if category is ErrorCategory.NETWORK:
        return ErrorCode.NETWORK_ERROR

    return ErrorCode.COMMAND_FAILED


def user_message(category: ErrorCategory, code: ErrorCode) -> str:
    return CODE_MESSAGES.get(code, USER_MESSAGES[category])


def classify(message: str) -> Failure:
    """Classify a raw failure message. Total: every string maps to one Failure."""
    category = categorize(message)
    return Failure.of(category, error_code(message, category), raw_detail=message)


# -------------------------------------------------------------------
# Redaction and logging
# -------------------------------------------------------------------

_SECRET_PATTERNS = [
    (re.compile(r"(KAGGLE_KEY\s*[=:]\s*)\S+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(Authorization:\s*Basic\s+)\S+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r'("key"\s*:\s*")[^"]*(")'), r"\1[REDACTED]\2"),
]


def redact(text: Any, secrets: tuple[str, ...] = ()) -> str:
    """Strip credentials from text before it is logged."""
    redacted = str(text)
    for secret in secrets:
        if secret:
            redacted = redacted.replace(secret, "[REDACTED]")
    for pattern, replacement in _SECRET_PATTERNS:
        redacted = pattern.sub(replacement, redacted)
    return redacted


def log_failure(failure: Failure, context: str, secrets: tuple[str, ...] = ()) -> None:
    """Log the full failure for operators."""
    logger.error(
        f"{context} failed [{failure.category.value}/{failure.code.value}]: "
        f"{redact(failure.raw_detail, secrets)}"
    )


# -------------------------------------------------------------------
# Caller-facing payloads
# -------------------------------------------------------------------

def failure_payload(
    failure: Failure,
    tool: str,
    context: str | None = None,
    extra: dict | None = None,
) -> dict:
    payload = dict(extra or {})
    payload.update(
        {
            "success": False,
            "tool": tool,
            "error": failure.message,
            "category": failure.category.value,
            "code": failure.code.value,
        }
    )
    if context:
        payload["context"] = context
    return payload


def validation_payload(error: InputValidationError, tool: str) -> dict:
    payload = failure_payload(
        Failure.of(ErrorCategory.VALIDATION, ErrorCode.INVALID_INPUT, error.message),
        tool,
    )
    payload["field"] = error.field
    payload["detail"] = error.reason
    return payload


def unknown_tool_payload(name: str) -> dict:
    """Dispatch-level error. Carries no category."""
    return {
        "success": False,
        "error": f"Unknown tool: {name}",
        "code": "UnknownTool",
    }
