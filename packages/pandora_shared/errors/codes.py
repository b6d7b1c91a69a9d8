"""Shared error code constants.

These constants are machine-readable and stable across the HTTP and WebSocket
surfaces. Component-specific codes extend this set in the component modules.
"""

# Validation
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ARGUMENT = "INVALID_ARGUMENT"
INVALID_MESSAGE = "INVALID_MESSAGE"
UNKNOWN_MESSAGE_TYPE = "UNKNOWN_MESSAGE_TYPE"

# Not found
NOT_FOUND = "NOT_FOUND"
SERVICE_NOT_FOUND = "SERVICE_NOT_FOUND"

# Policy / authorization
PERMISSION_DENIED = "PERMISSION_DENIED"
AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
SUBSCRIPTION_REJECTED = "SUBSCRIPTION_REJECTED"

# Dependency / external system
DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
DEPENDENCY_TIMEOUT = "DEPENDENCY_TIMEOUT"
DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"
DEPENDENCY_RATE_LIMITED = "DEPENDENCY_RATE_LIMITED"
DEPENDENCY_REJECTED = "DEPENDENCY_REJECTED"

# Internal
INTERNAL_ERROR = "INTERNAL_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
