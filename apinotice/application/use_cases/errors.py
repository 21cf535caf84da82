"""Messages raised by use cases and mapped to HTTP status codes by the routes."""

API_NOT_FOUND = "API not found"
VERSION_NOT_FOUND = "Version not found"
NOTIFICATION_NOT_FOUND = "Notification not found"
VERSION_ALREADY_EXISTS = "Version already exists for this API"
INVALID_VERSION_STATUS = "status must be active|deprecated|sunset"
INVALID_NOTIFICATION_KIND = "type must be 'deprecate' or 'sunset'"
INVALID_NOTIFICATION_STATUS = "status must be pending|sent|canceled"

NOT_FOUND_MESSAGES = frozenset(
    {API_NOT_FOUND, VERSION_NOT_FOUND, NOTIFICATION_NOT_FOUND}
)
