"""User-facing error messages and text for the backend."""

# Authentication messages
AUTH_INVALID_CREDENTIALS = "Invalid credentials"
AUTH_USER_INACTIVE = "User is inactive"
AUTH_TOKEN_INVALID = "Could not validate credentials"
AUTH_TOKEN_PAYLOAD_INVALID = "Invalid token payload"
AUTH_REFRESH_TOKEN_INVALID = "Invalid refresh token"
AUTH_REFRESH_TOKEN_PAYLOAD_INVALID = "Invalid refresh token payload"
AUTH_REFRESH_TOKEN_REVOKED = "Refresh token has been rotated or revoked"
AUTH_REFRESH_TOKEN_MISSING = "Missing refresh token. Please log in again."
AUTH_USER_ID_INVALID = "Invalid user ID format"
AUTH_USER_NOT_FOUND_OR_INACTIVE = "User not found or inactive"
AUTH_INSUFFICIENT_PERMISSIONS = "Insufficient permissions"
AUTH_TOO_MANY_ATTEMPTS = "Too many login attempts. Try again in 15 minutes."
AUTH_LOGOUT_SUCCESS = "Logged out successfully"

# Registration messages
REG_EMAIL_EXISTS = "User already exists"

# Chat messages
CHAT_SESSION_NOT_FOUND = "Chat session not found"
CHAT_SESSION_ACCESS_DENIED = "You do not have permission to access this chat session"
CHAT_MESSAGE_REQUIRED = "Message content is required"
CHAT_SESSION_CLOSED = "Chat session is closed"
CHAT_INVALID_EVENT = "Invalid event"

# Project messages
PROJECT_ACCESS_DENIED = "You do not have permission to access this project"

# Contact messages
CONTACT_RECEIVED = "Contact request received successfully"
CONTACT_PRIVACY_REQUIRED = "You must accept the privacy policy"

# General error messages
ERROR_INTERNAL_SERVER = "Internal server error"
