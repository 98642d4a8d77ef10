"""User-facing error messages and text for the backend."""

# Authentication messages
AUTH_USER_NOT_FOUND = "User not found"
AUTH_INVALID_PASSWORD = "Invalid password"
AUTH_LOGIN_SUCCESS = "Login successful"
AUTH_LOGIN_FAILED = "Login failed"

# Registration messages
REG_USERNAME_REQUIRED = "Username is required"
REG_FIELD_EXISTS = "{field} already exists"
REG_SUCCESS = "User registered successfully"
REG_FAILED = "User registration failed"

# File upload messages
FILE_NOT_UPLOADED = "No file uploaded"
FILE_TOO_LARGE = "File too large. Maximum size: {max_mb:g}MB"

# WebSocket protocol messages
WS_INVALID_JSON = "Invalid JSON format"
WS_UNKNOWN_EVENT = "Unsupported event type: {event}"
