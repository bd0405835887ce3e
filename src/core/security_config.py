"""Redaction rules for structured logs.

Streamed responses carry user-facing model output and citation bodies; none of
it belongs in logs. Keys listed here are replaced with ``[REDACTED]`` by the
structured logger.
"""

# Matched as case-insensitive substrings of the log field name
SENSITIVE_KEYS: set[str] = {
    # Credentials
    "password",
    "secret",
    "token",
    "authorization",
    "api_key",
    "bearer",
    "cookie",
    # Message content
    "text",
    "message_body",
    "content",
    "abstract",
    "attachment",
    # Conversation identity beyond opaque ids
    "email",
    "user_name",
}


def is_sensitive_key(key: str) -> bool:
    """Check if a key should be considered sensitive and redacted.

    Args:
        key: The key name to check

    Returns:
        True if the key should be redacted, False otherwise
    """
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
