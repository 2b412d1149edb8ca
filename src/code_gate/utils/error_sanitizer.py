"""
Utility for sanitizing error messages before they land in a review report.
Removes sensitive technical details like API keys, quotas, and internal stack traces.
"""

import re
import logging

logger = logging.getLogger(__name__)


def sanitize_error_for_display(error_message: str) -> str:
    """
    Sanitize error messages for display in the live view and the report.

    Args:
        error_message: The raw error message

    Returns:
        A sanitized, user-friendly error message
    """
    if not error_message:
        return "An unexpected error occurred during review."

    error_lower = error_message.lower()

    # AI provider quota/rate limit errors
    if any(term in error_lower for term in ["quota", "rate limit", "rate_limit", "429", "too many requests"]):
        return (
            "The AI provider is currently rate-limited or quota has been exceeded. "
            "Please try again later or lower concurrencyFiles for this provider."
        )

    # Authentication/API key errors
    if any(term in error_lower for term in ["401", "403", "unauthorized", "authentication",
                                            "invalid_api_key", "invalid key", "incorrect api key"]):
        return (
            "AI provider authentication failed. "
            "Please check the API key configured for this provider."
        )

    # Unsupported model errors (from LLMFactory)
    if "model" in error_lower and "instead, such as" in error_lower:
        match = re.search(r"such as ['\"]?([^'\"]+)['\"]?", error_message, re.IGNORECASE)
        if match:
            alternative = match.group(1).strip().rstrip(".")
            return (
                f"The selected AI model is not supported for this operation. "
                f"Please use an alternative model such as '{alternative}'."
            )

    # Model not found/invalid
    if "model" in error_lower and any(term in error_lower for term in ["not found", "does not exist", "unavailable"]):
        return (
            "The configured AI model is not available. "
            "Please check the model name in the provider options."
        )

    # Token limit errors
    if "token" in error_lower and any(term in error_lower for term in ["limit", "too long", "maximum", "context"]):
        return (
            "The diff exceeds the AI model's token limit. "
            "Consider lowering maxDiffLines or reviewing fewer files at once."
        )

    # Network/connectivity errors
    if any(term in error_lower for term in ["connection", "timeout", "timed out", "network", "unreachable"]):
        return (
            "Failed to connect to the AI provider. "
            "Please check that the provider is running and reachable."
        )

    # Content filter/safety errors
    if any(term in error_lower for term in ["content filter", "safety", "harmful", "content policy"]):
        return (
            "The AI provider's content filter blocked this request. "
            "Please try a different model."
        )

    # Check for stack traces or technical details
    if any(term in error_message for term in ["Traceback", "File \"", "  at "]):
        return (
            "An internal error occurred while reviewing this unit. "
            "Please check the logs for more details."
        )

    # Check for JSON/technical error structures
    if error_message.startswith("{") or error_message.startswith("["):
        return (
            "An error occurred while reviewing this unit. "
            "Please check the logs for more details."
        )

    # If message is very long, truncate it
    if len(error_message) > 200:
        return (
            "An error occurred while reviewing this unit. "
            "Please check the logs for more details."
        )

    # Remove any potential API keys or tokens
    sanitized = re.sub(r'sk-[a-zA-Z0-9]{20,}', '[API_KEY_REDACTED]', error_message)
    sanitized = re.sub(r'api[_-]?key["\s:=]+["\']?[a-zA-Z0-9-_]+["\']?', '[API_KEY_REDACTED]', sanitized, flags=re.IGNORECASE)

    return sanitized


def create_user_friendly_error(error: Exception) -> str:
    """
    Create a user-friendly error message from an exception.
    The full error is logged; only the sanitized text is returned.
    """
    error_str = str(error)
    error_type = type(error).__name__

    logger.error(f"Error ({error_type}): {error_str}")

    return sanitize_error_for_display(error_str)
