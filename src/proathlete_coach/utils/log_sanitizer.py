"""Log sanitization filter to keep API credentials out of logs and errors.

Errors coming back from the model SDK can echo request headers or parts of
the key. Everything that ends up in a log record or in a user-facing error
message passes through the patterns below first.

Usage:
    from proathlete_coach.utils.log_sanitizer import install_log_sanitizer

    # Apply to all loggers at application startup
    install_log_sanitizer()
"""

import logging
import re
from typing import Any, Optional


REDACTED = "[REDACTED]"


class LogSanitizationFilter(logging.Filter):
    """Logging filter that redacts credentials from log messages."""

    # Order matters - more specific patterns come before general ones
    PATTERNS: list[tuple[re.Pattern, str]] = [
        # OpenAI API keys (sk-..., sk-proj-...)
        (re.compile(r'\bsk-[a-zA-Z0-9_-]{20,}'), '[REDACTED_OPENAI_KEY]'),

        # Google API keys
        (re.compile(r'\bAIza[0-9A-Za-z_-]{30,}'), '[REDACTED_GOOGLE_KEY]'),

        # Bearer tokens in Authorization headers
        (re.compile(r'Bearer\s+[a-zA-Z0-9_\-\.]+', re.IGNORECASE), 'Bearer [REDACTED_TOKEN]'),

        # Authorization header values (generic)
        (re.compile(r'(Authorization["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),

        # Key fields in query strings, JSON or repr output
        (re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)[^"\'&\s,]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(credential["\']?\s*[:=]\s*["\']?)[^"\'&\s,]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(token["\']?\s*[:=]\s*["\']?)[^"\'&\s,]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(secret["\']?\s*[:=]\s*["\']?)[^"\'&\s,]+', re.IGNORECASE), r'\1[REDACTED]'),

        # Generic long hex strings that might be tokens (32+ chars)
        (re.compile(r'\b[a-fA-F0-9]{32,}\b'), '[REDACTED_HEX_TOKEN]'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Sanitize the log record in place and let it through."""
        if record.msg:
            record.msg = self._sanitize(str(record.msg))

        if record.args:
            record.args = self._sanitize_args(record.args)

        return True

    def _sanitize(self, text: str) -> str:
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def _sanitize_args(self, args: Any) -> Any:
        """Recursively sanitize log arguments."""
        if isinstance(args, str):
            return self._sanitize(args)
        elif isinstance(args, tuple):
            return tuple(self._sanitize_args(arg) for arg in args)
        elif isinstance(args, list):
            return [self._sanitize_args(arg) for arg in args]
        elif isinstance(args, dict):
            return {k: self._sanitize_args(v) for k, v in args.items()}
        else:
            str_val = str(args)
            sanitized = self._sanitize(str_val)
            # Keep non-string args untouched unless something was redacted
            return sanitized if sanitized != str_val else args


def install_log_sanitizer(logger_name: str | None = None) -> None:
    """Install the sanitization filter.

    Args:
        logger_name: If provided, install only on the named logger.
                    If None, install on the root logger and its handlers.
    """
    sanitizer = LogSanitizationFilter()

    if logger_name:
        logging.getLogger(logger_name).addFilter(sanitizer)
    else:
        root_logger = logging.getLogger()
        root_logger.addFilter(sanitizer)

        # Records from child loggers skip root's own filters, handlers don't
        for handler in root_logger.handlers:
            handler.addFilter(sanitizer)


def sanitize_string(text: str, secret: Optional[str] = None) -> str:
    """Sanitize a string outside the logging system.

    Used for error messages shown to the athlete.

    Args:
        text: The text to sanitize.
        secret: A known credential to strip verbatim, whatever its format.

    Returns:
        The text with credentials redacted.
    """
    if secret and secret.strip():
        text = text.replace(secret, REDACTED)
    return LogSanitizationFilter()._sanitize(text)
