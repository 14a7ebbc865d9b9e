"""
Structured logging for memory store operations.
Memory content and key material never reach the log; identifiers and sizes only.
"""

import logging
import os
from typing import Any, Dict, List

# Fields whose values are replaced before anything is logged
SENSITIVE_FIELDS = ['content', 'text', 'plaintext', 'query', 'key', 'secret']


class StructuredLogger:
    """Structured logger for key, embedding and memory operations."""

    def __init__(self, name: str = "parasocial_memory"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {sanitize_payload(details)}"

        self.logger.log(level, message)

    def log_memory_operation(self, operation: str, memory_id: str = None, details: Dict[str, Any] = None, status: str = "success"):
        """Log a memory store operation (save, delete, retrieve, list)."""
        log_details = {}
        if memory_id is not None:
            log_details["memory_id"] = memory_id
        if details:
            log_details.update(details)

        level = logging.INFO if status == "success" else logging.WARNING
        self.log_operation(f"memory.{operation}", status, log_details, level)

    def log_embedding_event(self, event: str, request_id: str = None, details: Dict[str, Any] = None, status: str = "success"):
        """Log an embedding worker event."""
        log_details = {}
        if request_id is not None:
            log_details["request_id"] = request_id
        if details:
            log_details.update(details)

        level = logging.DEBUG if status == "success" else logging.WARNING
        self.log_operation(f"embedding.{event}", status, log_details, level)

    def log_key_event(self, event: str, slot: str, status: str = "success", details: Dict[str, Any] = None):
        """Log key provisioning. Never pass key bytes here."""
        log_details = {"slot": slot}
        if details:
            log_details.update(details)

        level = logging.INFO if status == "success" else logging.ERROR
        self.log_operation(f"key.{event}", status, log_details, level)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    def debug(self, message: str) -> None:
        self.logger.debug(message)


def sanitize_payload(payload: Any, sensitive_fields: List[str] = None) -> Any:
    """Redact sensitive fields and truncate long strings before logging."""
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if k in sensitive_fields:
                sanitized[k] = "[REDACTED]"
            else:
                sanitized[k] = sanitize_payload(v, sensitive_fields)
        return sanitized
    elif isinstance(payload, str):
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, (list, tuple)):
        return [sanitize_payload(item, sensitive_fields) for item in payload]
    else:
        return payload


# Global logger instance
logger = StructuredLogger()
