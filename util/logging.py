"""
Structured logging for retrieval, ingestion and response normalization.
"""

import logging
from typing import Any, Dict, List, Optional


def truncate_text(value: str, limit: int = 50) -> str:
    """Shorten long strings for log output."""
    if value is None:
        return ""
    return value[:limit] + "..." if len(value) > limit else value


class StructuredLogger:
    """Structured logger for embedding, vector, ingestion and chat operations."""

    def __init__(self, name: str = "charforge"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "error"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_embedding_attempt(self, model: str, status: str = "success", error: str = None):
        """Log one candidate-model embedding attempt."""
        details = {"model": model}
        if error is not None:
            details["error"] = truncate_text(error, 100)

        self.log_operation("embedding.attempt", status, details)

    def log_vector_query(self, query: str, top_k: int, result_count: int, details: Dict[str, Any] = None):
        """Log a similarity query against the vector store."""
        log_details = {
            "query": truncate_text(query),
            "top_k": top_k,
            "result_count": result_count
        }
        if details:
            log_details.update(details)

        self.log_operation("vector.query", "success", log_details)

    def log_ingestion_progress(self, version: str, source: str, processed: int, total: int):
        """Log ingestion progress for one source file."""
        log_details = {
            "version": version,
            "source": source,
            "processed": processed,
            "total": total
        }
        self.log_operation("ingestion.progress", "running", log_details)

    def log_ingestion_replacement(self, record_id: str, old_version: str, new_version: str):
        """Log an overlay record superseding an earlier generation."""
        log_details = {
            "record_id": record_id,
            "replaced_version": old_version,
            "version": new_version
        }
        self.log_operation("ingestion.replaced", "success", log_details)

    def log_extraction(self, path: str, reason: str = None, response_type: str = None):
        """Log which normalization path produced a turn response."""
        log_details = {"path": path}
        if response_type:
            log_details["type"] = response_type
        if reason:
            log_details["reason"] = truncate_text(reason, 100)

        self.log_operation("normalizer.extract", path, log_details)

    def log_chat_turn(self, session_id: str, model: str, message_count: int,
                      status: str = "success", details: Dict[str, Any] = None):
        """Log a chat completion call."""
        log_details = {
            "session_id": session_id,
            "model": model,
            "message_count": message_count
        }
        if details:
            log_details.update(details)

        self.log_operation("chat.turn", status, log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)


# Global logger instance
logger = StructuredLogger()


def log_embedding_attempt(model: str, status: str = "success", error: str = None):
    """Log one candidate-model embedding attempt."""
    logger.log_embedding_attempt(model, status, error)


def log_vector_query(query: str, top_k: int, result_count: int, details: Dict[str, Any] = None):
    """Log a similarity query against the vector store."""
    logger.log_vector_query(query, top_k, result_count, details)


def log_extraction(path: str, reason: str = None, response_type: str = None):
    """Log which normalization path produced a turn response."""
    logger.log_extraction(path, reason, response_type)


def summarize_errors(errors: List[Any], limit: int = 3) -> Optional[str]:
    """Compact a list of validation errors into one log-friendly line."""
    if not errors:
        return None
    parts = []
    for error in errors[:limit]:
        if isinstance(error, dict):
            loc = ".".join(str(p) for p in error.get("loc", ()))
            parts.append(f"{loc}: {error.get('msg', '')}" if loc else str(error.get("msg", "")))
        else:
            parts.append(truncate_text(str(error), 100))
    if len(errors) > limit:
        parts.append(f"(+{len(errors) - limit} more)")
    return "; ".join(parts)
