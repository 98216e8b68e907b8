"""
Engine error taxonomy.

Every failure the engine surfaces to a caller is an EngineError subclass
carrying a machine-readable kind and the HTTP status the API maps it to.
"""

from typing import Any, Dict, Optional


class EngineError(Exception):
    """Base class for errors surfaced by the execution engine."""

    kind = "engine_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "kind": self.kind, "details": self.details}


class ConfigNotFoundError(EngineError):
    """Unknown tool identifier."""

    kind = "config_not_found"
    status_code = 404


class ConfigInvalidError(EngineError):
    """A stored tool record exists but cannot be used."""

    kind = "config_invalid"
    status_code = 500


class ValidationError(EngineError):
    """Malformed or missing request fields."""

    kind = "validation_error"
    status_code = 400


class GenerationFormatError(EngineError):
    """Structured output still invalid after the single repair attempt.

    Only a truncated excerpt of the offending text is kept, never the
    full generation.
    """

    kind = "generation_format_error"
    status_code = 500

    def __init__(self, message: str, excerpt: str = ""):
        super().__init__(message, details=excerpt)
        self.excerpt = excerpt


class UpstreamServiceError(EngineError):
    """The generation service call itself failed."""

    kind = "upstream_service_error"
    status_code = 500
