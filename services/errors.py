# services/errors.py

class RelayError(Exception):
    """Base class for failures while relaying a request to the upstream LLM."""

class ValidationError(RelayError):
    """Missing or out-of-range request field. Maps to HTTP 400."""

class ConfigurationError(RelayError):
    """Upstream credential is not configured. Operator-fixable."""

class UpstreamError(RelayError):
    """Timeout, transport failure or non-success reply from the LLM API."""

class ParseError(RelayError):
    """The LLM reply contained no decodable JSON."""
