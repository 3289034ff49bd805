from .common import elapsed_ms, generate_request_id, ms_to_s
from .env import ConfigError, coerce_value, load_prefixed

__all__ = ["generate_request_id", "ms_to_s", "elapsed_ms", "ConfigError", "coerce_value", "load_prefixed"]
