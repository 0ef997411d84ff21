"""
JSON schemas for configuration file validation.
"""

CLIENT_SCHEMA = {
    "type": "object",
    "properties": {
        "api_key": {"type": ["string", "null"]},
        "api_key_env": {"type": "string", "minLength": 1},
        "base_url": {"type": "string", "pattern": "^https?://"},
        "model": {"type": "string", "minLength": 1},
        "timeout": {"type": "number", "exclusiveMinimum": 0},
        "temperature": {"type": "number", "minimum": 0.0, "maximum": 2.0},
        "max_tokens": {"type": "integer", "minimum": 1},
    },
    "additionalProperties": False,
}

LIMITS_SCHEMA = {
    "type": "object",
    "properties": {
        "max_iterations": {"type": "integer", "minimum": 1},
        "max_parse_retries": {"type": "integer", "minimum": 0},
        "max_transport_retries": {"type": "integer", "minimum": 0},
        "max_unknown_tool_errors": {"type": "integer", "minimum": 0},
        "backoff": {"type": "number", "minimum": 0.0},
        "max_backoff": {"type": "number", "minimum": 0.0},
    },
    "additionalProperties": False,
}

LOGGING_SCHEMA = {
    "type": "object",
    "properties": {
        "level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
        "format": {"type": "string", "enum": ["text", "json"]},
        "log_file": {"type": ["string", "null"]},
        "log_prompts": {"type": "boolean"},
        "log_completions": {"type": "boolean"},
        "log_tool_calls": {"type": "boolean"},
        "redact_api_keys": {"type": "boolean"},
    },
    "additionalProperties": False,
}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "client": CLIENT_SCHEMA,
        "limits": LIMITS_SCHEMA,
        "logging": LOGGING_SCHEMA,
    },
    "additionalProperties": False,
}


__all__ = ["CONFIG_SCHEMA", "CLIENT_SCHEMA", "LIMITS_SCHEMA", "LOGGING_SCHEMA"]
