"""Settings, security primitives and error handlers."""
