"""Core infrastructure: settings, logging, exceptions, retry and middleware."""
