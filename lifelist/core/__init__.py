"""Core infrastructure for lifelist: configuration, logging, time and errors."""
