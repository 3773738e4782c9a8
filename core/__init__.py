"""Core infrastructure for the news consolidator: logging, errors, threading, settings."""
