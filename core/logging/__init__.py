"""Logging module with rotating file output and console suppression."""

from .logger import get_logger, get_log_dir, is_verbose_logging, setup_logging

__all__ = ['get_logger', 'get_log_dir', 'is_verbose_logging', 'setup_logging']
