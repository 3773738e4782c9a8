"""Settings management backed by QSettings."""

from .settings_manager import SettingsManager

__all__ = ['SettingsManager']
