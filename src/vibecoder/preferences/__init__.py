"""UI layout preferences."""

from vibecoder.preferences.model import LayoutPreferencesModel
from vibecoder.preferences.schema import AppTheme, PanelLayout, WindowSize

__all__ = ["AppTheme", "LayoutPreferencesModel", "PanelLayout", "WindowSize"]
