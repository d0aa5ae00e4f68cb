"""Layout preference value types."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import Field

from vibecoder.records import Record

PREFERENCES_VERSION = 1


class AppTheme(Enum):
    DARK = "dark"
    LIGHT = "light"
    SYSTEM = "system"


@dataclass(frozen=True)
class WindowSize:
    width: float
    height: float

    def to_dict(self) -> dict[str, float]:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class PanelLayout:
    """Sidebar widths and collapse flags.

    Widths must stay within [min_width, max_width].
    """

    left_width: float = 250.0
    right_width: float = 300.0
    left_collapsed: bool = False
    right_collapsed: bool = False
    min_width: float = 200.0
    max_width: float = 500.0

    def copy_with(self, **changes: Any) -> PanelLayout:
        return dataclasses.replace(self, **changes)

    def validate(self) -> bool:
        return (
            self.min_width <= self.left_width <= self.max_width
            and self.min_width <= self.right_width <= self.max_width
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "leftWidth": self.left_width,
            "rightWidth": self.right_width,
            "leftCollapsed": self.left_collapsed,
            "rightCollapsed": self.right_collapsed,
            "minWidth": self.min_width,
            "maxWidth": self.max_width,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PanelLayout:
        """Parse a layout, falling back to the default if it is malformed or invalid."""
        default = cls()

        def number(key: str, fallback: float) -> float:
            value = data.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return fallback
            return float(value)

        def flag(key: str) -> bool:
            value = data.get(key)
            return value if isinstance(value, bool) else False

        layout = cls(
            left_width=number("leftWidth", default.left_width),
            right_width=number("rightWidth", default.right_width),
            left_collapsed=flag("leftCollapsed"),
            right_collapsed=flag("rightCollapsed"),
            min_width=number("minWidth", default.min_width),
            max_width=number("maxWidth", default.max_width),
        )
        return layout if layout.validate() else default


class PreferencesRecord(Record):
    current_theme: str | None = Field(default=None, alias="currentTheme")
    panel_layout: dict[str, Any] | None = Field(default=None, alias="panelLayout")
    selected_agent_id: str | None = Field(default=None, alias="selectedAgentId")
    window_size: dict[str, Any] | None = Field(default=None, alias="windowSize")
    version: int = PREFERENCES_VERSION
