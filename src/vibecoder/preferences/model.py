"""Persisted UI layout preferences.

Preferences are not critical data: persistence is best-effort. Every
mutation notifies listeners and schedules a background save; save and
load failures are logged and the in-memory state is kept.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from vibecoder.config import get_config
from vibecoder.errors import ValidationError
from vibecoder.logging import get_logger
from vibecoder.observable import ChangeNotifier
from vibecoder.preferences.schema import (
    PREFERENCES_VERSION,
    AppTheme,
    PanelLayout,
    PreferencesRecord,
    WindowSize,
)
from vibecoder.records import decode
from vibecoder.storage import backup_path, read_json, write_json_with_backup

log = get_logger("preferences")


class LayoutPreferencesModel(ChangeNotifier):
    """Theme, sidebar layout, selected agent, and window size."""

    def __init__(
        self,
        path: Path | str | None = None,
        *,
        theme: AppTheme = AppTheme.DARK,
        panel_layout: PanelLayout | None = None,
        selected_agent_id: str | None = None,
        window_size: WindowSize | None = None,
    ) -> None:
        super().__init__()
        self._path = Path(path) if path is not None else None
        self._theme = theme
        self._panel_layout = panel_layout or PanelLayout()
        self._selected_agent_id = selected_agent_id
        self._window_size = window_size
        self._pending: set[asyncio.Task[None]] = set()
        self._save_lock: asyncio.Lock | None = None

    @property
    def path(self) -> Path:
        if self._path is None:
            self._path = get_config().storage.preferences_path
        return self._path

    # Accessors

    @property
    def theme(self) -> AppTheme:
        return self._theme

    @property
    def panel_layout(self) -> PanelLayout:
        return self._panel_layout

    @property
    def left_sidebar_collapsed(self) -> bool:
        return self._panel_layout.left_collapsed

    @property
    def right_sidebar_collapsed(self) -> bool:
        return self._panel_layout.right_collapsed

    @property
    def left_sidebar_width(self) -> float:
        return self._panel_layout.left_width

    @property
    def right_sidebar_width(self) -> float:
        return self._panel_layout.right_width

    @property
    def selected_agent_id(self) -> str | None:
        return self._selected_agent_id

    @property
    def window_size(self) -> WindowSize | None:
        return self._window_size

    # Mutators

    def _changed(self) -> None:
        self.notify_listeners()
        self._schedule_save()

    def set_theme(self, theme: AppTheme) -> None:
        if theme is self._theme:
            return
        self._theme = theme
        self._changed()

    def toggle_left_sidebar(self) -> None:
        self._panel_layout = self._panel_layout.copy_with(
            left_collapsed=not self._panel_layout.left_collapsed
        )
        self._changed()

    def toggle_right_sidebar(self) -> None:
        self._panel_layout = self._panel_layout.copy_with(
            right_collapsed=not self._panel_layout.right_collapsed
        )
        self._changed()

    def set_left_sidebar_collapsed(self, collapsed: bool) -> None:
        if self._panel_layout.left_collapsed == collapsed:
            return
        self._panel_layout = self._panel_layout.copy_with(left_collapsed=collapsed)
        self._changed()

    def set_right_sidebar_collapsed(self, collapsed: bool) -> None:
        if self._panel_layout.right_collapsed == collapsed:
            return
        self._panel_layout = self._panel_layout.copy_with(right_collapsed=collapsed)
        self._changed()

    def update_panel_widths(
        self, left_width: float | None = None, right_width: float | None = None
    ) -> bool:
        """Apply new widths if they stay within bounds.

        Returns:
            True if the layout changed, False if the widths were rejected.
        """
        changes: dict[str, float] = {}
        if left_width is not None:
            changes["left_width"] = left_width
        if right_width is not None:
            changes["right_width"] = right_width
        layout = self._panel_layout.copy_with(**changes)
        if not layout.validate():
            log.debug("Rejected panel widths %s", changes)
            return False
        self._panel_layout = layout
        self._changed()
        return True

    def reset_panel_layout(self) -> None:
        self._panel_layout = PanelLayout()
        self._changed()

    def set_selected_agent(self, agent_id: str | None) -> None:
        if agent_id == self._selected_agent_id:
            return
        self._selected_agent_id = agent_id
        self._changed()

    def clear_selected_agent(self) -> None:
        self.set_selected_agent(None)

    def update_window_size(self, size: WindowSize | None) -> None:
        if size == self._window_size:
            return
        self._window_size = size
        self._changed()

    def validate(self) -> bool:
        return self._panel_layout.validate()

    def reset_to_defaults(self) -> None:
        self._theme = AppTheme.DARK
        self._panel_layout = PanelLayout()
        self._selected_agent_id = None
        self._window_size = None
        self._changed()

    # Persistence

    def _schedule_save(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: write inline
            self._write_best_effort()
            return
        task = loop.create_task(self.save_preferences())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _write_best_effort(self, data: dict[str, Any] | None = None) -> bool:
        try:
            write_json_with_backup(self.path, data if data is not None else self.to_dict())
        except OSError as e:
            log.warning("Failed to save layout preferences to %s: %s", self.path, e)
            return False
        return True

    async def save_preferences(self) -> bool:
        """Write preferences with a backup of the previous file.

        Returns:
            True on success. Failures are logged, never raised.
        """
        if self._save_lock is None:
            self._save_lock = asyncio.Lock()
        async with self._save_lock:
            return await asyncio.to_thread(self._write_best_effort, self.to_dict())

    async def flush(self) -> None:
        """Wait for every scheduled background save."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def load_preferences(self) -> bool:
        """Load preferences from disk, falling back to the backup file.

        When the primary file is unreadable and the backup is good, the
        backup is applied and written back as the primary file.

        Returns:
            True if preferences were applied from either file.
        """
        path = self.path
        if not path.exists():
            return False
        try:
            loaded = await self._read(path)
        except (OSError, ValueError, ValidationError) as e:
            log.warning("Layout preferences at %s unreadable (%s), trying backup", path, e)
            return await self._load_from_backup()
        if not loaded.validate():
            return False
        self._apply(loaded)
        return True

    async def _load_from_backup(self) -> bool:
        backup = backup_path(self.path)
        if not backup.exists():
            return False
        try:
            loaded = await self._read(backup)
        except (OSError, ValueError, ValidationError) as e:
            log.warning("Failed to load backup preferences from %s: %s", backup, e)
            return False
        if not loaded.validate():
            return False
        self._apply(loaded)
        log.info("Restored layout preferences from %s", backup)
        await self.save_preferences()
        return True

    async def _read(self, path: Path) -> LayoutPreferencesModel:
        data = await asyncio.to_thread(read_json, path)
        return LayoutPreferencesModel.from_dict(data, path=self._path)

    def _apply(self, other: LayoutPreferencesModel) -> None:
        self._theme = other._theme
        self._panel_layout = other._panel_layout
        self._selected_agent_id = other._selected_agent_id
        self._window_size = other._window_size
        self.notify_listeners()

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentTheme": self._theme.value,
            "panelLayout": self._panel_layout.to_dict(),
            "selectedAgentId": self._selected_agent_id,
            "windowSize": self._window_size.to_dict() if self._window_size else None,
            "version": PREFERENCES_VERSION,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: Path | str | None = None) -> LayoutPreferencesModel:
        """Parse preferences. Unknown or invalid values fall back to defaults.

        Raises:
            ValidationError: If the data is not a preferences object at all.
        """
        record = decode(PreferencesRecord, data, "layout preferences")

        try:
            theme = AppTheme(record.current_theme) if record.current_theme else AppTheme.DARK
        except ValueError:
            theme = AppTheme.DARK

        layout = PanelLayout.from_dict(record.panel_layout) if record.panel_layout else PanelLayout()

        window_size = None
        if record.window_size:
            width = record.window_size.get("width")
            height = record.window_size.get("height")
            if (
                isinstance(width, (int, float))
                and isinstance(height, (int, float))
                and width > 0
                and height > 0
            ):
                window_size = WindowSize(float(width), float(height))

        return cls(
            path,
            theme=theme,
            panel_layout=layout,
            selected_agent_id=record.selected_agent_id,
            window_size=window_size,
        )

    def debug_info(self) -> str:
        layout = self._panel_layout
        left = "Collapsed" if layout.left_collapsed else "Expanded"
        right = "Collapsed" if layout.right_collapsed else "Expanded"
        size = (
            f"{self._window_size.width:g}x{self._window_size.height:g}"
            if self._window_size
            else "Unknown"
        )
        return "\n".join(
            [
                "LayoutPreferencesModel Debug Info:",
                f"- Theme: {self._theme.value}",
                f"- Left Sidebar: {left} ({layout.left_width:g}px)",
                f"- Right Sidebar: {right} ({layout.right_width:g}px)",
                f"- Selected Agent: {self._selected_agent_id or 'None'}",
                f"- Window Size: {size}",
                f"- Valid State: {self.validate()}",
                f"- Preferences File: {self._path or 'Not set'}",
            ]
        )

    def __repr__(self) -> str:
        return (
            f"LayoutPreferencesModel(theme={self._theme.value!r}, "
            f"left_collapsed={self._panel_layout.left_collapsed}, "
            f"right_collapsed={self._panel_layout.right_collapsed}, "
            f"selected_agent={self._selected_agent_id!r})"
        )
