"""Main window for PanelReader.

Provides:
- Document opening (PDF, image or folder of images)
- Panel-by-panel navigation with toolbar buttons and keyboard shortcuts
- The animated focused-panel canvas
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Awaitable, Callable, Optional

from PySide6.QtCore import QPointF, Qt, QSize
from PySide6.QtGui import QAction, QKeySequence, QPainter
from PySide6.QtWidgets import (
    QFileDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QStatusBar,
    QToolBar,
    QWidget,
)

from .config import AppConfig
from .errors import RasterizationFailure
from .presenter import FrameLoop, PanelPresenter
from .rasterizer import open_document
from .reader import PanelReader

log = logging.getLogger("Reader")


class ReaderCanvas(QWidget):
    """Blits the presenter surface and reports viewport resizes."""

    def __init__(self, presenter: PanelPresenter, parent=None):
        super().__init__(parent)
        self._presenter = presenter
        self.setMinimumSize(320, 240)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

    def set_presenter(self, presenter: PanelPresenter) -> None:
        self._presenter = presenter
        presenter.resize(self.width(), self.height())
        self.update()

    def paintEvent(self, event):
        p = QPainter(self)
        p.drawImage(QPointF(0, 0), self._presenter.context.surface)
        p.end()

    def resizeEvent(self, event):
        size = event.size()
        self._presenter.resize(size.width(), size.height())
        super().resizeEvent(event)


class ReaderWindow(QMainWindow):
    """Main application window: one panel at a time."""

    def __init__(self, config: Optional[AppConfig] = None):
        super().__init__()
        self.config = config or AppConfig()
        self.setWindowTitle("PanelReader")
        self.resize(*self.config.viewport_size)

        self.reader: Optional[PanelReader] = None
        self._presenter = PanelPresenter(self.config.presenter, self.config.viewport_size)
        self.canvas = ReaderCanvas(self._presenter, self)
        self.setCentralWidget(self.canvas)

        self._frames = FrameLoop(self._presenter, self.config.presenter.frame_interval_ms, self)
        self._frames.frame.connect(self.canvas.update)
        self._pending: Optional[asyncio.Future] = None

        self._status = QLabel("No document")
        self.setStatusBar(QStatusBar(self))
        self.statusBar().addPermanentWidget(self._status)
        self._build_toolbar()

    # ========== UI Building ==========

    def _build_toolbar(self) -> None:
        tb = QToolBar("Main")
        tb.setMovable(False)
        tb.setIconSize(QSize(16, 16))
        self.addToolBar(Qt.ToolBarArea.TopToolBarArea, tb)

        self._add_action(tb, "Open", self.action_open,
                         [QKeySequence(QKeySequence.StandardKey.Open)])
        tb.addSeparator()
        self._add_action(tb, "Previous", self.panel_prev,
                         [QKeySequence("Left"), QKeySequence("PgUp")])
        self._add_action(tb, "Next", self.panel_next,
                         [QKeySequence("Right"), QKeySequence("PgDown"),
                          QKeySequence("Space")])

    def _add_action(self, tb: QToolBar, text: str, slot, shortcuts) -> QAction:
        act = QAction(text, self)
        act.setShortcuts(shortcuts)
        act.triggered.connect(slot)
        tb.addAction(act)
        return act

    # ========== Document ==========

    def action_open(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Open comic", os.path.expanduser("~"),
            "Comics (*.pdf *.png *.jpg *.jpeg *.webp *.bmp);;All files (*)",
        )
        if path:
            self._spawn(lambda: self.open_path(path))

    async def open_path(self, path: str, page_index: int = 0) -> bool:
        """Open a document and show its first panel (or `page_index`)."""
        try:
            rasterizer = open_document(path, self.config)
        except RasterizationFailure as e:
            self._show_error(str(e))
            return False

        if self.reader is not None:
            self.reader.close()
        self.reader = PanelReader(rasterizer, self.config)
        self._presenter = self.reader.presenter
        self.canvas.set_presenter(self._presenter)
        self._frames.deleteLater()
        self._frames = FrameLoop(self._presenter, self.config.presenter.frame_interval_ms, self)
        self._frames.frame.connect(self.canvas.update)
        self.setWindowTitle(f"PanelReader - {os.path.basename(path)}")

        try:
            await self.reader.open()
        except RasterizationFailure as e:
            self._show_error(str(e))
            return False

        moved = True
        if page_index:
            try:
                await self.reader.go_to_page(page_index)
            except RasterizationFailure as e:
                # The document stays open on its first page
                self._show_error(str(e))
                moved = False
        self._after_move()
        return moved

    # ========== Navigation ==========

    def panel_next(self) -> None:
        if self.reader is not None:
            self._spawn(self.reader.next)

    def panel_prev(self) -> None:
        if self.reader is not None:
            self._spawn(self.reader.previous)

    def _spawn(self, factory: Callable[[], Awaitable]) -> None:
        if self._pending is not None and not self._pending.done():
            return
        self._pending = asyncio.ensure_future(self._navigate(factory))

    async def _navigate(self, factory: Callable[[], Awaitable]) -> None:
        try:
            moved = await factory()
        except RasterizationFailure as e:
            self._show_error(str(e))
            return
        if moved:
            self._after_move()

    def _after_move(self) -> None:
        task = self._presenter.task
        if task is not None:
            self._frames.start(task)
        if self.reader is not None:
            self._status.setText(self.reader.status_text())
        self.canvas.update()

    def _show_error(self, message: str) -> None:
        log.error(message)
        QMessageBox.critical(self, "PanelReader", message)

    def closeEvent(self, event):
        if self.reader is not None:
            self.reader.close()
        else:
            self._presenter.cancel()
        super().closeEvent(event)
