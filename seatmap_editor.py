#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations
import sys, os, logging
from pathlib import Path
from PySide6.QtCore import Qt, QSettings, QSizeF
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QToolBar, QStatusBar, QFileDialog, QMessageBox,
    QInputDialog, QMenu, QStyle, QToolButton, QWidgetAction
)
from seatmap import (SceneContext, SeatmapScene, SeatmapView, JsonLayoutBackend,
                     LayoutStorageError, PALETTE)

logger = logging.getLogger("seatmap_editor")

DEFAULT_SCENE_ID = "default"


class MainWindow(QMainWindow):
    def __init__(self, directory: str, scene_id: str = DEFAULT_SCENE_ID):
        super().__init__()
        self.resize(1280, 860)
        self.settings = QSettings("seatmap", "seatmap-editor")
        geometry = self.settings.value("window/geometry")
        if geometry is not None:
            self.restoreGeometry(geometry)

        self.directory = directory
        self.scene_id = scene_id
        self.ctx = SceneContext(JsonLayoutBackend(directory))

        # 1) Scene / view
        self.scene = SeatmapScene(self.ctx)
        self.view = SeatmapView(self.scene)
        self.setCentralWidget(self.view)

        # 2) Toolbar / status
        self._build_toolbar()
        self.setStatusBar(QStatusBar(self))
        self.view.scaleChanged.connect(lambda s: self._update_status())
        self.view.layoutChanged.connect(self._update_status)

        self._load(scene_id)

    def _build_toolbar(self):
        tb = QToolBar("Toolbar", self)
        tb.setMovable(False)
        tb.setIconSize(QSizeF(18, 18).toSize())
        tb.setToolButtonStyle(Qt.ToolButtonTextBesideIcon)
        self.addToolBar(Qt.TopToolBarArea, tb)
        style = self.style()

        self.act_open = QAction(style.standardIcon(QStyle.SP_DirOpenIcon), "Open layout…", self)
        self.act_open.setShortcut(QKeySequence("Ctrl+O"))
        self.act_open.triggered.connect(self._open_dialog)

        self.act_save = QAction(style.standardIcon(QStyle.SP_DialogSaveButton), "Save", self)
        self.act_save.setShortcut(QKeySequence("Ctrl+S"))
        self.act_save.triggered.connect(self._save)

        self.act_discard = QAction(style.standardIcon(QStyle.SP_DialogResetButton), "Discard changes", self)
        self.act_discard.triggered.connect(self._discard)

        self.act_background = QAction(style.standardIcon(QStyle.SP_FileDialogContentsView), "Background…", self)
        self.act_background.triggered.connect(self._pick_background)

        self.act_reset_view = QAction(style.standardIcon(QStyle.SP_DesktopIcon), "Reset view", self)
        self.act_reset_view.setShortcut(QKeySequence("Ctrl+0"))
        self.act_reset_view.triggered.connect(self._reset_view)

        tb.addAction(self.act_open)
        tb.addAction(self.act_save)
        tb.addAction(self.act_discard)
        tb.addSeparator()

        # ----- add from templates -----
        btn = QToolButton(self)
        btn.setText("Add")
        btn.setIcon(style.standardIcon(QStyle.SP_FileIcon))
        btn.setPopupMode(QToolButton.InstantPopup)
        btn.setToolButtonStyle(Qt.ToolButtonTextBesideIcon)
        m = QMenu(btn)
        for template in PALETTE:
            act = m.addAction(template.label)
            act.triggered.connect(lambda _=False, t=template: self._add(t))
        btn.setMenu(m)
        wa = QWidgetAction(self); wa.setDefaultWidget(btn)
        tb.addAction(wa)

        tb.addSeparator()
        tb.addAction(self.act_background)
        tb.addAction(self.act_reset_view)

    # ---- actions ----
    def _add(self, template):
        self.ctx.add_element(template)
        self.scene.refresh()
        self._update_status()

    def _open_dialog(self):
        path, _ = QFileDialog.getOpenFileName(self, "Open layout", self.directory, "Layout (*.json)")
        if not path:
            return
        p = Path(path)
        self.directory = str(p.parent)
        self.ctx.backend = JsonLayoutBackend(self.directory)
        self._load(p.stem)

    def _load(self, scene_id: str):
        try:
            self.ctx.load(scene_id)
        except LayoutStorageError as e:
            QMessageBox.critical(self, "Open failed", str(e))
            return
        self.scene_id = scene_id
        self.scene.refresh()
        self.settings.setValue("layout/directory", self.directory)
        self.settings.setValue("layout/scene", scene_id)
        self._status(f"Opened: {scene_id}")
        self._update_title()

    def _save(self):
        try:
            self.ctx.save(self.scene_id)
        except LayoutStorageError as e:
            QMessageBox.critical(self, "Save failed", str(e))
            return
        self.scene.refresh()
        self._status(f"Saved: {self.scene_id}")

    def _discard(self):
        ans = QMessageBox.question(self, "Discard changes", "Reload the last saved layout?")
        if ans != QMessageBox.Yes:
            return
        try:
            self.ctx.discard_changes(self.scene_id)
        except LayoutStorageError as e:
            QMessageBox.critical(self, "Reload failed", str(e))
            return
        self.scene.refresh()
        self._update_status()

    def _pick_background(self):
        path, _ = QFileDialog.getOpenFileName(self, "Background image", self.directory,
                                              "Images (*.png *.jpg *.jpeg *.bmp)")
        if not path:
            ref, ok = QInputDialog.getText(self, "Background", "Image reference (empty to clear):")
            if not ok:
                return
            path = ref.strip()
        self.ctx.set_background(path)
        self.scene.refresh()

    def _reset_view(self):
        self.ctx.viewport.reset()
        self.scene.apply_viewport()
        self._update_status()

    # ---- status ----
    def _status(self, text: str):
        self.statusBar().showMessage(text, 3000)

    def _update_title(self):
        self.setWindowTitle(f"Seatmap editor - {self.scene_id}")

    def _update_status(self):
        tables, seats = self.ctx.stats()
        self.statusBar().showMessage(
            f"Tables: {tables} | Seats: {seats} | Zoom: {int(self.ctx.viewport.scale * 100)}%"
        )

    def closeEvent(self, event):
        self.settings.setValue("window/geometry", self.saveGeometry())
        super().closeEvent(event)


def main(argv=None):
    argv = list(sys.argv if argv is None else argv)
    logging.basicConfig(
        level=os.environ.get("SEATMAP_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(argv)
    settings = QSettings("seatmap", "seatmap-editor")
    args = argv[1:]
    directory = args[0] if args else settings.value("layout/directory", os.getcwd())
    scene_id = args[1] if len(args) > 1 else settings.value("layout/scene", DEFAULT_SCENE_ID)
    logger.info("editing %s in %s", scene_id, directory)
    win = MainWindow(str(directory), str(scene_id))
    win.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
