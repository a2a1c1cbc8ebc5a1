"""
PanelKit - Touch Control Panel
Main Application Module

Operator panel with numeric setpoint fields edited through the virtual
numpad, plus the directory that holds the embedded databases.
"""

import sys
from pathlib import Path
from typing import Optional

from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QFormLayout,
    QGroupBox, QLabel, QDoubleSpinBox, QSpinBox, QStatusBar, QMessageBox
)
from PySide6.QtCore import QSettings

from logger import get_logger, LoggableMixin, LogCategory
from numpad import VirtualNumpadManager, auto_install_numpad
from settings import PanelSettings, load_settings


APP_NAME = "PanelKit"
APP_VERSION = "1.0.0"


class PanelWindow(QMainWindow, LoggableMixin):
    """Main panel window with numpad-enabled setpoint fields."""

    log_category = LogCategory.SYSTEM

    def __init__(self, settings: Optional[PanelSettings] = None,
                 numpad_manager: Optional[VirtualNumpadManager] = None):
        QMainWindow.__init__(self)
        LoggableMixin.__init__(self)

        self.settings = settings or PanelSettings()
        self.numpad_manager = numpad_manager or VirtualNumpadManager.get_instance()
        self.numpad_manager.apply_settings(self.settings)

        self.setWindowTitle(f"{APP_NAME} {APP_VERSION}")
        self.setup_ui()
        self.numpad_installer = auto_install_numpad(self.centralWidget(), self.numpad_manager)

        numpad = self.numpad_manager.get_numpad()
        numpad.value_changed.connect(self.on_value_changed)

        self.log_info("Panel window created")

    def setup_ui(self):
        central = QWidget()
        layout = QVBoxLayout(central)

        setpoints = QGroupBox("Setpoints")
        form = QFormLayout(setpoints)

        self.temperature_spin = QDoubleSpinBox()
        self.temperature_spin.setRange(-50.0, 250.0)
        self.temperature_spin.setDecimals(2)
        self.temperature_spin.setSuffix(" °C")
        form.addRow("Temperature", self.temperature_spin)

        self.flow_spin = QDoubleSpinBox()
        self.flow_spin.setRange(0.0, 10000.0)
        self.flow_spin.setDecimals(3)
        self.flow_spin.setSuffix(" m³/h")
        form.addRow("Flow rate", self.flow_spin)

        self.batch_spin = QSpinBox()
        self.batch_spin.setRange(0, 999999)
        form.addRow("Batch count", self.batch_spin)

        layout.addWidget(setpoints)

        storage = QGroupBox("Storage")
        storage_form = QFormLayout(storage)
        self.application_dir_label = QLabel(str(Path(self.settings.application_dir)))
        storage_form.addRow("Application directory", self.application_dir_label)
        layout.addWidget(storage)

        layout.addStretch(1)
        self.setCentralWidget(central)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

    def on_value_changed(self, value: float):
        self.status_bar.showMessage(f"Value: {value:g}", 3000)


def main():
    """Main entry point for the PanelKit GUI."""
    logger = get_logger()

    logger.info("=" * 60)
    logger.info(f"{APP_NAME} - Touch Control Panel {APP_VERSION}")
    logger.info("=" * 60)

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)
    app.setOrganizationName(APP_NAME)

    try:
        settings, issues = load_settings(QSettings(APP_NAME, "panelkit"))
        if issues:
            logger.warning(f"{len(issues)} invalid settings replaced with defaults",
                           category=LogCategory.CONFIG)
        logger.cleanup_old_logs(settings.log_retention)

        window = PanelWindow(settings)
        window.show()
        logger.info("PanelKit application started successfully")

        exit_code = app.exec()
        logger.info(f"PanelKit application exited with code: {exit_code}")
        return exit_code

    except Exception as e:
        logger.critical("Critical error starting PanelKit", exception=e)
        QMessageBox.critical(None, "Critical Error",
                             f"Failed to start PanelKit:\n{str(e)}\n\nCheck logs for details.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
