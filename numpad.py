"""
Virtual Numpad Module for PanelKit.

Touch-optimized numeric keypad for spin box fields. Button presses are
routed to a KeypadController bound to the spin box, which owns the edit
state and writes the resulting value back into the widget.
"""

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QPushButton,
    QFrame, QLabel, QApplication, QSpinBox, QDoubleSpinBox,
    QGraphicsDropShadowEffect
)
from PySide6.QtCore import (
    Qt, Signal, QTimer, QPropertyAnimation, QEasingCurve, QRect,
    QObject, QEvent, QSize
)
from PySide6.QtGui import QFont, QColor
from typing import Optional, Union

from keypad import KeypadController, KeypadKey, DIGITS
from logger import get_logger, LoggableMixin, LogCategory
from settings import PanelSettings


NumericWidget = Union[QSpinBox, QDoubleSpinBox]


class NumpadLayout:
    """Numpad key layout and key label mapping."""

    KEYS = [
        ['⌫', '±', 'C'],
        ['7', '8', '9'],
        ['4', '5', '6'],
        ['1', '2', '3'],
        ['0', '.', '↵']
    ]

    # Labels that map to controller tokens other than themselves
    SPECIAL_KEYS = {
        'C': KeypadKey.CLEAR,
        '±': KeypadKey.TOGGLE_SIGN,
        '⌫': KeypadKey.BACKSPACE,
        '.': KeypadKey.DECIMAL,
    }

    ENTER_KEY = '↵'


class SpinBoxField:
    """Bound field view of a ``QSpinBox`` or ``QDoubleSpinBox``."""

    def __init__(self, widget: NumericWidget):
        self.widget = widget

    @property
    def value(self) -> float:
        return float(self.widget.value())

    @value.setter
    def value(self, value: float):
        if isinstance(self.widget, QDoubleSpinBox):
            self.widget.setValue(value)
        else:
            # QSpinBox takes a C int; clamp before converting
            value = min(max(value, self.widget.minimum()), self.widget.maximum())
            self.widget.setValue(int(value))

    def fraction_capacity(self) -> int:
        """Decimals the widget can show; 0 for integer spin boxes."""
        if isinstance(self.widget, QDoubleSpinBox):
            return self.widget.decimals()
        return 0

    def integer_capacity(self) -> Optional[int]:
        """Integer digits of the widest value in range, or None if unbounded."""
        if isinstance(self.widget, QDoubleSpinBox):
            return None
        widest = max(abs(self.widget.minimum()), abs(self.widget.maximum()))
        return len(str(widest))


class VirtualNumpad(QWidget, LoggableMixin):
    """Touch-optimized virtual numpad widget."""

    log_category = LogCategory.KEYPAD

    key_pressed = Signal(str)
    enter_pressed = Signal()
    numpad_hidden = Signal()
    value_changed = Signal(float)

    def __init__(self, parent=None, settings: Optional[PanelSettings] = None):
        QWidget.__init__(self, parent)
        LoggableMixin.__init__(self)

        self.settings = settings or PanelSettings()
        self.target_widget: Optional[NumericWidget] = None
        self.controller: Optional[KeypadController] = None

        # Numpad dimensions optimized for tablet
        self.numpad_width = 320
        self.numpad_height = 380
        self.button_size = QSize(80, 60)

        self.setup_ui()
        self.setup_animations()
        self.apply_styling()

        self.hide_timer = QTimer(self)
        self.hide_timer.setSingleShot(True)
        self.hide_timer.timeout.connect(self.hide_numpad)

        self.key_pressed.connect(self._handle_key_press)
        self.enter_pressed.connect(self._handle_enter)

        self.log_debug("Virtual numpad initialized")

    def setup_ui(self):
        """Setup the numpad UI - optimized for touch interaction."""
        self.setFixedSize(self.numpad_width, self.numpad_height)
        self.setWindowFlags(Qt.Tool | Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint)
        self.setAttribute(Qt.WA_TranslucentBackground)

        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(10, 10, 10, 10)
        main_layout.setSpacing(8)

        self.numpad_frame = QFrame()
        self.numpad_frame.setObjectName("numpadFrame")

        shadow = QGraphicsDropShadowEffect()
        shadow.setBlurRadius(20)
        shadow.setOffset(0, 5)
        shadow.setColor(QColor(0, 0, 0, 100))
        self.numpad_frame.setGraphicsEffect(shadow)

        frame_layout = QVBoxLayout(self.numpad_frame)
        frame_layout.setContentsMargins(15, 15, 15, 15)
        frame_layout.setSpacing(8)

        self.create_display(frame_layout)
        self.create_key_grid(frame_layout)

        main_layout.addWidget(self.numpad_frame)

    def create_display(self, layout):
        """Create the display area showing the value being typed."""
        display_frame = QFrame()
        display_frame.setObjectName("displayFrame")
        display_frame.setFixedHeight(60)

        display_layout = QHBoxLayout(display_frame)
        display_layout.setContentsMargins(10, 5, 10, 5)

        self.display_label = QLabel("0")
        self.display_label.setObjectName("displayLabel")
        self.display_label.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        self.display_label.setFont(QFont("monospace", 18, QFont.Bold))

        display_layout.addWidget(self.display_label)
        layout.addWidget(display_frame)

    def create_key_grid(self, layout):
        """Create the grid of numpad keys."""
        keys_widget = QWidget()
        self.keys_layout = QGridLayout(keys_widget)
        self.keys_layout.setContentsMargins(0, 0, 0, 0)
        self.keys_layout.setSpacing(4)

        self.key_buttons = {}
        for row, key_row in enumerate(NumpadLayout.KEYS):
            for col, key_text in enumerate(key_row):
                button = self.create_key_button(key_text)
                self.keys_layout.addWidget(button, row, col)
                self.key_buttons[key_text] = button

        layout.addWidget(keys_widget)

    def create_key_button(self, key_text: str) -> QPushButton:
        """Create a numpad key button with styling and behavior."""
        button = QPushButton(key_text)
        button.setFont(QFont("Arial", 16, QFont.Bold))
        button.setMinimumSize(self.button_size)

        if key_text in ['C', '⌫']:
            button.setObjectName("clearKey")
        elif key_text == '±':
            button.setObjectName("functionKey")
        elif key_text == NumpadLayout.ENTER_KEY:
            button.setObjectName("enterKey")
        elif key_text == '.':
            button.setObjectName("decimalKey")
        else:
            button.setObjectName("numberKey")

        if key_text == NumpadLayout.ENTER_KEY:
            button.clicked.connect(lambda checked=False: self.enter_pressed.emit())
        else:
            token = NumpadLayout.SPECIAL_KEYS.get(key_text, key_text)
            button.clicked.connect(lambda checked=False, t=token: self.key_pressed.emit(t))

        return button

    def setup_animations(self):
        """Setup animations for numpad show/hide."""
        self.show_animation = QPropertyAnimation(self, b"geometry")
        self.show_animation.setDuration(300)
        self.show_animation.setEasingCurve(QEasingCurve.OutCubic)

        self.hide_animation = QPropertyAnimation(self, b"geometry")
        self.hide_animation.setDuration(250)
        self.hide_animation.setEasingCurve(QEasingCurve.InCubic)
        self.hide_animation.finished.connect(self.hide)

    def apply_styling(self):
        """Apply panel styling to the numpad."""
        style = """
        QFrame#numpadFrame {
            background-color: #2b2f36;
            border: 2px solid #4d5766;
            border-radius: 12px;
        }

        QFrame#displayFrame {
            background-color: #1b1e23;
            border: 1px solid #4d5766;
            border-radius: 6px;
        }

        QLabel#displayLabel {
            color: #e8f0f8;
            background-color: transparent;
            font-size: 18px;
            font-weight: bold;
            padding: 5px;
        }

        QPushButton {
            border: 1px solid #5a6a80;
            border-radius: 6px;
            color: white;
            font-size: 16px;
            font-weight: 600;
            min-height: 50px;
        }

        QPushButton:pressed {
            margin-top: 2px;
        }

        QPushButton#numberKey, QPushButton#decimalKey {
            background-color: #3e4a5c;
        }

        QPushButton#decimalKey:disabled {
            background-color: #2f3744;
            color: #707a88;
        }

        QPushButton#functionKey {
            background-color: #55657d;
        }

        QPushButton#clearKey {
            background-color: #b3403a;
        }

        QPushButton#enterKey {
            background-color: #2f8a4c;
        }
        """
        self.setStyleSheet(style)

    def configure_for_widget(self, widget: NumericWidget):
        """Bind a fresh keypad controller to ``widget``."""
        self.target_widget = widget
        field = SpinBoxField(widget)

        max_fraction_digits = min(self.settings.max_fraction_digits, field.fraction_capacity())
        max_integer_digits = self.settings.max_integer_digits
        integer_capacity = field.integer_capacity()
        if integer_capacity is not None:
            max_integer_digits = min(max_integer_digits, integer_capacity)

        self.controller = KeypadController(
            field,
            max_integer_digits=max_integer_digits,
            max_fraction_digits=max_fraction_digits,
            seed_from_field=True,
        )

        self.key_buttons['.'].setEnabled(max_fraction_digits > 0)
        self.update_display()

        self.log_debug(f"Configured numpad for {type(widget).__name__}",
                       max_integer_digits=max_integer_digits,
                       max_fraction_digits=max_fraction_digits)

    def update_display(self):
        """Show the controller's entry text."""
        text = self.controller.display_text if self.controller else "0"
        self.display_label.setText(text)

    def show_for_widget(self, widget: NumericWidget):
        """Show numpad for a specific widget."""
        self.configure_for_widget(widget)
        self.position_numpad()

        self.show()
        self.start_show_animation()
        self.restart_hide_timer()

        self.log_user_action("numpad_shown", {"widget_type": type(widget).__name__})

    def restart_hide_timer(self):
        self.hide_timer.start(self.settings.auto_hide_seconds * 1000)

    def position_numpad(self):
        """Position numpad next to the target widget, on screen."""
        if not self.target_widget:
            return

        screen = QApplication.primaryScreen().geometry()
        widget_geometry = self.target_widget.geometry()
        widget_global_pos = self.target_widget.mapToGlobal(widget_geometry.topLeft())

        # Right of the widget if there's space, otherwise to the left
        if widget_global_pos.x() + widget_geometry.width() + self.numpad_width < screen.width():
            x = widget_global_pos.x() + widget_geometry.width() + 10
        else:
            x = max(0, widget_global_pos.x() - self.numpad_width - 10)

        y = max(0, min(widget_global_pos.y(), screen.height() - self.numpad_height))
        self.move(x, y)

    def start_show_animation(self):
        current_geometry = self.geometry()
        start_geometry = QRect(current_geometry.x() - 30, current_geometry.y(),
                               current_geometry.width(), current_geometry.height())

        self.setGeometry(start_geometry)
        self.show_animation.setStartValue(start_geometry)
        self.show_animation.setEndValue(current_geometry)
        self.show_animation.start()

    def hide_numpad(self):
        """Hide numpad with animation."""
        self.hide_timer.stop()
        current_geometry = self.geometry()
        end_geometry = QRect(current_geometry.x() - 30, current_geometry.y(),
                             current_geometry.width(), current_geometry.height())

        self.hide_animation.setStartValue(current_geometry)
        self.hide_animation.setEndValue(end_geometry)
        self.hide_animation.start()

        self.numpad_hidden.emit()
        self.log_user_action("numpad_hidden")

    def _handle_key_press(self, key: str):
        """Forward a key token to the controller."""
        if self.controller is None:
            self.log_warning("Key pressed with no widget bound", key=key)
            return

        self.controller.dispatch(key)
        self.update_display()
        self.value_changed.emit(self.controller.field.value)
        self.restart_hide_timer()

        # Digits are not logged individually to keep typed values out of the audit trail
        action = "numpad_digit" if key in DIGITS else f"numpad_{key}"
        self.log_user_action(action)

    def _handle_enter(self):
        """Handle enter key - keep the value and hide."""
        self.hide_numpad()
        self.log_user_action("numpad_enter")


class VirtualNumpadManager(QObject, LoggableMixin):
    """Manager for the shared virtual numpad and its widget bindings."""

    _instance = None

    def __init__(self, parent=None, settings: Optional[PanelSettings] = None):
        QObject.__init__(self, parent)
        LoggableMixin.__init__(self)

        self.settings = settings or PanelSettings()
        self.numpad = None
        self.installed_widgets = set()
        self.event_filters = {}

        self.log_debug("Virtual numpad manager initialized")

    @classmethod
    def get_instance(cls):
        """Get singleton instance of numpad manager."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def apply_settings(self, settings: PanelSettings):
        """Use new settings for the numpad from its next binding on."""
        self.settings = settings
        if self.numpad:
            self.numpad.settings = settings

    def get_numpad(self) -> VirtualNumpad:
        """Get or create the virtual numpad instance."""
        if self.numpad is None:
            self.numpad = VirtualNumpad(settings=self.settings)
            self.log_debug("Created new virtual numpad instance")
        return self.numpad

    def install_on_widget(self, widget: NumericWidget):
        """Install virtual numpad on a widget."""
        if widget in self.installed_widgets:
            return

        event_filter = NumpadEventFilter(widget, self)
        widget.installEventFilter(event_filter)

        self.installed_widgets.add(widget)
        self.event_filters[widget] = event_filter

        self.log_debug(f"Installed virtual numpad on {type(widget).__name__}")

    def remove_from_widget(self, widget: NumericWidget):
        """Remove virtual numpad from a widget."""
        if widget not in self.installed_widgets:
            return

        event_filter = self.event_filters.pop(widget, None)
        if event_filter:
            widget.removeEventFilter(event_filter)

        self.installed_widgets.discard(widget)
        self.log_debug(f"Removed virtual numpad from {type(widget).__name__}")

    def show_numpad_for_widget(self, widget: NumericWidget):
        self.get_numpad().show_for_widget(widget)

    def hide_numpad(self):
        if self.numpad:
            self.numpad.hide_numpad()

    def is_numpad_visible(self) -> bool:
        return self.numpad is not None and self.numpad.isVisible()


class NumpadEventFilter(QObject):
    """Event filter to detect when numpad should be shown."""

    def __init__(self, widget: QWidget, manager: VirtualNumpadManager):
        super().__init__(widget)
        self.widget = widget
        self.manager = manager
        self.logger = get_logger()

    def eventFilter(self, obj, event):
        """Show the numpad on focus or touch."""
        if obj == self.widget:
            if event.type() == QEvent.FocusIn:
                QTimer.singleShot(100, lambda: self.manager.show_numpad_for_widget(self.widget))
                self.logger.debug(f"Focus in detected for {type(self.widget).__name__}",
                                  category=LogCategory.KEYPAD)
            elif event.type() == QEvent.MouseButtonPress:
                QTimer.singleShot(50, lambda: self.manager.show_numpad_for_widget(self.widget))
                self.logger.debug(f"Mouse press detected for {type(self.widget).__name__}",
                                  category=LogCategory.KEYPAD)

        return super().eventFilter(obj, event)


def get_numpad_manager() -> VirtualNumpadManager:
    """Get the global numpad manager instance."""
    return VirtualNumpadManager.get_instance()


def install_numpad_on_widget(widget: NumericWidget):
    get_numpad_manager().install_on_widget(widget)


def remove_numpad_from_widget(widget: NumericWidget):
    get_numpad_manager().remove_from_widget(widget)


def show_numpad_for_widget(widget: NumericWidget):
    get_numpad_manager().show_numpad_for_widget(widget)


def hide_numpad():
    get_numpad_manager().hide_numpad()


def is_numpad_visible() -> bool:
    return get_numpad_manager().is_numpad_visible()


class NumpadAutoInstaller(QObject):
    """Install the numpad on every numeric input under a parent widget."""

    def __init__(self, parent_widget: QWidget, manager: Optional[VirtualNumpadManager] = None):
        super().__init__(parent_widget)
        self.parent_widget = parent_widget
        self.manager = manager or get_numpad_manager()
        self.install_on_children()

    def install_on_children(self):
        # QDoubleSpinBox is not a QSpinBox subclass, so look for both
        for child in self.parent_widget.findChildren(QSpinBox):
            self.manager.install_on_widget(child)
        for child in self.parent_widget.findChildren(QDoubleSpinBox):
            self.manager.install_on_widget(child)


def auto_install_numpad(parent_widget: QWidget, manager: Optional[VirtualNumpadManager] = None):
    """Automatically install numpad on all numeric input widgets in a parent."""
    return NumpadAutoInstaller(parent_widget, manager)
