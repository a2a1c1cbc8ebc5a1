"""Widget tests for the virtual numpad."""

from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

QtWidgets = pytest.importorskip("PySide6.QtWidgets")

from numpad import (
    NumpadLayout,
    SpinBoxField,
    VirtualNumpad,
    VirtualNumpadManager,
    auto_install_numpad,
)
from settings import PanelSettings


@pytest.fixture(scope="module")
def qapp():
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    return app


@pytest.fixture()
def double_spin(qapp):
    spin = QtWidgets.QDoubleSpinBox()
    spin.setRange(-1000.0, 1000.0)
    spin.setDecimals(2)
    return spin


@pytest.fixture()
def numpad(qapp):
    pad = VirtualNumpad(settings=PanelSettings())
    yield pad
    pad.hide_timer.stop()
    pad.deleteLater()


def press(pad: VirtualNumpad, labels: str):
    for label in labels:
        pad.key_buttons[label].click()


def test_layout_has_every_key(numpad):
    expected = {label for row in NumpadLayout.KEYS for label in row}
    assert set(numpad.key_buttons) == expected


def test_spin_box_field_reads_and_writes(double_spin, qapp):
    field = SpinBoxField(double_spin)
    field.value = 12.34

    assert double_spin.value() == 12.34
    assert field.value == 12.34
    assert field.fraction_capacity() == 2

    int_field = SpinBoxField(QtWidgets.QSpinBox())
    int_field.value = 7.0
    assert int_field.widget.value() == 7
    assert int_field.fraction_capacity() == 0


def test_configure_keeps_the_current_value(numpad, double_spin):
    double_spin.setValue(15.5)

    numpad.configure_for_widget(double_spin)

    assert double_spin.value() == 15.5
    assert numpad.controller.fraction_digits == 1
    assert numpad.display_label.text() == "15.5"


def test_keys_edit_the_bound_spin_box(numpad, double_spin):
    numpad.configure_for_widget(double_spin)
    press(numpad, "C12.5")

    assert double_spin.value() == 12.5
    assert numpad.display_label.text() == "12.5"

    press(numpad, "±")
    assert double_spin.value() == -12.5

    press(numpad, "⌫")
    assert double_spin.value() == -12
    assert numpad.display_label.text() == "-12"


def test_fraction_digits_are_capped_by_widget_decimals(numpad, double_spin):
    numpad.configure_for_widget(double_spin)
    press(numpad, "C1.239")

    assert double_spin.value() == 1.23
    assert numpad.controller.max_fraction_digits == 2


def test_integer_spin_box_disables_decimal_key(numpad, qapp):
    spin = QtWidgets.QSpinBox()
    spin.setRange(0, 1000)

    numpad.configure_for_widget(spin)
    press(numpad, "C42")

    assert not numpad.key_buttons["."].isEnabled()
    assert spin.value() == 42


def test_integer_spin_box_limits_digits_to_its_range(qapp):
    spin = QtWidgets.QSpinBox()
    spin.setRange(0, 2**31 - 1)
    pad = VirtualNumpad(settings=PanelSettings(max_integer_digits=12, max_fraction_digits=3))

    pad.configure_for_widget(spin)
    press(pad, "C" + "9" * 11)

    assert pad.controller.max_integer_digits == 10
    assert spin.value() == 2**31 - 1
    pad.hide_timer.stop()
    pad.deleteLater()


def test_integer_field_clamps_before_converting(qapp):
    spin = QtWidgets.QSpinBox()
    spin.setRange(-50, 50)
    field = SpinBoxField(spin)

    field.value = 9999999999.0
    assert spin.value() == 50
    field.value = -9999999999.0
    assert spin.value() == -50
    assert field.integer_capacity() == 2


def test_configure_does_not_reset_the_widget(numpad, double_spin):
    double_spin.setValue(15.5)
    seen = []
    double_spin.valueChanged.connect(seen.append)

    numpad.configure_for_widget(double_spin)

    assert seen == []
    assert double_spin.value() == 15.5


def test_spin_box_range_clamps_entry(numpad, qapp):
    spin = QtWidgets.QDoubleSpinBox()
    spin.setRange(0.0, 50.0)
    spin.setDecimals(1)

    numpad.configure_for_widget(spin)
    press(numpad, "C75")

    assert spin.value() == 50.0
    assert numpad.display_label.text() == "50"


def test_value_changed_signal_carries_the_field_value(numpad, double_spin):
    numpad.configure_for_widget(double_spin)
    received = []
    numpad.value_changed.connect(received.append)

    press(numpad, "C3")

    assert received == [0.0, 3.0]


def test_key_press_without_widget_is_ignored(numpad):
    numpad.key_pressed.emit("5")

    assert numpad.controller is None
    assert numpad.display_label.text() == "0"


def test_enter_hides_the_numpad(numpad, double_spin):
    hidden = []
    numpad.numpad_hidden.connect(lambda: hidden.append(True))
    numpad.configure_for_widget(double_spin)

    press(numpad, NumpadLayout.ENTER_KEY)

    assert hidden == [True]


def test_auto_installer_finds_numeric_children(qapp):
    parent = QtWidgets.QWidget()
    layout = QtWidgets.QVBoxLayout(parent)
    spin = QtWidgets.QSpinBox()
    double_spin = QtWidgets.QDoubleSpinBox()
    layout.addWidget(spin)
    layout.addWidget(double_spin)
    layout.addWidget(QtWidgets.QLineEdit())

    manager = VirtualNumpadManager()
    auto_install_numpad(parent, manager)

    assert manager.installed_widgets == {spin, double_spin}

    manager.remove_from_widget(spin)
    assert manager.installed_widgets == {double_spin}
    assert spin not in manager.event_filters


def test_manager_passes_settings_to_numpad(qapp):
    manager = VirtualNumpadManager(settings=PanelSettings(max_fraction_digits=1))
    numpad = manager.get_numpad()
    spin = QtWidgets.QDoubleSpinBox()
    spin.setDecimals(3)

    numpad.configure_for_widget(spin)

    assert numpad.controller.max_fraction_digits == 1
    assert not manager.is_numpad_visible()
