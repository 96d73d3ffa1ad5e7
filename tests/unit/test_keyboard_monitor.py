"""Unit tests for key classification and KeyboardMonitor."""

import sys
from types import SimpleNamespace
from unittest.mock import MagicMock, Mock, patch

import pytest
from pubsub import pub

from typerewind.keyboard import InputPublisher, KeyboardMonitor, classify_key
from typerewind.models.events import InputKind


def special(name):
    """Stand-in for a pynput Key member."""
    return SimpleNamespace(name=name)


def char(value):
    """Stand-in for a pynput KeyCode."""
    return SimpleNamespace(char=value)


@pytest.mark.unit
class TestClassifyKey:
    """Test cases for classify_key."""

    def test_printable_character_is_accepted(self):
        assert classify_key(char("a")) == (InputKind.ACCEPTED, "a")
        assert classify_key(char("A"), frozenset({"shift"})) == (InputKind.ACCEPTED, "A")

    def test_space_is_accepted(self):
        assert classify_key(special("space")) == (InputKind.ACCEPTED, " ")

    def test_backspace_is_delete(self):
        assert classify_key(special("backspace")) == (InputKind.DELETE, "")

    @pytest.mark.parametrize("name", [
        "up", "down", "left", "right", "home", "end", "page_up", "page_down",
        "esc", "delete", "enter", "tab", "f1", "f12", "f20",
    ])
    def test_navigation_keys_reset(self, name):
        """Test caret-moving and line-leaving keys reset the history."""
        assert classify_key(special(name)) == (InputKind.RESET, "")

    @pytest.mark.parametrize("modifiers", [{"ctrl"}, {"cmd"}, {"cmd", "ctrl"}, {"ctrl", "shift"}])
    def test_shortcut_chords_reset(self, modifiers):
        """Test characters typed with command or control held are shortcuts."""
        assert classify_key(char("c"), frozenset(modifiers)) == (InputKind.RESET, "")

    def test_alt_characters_are_accepted(self):
        """Test option/alt compose characters are text."""
        assert classify_key(char("é"), frozenset({"alt"})) == (InputKind.ACCEPTED, "é")

    @pytest.mark.parametrize("name", ["shift", "shift_r", "ctrl_l", "alt_gr", "cmd"])
    def test_bare_modifiers_are_ignored(self, name):
        assert classify_key(special(name)) is None

    def test_unknown_keys_are_ignored(self):
        """Test media keys and non-printable characters don't matter."""
        assert classify_key(special("media_play_pause")) is None
        assert classify_key(special("f21")) is None
        assert classify_key(char(None)) is None
        assert classify_key(char("\x03")) is None


@pytest.mark.unit
class TestKeyboardMonitor:
    """Test cases for KeyboardMonitor class."""

    def test_on_press_emits_event(self):
        """Test a key press turns into a timestamped InputEvent."""
        callback = Mock()
        monitor = KeyboardMonitor(callback)

        monitor.on_press(char("x"))

        event = callback.call_args[0][0]
        assert event.kind is InputKind.ACCEPTED
        assert event.characters == "x"
        assert event.timestamp > 0
        assert event.modifiers == frozenset()

    def test_modifiers_are_tracked(self):
        """Test held modifiers are attached to presses and dropped on release."""
        callback = Mock()
        monitor = KeyboardMonitor(callback)

        monitor.on_press(special("shift_l"))
        monitor.on_press(special("backspace"))
        held = callback.call_args[0][0]
        monitor.on_release(special("shift_l"))
        monitor.on_press(special("backspace"))
        released = callback.call_args[0][0]

        assert callback.call_count == 2
        assert held.kind is InputKind.DELETE
        assert held.modifiers == frozenset({"shift"})
        assert released.modifiers == frozenset()

    def test_mouse_press_resets(self):
        """Test pointer presses reset and releases are ignored."""
        callback = Mock()
        monitor = KeyboardMonitor(callback)

        monitor.on_click(10, 20, "left", True)
        monitor.on_click(10, 20, "left", False)

        callback.assert_called_once()
        assert callback.call_args[0][0].kind is InputKind.RESET

    def test_callback_errors_are_logged(self):
        """Test an exception in the callback doesn't escape the hook."""
        monitor = KeyboardMonitor(Mock(side_effect=RuntimeError("boom")))

        monitor.on_press(char("x"))

    def test_start_and_stop_install_listeners(self):
        """Test start installs pynput listeners and stop removes them."""
        fake_pynput = MagicMock()
        with patch.dict(sys.modules, {"pynput": fake_pynput}):
            monitor = KeyboardMonitor(Mock())
            monitor.start()
            monitor.start()

            assert monitor.running is True
            fake_pynput.keyboard.Listener.assert_called_once_with(
                on_press=monitor.on_press, on_release=monitor.on_release)
            fake_pynput.mouse.Listener.assert_called_once_with(on_click=monitor.on_click)

            monitor.stop()

        assert monitor.running is False
        fake_pynput.keyboard.Listener.return_value.stop.assert_called_once()
        fake_pynput.mouse.Listener.return_value.stop.assert_called_once()

    def test_publishes_through_input_publisher(self):
        """Test events flow to pub/sub subscribers."""
        received = []

        def listener(event):
            received.append(event)

        pub.subscribe(listener, "test.keys")
        monitor = KeyboardMonitor(InputPublisher("test.keys").publish_input_event)

        monitor.on_press(special("backspace"))

        assert [e.kind for e in received] == [InputKind.DELETE]
