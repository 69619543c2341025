"""
Tests for the Checker: validation sessions, staleness and display updates.
"""

from unittest.mock import Mock

import pytest
from PySide6.QtWidgets import QCheckBox, QFormLayout, QLineEdit, QPlainTextEdit, QWidget

from fieldcheck.core.config import CheckerConfig
from fieldcheck.core.errors import ConfigError, ErrorCode
from fieldcheck.core.validation import ValidationRequest, ValidationResult, rejected_request, resolved_request
from fieldcheck.gui.validation.checker import Checker, read_value


def invalid(*messages):
    return ValidationResult(valid=False, messages=messages)


class TestReadValue:
    """Test reading values from supported controls."""

    def test_line_edit(self, qtbot):
        field = QLineEdit("abc")
        qtbot.addWidget(field)
        assert read_value(field) == "abc"

    def test_plain_text_edit(self, qtbot):
        field = QPlainTextEdit("one\ntwo")
        qtbot.addWidget(field)
        assert read_value(field) == "one\ntwo"

    def test_unsupported_control(self, qtbot):
        checkbox = QCheckBox()
        qtbot.addWidget(checkbox)

        with pytest.raises(ConfigError) as exc_info:
            read_value(checkbox)
        assert exc_info.value.code is ErrorCode.UNSUPPORTED_FIELD


class TestCheckerInitialization:
    """Test construction of a checker."""

    def test_initial_committed_value_is_field_text(self, field, instant_config, manual_validator):
        field.setText("preset")

        checker = Checker(field, manual_validator, config=instant_config)

        assert checker.last_committed_value == "preset"
        assert checker.in_flight_request is None
        assert manual_validator.calls == []

    def test_parent_defaults_to_field(self, field, manual_validator):
        checker = Checker(field, manual_validator)
        assert checker.parent() is field
        assert checker.config == CheckerConfig()

    def test_field_in_form_layout_is_rejected(self, qtbot, manual_validator):
        container = QWidget()
        field = QLineEdit()
        QFormLayout(container).addRow("Name", field)
        qtbot.addWidget(container)

        with pytest.raises(ConfigError) as exc_info:
            Checker(field, manual_validator)
        assert exc_info.value.code is ErrorCode.UNSUPPORTED_LAYOUT

    def test_attach_returns_checker(self, form, field, instant_config, manual_validator):
        checkbox = QCheckBox(form)
        checker = Checker(field, manual_validator, config=instant_config)

        assert checker.attach(checkbox) is checker


class TestValidationSession:
    """Test issuing requests and applying their answers."""

    def test_empty_value_skips_validator(self, field, instant_config, manual_validator):
        checker = Checker(field, manual_validator, config=instant_config)
        field.setText("abc")
        checker.validate()
        manual_validator.last.resolve(invalid("Too short"))

        field.clear()
        request = checker.validate()

        assert request is None
        assert manual_validator.calls == ["abc"]
        assert checker.last_committed_value == ""
        assert checker.display.messages == []
        assert checker.display.current_region.isHidden()

    def test_invalid_result_is_displayed(self, field, instant_config, manual_validator):
        checker = Checker(field, manual_validator, config=instant_config)
        field.setText("ab")

        checker.validate()
        manual_validator.last.resolve(invalid("Too short", "Must start with a letter"))

        assert checker.display.messages == ["Too short", "Must start with a letter"]
        assert checker.last_committed_value == "ab"
        assert checker.in_flight_request is None

    def test_valid_result_clears_errors(self, field, instant_config, manual_validator):
        checker = Checker(field, manual_validator, config=instant_config)
        checker.set_errors(["Old problem"])
        field.setText("alice")

        checker.validate()
        manual_validator.last.resolve(ValidationResult(valid=True))

        assert checker.display.messages == []
        assert not checker.display.surface.is_marked(checker.display.current_region)

    def test_stale_result_is_discarded(self, field, instant_config, manual_validator):
        checker = Checker(field, manual_validator, config=instant_config)
        field.setText("abc")
        checker.validate()
        first = manual_validator.last
        field.setText("abcd")
        checker.validate()
        second = manual_validator.last

        second.resolve(invalid("B"))
        first.resolve(invalid("A"))

        assert checker.display.messages == ["B"]
        assert checker.last_committed_value == "abcd"

    def test_stale_result_arriving_first_is_discarded(self, field, instant_config, manual_validator):
        checker = Checker(field, manual_validator, config=instant_config)
        field.setText("abc")
        checker.validate()
        first = manual_validator.last
        field.setText("abcd")
        checker.validate()

        first.resolve(invalid("A"))

        assert checker.display.messages == []
        assert checker.in_flight_request is manual_validator.last

    def test_previous_request_is_aborted(self, field, instant_config, abortable_validator):
        checker = Checker(field, abortable_validator, config=instant_config)
        field.setText("abc")
        checker.validate()
        first = abortable_validator.last

        field.setText("abcd")
        checker.validate()

        assert first.aborted
        assert not abortable_validator.last.aborted

    def test_emptying_field_aborts_in_flight_request(self, field, instant_config, abortable_validator):
        checker = Checker(field, abortable_validator, config=instant_config)
        field.setText("abc")
        checker.validate()
        first = abortable_validator.last

        field.clear()
        checker.validate()
        first.resolve(invalid("late"))

        assert first.aborted
        assert checker.in_flight_request is None
        assert checker.display.messages == []

    def test_failing_abort_does_not_break_checker(self, field, instant_config):
        """A request that cannot be aborted is still superseded."""
        calls = []
        requests = []

        class ClosedRequest(ValidationRequest):
            def abort(self):
                raise RuntimeError("request already closed")

        def check(value):
            calls.append(value)
            requests.append(ClosedRequest(value))
            return requests[-1]

        checker = Checker(field, check, config=instant_config)
        field.setText("abc")
        checker.validate()

        field.setText("abcd")
        second = checker.validate()
        field.setText("abcde")
        checker.validate()
        requests[0].resolve(invalid("stale"))
        field.clear()
        assert checker.validate() is None

        assert calls == ["abc", "abcd", "abcde"]
        assert second is requests[1]
        assert checker.in_flight_request is None
        assert checker.last_committed_value == ""
        assert checker.display.messages == []

    def test_same_value_updates_region_in_place(self, field, instant_config, manual_validator):
        checker = Checker(field, manual_validator, config=instant_config)
        field.setText("abc")
        checker.validate()
        manual_validator.last.resolve(invalid("Taken"))
        region = checker.display.current_region

        checker.validate()
        manual_validator.last.resolve(invalid("Taken"))

        assert checker.display.current_region is region

    def test_new_value_replaces_region(self, field, instant_config, manual_validator):
        checker = Checker(field, manual_validator, config=instant_config)
        field.setText("abc")
        checker.validate()
        manual_validator.last.resolve(invalid("Taken"))
        region = checker.display.current_region

        field.setText("abcd")
        checker.validate()
        manual_validator.last.resolve(invalid("Taken"))

        assert checker.display.current_region is not region
        assert checker.display.current_region.text() == "Taken"

    def test_rejection_clears_errors(self, qtbot, field, instant_config, manual_validator):
        checker = Checker(field, manual_validator, config=instant_config)
        checker.set_errors(["Old problem"])
        field.setText("abc")
        checker.validate()

        with qtbot.waitSignal(checker.validationFailed, timeout=1000) as blocker:
            manual_validator.last.reject("service unavailable")

        value, app_error = blocker.args
        assert value == "abc"
        assert app_error.code is ErrorCode.VALIDATOR_FAILED
        assert app_error.user_message == "service unavailable"
        assert checker.display.messages == []
        assert checker.last_committed_value is None
        assert checker.in_flight_request is None

    def test_stale_rejection_is_discarded(self, field, instant_config, manual_validator):
        checker = Checker(field, manual_validator, config=instant_config)
        field.setText("abc")
        checker.validate()
        first = manual_validator.last
        field.setText("abcd")
        checker.validate()
        manual_validator.last.resolve(invalid("B"))

        first.reject(ConnectionError("late"))

        assert checker.display.messages == ["B"]
        assert checker.last_committed_value == "abcd"

    def test_after_rejection_any_result_replaces(self, field, instant_config, manual_validator):
        checker = Checker(field, manual_validator, config=instant_config)
        field.setText("abc")
        checker.validate()
        manual_validator.last.resolve(invalid("Taken"))
        region = checker.display.current_region
        checker.validate()
        manual_validator.last.reject()

        checker.validate()
        manual_validator.last.resolve(invalid("Taken"))

        assert checker.display.current_region is not region

    def test_validator_raising_synchronously(self, field, instant_config):
        validator = Mock(side_effect=TimeoutError("slow backend"))
        checker = Checker(field, validator, config=instant_config)
        checker.set_errors(["Old problem"])
        field.setText("abc")

        request = checker.validate()

        assert isinstance(request.reason, TimeoutError)
        assert checker.display.messages == []
        assert checker.last_committed_value is None

    def test_validator_answering_immediately(self, field, instant_config):
        checker = Checker(field, lambda value: (False, "Not allowed"), config=instant_config)
        field.setText("abc")

        request = checker.validate()

        assert request.result == invalid("Not allowed")
        assert checker.display.messages == ["Not allowed"]

    def test_unusable_answer_counts_as_failure(self, qtbot, field, instant_config):
        checker = Checker(field, lambda value: "nonsense", config=instant_config)
        field.setText("abc")

        with qtbot.waitSignal(checker.validationFailed, timeout=1000):
            checker.validate()

        assert checker.last_committed_value is None

    def test_started_and_completed_signals(self, qtbot, field, instant_config):
        checker = Checker(field, lambda value: resolved_request(value, {"valid": True}), config=instant_config)
        field.setText("abc")

        with qtbot.waitSignals([checker.validationStarted, checker.validationCompleted], timeout=1000):
            checker.validate()

    def test_rejected_request_helper(self, field, instant_config):
        checker = Checker(field, lambda value: rejected_request(value, "down"), config=instant_config)
        field.setText("abc")

        assert checker.validate().reason == "down"
        assert checker.last_committed_value is None

    def test_set_errors_chains(self, field, instant_config, manual_validator):
        checker = Checker(field, manual_validator, config=instant_config)

        assert checker.set_errors(["x"]).set_errors([]) is checker
        assert checker.display.messages == []


class TestEndToEnd:
    """Test a checker attached to a field being edited."""

    def test_typing_validates_once_after_pause(self, qtbot, field, instant_config):
        calls = []

        def check(value):
            calls.append(value)
            if len(value) < 3:
                return rejected_request(value, "too short to look up")
            return resolved_request(value, {"valid": True})

        checker = Checker(field, check, config=instant_config).attach()

        qtbot.keyClicks(field, "ok")
        qtbot.waitUntil(lambda: len(calls) == 1, timeout=2000)

        assert calls == ["ok"]
        assert checker.display.messages == []
        assert checker.last_committed_value is None

        field.clear()
        qtbot.waitUntil(lambda: checker.last_committed_value == "", timeout=2000)
        assert calls == ["ok"]

    def test_auxiliary_widget_triggers_validation(self, qtbot, form, field, instant_config, manual_validator):
        checkbox = QCheckBox("Create account", form)
        field.setText("abc")
        Checker(field, manual_validator, config=instant_config).attach([checkbox])

        checkbox.toggle()

        qtbot.waitUntil(lambda: manual_validator.calls == ["abc"], timeout=2000)
