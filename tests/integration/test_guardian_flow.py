from concurrent.futures import Future
from unittest.mock import MagicMock

import pytest

from src.capture.adapter import RecognitionResult
from src.core.config import Config, ConfirmationConfig, SettingsConfig
from src.core.guardian import Guardian
from src.events.alarm import SirenAlarm
from src.events.dispatcher import MISSING_CONTACT
from src.events.notifier import TwilioNotifier
from src.events.observer import FallEvent


class ReplyAdapter:
    """Answers every listen with the same transcript; None means silence."""

    def __init__(self, reply=None):
        self.reply = reply

    def play(self, key, language):
        future = Future()
        future.set_result(None)
        return future

    def listen(self, language, timeout):
        future = Future()
        if self.reply is not None:
            future.set_result(RecognitionResult.success([self.reply]))
        return future

    def stop(self):
        pass


@pytest.fixture
def test_config():
    return Config(
        confirmation=ConfirmationConfig(
            max_attempts=2,
            listen_timeout=0.05,
            prompt_timeout=1.0,
            retry_pause=0.0,
            answer_grace=0.0,
        ),
        settings=SettingsConfig(emergency_contact="+911234567890"),
    )


@pytest.fixture
def notifier():
    notifier = MagicMock(spec=TwilioNotifier)
    notifier.send_message.return_value = True
    notifier.place_call.return_value = True
    return notifier


@pytest.fixture
def make_guardian(test_config, notifier, tmp_path):
    guardians = []

    def factory(reply=None, config=None):
        guardian = Guardian(
            config=config or test_config,
            adapter=ReplyAdapter(reply),
            notifier=notifier,
            alarm=MagicMock(spec=SirenAlarm),
            db_path=str(tmp_path / "guardian.db"),
        )
        guardians.append(guardian)
        return guardian

    yield factory

    for guardian in guardians:
        guardian.shutdown()


class TestGuardianFlow:
    def test_confirmed_fall_is_audited(self, make_guardian, notifier):
        guardian = make_guardian(reply="yes I am fine")

        outcome = guardian.on_fall_detected(FallEvent(detected_at=1000.0)).result(timeout=5)

        record = guardian.outcome_logger.get_outcome(outcome.session_id)
        assert record["status"] == "resolved"
        assert record["intent"] == "affirmative"
        notifier.send_message.assert_not_called()

    def test_silence_notifies_contact(self, make_guardian, notifier):
        guardian = make_guardian()

        outcome = guardian.on_fall_detected(FallEvent(detected_at=1000.0)).result(timeout=5)

        assert outcome.status.value == "escalated"
        assert outcome.attempts == 2
        record = guardian.outcome_logger.get_outcome(outcome.session_id)
        assert record["escalation"]["kind"] == "contact_notified"
        assert record["escalation"]["contact"] == "+911234567890"
        notifier.send_message.assert_called_once()
        notifier.place_call.assert_called_once()

    def test_missing_contact_sounds_siren(self, make_guardian, test_config, notifier):
        test_config.settings.emergency_contact = ""
        guardian = make_guardian()

        outcome = guardian.on_fall_detected(FallEvent(detected_at=1000.0)).result(timeout=5)

        assert outcome.escalation.kind.value == "siren_sounded"
        guardian.alarm.sound.assert_called_once()
        notifier.send_message.assert_not_called()
        assert MISSING_CONTACT in [m.message for m in guardian.status_board.errors()]

    def test_contact_changed_at_runtime(self, make_guardian, notifier):
        guardian = make_guardian()
        guardian.settings.set_emergency_contact("+919999999999")

        guardian.on_fall_detected(FallEvent(detected_at=1000.0)).result(timeout=5)

        assert notifier.send_message.call_args.args[0] == "+919999999999"

    def test_status_when_idle(self, make_guardian):
        guardian = make_guardian()
        assert guardian.status() == {"state": "idle", "session": None}

    def test_outcome_reported_on_status_board(self, make_guardian):
        guardian = make_guardian(reply="okay")

        guardian.on_fall_detected(FallEvent(detected_at=1000.0)).result(timeout=5)

        assert guardian.status_board.recent()[0].message == "User confirmed they are okay"
