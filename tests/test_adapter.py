from src.capture.adapter import (
    AdapterError,
    RecognitionFailure,
    RecognitionResult,
    SingleShot,
)


class TestRecognitionResult:
    def test_success_drops_blank_candidates(self):
        result = RecognitionResult.success(["yes", "", "  ", "yes I'm fine"])
        assert result.ok
        assert result.candidates == ("yes", "yes I'm fine")

    def test_success_without_candidates_is_no_speech(self):
        result = RecognitionResult.success([])
        assert not result.ok
        assert result.failure == RecognitionFailure.NO_SPEECH

    def test_recoverable_failures(self):
        assert RecognitionFailure.NO_SPEECH.recoverable
        assert RecognitionFailure.NO_MATCH.recoverable
        assert RecognitionFailure.NETWORK_ERROR.recoverable
        assert not RecognitionFailure.AUDIO_ERROR.recoverable
        assert not RecognitionFailure.PERMISSION_DENIED.recoverable
        assert not RecognitionFailure.SERVICE_UNAVAILABLE.recoverable

    def test_adapter_error_message(self):
        error = AdapterError(RecognitionFailure.PERMISSION_DENIED)
        assert str(error) == "permission_denied"
        assert error.reason == RecognitionFailure.PERMISSION_DENIED


class TestSingleShot:
    def test_first_completion_wins(self):
        shot = SingleShot()
        assert shot.resolve("first") is True
        assert shot.resolve("second") is False
        assert shot.fail(RuntimeError("late")) is False
        assert shot.future.result() == "first"

    def test_cancel_blocks_late_result(self):
        shot = SingleShot()
        assert shot.cancel() is True
        assert shot.resolve("late") is False
        assert shot.future.cancelled()

    def test_fail_sets_exception(self):
        shot = SingleShot()
        shot.fail(AdapterError(RecognitionFailure.AUDIO_ERROR))
        assert isinstance(shot.future.exception(), AdapterError)
