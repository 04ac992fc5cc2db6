"""Tests for the form submission lifecycle."""

import pytest

from api_client import APIError, ErrorKind
from submission import FormSubmission, SubmissionInProgress, SubmissionState


def _failing(message):
    def action():
        raise APIError(ErrorKind.HTTP, message, 500)
    return action


class TestFormSubmission:
    def test_failure_returns_to_idle_with_error(self):
        submission = FormSubmission("Apply")

        assert submission.run(_failing("Backend down")) is False

        assert submission.state is SubmissionState.IDLE
        assert submission.error == "Backend down"
        assert submission.history == [
            SubmissionState.IDLE, SubmissionState.SUBMITTING, SubmissionState.ERROR, SubmissionState.IDLE,
        ]

    def test_retry_after_failure_clears_error(self):
        submission = FormSubmission("Apply")
        submission.run(_failing("Backend down"))

        assert submission.run(lambda: {"ok": True}) is True

        assert submission.error is None
        assert submission.succeeded
        assert submission.result == {"ok": True}
        assert submission.history[-2:] == [SubmissionState.SUBMITTING, SubmissionState.SUCCESS]

    def test_cannot_begin_twice(self):
        submission = FormSubmission("Post job")
        submission.begin()
        with pytest.raises(SubmissionInProgress):
            submission.begin()

    def test_unexpected_error_propagates(self):
        submission = FormSubmission("Post job")

        def broken():
            raise KeyError("id")

        with pytest.raises(KeyError):
            submission.run(broken)
        assert submission.state is SubmissionState.IDLE
        assert submission.error == "Post job failed unexpectedly"

    def test_arguments_are_passed_through(self):
        submission = FormSubmission("Update")
        submission.run(lambda a, b=0: a + b, 2, b=3)
        assert submission.result == 5
