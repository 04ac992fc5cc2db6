"""Submission lifecycle shared by every form: idle -> submitting -> success | error."""
import enum
import logging

from api_client import APIError
from matching import MatchError
from storage import UploadError

logger = logging.getLogger(__name__)

SUBMISSION_ERRORS = (APIError, UploadError, MatchError)


class SubmissionState(str, enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class SubmissionInProgress(RuntimeError):
    pass


class FormSubmission:
    """Tracks one form's submission state.

    A failure drops back to idle with the message kept in ``error`` so the
    form can be resubmitted; the next ``begin()`` clears it.
    """

    def __init__(self, name):
        self.name = name
        self.state = SubmissionState.IDLE
        self.error = None
        self.result = None
        self.history = [SubmissionState.IDLE]

    def _enter(self, state):
        self.state = state
        self.history.append(state)

    @property
    def submitting(self):
        return self.state is SubmissionState.SUBMITTING

    @property
    def succeeded(self):
        return self.state is SubmissionState.SUCCESS

    def begin(self):
        if self.submitting:
            raise SubmissionInProgress(f"{self.name} is already being submitted")
        self.error = None
        self.result = None
        self._enter(SubmissionState.SUBMITTING)

    def succeed(self, result=None):
        self.result = result
        self._enter(SubmissionState.SUCCESS)
        return result

    def fail(self, message):
        self.error = message
        self._enter(SubmissionState.ERROR)
        self._enter(SubmissionState.IDLE)

    def run(self, action, *args, **kwargs):
        """Submit through ``action``. Returns True on success."""
        self.begin()
        try:
            result = action(*args, **kwargs)
        except SUBMISSION_ERRORS as exc:
            logger.warning("%s failed: %s", self.name, exc)
            self.fail(getattr(exc, "message", None) or str(exc))
            return False
        except Exception:
            self.fail(f"{self.name} failed unexpectedly")
            raise
        self.succeed(result)
        return True
