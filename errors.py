class TrainerError(Exception):
    """Base error for the workout trainer services"""


class IntentClassificationError(TrainerError):
    """The classifier reply could not be turned into an intent"""


class PlanGenerationError(TrainerError):
    """The model call failed or returned no usable plan"""

    def __init__(self, message, raw_text=None):
        super().__init__(message)
        self.raw_text = raw_text


class NikeResolutionError(TrainerError):
    """A Nike program lookup could not be satisfied"""

    def __init__(self, message, reason='not_found'):
        super().__init__(message)
        self.reason = reason


class SetLogError(TrainerError):
    """A logged set is missing its exercise or carries non-numeric values"""
