"""Error taxonomy for the challenge engine."""


class CoachError(Exception):
    """Base class for all sprachcoach errors."""


class TransientStoreError(CoachError):
    """A read or write against the persistence layer failed."""


class ConfigurationError(TransientStoreError):
    """Stored or configured state is malformed (recovered like a store failure)."""


class GenerationFailure(CoachError):
    """The text-generation backend could not produce an exercise."""


class DispatchFailure(CoachError):
    """An outbound message could not be delivered."""

    def __init__(self, user_id: str, reason: str):
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"Delivery to user {user_id} failed: {reason}")
