"""Exceptions raised by the rollup's persistence layer."""


class RollupError(Exception):
    """Base class for failures that abort one user's rollup."""

    def __init__(self, user_id: str, message: str):
        super().__init__(f"{user_id}: {message}")
        self.user_id = user_id
        self.message = message


class ProfileStoreError(RollupError):
    pass


class HistoryReadError(RollupError):
    pass


class ScoreWriteError(RollupError):
    pass
