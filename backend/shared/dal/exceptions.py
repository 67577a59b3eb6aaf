"""Exceptions raised by repository implementations."""


class ConcurrentUpdateError(Exception):
    """A versioned write lost the race against another writer.

    Attributes:
        record: Kind of record that was being written (e.g. "game").
        key: Primary key of the record.
        expected_version: Version the writer read before modifying.

    """

    def __init__(self, *, record: str, key: str, expected_version: int) -> None:
        self.record = record
        self.key = key
        self.expected_version = expected_version
        super().__init__(f"{record} '{key}' was modified concurrently (expected version {expected_version})")
