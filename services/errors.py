from services.sleep_service import ValidationResult


class SleepEntryError(Exception):
    """Base class for failures surfaced to the entry editor."""


class InvalidSessionError(SleepEntryError, ValueError):
    def __init__(self, result: ValidationResult):
        super().__init__(result.message)
        self.result = result


class InvalidWakeTimeError(SleepEntryError, ValueError):
    pass


class EntryNotFoundError(SleepEntryError, LookupError):
    def __init__(self, entry_id: int):
        super().__init__(f"Sleep entry {entry_id} not found")
        self.entry_id = entry_id


class SaveInProgressError(SleepEntryError, RuntimeError):
    pass


class StorageError(SleepEntryError):
    pass
