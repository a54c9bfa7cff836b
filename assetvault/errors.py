"""
Error kinds raised by the vault

Every failure of a store or service operation is one of the classes below, so callers
can tell "the operation failed cleanly" (AlreadyExists, NotFound, VaultIOError,
StoreError, CredentialError) apart from "a rollback failed and the stores disagree"
(InconsistentState).
"""


class VaultError(Exception):
    pass


class AlreadyExists(VaultError):
    """A path, tag, username or id is already taken"""


class NotFound(VaultError):
    """A lookup did not resolve to an existing entity"""


class NoAdminFound(NotFound):
    """The admin user that should be linked to a new resource does not exist"""


class FolderNotFound(NotFound):
    """The target folder of an asset does not exist"""


class VaultIOError(VaultError):
    """A filesystem operation failed"""


class StoreError(VaultError):
    """The metadata store failed to persist or query a record"""


class CredentialError(VaultError):
    """Hashing or verifying a password failed (not the same as a wrong password)"""


class InconsistentState(VaultError):
    """
    A compensating action failed while rolling back a partially applied operation.
    The disk and the metadata store may now disagree and need manual repair.
    """

    def __init__(self, operation: str, original: BaseException, failures: list[tuple[str, BaseException]]):
        self.operation = operation
        self.original = original
        self.failures = failures
        steps = ", ".join(f"{step} ({error!r})" for step, error in failures)
        super().__init__(f"Rollback of {operation} after {original!r} failed for: {steps}")
