"""Error taxonomy shared by the cart, settlement, code generation and checkout.

Cart and settlement code never raise these for business failures: they hand
back a ``Rejected`` wrapping the error so the caller can show it and keep the
session alive. Repository code raises them.
"""
from dataclasses import dataclass


class PosError(Exception):
    """Base class for every error the engine reports."""


class ValidationError(PosError):
    """Input rejected before any state was mutated."""


class InsufficientPaymentError(PosError):
    """Cash tender below the total, or a non-cash tender that is not exact."""


class RepositoryUnavailableError(PosError):
    """Lookup or persist I/O against the store failed."""


class DuplicateCodeError(PosError):
    """The store refused a generated identifier because it already exists."""


class NotFoundError(PosError):
    pass


@dataclass(frozen=True)
class Rejected:
    error: PosError

    @property
    def reason(self) -> str:
        return str(self.error)

    def __bool__(self) -> bool:
        return False
