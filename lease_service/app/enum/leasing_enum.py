from enum import Enum


class PaymentFrequency(str, Enum):
    MONTHLY = "MONTHLY"
    BIMONTHLY = "BIMONTHLY"
    QUARTERLY = "QUARTERLY"
    SEMIANNUAL = "SEMIANNUAL"
    ANNUAL = "ANNUAL"

    @property
    def installments_per_year(self) -> int:
        return INSTALLMENTS_PER_YEAR[self]

    @property
    def months_between(self) -> int:
        return 12 // INSTALLMENTS_PER_YEAR[self]


# Stable contract: persisted installments are read without re-deriving this
INSTALLMENTS_PER_YEAR = {
    PaymentFrequency.MONTHLY: 12,
    PaymentFrequency.BIMONTHLY: 6,
    PaymentFrequency.QUARTERLY: 4,
    PaymentFrequency.SEMIANNUAL: 2,
    PaymentFrequency.ANNUAL: 1,
}


class PaidMarker(str, Enum):
    """Two-state paid flag as stored in the installments table."""
    PAID = "S"
    UNPAID = "N"

    @property
    def is_paid(self) -> bool:
        return self is PaidMarker.PAID

    @classmethod
    def from_value(cls, value) -> "PaidMarker":
        """Accept a bool, a marker, its literal ('S'/'N') or its name."""
        if isinstance(value, PaidMarker):
            return value
        if isinstance(value, bool):
            return cls.PAID if value else cls.UNPAID
        if isinstance(value, str):
            normalized = value.strip().upper()
            if normalized in ("S", "PAID", "TRUE"):
                return cls.PAID
            if normalized in ("N", "UNPAID", "FALSE"):
                return cls.UNPAID
        raise ValueError(f"Unrecognised paid state: {value!r}")


class MaintenanceCategory(str, Enum):
    ROUTINE = "ROUTINE"
    EXTRAORDINARY = "EXTRAORDINARY"
