"""
Finance Models for RT Admin

Dues rates, dues payments, other income, expenses and the report rows
derived from them.

DESIGN DECISION: Money is Decimal everywhere. Rupiah amounts have no
fractional part in practice, but Decimal keeps sums exact and serializes
losslessly to JSON.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


ZERO = Decimal("0")


# =============================================================================
# ENUMS
# =============================================================================

class HouseholdCategory(str, Enum):
    """
    Household rate tiers.

    A is the most expensive tier, D the cheapest.
    """
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class DuesType(str, Enum):
    """The two monthly dues collected by the association."""
    RT = "RT"
    PKK = "PKK"


DUES_LABELS = {
    DuesType.RT: "Iuran RT",
    DuesType.PKK: "Iuran PKK",
}


class TransactionKind(str, Enum):
    """Direction of money in a transaction listing."""
    INCOME = "income"
    EXPENSE = "expense"


class TransactionSource(str, Enum):
    """Which collection a transaction listing entry came from."""
    DUES = "dues"
    OTHER_INCOME = "other_income"
    EXPENSE = "expense"


# =============================================================================
# RATE CONFIGURATION
# =============================================================================

class DuesRate(BaseModel):
    """Monthly RT and PKK amounts for one household category."""

    rt: Decimal = Field(..., ge=0, description="Monthly RT dues")
    pkk: Decimal = Field(..., ge=0, description="Monthly PKK dues")

    def for_type(self, dues_type: DuesType) -> Decimal:
        return self.rt if dues_type == DuesType.RT else self.pkk

    @property
    def total(self) -> Decimal:
        return self.rt + self.pkk


class DuesRateConfig(BaseModel):
    """
    Rate table for every household category.

    Editing this affects unpaid periods only. Recorded payments keep the
    amount snapshotted when they were paid.
    """

    A: DuesRate = Field(default_factory=lambda: DuesRate(rt=Decimal("75000"), pkk=Decimal("15000")))
    B: DuesRate = Field(default_factory=lambda: DuesRate(rt=Decimal("50000"), pkk=Decimal("10000")))
    C: DuesRate = Field(default_factory=lambda: DuesRate(rt=Decimal("35000"), pkk=Decimal("5000")))
    D: DuesRate = Field(default_factory=lambda: DuesRate(rt=Decimal("30000"), pkk=Decimal("5000")))

    def rate_for(self, category: HouseholdCategory) -> DuesRate:
        return getattr(self, HouseholdCategory(category).value)

    def with_rate(
        self,
        category: HouseholdCategory,
        dues_type: DuesType,
        amount: Decimal,
    ) -> "DuesRateConfig":
        """Return a copy with one amount replaced."""
        current = self.rate_for(category)
        field = "rt" if dues_type == DuesType.RT else "pkk"
        updated = current.model_copy(update={field: Decimal(amount)})
        return self.model_copy(update={HouseholdCategory(category).value: updated})


# =============================================================================
# TRANSACTIONAL RECORDS
# =============================================================================

def payment_key(household_id: str, year: int, month: int, dues_type: DuesType) -> str:
    """Natural key of a dues payment: one record per obligation."""
    return f"{household_id}-{year}-{month}-{DuesType(dues_type).value}"


class DuesPayment(BaseModel):
    """
    Settlement of one (household, year, month, type) obligation.

    The year/month pair is the obligation period, not the payment date.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default="", description="Natural key, derived when empty")
    household_id: str = Field(..., min_length=1)
    year: int = Field(..., ge=1900, le=9999)
    month: int = Field(..., ge=1, le=12)
    dues_type: DuesType
    amount: Decimal = Field(..., ge=0, description="Amount charged at payment time")
    paid_at: datetime = Field(default_factory=datetime.now)

    @field_validator("paid_at")
    @classmethod
    def to_local_naive(cls, v: datetime) -> datetime:
        # Stored as naive local time; legacy values carry a UTC offset
        if v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v

    @model_validator(mode="after")
    def derive_id(self) -> "DuesPayment":
        self.id = payment_key(self.household_id, self.year, self.month, self.dues_type)
        return self

    @property
    def key(self) -> tuple[str, int, int, DuesType]:
        return (self.household_id, self.year, self.month, self.dues_type)


class OtherIncome(BaseModel):
    """Ad-hoc income (donations, rentals, ...)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    date: date
    description: str = Field(..., min_length=1, max_length=500)
    amount: Decimal = Field(..., gt=0)


class Expense(OtherIncome):
    """An expense, optionally with a receipt image stored as a data URL."""

    receipt: Optional[str] = Field(
        default=None,
        description="data:<mime>;base64,<payload>"
    )

    @property
    def has_receipt(self) -> bool:
        return bool(self.receipt)


# =============================================================================
# ARREARS AND PAYMENT STATUS
# =============================================================================

class ArrearsLine(BaseModel):
    """
    Outstanding dues for one month.

    A None amount means that obligation is paid.
    """

    year: int
    month: int
    month_name: str
    rt_due: Optional[Decimal] = None
    pkk_due: Optional[Decimal] = None

    @property
    def total(self) -> Decimal:
        return (self.rt_due or ZERO) + (self.pkk_due or ZERO)


class ArrearsLookupResult(BaseModel):
    """
    Result of an arrears lookup by household id.

    A failed lookup (bad id, unknown household) is distinct from a
    successful lookup with no arrears.
    """

    household_id: str
    success: bool
    error_code: Optional[str] = Field(
        default=None,
        pattern="^(invalid_household_id|household_not_found)$"
    )
    error_message: Optional[str] = None

    head_name: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[HouseholdCategory] = None
    lines: list[ArrearsLine] = Field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((line.total for line in self.lines), ZERO)

    @property
    def has_arrears(self) -> bool:
        return self.success and bool(self.lines)


class HouseholdPaymentStatus(BaseModel):
    """Whether a household paid RT and PKK for one month, and when."""

    household_id: str
    head_name: str
    unit: str
    rt_paid_at: Optional[datetime] = None
    pkk_paid_at: Optional[datetime] = None

    @property
    def rt_paid(self) -> bool:
        return self.rt_paid_at is not None

    @property
    def pkk_paid(self) -> bool:
        return self.pkk_paid_at is not None


# =============================================================================
# MONTHLY REPORTING
# =============================================================================

class MonthlyFinancialSummary(BaseModel):
    """Income, expense and balance for one calendar month."""

    year: int
    month: int
    collected_by_type: dict[DuesType, Decimal] = Field(
        default_factory=lambda: {DuesType.RT: ZERO, DuesType.PKK: ZERO}
    )
    other_income_total: Decimal = ZERO
    expense_total: Decimal = ZERO

    @property
    def collected_dues_total(self) -> Decimal:
        return sum(self.collected_by_type.values(), ZERO)

    @property
    def total_income(self) -> Decimal:
        return (
            self.collected_by_type.get(DuesType.RT, ZERO)
            + self.collected_by_type.get(DuesType.PKK, ZERO)
            + self.other_income_total
        )

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.expense_total


class FinancialRecap(BaseModel):
    """Monthly recap: the month summary plus the theoretical dues ceiling."""

    summary: MonthlyFinancialSummary
    expected_dues_total: Decimal = Field(
        ...,
        description="Sum of every household's RT + PKK rate, paid or not"
    )
    total_residents: int = Field(ge=0)
    total_households: int = Field(ge=0)


class Transaction(BaseModel):
    """
    One row of the combined monthly transaction list.

    dues_type is set only for dues payments and is what report filters use.
    """

    id: str
    occurred_at: datetime
    description: str
    amount: Decimal
    kind: TransactionKind
    source: TransactionSource
    dues_type: Optional[DuesType] = None
    has_receipt: bool = False
