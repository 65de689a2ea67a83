"""
Resident and Household Models

Residents are stored individually. Households are never stored: they are
derived by grouping residents that share a household_id (No. KK).
"""

import re
from datetime import date
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rt_admin.models.finance import HouseholdCategory


HEAD_OF_HOUSEHOLD = "Kepala Keluarga"

# No. KK: the jurisdiction's 16-digit household registration number
HOUSEHOLD_ID_PATTERN = re.compile(r"^\d{16}$")
NATIONAL_ID_PATTERN = re.compile(r"^\d{16}$")

MARRIED_STATUSES = frozenset({"Kawin", "Cerai Hidup", "Cerai Mati"})

PLACEHOLDER = "N/A"


class Sex(str, Enum):
    MALE = "Laki-laki"
    FEMALE = "Perempuan"


def normalize_phone(value: Optional[str]) -> Optional[str]:
    """Keep digits only and force the 62 country prefix."""
    if not value:
        return None
    digits = re.sub(r"\D", "", value)
    if not digits:
        return None
    if digits.startswith("0"):
        digits = digits[1:]
    if not digits.startswith("62"):
        digits = f"62{digits}"
    return digits


class Resident(BaseModel):
    """
    A single resident record.

    Format rules (16-digit ids, one head per household) are enforced by
    the validator at write time, not here, so that legacy stored data
    still loads.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)

    # Identity
    name: str = Field(..., min_length=1, max_length=200)
    national_id: str = Field(default="", description="NIK")
    sex: Sex = Sex.MALE
    birth_place: str = ""
    birth_date: Optional[date] = None
    religion: str = ""
    education: str = ""
    occupation: str = ""
    marital_status: str = ""
    marriage_date: Optional[date] = Field(
        default=None,
        description="Marriage or divorce date"
    )
    phone: Optional[str] = None

    # Household linkage
    household_id: str = Field(..., min_length=1, description="No. KK")
    relationship_status: str = ""
    address: str = ""
    unit: str = Field(default="", description="House number")
    category: Optional[HouseholdCategory] = None

    @field_validator("birth_date", "marriage_date", "category", mode="before")
    @classmethod
    def empty_string_is_none(cls, v):
        if v == "":
            return None
        return v

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone(v)

    @property
    def is_head(self) -> bool:
        return self.relationship_status == HEAD_OF_HOUSEHOLD

    def age(self, today: Optional[date] = None) -> Optional[int]:
        """Age in full years, or None without a birth date."""
        if self.birth_date is None:
            return None
        today = today or date.today()
        years = today.year - self.birth_date.year
        if (today.month, today.day) < (self.birth_date.month, self.birth_date.day):
            years -= 1
        return years


class HouseholdSummary(BaseModel):
    """One row per household, derived from its members."""

    household_id: str
    head_name: str = PLACEHOLDER
    phone: Optional[str] = None
    address: str = PLACEHOLDER
    unit: str = PLACEHOLDER
    member_count: int = Field(ge=1)
    category: HouseholdCategory

    @property
    def has_head(self) -> bool:
        return self.head_name != PLACEHOLDER


class Demographics(BaseModel):
    """Dashboard breakdowns over the resident collection."""

    total_residents: int = 0
    total_households: int = 0
    by_sex: dict[str, int] = Field(default_factory=dict)
    by_age_group: dict[str, int] = Field(default_factory=dict)
    by_religion: dict[str, int] = Field(default_factory=dict)
    by_education: dict[str, int] = Field(default_factory=dict)
    by_marital_status: dict[str, int] = Field(default_factory=dict)


# =============================================================================
# ADMIN-MANAGED OPTION LISTS
# =============================================================================

class AdminListCategory(str, Enum):
    """Form fields whose options are managed by the admin."""
    RELIGION = "religion"
    EDUCATION = "education"
    OCCUPATION = "occupation"
    MARITAL_STATUS = "marital_status"
    RELATIONSHIP_STATUS = "relationship_status"
    UNIT = "unit"


ADMIN_LIST_LABELS = {
    AdminListCategory.RELIGION: "Agama",
    AdminListCategory.EDUCATION: "Pendidikan",
    AdminListCategory.OCCUPATION: "Pekerjaan",
    AdminListCategory.MARITAL_STATUS: "Status Perkawinan",
    AdminListCategory.RELATIONSHIP_STATUS: "Status Hubungan Dalam Keluarga",
    AdminListCategory.UNIT: "Nomor Rumah",
}


def _default_units() -> list[str]:
    return [f"{block}{number}" for block in "ABCD" for number in range(1, 9)]


class AdminLists(BaseModel):
    """
    Allowed options for the resident form.

    Editing these never touches stored residents.
    """

    religion: list[str] = Field(default_factory=lambda: [
        "Islam", "Kristen Protestan", "Kristen Katolik", "Hindu", "Buddha", "Konghucu",
    ])
    education: list[str] = Field(default_factory=lambda: [
        "Tidak Sekolah", "SD", "SMP", "SMA/SMK", "Diploma", "S1", "S2", "S3",
    ])
    occupation: list[str] = Field(default_factory=lambda: [
        "Belum/Tidak Bekerja", "Pelajar/Mahasiswa", "PNS", "TNI/POLRI",
        "Karyawan Swasta", "Wiraswasta", "Pensiunan",
    ])
    marital_status: list[str] = Field(default_factory=lambda: [
        "Belum Kawin", "Kawin", "Cerai Hidup", "Cerai Mati",
    ])
    relationship_status: list[str] = Field(default_factory=lambda: [
        HEAD_OF_HOUSEHOLD, "Istri", "Anak", "Orang Tua", "Lainnya",
    ])
    unit: list[str] = Field(default_factory=_default_units)

    def options(self, category: AdminListCategory) -> list[str]:
        return list(getattr(self, AdminListCategory(category).value))

    def with_option(self, category: AdminListCategory, value: str) -> "AdminLists":
        """Return a copy with value appended; blanks and duplicates are ignored."""
        value = value.strip()
        current = self.options(category)
        if not value or value in current:
            return self
        return self.model_copy(update={AdminListCategory(category).value: current + [value]})

    def without_option(self, category: AdminListCategory, value: str) -> "AdminLists":
        current = self.options(category)
        return self.model_copy(
            update={AdminListCategory(category).value: [item for item in current if item != value]}
        )
