"""
Input Validation

DESIGN DECISION: Validation runs before every mutation and never raises
on bad input. Each check appends a ValidationIssue; the caller (AppState)
refuses the mutation when any issue has severity "error" and leaves state
untouched.

Checks are split by entity:
- Household id (No. KK) format
- Resident records, including the one-head-per-household rule
- Income and expense entries

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the form can show them next to the field.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from rt_admin.models.resident import (
    HEAD_OF_HOUSEHOLD,
    MARRIED_STATUSES,
    NATIONAL_ID_PATTERN,
    Resident,
)
from rt_admin.models.validation import ValidationIssue, ValidationResult


class ValidationFailedError(Exception):
    """A mutation was refused because its input did not validate."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(result.messages) or "Validation failed")


def validate_household_id(value: Optional[str], field: str = "household_id") -> ValidationResult:
    """
    Check a No. KK: exactly 16 numeric digits.

    Non-digit characters and a wrong length are reported as distinct
    issue types so the form can say which one it is.
    """
    issues = []
    value = (value or "").strip()

    if not value:
        issues.append(ValidationIssue(
            field=field,
            issue_type="missing",
            message="Nomor KK wajib diisi.",
            severity="error",
        ))
    elif not value.isdigit():
        issues.append(ValidationIssue(
            field=field,
            issue_type="non_numeric",
            message="Nomor KK harus terdiri dari 16 digit angka.",
            severity="error",
            suggested_fix="Gunakan angka saja, tanpa spasi atau tanda baca",
        ))
    elif len(value) != 16:
        issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_length",
            message=f"Nomor KK harus terdiri dari 16 digit angka (sekarang {len(value)}).",
            severity="error",
        ))

    return ValidationResult(issues=issues)


def validate_resident(
    resident: Resident,
    existing: Iterable[Resident] = (),
    enforce_single_head: bool = True,
) -> ValidationResult:
    """
    Validate a resident about to be saved.

    Args:
        resident: The record being added or edited
        existing: The stored residents; an entry with the same id is the
                  record being replaced and is ignored
        enforce_single_head: Reject a second Kepala Keluarga in the household
    """
    issues = []

    if not resident.name.strip():
        issues.append(ValidationIssue(
            field="name",
            issue_type="missing",
            message="Nama wajib diisi.",
            severity="error",
        ))

    result = validate_household_id(resident.household_id)

    if resident.national_id and not NATIONAL_ID_PATTERN.match(resident.national_id):
        issues.append(ValidationIssue(
            field="national_id",
            issue_type="invalid_format",
            message="NIK harus terdiri dari 16 digit angka.",
            severity="error",
        ))

    if resident.marriage_date and resident.marital_status not in MARRIED_STATUSES:
        issues.append(ValidationIssue(
            field="marriage_date",
            issue_type="inconsistent",
            message="Tanggal perkawinan/perceraian hanya diisi untuk status kawin atau cerai.",
            severity="error",
            suggested_fix="Kosongkan tanggal atau ubah status perkawinan",
        ))

    if resident.birth_date and resident.birth_date > date.today():
        issues.append(ValidationIssue(
            field="birth_date",
            issue_type="future_date",
            message="Tanggal lahir ada di masa depan.",
            severity="warning",
        ))

    if not resident.relationship_status:
        issues.append(ValidationIssue(
            field="relationship_status",
            issue_type="missing",
            message="Status hubungan dalam keluarga belum diisi.",
            severity="warning",
        ))

    if resident.is_head and enforce_single_head:
        other_head = next(
            (
                r for r in existing
                if r.id != resident.id
                and r.household_id == resident.household_id
                and r.relationship_status == HEAD_OF_HOUSEHOLD
            ),
            None,
        )
        if other_head is not None:
            issues.append(ValidationIssue(
                field="relationship_status",
                issue_type="duplicate_head",
                message=(
                    f"Nomor KK {resident.household_id} sudah memiliki Kepala Keluarga "
                    f"({other_head.name})."
                ),
                severity="error",
                suggested_fix="Ubah status hubungan atau edit data kepala keluarga yang ada",
            ))

    return result.merge(ValidationResult(issues=issues))


def validate_entry(
    description: Optional[str],
    amount,
    entry_date: Optional[date],
) -> ValidationResult:
    """Validate an income or expense entry before it is stored."""
    issues = []

    if not (description or "").strip():
        issues.append(ValidationIssue(
            field="description",
            issue_type="missing",
            message="Keterangan wajib diisi.",
            severity="error",
        ))

    try:
        value = Decimal(str(amount)) if amount is not None and amount != "" else None
    except InvalidOperation:
        value = None
        issues.append(ValidationIssue(
            field="amount",
            issue_type="invalid_format",
            message=f"Jumlah '{amount}' bukan angka.",
            severity="error",
        ))
    else:
        if value is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Jumlah wajib diisi.",
                severity="error",
            ))
        elif value <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Jumlah harus lebih dari nol.",
                severity="error",
            ))

    if entry_date is None:
        issues.append(ValidationIssue(
            field="date",
            issue_type="missing",
            message="Tanggal wajib diisi.",
            severity="error",
        ))

    return ValidationResult(issues=issues)
