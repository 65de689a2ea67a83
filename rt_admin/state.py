"""
Application State for RT Admin

This module owns every collection the app works with and defines the
mutation and read flows on top of them:
1. Session (login → role → permissions)
2. Residents and admin option lists
3. Dues rates, dues payments, other income and expenses
4. Read models (households, dashboard, arrears, recap, reports)

DESIGN DECISION: AppState enforces the boundaries:
- Every mutation checks the session role first
- Every mutation validates its input before touching state
- Every accepted mutation is persisted immediately (write-through),
  and only then replaces the in-memory collection
- Destructive actions require explicit confirmation

Pages never write to storage themselves. They call AppState and show
whatever it returns or raises.

Collections are shared; the logged-in user is per AppState, so a server
with several browsers keeps one AppState per browser over one Collections.
"""

from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Optional, Type, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel, ValidationError

from rt_admin.activity import ActivityLogger
from rt_admin.auth import (
    authenticate,
    can_edit_rates,
    can_manage_admin_lists,
    can_manage_finance,
    can_manage_residents,
    require,
)
from rt_admin.config import Settings, get_settings
from rt_admin.dues import check_arrears, monthly_payment_status, record_payment
from rt_admin.finance import build_recap, list_transactions, summarize_month
from rt_admin.households import (
    build_demographics,
    find_head,
    resolve_category,
    summarize_households,
)
from rt_admin.models import (
    AdminListCategory,
    AdminLists,
    ArrearsLookupResult,
    Demographics,
    DuesPayment,
    DuesRateConfig,
    DuesType,
    Expense,
    FinancialRecap,
    HouseholdPaymentStatus,
    HouseholdSummary,
    MonthlyFinancialSummary,
    OtherIncome,
    Resident,
    Transaction,
    User,
    ValidationIssue,
    ValidationResult,
)
from rt_admin.reports import ReportKind, build_report, export_csv, report_filename
from rt_admin.services.receipts import encode_receipt
from rt_admin.services.storage import (
    ADMIN_LISTS_KEY,
    DUES_PAYMENTS_KEY,
    DUES_RATES_KEY,
    EXPENSES_KEY,
    OTHER_INCOME_KEY,
    RESIDENTS_KEY,
    SESSION_KEY,
    InMemoryStore,
    JsonFileStore,
    KeyValueStore,
    register_legacy_migrations,
)
from rt_admin.validation import (
    ValidationFailedError,
    validate_entry,
    validate_household_id,
    validate_resident,
)


ModelT = TypeVar("ModelT", bound=BaseModel)


class Collections:
    """
    Every persisted collection, loaded once from a store.

    One instance can back several AppState sessions. Each mutation
    replaces a whole list, so readers always see a complete collection.
    """

    def __init__(self, store: KeyValueStore, activity: Optional[ActivityLogger] = None):
        self.store = store
        self._activity = activity or ActivityLogger("rt_admin.state")
        self._rejected: dict[str, list] = {}
        # Households already reported as using the default category
        self.defaulted_households: set[str] = set()

        self.residents: list[Resident] = self.load_list(RESIDENTS_KEY, Resident)
        self.admin_lists: AdminLists = self.load_model(ADMIN_LISTS_KEY, AdminLists, AdminLists())
        self.payments: list[DuesPayment] = self.load_list(DUES_PAYMENTS_KEY, DuesPayment)
        self.rates: DuesRateConfig = self.load_model(DUES_RATES_KEY, DuesRateConfig, DuesRateConfig())
        self.expenses: list[Expense] = self.load_list(EXPENSES_KEY, Expense)
        self.other_income: list[OtherIncome] = self.load_list(OTHER_INCOME_KEY, OtherIncome)

    def load_list(self, key: str, model: Type[ModelT]) -> list[ModelT]:
        """
        Validate a stored collection record by record.

        Records that no longer validate are logged and kept aside; they are
        written back unchanged on the next save of the collection.
        """
        raw = self.store.load(key, [])
        if not isinstance(raw, list):
            self._activity.storage_read_failed(key, f"expected a list, got {type(raw).__name__}")
            return []

        items = []
        for index, item in enumerate(raw):
            try:
                items.append(model.model_validate(item))
            except (ValidationError, TypeError) as e:
                self._activity.storage_read_failed(f"{key}[{index}]", str(e))
                self._rejected.setdefault(key, []).append(item)
        return items

    def load_model(self, key: str, model: Type[ModelT], default: Any) -> Any:
        raw = self.store.load(key, None)
        if raw is None:
            return default
        try:
            return model.model_validate(raw)
        except ValidationError as e:
            self._activity.storage_read_failed(key, str(e))
            return default

    def save_list(self, key: str, items: Iterable[BaseModel]) -> None:
        payload = [item.model_dump(mode="json") for item in items]
        self.store.save(key, payload + self._rejected.get(key, []))

    def save_model(self, key: str, item: Optional[BaseModel]) -> None:
        self.store.save(key, item.model_dump(mode="json") if item is not None else None)


class AppState:
    """
    One session over the application collections.

    Collections are loaded once and served from memory; writes go
    through to the store. The logged-in user belongs to the session.
    With persist_session the login is also saved to the store so a
    restart restores it; a multi-session front end turns that off and
    keeps one AppState per browser over a shared Collections.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        settings: Optional[Settings] = None,
        activity: Optional[ActivityLogger] = None,
        collections: Optional[Collections] = None,
        persist_session: bool = True,
    ):
        if collections is None and store is None:
            raise ValueError("AppState needs a store or a Collections instance")

        self._settings = settings or get_settings()
        self._dues_settings = self._settings.dues
        self._activity = activity or ActivityLogger("rt_admin.state")
        self._data = collections or Collections(store, self._activity)
        self._persist_session = persist_session

        self._user: Optional[User] = (
            self._data.load_model(SESSION_KEY, User, None) if persist_session else None
        )

    @staticmethod
    def _raise_if_invalid(result: ValidationResult) -> None:
        if result.has_errors:
            raise ValidationFailedError(result)

    # =========================================================================
    # SESSION
    # =========================================================================

    def _save_session(self, user: Optional[User]) -> None:
        if self._persist_session:
            self._data.save_model(SESSION_KEY, user)

    @property
    def current_user(self) -> Optional[User]:
        return self._user

    @property
    def is_public(self) -> bool:
        return self._user is None

    def login(self, username: str, password: str) -> Optional[User]:
        """
        Start a session.

        Returns:
            The User, or None when the credentials do not match
        """
        user = authenticate(username, password, self._settings)
        if user is None:
            self._activity.login_failed(username)
            return None

        self._save_session(user)
        self._user = user
        self._activity.login_succeeded(user.username, user.role.value)
        return user

    def logout(self) -> None:
        if self._user is None:
            return
        username = self._user.username
        self._save_session(None)
        self._user = None
        self._activity.logged_out(username)

    # =========================================================================
    # RESIDENTS
    # =========================================================================

    @property
    def residents(self) -> list[Resident]:
        return list(self._data.residents)

    @property
    def admin_lists(self) -> AdminLists:
        return self._data.admin_lists

    def get_resident(self, resident_id: Union[UUID, str]) -> Optional[Resident]:
        resident_id = UUID(str(resident_id))
        return next((r for r in self._data.residents if r.id == resident_id), None)

    def save_resident(self, resident: Resident) -> Resident:
        """
        Add a resident, or replace the one with the same id.

        A member who is not the head takes the head's address and unit
        when the household already has a head.

        Raises:
            PermissionDeniedError: If the session is not an admin
            ValidationFailedError: If the record does not validate
        """
        require(can_manage_residents(self._user), "mengelola data warga")

        if not resident.is_head:
            head = find_head(self._data.residents, resident.household_id)
            if head is not None and head.id != resident.id:
                resident = resident.model_copy(update={"address": head.address, "unit": head.unit})

        self._raise_if_invalid(validate_resident(
            resident,
            self._data.residents,
            enforce_single_head=self._dues_settings.enforce_single_head,
        ))

        created = self.get_resident(resident.id) is None
        if created:
            updated = self._data.residents + [resident]
        else:
            updated = [resident if r.id == resident.id else r for r in self._data.residents]

        self._data.save_list(RESIDENTS_KEY, updated)
        self._data.residents = updated
        self._activity.resident_saved(str(resident.id), resident.household_id, created)
        return resident

    def delete_resident(self, resident_id: Union[UUID, str], confirm: bool = False) -> bool:
        """
        Remove a resident. Without confirm nothing happens.

        Returns:
            True if a resident was removed
        """
        require(can_manage_residents(self._user), "menghapus data warga")
        if not confirm:
            return False

        resident = self.get_resident(resident_id)
        if resident is None:
            return False

        updated = [r for r in self._data.residents if r.id != resident.id]
        self._data.save_list(RESIDENTS_KEY, updated)
        self._data.residents = updated
        self._activity.resident_deleted(str(resident.id))
        return True

    def add_option(self, category: AdminListCategory, value: str) -> AdminLists:
        """Append a trimmed option; blanks and duplicates are ignored."""
        require(can_manage_admin_lists(self._user), "mengelola daftar pilihan")

        updated = self._data.admin_lists.with_option(category, value)
        if updated is self._data.admin_lists:
            return updated

        self._data.save_model(ADMIN_LISTS_KEY, updated)
        self._data.admin_lists = updated
        self._activity.admin_list_changed(AdminListCategory(category).value, value.strip(), "added")
        return updated

    def remove_option(self, category: AdminListCategory, value: str) -> AdminLists:
        """Remove an option. Residents already using it keep their value."""
        require(can_manage_admin_lists(self._user), "mengelola daftar pilihan")

        updated = self._data.admin_lists.without_option(category, value)
        self._data.save_model(ADMIN_LISTS_KEY, updated)
        self._data.admin_lists = updated
        self._activity.admin_list_changed(AdminListCategory(category).value, value, "removed")
        return updated

    # =========================================================================
    # MONEY
    # =========================================================================

    @property
    def rates(self) -> DuesRateConfig:
        return self._data.rates

    @property
    def payments(self) -> list[DuesPayment]:
        return list(self._data.payments)

    @property
    def expenses(self) -> list[Expense]:
        return list(self._data.expenses)

    @property
    def other_income(self) -> list[OtherIncome]:
        return list(self._data.other_income)

    def update_rates(self, rates: DuesRateConfig) -> DuesRateConfig:
        """Replace the rate table. Recorded payments keep their amounts."""
        require(can_edit_rates(self._user), "mengubah pengaturan iuran")

        # model_copy() skips validation, so re-check amounts built with with_rate()
        try:
            rates = DuesRateConfig.model_validate(rates.model_dump())
        except ValidationError as e:
            raise ValidationFailedError(ValidationResult(issues=[
                ValidationIssue(
                    field=".".join(str(part) for part in error["loc"]),
                    issue_type="invalid_value",
                    message=f"Tarif tidak valid: {error['msg']}",
                    severity="error",
                )
                for error in e.errors()
            ])) from e

        self._data.save_model(DUES_RATES_KEY, rates)
        self._data.rates = rates
        self._activity.rates_updated(rates.model_dump(mode="json"))
        return rates

    def pay_dues(
        self,
        household_id: str,
        year: int,
        month: int,
        dues_type: DuesType,
        paid_at: Optional[datetime] = None,
    ) -> DuesPayment:
        """
        Record one month of RT or PKK dues for a household.

        Paying an already-paid obligation replaces the earlier record.

        Raises:
            PermissionDeniedError: If the session cannot manage finance
            ValidationFailedError: Malformed id, unknown household or bad period
        """
        require(can_manage_finance(self._user), "mencatat pembayaran iuran")

        household_id = (household_id or "").strip()
        result = validate_household_id(household_id)
        members = [r for r in self._data.residents if r.household_id == household_id]
        if not result.has_errors and not members:
            result = result.merge(ValidationResult(issues=[ValidationIssue(
                field="household_id",
                issue_type="not_found",
                message=f"Nomor KK {household_id} tidak terdaftar.",
                severity="error",
            )]))
        if not 1900 <= year <= 9999:
            result = result.merge(ValidationResult(issues=[ValidationIssue(
                field="year",
                issue_type="invalid_value",
                message=f"Tahun {year} tidak valid.",
                severity="error",
            )]))
        if not 1 <= month <= 12:
            result = result.merge(ValidationResult(issues=[ValidationIssue(
                field="month",
                issue_type="invalid_value",
                message="Bulan harus antara 1 dan 12.",
                severity="error",
            )]))
        self._raise_if_invalid(result)

        head = find_head(members, household_id)
        category = resolve_category(
            household_id, head, self._dues_settings.default_category, self._activity
        )
        replaced = any(
            p.household_id == household_id and p.year == year and p.month == month
            and p.dues_type == DuesType(dues_type)
            for p in self._data.payments
        )

        updated, payment = record_payment(
            self._data.payments, household_id, year, month, DuesType(dues_type),
            self._data.rates, category, paid_at,
        )
        self._data.save_list(DUES_PAYMENTS_KEY, updated)
        self._data.payments = updated
        self._activity.dues_payment_recorded(
            household_id, year, month, payment.dues_type.value, payment.amount, replaced
        )
        return payment

    def add_other_income(
        self,
        entry_date: Optional[date],
        description: str,
        amount: Union[Decimal, int, str],
    ) -> OtherIncome:
        require(can_manage_finance(self._user), "mencatat pemasukan")
        self._raise_if_invalid(validate_entry(description, amount, entry_date))

        income = OtherIncome(date=entry_date, description=description, amount=Decimal(str(amount)))
        updated = self._data.other_income + [income]
        self._data.save_list(OTHER_INCOME_KEY, updated)
        self._data.other_income = updated
        self._activity.entry_added("other_income", str(income.id), income.amount)
        return income

    def delete_other_income(self, entry_id: Union[UUID, str], confirm: bool = False) -> bool:
        require(can_manage_finance(self._user), "menghapus pemasukan")
        if not confirm:
            return False

        entry_id = UUID(str(entry_id))
        updated = [i for i in self._data.other_income if i.id != entry_id]
        if len(updated) == len(self._data.other_income):
            return False

        self._data.save_list(OTHER_INCOME_KEY, updated)
        self._data.other_income = updated
        self._activity.entry_deleted("other_income", str(entry_id))
        return True

    def add_expense(
        self,
        entry_date: Optional[date],
        description: str,
        amount: Union[Decimal, int, str],
        receipt_bytes: Optional[bytes] = None,
        receipt_mime: Optional[str] = None,
    ) -> Expense:
        """
        Record an expense, optionally with a receipt image.

        Raises:
            PermissionDeniedError: If the session cannot manage finance
            ValidationFailedError: If the entry does not validate
            ReceiptError: If the receipt image is rejected
        """
        require(can_manage_finance(self._user), "mencatat pengeluaran")
        self._raise_if_invalid(validate_entry(description, amount, entry_date))

        receipt = encode_receipt(receipt_bytes, receipt_mime, self._settings) if receipt_bytes else None
        expense = Expense(
            date=entry_date,
            description=description,
            amount=Decimal(str(amount)),
            receipt=receipt,
        )
        updated = self._data.expenses + [expense]
        self._data.save_list(EXPENSES_KEY, updated)
        self._data.expenses = updated
        self._activity.entry_added("expense", str(expense.id), expense.amount)
        return expense

    def delete_expense(self, entry_id: Union[UUID, str], confirm: bool = False) -> bool:
        require(can_manage_finance(self._user), "menghapus pengeluaran")
        if not confirm:
            return False

        entry_id = UUID(str(entry_id))
        updated = [e for e in self._data.expenses if e.id != entry_id]
        if len(updated) == len(self._data.expenses):
            return False

        self._data.save_list(EXPENSES_KEY, updated)
        self._data.expenses = updated
        self._activity.entry_deleted("expense", str(entry_id))
        return True

    # =========================================================================
    # READ MODELS
    # =========================================================================

    def households(self) -> list[HouseholdSummary]:
        return summarize_households(
            self._data.residents,
            self._dues_settings.default_category,
            self._activity,
            self._data.defaulted_households,
        )

    def demographics(self, today: Optional[date] = None) -> Demographics:
        return build_demographics(self._data.residents, today)

    def arrears(self, household_id: str, today: Optional[date] = None) -> ArrearsLookupResult:
        return check_arrears(
            household_id,
            self._data.residents,
            self._data.payments,
            self._data.rates,
            today=today,
            window=self._dues_settings.arrears_window_months,
            default_category=self._dues_settings.default_category,
            activity=self._activity,
        )

    def payment_status(self, year: int, month: int) -> list[HouseholdPaymentStatus]:
        return monthly_payment_status(year, month, self._data.residents, self._data.payments)

    def month_summary(self, year: int, month: int) -> MonthlyFinancialSummary:
        return summarize_month(year, month, self._data.payments, self._data.other_income, self._data.expenses)

    def recap(self, year: int, month: int) -> FinancialRecap:
        return build_recap(
            year,
            month,
            self._data.residents,
            self.households(),
            self._data.payments,
            self._data.other_income,
            self._data.expenses,
            self._data.rates,
        )

    def transactions(self, year: int, month: int, public: Optional[bool] = None) -> list[Transaction]:
        """Combined listing; anonymized unless someone is logged in."""
        public = self.is_public if public is None else public
        return list_transactions(
            year,
            month,
            self._data.residents,
            self._data.payments,
            self._data.other_income,
            self._data.expenses,
            public=public,
        )

    def export_report(
        self,
        kind: ReportKind,
        year: int,
        month: int,
        directory: Union[str, Path],
    ) -> Path:
        """
        Write one of the canned CSV reports and return its path.

        Raises:
            PermissionDeniedError: If the session cannot manage finance
        """
        require(can_manage_finance(self._user), "mengekspor laporan")

        rows = build_report(
            kind,
            year,
            month,
            self.month_summary(year, month),
            self.transactions(year, month, public=False),
        )
        path = export_csv(report_filename(kind, year, month), rows, directory)
        self._activity.report_exported(str(path), len(rows))
        return path


def create_collections(
    data_dir: Optional[Union[str, Path]] = None,
    in_memory: bool = False,
    settings: Optional[Settings] = None,
    activity: Optional[ActivityLogger] = None,
) -> Collections:
    """
    Open the store and load every collection.

    Args:
        data_dir: Where JSON files live; defaults to the storage settings
        in_memory: Use a throwaway in-memory store (tests, demos)
        settings: Defaults to get_settings()
    """
    settings = settings or get_settings()
    activity = activity or ActivityLogger("rt_admin.state")

    if in_memory:
        store = InMemoryStore(schema_version=settings.storage.schema_version, activity=activity)
    else:
        store = JsonFileStore(
            data_dir=Path(data_dir) if data_dir else settings.storage.data_dir,
            schema_version=settings.storage.schema_version,
            activity=activity,
        )

    register_legacy_migrations(store)
    return Collections(store, activity)


def create_app_state(
    data_dir: Optional[Union[str, Path]] = None,
    in_memory: bool = False,
    settings: Optional[Settings] = None,
) -> AppState:
    """
    Factory function to create a single-session application state.

    Returns:
        AppState backed by a store that understands legacy payloads
    """
    settings = settings or get_settings()
    activity = ActivityLogger("rt_admin.state")
    collections = create_collections(data_dir, in_memory, settings, activity)
    return AppState(settings=settings, activity=activity, collections=collections)
