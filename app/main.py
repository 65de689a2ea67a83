"""
Streamlit Frontend for RT Admin

The interface the RT committee (ketua, sekretaris, bendahara) and
residents use. Residents see the public pages without logging in; the
committee logs in for data entry.

DESIGN PRINCIPLES:
1. Every page is a thin view over AppState
2. Explicit confirmation for every deletion and payment
3. Errors are shown inline, never crash the page
4. Public pages never show who paid what

Run with: streamlit run app/main.py
"""

import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import streamlit as st

from rt_admin.activity import configure_logging
from rt_admin.auth import (
    PermissionDeniedError,
    can_edit_rates,
    can_manage_admin_lists,
    can_manage_finance,
    can_manage_residents,
)
from rt_admin.config import get_settings, validate_all_settings
from rt_admin.households import configure_collation, search_households
from rt_admin.models import (
    ADMIN_LIST_LABELS,
    DUES_LABELS,
    AdminListCategory,
    DuesRateConfig,
    DuesType,
    HouseholdCategory,
    Resident,
    Sex,
    TransactionKind,
)
from rt_admin.reports import (
    ReportKind,
    format_currency,
    format_date,
    month_name,
    period_label,
)
from rt_admin.services import ReceiptError, decode_receipt
from rt_admin.services.storage import StorageError
from rt_admin.state import AppState, Collections, create_collections
from rt_admin.validation import ValidationFailedError


# Errors every action can raise; all of them are shown inline
USER_ERRORS = (ValidationFailedError, PermissionDeniedError, StorageError, ReceiptError, ValueError)


# Page configuration
st.set_page_config(
    page_title="Administrasi RT",
    page_icon="🏘️",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .big-number {
        font-size: 2.2em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_collections() -> Collections:
    """Load the stored collections once per server process."""
    app_settings = get_settings().app
    configure_logging(app_settings.log_level)
    configure_collation(app_settings.collation_locale)
    return create_collections()


def get_state() -> AppState:
    """
    The AppState of this browser session.

    Collections are shared by every session; the logged-in user is not,
    so each session keeps its own AppState in st.session_state.
    """
    if "app_state" not in st.session_state:
        st.session_state.app_state = AppState(
            collections=get_collections(),
            persist_session=False,
        )
    return st.session_state.app_state


def show_error(error: Exception) -> None:
    if isinstance(error, ValidationFailedError):
        for message in error.result.messages:
            st.error(message)
    else:
        st.error(str(error))


def period_picker(key: str) -> tuple[int, int]:
    """Year and month selectors; defaults to the current month."""
    today = date.today()
    col1, col2 = st.columns(2)
    with col1:
        year = st.selectbox("Tahun", [today.year - i for i in range(5)], key=f"{key}_year")
    with col2:
        month = st.selectbox(
            "Bulan",
            list(range(1, 13)),
            index=today.month - 1,
            format_func=month_name,
            key=f"{key}_month",
        )
    return year, month


def main():
    """Main application entry point."""
    state = get_state()
    user = state.current_user

    st.sidebar.title("🏘️ Administrasi RT")
    st.sidebar.markdown("---")

    if user is None:
        pages = {
            "📊 Dashboard": render_dashboard_page,
            "📋 Rekapitulasi": render_public_recap_page,
            "🔎 Cek Tagihan": render_arrears_page,
            "🔐 Login Pengurus": render_login_page,
        }
    else:
        pages = {"📊 Dashboard": render_dashboard_page}
        if can_manage_residents(user):
            pages["👥 Data Warga"] = render_residents_page
        pages["🏠 Data KK"] = render_households_page
        if can_manage_finance(user):
            pages["💰 Keuangan"] = render_finance_page
        pages["🗓️ Riwayat Iuran"] = render_history_page
        pages["📋 Rekapitulasi"] = render_recap_page
        if can_edit_rates(user):
            pages["⚙️ Pengaturan Iuran"] = render_rates_page
        if can_manage_admin_lists(user):
            pages["🗂️ Daftar Pilihan"] = render_admin_lists_page
        pages["🔧 Status Sistem"] = render_settings_page

    page = st.sidebar.radio("Menu:", list(pages), index=0)

    st.sidebar.markdown("---")
    if user is not None:
        st.sidebar.markdown(f"Masuk sebagai **{user.username}** ({user.role.value})")
        if st.sidebar.button("Keluar"):
            try:
                state.logout()
            except StorageError as e:
                st.sidebar.error(str(e))
            st.rerun()

    pages[page](state)


# =============================================================================
# PUBLIC PAGES
# =============================================================================

def render_login_page(state: AppState):
    st.title("🔐 Login Pengurus")

    with st.form("login"):
        username = st.text_input("Nama Pengguna", placeholder="admin / bendahara")
        password = st.text_input("Kata Sandi", type="password")
        submitted = st.form_submit_button("Masuk")

    if submitted:
        try:
            user = state.login(username, password)
        except StorageError as e:
            show_error(e)
            return
        if user is None:
            st.error("Nama pengguna atau kata sandi salah.")
        else:
            st.rerun()


def render_dashboard_page(state: AppState):
    st.title("📊 Dashboard Warga")
    stats = state.demographics()

    col1, col2 = st.columns(2)
    col1.metric("Total Warga", stats.total_residents)
    col2.metric("Total Keluarga", stats.total_households)

    breakdowns = [
        ("Jenis Kelamin", stats.by_sex),
        ("Kelompok Usia", stats.by_age_group),
        ("Agama", stats.by_religion),
        ("Pendidikan", stats.by_education),
        ("Status Perkawinan", stats.by_marital_status),
    ]
    columns = st.columns(2)
    for index, (title, data) in enumerate(breakdowns):
        with columns[index % 2]:
            st.subheader(title)
            if not data:
                st.caption("Tidak ada data.")
                continue
            total = sum(data.values())
            for label, count in data.items():
                st.markdown(f"{label}: **{count}** warga")
                st.progress(count / total if total else 0.0)


def render_public_recap_page(state: AppState):
    st.title("📋 Rekapitulasi Keuangan")
    year, month = period_picker("public_recap")
    render_recap_summary(state, year, month)

    st.subheader("Transaksi")
    for tx in state.transactions(year, month, public=True):
        sign = "+" if tx.kind == TransactionKind.INCOME else "-"
        st.markdown(f"{format_date(tx.occurred_at)} · {tx.description} · {sign}{format_currency(tx.amount)}")


def render_arrears_page(state: AppState):
    st.title("🔎 Cek Tagihan Iuran Warga")
    window = get_settings().dues.arrears_window_months
    st.markdown(
        f"Masukkan Nomor Kartu Keluarga (KK) untuk melihat tagihan yang belum "
        f"dibayar dalam {window} bulan terakhir."
    )

    with st.form("arrears"):
        household_id = st.text_input(
            "Nomor Kartu Keluarga (16 Digit)",
            max_chars=16,
            placeholder="Contoh: 3201010101010001",
        )
        submitted = st.form_submit_button("Cek Tagihan")

    if not submitted:
        return

    result = state.arrears(household_id)
    if not result.success:
        st.error(result.error_message)
        return

    st.markdown(f"Kepala Keluarga: **{result.head_name}**")
    st.markdown(f"Nomor Rumah: **{result.unit}**")

    if not result.has_arrears:
        st.success("Tidak ada tunggakan. Terima kasih!")
        return

    st.warning("Ditemukan tunggakan iuran berikut. Mohon segera selesaikan pembayaran ke Bendahara RT.")
    for line in result.lines:
        parts = []
        if line.rt_due is not None:
            parts.append(f"Iuran RT {format_currency(line.rt_due)}")
        if line.pkk_due is not None:
            parts.append(f"Iuran PKK {format_currency(line.pkk_due)}")
        st.markdown(f"**{line.month_name} {line.year}**: {' · '.join(parts)}")
    st.markdown(f"### Total Tagihan: {format_currency(result.total)}")


# =============================================================================
# RESIDENTS AND HOUSEHOLDS
# =============================================================================

def render_residents_page(state: AppState):
    st.title("👥 Data Warga")
    lists = state.admin_lists

    residents = state.residents
    search = st.text_input("Cari warga", key="resident_search").strip().lower()
    if search:
        residents = [
            r for r in residents
            if search in r.name.lower() or search in r.household_id or search in r.unit.lower()
        ]

    st.dataframe(
        [
            {
                "Nama": r.name,
                "No. KK": r.household_id,
                "NIK": r.national_id,
                "Status": r.relationship_status,
                "No. Rumah": r.unit,
                "No. HP": r.phone or "",
            }
            for r in residents
        ],
        use_container_width=True,
    )

    options = {"➕ Warga baru": None}
    options.update({f"{r.name} ({r.household_id})": r for r in state.residents})
    choice = st.selectbox("Tambah atau edit", list(options))
    current = options[choice]

    with st.form("resident_form"):
        name = st.text_input("Nama", value=current.name if current else "")
        household_id = st.text_input("No. KK", value=current.household_id if current else "", max_chars=16)
        national_id = st.text_input("NIK", value=current.national_id if current else "", max_chars=16)
        sex = st.selectbox("Jenis Kelamin", list(Sex), format_func=lambda s: s.value,
                           index=list(Sex).index(current.sex) if current else 0)
        birth_place = st.text_input("Tempat Lahir", value=current.birth_place if current else "")
        birth_date = st.date_input("Tanggal Lahir", value=current.birth_date if current else None,
                                   min_value=date(1900, 1, 1))
        religion = select_option("Agama", lists.religion, current.religion if current else "")
        education = select_option("Pendidikan", lists.education, current.education if current else "")
        occupation = select_option("Pekerjaan", lists.occupation, current.occupation if current else "")
        marital_status = select_option("Status Perkawinan", lists.marital_status,
                                       current.marital_status if current else "")
        marriage_date = st.date_input("Tanggal Perkawinan/Perceraian",
                                      value=current.marriage_date if current else None,
                                      min_value=date(1900, 1, 1))
        relationship = select_option("Status Hubungan Dalam Keluarga", lists.relationship_status,
                                     current.relationship_status if current else "")
        unit = select_option("Nomor Rumah", lists.unit, current.unit if current else "")
        address = st.text_area("Alamat", value=current.address if current else "")
        category = st.selectbox(
            "Kategori Rumah (Kepala Keluarga)",
            [None] + list(HouseholdCategory),
            index=([None] + list(HouseholdCategory)).index(current.category) if current else 0,
            format_func=lambda c: "-" if c is None else c.value,
        )
        phone = st.text_input("No. HP", value=current.phone if current and current.phone else "")
        submitted = st.form_submit_button("Simpan")

    if submitted:
        try:
            data = dict(
                name=name,
                household_id=household_id,
                national_id=national_id,
                sex=sex,
                birth_place=birth_place,
                birth_date=birth_date,
                religion=religion,
                education=education,
                occupation=occupation,
                marital_status=marital_status,
                marriage_date=marriage_date,
                relationship_status=relationship,
                unit=unit,
                address=address,
                category=category,
                phone=phone,
            )
            if current:
                data["id"] = current.id
            saved = state.save_resident(Resident(**data))
            st.success(f"Data {saved.name} tersimpan.")
        except USER_ERRORS as e:
            show_error(e)

    if current:
        st.markdown("---")
        confirm = st.checkbox("Saya yakin ingin menghapus data warga ini", key="confirm_delete_resident")
        if st.button("Hapus warga"):
            try:
                if state.delete_resident(current.id, confirm=confirm):
                    st.success("Data warga dihapus.")
                    st.rerun()
                else:
                    st.info("Centang konfirmasi terlebih dahulu.")
            except USER_ERRORS as e:
                show_error(e)


def select_option(label: str, options: list[str], current: str) -> str:
    # Keep a stored value that has since been removed from the list
    choices = [""] + options + ([current] if current and current not in options else [])
    return st.selectbox(label, choices, index=choices.index(current) if current in choices else 0)


def render_households_page(state: AppState):
    st.title("🏠 Data Kartu Keluarga")
    term = st.text_input("Cari KK...")
    households = search_households(state.households(), term)

    st.dataframe(
        [
            {
                "No. KK": h.household_id,
                "Kepala Keluarga": h.head_name,
                "No. HP": h.phone or "",
                "Alamat": h.address,
                "No. Rumah": h.unit,
                "Anggota": h.member_count,
                "Kategori": h.category.value,
            }
            for h in households
        ],
        use_container_width=True,
    )


# =============================================================================
# FINANCE
# =============================================================================

def render_finance_page(state: AppState):
    st.title("💰 Keuangan")
    year, month = period_picker("finance")
    summary = state.month_summary(year, month)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Iuran RT", format_currency(summary.collected_by_type[DuesType.RT]))
    col2.metric("Iuran PKK", format_currency(summary.collected_by_type[DuesType.PKK]))
    col3.metric("Pemasukan Lain", format_currency(summary.other_income_total))
    col4.metric("Pengeluaran", format_currency(summary.expense_total))

    tab_dues, tab_income, tab_expense = st.tabs(["Iuran Warga", "Pemasukan Lain", "Pengeluaran"])

    with tab_dues:
        render_dues_grid(state, year, month)
    with tab_income:
        render_other_income(state, year, month)
    with tab_expense:
        render_expenses(state, year, month)


def render_dues_grid(state: AppState, year: int, month: int):
    households = [h for h in state.households() if h.has_head]
    statuses = {s.household_id: s for s in state.payment_status(year, month)}

    for household in households:
        status = statuses.get(household.household_id)
        rate = state.rates.rate_for(household.category)
        cols = st.columns([3, 2, 2])
        cols[0].markdown(
            f"**{household.unit}** · {household.head_name} (Kategori {household.category.value})"
        )
        for col, dues_type, paid_at in (
            (cols[1], DuesType.RT, status.rt_paid_at if status else None),
            (cols[2], DuesType.PKK, status.pkk_paid_at if status else None),
        ):
            if paid_at is not None:
                col.success(f"{DUES_LABELS[dues_type]} lunas {format_date(paid_at)}")
                continue
            label = f"Bayar {dues_type.value} {format_currency(rate.for_type(dues_type))}"
            if col.button(label, key=f"pay_{household.household_id}_{dues_type.value}_{year}_{month}"):
                try:
                    state.pay_dues(household.household_id, year, month, dues_type)
                    st.rerun()
                except USER_ERRORS as e:
                    show_error(e)


def render_other_income(state: AppState, year: int, month: int):
    with st.form("income_form", clear_on_submit=True):
        entry_date = st.date_input("Tanggal", value=date.today())
        description = st.text_input("Keterangan")
        amount = st.number_input("Jumlah (Rp)", min_value=0, step=1000)
        submitted = st.form_submit_button("Tambah Pemasukan")

    if submitted:
        try:
            state.add_other_income(entry_date, description, Decimal(int(amount)))
            st.success("Pemasukan tercatat.")
        except USER_ERRORS as e:
            show_error(e)

    confirm = st.checkbox("Konfirmasi hapus pemasukan", key="confirm_delete_income")
    for income in state.other_income:
        if (income.date.year, income.date.month) != (year, month):
            continue
        cols = st.columns([5, 1])
        cols[0].markdown(
            f"{format_date(income.date)} · {income.description} · {format_currency(income.amount)}"
        )
        if cols[1].button("Hapus", key=f"del_income_{income.id}"):
            try:
                if state.delete_other_income(income.id, confirm=confirm):
                    st.rerun()
                st.info("Centang konfirmasi terlebih dahulu.")
            except USER_ERRORS as e:
                show_error(e)


def render_expenses(state: AppState, year: int, month: int):
    formats = get_settings().app.supported_formats_list

    with st.form("expense_form", clear_on_submit=True):
        entry_date = st.date_input("Tanggal", value=date.today())
        description = st.text_input("Keterangan")
        amount = st.number_input("Jumlah (Rp)", min_value=0, step=1000)
        receipt = st.file_uploader("Bukti (opsional)", type=formats)
        submitted = st.form_submit_button("Tambah Pengeluaran")

    if submitted:
        try:
            state.add_expense(
                entry_date,
                description,
                Decimal(int(amount)),
                receipt_bytes=receipt.getvalue() if receipt else None,
                receipt_mime=receipt.type if receipt else None,
            )
            st.success("Pengeluaran tercatat.")
        except USER_ERRORS as e:
            show_error(e)

    confirm = st.checkbox("Konfirmasi hapus pengeluaran", key="confirm_delete_expense")
    for expense in state.expenses:
        if (expense.date.year, expense.date.month) != (year, month):
            continue
        cols = st.columns([5, 1])
        cols[0].markdown(
            f"{format_date(expense.date)} · {expense.description} · {format_currency(expense.amount)}"
        )
        if expense.has_receipt:
            with cols[0].expander("Lihat bukti"):
                try:
                    _, image = decode_receipt(expense.receipt)
                    st.image(image, width=300)
                except ReceiptError as e:
                    st.error(str(e))
        if cols[1].button("Hapus", key=f"del_expense_{expense.id}"):
            try:
                if state.delete_expense(expense.id, confirm=confirm):
                    st.rerun()
                st.info("Centang konfirmasi terlebih dahulu.")
            except USER_ERRORS as e:
                show_error(e)


def render_history_page(state: AppState):
    st.title("🗓️ Riwayat Iuran")
    year, month = period_picker("history")
    term = st.text_input("Cari kepala keluarga").strip().lower()

    rows = [s for s in state.payment_status(year, month) if term in s.head_name.lower()]
    st.dataframe(
        [
            {
                "No. Rumah": s.unit,
                "Kepala Keluarga": s.head_name,
                "No. KK": s.household_id,
                "Iuran RT": format_date(s.rt_paid_at) if s.rt_paid else "Belum",
                "Iuran PKK": format_date(s.pkk_paid_at) if s.pkk_paid else "Belum",
            }
            for s in rows
        ],
        use_container_width=True,
    )


def render_recap_summary(state: AppState, year: int, month: int):
    recap = state.recap(year, month)
    summary = recap.summary

    st.subheader(f"Rekapitulasi Keuangan - {period_label(year, month)}")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Pemasukan", format_currency(summary.total_income))
    col2.metric("Total Pengeluaran", format_currency(summary.expense_total))
    col3.metric("Saldo", format_currency(summary.balance))
    col4.metric("Potensi Iuran", format_currency(recap.expected_dues_total))

    col1, col2 = st.columns(2)
    col1.metric("Total Warga", recap.total_residents)
    col2.metric("Total Keluarga", recap.total_households)


def render_recap_page(state: AppState):
    st.title("📋 Rekapitulasi")
    year, month = period_picker("recap")
    render_recap_summary(state, year, month)

    st.subheader("Transaksi")
    st.dataframe(
        [
            {
                "Tanggal": format_date(tx.occurred_at),
                "Keterangan": tx.description,
                "Pemasukan": format_currency(tx.amount) if tx.kind == TransactionKind.INCOME else "",
                "Pengeluaran": format_currency(tx.amount) if tx.kind == TransactionKind.EXPENSE else "",
            }
            for tx in state.transactions(year, month, public=False)
        ],
        use_container_width=True,
    )

    if not can_manage_finance(state.current_user):
        return

    st.subheader("Ekspor Laporan")
    cols = st.columns(len(ReportKind))
    for col, kind in zip(cols, ReportKind):
        if col.button(f"Laporan {kind.value}", key=f"export_{kind.value}"):
            try:
                with tempfile.TemporaryDirectory() as tmp:
                    path = state.export_report(kind, year, month, tmp)
                    content = Path(path).read_bytes()
                st.download_button(
                    f"Unduh {path.name}",
                    data=content,
                    file_name=path.name,
                    mime="text/csv",
                    key=f"download_{kind.value}",
                )
            except USER_ERRORS as e:
                show_error(e)


# =============================================================================
# SETTINGS
# =============================================================================

def render_rates_page(state: AppState):
    st.title("⚙️ Pengaturan Iuran")
    st.caption("Perubahan tarif hanya berlaku untuk pembayaran berikutnya.")

    rates = state.rates
    with st.form("rates_form"):
        values = {}
        for category in HouseholdCategory:
            current = rates.rate_for(category)
            col1, col2 = st.columns(2)
            values[category] = (
                col1.number_input(f"Kategori {category.value} - RT", min_value=0,
                                  value=int(current.rt), step=1000),
                col2.number_input(f"Kategori {category.value} - PKK", min_value=0,
                                  value=int(current.pkk), step=1000),
            )
        submitted = st.form_submit_button("Simpan Pengaturan")

    if submitted:
        updated = DuesRateConfig()
        for category, (rt, pkk) in values.items():
            updated = updated.with_rate(category, DuesType.RT, Decimal(int(rt)))
            updated = updated.with_rate(category, DuesType.PKK, Decimal(int(pkk)))
        try:
            state.update_rates(updated)
            st.success("Pengaturan iuran tersimpan.")
        except USER_ERRORS as e:
            show_error(e)


def render_admin_lists_page(state: AppState):
    st.title("🗂️ Daftar Pilihan Formulir")

    for category in AdminListCategory:
        with st.expander(ADMIN_LIST_LABELS[category]):
            for value in state.admin_lists.options(category):
                cols = st.columns([5, 1])
                cols[0].markdown(value)
                if cols[1].button("Hapus", key=f"remove_{category.value}_{value}"):
                    try:
                        state.remove_option(category, value)
                        st.rerun()
                    except USER_ERRORS as e:
                        show_error(e)

            new_value = st.text_input("Tambah pilihan", key=f"new_{category.value}")
            if st.button("Tambah", key=f"add_{category.value}"):
                try:
                    state.add_option(category, new_value)
                    st.rerun()
                except USER_ERRORS as e:
                    show_error(e)


def render_settings_page(state: AppState):
    st.title("🔧 Status Sistem")

    status = validate_all_settings()
    sections = [
        ("Penyimpanan", "storage"),
        ("Akun Pengurus", "auth"),
        ("Kebijakan Iuran", "dues"),
        ("Aplikasi", "app"),
    ]
    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'Tidak valid')}")

    st.markdown("---")
    st.markdown("### Konfigurasi")
    st.markdown(
        f"Data disimpan di `{get_settings().storage.data_dir}`. "
        "Ubah pengaturan lewat file `.env`; lihat `.env.example`."
    )


if __name__ == "__main__":
    main()
