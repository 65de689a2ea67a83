"""
Version 0 -> 1 migrations.

Version 0 is the bare layout exported from the earlier browser app:
no envelope, Indonesian camelCase field names, and ids that are
timestamps rather than UUIDs. Each migration renames the fields it knows
and leaves anything else alone, so a bare payload already in the current
layout passes through unchanged.
"""

from typing import Any
from uuid import NAMESPACE_URL, UUID, uuid5

from rt_admin.services.storage.interface import (
    ADMIN_LISTS_KEY,
    DUES_PAYMENTS_KEY,
    DUES_RATES_KEY,
    EXPENSES_KEY,
    OTHER_INCOME_KEY,
    RESIDENTS_KEY,
    SESSION_KEY,
    KeyValueStore,
)


RESIDENT_FIELDS = {
    "nama": "name",
    "noKK": "household_id",
    "alamat": "address",
    "nik": "national_id",
    "jenisKelamin": "sex",
    "tempatLahir": "birth_place",
    "tanggalLahir": "birth_date",
    "agama": "religion",
    "pendidikan": "education",
    "pekerjaan": "occupation",
    "statusPerkawinan": "marital_status",
    "tanggalPerkawinanPerceraian": "marriage_date",
    "statusHubungan": "relationship_status",
    "noRumah": "unit",
    "kategoriKK": "category",
    "noHP": "phone",
}

ADMIN_LIST_FIELDS = {
    "agama": "religion",
    "pendidikan": "education",
    "pekerjaan": "occupation",
    "statusPerkawinan": "marital_status",
    "statusHubungan": "relationship_status",
    "noRumah": "unit",
}

PAYMENT_FIELDS = {
    "noKK": "household_id",
    "tahun": "year",
    "bulan": "month",
    "jenis": "dues_type",
    "jumlah": "amount",
    "tanggalBayar": "paid_at",
}

ENTRY_FIELDS = {
    "tanggal": "date",
    "deskripsi": "description",
    "jumlah": "amount",
    "bukti": "receipt",
}


def _rename(record: dict, fields: dict[str, str]) -> dict:
    return {fields.get(key, key): value for key, value in record.items()}


def legacy_uuid(value: Any) -> str:
    """Keep real UUIDs; map anything else to a stable uuid5."""
    try:
        return str(UUID(str(value)))
    except ValueError:
        return str(uuid5(NAMESPACE_URL, f"rt-admin:{value}"))


def _with_uuid(record: dict) -> dict:
    if "id" in record:
        record = {**record, "id": legacy_uuid(record["id"])}
    return record


def migrate_residents(payload: list) -> list:
    return [_with_uuid(_rename(r, RESIDENT_FIELDS)) for r in payload]


def migrate_admin_lists(payload: dict) -> dict:
    return _rename(payload, ADMIN_LIST_FIELDS)


def migrate_payments(payload: list) -> list:
    # The id is derived from the other fields on load
    return [_rename({k: v for k, v in p.items() if k != "id"}, PAYMENT_FIELDS) for p in payload]


def migrate_rates(payload: dict) -> dict:
    return {
        category: _rename(rate, {"RT": "rt", "PKK": "pkk"}) if isinstance(rate, dict) else rate
        for category, rate in payload.items()
    }


def migrate_entries(payload: list) -> list:
    return [_with_uuid(_rename(e, ENTRY_FIELDS)) for e in payload]


def migrate_session(payload: Any) -> Any:
    return payload


LEGACY_MIGRATIONS = {
    SESSION_KEY: migrate_session,
    RESIDENTS_KEY: migrate_residents,
    ADMIN_LISTS_KEY: migrate_admin_lists,
    DUES_PAYMENTS_KEY: migrate_payments,
    DUES_RATES_KEY: migrate_rates,
    EXPENSES_KEY: migrate_entries,
    OTHER_INCOME_KEY: migrate_entries,
}


def register_legacy_migrations(store: KeyValueStore) -> KeyValueStore:
    """Teach a store how to read version 0 payloads for every key."""
    for key, migration in LEGACY_MIGRATIONS.items():
        store.register_migration(key, 0, migration)
    return store
