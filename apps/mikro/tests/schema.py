"""Minimal Mikro schema for tests: only the tables and columns the engine touches."""
from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any, Dict, List

from django.db import connections

from apps.mikro.routers import mikro_alias

MIKRO_TABLES: Dict[str, str] = {
    "CARI_HESAPLAR": """
        CREATE TABLE IF NOT EXISTS CARI_HESAPLAR (
            cari_kod VARCHAR(25) PRIMARY KEY,
            cari_unvan1 VARCHAR(127)
        )
    """,
    "STOKLAR": """
        CREATE TABLE IF NOT EXISTS STOKLAR (
            sto_kod VARCHAR(25) PRIMARY KEY,
            sto_isim VARCHAR(127),
            sto_birim1_ad VARCHAR(10),
            sto_toptan_vergi INTEGER DEFAULT 0
        )
    """,
    "SIPARISLER": """
        CREATE TABLE IF NOT EXISTS SIPARISLER (
            sip_Guid VARCHAR(36) PRIMARY KEY,
            sip_evrakno_seri VARCHAR(20),
            sip_evrakno_sira INTEGER,
            sip_satirno INTEGER,
            sip_tip INTEGER DEFAULT 0,
            sip_musteri_kod VARCHAR(25),
            sip_stok_kod VARCHAR(25),
            sip_miktar NUMERIC(18, 4) DEFAULT 0,
            sip_teslim_miktar NUMERIC(18, 4) DEFAULT 0,
            sip_b_fiyat NUMERIC(18, 4) DEFAULT 0,
            sip_tutar NUMERIC(18, 4) DEFAULT 0,
            sip_vergi NUMERIC(18, 4) DEFAULT 0,
            sip_vergi_pntr INTEGER DEFAULT 0,
            sip_iptal INTEGER DEFAULT 0,
            sip_kapat_fl INTEGER DEFAULT 0,
            sip_depono INTEGER DEFAULT 1,
            sip_rezervasyon_miktari NUMERIC(18, 4) DEFAULT 0,
            sip_rezerveden_teslim_edilen NUMERIC(18, 4) DEFAULT 0,
            sip_lastup_date DATETIME
        )
    """,
    "STOK_HAREKETLERI": """
        CREATE TABLE IF NOT EXISTS STOK_HAREKETLERI (
            sth_Guid VARCHAR(36) PRIMARY KEY,
            sth_tarih DATETIME,
            sth_tip INTEGER,
            sth_cins INTEGER,
            sth_normal_iade INTEGER,
            sth_evraktip INTEGER,
            sth_evrakno_seri VARCHAR(20),
            sth_evrakno_sira INTEGER,
            sth_satirno INTEGER,
            sth_belge_no VARCHAR(50),
            sth_stok_kod VARCHAR(25),
            sth_cari_kodu VARCHAR(25),
            sth_miktar NUMERIC(18, 4),
            sth_tutar NUMERIC(18, 4),
            sth_vergi NUMERIC(18, 4),
            sth_vergi_pntr INTEGER,
            sth_cikis_depo_no INTEGER,
            sth_sip_uid VARCHAR(36),
            sth_aciklama VARCHAR(255),
            sth_create_date DATETIME,
            sth_lastup_date DATETIME
        )
    """,
    "E_IRSALIYE_DETAYLARI": """
        CREATE TABLE IF NOT EXISTS E_IRSALIYE_DETAYLARI (
            eir_Guid VARCHAR(36) PRIMARY KEY,
            eir_evrak_tip INTEGER,
            eir_evrakno_seri VARCHAR(20),
            eir_evrakno_sira INTEGER,
            eir_sofor_adi VARCHAR(50),
            eir_sofor_soyadi VARCHAR(50),
            eir_sofor_tckn VARCHAR(11),
            eir_arac_adi VARCHAR(100),
            eir_arac_plaka VARCHAR(20),
            eir_lastup_date DATETIME
        )
    """,
}


def create_mikro_schema() -> None:
    with connections[mikro_alias()].cursor() as cursor:
        for ddl in MIKRO_TABLES.values():
            cursor.execute(ddl)


def clear_mikro_tables() -> None:
    with connections[mikro_alias()].cursor() as cursor:
        for table in MIKRO_TABLES:
            cursor.execute(f"DELETE FROM {table}")


def _insert(table: str, row: Dict[str, Any]) -> None:
    columns = ", ".join(row.keys())
    values = ", ".join(["%s"] * len(row))
    with connections[mikro_alias()].cursor() as cursor:
        cursor.execute(f"INSERT INTO {table} ({columns}) VALUES ({values})", list(row.values()))


def insert_customer(code: str, name: str) -> None:
    _insert("CARI_HESAPLAR", {"cari_kod": code, "cari_unvan1": name})


def insert_product(code: str, name: str = "", *, vat_code: int = 4, unit: str = "ADET") -> None:
    _insert(
        "STOKLAR",
        {"sto_kod": code, "sto_isim": name or code, "sto_birim1_ad": unit, "sto_toptan_vergi": vat_code},
    )


def insert_order_line(
    series: str,
    sequence: int,
    row_number: int,
    product_code: str,
    *,
    customer_code: str = "C-1",
    quantity: Any = 0,
    delivered: Any = 0,
    unit_price: Any = 0,
    vat_amount: Any = None,
    vat_code: int = 4,
    reserved: Any = 0,
    reserved_delivered: Any = 0,
    cancelled: bool = False,
    closed: bool = False,
    warehouse_no: int = 1,
) -> str:
    quantity = Decimal(str(quantity))
    unit_price = Decimal(str(unit_price))
    amount = quantity * unit_price
    if vat_amount is None:
        vat_amount = amount * Decimal("0.18") if vat_code == 4 else Decimal("0")
    guid = str(uuid.uuid4())
    _insert(
        "SIPARISLER",
        {
            "sip_Guid": guid,
            "sip_evrakno_seri": series,
            "sip_evrakno_sira": sequence,
            "sip_satirno": row_number,
            "sip_tip": 0,
            "sip_musteri_kod": customer_code,
            "sip_stok_kod": product_code,
            "sip_miktar": str(quantity),
            "sip_teslim_miktar": str(delivered),
            "sip_b_fiyat": str(unit_price),
            "sip_tutar": str(amount),
            "sip_vergi": str(vat_amount),
            "sip_vergi_pntr": vat_code,
            "sip_iptal": 1 if cancelled else 0,
            "sip_kapat_fl": 1 if closed else 0,
            "sip_depono": warehouse_no,
            "sip_rezervasyon_miktari": str(reserved),
            "sip_rezerveden_teslim_edilen": str(reserved_delivered),
        },
    )
    return guid


def insert_movement(**values: Any) -> None:
    row = {"sth_Guid": str(uuid.uuid4())}
    row.update(values)
    _insert("STOK_HAREKETLERI", row)


def fetch_all(table: str, order_by: str = "") -> List[Dict[str, Any]]:
    sql = f"SELECT * FROM {table}"
    if order_by:
        sql += f" ORDER BY {order_by}"
    with connections[mikro_alias()].cursor() as cursor:
        cursor.execute(sql)
        columns = [column[0] for column in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]
