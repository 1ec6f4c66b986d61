# ruff: noqa: E501
from __future__ import annotations

from pathlib import Path

import pytest
from db.client import session_scope
from db.models.fiscal import Company, FiscalData

from fiscal_ledger.api import ingest_and_persist
from fiscal_ledger.errors import CompanyNotFoundError, DuplicatePeriodError
from fiscal_ledger.models import (
    CompanyRecord,
    ExternalRevenueInput,
    FiscalEntryInput,
    MonthTotals,
    PartnerInput,
)
from fiscal_ledger.persistence import (
    add_fiscal_entry,
    deactivate_partner,
    delete_external_revenue,
    delete_fiscal_entry,
    global_revenue_rows,
    list_companies,
    list_external_revenues,
    list_fiscal_entries,
    list_partners,
    load_dataset,
    save_dataset,
    save_external_revenue,
    save_partner,
    update_fiscal_entry,
)

from tests.helpers.db import bootstrap_sqlite_db
from tests.helpers.declarations import block, write_declaration

CNPJ = "11.222.333/0001-44"


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "fiscal.sqlite3")


@pytest.fixture()
def seeded(db_url: str) -> str:
    dataset = {
        CNPJ: CompanyRecord(
            "ACME",
            {"Janeiro 2024": MonthTotals(100.0, 200.0), "Fevereiro 2024": MonthTotals(10.0, 0.0)},
        ),
        "99.888.777/0001-66": CompanyRecord("ZETA", {"Março 2023": MonthTotals(0.0, 50.0)}),
    }
    with session_scope(database_url=db_url) as session:
        save_dataset(session, dataset)
    return db_url


def test_save_and_load_round_trip(seeded: str):
    with session_scope(database_url=seeded) as session:
        dataset = load_dataset(session)
        assert session.query(Company).count() == 2
        assert session.query(FiscalData).count() == 3

    assert dataset[CNPJ].display_name == "ACME"
    assert dataset[CNPJ].periods["Janeiro 2024"] == MonthTotals(100.0, 200.0)
    assert dataset["99.888.777/0001-66"].periods == {"Março 2023": MonthTotals(0.0, 50.0)}


def test_save_replaces_totals_and_renames(seeded: str):
    with session_scope(database_url=seeded) as session:
        save_dataset(
            session, {CNPJ: CompanyRecord("ACME NOVA", {"Janeiro 2024": MonthTotals(1.0, 2.0)})}
        )

    with session_scope(database_url=seeded) as session:
        dataset = load_dataset(session)
        names = [c["name"] for c in list_companies(session)]

    assert dataset[CNPJ].display_name == "ACME NOVA"
    assert dataset[CNPJ].periods["Janeiro 2024"] == MonthTotals(1.0, 2.0)
    # Periods not in the saved dataset are kept
    assert dataset[CNPJ].periods["Fevereiro 2024"] == MonthTotals(10.0, 0.0)
    assert names == ["ACME NOVA", "ZETA"]


def test_ingest_and_persist_adds_to_stored_totals(seeded: str, tmp_path: Path):
    f = write_declaration(
        tmp_path / "jan.txt",
        block(cnpj=CNPJ, company="ACME LTDA", outbound=[("5.102", "50,00")]),
    )

    result = ingest_and_persist([f], database_url=seeded)

    assert result.merged[CNPJ].periods["Janeiro 2024"] == MonthTotals(100.0, 250.0)
    with session_scope(database_url=seeded) as session:
        stored = load_dataset(session)
    assert stored[CNPJ].display_name == "ACME LTDA"
    assert stored[CNPJ].periods["Janeiro 2024"] == MonthTotals(100.0, 250.0)
    assert stored["99.888.777/0001-66"].periods["Março 2023"] == MonthTotals(0.0, 50.0)


def test_manual_fiscal_entries(seeded: str):
    with session_scope(database_url=seeded) as session:
        add_fiscal_entry(
            session, CNPJ, FiscalEntryInput(period="Dezembro 2023", purchases=5, revenue=7)
        )

    with pytest.raises(DuplicatePeriodError):
        with session_scope(database_url=seeded) as session:
            add_fiscal_entry(session, CNPJ, FiscalEntryInput(period="Janeiro 2024"))

    with pytest.raises(CompanyNotFoundError):
        with session_scope(database_url=seeded) as session:
            add_fiscal_entry(session, "00.000.000/0000-00", FiscalEntryInput(period="Janeiro 2024"))

    with session_scope(database_url=seeded) as session:
        assert update_fiscal_entry(session, CNPJ, "Janeiro 2024", "revenue", 999.5) is True
        assert update_fiscal_entry(session, CNPJ, "Junho 2024", "revenue", 1.0) is False
        assert delete_fiscal_entry(session, CNPJ, "Fevereiro 2024") is True
        assert delete_fiscal_entry(session, CNPJ, "Fevereiro 2024") is False

    with session_scope(database_url=seeded) as session:
        entries = list_fiscal_entries(session, CNPJ)

    assert [e["period"] for e in entries] == ["Janeiro 2024", "Dezembro 2023"]
    assert entries[0]["revenue"] == 999.5
    assert entries[1] == {"period": "Dezembro 2023", "purchases": 5.0, "revenue": 7.0}


def test_update_fiscal_entry_rejects_negative(seeded: str):
    with pytest.raises(ValueError):
        with session_scope(database_url=seeded) as session:
            update_fiscal_entry(session, CNPJ, "Janeiro 2024", "purchases", -1.0)


def test_partners_crud_and_soft_delete(seeded: str):
    with session_scope(database_url=seeded) as session:
        ana = save_partner(
            session,
            CNPJ,
            PartnerInput(name="Ana", cpf="123.456.789-01", ownership_pct=60, role="Administradora"),
        )
        bruno = save_partner(session, CNPJ, PartnerInput(name="Bruno", cpf="98765432100", ownership_pct=40))

    with session_scope(database_url=seeded) as session:
        save_partner(
            session,
            CNPJ,
            PartnerInput(id=bruno, name="Bruno Souza", cpf="98765432100", ownership_pct=40),
        )
        partners = list_partners(session, CNPJ)

    assert [(p["name"], p["cpf"], p["ownership_pct"]) for p in partners] == [
        ("Ana", "12345678901", 60.0),
        ("Bruno Souza", "98765432100", 40.0),
    ]
    assert partners[0]["role"] == "Administradora"

    with session_scope(database_url=seeded) as session:
        assert deactivate_partner(session, ana) is True
        assert deactivate_partner(session, 424242) is False

    with session_scope(database_url=seeded) as session:
        assert [p["id"] for p in list_partners(session, CNPJ)] == [bruno]
        assert len(list_partners(session, CNPJ, active_only=False)) == 2

    with pytest.raises(LookupError):
        with session_scope(database_url=seeded) as session:
            save_partner(
                session, CNPJ, PartnerInput(id=424242, name="X", cpf="11111111111", ownership_pct=1)
            )


def test_external_revenues(db_url: str):
    with session_scope(database_url=db_url) as session:
        first = save_external_revenue(
            session, ExternalRevenueInput(cpf="12345678901", period="Janeiro 2024", amount=10)
        )
        save_external_revenue(
            session,
            ExternalRevenueInput(
                cpf="12345678901", period="Março 2024", amount=20.5, description="Aluguel"
            ),
        )

    with session_scope(database_url=db_url) as session:
        rows = list_external_revenues(session)
        assert [r["period"] for r in rows] == ["Março 2024", "Janeiro 2024"]
        assert rows[0]["amount"] == 20.5
        assert rows[0]["description"] == "Aluguel"
        assert delete_external_revenue(session, first) is True

    with session_scope(database_url=db_url) as session:
        assert len(list_external_revenues(session)) == 1


def test_global_revenue_rows_only_active_relevant_stakes(seeded: str):
    with session_scope(database_url=seeded) as session:
        save_partner(session, CNPJ, PartnerInput(name="Ana", cpf="12345678901", ownership_pct=50))
        save_partner(session, CNPJ, PartnerInput(name="Bia", cpf="22222222222", ownership_pct=5))
        gone = save_partner(
            session, CNPJ, PartnerInput(name="Caio", cpf="33333333333", ownership_pct=45)
        )
        save_partner(
            session,
            "99.888.777/0001-66",
            PartnerInput(name="Ana", cpf="12345678901", ownership_pct=10),
        )
        deactivate_partner(session, gone)

    with session_scope(database_url=seeded) as session:
        rows = global_revenue_rows(session)

    assert rows == [
        {
            "cpf": "12345678901",
            "name": "Ana",
            "ownership_pct": 50.0,
            "company_name": "ACME",
            "company_revenue": 200.0,
        },
        {
            "cpf": "12345678901",
            "name": "Ana",
            "ownership_pct": 10.0,
            "company_name": "ZETA",
            "company_revenue": 50.0,
        },
    ]
