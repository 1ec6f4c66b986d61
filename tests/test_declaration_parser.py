from __future__ import annotations

import pytest

from fiscal_ledger.ingest.adapters.declaration_txt import (
    classify_lines,
    extract_fields,
    iter_blocks,
    parse_declaration_text,
)
from fiscal_ledger.models import MonthTotals, PeriodKey

from tests.helpers.declarations import block


def test_inbound_purchase_code_counts_as_purchase():
    totals = classify_lines(block(inbound=[("1.102", "500,00")]), MonthTotals())
    assert totals.purchases == pytest.approx(500.0)
    assert totals.revenue == 0.0


def test_outbound_revenue_code_counts_as_revenue():
    totals = classify_lines(block(outbound=[("5.102", "750,00")]), MonthTotals())
    assert totals.revenue == pytest.approx(750.0)
    assert totals.purchases == 0.0


def test_section_mismatch_is_ignored():
    text = block(
        inbound=[("5.102", "10,00")],
        outbound=[("1.102", "20,00"), ("5.405", "1.234,56")],
    )
    totals = classify_lines(text, MonthTotals())
    assert totals.purchases == 0.0
    assert totals.revenue == pytest.approx(1234.56)


def test_lines_before_any_section_and_unknown_codes_are_ignored():
    text = "1.102  100,00\nENTRADAS\n1.999  50,00\n2.403  25,00\n"
    totals = classify_lines(text, MonthTotals())
    assert totals.purchases == pytest.approx(25.0)


def test_all_purchase_and_revenue_codes_accumulate():
    text = block(
        inbound=[(c, "1,00") for c in ("1.102", "1.403", "1.404", "2.102", "2.403", "2.404")],
        outbound=[("5.102", "2,00"), ("5.405", "3,00")],
    )
    totals = classify_lines(text, MonthTotals())
    assert totals.purchases == pytest.approx(6.0)
    assert totals.revenue == pytest.approx(5.0)


def test_section_markers_match_substrings_and_flip():
    text = "\n".join(
        [
            "TOTAL DE ENTRADAS DO MES",
            "1.102 10,00",
            "RESUMO DAS SAÍDAS",
            "5.102 20,00",
            "ENTRADAS (cont.)",
            "1.404 5,00",
        ]
    )
    totals = classify_lines(text, MonthTotals())
    assert totals.purchases == pytest.approx(15.0)
    assert totals.revenue == pytest.approx(20.0)


def test_iter_blocks_splits_on_marker_and_keeps_preamble():
    text = "CABEÇALHO\n" + block() + block(period="FEVEREIRO/2024")
    blocks = list(iter_blocks(text))
    assert len(blocks) == 3
    assert blocks[0].startswith("CABEÇALHO")
    assert all(b.startswith("Mês ou período/ano:") for b in blocks[1:])


def test_iter_blocks_skips_whitespace_only():
    assert list(iter_blocks("   \n\n")) == []


def test_extract_fields_normalizes_month_and_trims():
    fields = extract_fields(block(company="  Padaria Pão Quente  ", period="MARÇO / 2023"))
    assert fields is not None
    assert fields.company_id == "11.222.333/0001-44"
    assert fields.company_name == "Padaria Pão Quente"
    assert fields.period == PeriodKey("Março", "2023")
    assert str(fields.period) == "Março 2023"


@pytest.mark.parametrize("missing", ["cnpj", "company", "period"])
def test_extract_fields_missing_any_header_returns_none(missing: str):
    assert extract_fields(block(**{missing: None})) is None


def test_block_without_cnpj_is_excluded():
    text = block(cnpj=None, outbound=[("5.102", "100,00")]) + block(
        cnpj="99.888.777/0001-66", outbound=[("5.102", "1,00")]
    )
    dataset = parse_declaration_text(text)
    assert list(dataset) == ["99.888.777/0001-66"]


def test_same_company_and_period_blocks_accumulate_in_one_file():
    text = block(inbound=[("1.102", "100,00")]) + block(
        company="ACME NOVO NOME", inbound=[("1.102", "50,00")], outbound=[("5.102", "10,00")]
    )
    dataset = parse_declaration_text(text)
    record = dataset["11.222.333/0001-44"]
    assert record.display_name == "ACME NOVO NOME"
    assert list(record.periods) == ["Janeiro 2024"]
    assert record.periods["Janeiro 2024"].purchases == pytest.approx(150.0)
    assert record.periods["Janeiro 2024"].revenue == pytest.approx(10.0)


def test_recognized_block_without_items_creates_empty_period():
    dataset = parse_declaration_text(block())
    assert dataset["11.222.333/0001-44"].periods["Janeiro 2024"] == MonthTotals(0.0, 0.0)


def test_text_without_blocks_yields_empty_dataset():
    assert parse_declaration_text("nada aqui\n") == {}
