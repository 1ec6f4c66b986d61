# ruff: noqa: I001
"""CLI for the ``fiscal_ledger`` package.

This module exposes callable command handlers (e.g., ``cmd_parse``) and a
Typer-based console interface. Environment variables (notably
``DATABASE_URL``) are loaded from a local ``.env`` using ``python-dotenv``
before delegating to command logic. Business logic lives in
``fiscal_ledger.api`` and related modules.

Handlers return a process exit code; errors are written to stderr as
``Error: ...`` and yield ``1``.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError

from .calculations import (
    company_totals,
    filter_companies,
    global_revenue_by_cpf,
    monthly_rows,
    total_ownership_pct,
)
from .errors import DeclarationReadError, FiscalLedgerError, NoValidDataError
from .logging_setup import configure_logging
from .models import ExternalRevenueInput, FiscalEntryInput, ParsedDataset, PartnerInput
from .normalizers import format_brl, format_cpf, format_percentage


def _err(msg: str) -> int:
    print(f"Error: {msg}", file=sys.stderr)
    return 1


def _print_dataset_summary(dataset: ParsedDataset) -> None:
    for cnpj, record in dataset.items():
        totals = company_totals(record)
        print(
            f"{cnpj}\t{record.display_name}\t{len(record.periods)} período(s)\t"
            f"Faturamento {format_brl(totals.total_revenue)}\t"
            f"Compras {format_brl(totals.total_purchases)}"
        )


# ---- Command handlers --------------------------------------------------------


def cmd_parse(
    files: list[Path], *, persist: bool = False, database_url: str | None = None
) -> int:
    """Parse declaration files and print one summary line per company.

    With ``persist``, the batch is merged into the stored dataset and saved.
    """

    from .api import ingest_and_persist, ingest_declarations

    if not files:
        return _err("no files given")

    try:
        if persist:
            result = ingest_and_persist(files, database_url=database_url)
        else:
            result = ingest_declarations(files)
    except DeclarationReadError as e:
        return _err(f"failed to read declarations: {e}")
    except NoValidDataError:
        return _err("Nenhum dado encontrado: os arquivos não contêm dados fiscais válidos.")
    except Exception as e:
        return _err(f"parse failed: {e}")

    print(f"{len(result.parsed)} empresa(s) encontrada(s) em {result.n_files} arquivo(s).")
    _print_dataset_summary(result.parsed)
    return 0


def cmd_summary(cnpj: str, *, database_url: str | None = None) -> int:
    """Print a company's chronological monthly table from the database."""

    from db.client import session_scope

    from .persistence import load_dataset

    try:
        with session_scope(database_url=database_url) as session:
            dataset = load_dataset(session)
    except Exception as e:
        return _err(f"failed to load data: {e}")

    record = dataset.get(cnpj)
    if record is None:
        return _err(f"company not found: {cnpj}")

    print(f"{record.display_name} ({cnpj})")
    print("Mês/Ano\tFaturamento\tCompras\tPercentual C/V\tStatus")
    for row in monthly_rows(record):
        print(
            f"{row.period}\t{format_brl(row.revenue)}\t{format_brl(row.purchases)}\t"
            f"{format_percentage(row.purchase_ratio_pct)}\t{row.status}"
        )
    totals = company_totals(record)
    print(
        f"TOTAL\t{format_brl(totals.total_revenue)}\t{format_brl(totals.total_purchases)}\t"
        f"{format_percentage(totals.purchase_ratio_pct)}\t"
    )
    return 0


def cmd_companies(
    *,
    database_url: str | None = None,
    search: str | None = None,
    year: int | None = None,
    min_revenue: float | None = None,
    max_revenue: float | None = None,
    sort_by: str = "name",
    descending: bool = False,
) -> int:
    """List stored companies with dashboard-style filters."""

    from db.client import session_scope

    from .persistence import load_dataset

    if sort_by not in ("name", "cnpj", "revenue"):
        return _err(f"invalid --sort-by: {sort_by!r} (expected name, cnpj or revenue)")
    if year is not None and not 1000 <= year <= 9999:
        return _err(f"invalid --year: {year!r}")

    try:
        with session_scope(database_url=database_url) as session:
            dataset = load_dataset(session)
    except Exception as e:
        return _err(f"failed to load data: {e}")

    selected = filter_companies(
        dataset,
        search=search,
        year=year,
        min_revenue=min_revenue,
        max_revenue=max_revenue,
        sort_by=sort_by,  # type: ignore[arg-type]
        descending=descending,
    )
    _print_dataset_summary(dict(selected))
    return 0


def cmd_export(
    out_dir: Path, *, cnpj: str | None = None, database_url: str | None = None
) -> int:
    """Write a company (or consolidated) XLSX report into ``out_dir``."""

    from db.client import session_scope

    from .export import build_company_report, build_consolidated_report
    from .persistence import list_partners, load_dataset

    try:
        with session_scope(database_url=database_url) as session:
            dataset = load_dataset(session)
            partners = list_partners(session, cnpj) if cnpj and cnpj in dataset else []
    except Exception as e:
        return _err(f"failed to load data: {e}")

    try:
        if cnpj:
            filename, payload = build_company_report(dataset, cnpj, partners)
        else:
            filename, payload = build_consolidated_report(dataset)
    except FiscalLedgerError as e:
        return _err(str(e))

    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        target = out_dir / filename
        target.write_bytes(payload)
    except OSError as e:
        return _err(f"failed to write report: {e}")

    print(str(target))
    return 0


def cmd_partners(cnpj: str, *, database_url: str | None = None) -> int:
    from db.client import session_scope

    from .persistence import list_partners

    try:
        with session_scope(database_url=database_url) as session:
            partners = list_partners(session, cnpj)
    except Exception as e:
        return _err(f"failed to load partners: {e}")

    for p in partners:
        print(
            f"{p['id']}\t{p['name']}\t{format_cpf(p['cpf'])}\t"
            f"{p['ownership_pct']:.2f}%\t{p['role'] or ''}"
        )
    total = total_ownership_pct(partners)
    marker = "" if abs(total - 100.0) < 1e-9 else "  (!= 100%)"
    print(f"Total: {total:.2f}%{marker}")
    return 0


def cmd_add_partner(
    cnpj: str,
    *,
    name: str,
    cpf: str,
    ownership_pct: float,
    role: str | None = None,
    partner_id: int | None = None,
    database_url: str | None = None,
) -> int:
    from db.client import session_scope

    from .persistence import save_partner

    try:
        partner = PartnerInput(
            id=partner_id, name=name, cpf=cpf, ownership_pct=ownership_pct, role=role
        )
    except ValidationError as e:
        return _err(f"invalid partner: {e}")

    try:
        with session_scope(database_url=database_url) as session:
            new_id = save_partner(session, cnpj, partner)
    except Exception as e:
        return _err(f"failed to save partner: {e}")

    print(new_id)
    return 0


def cmd_remove_partner(partner_id: int, *, database_url: str | None = None) -> int:
    from db.client import session_scope

    from .persistence import deactivate_partner

    try:
        with session_scope(database_url=database_url) as session:
            found = deactivate_partner(session, partner_id)
    except Exception as e:
        return _err(f"failed to remove partner: {e}")

    if not found:
        return _err(f"partner not found: {partner_id}")
    return 0


def cmd_add_entry(
    cnpj: str,
    *,
    period: str,
    purchases: float,
    revenue: float,
    database_url: str | None = None,
) -> int:
    from db.client import session_scope

    from .persistence import add_fiscal_entry

    try:
        entry = FiscalEntryInput(period=period, purchases=purchases, revenue=revenue)
    except ValidationError as e:
        return _err(f"invalid entry: {e}")

    try:
        with session_scope(database_url=database_url) as session:
            add_fiscal_entry(session, cnpj, entry)
    except FiscalLedgerError as e:
        return _err(str(e))
    except Exception as e:
        return _err(f"failed to add entry: {e}")
    return 0


def cmd_update_entry(
    cnpj: str,
    *,
    period: str,
    field: str,
    value: float,
    database_url: str | None = None,
) -> int:
    from db.client import session_scope

    from .persistence import update_fiscal_entry

    if field not in ("purchases", "revenue"):
        return _err(f"invalid --field: {field!r} (expected purchases or revenue)")

    try:
        with session_scope(database_url=database_url) as session:
            found = update_fiscal_entry(session, cnpj, period, field, value)  # type: ignore[arg-type]
    except (FiscalLedgerError, ValueError) as e:
        return _err(str(e))
    except Exception as e:
        return _err(f"failed to update entry: {e}")

    if not found:
        return _err(f"no entry for {period!r}")
    return 0


def cmd_delete_entry(cnpj: str, *, period: str, database_url: str | None = None) -> int:
    from db.client import session_scope

    from .persistence import delete_fiscal_entry

    try:
        with session_scope(database_url=database_url) as session:
            found = delete_fiscal_entry(session, cnpj, period)
    except FiscalLedgerError as e:
        return _err(str(e))
    except Exception as e:
        return _err(f"failed to delete entry: {e}")

    if not found:
        return _err(f"no entry for {period!r}")
    return 0


def cmd_external_revenues(*, database_url: str | None = None) -> int:
    from db.client import session_scope

    from .persistence import list_external_revenues

    try:
        with session_scope(database_url=database_url) as session:
            rows = list_external_revenues(session)
    except Exception as e:
        return _err(f"failed to load external revenues: {e}")

    for r in rows:
        print(
            f"{r['id']}\t{format_cpf(r['cpf'])}\t{r['period']}\t"
            f"{format_brl(r['amount'])}\t{r['description'] or ''}"
        )
    return 0


def cmd_add_external_revenue(
    *,
    cpf: str,
    period: str,
    amount: float,
    description: str | None = None,
    revenue_id: int | None = None,
    database_url: str | None = None,
) -> int:
    from db.client import session_scope

    from .persistence import save_external_revenue

    try:
        item = ExternalRevenueInput(
            id=revenue_id, cpf=cpf, period=period, amount=amount, description=description
        )
    except ValidationError as e:
        return _err(f"invalid external revenue: {e}")

    try:
        with session_scope(database_url=database_url) as session:
            new_id = save_external_revenue(session, item)
    except Exception as e:
        return _err(f"failed to save external revenue: {e}")

    print(new_id)
    return 0


def cmd_global_revenue(*, database_url: str | None = None) -> int:
    """Print revenue per CPF across companies where the partner holds >= 10%."""

    from db.client import session_scope

    from .persistence import global_revenue_rows

    try:
        with session_scope(database_url=database_url) as session:
            rows = global_revenue_rows(session)
    except Exception as e:
        return _err(f"failed to load global revenue: {e}")

    for entry in global_revenue_by_cpf(rows):
        print(f"{entry.name}\t{format_cpf(entry.cpf)}\t{format_brl(entry.total_revenue)}")
        for company_name, pct, revenue in entry.companies:
            print(f"  {company_name}\t{pct:.2f}%\t{format_brl(revenue)}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Parse fiscal declaration text files (CFOP totals per company and month), "
        "store them and report on them. Loads DATABASE_URL from a local .env."
    ),
)

DatabaseUrlOption = Annotated[
    str | None, typer.Option(help="Override DATABASE_URL (falls back to env var).")
]
CnpjOption = Annotated[str, typer.Option(help="Company CNPJ as printed in the declaration.")]


@app.command("parse")
def parse_cmd(
    files: Annotated[
        list[Path], typer.Argument(help="Declaration .txt files (ISO-8859-1).", dir_okay=False)
    ],
    persist: Annotated[
        bool, typer.Option(help="Merge into the stored dataset and save to the database.")
    ] = False,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Parse a batch of declaration files."""

    raise typer.Exit(cmd_parse(files, persist=persist, database_url=database_url))


@app.command("summary")
def summary_cmd(cnpj: CnpjOption, database_url: DatabaseUrlOption = None) -> None:
    """Show a company's monthly purchases/revenue in chronological order."""

    raise typer.Exit(cmd_summary(cnpj, database_url=database_url))


@app.command("companies")
def companies_cmd(
    search: Annotated[str | None, typer.Option(help="Name or CNPJ substring.")] = None,
    year: Annotated[int | None, typer.Option(help="Keep only periods of this year.")] = None,
    min_revenue: Annotated[float | None, typer.Option(help="Minimum total revenue.")] = None,
    max_revenue: Annotated[float | None, typer.Option(help="Maximum total revenue.")] = None,
    sort_by: Annotated[str, typer.Option(help="name, cnpj or revenue.")] = "name",
    desc: Annotated[bool, typer.Option(help="Sort descending.")] = False,
    database_url: DatabaseUrlOption = None,
) -> None:
    """List stored companies."""

    raise typer.Exit(
        cmd_companies(
            database_url=database_url,
            search=search,
            year=year,
            min_revenue=min_revenue,
            max_revenue=max_revenue,
            sort_by=sort_by,
            descending=desc,
        )
    )


@app.command("export")
def export_cmd(
    out_dir: Annotated[
        Path,
        typer.Option("--out-dir", "--out", help="Directory for the .xlsx report.", file_okay=False),
    ],
    cnpj: Annotated[
        str | None, typer.Option(help="Company CNPJ; omit for the consolidated report.")
    ] = None,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Export a spreadsheet report."""

    raise typer.Exit(cmd_export(out_dir, cnpj=cnpj, database_url=database_url))


@app.command("partners")
def partners_cmd(cnpj: CnpjOption, database_url: DatabaseUrlOption = None) -> None:
    """List a company's active partners."""

    raise typer.Exit(cmd_partners(cnpj, database_url=database_url))


@app.command("add-partner")
def add_partner_cmd(
    cnpj: CnpjOption,
    name: Annotated[str, typer.Option(help="Partner name.")],
    cpf: Annotated[str, typer.Option(help="Partner CPF (punctuation allowed).")],
    ownership_pct: Annotated[float, typer.Option(help="Ownership percentage (0-100).")],
    role: Annotated[str | None, typer.Option(help="Optional role.")] = None,
    partner_id: Annotated[
        int | None, typer.Option("--id", help="Update this partner instead of inserting.")
    ] = None,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Add (or update) a partner."""

    raise typer.Exit(
        cmd_add_partner(
            cnpj,
            name=name,
            cpf=cpf,
            ownership_pct=ownership_pct,
            role=role,
            partner_id=partner_id,
            database_url=database_url,
        )
    )


@app.command("remove-partner")
def remove_partner_cmd(
    partner_id: Annotated[int, typer.Option("--id", help="Partner id.")],
    database_url: DatabaseUrlOption = None,
) -> None:
    """Deactivate a partner."""

    raise typer.Exit(cmd_remove_partner(partner_id, database_url=database_url))


@app.command("add-entry")
def add_entry_cmd(
    cnpj: CnpjOption,
    period: Annotated[str, typer.Option(help="Period, e.g. 'Janeiro 2024'.")],
    purchases: Annotated[float, typer.Option(help="Purchases total.")] = 0.0,
    revenue: Annotated[float, typer.Option(help="Revenue total.")] = 0.0,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Add a manual period for a company."""

    raise typer.Exit(
        cmd_add_entry(
            cnpj, period=period, purchases=purchases, revenue=revenue, database_url=database_url
        )
    )


@app.command("update-entry")
def update_entry_cmd(
    cnpj: CnpjOption,
    period: Annotated[str, typer.Option(help="Period, e.g. 'Janeiro 2024'.")],
    field: Annotated[str, typer.Option(help="purchases or revenue.")],
    value: Annotated[float, typer.Option(help="New value.")],
    database_url: DatabaseUrlOption = None,
) -> None:
    """Overwrite one total of a stored period."""

    raise typer.Exit(
        cmd_update_entry(cnpj, period=period, field=field, value=value, database_url=database_url)
    )


@app.command("delete-entry")
def delete_entry_cmd(
    cnpj: CnpjOption,
    period: Annotated[str, typer.Option(help="Period, e.g. 'Janeiro 2024'.")],
    database_url: DatabaseUrlOption = None,
) -> None:
    """Delete a stored period."""

    raise typer.Exit(cmd_delete_entry(cnpj, period=period, database_url=database_url))


@app.command("external-revenues")
def external_revenues_cmd(database_url: DatabaseUrlOption = None) -> None:
    """List revenues earned outside the tracked companies."""

    raise typer.Exit(cmd_external_revenues(database_url=database_url))


@app.command("add-external-revenue")
def add_external_revenue_cmd(
    cpf: Annotated[str, typer.Option(help="CPF (punctuation allowed).")],
    period: Annotated[str, typer.Option(help="Period, e.g. 'Janeiro 2024'.")],
    amount: Annotated[float, typer.Option(help="Amount.")],
    description: Annotated[str | None, typer.Option(help="Optional description.")] = None,
    revenue_id: Annotated[
        int | None, typer.Option("--id", help="Update this entry instead of inserting.")
    ] = None,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Add (or update) an external revenue."""

    raise typer.Exit(
        cmd_add_external_revenue(
            cpf=cpf,
            period=period,
            amount=amount,
            description=description,
            revenue_id=revenue_id,
            database_url=database_url,
        )
    )


@app.command("global-revenue")
def global_revenue_cmd(database_url: DatabaseUrlOption = None) -> None:
    """Revenue per partner CPF across companies (stakes >= 10%)."""

    raise typer.Exit(cmd_global_revenue(database_url=database_url))


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
