"""Console script for biodb."""
import json
import logging
import sys

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from biodb.codecs import DEFAULT_TYPE, FASTA_TYPE, registry
from biodb.config import load_config
from biodb.db import Database
from biodb.exceptions import BiodbError
from biodb.export import export_to_csv
from biodb.io.fasta import load_fasta, to_fasta
from biodb.query import get_sequences, query_sequences
from biodb.schema import create_table, table_ddl
from biodb.writer import insert_sequences

cli_theme = Theme({
    "brand": "#558BF7",
    "brand.bright": "#2563EB",
    "text.muted": "#666666",
    "success": "#10B981",
    "error": "#F59E0B",
})

console = Console(theme=cli_theme)
err_console = Console(theme=cli_theme, stderr=True)

type_option = click.option(
    "--type", "-t", "tag", default=DEFAULT_TYPE, show_default=True,
    help="Record type (codec) of the table.",
)


def _fail(error):
    err_console.print(f"[error]Error:[/error] {escape(str(error))}")
    sys.exit(1)


def _open_db(ctx) -> Database:
    config_path = ctx.obj.get("config")
    if not config_path:
        _fail("No config file given. Use --config or set BIODB_CONFIG.")
    db = Database(load_config(config_path))
    ctx.call_on_close(db.close)
    return db


def _records_table(records, title):
    table = Table(title=title, box=box.ROUNDED, header_style="brand.bright")
    columns = []
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)
    for col in columns:
        table.add_column(col, style="brand" if col == "accession" else None, overflow="fold")
    for record in records:
        table.add_row(*[_short(record.get(col)) for col in columns])
    return table


def _short(value, width=60):
    text = "" if value is None else str(value)
    return Text(text if len(text) <= width else text[:width - 3] + "...")


class BiodbGroup(click.Group):
    """Click group that reports library errors without a traceback."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except BiodbError as e:
            _fail(e)


@click.group(cls=BiodbGroup)
@click.option("--config", "-c", envvar="BIODB_CONFIG", type=click.Path(dir_okay=False),
              help="YAML file with connection parameters (or BIODB_CONFIG).")
@click.option("--debug/--no-debug", default=False, help="Log generated SQL to stderr.")
@click.pass_context
def cli(ctx, config, debug):
    """biodb - store and query biological sequence collections in SQL databases."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command("types")
def list_types():
    """List registered record types and their table layout."""
    table = Table(title="Record types", box=box.ROUNDED, header_style="brand.bright")
    table.add_column("Type", style="brand")
    table.add_column("Columns")
    for tag in registry.tags():
        cols = ", ".join(
            " ".join(p for p in (c.name, c.type, c.constraints) if p)
            for c in registry.get(tag).schema()
        )
        table.add_row(tag, cols)
    console.print(table)


@cli.command("create-table")
@click.argument("table")
@type_option
@click.option("--if-not-exists", is_flag=True, help="Do nothing if the table exists.")
@click.option("--show-sql", is_flag=True, help="Print the DDL without running it.")
@click.pass_context
def create_table_cmd(ctx, table, tag, if_not_exists, show_sql):
    """Create TABLE for the given record type."""
    db = _open_db(ctx)
    if show_sql:
        click.echo(table_ddl(table, tag, db.dbtype, if_not_exists))
        return
    create_table(db, table, tag, if_not_exists=if_not_exists)
    console.print(f"[success]Created table[/success] {table} ({tag})")


@cli.command()
@click.argument("table")
@click.argument("fasta_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--type", "-t", "tag", default=FASTA_TYPE, show_default=True,
              help="Record type (codec) of the table.")
@click.option("--create", is_flag=True, help="Create the table first if it does not exist.")
@click.pass_context
def load(ctx, table, fasta_file, tag, create):
    """Load FASTA_FILE into TABLE in a single transaction."""
    db = _open_db(ctx)
    try:
        records = load_fasta(fasta_file)
    except (OSError, ValueError) as e:
        _fail(f"Could not read {fasta_file}: {e}")
    with db.transaction() as session:
        if create:
            create_table(session, table, tag, if_not_exists=True)
        count = insert_sequences(session, table, tag, records)
    console.print(f"[success]Inserted[/success] {count} records into {table}")


@cli.command()
@click.argument("table")
@click.argument("accessions", nargs=-1, required=True)
@type_option
@click.option("--format", "-f", "fmt", type=click.Choice(["table", "json", "fasta"]),
              default="table", show_default=True)
@click.option("--order", help="Column to order results by.")
@click.option("--offset", type=int)
@click.option("--limit", type=int)
@click.pass_context
def get(ctx, table, accessions, tag, fmt, order, offset, limit):
    """Look up ACCESSIONS in TABLE."""
    db = _open_db(ctx)
    records = get_sequences(
        db, table, tag, accessions, order=order, offset=offset, limit=limit
    )
    if fmt == "json":
        click.echo(json.dumps(records, indent=2, default=str))
    elif fmt == "fasta":
        to_fasta(records, sys.stdout)
    else:
        console.print(_records_table(records, f"{table}: {len(records)} records"))


@cli.command()
@click.argument("sql")
@click.argument("params", nargs=-1)
@type_option
@click.option("--count", "count_only", is_flag=True,
              help="Stream the results and print only the number of rows.")
@click.pass_context
def query(ctx, sql, params, tag, count_only):
    """Run a raw parameterized SQL query and decode its rows."""
    db = _open_db(ctx)
    if count_only:
        n = query_sequences(db, sql, tag, params, apply_func=lambda rows: sum(1 for _ in rows))
        click.echo(n)
        return
    records = query_sequences(db, sql, tag, params)
    console.print(_records_table(records, f"{len(records)} records"))


@cli.command()
@click.argument("table")
@click.argument("output", type=click.Path(dir_okay=False, writable=True))
@type_option
@click.pass_context
def export(ctx, table, output, tag):
    """Export TABLE to a CSV file."""
    db = _open_db(ctx)
    n = export_to_csv(db, table, tag, output)
    console.print(f"[success]Exported[/success] {n} records to {output}")


if __name__ == "__main__":
    sys.exit(cli())  # pragma: no cover
