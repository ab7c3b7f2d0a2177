import typer

from cma_blocks.cli.blocks import blocks_app
from cma_blocks.cli.schema import schema_app

app = typer.Typer(
    name="cma-blocks",
    help="cma-blocks CLI: inspect a schema snapshot and the blocks inside records.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(schema_app, name="schema")
app.add_typer(blocks_app, name="blocks")


def main() -> None:
    app()
