import dotenv
import typer

from critical.__version__ import __version__
from critical.commands import build
from critical.commands import search
from critical.commands import show
from critical.commands import stats
from critical.core.logging import setup_logging

dotenv.load_dotenv()

app = typer.Typer(
    help='critical: offline database of critical open-source packages.',
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)

app.command(name='build')(build.main)
app.command(name='stats')(stats.main)
app.command(name='search')(search.main)
app.command(name='show')(show.main)


def version_callback(value: bool):
    if value:
        typer.echo(f'critical-packages {__version__}')
        raise typer.Exit()


@app.callback()
def main(
    debug: bool = typer.Option(False, '--debug', help='Enable debug logging'),
    version: bool = typer.Option(
        False, '--version', callback=version_callback, is_eager=True,
        help='Show the version and exit',
    ),
):
    """
    Build and query a local snapshot of critical packages from ecosyste.ms.
    """
    level = 'DEBUG' if debug else 'INFO'
    setup_logging(level=level)


if __name__ == '__main__':
    app()
