import functools
from collections.abc import Callable
from typing import Any

import structlog
import typer

from critical.core.exceptions import CriticalError
from critical.core.logging import console


logger = structlog.get_logger()


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator turning fatal errors into a printed cause and a non-zero exit."""
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except CriticalError as e:
            console.print(f"[bold red]{type(e).__name__}:[/] {e}")
            logger.debug('Fatal error', exc_info=True)
            raise typer.Exit(1)
        except (FileNotFoundError, ValueError) as e:
            console.print(f"[bold red]Error:[/] {e}")
            logger.debug('Invalid input', exc_info=True)
            raise typer.Exit(1)
        except KeyboardInterrupt:
            console.print('\n[yellow]Operation cancelled by user.[/]')
            raise typer.Exit(130)
        except Exception as e:
            console.print(f"[bold red]Unexpected Error:[/] {e}")
            logger.exception('Unexpected error')
            raise typer.Exit(1)
    return wrapper
