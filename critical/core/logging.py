import logging
import os
import sys
from collections.abc import Callable
from typing import Any

import structlog
from rich.console import Console
from rich.markup import escape

# Tables and command results go to stdout; log lines go to stderr
console = Console()

PROGRESS_LOGGER = 'progress'


def add_progress_percent(logger, method_name, event_dict):
    """Derive `percent` from the completed/total counters of a progress event."""
    completed = event_dict.get('completed')
    total = event_dict.get('total')
    if isinstance(completed, int) and isinstance(total, int) and total > 0:
        event_dict['percent'] = min(100, completed * 100 // total)
    return event_dict


class BuildConsoleRenderer:
    """
    Render structlog events for someone watching a build in a terminal.

    Progress events print as the bare message, prefixed with a percentage
    once the enrichment phase knows how many packages it has to visit. All
    other events show their level and logger name, with context appended as
    key=value pairs. Timestamps only appear when `show_timestamps` is set.
    """

    LEVEL_STYLES = {
        'debug': 'dim',
        'info': 'green',
        'warning': 'yellow',
        'error': 'bold red',
        'critical': 'bold magenta',
    }

    def __init__(self, target: Console | None = None, show_timestamps: bool = False):
        self._console = target or Console(stderr=True)
        self.show_timestamps = show_timestamps

    def __call__(self, logger, name, event_dict):
        event = escape(str(event_dict.pop('event', '')))
        level = event_dict.pop('level', 'info')
        logger_name = event_dict.pop('logger', None)
        timestamp = event_dict.pop('timestamp', None)
        exception = event_dict.pop('exception', None)

        if logger_name == PROGRESS_LOGGER and level == 'info':
            line = self.progress_line(event, event_dict)
        else:
            line = self.event_line(event, level, logger_name, event_dict)
        if self.show_timestamps and timestamp:
            line = f'[dim]{timestamp}[/dim] {line}'
        if exception:
            line += f'\n[red]{escape(exception)}[/red]'

        self._console.print(line, highlight=False)
        raise structlog.DropEvent

    def progress_line(self, event: str, context: dict[str, Any]) -> str:
        percent = context.pop('percent', None)
        context.pop('completed', None)
        context.pop('total', None)
        prefix = f'[cyan]{percent:>3}%[/cyan] ' if percent is not None else '[cyan]  - [/cyan] '
        return prefix + event + self.format_context(context)

    def event_line(self, event: str, level: str, logger_name: str | None, context: dict[str, Any]) -> str:
        style = self.LEVEL_STYLES.get(level, 'white')
        parts = [f'[{style}]{level:<7}[/{style}]']
        if logger_name:
            parts.append(f'[bold]{logger_name}[/bold]')
        parts.append(event)
        return ' '.join(parts) + self.format_context(context)

    @staticmethod
    def format_context(context: dict[str, Any]) -> str:
        if not context:
            return ''
        pairs = (f'[cyan]{key}[/cyan]={escape(str(value))}' for key, value in context.items())
        return ' ' + ' '.join(pairs)


def progress_logger(tracker: Any) -> Callable[[str], None]:
    """Progress callback that logs each message with the tracker's counters."""
    log = structlog.get_logger(PROGRESS_LOGGER)

    def emit(message: str) -> None:
        log.info(message, completed=tracker.completed, total=tracker.total)
    return emit


def setup_logging(level: str = 'INFO', json_output: bool | None = None) -> None:
    """
    Configure structlog for the CLI.

    Output is rendered for the terminal unless `json_output` is set, or
    CRITICAL_LOG_FORMAT=json when it is left as None.
    """
    if json_output is None:
        json_output = os.getenv('CRITICAL_LOG_FORMAT', '').lower() == 'json'
    logging.basicConfig(format='%(message)s', stream=sys.stderr, level=level)
    logging.getLogger().setLevel(level)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_progress_percent,
    ]
    if json_output:
        processors += [
            structlog.processors.TimeStamper(fmt='iso', utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        debug = level.upper() == 'DEBUG'
        processors += [
            structlog.processors.TimeStamper(fmt='%H:%M:%S'),
            structlog.processors.format_exc_info,
            BuildConsoleRenderer(show_timestamps=debug),
        ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
