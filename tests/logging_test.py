import io

import pytest
import structlog
from rich.console import Console
from structlog.testing import capture_logs

from critical.core.logging import BuildConsoleRenderer
from critical.core.logging import add_progress_percent
from critical.core.logging import progress_logger
from critical.core.stats import ProgressTracker


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def renderer(output):
    return BuildConsoleRenderer(Console(file=output, width=200, color_system=None))


def render(renderer, **event_dict):
    with pytest.raises(structlog.DropEvent):
        renderer(None, event_dict.get('level', 'info'), event_dict)


class TestAddProgressPercent:

    def test_percent_from_counters(self):
        event = add_progress_percent(None, 'info', {'completed': 5, 'total': 20})
        assert event['percent'] == 25

    def test_unknown_total(self):
        event = add_progress_percent(None, 'info', {'completed': 0, 'total': 0})
        assert 'percent' not in event

    def test_other_events_untouched(self):
        assert add_progress_percent(None, 'info', {'event': 'x'}) == {'event': 'x'}


class TestBuildConsoleRenderer:
    """Tests for terminal rendering of log events."""

    def test_progress_with_percent(self, renderer, output):
        render(
            renderer, event='Fetched versions for 5/20 packages', level='info',
            logger='progress', completed=5, total=20, percent=25,
        )
        assert output.getvalue() == ' 25% Fetched versions for 5/20 packages\n'

    def test_progress_before_total_is_known(self, renderer, output):
        render(renderer, event='Fetching page 3...', level='info', logger='progress', completed=0, total=0)
        assert output.getvalue().strip() == '-  Fetching page 3...'

    def test_regular_event_shows_level_logger_and_context(self, renderer, output):
        render(renderer, event='Invalid package records skipped', level='warning', logger='collector_service', count=2)
        assert output.getvalue() == 'warning collector_service Invalid package records skipped count=2\n'

    def test_markup_in_values_is_literal(self, renderer, output):
        render(renderer, event='[bold]not markup[/bold]', level='error', logger='x', url='https://h/[1]')
        assert '[bold]not markup[/bold]' in output.getvalue()
        assert 'url=https://h/[1]' in output.getvalue()

    def test_timestamps_only_when_enabled(self, output):
        quiet = BuildConsoleRenderer(Console(file=output, width=200, color_system=None))
        render(quiet, event='a', level='info', logger='x', timestamp='12:00:00')
        verbose = BuildConsoleRenderer(Console(file=output, width=200, color_system=None), show_timestamps=True)
        render(verbose, event='b', level='info', logger='x', timestamp='12:00:01')
        first, second = output.getvalue().splitlines()
        assert '12:00:00' not in first
        assert second.startswith('12:00:01 ')

    def test_exception_appended(self, renderer, output):
        render(renderer, event='Build failed', level='error', logger='build_service', exception='Traceback ...')
        assert output.getvalue().splitlines()[-1] == 'Traceback ...'


def test_progress_logger_binds_tracker_counters():
    tracker = ProgressTracker(total=4)
    tracker.advance(2)
    with capture_logs() as logs:
        progress_logger(tracker)('Fetched versions for 2/4 packages')
    assert logs == [{
        'event': 'Fetched versions for 2/4 packages',
        'log_level': 'info',
        'completed': 2,
        'total': 4,
    }]
