# Tests for kbsync.output.console
# Rich-based console output

from io import StringIO

from rich.console import Console as RichConsole

from kbsync.config.schema import KbSyncConfig
from kbsync.model import Category, ErrorBody, ExternalContent, FailedEntity, Label
from kbsync.output.console import Console, create_console
from kbsync.pipe.context import PipeContext
from kbsync.pipe.pipe import EntityStats, SyncResult


def _make_console(verbose: bool = False) -> Console:
    """Create a console with captured output."""
    console = Console(verbose=verbose, colored=False)
    console._console = RichConsole(file=StringIO(), no_color=True, width=120)
    return console


def _get_output(console: Console) -> str:
    """Get captured output from console."""
    console._console.file.seek(0)
    return console._console.file.read()


def _stats(**overrides) -> dict:
    stats = {name: EntityStats() for name in ("categories", "labels", "documents")}
    stats.update(overrides)
    return stats


class TestConsoleBasic:
    """Tests for basic console methods."""

    def test_logger_shares_console(self):
        c = _make_console(verbose=True)
        logger = c.create_logger()
        logger.debug("details")
        logger.success("done")
        output = _get_output(c)
        assert "details" in output
        assert "done" in output

    def test_create_console(self):
        c = create_console(verbose=True, colored=False)
        assert c.verbose is True


class TestSyncResult:
    """Tests for print_sync_result."""

    def test_completed(self):
        c = _make_console()
        c.print_sync_result(SyncResult(success=True, stats=_stats(documents=EntityStats(processed=3, created=2))))
        output = _get_output(c)
        assert "documents" in output
        assert "Sync completed" in output
        assert "resumed" not in output

    def test_resumed_with_failures(self):
        c = _make_console()
        c.print_sync_result(SyncResult(success=True, resumed=True, stats=_stats(labels=EntityStats(failed=1))))
        output = _get_output(c)
        assert "failed entities" in output
        assert "resumed from checkpoint" in output

    def test_interrupted(self):
        c = _make_console()
        c.print_sync_result(SyncResult(success=False, interrupted=True))
        output = _get_output(c)
        assert "Sync interrupted" in output
        assert "resume" in output


class TestCheckpointStatus:
    """Tests for print_checkpoint_status."""

    def test_no_checkpoint(self):
        c = _make_console()
        c.print_checkpoint_status(None, "/tmp/context.json")
        assert "No checkpoint at /tmp/context.json" in _get_output(c)

    def test_counts_and_failures(self):
        context = PipeContext.create(ExternalContent())
        context.pipe.processed_items.categories.append(Category(external_id="c1"))
        context.pipe.unprocessed_items.labels.append(Label(external_id="l1"))
        context.pipe.failed_items.labels.append(
            FailedEntity(entity=Label(external_id="l2"), errors=[ErrorBody(code="x", message_with_params="Broken label")])
        )
        context.adapter.buffer("articles").extend([{"id": "a1"}, {"id": "a2"}])

        c = _make_console(verbose=True)
        c.print_checkpoint_status(context, "context.json")
        output = _get_output(c)
        assert "Pending" in output
        assert "2 source records buffered" in output
        assert "label l2: Broken label" in output


class TestConfigSummary:
    """Tests for print_config_summary."""

    def test_summary(self, kb_config: KbSyncConfig):
        c = _make_console()
        c.print_config_summary("config.yaml", kb_config)
        output = _get_output(c)
        assert "KBSync Configuration" in output
        assert "kb-1" in output
        assert "MODIFICATION_DATE" in output
