"""Unit tests for cli.output module."""

from unittest.mock import patch

from foundry_sync.cli.models import ExportSummary
from foundry_sync.cli.output import OutputHandler


class TestOutputHandler:
    """Test cases for OutputHandler."""

    def test_info_hidden_at_verbosity_0(self):
        handler = OutputHandler(verbosity=0, no_color=True)

        with patch.object(handler.console, 'print') as mock_print:
            handler.info("hidden")

        mock_print.assert_not_called()

    def test_info_shown_at_verbosity_1(self):
        handler = OutputHandler(verbosity=1, no_color=True)

        with patch.object(handler.console, 'print') as mock_print:
            handler.info("shown")

        mock_print.assert_called_once_with("shown")

    def test_summary_lists_failed_notes(self):
        # Arrange
        handler = OutputHandler(no_color=True)
        summary = ExportSummary(created_count=2, failed_count=1, failed_notes=["Areas/Town.md"],
                                links_unresolved=4)

        # Act
        with handler.console.capture() as capture:
            handler.print_summary(summary)

        # Assert
        text = capture.get()
        assert "Created: 2 page(s)" in text
        assert "Areas/Town.md" in text
        assert "Links pending: 4" in text
        assert "Export completed with failures" in text

    def test_empty_summary(self):
        handler = OutputHandler(no_color=True)

        with handler.console.capture() as capture:
            handler.print_summary(ExportSummary())

        assert "Nothing exported" in capture.get()
