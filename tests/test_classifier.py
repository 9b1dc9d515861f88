"""
Unit tests for the edit classifier.

Default layout: download checkbox at B1, upload column F, data from row 5.
"""

import pytest

from sheet_calendar_sync.classifier import Download
from sheet_calendar_sync.classifier import EditNotification
from sheet_calendar_sync.classifier import Ignore
from sheet_calendar_sync.classifier import UploadRows
from sheet_calendar_sync.classifier import classify_edit
from sheet_calendar_sync.classifier import is_checkbox_true
from sheet_calendar_sync.classifier import is_true_value
from sheet_calendar_sync.layout import load_layout


def _edit(row, col, value=True, last_row=None, last_col=None, **kwargs) -> EditNotification:
    return EditNotification(
        range_address="test",
        row=row,
        last_row=last_row or row,
        column=col,
        last_column=last_col or col,
        raw_value=value,
        **kwargs,
    )


class TestCheckboxTrue:
    def test_prefers_is_checked(self):
        assert is_checkbox_true(_edit(5, 6, value="FALSE", is_checked=lambda: True))
        assert not is_checkbox_true(_edit(5, 6, value=True, is_checked=lambda: False))

    @pytest.mark.parametrize("value", [True, "TRUE", "true", " True "])
    def test_true_values(self, value):
        assert is_checkbox_true(_edit(5, 6, value=value))

    @pytest.mark.parametrize("value", [False, "FALSE", None, 1, "yes"])
    def test_other_values(self, value):
        assert not is_checkbox_true(_edit(5, 6, value=value))

    def test_custom_indicator(self):
        assert is_checkbox_true(_edit(5, 6, value="WAHR"), true_indicator="WAHR")

    def test_cell_values_use_the_same_rule(self):
        """Pasted rows read their stored flag with the checkbox rule."""
        assert is_true_value(True)
        assert is_true_value(" true ")
        assert is_true_value("WAHR", "wahr")
        assert not is_true_value("WAHR")
        assert not is_true_value(1)
        assert not is_true_value(None)


class TestClassify:
    def test_download_checked(self, layout):
        assert classify_edit(_edit(1, 2), layout) == Download()

    def test_download_unchecked_is_ignored(self, layout):
        """The core's own reset write of the download box must not re-trigger."""
        assert isinstance(classify_edit(_edit(1, 2, value=False), layout), Ignore)

    def test_upload_single_row(self, layout):
        action = classify_edit(_edit(7, 6), layout)
        assert action == UploadRows(7, 7)
        assert list(action.rows) == [7]

    def test_upload_reset_to_false_is_ignored(self, layout):
        assert isinstance(classify_edit(_edit(7, 6, value=False), layout), Ignore)

    def test_upload_above_data_region_is_ignored(self, layout):
        assert isinstance(classify_edit(_edit(4, 6), layout), Ignore)

    def test_pasted_block_clamped_to_data_region(self, layout):
        action = classify_edit(_edit(3, 5, value=None, last_row=9, last_col=7), layout)
        assert action == UploadRows(5, 9)

    def test_edit_outside_upload_column_is_ignored(self, layout):
        """Typing a title does not push the row."""
        assert isinstance(classify_edit(_edit(7, 2, value="Standup"), layout), Ignore)

    def test_other_sheet_is_ignored(self):
        layout = load_layout({"sheet_name": "Events"})
        assert isinstance(classify_edit(_edit(7, 6, sheet_name="Notes"), layout), Ignore)
        assert classify_edit(_edit(7, 6, sheet_name="Events"), layout) == UploadRows(7, 7)

    def test_download_cell_inside_upload_column(self):
        """When both controls share a column the download control wins."""
        layout = load_layout({"download_cell": "F1", "first_data_row": "1"})
        assert classify_edit(_edit(1, 6), layout) == Download()
        assert classify_edit(_edit(2, 6), layout) == UploadRows(2, 2)
