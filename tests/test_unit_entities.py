"""Unit tests for data models, settings and session state."""

import math

import pytest

from conftest import make_png
from secure_redact.detectors.prompt_builder import DefaultPromptBuilder, normalize_keywords
from secure_redact.models.entities import (
    NormalizedBox,
    PageRaster,
    PiiCategory,
    RedactionSettings,
)
from secure_redact.models.state import (
    Detecting,
    Exporting,
    Failed,
    Idle,
    Loading,
    StateTracker,
    describe,
)


class TestPiiCategory:
    @pytest.mark.parametrize(
        "label, expected",
        [
            ("NAME", PiiCategory.NAME),
            ("email", PiiCategory.EMAIL),
            (" national id ", PiiCategory.NATIONAL_ID),
            ("PESEL", PiiCategory.NATIONAL_ID),
            ("last-name", PiiCategory.SURNAME),
            ("something else", PiiCategory.OTHER),
            (None, PiiCategory.OTHER),
            (42, PiiCategory.OTHER),
        ],
    )
    def test_parse(self, label, expected):
        assert PiiCategory.parse(label) == expected


class TestNormalizedBox:
    def test_from_list(self):
        assert NormalizedBox.from_list([1, 2.5, 3, 4]) == NormalizedBox(1, 2.5, 3, 4)

    @pytest.mark.parametrize("values", [[1, 2, 3, math.inf], [1, 2, 3, math.nan], {}])
    def test_non_finite_or_wrong_type_is_zero(self, values):
        assert NormalizedBox.from_list(values) == NormalizedBox.zero()

    def test_out_of_range_kept_as_received(self):
        assert NormalizedBox.from_list([-10, 0, 2000, 5]).to_list() == [-10, 0, 2000, 5]


class TestPageRaster:
    def test_orientation(self):
        landscape = PageRaster(1, make_png(4, 2), pixel_width=4, pixel_height=2)
        portrait = PageRaster(2, make_png(2, 4), pixel_width=2, pixel_height=4)
        assert landscape.orientation == "landscape"
        assert portrait.orientation == "portrait"

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            PageRaster(1, b"", pixel_width=0, pixel_height=10)


class TestRedactionSettings:
    def test_defaults(self):
        settings = RedactionSettings()
        assert settings.ordered_categories() == [
            PiiCategory.NAME,
            PiiCategory.SURNAME,
            PiiCategory.NATIONAL_ID,
            PiiCategory.EMAIL,
        ]
        assert settings.custom_keywords == []

    def test_toggle_twice_restores(self):
        settings = RedactionSettings()
        before = set(settings.categories)
        assert settings.toggle_category(PiiCategory.PHONE) is True
        assert settings.toggle_category(PiiCategory.PHONE) is False
        assert settings.categories == before

    def test_blank_keyword_is_rejected(self):
        settings = RedactionSettings()
        assert settings.add_keyword("   ") is None
        assert settings.custom_keywords == []

    def test_keywords_are_trimmed_and_duplicates_kept(self):
        settings = RedactionSettings()
        settings.add_keyword(" Acme ")
        settings.add_keyword("Acme")
        assert settings.custom_keywords == ["Acme", "Acme"]

    def test_remove_keyword_removes_every_occurrence(self):
        settings = RedactionSettings(custom_keywords=["Acme", "x", "Acme"])
        assert settings.remove_keyword("Acme") == 2
        assert settings.custom_keywords == ["x"]
        assert settings.remove_keyword("missing") == 0

    def test_copy_is_independent(self):
        settings = RedactionSettings()
        snapshot = settings.copy()
        settings.add_keyword("later")
        settings.toggle_category(PiiCategory.NAME)
        assert snapshot.custom_keywords == []
        assert PiiCategory.NAME in snapshot.categories


class TestPromptBuilder:
    def test_normalize_keywords(self):
        keywords = ["Acme", "acme", " ", "Email", "Project X"]
        result = normalize_keywords(keywords, [PiiCategory.EMAIL])
        assert result == ["Acme", "Project X"]

    def test_category_with_space_spelling_is_dropped(self):
        assert normalize_keywords(["national id"], [PiiCategory.NATIONAL_ID]) == []

    def test_prompt_lists_enabled_categories_only(self):
        page = PageRaster(1, make_png(2, 2), pixel_width=2, pixel_height=2)
        ctx = DefaultPromptBuilder().build(page, [PiiCategory.EMAIL], ["Acme", "ACME"])
        system = ctx.messages[0]["content"]
        assert "- EMAIL:" in system
        assert "- NAME:" not in system
        assert ctx.keywords == ["Acme"]

    def test_prompt_without_keywords(self):
        page = PageRaster(1, make_png(2, 2), pixel_width=2, pixel_height=2)
        ctx = DefaultPromptBuilder().build(page, [PiiCategory.NAME])
        text = ctx.messages[1]["content"][0]["text"]
        assert "keywords" not in text


class _Clock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestStateTracker:
    def test_describe(self):
        assert describe(Loading(1, 3)) == "Rendering page 1 of 3..."
        assert describe(Detecting(2, 3)) == "Analyzing page 2 of 3..."
        assert describe(Exporting()) == "Generating PDF..."
        assert describe(Failed("nope")) == "nope"
        assert describe(Idle()) == ""

    def test_busy_states(self):
        tracker = StateTracker()
        assert not tracker.busy
        tracker.set(Detecting(1, 2))
        assert tracker.busy
        tracker.fail("x")
        assert not tracker.busy

    def test_completion_note_lingers_then_clears(self):
        clock = _Clock()
        tracker = StateTracker(linger_seconds=3.0, clock=clock)
        tracker.complete("Done!")
        assert tracker.status_text == "Done!"
        clock.now += 3.5
        assert tracker.status_text == ""

    def test_new_failure_replaces_previous(self):
        tracker = StateTracker()
        tracker.fail("first")
        tracker.fail("second")
        assert tracker.error == "second"
        assert isinstance(tracker.state, Failed)

    def test_begin_clears_error(self):
        tracker = StateTracker()
        tracker.fail("first")
        tracker.begin()
        assert tracker.error is None

    def test_complete_clears_error(self):
        tracker = StateTracker()
        tracker.fail("first")
        tracker.complete()
        assert tracker.error is None
        assert isinstance(tracker.state, Idle)

    def test_clear_error_returns_failed_state_to_idle(self):
        tracker = StateTracker()
        tracker.fail("first")
        tracker.clear_error()
        assert tracker.error is None
        assert isinstance(tracker.state, Idle)

    def test_clear_error_keeps_busy_state(self):
        tracker = StateTracker()
        tracker.set(Detecting(1, 2))
        tracker.clear_error()
        assert isinstance(tracker.state, Detecting)
