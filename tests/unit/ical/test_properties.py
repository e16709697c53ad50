"""Unit tests for keyword, relatedTo, HTML description and locale conversion."""

from icalendar import Event
from icalendar.prop import vText

from jmapical.ical.properties import (
    html_description_from_ical,
    html_description_to_ical,
    html_to_text,
    keywords_from_ical,
    keywords_to_ical,
    locale_from_ical,
    locale_to_ical,
    related_to_from_ical,
    related_to_to_ical,
)


class TestKeywords:
    """Test CATEGORIES conversion."""

    def test_keywords_from_ical_when_several_properties_then_merged_without_duplicates(
        self, read_ctx
    ) -> None:
        """Test that categories from every property are collected once."""
        event = Event.from_ical(
            "BEGIN:VEVENT\r\nCATEGORIES:work,travel\r\nCATEGORIES:travel,fun\r\nEND:VEVENT\r\n"
        )
        assert keywords_from_ical(read_ctx, event) == ["work", "travel", "fun"]

    def test_keywords_from_ical_when_none_then_none(self, read_ctx) -> None:
        """Test events without categories."""
        assert keywords_from_ical(read_ctx, Event()) is None

    def test_keywords_to_ical_when_list_then_one_property_each(self, write_ctx) -> None:
        """Test writing keywords."""
        event = Event()
        keywords_to_ical(write_ctx, event, ["work", "travel"])
        assert [prop.cats for prop in event["CATEGORIES"]] == [["work"], ["travel"]]

    def test_keywords_to_ical_when_not_strings_then_invalid(self, write_ctx) -> None:
        """Test that every keyword must be a string."""
        keywords_to_ical(write_ctx, Event(), ["work", 7])
        assert write_ctx.invalid_properties == ["keywords/1"]


class TestRelatedTo:
    """Test RELATED-TO conversion."""

    def test_related_to_from_ical_when_reltype_then_keyed_by_type(self, read_ctx) -> None:
        """Test that relation types are lower-cased keys."""
        event = Event.from_ical(
            "BEGIN:VEVENT\r\nRELATED-TO;RELTYPE=PARENT:parent@example.com\r\n"
            "RELATED-TO:no-type@example.com\r\nEND:VEVENT\r\n"
        )
        assert related_to_from_ical(read_ctx, event) == {"parent": "parent@example.com"}

    def test_related_to_to_ical_when_map_then_reltype_param(self, write_ctx) -> None:
        """Test writing relations."""
        event = Event()
        related_to_to_ical(write_ctx, event, {"sibling": "other@example.com"})
        assert str(event["RELATED-TO"]) == "other@example.com"
        assert event["RELATED-TO"].params["RELTYPE"] == "SIBLING"

    def test_related_to_to_ical_when_empty_uid_then_invalid(self, write_ctx) -> None:
        """Test that relation targets must be non-empty."""
        related_to_to_ical(write_ctx, Event(), {"parent": ""})
        assert write_ctx.invalid_properties == ["relatedTo/parent"]


class TestHTMLDescription:
    """Test the HTML alternative representation of DESCRIPTION."""

    def test_html_to_text_when_markup_then_plain_text(self) -> None:
        """Test text extraction from HTML."""
        assert html_to_text("<p>Hello <b>world</b></p>") == "Hello world"

    def test_html_description_to_ical_when_no_text_then_derived_from_html(self, write_ctx) -> None:
        """Test that an empty description is filled from the HTML."""
        event = Event()
        html_description_to_ical(write_ctx, event, "<p>Agenda <i>inside</i></p>")

        assert str(event["DESCRIPTION"]) == "Agenda inside"
        assert event["DESCRIPTION"].params["ALTREP"] == "data:text/html,<p>Agenda <i>inside</i></p>"

    def test_html_description_to_ical_when_text_exists_then_text_kept(self, write_ctx) -> None:
        """Test that an existing plain description is not overwritten."""
        event = Event()
        description = vText("Plain agenda")
        description.params["LANGUAGE"] = "en"
        event.add("DESCRIPTION", description)

        html_description_to_ical(write_ctx, event, "<p>Rich agenda</p>")

        assert str(event["DESCRIPTION"]) == "Plain agenda"
        assert event["DESCRIPTION"].params["LANGUAGE"] == "en"
        assert html_description_from_ical(write_ctx, event) == "<p>Rich agenda</p>"

    def test_html_description_to_ical_when_none_then_altrep_removed(self, write_ctx) -> None:
        """Test clearing the HTML description."""
        event = Event()
        html_description_to_ical(write_ctx, event, "<p>x</p>")
        html_description_to_ical(write_ctx, event, None)

        assert "ALTREP" not in event["DESCRIPTION"].params
        assert html_description_from_ical(write_ctx, event) is None

    def test_html_description_from_ical_when_other_altrep_then_none(self, read_ctx) -> None:
        """Test that non-HTML alternative representations are ignored."""
        event = Event.from_ical(
            'BEGIN:VEVENT\r\nDESCRIPTION;ALTREP="https://example.com/agenda":Agenda\r\n'
            "END:VEVENT\r\n"
        )
        assert html_description_from_ical(read_ctx, event) is None


class TestLocale:
    """Test LANGUAGE parameter conversion."""

    def test_locale_from_ical_when_description_only_then_falls_back(self, read_ctx) -> None:
        """Test that DESCRIPTION provides the locale when SUMMARY has none."""
        event = Event.from_ical(
            "BEGIN:VEVENT\r\nSUMMARY:Title\r\nDESCRIPTION;LANGUAGE=fr:Texte\r\nEND:VEVENT\r\n"
        )
        assert locale_from_ical(read_ctx, event) == "fr"

    def test_locale_to_ical_when_set_then_on_summary_only(self, write_ctx) -> None:
        """Test that the locale moves to SUMMARY."""
        event = Event.from_ical(
            "BEGIN:VEVENT\r\nSUMMARY:Title\r\nDESCRIPTION;LANGUAGE=fr:Texte\r\nEND:VEVENT\r\n"
        )

        locale_to_ical(write_ctx, event, "de")

        assert event["SUMMARY"].params["LANGUAGE"] == "de"
        assert "LANGUAGE" not in event["DESCRIPTION"].params

    def test_locale_to_ical_when_no_title_then_dropped(self, write_ctx) -> None:
        """Test that the locale needs a SUMMARY to live on."""
        event = Event()
        locale_to_ical(write_ctx, event, "de")
        assert "SUMMARY" not in event
        assert not write_ctx.has_invalid()
