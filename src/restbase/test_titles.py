"""Tests for page titles and title encoding."""

from restbase.titles import NS_FILE, NS_MAIN, NS_TEMPLATE, Title, encode_title


class TestTitle:
    """Tests for the Title value type."""

    def test_spaces_become_underscores(self):
        title = Title(NS_MAIN, "Foo Bar")

        assert title.dbkey == "Foo_Bar"
        assert title.prefixed_text == "Foo Bar"

    def test_parse_namespaced_title(self):
        title = Title.parse("Template:Infobox country")

        assert title.namespace == NS_TEMPLATE
        assert title.dbkey == "Infobox_country"
        assert title.prefixed_dbkey == "Template:Infobox_country"

    def test_parse_is_case_insensitive_for_prefix(self):
        assert Title.parse("file:Example.png") == Title(NS_FILE, "Example.png")

    def test_parse_unknown_prefix_stays_in_main_namespace(self):
        title = Title.parse("Star Wars: A New Hope")

        assert title.namespace == NS_MAIN
        assert title.dbkey == "Star_Wars:_A_New_Hope"

    def test_is_file(self):
        assert Title(NS_FILE, "Example.png").is_file
        assert not Title(NS_MAIN, "Example.png").is_file

    def test_equal_titles_hash_equal(self):
        assert {Title(0, "Foo Bar"): 1}[Title(0, "Foo_Bar")] == 1


class TestEncodeTitle:
    """Tests for URL encoding of DB keys."""

    def test_keeps_safe_characters(self):
        assert encode_title("Talk:A/B_(c),d!") == "Talk:A/B_(c),d!"

    def test_percent_encodes_others(self):
        assert encode_title("Café & bar?") == "Caf%C3%A9_%26_bar%3F"
