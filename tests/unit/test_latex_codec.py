"""
LaTeX escape codec tests.
"""

import pytest

from bibobridge.application.services import latex_codec


class TestDecode:
    """LaTeX -> Unicode."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Caf{\\'e}", "Café"),
            ("Caf\\'e", "Café"),
            ("Caf\\'{e}", "Café"),
            ("G{\\\"o}del", "Gödel"),
            ("Fran\\c{c}ois", "François"),
            ("{\\v{S}}koda", "Škoda"),
            ("{\\v S}koda", "Škoda"),
            ("Stra{\\ss}e", "Straße"),
            ("{\\o}re", "øre"),
            ("{\\aa}ngstr{\\\"o}m", "ångström"),
            ("Pe{\\~n}a", "Peña"),
            ("{\\u{a}}", "ă"),
            ("na{\\\"\\i}ve", "naïve"),
        ],
    )
    def test_accents_and_letters(self, text, expected):
        assert latex_codec.decode(text) == expected

    def test_escaped_symbols(self):
        assert latex_codec.decode("Barnes \\& Noble, 50\\% off") == "Barnes & Noble, 50% off"

    def test_unknown_commands_are_kept(self):
        assert latex_codec.decode("\\emph{word}") == "\\emph{word}"

    def test_plain_text_unchanged(self):
        assert latex_codec.decode("plain") == "plain"
        assert latex_codec.decode(None) is None


class TestEncode:
    """Unicode -> LaTeX."""

    def test_accents(self):
        assert latex_codec.encode("Café") == "Caf{\\'e}"
        assert latex_codec.encode("Škoda") == "{\\v{S}}koda"

    def test_special_letters_win(self):
        assert latex_codec.encode("å") == "{\\aa}"
        assert latex_codec.encode("ß") == "{\\ss}"

    def test_symbols_escaped_once(self):
        assert latex_codec.encode("R&D") == "R\\&D"
        assert latex_codec.encode("R\\&D") == "R\\&D"

    @pytest.mark.parametrize("text", ["Gödel, Escher, Bach", "François Peña", "Straße & Co", "ångström"])
    def test_round_trip(self, text):
        assert latex_codec.decode(latex_codec.encode(text)) == text


class TestVerbatimFields:
    """Identifier fields are left alone."""

    def test_url_not_touched(self):
        url = "https://example.org/a_b%20c"
        assert latex_codec.encode_field("url", url) == url
        assert latex_codec.decode_field("URL", url) == url

    def test_regular_field_encoded(self):
        assert latex_codec.encode_field("title", "a_b") == "a\\_b"
