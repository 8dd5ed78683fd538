"""
Tests for answer sanitization.
"""

import pytest

from chatbot.sanitize import sanitize_answer, strip_html


class TestStripHtml:
    """Tests for HTML removal."""

    def test_keeps_text_of_ordinary_tags(self):
        assert strip_html("<p>Piscina <strong>fechada</strong></p>") == "Piscina fechada"

    def test_drops_script_and_style_blocks(self):
        text = "A<script type='text/javascript'>steal()</script>B<style>p{}</style>C"
        assert strip_html(text) == "ABC"

    def test_drops_unclosed_script(self):
        assert strip_html("Regra<script>document.cookie") == "Regra"

    def test_drops_comments(self):
        assert strip_html("a<!-- hidden -->b") == "ab"

    def test_leaves_comparisons_alone(self):
        assert strip_html("2 < 3 e 5 > 4") == "2 < 3 e 5 > 4"

    def test_keeps_spaced_angle_brackets_in_prose(self):
        text = "crianças < acima de 5 anos > podem usar a piscina"
        assert strip_html(text) == text
        assert sanitize_answer(text) == text

    def test_strips_closing_tags_and_doctype(self):
        assert strip_html("<!DOCTYPE html><div>Salão</div><br/>") == "Salão"


class TestSanitizeAnswer:
    """Tests for the transcript sanitizer."""

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty(self, value):
        assert sanitize_answer(value) == ""

    def test_keeps_bold_markers_and_emoji(self):
        text = 'Olá Ana! Encontrei informações relevantes no **Uso da Piscina**:\n\n"..."\n\n📄 Fonte: Regimento'
        assert sanitize_answer(text) == text

    def test_encoded_script_does_not_survive(self):
        result = sanitize_answer("Aviso &lt;script&gt;alert(1)&lt;/script&gt; fim")
        assert "<script>" not in result
        assert "alert" not in result
        assert result.startswith("Aviso")
        assert result.endswith("fim")

    def test_decodes_entities(self):
        assert sanitize_answer("Sal&atilde;o &amp; churrasqueira") == "Salão & churrasqueira"

    def test_collapses_blank_lines(self):
        assert sanitize_answer("a  \n\n\n\nb") == "a\n\nb"
