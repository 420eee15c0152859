"""Tests for Markdown to HTML fragment rendering."""

import base64

import pytest

from markdown_pdf_cli.errors import UserInputError
from markdown_pdf_cli.renderer import MarkdownRenderer


@pytest.fixture
def render(make_config, logger):
    """Return a helper rendering a Document with an optional config override."""
    def _render(document, target="html", override=None):
        renderer = MarkdownRenderer(make_config(override), logger)
        return renderer.render(document, target)
    return _render


class TestHeadings:
    """Test heading anchor ids."""

    def test_ids_assigned(self, render, make_document):
        html = render(make_document("# Intro\n\n## Intro\n\n### Intro\n"))
        assert '<h1 id="intro">Intro</h1>' in html
        assert '<h2 id="intro-1">Intro</h2>' in html
        assert '<h3 id="intro-2">Intro</h3>' in html

    def test_inline_markup_ignored(self, render, make_document):
        html = render(make_document("# Hello *world*\n"))
        assert '<h1 id="hello-world">' in html

    def test_punctuation_only_heading(self, render, make_document):
        html = render(make_document("# !!!\n"))
        assert "<h1>!!!</h1>" in html

    def test_counter_fresh_per_render(self, make_config, logger, make_document):
        renderer = MarkdownRenderer(make_config(), logger)
        document = make_document("# Intro\n")
        assert 'id="intro"' in renderer.render(document, "html")
        assert 'id="intro"' in renderer.render(document, "pdf")


class TestImages:
    """Test image source rewriting per target."""

    def test_absolute_for_pdf(self, render, make_document, docs_dir):
        html = render(make_document("![pic](img/pic.png)\n"), "pdf")
        assert f'src="file://{docs_dir}/img/pic.png"' in html

    def test_relative_for_html(self, render, make_document):
        html = render(make_document("![pic](img/my%20pic.png)\n"), "html")
        assert 'src="img/my pic.png"' in html

    def test_remote_untouched(self, render, make_document):
        html = render(make_document("![pic](https://example.com/a.png)\n"), "png")
        assert 'src="https://example.com/a.png"' in html

    def test_html_block_rewritten(self, render, make_document, docs_dir):
        html = render(make_document('<p><img src="img/pic.png"></p>\n'), "pdf")
        assert f'src="file://{docs_dir}/img/pic.png"' in html

    def test_html_block_without_image(self, render, make_document):
        html = render(make_document('<div class="note">raw</div>\n'), "pdf")
        assert '<div class="note">raw</div>' in html

    def test_html_block_kept_for_html(self, render, make_document):
        html = render(make_document('<p><img src="img/pic.png"></p>\n'), "html")
        assert '<img src="img/pic.png">' in html


class TestCodeBlocks:
    """Test fenced code handling."""

    def test_python_highlighted(self, render, make_document):
        html = render(make_document("```python\ndef f():\n    pass\n```\n"))
        assert '<pre class="hljs"><code><div>' in html
        assert '<span class="k">def</span>' in html

    def test_unknown_language_escaped(self, render, make_document):
        html = render(make_document("```nosuchlang\n<b>bold</b>\n```\n"))
        assert '<pre class="hljs"><code><div>&lt;b&gt;bold&lt;/b&gt;' in html

    def test_no_language_escaped(self, render, make_document):
        html = render(make_document("```\na < b\n```\n"))
        assert "a &lt; b" in html

    def test_highlighted_without_theme(self, render, make_document):
        html = render(make_document("```python\ndef f(): pass\n```\n"),
                      override={"markdownPdf": {"highlight": False}})
        assert '<span class="k">def</span>' in html

    def test_highlighter_failure_warns(self, render, make_document, logger, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("lexer exploded")

        monkeypatch.setattr("markdown_pdf_cli.renderer.highlight", broken)
        html = render(make_document("```python\nx = 1\n```\n"))
        assert "x = 1" in html
        assert "lexer exploded" in logger.error_stream.getvalue()

    def test_mermaid_left_for_browser(self, render, make_document):
        html = render(make_document("```mermaid\ngraph TD; A-->B\n```\n"))
        assert '<div class="mermaid">graph TD; A--&gt;B' in html
        assert "hljs" not in html


class TestExtensions:
    """Test the markdown-it extensions wired into the parser."""

    def test_front_matter_excluded(self, render, make_document):
        html = render(make_document("---\ntitle: Hidden\n---\n# Shown\n"))
        assert "Hidden" not in html
        assert "Shown" in html

    def test_tables(self, render, make_document):
        html = render(make_document("| a | b |\n|---|---|\n| 1 | 2 |\n"))
        assert "<table>" in html

    def test_checkboxes(self, render, make_document):
        html = render(make_document("- [ ] todo\n- [x] done\n"))
        assert 'type="checkbox"' in html
        assert "checked" in html

    def test_container(self, render, make_document):
        html = render(make_document("::: warning\nBe careful\n:::\n"))
        assert '<div class="warning">' in html
        assert "Be careful" in html

    def test_container_allow_list(self, render, make_document):
        text = "---\ncontainerClasses: [note]\n---\n::: warning\nBe careful\n:::\n\n::: note\nHi\n:::\n"
        html = render(make_document(text))
        assert '<div class="warning">' not in html
        assert '<div class="note">' in html

    def test_plantuml(self, render, make_document):
        html = render(make_document("@startuml\nAlice -> Bob: hello\n@enduml\n"))
        assert '<img src="https://www.plantuml.com/plantuml/svg/' in html
        assert 'alt="uml diagram"' in html
        assert "Alice" not in html

    def test_plantuml_custom_server(self, render, make_document):
        html = render(make_document("@startuml\nA -> B\n@enduml\n"),
                      override={"markdownPdf": {"plantumlServer": "http://localhost:8080/"}})
        assert '<img src="http://localhost:8080/svg/' in html

    def test_include(self, render, make_document, docs_dir):
        (docs_dir / "part.md").write_text("Included **text**\n", encoding="utf-8")
        html = render(make_document("Before\n\n:[part](part.md)\n\nAfter\n"))
        assert "<strong>text</strong>" in html
        assert "After" in html

    def test_nested_include(self, render, make_document, docs_dir):
        (docs_dir / "sub").mkdir()
        (docs_dir / "sub" / "outer.md").write_text(":[inner](inner.md)\n", encoding="utf-8")
        (docs_dir / "sub" / "inner.md").write_text("Deep *inside*\n", encoding="utf-8")
        html = render(make_document(":[outer](sub/outer.md)\n"))
        assert "<em>inside</em>" in html

    def test_missing_include(self, render, make_document):
        with pytest.raises(UserInputError):
            render(make_document(":[gone](gone.md)\n"))

    def test_include_disabled(self, render, make_document):
        html = render(make_document(":[gone](gone.md)\n"),
                      override={"markdownPdf": {"markdown-it-include": {"enable": False}}})
        assert "gone.md" in html

    def test_breaks_from_front_matter(self, render, make_document):
        html = render(make_document("---\nbreaks: true\n---\nline one\nline two\n"))
        assert "<br" in html

    def test_no_breaks_by_default(self, render, make_document):
        html = render(make_document("line one\nline two\n"))
        assert "<br" not in html

    def test_plantuml_options_from_front_matter(self, render, make_document):
        text = ('---\nplantumlOpenMarker: "@begin"\nplantumlCloseMarker: "@finish"\n'
                'plantumlServer: "http://uml.local"\n---\n@begin\nA -> B\n@finish\n\nAfter\n')
        html = render(make_document(text))
        assert '<img src="http://uml.local/svg/' in html
        assert "@begin" not in html
        assert "<p>After</p>" in html

    def test_include_root_from_front_matter(self, render, make_document, docs_dir):
        (docs_dir / "parts").mkdir()
        (docs_dir / "parts" / "piece.md").write_text("From *parts*\n", encoding="utf-8")
        html = render(make_document("---\nincludeRoot: parts\n---\n:[piece](piece.md)\n"))
        assert "<em>parts</em>" in html

    def test_include_pattern_from_front_matter(self, render, make_document, docs_dir):
        (docs_dir / "part.md").write_text("Custom **syntax**\n", encoding="utf-8")
        text = "---\nincludePattern: '!!include\\((.+\\..+)\\)'\n---\n!!include(part.md)\n"
        html = render(make_document(text))
        assert "<strong>syntax</strong>" in html
        assert "!!include" not in html


class TestEmoji:
    """Test emoji shortcodes."""

    @pytest.fixture
    def emoji_dir(self, tmp_path):
        path = tmp_path / "emoji"
        path.mkdir()
        (path / "smile.png").write_bytes(b"\x89PNG smile")
        return path

    @pytest.fixture
    def no_emoji_font(self, monkeypatch):
        monkeypatch.setattr("markdown_pdf_cli.renderer.find_emoji_font", lambda: None)

    def test_default_config_renders_emoji(self, render, make_document):
        html = render(make_document("Hi :smile: :+1: :tada: :rocket:\n"))
        assert html.count('class="emoji"') == 4
        assert ":smile:" not in html
        assert ":rocket:" not in html

    def test_inlined_image(self, render, make_document, emoji_dir):
        html = render(make_document("Hello :smile:\n"),
                      override={"markdownPdf": {"emojiImageDirectory": str(emoji_dir)}})
        encoded = base64.b64encode(b"\x89PNG smile").decode("ascii")
        assert f'<img class="emoji" alt="smile" src="data:image/png;base64,{encoded}" />' in html

    def test_drawn_with_system_font(self, render, make_document, monkeypatch):
        drawn = []

        def fake_render(char, font_path):
            drawn.append((char, font_path))
            return "data:image/png;base64,RkFLRQ=="

        monkeypatch.setattr("markdown_pdf_cli.renderer.find_emoji_font", lambda: "/fonts/emoji.ttf")
        monkeypatch.setattr("markdown_pdf_cli.plugins.render_emoji_png", fake_render)
        html = render(make_document("Ship it :rocket:\n"))
        assert '<img class="emoji" alt="rocket" src="data:image/png;base64,RkFLRQ==" />' in html
        assert drawn == [("\U0001F680", "/fonts/emoji.ttf")]

    def test_character_without_image(self, render, make_document, tmp_path, no_emoji_font):
        html = render(make_document("Hello :smile:\n"),
                      override={"markdownPdf": {"emojiImageDirectory": str(tmp_path)}})
        assert 'Hello <span class="emoji">\U0001F604</span>' in html

    def test_github_aliases(self, render, make_document, no_emoji_font):
        html = render(make_document(":+1: :tada:\n"))
        assert '<span class="emoji">\U0001F44D</span>' in html
        assert '<span class="emoji">\U0001F389</span>' in html

    def test_unknown_shortcode(self, render, make_document, emoji_dir):
        html = render(make_document("Hello :not_an_emoji:\n"),
                      override={"markdownPdf": {"emojiImageDirectory": str(emoji_dir)}})
        assert ":not_an_emoji:" in html

    def test_shortcode_in_link_text_kept(self, render, make_document, no_emoji_font):
        html = render(make_document("[:smile:](https://example.com)\n"))
        assert ">:smile:</a>" in html

    def test_disabled_in_front_matter(self, render, make_document, emoji_dir):
        html = render(make_document("---\nemoji: false\n---\nHello :smile:\n"),
                      override={"markdownPdf": {"emojiImageDirectory": str(emoji_dir)}})
        assert 'class="emoji"' not in html
        assert ":smile:" in html

    def test_missing_font_draws_nothing(self, tmp_path):
        from markdown_pdf_cli.plugins import render_emoji_png

        assert render_emoji_png("\U0001F604", str(tmp_path / "missing.ttf")) is None
