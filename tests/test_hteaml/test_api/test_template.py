"""Tests for the template API with progressive disclosure.

Covers the Level 1 module functions, the Template and ParseResult objects,
and the configured HteamlEngine.
"""

import io
import logging

import pytest

from hteaml.api.template import (
    HteamlEngine,
    ParseResult,
    Template,
    parse,
    parse_file,
    parse_string,
    render,
    render_template,
)
from hteaml.document.model import Tag
from hteaml.grammar.cursor import TokenCursor
from hteaml.grammar.lexer import tokenize
from hteaml.grammar.tokens import Token, TokenType
from hteaml.shared.config import HteamlConfig, MissingSlotPolicy
from hteaml.shared.errors import HteamlError, ParseError, SlotBindingError
from hteaml.shared.logging import PACKAGE_LOGGER
from hteaml.shared.result import DiagnosticSeverity, TokenPosition


@pytest.fixture
def restore_package_level():
    """Restore the package logger level after an engine changes it."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    level = package_logger.level
    yield package_logger
    package_logger.setLevel(level)


class TestSimpleFunctions:
    """Test Level 1: simple module-level functions."""

    def test_parse(self):
        """Test parsing into a template."""
        template = parse('(mytag hello:world = "content")')

        assert isinstance(template, Template)
        assert template.source == '(mytag hello:world = "content")'
        assert template.render() == '<mytag hello="world">content</mytag>'

    def test_parse_raises(self):
        """Test that parse raises on malformed input."""
        with pytest.raises(ParseError):
            parse("(p")

    def test_parse_rejects_non_string(self):
        """Test that only text can be parsed."""
        with pytest.raises(TypeError, match="must be str"):
            parse(b"(p)")

    def test_parse_string_success(self):
        """Test the never-raise parse on valid input."""
        result = parse_string("(p = {} {name})")

        assert isinstance(result, ParseResult)
        assert result.success is True
        assert result.error is None
        assert result.template.slot_keys == [0, "name"]
        assert result.performance.slots_found == 2
        assert result.performance.elements_built == 1
        assert result.performance.characters_processed == len("(p = {} {name})")
        assert result.performance.tokens_generated == 11
        assert not result.has_errors()

    def test_parse_string_failure(self):
        """Test that grammar errors become a failed result."""
        result = parse_string("(p key:)")

        assert result.success is False
        assert result.template is None
        assert isinstance(result.error, ParseError)
        assert result.has_errors()

        diagnostic = result.get_diagnostics_by_severity(DiagnosticSeverity.ERROR)[0]
        assert diagnostic.message == "Expected key:value pairs for attributes"
        assert diagnostic.position == {"line": 1, "column": 8, "offset": 7}
        assert diagnostic.details["expected"] == "an attribute value"

    def test_parse_string_lexer_failure(self):
        """Test that lexer errors become a failed result too."""
        result = parse_string('(p = "open)')

        assert result.success is False
        assert "Unterminated string literal" in result.diagnostics[0].message

    def test_parse_string_correlation_id(self):
        """Test that the correlation ID reaches the result and diagnostics."""
        result = parse_string("(p", correlation_id="req-42")

        assert result.correlation_id == "req-42"
        assert result.diagnostics[0].correlation_id == "req-42"

    def test_parse_file(self, tmp_path):
        """Test parsing a template file."""
        path = tmp_path / "page.hteaml"
        path.write_text('(p = "héllo")', encoding="utf-8")

        result = parse_file(path)

        assert result.success is True
        assert result.template.render() == "<p>héllo</p>"
        info = result.get_diagnostics_by_severity(DiagnosticSeverity.INFO)
        assert any("utf-8" in diag.message for diag in info)

    def test_parse_file_missing(self, tmp_path):
        """Test that a missing file gives a failed result."""
        result = parse_file(str(tmp_path / "missing.hteaml"))

        assert result.success is False
        assert isinstance(result.error, FileNotFoundError)
        assert result.diagnostics[0].component == "file_parser"

    def test_parse_file_bad_encoding(self, tmp_path):
        """Test that undecodable bytes give a failed result."""
        path = tmp_path / "latin.hteaml"
        path.write_bytes(b'(p = "\xff")')

        result = parse_file(path, encoding="utf-8")

        assert result.success is False
        assert isinstance(result.error, UnicodeDecodeError)

    def test_render_element(self):
        """Test rendering a built element."""
        assert render(Tag("p").content("x")) == "<p>x</p>"

    def test_render_template_object(self):
        """Test rendering a parsed template with values."""
        assert render(parse("(p = {})"), "x") == "<p>x</p>"

    def test_render_template(self):
        """Test parse-and-render in one call."""
        output = render_template("(a href:{url} = {text})", url="/", text="home")
        assert output == '<a href="/">home</a>'

    def test_composition(self):
        """Test composing rendered fragments through top-level slots."""
        head = parse('(head (title = "composition"))')
        body = parse("(body = {})")
        footer = parse('(footer = "nothing to see here")')
        page = parse("{} {} {}")

        message = "Templates compose"
        output = page.render(head.bind(), body.bind(message), footer.bind())
        assert output == (
            "<head><title>composition</title></head>"
            "<body>Templates compose</body>"
            "<footer>nothing to see here</footer>"
        )

    def test_composition_nested(self):
        """Test a composed sequence bound into tag content."""
        inner = parse("{} {}").bind(parse("(h1 = {})").bind("T"), Tag("hr").self_closing())
        assert render_template("(html = {})", inner) == "<html><h1>T</h1><hr></html>"


class TestTemplate:
    """Test suite for Template objects."""

    def test_slot_keys_are_distinct(self):
        """Test that repeated slots are listed once."""
        template = parse("(p = {0} {1} {0})")
        assert template.slot_keys == [0, 1]
        assert len(template.slots) == 3

    def test_unbound_template_tree_as_value(self):
        """Test that render and bind treat a template tree passed as a value alike."""
        outer = parse("(div = {0})")
        inner = parse("(p = {name})")

        with pytest.raises(SlotBindingError, match="'name'"):
            outer.render(inner.root, name="x")
        with pytest.raises(SlotBindingError, match="'name'"):
            outer.bind(inner.root, name="x").render()
        assert outer.render(inner.bind(name="x")) == "<div><p>x</p></div>"

    def test_root_bound_to_itself(self):
        """Test that binding a template's own root into it raises cleanly."""
        template = parse("{}")
        with pytest.raises(SlotBindingError):
            template.render(template.root)

    def test_bind_returns_concrete_tree(self):
        """Test binding values into a copy of the tree."""
        template = parse("(p class:{cls} = {})")
        bound = template.bind("text", cls="lead")

        assert bound == Tag("p").attr("class", "lead").content("text")
        assert template.render("other", cls="x") == '<p class="x">other</p>'

    def test_missing_value_raises(self):
        """Test the default missing-slot policy."""
        with pytest.raises(SlotBindingError):
            parse("(p = {title})").render()

    def test_render_to(self):
        """Test rendering into a sink."""
        sink = io.StringIO()
        parse("(p = {})").render_to(sink, "x")
        assert sink.getvalue() == "<p>x</p>"

    def test_deterministic(self):
        """Test that rendering is repeatable."""
        template = parse('(ul (li = "a") (li = {}))')
        assert template.render("b") == template.render("b") == "<ul><li>a</li><li>b</li></ul>"


class TestParseResult:
    """Test suite for ParseResult."""

    def test_raise_for_error_success(self):
        """Test that a successful result returns its template."""
        result = parse_string("(p)")
        assert result.raise_for_error() is result.template

    def test_raise_for_error_failure(self):
        """Test that a failed result raises its error."""
        result = parse_string("(p")
        with pytest.raises(ParseError, match="Unterminated group"):
            result.raise_for_error()

    def test_raise_for_error_without_error(self):
        """Test a failed result with no recorded error."""
        with pytest.raises(HteamlError):
            ParseResult(success=False).raise_for_error()


class TestHteamlEngine:
    """Test Level 2: configured engine."""

    def test_default_config(self):
        """Test engine defaults."""
        engine = HteamlEngine()

        assert engine.config.name == "default"
        assert engine.correlation_id is not None
        assert engine.parse("(p)").render() == "<p>"

    def test_no_correlation_tracking(self, restore_package_level):
        """Test disabling generated correlation IDs."""
        config = HteamlConfig().override(global___enable_correlation_tracking=False)
        assert HteamlEngine(config).correlation_id is None
        assert HteamlEngine(config, correlation_id="given").correlation_id == "given"

    def test_lenient_config(self, restore_package_level):
        """Test that the lenient preset renders missing slots as nothing."""
        engine = HteamlEngine(HteamlConfig.lenient())
        template = engine.parse("(a href:{url} = {text})")

        assert template.render() == "<a href></a>"
        assert engine.render(template, text="x") == "<a href>x</a>"

    def test_strict_config(self, restore_package_level):
        """Test that the strict preset reads strings after the name as content."""
        engine = HteamlEngine(HteamlConfig.strict())

        assert engine.parse('(p "text")').render() == "<p>text</p>"
        with pytest.raises(ParseError):
            engine.parse("(my-tag)")

    def test_engine_render_uses_policy(self, restore_package_level):
        """Test that engine rendering applies the engine's policy to elements."""
        config = HteamlConfig().override(render__missing_slots=MissingSlotPolicy.EMPTY)
        engine = HteamlEngine(config)
        built = Tag("p").content(parse("{}").root)

        assert engine.render(built) == "<p></p>"
        sink = io.StringIO()
        engine.render_to(built, sink, "x")
        assert sink.getvalue() == "<p>x</p>"

    def test_logging_level_applied(self, restore_package_level):
        """Test that an explicit configuration sets the package log level."""
        HteamlEngine(HteamlConfig().override(global___logging_level="ERROR"))
        assert restore_package_level.level == logging.ERROR

    def test_parse_tokens_list(self):
        """Test parsing from a token list from another source."""
        position = TokenPosition(1, 1, 0)
        tokens = [
            Token(TokenType.PAREN_OPEN, "(", position, 1),
            Token(TokenType.IDENTIFIER, "br", TokenPosition(1, 2, 1), 3),
            Token(TokenType.PAREN_CLOSE, ")", TokenPosition(1, 4, 3), 4),
        ]
        template = HteamlEngine().parse_tokens(tokens)

        assert template.source is None
        assert template.render() == "<br>"

    def test_parse_tokens_cursor(self):
        """Test parsing from a cursor."""
        template = HteamlEngine().parse_tokens(TokenCursor(tokenize("(p = {})")))
        assert template.render("x") == "<p>x</p>"

    def test_parse_tokens_without_distinct_positions(self):
        """Test that slots stay separate when a token source repeats positions."""
        position = TokenPosition(1, 1, 0)
        tokens = [
            Token(TokenType.PAREN_OPEN, "(", position, 1),
            Token(TokenType.IDENTIFIER, "p", position, 1),
            Token(TokenType.EQUALS, "=", position, 1),
            Token(TokenType.BRACE_OPEN, "{", position, 1),
            Token(TokenType.EXPRESSION, "a", position, 1),
            Token(TokenType.BRACE_CLOSE, "}", position, 1),
            Token(TokenType.BRACE_OPEN, "{", position, 1),
            Token(TokenType.EXPRESSION, "b", position, 1),
            Token(TokenType.BRACE_CLOSE, "}", position, 1),
            Token(TokenType.PAREN_CLOSE, ")", position, 1),
        ]
        template = HteamlEngine().parse_tokens(tokens)

        assert template.slot_keys == ["a", "b"]
        assert template.render(a="A", b="B") == "<p>AB</p>"

    def test_parse_result(self):
        """Test the never-raise method on the engine."""
        engine = HteamlEngine(correlation_id="fixed")
        result = engine.parse_result("(p = )")

        assert result.success is False
        assert result.correlation_id == "fixed"

    def test_statistics(self):
        """Test usage statistics across calls."""
        engine = HteamlEngine()
        engine.parse("(a)")
        engine.parse_result("(a")

        stats = engine.statistics
        assert stats["total_parses"] == 2
        assert stats["successful_parses"] == 1
        assert stats["success_rate"] == 0.5

        engine.reset_statistics()
        assert engine.statistics["total_parses"] == 0
        assert engine.statistics["success_rate"] == 0.0

    def test_logs_failures(self, caplog):
        """Test that parse failures are logged at ERROR."""
        engine = HteamlEngine(correlation_id="log-test")

        with caplog.at_level(logging.DEBUG, logger=PACKAGE_LOGGER):
            engine.parse_result("(p")

        failures = [r for r in caplog.records if r.getMessage() == "Template parse failed"]
        assert len(failures) == 1
        assert failures[0].levelno == logging.ERROR
        assert failures[0].correlation_id == "log-test"
