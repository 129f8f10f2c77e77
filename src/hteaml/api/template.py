"""Template API with progressive disclosure.

Level 1 is a handful of module functions that cover the common cases:

* :func:`parse` - template text to a :class:`Template`, raising on errors
* :func:`parse_string` / :func:`parse_file` - never raise on bad templates,
  returning a :class:`ParseResult` with diagnostics instead
* :func:`render` / :func:`render_template` - straight to markup text

Level 2 is :class:`HteamlEngine`, which carries an :class:`HteamlConfig`,
can parse from any token cursor and keeps usage statistics across calls.
"""

import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO, Tuple, Union

from hteaml.document.model import Element, Slot, SlotKey
from hteaml.document.render import MarkupRenderer
from hteaml.document.slots import bind_slots, split_bindings
from hteaml.grammar.cursor import Cursor, TokenCursor
from hteaml.grammar.lexer import TemplateLexer
from hteaml.grammar.parser import TemplateParser
from hteaml.grammar.tokens import Token
from hteaml.shared.config import HteamlConfig, RenderConfig
from hteaml.shared.errors import HteamlError, ParseError
from hteaml.shared.logging import get_logger, set_package_level
from hteaml.shared.result import DiagnosticEntry, DiagnosticSeverity, PerformanceMetrics

TokenSource = Union[Sequence[Token], Cursor]

PREVIEW_LENGTH = 100  # Max length for template preview in logs
MS_PER_SECOND = 1000  # Milliseconds per second conversion


@dataclass
class Template:
    """A parsed template: a document tree with slot holes.

    Attributes:
        root: Root element of the tree
        source: Template text the tree was parsed from, if any
        slots: Slots of the tree in document order
        render_config: Rendering options used by :meth:`render`
    """

    root: Element
    source: Optional[str] = None
    slots: List[Slot] = field(default_factory=list)
    render_config: RenderConfig = field(default_factory=RenderConfig)

    @property
    def slot_keys(self) -> List[SlotKey]:
        """Distinct slot keys in order of first appearance."""
        keys: List[SlotKey] = []
        for slot in self.slots:
            if slot.key not in keys:
                keys.append(slot.key)
        return keys

    def bind(self, *args: Any, **kwargs: Any) -> Element:
        """Return a copy of the tree with every slot filled.

        Positional arguments bind ``{}``/``{0}`` slots, keyword arguments bind
        named slots. Bound values go in as given, so the result renders the
        same as :meth:`render` with the same arguments.

        Raises:
            SlotBindingError: if a slot is unbound and the policy is ERROR
        """
        return bind_slots(
            self.root,
            split_bindings(args, kwargs),
            self.render_config.missing_slots,
        )

    def render(self, *args: Any, **kwargs: Any) -> str:
        """Render the template with the given slot values."""
        return MarkupRenderer(self.render_config).render(
            self.root, split_bindings(args, kwargs)
        )

    def render_to(self, sink: TextIO, *args: Any, **kwargs: Any) -> None:
        """Render the template into ``sink`` with the given slot values."""
        MarkupRenderer(self.render_config).render_to(
            self.root, sink, split_bindings(args, kwargs)
        )


@dataclass
class ParseResult:
    """Outcome of a parse that does not raise.

    ``template`` is set exactly when ``success`` is true; otherwise ``error``
    holds the exception that stopped the parse.
    """

    template: Optional[Template] = None
    success: bool = True
    error: Optional[Exception] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                position=position,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(diag.severity == DiagnosticSeverity.ERROR for diag in self.diagnostics)

    def raise_for_error(self) -> Template:
        """Return the template, or raise the error that stopped the parse."""
        if self.success and self.template is not None:
            return self.template
        if self.error is not None:
            raise self.error
        raise HteamlError("Parse failed without a recorded error")


class HteamlEngine:
    """Configured template engine.

    An engine can be reused for any number of templates; each call gets its
    own lexer and parser so that calls do not share state.

    Examples:
        >>> engine = HteamlEngine(HteamlConfig.lenient())
        >>> engine.parse('(p = {name})').render()
        '<p></p>'
    """

    def __init__(
        self,
        config: Optional[HteamlConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the engine.

        Args:
            config: Engine configuration (defaults to ``HteamlConfig.default()``);
                an explicit configuration also sets the ``hteaml`` log level
            correlation_id: Optional correlation ID for request tracking; one
                is generated when correlation tracking is enabled
        """
        if config is not None:
            set_package_level(config.global_.logging_level)
        self.config = config or HteamlConfig.default()
        if correlation_id is None and self.config.global_.enable_correlation_tracking:
            correlation_id = str(uuid.uuid4())[:8]
        self.correlation_id = correlation_id

        self.logger = get_logger(__name__, self.correlation_id, "hteaml_engine")

        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0

        self.logger.info(
            "HteamlEngine initialized",
            extra={"config_name": self.config.name}
        )

    def parse(self, source: str) -> Template:
        """Parse template text.

        Raises:
            ParseError: if the template is malformed
        """
        return self._parse_text(source)[0]

    def parse_tokens(self, tokens: TokenSource) -> Template:
        """Parse a template from a token list or any :class:`Cursor`.

        A token list without a trailing EOF token gets one appended.

        Raises:
            ParseError: if the tokens do not form a template
        """
        cursor = tokens if isinstance(tokens, Cursor) else TokenCursor(tokens)
        start_time = time.time()
        self.logger.debug(
            "Starting token parse",
            extra={"cursor_type": type(cursor).__name__}
        )
        template, _ = self._build(cursor, None, start_time, 0, 0)
        return template

    def parse_result(self, source: str) -> ParseResult:
        """Parse template text without raising on a malformed template.

        Returns:
            ParseResult with the template, or with the error and an ERROR
            diagnostic describing where parsing stopped
        """
        result = ParseResult(correlation_id=self.correlation_id)
        start_time = time.time()
        try:
            template, performance = self._parse_text(source)
        except ParseError as e:
            result.success = False
            result.error = e
            result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
            result.performance.characters_processed = len(source)
            result.add_diagnostic(
                DiagnosticSeverity.ERROR,
                e.message,
                "template_parser",
                position=e.position.to_dict() if e.position else None,
                details=e.to_dict(),
            )
            return result

        result.template = template
        result.performance = performance
        result.add_diagnostic(
            DiagnosticSeverity.INFO,
            "Template parsed",
            "template_parser",
            details={"slot_keys": [str(key) for key in template.slot_keys]},
        )
        return result

    def render(self, node: Union[Element, Template], *args: Any, **kwargs: Any) -> str:
        """Render an element or template with this engine's render options."""
        root = node.root if isinstance(node, Template) else node
        renderer = MarkupRenderer(self.config.render, self.correlation_id)
        return renderer.render(root, split_bindings(args, kwargs))

    def render_to(
        self,
        node: Union[Element, Template],
        sink: TextIO,
        *args: Any,
        **kwargs: Any
    ) -> None:
        """Render an element or template into ``sink``."""
        root = node.root if isinstance(node, Template) else node
        renderer = MarkupRenderer(self.config.render, self.correlation_id)
        renderer.render_to(root, sink, split_bindings(args, kwargs))

    def _parse_text(self, source: str) -> Tuple[Template, PerformanceMetrics]:
        if not isinstance(source, str):
            raise TypeError(f"Template source must be str, not {type(source).__name__}")

        start_time = time.time()
        self.logger.info(
            "Starting template parse",
            extra={
                "content_length": len(source),
                "preview": (
                    source[:PREVIEW_LENGTH] + "..."
                    if len(source) > PREVIEW_LENGTH else source
                ),
            }
        )
        try:
            tokens = TemplateLexer(self.config.lexer, self.correlation_id).tokenize(source)
        except ParseError as e:
            self._record_failure(start_time, e)
            raise
        return self._build(TokenCursor(tokens), source, start_time, len(source), len(tokens))

    def _build(
        self,
        cursor: Cursor,
        source: Optional[str],
        start_time: float,
        characters: int,
        token_count: int
    ) -> Tuple[Template, PerformanceMetrics]:
        parser = TemplateParser(self.config.grammar, self.correlation_id)
        try:
            root = parser.parse(cursor)
        except ParseError as e:
            self._record_failure(start_time, e)
            raise

        slots = parser.slots
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        performance = PerformanceMetrics(
            processing_time_ms=processing_time,
            characters_processed=characters,
            tokens_generated=token_count,
            elements_built=parser.elements_built,
            slots_found=len(slots),
        )
        self._parse_count += 1
        self._successful_parses += 1
        self._total_processing_time += processing_time

        self.logger.info(
            "Template parse completed",
            extra={
                "processing_time_ms": processing_time,
                "elements_built": parser.elements_built,
                "slot_count": len(slots),
            }
        )
        template = Template(root, source=source, slots=slots, render_config=self.config.render)
        return template, performance

    def _record_failure(self, start_time: float, error: ParseError) -> None:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        self._parse_count += 1
        self._total_processing_time += processing_time
        self.logger.error(
            "Template parse failed",
            extra={"processing_time_ms": processing_time, "error": error.to_dict()}
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get engine usage statistics."""
        return {
            "total_parses": self._parse_count,
            "successful_parses": self._successful_parses,
            "success_rate": (
                self._successful_parses / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset engine usage statistics."""
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0


def parse(source: str, correlation_id: Optional[str] = None) -> Template:
    """Parse template text into a :class:`Template`.

    Args:
        source: Template text
        correlation_id: Optional correlation ID for request tracking

    Returns:
        The parsed template

    Raises:
        ParseError: if the template is malformed

    Examples:
        >>> parse('(p = {})').render("hi")
        '<p>hi</p>'
    """
    return HteamlEngine(correlation_id=correlation_id).parse(source)


def parse_string(source: str, correlation_id: Optional[str] = None) -> ParseResult:
    """Parse template text without raising on a malformed template.

    Examples:
        >>> result = parse_string('(p = "hi")')
        >>> result.success
        True
        >>> parse_string('(p').success
        False
    """
    return HteamlEngine(correlation_id=correlation_id).parse_result(source)


def parse_file(
    file_path: Union[str, Path],
    encoding: str = "utf-8",
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse a template file without raising.

    Unreadable files and files that cannot be decoded with ``encoding`` give
    a failed result just like malformed templates do.
    """
    path_obj = Path(file_path)
    logger = get_logger(__name__, correlation_id, "parse_file")
    logger.info(
        "Starting file parse operation",
        extra={"file_path": str(path_obj), "encoding": encoding}
    )

    try:
        source = path_obj.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(
            "Template file could not be read",
            extra={"file_path": str(path_obj), "error": str(e)}
        )
        result = ParseResult(success=False, error=e, correlation_id=correlation_id)
        result.add_diagnostic(
            DiagnosticSeverity.ERROR,
            f"Cannot read template file {path_obj}: {e}",
            "file_parser",
            details={"file_path": str(path_obj), "encoding": encoding},
        )
        return result

    result = parse_string(source, correlation_id)
    result.add_diagnostic(
        DiagnosticSeverity.INFO,
        f"File read with encoding: {encoding}",
        "file_parser",
        details={"file_path": str(path_obj), "encoding": encoding},
    )
    return result


def render(node: Union[Element, Template], *args: Any, **kwargs: Any) -> str:
    """Render an element or template, binding slots from the arguments."""
    if isinstance(node, Template):
        return node.render(*args, **kwargs)
    return MarkupRenderer().render(node, split_bindings(args, kwargs))


def render_template(source: str, *args: Any, **kwargs: Any) -> str:
    """Parse template text and render it in one step.

    Examples:
        >>> render_template('(a href:{url} = {text})', url="/", text="home")
        '<a href="/">home</a>'
    """
    return parse(source).render(*args, **kwargs)
