"""Structured logging utilities for hteaml.

Every record emitted through :class:`CorrelationLogger` carries the component
that produced it and the correlation ID of the parse or render call, so that
one template's lifecycle can be followed across the lexer, parser and renderer.
The library only emits records; configuring handlers is left to the host.
"""

import logging
from typing import Any, Dict, Optional

PACKAGE_LOGGER = "hteaml"


class CorrelationLogger:
    """Wraps a stdlib logger and stamps each record with its origin.

    Records get two extra attributes, ``component`` and ``correlation_id``,
    merged under any per-call ``extra`` fields.
    """

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        # "hteaml.grammar.lexer" logs as "lexer" unless told otherwise
        self.component = component or name.rsplit(".", 1)[-1]

    def _get_extra(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "component": self.component,
            "correlation_id": self.correlation_id,
        }
        fields.update(extra or {})
        return fields

    def is_enabled_for(self, level: int) -> bool:
        """Check whether records at ``level`` would be emitted.

        Lets callers skip building expensive ``extra`` fields.
        """
        return self.logger.isEnabledFor(level)

    def log(
        self,
        level: int,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False
    ) -> None:
        """Emit ``message`` at ``level`` with the component and correlation ID."""
        self.logger.log(level, message, extra=self._get_extra(extra), exc_info=exc_info)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.log(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.log(logging.INFO, message, extra)

    def error(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False
    ) -> None:
        self.log(logging.ERROR, message, extra, exc_info)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Return a :class:`CorrelationLogger` for ``name``.

    Args:
        name: Logger name, usually the calling module's ``__name__``
        correlation_id: ID shared by every record of one engine
        component: Label for the emitting component; defaults to the last
            part of ``name``
    """
    return CorrelationLogger(name, correlation_id, component)


def set_package_level(level: str) -> None:
    """Set the level of the ``hteaml`` logger hierarchy by level name."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
