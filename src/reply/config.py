"""
=============================================================================
REPLY CONFIGURATION
=============================================================================

Everything needed to build an Engine at startup, from code or from the
environment:

    ┌─────────────────────────┬──────────────────────────────────────────┐
    │ REPLY_RENDERER          │ json | template             (json)       │
    │ REPLY_TEMPLATE_DIR      │ directory with templates    (none)       │
    │ REPLY_TEMPLATE_PATTERN  │ glob under that directory   (*.html)     │
    │ REPLY_BASE_TEMPLATE     │ layout every page extends   (none)       │
    │ REPLY_DEBUG             │ 1/true/yes shows real errors (false)     │
    │ REPLY_LOG_LEVEL         │ DEBUG..CRITICAL             (INFO)       │
    │ REPLY_LOG_FORMAT        │ text | json                 (text)       │
    │ REPLY_LOGGER_NAME       │ engine logger name         (reply.engine) │
    └─────────────────────────┴──────────────────────────────────────────┘

Validation happens once, in ``validate()``, before any template is loaded.
Never turn ``debug`` on for a server reachable by untrusted clients: it
puts internal error text in response bodies.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


RENDERERS = ("json", "template")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")

_TRUE = ("1", "true", "yes", "on")


@dataclass
class ReplyConfig:
    """Configuration for building an Engine."""

    renderer: str = "json"
    """Output format: "json" or "template"."""

    template_dir: Optional[str] = None
    """Directory templates are loaded from. Required for "template"."""

    template_pattern: str = "*.html"
    """Glob, relative to template_dir, selecting page templates."""

    base_template: Optional[str] = None
    """Layout file every page extends, relative to template_dir."""

    debug: bool = False
    """Stamp debug=True on Options built by Engine.options()."""

    log_level: str = "INFO"
    log_format: str = "text"

    logger_name: str = "reply.engine"
    """Logger the engine reports fallbacks and 500s to."""

    @classmethod
    def from_env(cls) -> "ReplyConfig":
        """Create configuration from REPLY_* environment variables."""
        return cls(
            renderer=os.getenv("REPLY_RENDERER", "json"),
            template_dir=os.getenv("REPLY_TEMPLATE_DIR"),
            template_pattern=os.getenv("REPLY_TEMPLATE_PATTERN", "*.html"),
            base_template=os.getenv("REPLY_BASE_TEMPLATE"),
            debug=os.getenv("REPLY_DEBUG", "").strip().lower() in _TRUE,
            log_level=os.getenv("REPLY_LOG_LEVEL", "INFO"),
            log_format=os.getenv("REPLY_LOG_FORMAT", "text"),
            logger_name=os.getenv("REPLY_LOGGER_NAME", "reply.engine"),
        )

    def validate(self) -> None:
        """
        Fail fast on values that would break the engine later.

        Raises:
            ValueError: With a message naming the bad setting.
        """
        if self.renderer not in RENDERERS:
            raise ValueError(f"Invalid renderer: {self.renderer!r}. Must be one of {', '.join(RENDERERS)}.")

        if self.renderer == "template" and not self.template_dir:
            raise ValueError("template_dir is required when renderer is 'template'")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level!r}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Invalid log_format: {self.log_format!r}. Must be 'text' or 'json'.")

        if not self.logger_name:
            raise ValueError("logger_name must not be empty")
