"""Diagnostic channel shared by pools, loaders and serializers."""

import logging
from typing import Protocol

from rich.console import Console
from rich.text import Text

logger = logging.getLogger("variant_pool")


class DiagnosticSink(Protocol):
    """Where non-fatal events are reported.

    ``error`` and ``warning`` go to the diagnostic log; ``notify`` is for
    events the user should also see on their terminal.
    """

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def notify(self, message: str) -> None: ...


class LoggingDiagnostics:
    """Diagnostic sink backed by a logger and a rich console."""

    def __init__(
        self,
        log: logging.Logger | None = None,
        console: Console | None = None,
    ):
        self.log = log or logger
        self.console = console or Console(stderr=True)

    def error(self, message: str) -> None:
        self.log.error(message)

    def warning(self, message: str) -> None:
        self.log.warning(message)

    def notify(self, message: str) -> None:
        self.console.print(Text.assemble(("Warning: ", "yellow"), message))


default_diagnostics = LoggingDiagnostics()
