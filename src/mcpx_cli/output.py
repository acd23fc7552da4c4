"""Terminal output for mcpx-cli, split strictly between stdout and stderr.

Conventions (see `clig.dev <https://clig.dev/>`_):

* **stdout** carries data only -- registry entries, JSON documents, tables --
  so that ``mcpx-cli servers --json | jq`` always works.
* **stderr** carries every diagnostic: status lines, warnings, errors, and
  ``--verbose`` request tracing.
* Rich styling is used only when stdout is an interactive terminal and
  colour has not been disabled by ``NO_COLOR``, ``TERM=dumb`` or
  ``--no-color``.

:class:`OutputManager` holds the preferences for one invocation. The root
command callback in :mod:`mcpx_cli.app` builds one and installs it with
:func:`set_output`; everything else calls the module-level helpers
(:func:`info`, :func:`success`, :func:`error`, ...).

Library modules log through :mod:`logging`; :func:`configure_logging`
routes those records to the stderr console.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Iterator
from enum import Enum
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text


class OutputFormat(str, Enum):
    """How data written to stdout is rendered.

    ``AUTO`` becomes ``RICH`` on an interactive, colour-capable terminal and
    ``PLAIN`` otherwise. ``--json`` and ``--plain`` force a format.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class _Diagnostic(NamedTuple):
    prefix: str
    style: str
    hidden_when_quiet: bool


# Diagnostics are rendered as Text, never as markup: messages often embed raw
# server bodies.
_DIAGNOSTICS: dict[str, _Diagnostic] = {
    "info": _Diagnostic("", "", True),
    "success": _Diagnostic("", "green", True),
    "suggest": _Diagnostic("→ ", "dim", True),
    "warning": _Diagnostic("Warning: ", "yellow", False),
    "error": _Diagnostic("Error: ", "bold red", False),
    "debug": _Diagnostic("[debug] ", "dim", False),
}


class OutputManager:
    """Routes data to stdout and diagnostics to stderr.

    Args:
        format: Requested data format; ``AUTO`` is resolved at construction.
        no_color: Disable colour and Rich styling entirely.
        quiet: Drop info, success and suggestion lines.
        verbose: Show ``debug`` lines.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._format = _resolve_format(format, self._no_color)
        self._quiet = quiet
        self._verbose = verbose

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        """The resolved output format (never ``AUTO``)."""
        return self._format

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def stderr_console(self) -> Console:
        """Console bound to stderr, shared with the logging handler."""
        return self._stderr

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Render a registry payload on stdout in the active format.

        Pydantic models are dumped in JSON mode first, so extra fields kept
        from the server are rendered too. PLAIN output is one ``key<TAB>value``
        line per top-level field.
        """
        payload = _to_jsonable(data)
        if self._format == OutputFormat.PLAIN:
            for line in _plain_lines(payload):
                self.print_data(line)
            return

        document = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
        if self._format == OutputFormat.JSON:
            self.print_data(document)
        else:
            self._stdout.print(Syntax(document, "json", theme="monokai", word_wrap=True))

    def print_data(self, text: str) -> None:
        """Write *text* to stdout followed by a newline."""
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print rows as a Rich table, a list of JSON records, or TSV."""
        cells = [[str(cell) for cell in row] for row in rows]
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in cells]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            for row in [headers, *cells]:
                self.print_data("\t".join(row))
        else:
            table = Table(*headers, title=title, header_style="bold cyan")
            for row in cells:
                table.add_row(*row)
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        self._diagnose("info", message)

    def success(self, message: str) -> None:
        self._diagnose("success", message)

    def suggest(self, message: str) -> None:
        """Next-step hint, e.g. the command that fetches the next page."""
        self._diagnose("suggest", message)

    def warning(self, message: str) -> None:
        self._diagnose("warning", message)

    def error(self, message: str) -> None:
        self._diagnose("error", message)

    def debug(self, message: str) -> None:
        """Request tracing. Only shown with ``--verbose``."""
        if self._verbose:
            self._diagnose("debug", message)

    def _diagnose(self, kind: str, message: str) -> None:
        diagnostic = _DIAGNOSTICS[kind]
        if self._quiet and diagnostic.hidden_when_quiet:
            return
        line = f"{diagnostic.prefix}{message}"
        if self._no_color:
            print(line, file=sys.stderr, flush=True)
        else:
            self._stderr.print(Text(line, style=diagnostic.style))


def _resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    if _is_tty() and not no_color:
        return OutputFormat.RICH
    return OutputFormat.PLAIN


def _to_jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [_to_jsonable(item) for item in data]
    return data


def _plain_lines(payload: Any) -> Iterator[str]:
    if isinstance(payload, dict):
        for key, value in payload.items():
            if isinstance(value, (dict, list)):
                value = json.dumps(value, ensure_ascii=False, default=str)
            yield f"{key}\t{value}"
    elif isinstance(payload, list):
        for item in payload:
            if isinstance(item, dict):
                yield "\t".join(str(value) for value in item.values())
            else:
                yield str(item)
    else:
        yield str(payload)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value) or ``TERM=dumb`` disables colour."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def configure_logging(output: OutputManager) -> None:
    """Send ``mcpx_cli`` log records to the stderr console.

    Records at DEBUG and above are shown with ``--verbose``; otherwise only
    warnings and errors get through. Calling it again replaces the handler.
    """
    logger = logging.getLogger("mcpx_cli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(
        RichHandler(
            console=output.stderr_console,
            show_time=False,
            show_path=False,
            markup=False,
        )
    )
    logger.setLevel(logging.DEBUG if output.is_verbose else logging.WARNING)
    logger.propagate = False


# ------------------------------------------------------------------ #
# Process-global manager, installed by the root callback
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager. Used by the test suite between tests."""
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def error(message: str) -> None:
    get_output().error(message)
