"""
Error types for beanparse parsing, configuration, and module validation.
"""

from dataclasses import dataclass
from typing import Optional


class BeanparseError(Exception):
    """Base exception for all beanparse errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class ParseError(BeanparseError):
    """
    Raised when ledger text cannot be parsed at all.

    Most malformed input degrades to ``unknown_directive`` entries; this is
    reserved for failures that abort the whole document.

    Examples:
    - Unterminated quoted string
    """

    pass


class ConfigurationError(BeanparseError):
    """
    Raised when a parser configuration is unusable.

    Examples:
    - Field definition naming an unregistered field type
    - Field validator naming an unregistered custom validator
    - Unknown builtin module name in beanparse.toml
    """

    pass


class ModuleValidationError(BeanparseError):
    """
    Raised when directive modules cannot be assembled into a parser.

    Examples:
    - Module depending on a module that is not registered
    """

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = list(errors or [])
        super().__init__(message)


class WorkerError(BeanparseError):
    """
    Raised when a background parse request ends in an error response.

    Attributes:
        request_id: Correlation id of the failed request
    """

    def __init__(self, message: str, request_id: int | None = None):
        self.request_id = request_id
        super().__init__(message)


@dataclass
class ErrorContext:
    """
    Context information for an error, including source location.

    Attributes:
        source: Source name the text was read from (file name or "stdin")
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional source excerpt around the error location
        module: Optional directive module name
    """

    source: str
    line: int
    column: int
    snippet: str | None = None
    module: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "main.beancount:10:5 in module transactions"
        """
        location = f"{self.source}:{self.line}:{self.column}"
        if self.module:
            location += f" in module {self.module}"

        if self.snippet:
            return f"{location}\n{self._format_snippet()}"
        return location

    def _format_snippet(self) -> str:
        """Format code snippet with line numbers and error marker."""
        if not self.snippet:
            return ""

        lines = self.snippet.split("\n")
        formatted = []

        # Snippet starts at most 2 lines before the error line
        start_line = max(1, self.line - 2)

        for i, line in enumerate(lines):
            line_num = start_line + i
            prefix = f"{line_num:4d} | "
            formatted.append(prefix + line)

            if line_num == self.line:
                marker_pos = len(prefix) + self.column - 1
                formatted.append(" " * marker_pos + "^^^")

        return "\n".join(formatted)


def extract_snippet(text: str, line: int, context: int = 2) -> str:
    """Return the source lines around ``line`` (1-indexed) for error display."""
    lines = text.split("\n")
    start = max(0, line - 1 - context)
    end = min(len(lines), line + context)
    return "\n".join(lines[start:end])


def make_parse_error(
    message: str,
    source: str,
    line: int,
    column: int,
    snippet: str | None = None,
) -> ParseError:
    """
    Helper to create a ParseError with context.

    Args:
        message: Error description
        source: Source name
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional code snippet

    Returns:
        ParseError with context attached
    """
    context = ErrorContext(source=source, line=line, column=column, snippet=snippet)
    return ParseError(message, context)


def make_module_validation_error(errors: list[str]) -> ModuleValidationError:
    """
    Helper to create a ModuleValidationError from collected violations.

    Args:
        errors: Human-readable dependency violations

    Returns:
        ModuleValidationError listing every violation
    """
    return ModuleValidationError(
        f"Module validation failed: {', '.join(errors)}",
        errors=errors,
    )
