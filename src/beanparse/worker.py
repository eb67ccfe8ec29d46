"""
Background parsing protocol.

Requests carry a correlation id and are answered by zero or more progress
notifications (``parseMultiple`` only) followed by exactly one terminal
response, either ``success`` or ``error``:

    -> {"id": 7, "type": "parseMultiple", "data": {"files": [{"text": ..., "filename": "a.beancount"}]}}
    <- {"id": 7, "type": "progress", "data": {"current": 1, "total": 1}}
    <- {"id": 7, "type": "success", "data": [{"success": true, "entries": [...], "error": null}]}

:class:`ParseWorker` answers requests synchronously. :class:`BackgroundParser`
runs a worker on a thread pool and hands out futures, assigning increasing
correlation ids itself.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .core import ir
from .core.errors import BeanparseError, WorkerError
from .core.parser import LedgerParser, create_parser
from .ledger import default_modules

logger = logging.getLogger(__name__)


class FileInput(BaseModel):
    text: str
    filename: str = "stdin"


class ParseMultipleData(BaseModel):
    files: list[FileInput] = Field(default_factory=list)


class ParseRequest(BaseModel):
    id: int
    type: Literal["parse"] = "parse"
    data: FileInput


class ParseMultipleRequest(BaseModel):
    id: int
    type: Literal["parseMultiple"] = "parseMultiple"
    data: ParseMultipleData


Request = Annotated[ParseRequest | ParseMultipleRequest, Field(discriminator="type")]
_request_adapter: TypeAdapter[ParseRequest | ParseMultipleRequest] = TypeAdapter(Request)


class FileResult(BaseModel):
    """Outcome of one file in a ``parseMultiple`` request."""

    success: bool
    entries: list[SerializeAsAny[ir.Entry]] = Field(default_factory=list)
    error: str | None = None


class Progress(BaseModel):
    current: int
    total: int


class ErrorData(BaseModel):
    message: str


class SuccessResponse(BaseModel):
    id: int
    type: Literal["success"] = "success"
    data: list[SerializeAsAny[ir.Entry]] | list[FileResult]

    model_config = ConfigDict(frozen=True)


class ErrorResponse(BaseModel):
    id: int
    type: Literal["error"] = "error"
    data: ErrorData

    model_config = ConfigDict(frozen=True)


class ProgressResponse(BaseModel):
    id: int
    type: Literal["progress"] = "progress"
    data: Progress

    model_config = ConfigDict(frozen=True)


Response = SuccessResponse | ErrorResponse | ProgressResponse


class ParseWorker:
    """
    Answers parse requests with a fresh parser per file.

    Args:
        modules: Factory for the directive modules to parse with
        field_parsers: Extra field parsers merged over the builtins
        custom_validators: Named validators for field definitions
    """

    def __init__(
        self,
        modules: Callable[[], list[ir.DirectiveModule]] = default_modules,
        field_parsers: dict[str, ir.FieldParser] | None = None,
        custom_validators: dict[str, ir.Validator] | None = None,
    ):
        self._modules = modules
        self._field_parsers = field_parsers
        self._custom_validators = custom_validators

    def parser_for(self, filename: str) -> LedgerParser:
        config = ir.create_parser_config(
            self._modules(), self._field_parsers, self._custom_validators
        )
        return create_parser(config, filename)

    def parse(self, text: str, filename: str = "stdin") -> list[ir.Entry]:
        return self.parser_for(filename).parse(text)

    def handle_message(self, message: Mapping[str, Any]) -> Iterator[Response]:
        """Validate a raw message and answer it; malformed messages get an error response."""
        try:
            request = _request_adapter.validate_python(message)
        except PydanticValidationError as e:
            request_id = message.get("id")
            kind = message.get("type")
            if kind in ("parse", "parseMultiple"):
                text = f"Invalid {kind} request: {e.error_count()} validation error(s)"
            else:
                text = f"Unknown message type: {kind}"
            logger.warning("Rejected message %r: %s", request_id, text)
            yield ErrorResponse(
                id=request_id if isinstance(request_id, int) else 0,
                data=ErrorData(message=text),
            )
            return
        yield from self.handle(request)

    def handle(self, request: ParseRequest | ParseMultipleRequest) -> Iterator[Response]:
        """Yield progress notifications, then one terminal response."""
        if isinstance(request, ParseRequest):
            try:
                entries = self.parse(request.data.text, request.data.filename)
            except BeanparseError as e:
                logger.warning("Parse request %d failed: %s", request.id, e.message)
                yield ErrorResponse(id=request.id, data=ErrorData(message=str(e)))
                return
            yield SuccessResponse(id=request.id, data=entries)
            return

        files = request.data.files
        results: list[FileResult] = []
        for index, file in enumerate(files, start=1):
            results.append(self._parse_file(file))
            yield ProgressResponse(id=request.id, data=Progress(current=index, total=len(files)))
        yield SuccessResponse(id=request.id, data=results)

    def _parse_file(self, file: FileInput) -> FileResult:
        try:
            entries = self.parse(file.text, file.filename)
        except BeanparseError as e:
            logger.warning("Failed to parse %s: %s", file.filename, e.message)
            return FileResult(success=False, error=f"Error in file {file.filename}: {e}")
        return FileResult(success=True, entries=entries)


class BackgroundParser:
    """
    Runs a :class:`ParseWorker` off the calling thread.

    Usage:
        with BackgroundParser() as background:
            entries = background.parse(text, "main.beancount").result()
    """

    def __init__(self, worker: ParseWorker | None = None, max_workers: int = 1):
        self.worker = worker or ParseWorker()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="beanparse")
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._ids)

    def parse(self, text: str, filename: str = "stdin") -> Future[Any]:
        """Future resolving to the entries of one file."""
        request = ParseRequest(id=self.next_id(), data=FileInput(text=text, filename=filename))
        return self.submit(request)

    def parse_multiple(
        self,
        files: list[FileInput] | list[tuple[str, str]],
        on_progress: Callable[[int, int], None] | None = None,
    ) -> Future[Any]:
        """
        Future resolving to one :class:`FileResult` per file.

        ``files`` holds :class:`FileInput` objects or ``(text, filename)``
        pairs. ``on_progress(current, total)`` is called from the worker
        thread after each file.
        """
        inputs = [
            f if isinstance(f, FileInput) else FileInput(text=f[0], filename=f[1]) for f in files
        ]
        request = ParseMultipleRequest(id=self.next_id(), data=ParseMultipleData(files=inputs))
        return self.submit(request, on_progress)

    def submit(
        self,
        request: ParseRequest | ParseMultipleRequest,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> Future[Any]:
        return self._executor.submit(self._run, request, on_progress)

    def _run(
        self,
        request: ParseRequest | ParseMultipleRequest,
        on_progress: Callable[[int, int], None] | None,
    ) -> Any:
        for response in self.worker.handle(request):
            if isinstance(response, ProgressResponse):
                if on_progress is not None:
                    on_progress(response.data.current, response.data.total)
                continue
            if isinstance(response, ErrorResponse):
                raise WorkerError(response.data.message, request_id=response.id)
            return response.data
        raise WorkerError(f"No terminal response for request {request.id}", request_id=request.id)

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> BackgroundParser:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
