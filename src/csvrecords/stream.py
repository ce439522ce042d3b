"""
Bulk reading and writing of CSV files.

Reading is lazy: ``read_records`` opens the file right away (so a missing file
is reported before the first record) and returns a ``RecordStream`` that
decodes one line per ``next()``. Writing drains its input eagerly.

Policies:
  FAIL_FAST  read: first bad line raises; write: failures are aggregated
             and raised once the input is drained
  QUIET      read only: bad lines are dropped; a supplied ``on_error``
             still hears about them
  COLLECT    every failure goes to ``on_error``; processing continues
"""

from __future__ import annotations

from collections import deque
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Deque, Iterable, Iterator, Optional, Tuple

from .codec import NEWLINE, QUOTE, decode_row
from .errors import AggregateMappingError, LineParsingError, MappingError
from .log import get_logger

BUFFER_SIZE = 1024 * 1024

ErrorHandler = Callable[[Exception], None]

logger = get_logger("stream")


class Policy(str, Enum):
    FAIL_FAST = "fail-fast"
    QUIET = "quiet"
    COLLECT = "collect"


def resolve_policy(policy: Optional[Policy], on_error: Optional[ErrorHandler]) -> Policy:
    if policy is None:
        return Policy.COLLECT if on_error is not None else Policy.FAIL_FAST
    policy = Policy(policy)
    if policy is Policy.COLLECT and on_error is None:
        raise ValueError("Policy.COLLECT requires an on_error callback")
    return policy


# ---------------------------------------------------------------------------
# RecordStream
# ---------------------------------------------------------------------------

class RecordStream:
    """Lazy iterator over decoded records that owns the underlying file."""

    def __init__(self, records: Iterator[Any], handle=None):
        self._records = records
        self._handle = handle

    @classmethod
    def empty(cls) -> "RecordStream":
        return cls(iter(()))

    def __iter__(self) -> "RecordStream":
        return self

    def __next__(self) -> Any:
        return next(self._records)

    @property
    def closed(self) -> bool:
        return self._handle is None or self._handle.closed

    def close(self) -> None:
        close = getattr(self._records, "close", None)
        if close is not None:
            close()
        # an unstarted generator never reaches its finally block
        if self._handle is not None:
            self._handle.close()

    def __enter__(self) -> "RecordStream":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

# physical lines one record may span before an open quote is given up on
MAX_RECORD_LINES = 64


def _ends_in_quotes(line: str, separator: str, in_quotes: bool = False) -> bool:
    """
    True when ``line`` ends inside a quoted field.

    A quote only opens a field when it is the first character of that field;
    quotes inside unquoted text are literal, as for the ``csv`` tokenizer.
    """
    state = "quoted" if in_quotes else "start"
    for ch in line:
        if state == "start":
            if ch == QUOTE:
                state = "quoted"
            elif ch != separator:
                state = "plain"
        elif state == "plain":
            if ch == separator:
                state = "start"
        elif state == "quoted":
            if ch == QUOTE:
                state = "closing"
        elif ch == QUOTE:  # closing: doubled quote
            state = "quoted"
        else:
            state = "start" if ch == separator else "plain"
    return state == "quoted"


def logical_lines(
    lines: Iterable[str], separator: str = ",", max_lines: int = MAX_RECORD_LINES
) -> Iterator[Tuple[int, str]]:
    """
    Yield ``(first_lineno, text)`` per CSV record, joining physical lines
    while a quoted field is still open.

    A quote that is still open after ``max_lines`` lines (or at end of input)
    was never closed: its first line is yielded on its own, for the tokenizer
    to reject, and reading resumes with the line after it.
    """
    source = enumerate(lines, start=1)
    backlog: Deque[Tuple[int, str]] = deque()

    def pull():
        if backlog:
            return backlog.popleft()
        return next(source, None)

    while True:
        item = pull()
        if item is None:
            return
        start, first = item
        if not _ends_in_quotes(first, separator):
            yield item
            continue

        pending = [item]
        open_quote = True
        while open_quote and len(pending) < max_lines:
            following = pull()
            if following is None:
                break
            pending.append(following)
            open_quote = _ends_in_quotes(following[1], separator, in_quotes=True)

        if not open_quote:
            yield start, "".join(text for _, text in pending)
            continue
        yield item
        backlog.extendleft(reversed(pending[1:]))


def _reports(policy: Policy, on_error: Optional[ErrorHandler]) -> bool:
    return on_error is not None and policy is not Policy.FAIL_FAST


def _decode_lines(mapper, handle, path: Path, policy: Policy, on_error: Optional[ErrorHandler]):
    config = mapper.config
    report = _reports(policy, on_error)
    lines = logical_lines(handle, config.separator)
    skip_header = config.include_header
    try:
        while True:
            try:
                item = next(lines, None)
            except (OSError, UnicodeDecodeError) as e:
                if not report:
                    raise
                on_error(e)
                return
            if item is None:
                return
            if skip_header:
                # positional skip; the header text is not checked
                skip_header = False
                continue

            lineno, line = item
            if config.skip_blank_lines and not line.strip():
                continue
            try:
                record = decode_row(line, mapper.schema, config.separator, config.locale, lineno)
            except LineParsingError as e:
                if policy is Policy.FAIL_FAST:
                    raise
                if report:
                    on_error(e)
                logger.debug("Skipped %s:%d: %s", path, lineno, e)
                continue
            yield record
    finally:
        handle.close()
        logger.debug("Closed %s", path)


def read_records(
    mapper,
    path,
    policy: Optional[Policy] = None,
    on_error: Optional[ErrorHandler] = None,
) -> RecordStream:
    """
    Open ``path`` and return a lazy stream of decoded records.

    Under QUIET and COLLECT a supplied ``on_error`` receives every bad line
    and any I/O failure; QUIET without a callback drops bad lines and raises
    I/O failures. FAIL_FAST never calls ``on_error``.
    """
    policy = resolve_policy(policy, on_error)
    path = Path(path)
    try:
        handle = path.open("r", encoding=mapper.config.encoding, newline="")
    except OSError as e:
        if not _reports(policy, on_error):
            raise
        on_error(e)
        return RecordStream.empty()

    logger.debug("Reading %s (%s)", path, policy.value)
    return RecordStream(_decode_lines(mapper, handle, path, policy, on_error), handle)


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def _attempt(operation, *args) -> Optional[OSError]:
    try:
        operation(*args)
    except OSError as e:
        return e
    return None


def write_records(mapper, records: Iterable[Any], path, on_error: Optional[ErrorHandler] = None) -> int:
    """
    Write ``records`` to ``path`` (truncating), header first when enabled.

    Without ``on_error`` every mapping failure is collected while the whole
    input is drained, then raised as one AggregateMappingError. I/O errors
    are raised immediately. With ``on_error`` both kinds are passed to the
    callback; an I/O error also stops the write.

    Only failures of the destination file count as I/O errors: exceptions
    raised by ``records`` or by ``on_error`` propagate unchanged.

    Returns the number of record lines written.
    """
    path = Path(path)
    errors = []
    written = 0

    try:
        f = path.open("w", encoding=mapper.config.encoding, newline="", buffering=BUFFER_SIZE)
    except OSError as e:
        if on_error is None:
            raise
        on_error(e)
        return written

    logger.debug("Writing %s", path)
    failure = None
    try:
        header = mapper.header_line()
        if header is not None:
            failure = _attempt(f.write, header + NEWLINE)

        if failure is None:
            for record in records:
                try:
                    line = mapper.encode(record)
                except MappingError as e:
                    if on_error is not None:
                        on_error(e)
                    else:
                        errors.append(e)
                    logger.debug("Skipped record for %s: %s", path, e)
                    continue
                failure = _attempt(f.write, line)
                if failure is not None:
                    break
                written += 1
    finally:
        # buffered lines are flushed here, so close can fail too
        closing = _attempt(f.close)

    failure = failure or closing
    if failure is not None:
        if on_error is None:
            raise failure
        on_error(failure)
        return written

    if errors:
        logger.warning("%d record(s) could not be written to %s", len(errors), path)
        raise AggregateMappingError(errors)
    return written
