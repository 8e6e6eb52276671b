"""PDF text extraction: positioned fragments to logical lines.

:func:`iter_pdf_fragments` adapts pdfplumber's word stream into
``Fragment(text, y)`` items; :func:`assemble_lines` groups fragments that sit
on the same vertical position into one line. The assembler is a single forward
pass and knows nothing about PDFs, so tests feed it fragments directly.
"""

from __future__ import annotations

import io
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from os import PathLike
from typing import IO

import pdfplumber

from ..errors import StatementDecodeError
from ..logging_setup import get_logger

# Maximum vertical drift (in extraction units) for fragments on one line.
Y_TOLERANCE = 0.2

type PdfSource = bytes | str | PathLike[str] | IO[bytes]

logger = get_logger("statement_ingest.ingest.pdf_text")


@dataclass(frozen=True, slots=True)
class Fragment:
    text: str
    y: float | None = None


def assemble_lines(
    fragments: Iterable[Fragment], *, y_tolerance: float = Y_TOLERANCE
) -> list[str]:
    """Group ``fragments`` into lines by vertical proximity.

    A fragment whose ``y`` differs from the y of the *first* fragment in the
    current buffer by more than ``y_tolerance`` starts a new line. Fragment
    texts within a line are joined with a single space. A fragment without a
    ``y`` becomes its own line, so sources that never report positions degrade
    to one fragment per line.
    """

    lines: list[str] = []
    buffer: list[str] = []
    buffer_y: float | None = None

    def flush() -> None:
        nonlocal buffer_y
        if buffer:
            line = " ".join(buffer).rstrip()
            if line.strip():
                lines.append(line)
        buffer.clear()
        buffer_y = None

    for fragment in fragments:
        if not fragment.text:
            continue
        if fragment.y is None:
            flush()
            buffer.append(fragment.text)
            flush()
            continue
        if buffer and buffer_y is not None and abs(fragment.y - buffer_y) > y_tolerance:
            flush()
        if not buffer:
            buffer_y = fragment.y
        buffer.append(fragment.text)

    flush()
    return lines


def _open_pdf(source: PdfSource) -> pdfplumber.PDF:
    if isinstance(source, (bytes, bytearray)):
        return pdfplumber.open(io.BytesIO(source))
    return pdfplumber.open(source)


def iter_pdf_fragments(source: PdfSource) -> Iterator[Fragment]:
    """Yield one :class:`Fragment` per word, page by page.

    ``keep_blank_chars`` keeps runs of spaces inside a text run so merchant
    names retain their interior spacing. Each page's ``top`` coordinates are
    offset by the heights of the preceding pages, so lines on different pages
    never merge. Any failure while opening or reading the PDF is raised as
    :class:`~statement_ingest.errors.StatementDecodeError`.
    """

    try:
        pdf = _open_pdf(source)
    except Exception as e:
        raise StatementDecodeError(f"failed to open PDF: {e}") from e

    with pdf:
        offset = 0.0
        for page_number, page in enumerate(pdf.pages, start=1):
            try:
                words = page.extract_words(keep_blank_chars=True)
            except Exception as e:
                raise StatementDecodeError(
                    f"failed to extract text from page {page_number}: {e}"
                ) from e
            logger.debug("pdf_text:page page=%d words=%d", page_number, len(words))
            for word in words:
                yield Fragment(text=str(word["text"]), y=offset + float(word["top"]))
            offset += float(page.height)


def read_statement_lines(source: PdfSource, *, y_tolerance: float = Y_TOLERANCE) -> list[str]:
    """Decode ``source`` and return its assembled lines."""

    lines = assemble_lines(iter_pdf_fragments(source), y_tolerance=y_tolerance)
    logger.info("pdf_text:extracted lines=%d", len(lines))
    return lines


__all__ = [
    "Fragment",
    "PdfSource",
    "Y_TOLERANCE",
    "assemble_lines",
    "iter_pdf_fragments",
    "read_statement_lines",
]
