"""Codec selection by format hint or content sniffing."""

import zipfile
from io import BytesIO
from typing import Dict, Iterable, Optional

from grade_annotator.exceptions import UnsupportedFormatError
from grade_annotator.models import DocumentFormat
from grade_annotator.utils.logger import logger

from .base import DocumentCodec
from .docx_codec import DocxCodec
from .pdf_codec import PdfCodec
from .xlsx_codec import XlsxCodec

ZIP_MARKERS = (
    ("word/document.xml", DocumentFormat.DOCX),
    ("xl/workbook.xml", DocumentFormat.XLSX),
)


def sniff_format(data: bytes) -> Optional[DocumentFormat]:
    """Identify a document format from its bytes using python-magic."""
    try:
        import magic
        mime_type = magic.from_buffer(data[:8192], mime=True)
    except Exception as e:
        # Fallback if python-magic or libmagic is not available
        logger.warning(f"python-magic not available, skipping MIME sniffing: {e}")
        mime_type = None

    fmt = DocumentFormat.from_hint(mime_type)
    if fmt is not None:
        return fmt

    # Office packages are often reported as plain zip or octet-stream.
    return _zip_format(data)


def _zip_format(data: bytes) -> Optional[DocumentFormat]:
    """Tell Office Open XML packages apart by their main part."""
    try:
        with zipfile.ZipFile(BytesIO(data)) as archive:
            names = set(archive.namelist())
    except zipfile.BadZipFile:
        return None
    for marker, fmt in ZIP_MARKERS:
        if marker in names:
            return fmt
    return None


class CodecRegistry:
    """Maps each document format family to its codec."""

    def __init__(self, codecs: Optional[Iterable[DocumentCodec]] = None):
        self._codecs: Dict[DocumentFormat, DocumentCodec] = {}
        for codec in codecs if codecs is not None else (DocxCodec(), XlsxCodec(), PdfCodec()):
            self.register(codec)

    def register(self, codec: DocumentCodec) -> None:
        self._codecs[codec.document_format] = codec

    @property
    def formats(self):
        return list(self._codecs)

    def detect(self, data: bytes, format_hint: Optional[str] = None) -> DocumentFormat:
        """Resolve the format from the hint, falling back to content sniffing.

        Raises:
            UnsupportedFormatError: if no supported format can be identified
        """
        fmt = DocumentFormat.from_hint(format_hint)
        if fmt is None and data:
            fmt = sniff_format(data)
            if fmt is not None:
                logger.debug(f"Detected {fmt.value} from content (hint: {format_hint!r})")
        if fmt is None or fmt not in self._codecs:
            raise UnsupportedFormatError(
                f"Cannot identify a supported document format (hint: {format_hint!r})",
                format_hint=format_hint,
            )
        return fmt

    def get(self, fmt: DocumentFormat) -> DocumentCodec:
        try:
            return self._codecs[fmt]
        except KeyError:
            raise UnsupportedFormatError(
                f"No codec registered for {fmt.value}", format_hint=fmt.value
            )
