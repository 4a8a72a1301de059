"""Document codecs and the model capabilities they expose."""

from .base import (
    DocumentCodec,
    GeometricModel,
    NativeRun,
    NodeKind,
    StructuralModel,
    StructuralNode,
    TextRun,
)
from .docx_codec import DocxCodec, DocxModel
from .pdf_codec import PdfCodec, PdfModel
from .registry import CodecRegistry, sniff_format
from .xlsx_codec import XlsxCodec, XlsxModel

__all__ = [
    "CodecRegistry",
    "DocumentCodec",
    "DocxCodec",
    "DocxModel",
    "GeometricModel",
    "NativeRun",
    "NodeKind",
    "PdfCodec",
    "PdfModel",
    "StructuralModel",
    "StructuralNode",
    "TextRun",
    "XlsxCodec",
    "XlsxModel",
    "sniff_format",
]
