#!/usr/bin/env python3
"""
Command-line entry point for annotating a single document.

Example:
    grade-annotate essay.docx --score 87 --comment "Clear structure." --instructor "Dr. Li"
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from grade_annotator.config import get_annotation_config
from grade_annotator.exceptions import ApplicationError, UnsupportedFormatError
from grade_annotator.models import GradingResult, InstructorSettings
from grade_annotator.services import AnnotationService
from grade_annotator.utils.logger import logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grade-annotate",
        description="Write a grade, comment and signature into a DOCX, XLSX or PDF document",
    )
    parser.add_argument("input", help="Document to annotate")
    parser.add_argument("--score", type=float, help="Score to write (required unless --extract-text)")
    parser.add_argument("--comment", default="", help="Teacher comment")
    parser.add_argument("--summary", default="", help="Summary used in fallback reports")
    parser.add_argument("--letter-grade", default="", help="Letter grade shown in fallback reports")
    parser.add_argument("--max-score", type=float, help="Maximum score (default from configuration)")
    parser.add_argument("--instructor", help="Instructor name; enables the signature")
    parser.add_argument("--artistic", action="store_true", help="Use the artistic signature font")
    parser.add_argument("--signature-image", help="Signature image file; enables the signature")
    parser.add_argument("--format", dest="format_hint", help="Format hint (extension or MIME type)")
    parser.add_argument("--output", "-o", help="Output path (default: Graded_<name> beside the input)")
    parser.add_argument("--extract-text", action="store_true", help="Print the document text and exit")
    return parser


def build_instructor(args: argparse.Namespace) -> Optional[InstructorSettings]:
    if not args.instructor and not args.signature_image:
        return None
    image_data = None
    if args.signature_image:
        image_data = Path(args.signature_image).read_bytes()
    return InstructorSettings(
        enabled=True,
        mode="image" if image_data else "text",
        name=args.instructor or "",
        font_style="artistic" if args.artistic else "standard",
        image_data=image_data,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Input file not found: {input_path}", file=sys.stderr)
        return 1

    config = get_annotation_config()
    if args.max_score:
        config.max_score = args.max_score
    service = AnnotationService(config=config)
    data = input_path.read_bytes()
    format_hint = args.format_hint or input_path.name

    if args.extract_text:
        try:
            print(service.extract_text(data, format_hint))
        except ApplicationError as e:
            print(e.user_message, file=sys.stderr)
            return 1
        return 0

    if args.score is None:
        parser.error("--score is required")

    result = GradingResult(
        score=args.score,
        teacher_comment=args.comment,
        summary=args.summary,
        letter_grade=args.letter_grade,
    )
    try:
        annotation = service.annotate(
            data, format_hint, result, build_instructor(args), filename=input_path.name
        )
    except UnsupportedFormatError as e:
        print(e.user_message, file=sys.stderr)
        return 2

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = input_path.with_name(
            service.output_filename(input_path.name, annotation.output_format)
        )
    output_path.write_bytes(annotation.output_bytes)

    print(f"Wrote {output_path} ({annotation.modifications} placeholder(s) filled)")
    if annotation.used_fallback:
        print("No usable placeholders: a grading report was added instead")
    for warning in annotation.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    logger.debug(f"CLI annotation result: {annotation.to_dict()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
