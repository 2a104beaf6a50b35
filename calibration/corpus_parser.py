"""
Corpus Parser — Reads Labeled Calibration Samples

Parses the simple text format used for calibration corpus files.
Each sample is a block of text preceded by metadata lines,
separated by '---' delimiters.

Format:
    ---
    verdict: highly suspicious
    mode: phone
    source: forwarded SMS, 2024
    notes: OTP harvesting with account-block threat

    Your SIM will be blocked today. Share the OTP sent to you
    to keep your number active.

    ---
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from verifyit.mode import ContentMode
from verifyit.verdict import Verdict, parse_verdict


@dataclass
class CalibrationSample:
    """A single labeled sample from the calibration corpus."""
    text: str
    verdict: Verdict                # Human-labeled verdict band
    mode: Optional[ContentMode]     # Human-labeled content mode, if given
    source: str                     # Where the passage came from
    notes: str                      # Annotator notes

    # Populated after engine evaluation
    engine_result: Optional[dict] = None


_META_LINE = re.compile(r"^(verdict|mode|source|notes)\s*:\s*(.+)$", re.IGNORECASE)


def parse_corpus(filepath: str | Path) -> list[CalibrationSample]:
    """
    Parse a calibration corpus file into a list of samples.

    Blocks without a recognisable verdict label are skipped.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Corpus file not found: {filepath}")

    content = filepath.read_text(encoding="utf-8")

    # Split on lines that are just --- (start of file, between blocks, end)
    blocks = re.split(r"(?:^|\n)\s*---\s*(?:\n|$)", content)

    samples = []
    for block in blocks:
        block = block.strip()
        if not block:
            continue

        sample = _parse_block(block)
        if sample:
            samples.append(sample)

    return samples


def _parse_block(block: str) -> Optional[CalibrationSample]:
    """Parse a single sample block."""
    metadata = {}
    text_lines = []
    in_text = False

    for line in block.split("\n"):
        stripped = line.strip()
        if stripped.startswith("#"):
            continue

        if not in_text:
            match = _META_LINE.match(stripped)
            if match:
                metadata[match.group(1).lower()] = match.group(2).strip()
            elif stripped:
                # First non-metadata, non-empty line starts the text
                in_text = True
                text_lines.append(line)
        else:
            text_lines.append(line)

    text = "\n".join(text_lines).strip()
    verdict = parse_verdict(metadata.get("verdict"))
    if not text or verdict is None:
        return None

    mode = None
    if "mode" in metadata:
        try:
            mode = ContentMode(metadata["mode"].lower())
        except ValueError:
            mode = None

    return CalibrationSample(
        text=text,
        verdict=verdict,
        mode=mode,
        source=metadata.get("source", "unknown"),
        notes=metadata.get("notes", ""),
    )


def parse_all_corpora(corpus_dir: str | Path) -> list[CalibrationSample]:
    """Parse all .txt corpus files in a directory."""
    corpus_dir = Path(corpus_dir)
    samples = []
    for filepath in sorted(corpus_dir.glob("*.txt")):
        samples.extend(parse_corpus(filepath))
    return samples
