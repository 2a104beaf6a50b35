"""
Benchmark Runner — Verdict Accuracy over a Labeled Corpus

Runs the calibration corpus through the heuristic scorer and compares
its verdicts against human labels. Produces:

  1. Overall verdict accuracy
  2. Confusion matrix (labeled band → engine band)
  3. Mode-detection accuracy for samples with a labeled mode
  4. Average engine score per labeled band
  5. Misclassified samples for manual review
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from verifyit.heuristics import HeuristicScorer, heuristic_scorer
from verifyit.verdict import Verdict, classify_score
from calibration.corpus_parser import parse_all_corpora

ACCURACY_TARGET = 0.6


@dataclass
class BenchmarkResult:
    """Full benchmark output."""
    total_samples: int
    correct: int
    accuracy: float
    # confusion[labeled][predicted] = count, keyed by verdict value
    confusion: dict[str, dict[str, int]]
    mode_samples: int
    mode_accuracy: float
    avg_score_by_verdict: dict[str, float]
    misclassified: list[dict]


def run_benchmark(
    corpus_dir: str | Path = "calibration/corpus",
    scorer: HeuristicScorer = heuristic_scorer,
) -> BenchmarkResult:
    """
    Run the full calibration benchmark.

    Args:
        corpus_dir: Path to directory containing corpus .txt files.
        scorer: Heuristic scorer under test.
    """
    samples = parse_all_corpora(corpus_dir)

    if not samples:
        raise ValueError(f"No samples found in {corpus_dir}")

    bands = [v.value for v in Verdict]
    confusion = {label: {pred: 0 for pred in bands} for label in bands}
    scores: dict[str, list[int]] = {label: [] for label in bands}
    misclassified = []
    correct = 0
    mode_samples = 0
    mode_correct = 0

    for sample in samples:
        card = scorer.score(sample.text)
        predicted = classify_score(card.score)

        sample.engine_result = {
            "score": card.score,
            "verdict": predicted.value,
            "mode": card.mode.value,
            "overrides": list(card.overrides),
        }

        confusion[sample.verdict.value][predicted.value] += 1
        scores[sample.verdict.value].append(card.score)

        if predicted == sample.verdict:
            correct += 1
        else:
            misclassified.append({
                "text": sample.text[:200],
                "source": sample.source,
                "notes": sample.notes,
                "expected": sample.verdict.value,
                "predicted": predicted.value,
                "score": card.score,
            })

        if sample.mode is not None:
            mode_samples += 1
            if sample.mode == card.mode:
                mode_correct += 1

    return BenchmarkResult(
        total_samples=len(samples),
        correct=correct,
        accuracy=round(correct / len(samples), 4),
        confusion=confusion,
        mode_samples=mode_samples,
        mode_accuracy=round(mode_correct / mode_samples, 4) if mode_samples else 0.0,
        avg_score_by_verdict={
            label: round(sum(vals) / len(vals), 1)
            for label, vals in scores.items() if vals
        },
        misclassified=misclassified,
    )


def format_report(result: BenchmarkResult) -> str:
    """Format benchmark results as a human-readable report."""
    bands = [v.value for v in Verdict]
    lines = [
        "=" * 60,
        "VERIFYIT CALIBRATION REPORT",
        "=" * 60,
        "",
        f"Samples: {result.total_samples} ({result.correct} correct)",
        f"Verdict accuracy: {result.accuracy:.1%}"
        f"  {'✅ GOOD' if result.accuracy >= ACCURACY_TARGET else '⚠️  NEEDS TUNING'}"
        f" (target: ≥{ACCURACY_TARGET:.0%})",
        f"Mode accuracy:    {result.mode_accuracy:.1%} over {result.mode_samples} labeled samples",
        "",
        "--- CONFUSION MATRIX (rows: labeled, cols: engine) ---",
        f"{'':<22}" + "".join(f"{b[:10]:>12}" for b in bands),
    ]
    for label in bands:
        row = result.confusion[label]
        lines.append(f"{label:<22}" + "".join(f"{row[b]:>12}" for b in bands))

    lines.extend(["", "--- AVERAGE SCORE PER LABELED BAND ---"])
    for label, avg in result.avg_score_by_verdict.items():
        lines.append(f"{label:<22} {avg:>6}")

    if result.misclassified:
        lines.extend(["", "--- MISCLASSIFIED ---"])
        for miss in result.misclassified[:10]:
            lines.append(
                f"  [{miss['expected']} → {miss['predicted']} ({miss['score']})] "
                f"{miss['text'][:80]}..."
            )
            if miss.get("notes"):
                lines.append(f"    Notes: {miss['notes']}")

    lines.extend(["", "=" * 60])
    return "\n".join(lines)


def to_json(result: BenchmarkResult) -> dict:
    return {
        "total_samples": result.total_samples,
        "correct": result.correct,
        "accuracy": result.accuracy,
        "confusion": result.confusion,
        "mode": {
            "samples": result.mode_samples,
            "accuracy": result.mode_accuracy,
        },
        "avg_score_by_verdict": result.avg_score_by_verdict,
        "misclassified": result.misclassified,
    }


def save_report(result: BenchmarkResult, output_dir: str | Path = "calibration/reports"):
    """Save benchmark results as both human-readable report and JSON."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    report_path = output_dir / "calibration_report.txt"
    report_path.write_text(format_report(result), encoding="utf-8")

    json_path = output_dir / "calibration_report.json"
    json_path.write_text(json.dumps(to_json(result), indent=2), encoding="utf-8")

    return report_path, json_path
