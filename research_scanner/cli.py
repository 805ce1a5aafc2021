"""CLI entry point running the full five-step research pipeline."""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from research_scanner.demo import get_demo_step_executor
from research_scanner.logging import configure_structlog, get_logger
from research_scanner.models import FinalReport, ResearchRun
from research_scanner.workflow import run_research_workflow

log = get_logger("research_scanner.cli")

STATUS_ICONS = {"completed": "✅", "partial": "⚠️", "failed": "❌"}


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="research-scanner", description="Run the five-step AI research pipeline.")
    parser.add_argument("query", help="Research query")
    parser.add_argument("--demo", action="store_true", help="Use offline fixture providers instead of live APIs")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("outputs"),
        help="Directory for the JSON run and Markdown report (default: ./outputs)",
    )
    return parser.parse_args(argv)


def _print_run(run: ResearchRun) -> None:
    for result in run.steps:
        icon = STATUS_ICONS.get(result.status.value, "•")
        print(f"  {icon} [{result.service}] step {result.step}: {result.step_name} ({result.progress}%)")
    report = run.final_report
    print()
    print(f"  Sources: {report.total_sources}, tokens: {report.total_tokens}, total: {run.total_ms}ms")
    if run.failed_steps:
        print(f"  Failed steps: {', '.join(str(step) for step in run.failed_steps)}")


def format_report_as_markdown(report: FinalReport, failed_steps: list[int]) -> str:
    """Format a final report as Markdown."""
    md_lines = [
        "# Research Report",
        "",
        f"**Research Query:** {report.query}",
        f"**Generated:** {report.timestamp}",
        "",
        "---",
        "",
        "## Totals",
        "",
        f"- **Sources:** {report.total_sources}",
        f"- **Tokens:** {report.total_tokens}",
        "",
        "## Steps",
        "",
        "| step | service | confidence |",
        "|---|---|---|",
    ]
    for summary in report.research_steps:
        marker = " (failed)" if summary.step in failed_steps else ""
        md_lines.append(f"| {summary.step} | {summary.service}{marker} | {summary.confidence:.2f} |")

    metrics = report.quality_metrics
    md_lines.extend(
        [
            "",
            "## Quality Metrics",
            "",
            f"- **Factual accuracy:** {metrics.factual_accuracy:.2f}",
            f"- **Source reliability:** {metrics.source_reliability:.2f}",
            f"- **Analysis depth:** {metrics.analysis_depth:.2f}",
            f"- **Synthesis quality:** {metrics.synthesis_quality:.2f}",
            "",
            "## Recommendations",
            "",
        ]
    )
    md_lines.extend(f"- {recommendation}" for recommendation in report.recommendations)
    return "\n".join(md_lines) + "\n"


def _save_outputs(run: ResearchRun, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    run_file = output_dir / f"research_{timestamp}.json"
    run_file.write_text(json.dumps(run.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))
    log.info("cli.output.saved", file_type="run_json", path=str(run_file))
    print(f"\n✅ Full run saved to: {run_file}")

    report_file = output_dir / f"report_{timestamp}.md"
    report_file.write_text(format_report_as_markdown(run.final_report, run.failed_steps))
    log.info("cli.output.saved", file_type="report_markdown", path=str(report_file))
    print(f"✅ Report Markdown saved to: {report_file}")


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    load_dotenv()
    configure_structlog(testing=True)
    args = _parse_args(argv)

    executor = get_demo_step_executor() if args.demo else None
    print(f"Starting research: {args.query}")

    try:
        run = asyncio.run(run_research_workflow(args.query, executor=executor))
    except Exception as e:
        log.exception("cli.run.failed", error=str(e))
        print(f"\n❌ Research run failed: {e}", file=sys.stderr)
        return 1

    _print_run(run)

    try:
        _save_outputs(run, args.output_dir)
    except OSError as e:
        log.exception("cli.output.failed", error=str(e))
        print(f"❌ Failed to save outputs: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
