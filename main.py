"""
Egg Gender Prediction - command line entry point.

One invocation is one session: inputs are analyzed as a batch, the results
and the gender distribution are printed, and the report can be exported.

Usage:
  python main.py images --batch B-17 eggs/*.jpg --report-dir data/reports
  python main.py capture --batch B-17 frame.png
  python main.py measurements --batch B-18 --input measurements.csv --chart summary.png
  python main.py measurements --batch B-18 --row 57.2,42.5,60.1 --row 55.0,43.9,58.7
  python main.py ask "Does egg weight correlate with chick sex?"
"""

import argparse
import logging
import os
import sys
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file before config reads EGG_GENDER_MODEL
load_dotenv()

from config import AnalysisType, DEFAULT_MAX_WORKERS, DEFAULT_PRIMARY_MODEL, DEFAULT_REPORT_DIR
from evaluation.aggregation import format_summary, summarize
from evaluation.charts import plot_gender_distribution
from models.llm_clients import create_llm
from pipeline.batch_runner import BatchConfig, BatchCoordinator, BatchResult, OutcomeStatus
from pipeline.expert import ExpertAdvisor
from pipeline.inputs import MeasurementInput, ValidationError, load_measurement_rows
from pipeline.predictor import create_predictor
from pipeline.records import RecordStore
from utils.image_loader import load_images, preview_scope
from utils.logger import SessionLogger, setup_logger
from utils.report_exporter import ReportExporter


def load_api_keys() -> Dict[str, Optional[str]]:
    """Provider API keys from the environment."""
    return {
        "gemini": os.getenv("GEMINI_API_KEY"),
        "openai": os.getenv("OPENAI_API_KEY"),
        "anthropic": os.getenv("ANTHROPIC_API_KEY"),
        "serper": os.getenv("SERPER_API_KEY"),
    }


def parse_row_argument(value: str, position: int) -> MeasurementInput:
    """Turn 'length,width,weight' into a MeasurementInput; validation happens later."""
    parts = [part.strip() for part in value.split(',')]
    parts += [''] * (3 - len(parts))
    return MeasurementInput(
        id=str(position),
        long_axis_mm=parts[0],
        short_axis_mm=parts[1],
        weight_g=parts[2],
    )


def print_batch_result(result: BatchResult) -> None:
    """Print one line per item and the batch tally."""
    print(f"\nBatch {result.batch_number} ({result.analysis_type.value})")
    for outcome in result.outcomes:
        if outcome.status is OutcomeStatus.SUCCEEDED:
            record = outcome.record
            stored = "" if any(r is record for r in result.recorded) else "  [not counted]"
            print(f"  {outcome.item_id}: {record.gender} ({record.confidence}){stored}")
            print(f"      {record.reasoning}")
        elif outcome.status is OutcomeStatus.FAILED:
            print(f"  {outcome.item_id}: FAILED - {outcome.error}")
        else:
            print(f"  {outcome.item_id}: cancelled")

    print(f"Successful: {len(result.succeeded)}, Failed: {result.failed_count}")


def print_validation_errors(error: ValidationError) -> None:
    print("Submission rejected:")
    for key, message in error.errors.items():
        label = "Batch" if key == "global" else f"Item {key}"
        print(f"  {label}: {message}")


def finish_session(args: argparse.Namespace, store: RecordStore) -> None:
    """Print the summary and write the optional report and chart."""
    summary = summarize(store.all())
    print()
    print(format_summary(summary))

    if args.chart:
        plot_gender_distribution(summary, output_path=args.chart)
        print(f"Chart saved to: {args.chart}")

    if args.report_dir:
        if len(store) == 0:
            print("No records to export.")
            return
        exporter = ReportExporter(args.report_dir)
        print(f"Report saved to: {exporter.export_csv(store.all())}")
        if args.json:
            print(f"JSON saved to: {exporter.export_json(store.all())}")


def run_analysis(args: argparse.Namespace, api_keys: Dict[str, Optional[str]]) -> int:
    """Run one batch for the images, capture or measurements command."""
    session = SessionLogger(session_name=args.batch or "unnamed")
    session.log_config({
        'command': args.command,
        'model': args.model,
        'workers': args.workers,
    })

    store = RecordStore()
    coordinator = BatchCoordinator(
        create_predictor(model=args.model, api_keys=api_keys),
        store,
        BatchConfig(max_workers=args.workers, show_progress=not args.quiet),
        session_logger=session
    )

    try:
        if args.command == 'measurements':
            rows: List[MeasurementInput] = []
            if args.input:
                rows.extend(load_measurement_rows(args.input))
            rows.extend(parse_row_argument(value, len(rows) + 1) for value in args.row or [])
            result = coordinator.run_batch(args.batch, AnalysisType.CALCULATOR, rows)
        else:
            analysis_type = AnalysisType.LIVE_CAMERA if args.command == 'capture' else AnalysisType.IMAGE
            images = load_images(args.paths)
            with preview_scope(images) as shown:
                result = coordinator.run_batch(args.batch, analysis_type, shown)
    except ValidationError as e:
        print_validation_errors(e)
        return 2

    print_batch_result(result)
    finish_session(args, store)
    session.log_finish()
    return 0 if result.succeeded else 1


def run_ask(args: argparse.Namespace, api_keys: Dict[str, Optional[str]]) -> int:
    advisor = ExpertAdvisor(create_llm(args.model, api_keys), serper_api_key=api_keys.get("serper"))
    answer = advisor.ask(args.question)

    print(answer.text)
    if answer.sources:
        print("\nSources:")
        for source in answer.sources:
            print(f"  - {source.title}: {source.uri}")
    return 1 if answer.failed else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Egg Gender Prediction - predict chick gender from egg photos or measurements',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py images --batch B-17 eggs/*.jpg --report-dir data/reports
  python main.py measurements --batch B-18 --input measurements.csv
  python main.py ask "What is the egg shape index?"
        """
    )
    parser.add_argument('--model', '-m', default=DEFAULT_PRIMARY_MODEL,
                        help=f'LLM model identifier (default: {DEFAULT_PRIMARY_MODEL})')
    parser.add_argument('--log-file', help='Also write logs to this file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    parser.add_argument('--quiet', '-q', action='store_true', help='Hide the progress bar')

    subparsers = parser.add_subparsers(dest='command', required=True)

    batch_options = argparse.ArgumentParser(add_help=False)
    batch_options.add_argument('--batch', '-b', default='', help='Batch number shared by every egg (required)')
    batch_options.add_argument('--workers', '-w', type=int, default=DEFAULT_MAX_WORKERS,
                               help=f'Concurrent prediction calls (default: {DEFAULT_MAX_WORKERS})')
    batch_options.add_argument('--report-dir', nargs='?', const=DEFAULT_REPORT_DIR, default=None,
                               help=f'Export the CSV report here (default dir: {DEFAULT_REPORT_DIR})')
    batch_options.add_argument('--json', action='store_true', help='Also export the report as JSON')
    batch_options.add_argument('--chart', help='Save the gender distribution chart to this PNG path')

    images = subparsers.add_parser('images', parents=[batch_options], help='Analyze egg photos')
    images.add_argument('paths', nargs='+', help='Image files')

    capture = subparsers.add_parser('capture', parents=[batch_options], help='Analyze one camera frame')
    capture.add_argument('paths', nargs=1, metavar='frame', help='Captured frame image')

    measurements = subparsers.add_parser('measurements', parents=[batch_options],
                                         help='Analyze caliper measurements')
    measurements.add_argument('--input', '-i', help='CSV with long_axis_mm, short_axis_mm, weight_g columns')
    measurements.add_argument('--row', '-r', action='append', metavar='L,W,WT',
                              help='One egg as length,width,weight (repeatable)')

    ask = subparsers.add_parser('ask', help='Ask the poultry science expert')
    ask.add_argument('question', help='Question text')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function for command line execution
    """
    args = build_parser().parse_args(argv)

    setup_logger('', level=logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)

    api_keys = load_api_keys()
    if not any(api_keys[provider] for provider in ("gemini", "openai", "anthropic")):
        print("Warning: No API key found. Set GEMINI_API_KEY (or OPENAI_API_KEY / ANTHROPIC_API_KEY) in .env")

    if args.command == 'ask':
        return run_ask(args, api_keys)
    return run_analysis(args, api_keys)


if __name__ == "__main__":
    sys.exit(main())
