#!/usr/bin/env python3
"""Command-line interface for auditing a Canvas peer-review export."""

import argparse
import logging
import sys
from pathlib import Path

import yaml

from peerscope.libs.config_loader import (
    ConfigType, load_all_configs, load_configs, load_default_configs, merge_configs,
)
from peerscope.tools.peer_review.class_stats import group_statistics
from peerscope.tools.peer_review.comment_quality import KeywordVerdicts
from peerscope.tools.peer_review.csv_parser import COLUMN_STRATEGIES
from peerscope.tools.peer_review.engine import analyze_csv, recalculate
from peerscope.tools.peer_review.export import (
    write_grader_scores, write_rescore_diff, write_student_scores, write_summary,
)
from peerscope.tools.peer_review.roster import read_roster
from peerscope.tools.peer_review.scoring import SCHEMES
from peerscope.tools.peer_review.settings import ScoringSettings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
LOG = logging.getLogger(__name__)


def load_keyword_verdicts(path: Path) -> KeywordVerdicts:
    """Read approved/rejected keyword lists from a YAML file.

    Expected layout::

        approved: [demo, screen capture]
        rejected: [ok, good]
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise TypeError(f"Keyword file {path} must contain a mapping with approved/rejected lists")
    return KeywordVerdicts.from_lists(data.get('approved'), data.get('rejected'))


def load_settings(config_path: Path = None,
                  config_dir: Path = None) -> tuple[ConfigType, ScoringSettings]:
    """Defaults, then every YAML file in config_dir, then config_path."""
    config = load_default_configs()
    if config_dir:
        config = merge_configs(config, load_all_configs(str(config_dir)))
    if config_path:
        config = merge_configs(config, load_configs(str(config_path)))
    return config, ScoringSettings.from_config(config)


def main():
    """Main entry point for the peerscope-audit command."""
    parser = argparse.ArgumentParser(
        description='Score a Canvas peer-review export and flag anomalies',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
  peerscope-audit --csv peer_reviews.csv --output-dir out/

  This will:
    1. Parse every review row of peer_reviews.csv
    2. Compute work scores for students and peer-review scores for graders
    3. Write student and grader score CSVs plus a YAML summary to out/

  Add --keywords keywords.yaml to re-score graders with curated keyword lists,
  and --roster roster.csv --group-set "Lab Groups" for per-group statistics.
        """
    )

    # Required arguments
    parser.add_argument(
        '--csv', '-c',
        type=Path,
        required=True,
        help='Path to the Canvas peer-review CSV export'
    )

    # Optional arguments
    parser.add_argument(
        '--roster', '-r',
        type=Path,
        help='Path to a Canvas roster CSV with group-set columns'
    )
    parser.add_argument(
        '--group-set', '-g',
        help='Group-set column of the roster to summarize by'
    )
    parser.add_argument(
        '--scheme', '-s',
        choices=sorted(SCHEMES),
        help='Peer-review scoring scheme (default: from config)'
    )
    parser.add_argument(
        '--keywords', '-k',
        type=Path,
        help='YAML file with approved/rejected keyword lists for re-scoring'
    )
    parser.add_argument(
        '--output-dir', '-o',
        type=Path,
        default=Path('.'),
        help='Directory for output files (default: current directory)'
    )
    parser.add_argument(
        '--column-strategy',
        choices=COLUMN_STRATEGIES,
        help='How to locate the leading columns (default: from config)'
    )
    parser.add_argument(
        '--config',
        type=Path,
        help='Extra YAML config merged over the defaults'
    )
    parser.add_argument(
        '--config-dir',
        type=Path,
        help='Directory whose YAML files are merged over the defaults in name order'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args()

    # Set logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate inputs
    if not args.csv.is_file():
        LOG.error(f"CSV file not found: {args.csv}")
        sys.exit(1)
    if args.roster and not args.roster.is_file():
        LOG.error(f"Roster file not found: {args.roster}")
        sys.exit(1)
    if args.roster and not args.group_set:
        LOG.error("--group-set is required with --roster")
        sys.exit(1)
    if args.keywords and not args.keywords.is_file():
        LOG.error(f"Keyword file not found: {args.keywords}")
        sys.exit(1)
    if args.config and not args.config.is_file():
        LOG.error(f"Config file not found: {args.config}")
        sys.exit(1)
    if args.config_dir and not args.config_dir.is_dir():
        LOG.error(f"Config directory not found: {args.config_dir}")
        sys.exit(1)

    try:
        config, settings = load_settings(args.config, args.config_dir)
        export_conf = config.get('export') or {}
        args.output_dir.mkdir(parents=True, exist_ok=True)

        result = analyze_csv(args.csv, settings, scheme=args.scheme, strategy=args.column_strategy)

        # Exports below read the re-scored graders
        rescore = None
        verdicts = None
        if args.keywords:
            verdicts = load_keyword_verdicts(args.keywords)
            rescore = recalculate(result, verdicts.approved, verdicts.rejected)
            write_rescore_diff(rescore.diff,
                               args.output_dir / export_conf.get('rescore_diff_file', 'rescore-diff.csv'))

        summary = result.to_summary_dict()
        if rescore is not None:
            summary['rescore'] = {
                'approved': list(verdicts.approved),
                'rejected': list(verdicts.rejected),
                'changed_graders': len(rescore.diff),
            }

        if args.roster:
            roster = read_roster(args.roster)
            assignment = roster.group_assignment(args.group_set)
            groups = group_statistics(result.students, result.graders, assignment)
            summary['groups'] = {name: stats.model_dump() for name, stats in groups.items()}

        write_student_scores(result.students,
                             args.output_dir / export_conf.get('student_scores_file', 'student-work-scores.csv'))
        write_grader_scores(result.graders,
                            args.output_dir / export_conf.get('grader_scores_file', 'grader-peer-review-scores.csv'))

        summary_path = write_summary(summary,
                                     args.output_dir / export_conf.get('summary_file', 'peer_review_summary.yaml'))

        # Print summary
        stats = result.stats
        print("\n" + "=" * 50)
        print("Peer Review Audit Complete!")
        print("=" * 50)

        print(f"\nScheme: {result.scheme}")
        print(f"Columns: {result.mapping.describe()}")
        print(f"\nStatistics:")
        print(f"  Total reviews: {stats.total_reviews}")
        print(f"  Completed: {stats.completed_reviews}")
        print(f"  Incomplete: {stats.incomplete_reviews}")
        print(f"  Students: {stats.total_students}")
        print(f"  Graders: {stats.total_graders}")
        print(f"  Flagged students: {len(result.flagged_students())}")
        print(f"  Flagged graders: {len(result.flagged_graders())}")
        if rescore is not None:
            print(f"  Graders changed by re-scoring: {len(rescore.diff)}")

        print(f"\nSummary: {summary_path}")

    except Exception as e:
        LOG.error(f"Audit failed: {e}", exc_info=args.verbose)
        sys.exit(1)


if __name__ == '__main__':
    main()
