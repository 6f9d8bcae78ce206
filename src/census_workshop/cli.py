"""
Command-line interface for the Census workshop toolkit.
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional
import pandas as pd
import requests

from .census.services.data_fetcher import DataFetcher
from .utils.config import Config
from .utils.validation import CensusAPIError, DataValidationError, GeographyError
from .utils.visualization import Visualization


# Set up logging
logger = logging.getLogger(__name__)


def _add_query_arguments(parser: argparse.ArgumentParser) -> None:
    """Arguments shared by the decennial and acs subcommands."""
    parser.add_argument('--geography', '-g', required=True,
                        help='Geography level, e.g. state, county, tract')
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--variables', '-v', nargs='+',
                       help='Variable codes; use NAME=CODE to rename a variable')
    group.add_argument('--table', '-t', help='Table ID to fetch whole')
    parser.add_argument('--year', '-y', type=int, help='Data vintage')
    parser.add_argument('--state', '-s', nargs='+', help='State abbreviation(s), name(s) or FIPS code(s)')
    parser.add_argument('--county', '-c', nargs='+', help='County name(s) or FIPS code(s)')
    parser.add_argument('--output', choices=['tidy', 'wide'], default='tidy', help='Output shape')
    parser.add_argument('--summary-var', help='Variable joined onto every row as a denominator')
    parser.add_argument('--out', '-o', help='CSV file to write (default: print to stdout)')


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog='census-workshop',
        description='Query the US Census Bureau Data API'
    )
    parser.add_argument(
        '--debug', '-d',
        action='store_true',
        help='Enable debug output'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    decennial = subparsers.add_parser('decennial', help='Decennial Census counts')
    _add_query_arguments(decennial)
    decennial.add_argument('--sumfile', help='Summary file: pl, dhc, dp, sf1, sf2')

    acs = subparsers.add_parser('acs', help='American Community Survey estimates')
    _add_query_arguments(acs)
    acs.add_argument('--survey', choices=['acs1', 'acs3', 'acs5'], default='acs5')
    acs.add_argument('--moe-level', type=int, choices=[90, 95, 99], default=90)
    acs.add_argument('--plot', action='store_true',
                     help='Save a dot plot of the first variable under visualizations/')

    variables = subparsers.add_parser('variables', help='Browse a dataset\'s variables')
    variables.add_argument('--year', '-y', type=int, required=True)
    variables.add_argument('--dataset', required=True, help='e.g. acs5, acs5/subject, pl, dhc')
    variables.add_argument('--search', help='Case-insensitive filter on label and concept')
    variables.add_argument('--cache', action='store_true', help='Cache the variable list on disk')
    variables.add_argument('--out', '-o', help='CSV file to write (default: print to stdout)')

    return parser.parse_args(argv)


def configure_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    config = Config()
    log_config = config.get('logging', {})

    level = logging.DEBUG if debug else getattr(logging, log_config.get('level', 'INFO'))
    format_str = log_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Reset the root logger
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    logging.getLogger('matplotlib').setLevel(logging.INFO)
    logging.getLogger('matplotlib.font_manager').setLevel(logging.INFO)
    logging.getLogger('PIL').setLevel(logging.INFO)
    logging.getLogger('urllib3').setLevel(logging.INFO)


def parse_variables(values: Optional[List[str]]):
    """Turn ["income=B19013_001", ...] into a rename dict, or plain codes into a list."""
    if not values:
        return None
    if any('=' in v for v in values):
        named = {}
        for value in values:
            name, sep, code = value.partition('=')
            named[name if sep else value] = code if sep else value
        return named
    return values


def _state_arg(values: Optional[List[str]]):
    if not values:
        return None
    return values[0] if len(values) == 1 else values


def write_output(df: pd.DataFrame, out: Optional[str]) -> None:
    """Write a frame to CSV, or print it when no path is given."""
    if out:
        output_path = Path(out)
        output_path.parent.mkdir(exist_ok=True, parents=True)
        df.to_csv(output_path, index=False)
        logger.info(f"Wrote {len(df)} rows to {output_path}")
    else:
        with pd.option_context('display.max_rows', 100, 'display.width', 200):
            print(df.to_string(index=False))


def run_decennial(args: argparse.Namespace, fetcher: DataFetcher) -> pd.DataFrame:
    return fetcher.get_decennial(
        args.geography,
        variables=parse_variables(args.variables),
        table=args.table,
        year=args.year or Config().get('census.default_decennial_year', 2020),
        sumfile=args.sumfile,
        state=_state_arg(args.state),
        county=_state_arg(args.county),
        output=args.output,
        summary_var=args.summary_var,
    )


def run_acs(args: argparse.Namespace, fetcher: DataFetcher) -> pd.DataFrame:
    df = fetcher.get_acs(
        args.geography,
        variables=parse_variables(args.variables),
        table=args.table,
        year=args.year,
        survey=args.survey,
        state=_state_arg(args.state),
        county=_state_arg(args.county),
        output=args.output,
        moe_level=args.moe_level,
        summary_var=args.summary_var,
    )
    if args.plot:
        if args.output != 'tidy':
            logger.warning("--plot needs tidy output; skipping the plot")
        else:
            first = df['variable'].iloc[0]
            viz = Visualization(Path('visualizations'))
            viz.estimate_dotplot(df[df['variable'] == first], title=f'{first} ({args.survey})')
    return df


def run_variables(args: argparse.Namespace, fetcher: DataFetcher) -> pd.DataFrame:
    df = fetcher.load_variables(args.year, args.dataset, cache=args.cache)
    if args.search:
        mask = (df['label'].str.contains(args.search, case=False, regex=False, na=False)
                | df['concept'].str.contains(args.search, case=False, regex=False, na=False))
        df = df[mask]
    return df


COMMANDS = {
    'decennial': run_decennial,
    'acs': run_acs,
    'variables': run_variables,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main function of the census-workshop command."""
    try:
        args = parse_arguments(argv)
        configure_logging(args.debug)

        fetcher = DataFetcher()
        df = COMMANDS[args.command](args, fetcher)
        write_output(df, args.out)
        return 0

    except (CensusAPIError, GeographyError, DataValidationError, ValueError) as e:
        logger.error(str(e))
        return 1
    except requests.exceptions.RequestException as e:
        logger.error(f"Network error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
