"""
Command-line runner for coverage analysis.

One invocation runs one analysis type over every district (or a single
district) and writes:
1. coverage_analysis.csv - per-district results (superseding earlier runs)
2. coverage_analysis.geojson - results with coverage areas (if enabled)
3. audit_log.csv - who ran what (when --user-id is given)
4. coverage_metrics.json - dashboard metrics of this run

Usage:
    python -m infra_coverage.runner --input-dir data/input --output-dir data/output

    # Education coverage for one district, attributed to a user
    python -m infra_coverage.runner --analysis-type education --district-id d-kampala --user-id analyst-7

    # Read from PostGIS instead of CSV exports
    python -m infra_coverage.runner --database-url postgresql://user:pw@host/db --output-dir out
"""
import argparse
import json
from dataclasses import asdict
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from infra_coverage.analysis.engine import CoverageEngine
from infra_coverage.analysis.metrics import (
    calculate_coverage_metrics,
    calculate_efficiency_score,
    calculate_growth_capacity,
    calculate_infrastructure_health,
    calculate_reliability_index,
    summarize_infrastructure,
)
from infra_coverage.analysis.service import AnalysisRun, CoverageAnalysisService
from infra_coverage.data.schemas import AnalysisType, District, InfrastructureKind
from infra_coverage.data.sources import CSVDataSource, DataSource, PostgresDataSource
from infra_coverage.outputs.sinks import FileResultSink
from infra_coverage.utils.config import CoverageConfig, get_default_config, load_config
from infra_coverage.utils.exceptions import CoverageError, NoDistrictsError, PersistenceError
from infra_coverage.utils.logging_config import configure_logging, get_logger

logger = get_logger(__name__)

METRICS_FILE = 'coverage_metrics.json'

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NO_DISTRICTS = 2


def build_source(config: CoverageConfig, database_url: Optional[str] = None) -> DataSource:
    """PostgreSQL source when a database URL is given, CSV exports otherwise."""
    if database_url:
        return PostgresDataSource(database_url)
    return CSVDataSource(config.inputs)


def write_metrics(
    run: AnalysisRun,
    source: DataSource,
    output_dir: Path,
    population_of: Optional[Callable[[District], int]] = None
) -> Path:
    """
    Derive dashboard metrics from a run and write them as JSON.

    Inventory is restricted to the districts of the run, so a
    single-district run scores that district's towers only.

    Returns:
        Path of the metrics file

    Raises:
        PersistenceError: If the metrics file cannot be written
    """
    district_ids = {d.id for d in run.districts}
    towers, schools, hospitals = (
        [r for r in source.list_infrastructure(kind) if r.district_id in district_ids]
        for kind in (InfrastructureKind.TOWERS, InfrastructureKind.SCHOOLS, InfrastructureKind.HOSPITALS)
    )

    metrics = calculate_coverage_metrics(run.results, run.districts, towers, population_of)
    summary = summarize_infrastructure(
        run.districts, towers, schools, hospitals, run.results, population_of
    )
    coverage = metrics.average_coverage

    payload = {
        'analysis_type': run.analysis_type.value,
        'generated_at': datetime.now(timezone.utc).isoformat(),
        'metrics': metrics.to_dict(),
        'summary': asdict(summary),
        'scores': {
            'efficiency': calculate_efficiency_score(coverage, len(towers), len(run.districts)),
            'reliability': calculate_reliability_index(towers, coverage),
            'infrastructure_health': calculate_infrastructure_health(towers),
            'growth_capacity': calculate_growth_capacity(coverage, metrics.infrastructure_utilization),
        },
        'validation': {
            'critical': run.validation.critical_count if run.validation else 0,
            'warnings': run.validation.warning_count if run.validation else 0,
        },
        'persisted': run.persisted,
        'persist_error': run.persist_error,
    }

    output_path = output_dir / METRICS_FILE
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(payload, f, indent=2)
    except OSError as e:
        raise PersistenceError(f"Failed to write metrics: {e}") from e

    logger.info("metrics_written", path=str(output_path), average_coverage=coverage)
    return output_path


def run(
    output_dir: Path,
    analysis_type: str = AnalysisType.TELECOM.value,
    input_dir: Optional[Path] = None,
    config_path: Optional[Path] = None,
    district_id: Optional[str] = None,
    user_id: Optional[str] = None,
    database_url: Optional[str] = None,
) -> AnalysisRun:
    """
    Run one coverage analysis end to end.

    Args:
        output_dir: Directory for output files
        analysis_type: telecom, internet, education or healthcare
        input_dir: Directory of CSV exports (overrides inputs.base_path)
        config_path: YAML configuration file
        district_id: Restrict the run to one district
        user_id: Audit attribution
        database_url: Read from PostgreSQL instead of CSV

    Returns:
        AnalysisRun of the executed analysis
    """
    config = load_config(config_path) if config_path else get_default_config()
    if input_dir is not None:
        config.inputs.base_path = input_dir
    config.outputs.base_path = output_dir

    logger.info(
        "coverage_run_started",
        analysis_type=analysis_type,
        district_id=district_id,
        input_dir=str(config.inputs.base_path),
        output_dir=str(output_dir),
    )

    source = build_source(config, database_url)
    engine = CoverageEngine(config)
    service = CoverageAnalysisService(source, FileResultSink(config.outputs), engine)
    analysis = service.run(analysis_type, district_id=district_id, user_id=user_id)

    write_metrics(analysis, source, output_dir, engine.resolve_population)

    logger.info(
        "coverage_run_complete",
        results=len(analysis.results),
        persisted=analysis.persisted,
        audit_recorded=analysis.audit_recorded,
    )
    return analysis


def main(argv=None):
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description='Infrastructure coverage analysis runner',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Telecom coverage for every district
  infra-coverage --input-dir data/input --output-dir data/output

  # Healthcare coverage with a custom configuration
  infra-coverage --analysis-type healthcare --config config/coverage.yaml
        """
    )

    parser.add_argument(
        '--input-dir',
        type=Path,
        default=None,
        help='Directory containing CSV exports (default: inputs.base_path from --config)'
    )

    parser.add_argument(
        '--output-dir',
        type=Path,
        default=Path('data/output'),
        help='Directory for output files (default: data/output)'
    )

    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='YAML configuration file (default: built-in defaults)'
    )

    parser.add_argument(
        '--analysis-type',
        choices=[t.value for t in AnalysisType],
        default=AnalysisType.TELECOM.value,
        help='Analysis to run (default: telecom)'
    )

    parser.add_argument('--district-id', default=None, help='Analyze a single district')
    parser.add_argument('--user-id', default=None, help='User to attribute the run to in the audit log')
    parser.add_argument('--database-url', default=None, help='Read inputs from PostgreSQL (SQLAlchemy URL)')

    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO)'
    )

    parser.add_argument('--json-logs', action='store_true', help='Emit JSON log lines')

    args = parser.parse_args(argv)
    configure_logging(log_level=args.log_level, json_output=args.json_logs)

    try:
        run(
            output_dir=args.output_dir,
            analysis_type=args.analysis_type,
            input_dir=args.input_dir,
            config_path=args.config,
            district_id=args.district_id,
            user_id=args.user_id,
            database_url=args.database_url,
        )
        return EXIT_OK
    except NoDistrictsError as e:
        logger.error("no_districts_to_analyze", error=str(e), district_id=args.district_id)
        return EXIT_NO_DISTRICTS
    except (CoverageError, OSError) as e:
        logger.error("execution_failed", error=str(e), exc_info=True)
        return EXIT_FAILURE


if __name__ == '__main__':
    sys.exit(main())
