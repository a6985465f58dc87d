#!/usr/bin/env python3
"""
hostscope command line

Collects a diagnostic snapshot of the local host, scores it and writes an
HTML and/or JSON report.

Exit status is 0 when every requested report was written, 1 otherwise.
Collection problems never fail the run; they are printed as warnings.
"""

import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click

from .__version__ import __version__, get_full_version
from .commands.query import QueryExecutor, QueryProvider, WmicQueryProvider
from .core.diagnostics.engine import CollectionResult, DiagnosticEngine
from .core.diagnostics.report import FORMAT_BOTH, FORMAT_HTML, FORMATS, HTML_FILENAME, ReportError, write_reports
from .utils.console import (
    get_console,
    print_error,
    print_heading,
    print_info,
    print_scores,
    print_stage,
    print_success,
    print_warning,
)
from .utils.env_config import (
    ConfigError,
    Settings,
    load_settings,
    show_config_summary,
    show_validation,
    validate_config,
)
from .utils.logging_config import DEBUG_FORMAT, DEFAULT_FORMAT, LoggingContext
from .utils.system import check_elevated, open_report


def build_engine(settings: Settings, log_ctx: LoggingContext,
                 provider: Optional[QueryProvider] = None) -> DiagnosticEngine:
    """Wire the executor and engine from resolved settings"""
    executor = QueryExecutor(
        provider or WmicQueryProvider(executable=settings.wmic_path),
        timeout=settings.query_timeout,
        logger=log_ctx.get_logger('hostscope.query'),
    )
    return DiagnosticEngine(executor=executor, logging_context=log_ctx)


def show_summary(result: CollectionResult):
    """Print the one-line-per-stage results and the score table"""
    data = result.data
    hw = data.hardware
    print_info(f"Host: {hw.computer_name} ({hw.os_version})")
    print_info(f"CPU: {hw.cpu_brand} ({hw.cpu_cores} cores)")
    print_info(f"RAM: {hw.total_memory_gb:.1f} GB, {len(hw.disks)} disk(s)")
    print_info(f"Reliability records: {len(data.reliability)}")
    print_info(f"Error/warning events: {len(data.events)}")
    analysis = result.event_analysis
    if analysis is not None and analysis.top_sources:
        top = ", ".join(f"{name} ({count})" for name, count in analysis.top_sources[:3])
        print_info(f"Top event sources: {top}")

    for warning in result.warnings:
        print_warning(warning.message())

    print_heading("Health")
    print_scores(data.performance)
    for item in data.performance.recommendations:
        get_console().print(f"  • {item}")


@click.command()
@click.option('--days', type=click.IntRange(min=0), default=None,
              help='Event lookback window in days')
@click.option('--format', 'fmt', type=click.Choice(FORMATS, case_sensitive=False), default=None,
              help='Report format')
@click.option('--output', '-o', type=click.Path(file_okay=False, path_type=Path), default=None,
              help='Directory for the report files')
@click.option('--no-open', is_flag=True, help='Do not open the HTML report when done')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help='YAML configuration file')
@click.option('--timeout', type=click.FloatRange(min=0, min_open=True), default=None,
              help='Per-query timeout in seconds')
@click.option('--log-file', type=click.Path(dir_okay=False, path_type=Path), default=None,
              help='Write a rotating log file')
@click.option('--debug', is_flag=True, help='Enable debug logging on the console')
@click.option('--show-config', is_flag=True, help='Show current configuration')
@click.option('--version', is_flag=True, help='Show version information')
def main(days, fmt, output, no_open, config_file, timeout, log_file, debug, show_config, version):
    """hostscope - host diagnostic snapshot"""

    if version:
        click.echo(f"hostscope v{get_full_version()}")
        return

    try:
        settings = load_settings(config_file)
    except ConfigError as e:
        print_error(str(e))
        sys.exit(1)

    if show_config:
        show_config_summary(get_console())
        show_validation(validate_config(), get_console())
        return

    # Command line overrides configuration
    days = settings.days if days is None else days
    fmt = (fmt or settings.format).lower()
    output = output or settings.output_dir
    log_file = log_file or settings.log_file
    if timeout is not None:
        settings = replace(settings, query_timeout=timeout)
    auto_open = settings.auto_open and not no_open

    log_ctx = LoggingContext(
        level='DEBUG' if debug else settings.log_level,
        log_file=log_file,
        log_format=DEBUG_FORMAT if debug else DEFAULT_FORMAT,
        console=debug,
    )

    with log_ctx:
        logger = log_ctx.get_logger('hostscope.cli')
        logger.info(f"hostscope {__version__} starting: days={days} format={fmt} output={output}")

        print_heading("hostscope diagnostic snapshot")
        for problem in settings.errors:
            logger.warning(f"Configuration: {problem}")
            print_warning(f"{problem}; using the default")
        for note in settings.warnings:
            logger.warning(f"Configuration: {note}")
            print_warning(note)
        if not check_elevated():
            print_warning("Not running elevated; some data may be unavailable and replaced by samples")

        engine = build_engine(settings, log_ctx)
        engine.register_progress_callback(print_stage)
        result = engine.run(days=days)

        show_summary(result)

        try:
            written = write_reports(result.data, fmt, output)
        except ReportError as e:
            logger.error(f"Report failed: {e}")
            print_error(str(e))
            if fmt == FORMAT_BOTH and e.path is not None and e.path.name == HTML_FILENAME:
                print_error("JSON report skipped because the HTML report failed")
            sys.exit(1)

        for path in written:
            print_success(f"Report written: {path}")

        if auto_open and fmt in (FORMAT_HTML, FORMAT_BOTH):
            html_path = written[0]
            if not open_report(html_path):
                print_info(f"Open {html_path} in a browser to view the report")

        logger.info("Done")


if __name__ == '__main__':
    main()
