"""
Command-line interface for the Rugplay coin analyzer.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from rugplay_analyzer import __version__
from rugplay_analyzer.analysis.coin_analyzer import CoinAnalyzer
from rugplay_analyzer.clients.factory import create_market_data_provider
from rugplay_analyzer.clients.rugplay_client import RugplayClient
from rugplay_analyzer.config.manager import ConfigManager
from rugplay_analyzer.models.core import AnalysisResult
from rugplay_analyzer.utils.error_handling import AnalysisError, FetchError
from rugplay_analyzer.utils.structured_logging import logging_manager


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Rugplay Coin Analyzer - risk scoring and rug-pull detection for Rugplay coins",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s analyze PEPE                      # Analyze a coin
  %(prog)s analyze PEPE --json               # Print the full result as JSON
  %(prog)s analyze PEPE --no-enrichment      # Skip the intelligence service
  %(prog)s analyze PEPE --fixtures data.json # Analyze offline from saved payloads
  %(prog)s validate-config                   # Validate configuration

For more help on a specific command, use:
  %(prog)s <command> --help
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"rugplay-analyzer {__version__}"
    )
    parser.add_argument(
        "--config", "-c",
        default="config.yaml",
        help="Configuration file path (default: config.yaml)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress all output except errors"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    _add_analyze_command(subparsers)
    _add_validate_config_command(subparsers)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 1

    return args.func(args)


def _add_analyze_command(subparsers):
    """Add analyze command parser."""
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a coin",
        description="Fetch market data for a coin and print its risk analysis"
    )
    analyze_parser.add_argument(
        "symbol",
        help="Coin symbol to analyze"
    )
    analyze_parser.add_argument(
        "--api-key",
        help="Rugplay API key (overrides configuration)"
    )
    analyze_parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds allowed for fetching market data"
    )
    analyze_parser.add_argument(
        "--no-enrichment",
        action="store_true",
        help="Do not fetch the optional intelligence payload"
    )
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full analysis result as JSON"
    )
    analyze_parser.add_argument(
        "--fixtures",
        help="JSON file with saved API payloads to analyze instead of calling the API"
    )
    analyze_parser.set_defaults(func=analyze_command)


def _add_validate_config_command(subparsers):
    """Add validate-config command parser."""
    validate_parser = subparsers.add_parser(
        "validate-config",
        help="Validate configuration",
        description="Validate the configuration file and environment overrides"
    )
    validate_parser.set_defaults(func=validate_config_command)


def _setup_logging(args, config) -> None:
    if args.quiet:
        level = "ERROR"
    elif args.verbose:
        level = "DEBUG"
    else:
        level = config.logging.level

    logging_manager.setup_logging(
        log_level=level,
        log_file=config.logging.file,
        structured_format=config.logging.structured
    )


def analyze_command(args):
    """Analyze a coin and print the result."""
    try:
        config = ConfigManager(args.config).load_config()
    except ValueError as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    if args.api_key:
        config.api.api_key = args.api_key

    _setup_logging(args, config)

    try:
        result = asyncio.run(_run_analysis(args, config))
    except FetchError as e:
        print(f"Error fetching market data for {args.symbol}: {e}", file=sys.stderr)
        return 1
    except asyncio.TimeoutError:
        print(f"Analysis of {args.symbol} timed out", file=sys.stderr)
        return 1
    except AnalysisError as e:
        print(f"Analysis failed: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif not args.quiet:
        print(format_result(result))
    return 0


async def _run_analysis(args, config) -> AnalysisResult:
    provider = create_market_data_provider(
        config.api,
        config.retry,
        use_mock=bool(args.fixtures),
        fixtures_path=args.fixtures
    )
    analyzer = CoinAnalyzer(provider, config)
    use_enrichment = False if args.no_enrichment else None

    if isinstance(provider, RugplayClient):
        async with provider:
            return await analyzer.analyze_coin(
                args.symbol, timeout=args.timeout, use_enrichment=use_enrichment
            )
    return await analyzer.analyze_coin(
        args.symbol, timeout=args.timeout, use_enrichment=use_enrichment
    )


def format_result(result: AnalysisResult) -> str:
    """Render an analysis result for the terminal."""
    coin = result.coin
    factors = result.factors
    lines = [
        f"{coin.name} ({coin.symbol})",
        "=" * 40,
        result.summary,
        "",
        f"Recommendation: {result.recommendation.value}",
        f"Risk level:     {result.risk_level.value}",
        f"Confidence:     {result.confidence:.1f}%",
        f"Rug-pull risk:  {result.rug_pull.risk_level.value} ({result.rug_pull.overall_risk:.0f}/100)",
        f"Strategy:       {result.strategy}",
        "",
        "Factor scores:",
        f"  Technical:     {factors.technical.score:.1f}",
        f"  Fundamental:   {factors.fundamental.score:.1f}",
        f"  Sentiment:     {factors.sentiment.score:.1f}",
        f"  Liquidity:     {factors.liquidity.score:.1f}",
        f"  Concentration: {factors.concentration.score:.1f}",
        f"  Suspicious:    {result.suspicious_patterns.risk_score:.1f}",
    ]

    if result.rug_pull.indicators:
        lines.append("")
        lines.append("Rug-pull indicators:")
        for indicator in result.rug_pull.indicators:
            lines.append(f"  [{indicator.severity.value}] {indicator.description}")

    if result.suspicious_patterns.patterns:
        lines.append("")
        lines.append("Suspicious patterns:")
        for pattern in result.suspicious_patterns.patterns:
            lines.append(f"  {pattern}")

    if result.warnings:
        lines.append("")
        lines.append("Warnings:")
        for warning in result.warnings:
            lines.append(f"  - {warning}")

    if result.opportunities:
        lines.append("")
        lines.append("Opportunities:")
        for opportunity in result.opportunities:
            lines.append(f"  + {opportunity}")

    return "\n".join(lines)


def validate_config_command(args):
    """Validate configuration file."""
    config_path = Path(args.config)

    if not config_path.exists():
        print(f"Configuration file {config_path} not found.")
        return 1

    print(f"Validating configuration: {config_path}")

    manager = ConfigManager(str(config_path))
    is_valid, errors = manager.validate_config_file()

    if not is_valid:
        print("✗ Configuration validation failed:")
        for error in errors:
            print(f"  - {error}")
        return 1

    config = manager.load_config()
    print("✓ Configuration is valid")
    print(f"\nConfiguration Summary:")
    print(f"  API: {config.api.base_url}")
    print(f"  Intelligence service: {config.api.intelligence_base_url or 'disabled'}")
    print(f"  Timeframes: {', '.join(config.analysis.timeframes)}")
    print(f"  Retries: {config.retry.max_retries}")
    print(f"  Analysis timeout: {config.analysis.analysis_timeout}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
