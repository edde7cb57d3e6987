"""
Funding Rate Monitor - Main Entry Point

Periodically fetches perpetual funding rates from several exchanges and
pushes single-leg and cross-exchange arbitrage reports to Telegram.

Usage:
    # Monitor all configured exchanges
    python -m funding_monitor.main

    # Monitor specific exchanges
    python -m funding_monitor.main --exchanges binance okx gate

    # Run a single cycle and print the reports instead of sending them
    python -m funding_monitor.main --once --dry-run

    # List available exchanges
    python -m funding_monitor.main --list-exchanges

    # Verbose output for debugging
    python -m funding_monitor.main -v
"""

import argparse
import asyncio
import logging
import sys
from typing import List

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from funding_monitor.config import get_config, reload_config
from funding_monitor.database import LedgerDatabase
from funding_monitor.exceptions import UnknownExchangeError
from funding_monitor.exchanges import ExchangeRegistry
from funding_monitor.models import ArbitrageReport, RetrievalResult
from funding_monitor.services.monitor import FundingMonitor
from funding_monitor.utils import setup_logger, get_logger


console = Console()


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        description="Monitor perpetual funding rates and push arbitrage reports to Telegram",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                          # Monitor all configured exchanges
  %(prog)s -e binance okx           # Monitor Binance and OKX only
  %(prog)s --interval 600           # Push every 10 minutes
  %(prog)s --once                   # Run one cycle and exit
  %(prog)s --once --dry-run         # Print reports instead of sending them
  %(prog)s --list-exchanges         # List all available exchanges
  %(prog)s -v                       # Verbose output for debugging
        """
    )

    parser.add_argument(
        "-e", "--exchanges",
        nargs="+",
        metavar="EXCHANGE",
        help="Exchanges to monitor (default: all configured)",
    )

    parser.add_argument(
        "--interval",
        type=int,
        metavar="SECONDS",
        help="Seconds between cycles (default: PUSH_INTERVAL or 300)",
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle and exit",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print reports to the console instead of sending them to Telegram",
    )

    parser.add_argument(
        "--list-exchanges",
        action="store_true",
        help="List all available exchanges and exit",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output for debugging",
    )

    return parser


def list_exchanges() -> None:
    """Display list of available exchanges."""
    config = get_config()
    active = set(config.exchange.active_exchanges())

    table = Table(title="Available Exchanges", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Funding Endpoint", style="green")
    table.add_column("Status", style="yellow")

    all_names = ExchangeRegistry.get_all_names()
    for name in all_names:
        endpoints = config.exchange.endpoints.get(name)
        url = endpoints.rest_url_funding if endpoints else "N/A"
        status = "[green]✓ Enabled[/]" if name in active else "[red]✗ Disabled[/]"
        table.add_row(name, url, status)

    console.print(table)
    console.print(f"\n[dim]Total: {len(all_names)} exchanges, {len(active)} enabled[/]")


def display_results(results: List[RetrievalResult]) -> None:
    """Display per-exchange retrieval outcome."""
    table = Table(title="Retrieval", show_header=True, header_style="bold cyan")
    table.add_column("Exchange", style="cyan")
    table.add_column("Source", style="green")
    table.add_column("Rates", justify="right")
    table.add_column("Error", style="red")

    for result in results:
        table.add_row(
            result.exchange,
            result.source.value,
            str(result.count),
            result.error or "",
        )

    console.print(table)


def display_report(report: ArbitrageReport) -> None:
    """Display single-leg and cross-exchange opportunities."""
    console.print(Panel(
        f"[bold]{len(report.positive)}[/] positive, "
        f"[bold]{len(report.negative)}[/] negative, "
        f"[bold]{len(report.cross_exchange)}[/] cross-exchange",
        title="Funding Rate Update",
        border_style="cyan",
    ))

    for title, opportunities, style in (
        ("🔺 Positive Funding", report.positive, "red"),
        ("🔻 Negative Funding", report.negative, "green"),
    ):
        if not opportunities:
            console.print(f"[yellow]No {title.split()[1].lower()} opportunities[/]")
            continue

        table = Table(title=title, show_header=True, header_style=f"bold {style}")
        table.add_column("Exchange", style="green")
        table.add_column("Symbol", style="cyan")
        table.add_column("APR", justify="right", style=style)
        table.add_column("Cycle Net", justify="right")
        table.add_column("Daily Net", justify="right")
        table.add_column("Interval", justify="right", style="yellow")

        for opp in opportunities:
            table.add_row(
                opp.exchange,
                opp.symbol,
                f"{opp.apr:+.2f}%",
                f"{opp.single_cycle_net_percent:+.4f}%",
                f"{opp.daily_net_percent:+.4f}%",
                opp.interval_label,
            )
        console.print(table)

    if not report.has_cross_exchange:
        return

    table = Table(
        title="💰 Cross-Exchange Opportunities",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Symbol", style="cyan")
    table.add_column("Long", style="green")
    table.add_column("Short", style="red")
    table.add_column("Spread", justify="right", style="yellow")
    table.add_column("Net", justify="right", style="bold yellow")

    for opp in report.cross_exchange:
        table.add_row(
            opp.normalized_symbol,
            f"{opp.long_exchange} {opp.long_rate * 100:+.4f}%",
            f"{opp.short_exchange} {opp.short_rate * 100:+.4f}%",
            f"{opp.rate_diff_percent:.4f}%",
            f"{opp.net_profit_percent:.4f}%",
        )
    console.print(table)


async def print_report(report: ArbitrageReport, results: List[RetrievalResult]) -> None:
    display_results(results)
    display_report(report)


def configure_logging(verbose: bool) -> logging.Logger:
    """Set up the application logger at the configured level."""
    config = get_config()
    if verbose or config.debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, config.log_level.upper(), logging.INFO)
    return setup_logger(level=level, log_file=config.monitor.log_file)


async def main_async(args: argparse.Namespace) -> int:
    """Async main function."""
    logger = get_logger()
    config = get_config()

    if args.list_exchanges:
        list_exchanges()
        return 0

    names = args.exchanges or config.exchange.active_exchanges()
    try:
        names = [ExchangeRegistry.resolve(name).value for name in names]
    except UnknownExchangeError as e:
        logger.error(f"[red]{e}[/]")
        return 2

    if not names:
        logger.error("[red]No exchanges enabled[/]")
        return 1

    if not args.dry_run and not config.telegram.is_configured:
        logger.warning(
            "[yellow]TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID not set, reports will not be sent[/]"
        )

    monitor = FundingMonitor(
        config=config,
        exchanges=names,
        database=LedgerDatabase(config.monitor.ledger_db_path),
        report_handler=print_report if args.dry_run else None,
    )

    logger.info(f"[bold]Monitoring {len(names)} exchanges:[/] {', '.join(names)}")

    await monitor.start()
    try:
        if args.once:
            report = await monitor.run_cycle()
            return 0 if report is not None else 1
        await monitor.run_forever(args.interval)
    finally:
        await monitor.stop()

    return 0


def main() -> int:
    """Main entry point."""
    load_dotenv()
    reload_config()

    parser = create_parser()
    args = parser.parse_args()

    configure_logging(args.verbose)

    try:
        return asyncio.run(main_async(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
