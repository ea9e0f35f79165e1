#!/usr/bin/env python3
"""CLI for the statute scraper."""

import asyncio
import csv
import json
import sys
from pathlib import Path

import click

from statute_scraper.config.settings import Config
from statute_scraper.scraper.coordinator import ScrapeCoordinator
from statute_scraper.scraper.fetcher import PageFetcher
from statute_scraper.scraper.models import ScrapeOptions
from statute_scraper.scraper.robots_audit import RobotsAuditor
from statute_scraper.storage.database import get_session_factory, init_db
from statute_scraper.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

STATUS_ICONS = {'completed': '✅', 'failed': '❌', 'in_progress': '🟢'}


def _load_config(ctx) -> Config:
    config = Config(ctx.obj['config_path'])
    setup_logging(config)
    return config


def _coordinator(ctx) -> ScrapeCoordinator:
    config = _load_config(ctx)
    init_db(config.database_path)
    return ScrapeCoordinator(config, get_session_factory())


def _echo_session(sess: dict):
    icon = STATUS_ICONS.get(sess['status'], '⚪')
    started = (sess['started_at'] or 'N/A')[:16].replace('T', ' ')
    click.echo(f"{icon} {sess['id'][:8]} | {sess['jurisdiction']:3} | {sess['status']:11} | {started}")
    click.echo(f"    📜 Statutes: {sess['statutes_scraped']:,} | ⚠️  Errors: {sess['error_count']:,}")
    if sess.get('error_message'):
        click.echo(f"    ❌ {sess['error_message']}")


@click.group()
@click.option('--config', default='config/sites.yaml', help='Path to the configuration file')
@click.pass_context
def cli(ctx, config):
    """Collect criminal statutes from official state sources."""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config


@cli.command()
@click.argument('jurisdiction')
@click.option('--fallback', is_flag=True, help='Use the generic fallback source instead of the official site')
@click.option('--section', 'sections', multiple=True, help='Only scrape this section (repeatable)')
@click.pass_context
def scrape(ctx, jurisdiction: str, fallback: bool, sections):
    """Scrape the curated statutes of one jurisdiction."""
    coordinator = _coordinator(ctx)
    options = ScrapeOptions(use_fallback=fallback, sections=list(sections) or None)

    click.echo(f"\n🚀 Starting scrape for {jurisdiction.upper()}")
    click.echo(f"   Source: {'fallback' if fallback else 'official site'}")
    if sections:
        click.echo(f"   Sections: {', '.join(sections)}")
    click.echo("=" * 80)

    try:
        result = asyncio.run(coordinator.run_scrape(jurisdiction, options))
    except KeyboardInterrupt:
        click.echo("\n\n⚠️  Interrupted by user")
        sys.exit(130)

    click.echo("\n" + "=" * 80)
    if result.success:
        click.echo(f"✅ {result.message}")
    else:
        click.echo(f"❌ {result.message}")
    if result.session_id:
        click.echo(f"   Session ID: {result.session_id}")
    if not result.success:
        sys.exit(1)


@cli.command()
@click.argument('jurisdiction')
@click.pass_context
def status(ctx, jurisdiction: str):
    """Show the latest scrape of a jurisdiction."""
    coordinator = _coordinator(ctx)
    info = coordinator.latest_status(jurisdiction)

    click.echo(f"\n📋 {info['jurisdiction']}: {'🟢 running' if info['is_active'] else 'idle'}")
    if info['latest_scrape']:
        _echo_session(info['latest_scrape'])
    else:
        click.echo("📭 No scrapes recorded")


@cli.command()
@click.option('--jurisdiction', default=None, help='Only sessions of this jurisdiction')
@click.option('--limit', type=int, default=0, help='Number of sessions (0 = configured default)')
@click.pass_context
def history(ctx, jurisdiction, limit: int):
    """List recent scrape sessions."""
    coordinator = _coordinator(ctx)
    sessions = coordinator.history(jurisdiction, limit or None)

    if not sessions:
        click.echo("📭 No sessions recorded")
        return

    click.echo("\n📅 RECENT SESSIONS")
    click.echo("=" * 80)
    for sess in sessions:
        _echo_session(sess)


@cli.command()
@click.option('--jurisdiction', default=None)
@click.option('--limit', type=int, default=0)
@click.pass_context
def sessions(ctx, jurisdiction, limit: int):
    """Alias for 'history'."""
    ctx.forward(history)


@cli.command()
@click.pass_context
def stats(ctx):
    """Show aggregate scrape statistics."""
    coordinator = _coordinator(ctx)
    data = coordinator.stats()

    click.echo("\n📊 SCRAPE STATISTICS")
    click.echo("=" * 80)
    click.echo(f"   Total scrapes: {data['total_scrapes']:,}")
    click.echo(f"   Successful: {data['successful_scrapes']:,}")
    click.echo(f"   Failed: {data['failed_scrapes']:,}")
    click.echo(f"   In progress: {data['in_progress_scrapes']:,}")
    click.echo(f"   Statutes scraped: {data['total_statutes_scraped']:,}")
    click.echo(f"   Errors: {data['total_errors']:,}")
    click.echo(f"   Jurisdictions: {', '.join(data['jurisdictions_covered']) or 'none'}")
    click.echo(f"   Stored statutes: {coordinator.store.count():,}")

    if data['last_scrape']:
        click.echo("\n📅 Last scrape:")
        _echo_session(data['last_scrape'])


@cli.command()
@click.option('--output', default='statutes.json', help='Output file (.json or .csv)')
@click.option('--jurisdiction', default=None, help='Only statutes of this jurisdiction')
@click.pass_context
def export(ctx, output: str, jurisdiction):
    """Export stored statutes."""
    coordinator = _coordinator(ctx)
    statutes = coordinator.store.list(jurisdiction.upper() if jurisdiction else None)

    if not statutes:
        click.echo("⚠️  No statutes to export")
        return

    output_path = Path(output)
    ext = output_path.suffix.lower()
    if ext == '.json':
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(statutes, f, indent=2, ensure_ascii=False)
    elif ext == '.csv':
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=list(statutes[0]))
            writer.writeheader()
            writer.writerows(statutes)
    else:
        click.echo(f"❌ Unsupported format: {ext}")
        click.echo("   Use .json or .csv")
        sys.exit(1)

    click.echo(f"✅ Exported {len(statutes)} statutes to {output_path}")


@cli.command('robots-audit')
@click.option('--json', 'as_json', is_flag=True, help='Print the report as JSON')
@click.pass_context
def robots_audit(ctx, as_json: bool):
    """Check robots.txt of every candidate statute source."""
    config = _load_config(ctx)

    async def run():
        fetcher = PageFetcher(user_agent=config.user_agent, timeout=config.audit_timeout)
        try:
            auditor = RobotsAuditor(fetcher, user_agent=config.user_agent, delay_seconds=config.audit_delay_seconds)
            return await auditor.run()
        finally:
            await fetcher.close()

    report = asyncio.run(run())
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        click.echo(report.format_summary())


if __name__ == '__main__':
    cli()
