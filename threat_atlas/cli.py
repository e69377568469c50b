"""Command-line interface for the threat atlas pipeline."""

import click
import json
import csv
from pathlib import Path
import logging
from tabulate import tabulate
from colorama import init, Fore, Style

# Initialize colorama for cross-platform colored output
init(autoreset=True)

from threat_atlas.analysis import filter_records
from threat_atlas.config import get_config
from threat_atlas.ingestion import IngestStatus, SourceDescriptor
from threat_atlas.normalization import RECORD_FIELDS, sort_by_date_desc
from threat_atlas.service import ThreatAtlas

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    IngestStatus.PENDING: Fore.WHITE,
    IngestStatus.PROCESSING: Fore.CYAN,
    IngestStatus.SUCCESS: Fore.GREEN,
    IngestStatus.DUPLICATE: Fore.YELLOW,
    IngestStatus.REJECTED: Fore.MAGENTA,
    IngestStatus.ERROR: Fore.RED,
}


def _status_text(status: IngestStatus) -> str:
    return f"{STATUS_COLORS.get(status, '')}{status.value.upper()}{Style.RESET_ALL}"


def _echo_result(result):
    click.echo(f"{_status_text(result.status)}  {result.source}")

    if result.error_detail:
        click.echo(f"  {result.error_detail}")

    if result.record:
        record = result.record
        click.echo(f"  Title:        {record.get('title', '')}")
        click.echo(f"  Threat actor: {record.get('threat_actor', '')}")
        click.echo(f"  Countries:    {record.get('targeted_countries', '')}")
        click.echo(f"  Sectors:      {record.get('targeted_sectors', '')}")
        click.echo(f"  Risk score:   {record.get('risk_score', '')}")

    if result.used_model:
        click.echo(f"  Model:        {result.used_model}")


def _ranked(items):
    return ', '.join(f"{item.name} ({item.count})" for item in items)


@click.group()
@click.option('--config', type=click.Path(exists=True), help='Path to custom config file')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config, verbose):
    """
    Threat Atlas CLI

    Ingest threat intelligence articles, extract structured fields with an LLM,
    and explore threat actor, sector and country profiles.
    """
    ctx.ensure_object(dict)
    cfg = get_config(config)

    level = 'DEBUG' if verbose else str(cfg.get('logging.level', 'INFO')).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    ctx.obj['config'] = cfg
    if 'atlas' not in ctx.obj:
        ctx.obj['atlas'] = ThreatAtlas.from_config(cfg)


@cli.command()
@click.argument('url')
@click.pass_context
def ingest(ctx, url):
    """
    Fetch an article URL, extract its fields and store the record.
    """
    atlas = ctx.obj['atlas']
    click.echo(f"{Fore.CYAN}=== Ingest Article ==={Style.RESET_ALL}\n")

    result = atlas.ingest_url(url)
    _echo_result(result)

    if result.status == IngestStatus.ERROR:
        ctx.exit(1)


@cli.command(name='ingest-text')
@click.option('--file', 'text_file', type=click.File('r', encoding='utf-8'), help='Read article text from a file')
@click.option('--text', help='Article text')
@click.option('--url', help='Optional source URL of the text')
@click.pass_context
def ingest_text(ctx, text_file, text, url):
    """
    Extract and store a record from pasted article text.
    """
    atlas = ctx.obj['atlas']
    content = text_file.read() if text_file else text

    if not content:
        click.echo(f"{Fore.RED}Error: provide --file or --text{Style.RESET_ALL}")
        ctx.exit(2)

    result = atlas.ingest_text(content, url=url)
    _echo_result(result)

    if result.status == IngestStatus.ERROR:
        ctx.exit(1)


@cli.command()
@click.argument('url_file', type=click.File('r', encoding='utf-8'))
@click.option('--format', 'output_format', type=click.Choice(['table', 'json']), default='table',
              help='Summary format (default: table)')
@click.pass_context
def batch(ctx, url_file, output_format):
    """
    Ingest every URL listed in a file, one per line.

    URLs are processed one at a time; a failing URL does not stop the batch.
    """
    atlas = ctx.obj['atlas']
    urls = [line.strip() for line in url_file if line.strip() and not line.startswith('#')]

    if not urls:
        click.echo(f"{Fore.YELLOW}No URLs to process{Style.RESET_ALL}")
        return

    click.echo(f"{Fore.CYAN}=== Batch Ingest ({len(urls)} URLs) ==={Style.RESET_ALL}\n")

    def on_update(index, entry):
        if entry.status == IngestStatus.PROCESSING:
            click.echo(f"[{index + 1}/{len(urls)}] {_status_text(entry.status)}  {entry.source}")
        elif entry.status.is_terminal:
            detail = f" - {entry.error_detail}" if entry.error_detail else ''
            click.echo(f"[{index + 1}/{len(urls)}] {_status_text(entry.status)}{detail}")

    ledger = atlas.ingest_batch([SourceDescriptor.from_url(u) for u in urls], on_update=on_update)
    counts = ledger.counts

    click.echo()
    if output_format == 'json':
        click.echo(json.dumps(ledger.to_dict(), indent=2, default=str))
    else:
        table_data = [
            [entry.source[:60], entry.status.value, (entry.error_detail or '')[:50]]
            for entry in ledger
        ]
        click.echo(tabulate(table_data, headers=['Source', 'Status', 'Detail'], tablefmt='grid'))

    click.echo(
        f"\n{Fore.GREEN}Success: {counts['success']}{Style.RESET_ALL}  "
        f"{Fore.YELLOW}Duplicate: {counts['duplicate']}{Style.RESET_ALL}  "
        f"{Fore.RED}Error: {counts['error']}{Style.RESET_ALL} "
        f"(rejected: {counts['rejected']})"
    )


@cli.command()
@click.option('--search', 'query', help='Search summary, actor, countries and sectors')
@click.option('--limit', default=50, help='Maximum results to return (default: 50)')
@click.option('--format', 'output_format', type=click.Choice(['table', 'json', 'csv']), default='table',
              help='Output format (default: table)')
@click.pass_context
def records(ctx, query, limit, output_format):
    """
    List stored article records, most recent first.
    """
    atlas = ctx.obj['atlas']
    results = sort_by_date_desc(filter_records(atlas.list_articles(), query=query))[:limit]

    if not results:
        click.echo(f"{Fore.YELLOW}No records found{Style.RESET_ALL}")
        return

    if output_format == 'json':
        click.echo(json.dumps(results, indent=2, default=str))

    elif output_format == 'csv':
        writer = csv.DictWriter(click.get_text_stream('stdout'), fieldnames=list(RECORD_FIELDS),
                                extrasaction='ignore')
        writer.writeheader()
        for result in results:
            writer.writerow(result)

    else:  # table format
        click.echo(f"{Fore.GREEN}Found {len(results)} record(s){Style.RESET_ALL}\n")
        table_data = []
        for result in results:
            table_data.append([
                result.get('date') or 'N/A',
                (result.get('threat_actor') or 'N/A')[:25],
                (result.get('title') or 'Untitled')[:50],
                (result.get('targeted_countries') or '')[:20],
                result.get('risk_score', ''),
                result.get('risk_level', ''),
            ])

        headers = ['Date', 'Threat Actor', 'Title', 'Countries', 'Risk', 'Level']
        click.echo(tabulate(table_data, headers=headers, tablefmt='grid'))


@cli.command()
@click.argument('name', required=False)
@click.option('--format', 'output_format', type=click.Choice(['table', 'json']), default='table')
@click.pass_context
def actors(ctx, name, output_format):
    """
    Show threat actor profiles, or one profile by NAME or slug.
    """
    atlas = ctx.obj['atlas']

    if name:
        profile = atlas.get_threat_actor(name)
        if profile is None:
            click.echo(f"{Fore.RED}Threat actor '{name}' not found{Style.RESET_ALL}")
            ctx.exit(1)

        if output_format == 'json':
            click.echo(json.dumps(profile.to_dict(), indent=2, default=str))
            return

        click.echo(f"{Fore.CYAN}=== {profile.name} ==={Style.RESET_ALL}\n")
        click.echo(f"Attribution:  {profile.attribution_country or 'Unknown'}")
        click.echo(f"Events:       {profile.event_count}")
        click.echo(f"First seen:   {profile.first_seen}")
        click.echo(f"Last seen:    {profile.last_seen}")
        click.echo(f"Top sectors:  {_ranked(profile.top_sectors)}")
        click.echo(f"Top targets:  {_ranked(profile.top_countries)}\n")

        table_data = [
            [e.get('date') or 'N/A', (e.get('title') or 'Untitled')[:60], e.get('targeted_countries', '')]
            for e in profile.events
        ]
        click.echo(tabulate(table_data, headers=['Date', 'Title', 'Countries'], tablefmt='grid'))
        return

    profiles = atlas.get_threat_actor_profiles()
    if not profiles:
        click.echo(f"{Fore.YELLOW}No threat actors found{Style.RESET_ALL}")
        return

    if output_format == 'json':
        click.echo(json.dumps([p.to_dict() for p in profiles], indent=2, default=str))
        return

    table_data = [
        [p.name, p.attribution_country or '-', p.event_count, p.first_seen, p.last_seen,
         _ranked(p.top_sectors)[:50]]
        for p in profiles
    ]
    headers = ['Threat Actor', 'Attribution', 'Events', 'First Seen', 'Last Seen', 'Top Sectors']
    click.echo(tabulate(table_data, headers=headers, tablefmt='grid'))


@cli.command()
@click.argument('slug', required=False)
@click.option('--format', 'output_format', type=click.Choice(['table', 'json']), default='table')
@click.pass_context
def sectors(ctx, slug, output_format):
    """
    Show sector profiles, or one profile by SLUG.
    """
    atlas = ctx.obj['atlas']

    if slug:
        profile = atlas.get_sector(slug)
        if profile is None:
            click.echo(f"{Fore.RED}Sector '{slug}' not found{Style.RESET_ALL}")
            ctx.exit(1)

        if output_format == 'json':
            click.echo(json.dumps(profile.to_dict(), indent=2, default=str))
            return

        click.echo(f"{Fore.CYAN}=== {profile.name} ==={Style.RESET_ALL}\n")
        click.echo(f"Events:       {profile.event_count}")
        click.echo(f"Last seen:    {profile.last_seen}")
        click.echo(f"Top actors:   {_ranked(profile.top_threat_actors)}\n")

        table_data = [
            [e.get('date') or 'N/A', e.get('threat_actor', ''), (e.get('title') or 'Untitled')[:60]]
            for e in profile.events
        ]
        click.echo(tabulate(table_data, headers=['Date', 'Threat Actor', 'Title'], tablefmt='grid'))
        return

    profiles = atlas.get_sector_profiles()
    if not profiles:
        click.echo(f"{Fore.YELLOW}No sectors found{Style.RESET_ALL}")
        return

    if output_format == 'json':
        click.echo(json.dumps([p.to_dict() for p in profiles], indent=2, default=str))
        return

    table_data = [
        [p.name, p.slug, p.event_count, p.last_seen, _ranked(p.top_threat_actors)[:50]]
        for p in profiles
    ]
    click.echo(tabulate(table_data, headers=['Sector', 'Slug', 'Events', 'Last Seen', 'Top Actors'],
                        tablefmt='grid'))


@cli.command()
@click.argument('code', required=False)
@click.option('--format', 'output_format', type=click.Choice(['table', 'json']), default='table')
@click.pass_context
def countries(ctx, code, output_format):
    """
    Show targeted countries by hits, or one country profile by alpha-2 CODE.
    """
    atlas = ctx.obj['atlas']

    if code:
        profile = atlas.get_country(code)
        if profile is None:
            click.echo(f"{Fore.YELLOW}No events target {code.upper()}{Style.RESET_ALL}")
            return

        if output_format == 'json':
            click.echo(json.dumps(profile.to_dict(), indent=2, default=str))
            return

        click.echo(f"{Fore.CYAN}=== {profile.name} ({profile.alpha2}) ==={Style.RESET_ALL}\n")
        click.echo(f"Events:       {profile.event_count}")
        click.echo(f"Actors:       {', '.join(profile.threat_actors)}\n")

        table_data = [
            [e.get('date') or 'N/A', e.get('threat_actor', ''), (e.get('title') or 'Untitled')[:60]]
            for e in profile.events
        ]
        click.echo(tabulate(table_data, headers=['Date', 'Threat Actor', 'Title'], tablefmt='grid'))
        return

    stats = atlas.get_country_stats()
    if not stats.hits:
        click.echo(f"{Fore.YELLOW}No targeted countries found{Style.RESET_ALL}")
        return

    if output_format == 'json':
        click.echo(json.dumps({'hits': [vars(h) for h in stats.hits], 'map_heat': stats.map_heat},
                              indent=2, default=str))
        return

    table_data = [[hit.alpha2, hit.alpha3 or '-', hit.name, hit.count] for hit in stats.hits]
    click.echo(tabulate(table_data, headers=['Alpha-2', 'Alpha-3', 'Country', 'Hits'], tablefmt='grid'))


@cli.command()
@click.option('--year', help='Only events from this year')
@click.option('--from', 'date_from', help='Only events on or after this date (YYYY-MM-DD)')
@click.option('--to', 'date_to', help='Only events on or before this date (YYYY-MM-DD)')
@click.option('--search', 'query', help='Search summary, actor, countries and sectors')
@click.pass_context
def dashboard(ctx, year, date_from, date_to, query):
    """
    Display headline statistics over the stored events.
    """
    atlas = ctx.obj['atlas']
    stats = atlas.get_dashboard(date_from=date_from, date_to=date_to, year=year, query=query)

    click.echo(f"{Fore.CYAN}=== Global Threat Overview ==={Style.RESET_ALL}\n")
    click.echo(f"Events: {stats.events}   Threat actors: {stats.actors}   Countries: {stats.countries}\n")

    if stats.top_threat_actors:
        click.echo(f"{Fore.CYAN}Top Threat Actors:{Style.RESET_ALL}")
        click.echo(tabulate([[i.name, i.count] for i in stats.top_threat_actors],
                            headers=['Threat Actor', 'Events'], tablefmt='grid'))
        click.echo()

    if stats.top_countries:
        click.echo(f"{Fore.CYAN}Top Targeted Countries:{Style.RESET_ALL}")
        click.echo(tabulate([[h.name, h.count] for h in stats.top_countries],
                            headers=['Country', 'Hits'], tablefmt='grid'))
        click.echo()

    if stats.top_sectors:
        click.echo(f"{Fore.CYAN}Top Targeted Sectors:{Style.RESET_ALL}")
        click.echo(tabulate([[i.name, i.count] for i in stats.top_sectors],
                            headers=['Sector', 'Events'], tablefmt='grid'))
        click.echo()

    if stats.timeline:
        click.echo(f"{Fore.CYAN}Event Timeline (Yearly):{Style.RESET_ALL}")
        click.echo(tabulate([[p['date'], p['count']] for p in stats.timeline],
                            headers=['Year', 'Events'], tablefmt='grid'))
        click.echo()

    click.echo(f"{Fore.CYAN}Risk Distribution:{Style.RESET_ALL}")
    click.echo(tabulate([[level, count] for level, count in stats.risk_distribution.items()],
                        headers=['Level', 'Events'], tablefmt='grid'))


@cli.command()
@click.option('--output', required=True, help='Output file path')
@click.option('--format', 'output_format', type=click.Choice(['json', 'csv']),
              required=True, help='Export format')
@click.pass_context
def export(ctx, output, output_format):
    """
    Export stored records to a file.
    """
    atlas = ctx.obj['atlas']
    results = atlas.list_records()

    if not results:
        click.echo(f"{Fore.YELLOW}No records to export{Style.RESET_ALL}")
        return

    click.echo(f"{Fore.YELLOW}Exporting {len(results)} record(s)...{Style.RESET_ALL}")

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if output_format == 'json':
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(results, f, indent=2, default=str)

    elif output_format == 'csv':
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=list(RECORD_FIELDS), extrasaction='ignore')
            writer.writeheader()
            for result in results:
                writer.writerow(result)

    click.echo(f"{Fore.GREEN}Exported to {output_path}{Style.RESET_ALL}")


@cli.command()
@click.pass_context
def stats(ctx):
    """
    Display store statistics.
    """
    atlas = ctx.obj['atlas']
    articles_path = atlas.store.path

    if not Path(articles_path).exists():
        click.echo(f"{Fore.YELLOW}No articles stored yet. Run 'threat-atlas ingest' first.{Style.RESET_ALL}")
        return

    records = atlas.list_records()
    click.echo(f"{Fore.CYAN}=== Store Statistics ==={Style.RESET_ALL}\n")
    click.echo(f"Articles file: {articles_path}")
    click.echo(f"Total records: {len(records)}")
    click.echo(f"Threat actors: {len(atlas.get_threat_actor_profiles())}")
    click.echo(f"Sectors:       {len(atlas.get_sector_profiles())}")
    click.echo(f"Countries:     {len(atlas.get_country_stats().hits)}")


def main():
    """Main entry point for the CLI."""
    cli(obj={})


if __name__ == '__main__':
    main()
