"""Headline statistics for the dashboard views."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from ..enrichment import RISK_LEVELS, risk_level
from ..normalization import parse_country_codes, parse_date
from .profiles import RankedItem, country_hits, rank_counts, record_sectors, top_n

# Actor labels left out of the top actor ranking
NON_ACTOR_LABELS = ('Multiple', 'Unknown')


@dataclass
class CountryHit:
    alpha2: str
    name: str
    count: int
    alpha3: Optional[str] = None


@dataclass
class DashboardStats:
    actors: int
    countries: int
    events: int
    top_threat_actors: List[RankedItem] = field(default_factory=list)
    top_sectors: List[RankedItem] = field(default_factory=list)
    top_countries: List[CountryHit] = field(default_factory=list)
    timeline: List[Dict[str, Any]] = field(default_factory=list)
    risk_distribution: Dict[str, int] = field(default_factory=dict)
    map_heat: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def filter_records(records: List[Dict[str, Any]],
                   date_from: Optional[str] = None,
                   date_to: Optional[str] = None,
                   year: Optional[str] = None,
                   query: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Filter records the way the dashboard filter bar does.

    Args:
        records: Records to filter
        date_from: Inclusive lower date bound (YYYY-MM-DD)
        date_to: Inclusive upper date bound (YYYY-MM-DD)
        year: Keep records whose date starts with this year
        query: Case-insensitive search over summary, actor, countries and sectors

    Returns:
        Matching records, original order
    """
    lower = parse_date(date_from) if date_from else None
    upper = parse_date(date_to) if date_to else None
    needle = (query or '').strip().lower()

    matched = []
    for record in records:
        record_date = parse_date(record.get('date'))

        if lower and (record_date is None or record_date < lower):
            continue
        if upper and (record_date is None or record_date > upper):
            continue
        if year and not str(record.get('date') or '').startswith(str(year)):
            continue

        if needle:
            haystack = ' '.join(
                str(record.get(f) or '')
                for f in ('summary', 'threat_actor', 'targeted_countries', 'targeted_sectors')
            ).lower()
            if needle not in haystack:
                continue

        matched.append(record)
    return matched


def summary_counts(records: List[Dict[str, Any]]) -> Dict[str, int]:
    actors = {str(r.get('threat_actor') or '').strip() for r in records}
    actors.discard('')
    countries = {code for r in records for code in parse_country_codes(r.get('targeted_countries'))}
    return {'actors': len(actors), 'countries': len(countries), 'events': len(records)}


def top_threat_actors(records: List[Dict[str, Any]], limit: int = 5) -> List[RankedItem]:
    actors = (str(r.get('threat_actor') or '').strip() for r in records)
    return top_n((a for a in actors if a not in NON_ACTOR_LABELS), limit)


def top_sectors(records: List[Dict[str, Any]], limit: int = 5) -> List[RankedItem]:
    return top_n((s for r in records for s in record_sectors(r)), limit)


def ranked_countries(records: List[Dict[str, Any]], countries=None,
                     limit: Optional[int] = None) -> List[CountryHit]:
    """Targeted countries by hit count, with names from the reference table."""
    hits = []
    for item in rank_counts(country_hits(records), limit):
        hits.append(CountryHit(
            alpha2=item.name,
            name=countries.name_for(item.name) if countries else item.name,
            count=item.count,
            alpha3=countries.alpha3_for(item.name) if countries else None,
        ))
    return hits


def timeline_by_year(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Events per year for records with a parseable date, oldest year first."""
    counts: Dict[str, int] = {}
    for record in records:
        parsed = parse_date(record.get('date'))
        if parsed is not None:
            key = f"{parsed.year:04d}"
            counts[key] = counts.get(key, 0) + 1
    return [{'date': year, 'count': counts[year]} for year in sorted(counts)]


def risk_distribution(records: List[Dict[str, Any]]) -> Dict[str, int]:
    distribution = {level: 0 for level in RISK_LEVELS}
    for record in records:
        distribution[risk_level(record.get('risk_score'))] += 1
    return distribution


def map_heat(records: List[Dict[str, Any]], countries) -> Dict[str, int]:
    """
    Alpha-3 keyed hit counts for the world map.

    Codes missing from the reference table are left out.
    """
    heat: Dict[str, int] = {}
    for code, count in country_hits(records).items():
        alpha3 = countries.alpha3_for(code)
        if alpha3:
            heat[alpha3] = heat.get(alpha3, 0) + count
    return heat


def build_dashboard(records: List[Dict[str, Any]], countries=None, **filters) -> DashboardStats:
    """Compute every dashboard statistic over the filtered record set."""
    selected = filter_records(records, **filters)
    counts = summary_counts(selected)

    return DashboardStats(
        actors=counts['actors'],
        countries=counts['countries'],
        events=counts['events'],
        top_threat_actors=top_threat_actors(selected),
        top_sectors=top_sectors(selected),
        top_countries=ranked_countries(selected, countries, limit=5),
        timeline=timeline_by_year(selected),
        risk_distribution=risk_distribution(selected),
        map_heat=map_heat(selected, countries) if countries else {},
    )
