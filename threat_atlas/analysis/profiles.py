"""Threat actor, sector and country profiles derived from stored records."""

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
import logging

from ..enrichment import slugify
from ..normalization import parse_country_codes, seen_range, sort_by_date_desc, split_list

logger = logging.getLogger(__name__)

TOP_N = 5

Record = Dict[str, Any]
KeySelector = Callable[[Record], Union[str, Iterable[str], None]]


@dataclass
class RankedItem:
    name: str
    count: int


@dataclass
class ThreatActorProfile:
    name: str
    slug: str
    attribution_country: str
    events: List[Record]
    event_count: int
    first_seen: str
    last_seen: str
    all_targeted_countries: List[str] = field(default_factory=list)
    top_sectors: List[RankedItem] = field(default_factory=list)
    top_countries: List[RankedItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SectorProfile:
    name: str
    slug: str
    events: List[Record]
    event_count: int
    first_seen: str
    last_seen: str
    top_threat_actors: List[RankedItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CountryProfile:
    alpha2: str
    alpha3: Optional[str]
    name: str
    slug: str
    events: List[Record]
    event_count: int
    first_seen: str
    last_seen: str
    threat_actors: List[str] = field(default_factory=list)
    top_threat_actors: List[RankedItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def group_by(records: Iterable[Record], selector: KeySelector) -> Dict[str, List[Record]]:
    """
    Group records by one or more keys each.

    Args:
        records: Records in encounter order
        selector: Returns a key, an iterable of keys, or None for a record

    Returns:
        Mapping of key to records, keys in first-encounter order. A record
        naming several keys is added to each of those groups once.
    """
    groups: Dict[str, List[Record]] = {}
    for record in records:
        keys = selector(record)
        if keys is None:
            continue
        if isinstance(keys, str):
            keys = [keys]

        seen = set()
        for key in keys:
            if not key or key in seen:
                continue
            seen.add(key)
            groups.setdefault(key, []).append(record)
    return groups


def top_n(values: Iterable[str], limit: Optional[int] = TOP_N) -> List[RankedItem]:
    """
    Rank values by how often they occur.

    Ties keep the order in which values were first encountered.
    """
    counts: Dict[str, int] = {}
    for value in values:
        if value:
            counts[value] = counts.get(value, 0) + 1
    return rank_counts(counts, limit)


def rank_counts(counts: Dict[str, int], limit: Optional[int] = None) -> List[RankedItem]:
    """Order a count mapping by count descending; sort is stable on ties."""
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return [RankedItem(name=name, count=count) for name, count in ranked]


def _actor(record: Record) -> str:
    return str(record.get('threat_actor') or '').strip()


def record_sectors(record: Record) -> List[str]:
    """Distinct targeted sectors of a record, in field order."""
    return list(dict.fromkeys(split_list(record.get('targeted_sectors'))))


def record_countries(record: Record) -> List[str]:
    """Distinct targeted alpha-2 codes of a record, in field order."""
    return list(dict.fromkeys(parse_country_codes(record.get('targeted_countries'))))


def threat_actor_profiles(records: List[Record]) -> List[ThreatActorProfile]:
    """
    Build one profile per threat actor.

    Args:
        records: Stored records in file order

    Returns:
        Profiles ordered by actor name (case-sensitive)
    """
    profiles = []

    for name, group in group_by(records, _actor).items():
        attribution = ''
        for record in group:
            if record.get('attribution_country'):
                attribution = record['attribution_country']
                break

        events = sort_by_date_desc(group)
        first_seen, last_seen = seen_range(group)

        sectors = [sector for record in group for sector in record_sectors(record)]
        countries = [code for record in events for code in record_countries(record)]

        profiles.append(ThreatActorProfile(
            name=name,
            slug=slugify(name),
            attribution_country=attribution,
            events=events,
            event_count=len(events),
            first_seen=first_seen,
            last_seen=last_seen,
            all_targeted_countries=sorted(set(countries)),
            top_sectors=top_n(sectors),
            top_countries=top_n(countries),
        ))

    profiles.sort(key=lambda p: p.name)
    return profiles


def sector_profiles(records: List[Record]) -> List[SectorProfile]:
    """
    Build one profile per targeted sector.

    Returns:
        Profiles ordered by event count (descending), then name
    """
    profiles = []

    for name, group in group_by(records, record_sectors).items():
        events = sort_by_date_desc(group)
        first_seen, last_seen = seen_range(group)

        profiles.append(SectorProfile(
            name=name,
            slug=slugify(name),
            events=events,
            event_count=len(events),
            first_seen=first_seen,
            last_seen=last_seen,
            top_threat_actors=top_n(_actor(record) or 'Unknown' for record in events),
        ))

    profiles.sort(key=lambda p: (-p.event_count, p.name))
    return profiles


def country_hits(records: Iterable[Record]) -> Dict[str, int]:
    """
    Count how many records target each country.

    Returns:
        Alpha-2 code to hit count, in first-encounter order
    """
    counts: Dict[str, int] = {}
    for record in records:
        for code in record_countries(record):
            counts[code] = counts.get(code, 0) + 1
    return counts


def country_profiles(records: List[Record], countries=None) -> List[CountryProfile]:
    """
    Build one profile per targeted country.

    Args:
        records: Stored records
        countries: CountryReference used for names and alpha-3 codes

    Returns:
        Profiles ordered by event count (descending)
    """
    profiles = []

    for code, group in group_by(records, record_countries).items():
        events = sort_by_date_desc(group)
        first_seen, last_seen = seen_range(group)

        actors = []
        for record in events:
            actor = _actor(record)
            if actor and actor not in actors:
                actors.append(actor)

        profiles.append(CountryProfile(
            alpha2=code,
            alpha3=countries.alpha3_for(code) if countries else None,
            name=countries.name_for(code) if countries else f"Country ({code})",
            slug=code.lower(),
            events=events,
            event_count=len(events),
            first_seen=first_seen,
            last_seen=last_seen,
            threat_actors=actors,
            top_threat_actors=top_n(_actor(record) for record in events),
        ))

    profiles.sort(key=lambda p: -p.event_count)
    return profiles


def find_by_slug(profiles, slug: str):
    """First profile (or article) whose slug matches."""
    for profile in profiles:
        current = profile.get('slug') if isinstance(profile, dict) else profile.slug
        if current == slug:
            return profile
    return None


def find_threat_actor(profiles: List[ThreatActorProfile], name: str) -> Optional[ThreatActorProfile]:
    """Case-insensitive lookup by actor name, falling back to the slug."""
    wanted = (name or '').strip().lower()
    for profile in profiles:
        if profile.name.lower() == wanted:
            return profile
    return find_by_slug(profiles, slugify(name))


def find_country(profiles: List[CountryProfile], alpha2: str) -> Optional[CountryProfile]:
    wanted = (alpha2 or '').strip().upper()
    for profile in profiles:
        if profile.alpha2 == wanted:
            return profile
    return None


def find_article(articles: List[Record], slug: str) -> Optional[Record]:
    """Enriched article by its date-prefixed slug."""
    return find_by_slug(articles, slug)
