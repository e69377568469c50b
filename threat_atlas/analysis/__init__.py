"""Analysis package initialization."""

from .dashboard import (
    CountryHit,
    DashboardStats,
    build_dashboard,
    filter_records,
    map_heat,
    ranked_countries,
    risk_distribution,
    timeline_by_year,
)
from .profiles import (
    CountryProfile,
    RankedItem,
    SectorProfile,
    ThreatActorProfile,
    country_hits,
    country_profiles,
    find_article,
    find_by_slug,
    find_country,
    find_threat_actor,
    group_by,
    rank_counts,
    record_countries,
    record_sectors,
    sector_profiles,
    threat_actor_profiles,
    top_n,
)

__all__ = [
    'CountryHit', 'DashboardStats', 'build_dashboard', 'filter_records',
    'map_heat', 'ranked_countries', 'risk_distribution', 'timeline_by_year',
    'CountryProfile', 'RankedItem', 'SectorProfile', 'ThreatActorProfile',
    'country_hits', 'country_profiles', 'find_article', 'find_by_slug', 'find_country',
    'find_threat_actor', 'group_by', 'rank_counts', 'record_countries',
    'record_sectors', 'sector_profiles',
    'threat_actor_profiles', 'top_n',
]
