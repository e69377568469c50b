from threat_atlas.analysis import (
    build_dashboard,
    filter_records,
    map_heat,
    ranked_countries,
    risk_distribution,
    timeline_by_year,
)
from threat_atlas.storage import CountryReference

from tests.fakes import make_record

RECORDS = [
    make_record(threat_actor='APT28', date='2024-03-01', targeted_countries='DE,FR',
                targeted_sectors='Government', risk_score='85', summary='Phishing ministries'),
    make_record(threat_actor='Unknown', date='2023-07-10', targeted_countries='DE',
                targeted_sectors='Finance', risk_score='55', summary='Banking trojan wave'),
    make_record(threat_actor='Lazarus Group', date='2023-01-15', targeted_countries='KR,US',
                targeted_sectors='Finance,Cryptocurrency', risk_score='20', summary='Crypto exchange heist'),
    make_record(threat_actor='APT28', date='undated', targeted_countries='XX',
                targeted_sectors='Government', risk_score='critical', summary='Router implants'),
]


def test_filter_by_date_range_and_year():
    assert len(filter_records(RECORDS, date_from='2023-06-01')) == 2
    assert len(filter_records(RECORDS, date_to='2023-06-01')) == 1
    assert [r['threat_actor'] for r in filter_records(RECORDS, year='2023')] == ['Unknown', 'Lazarus Group']


def test_filter_by_query_is_case_insensitive():
    assert [r['summary'] for r in filter_records(RECORDS, query='CRYPTO')] == ['Crypto exchange heist']
    assert len(filter_records(RECORDS, query='apt28')) == 2
    assert filter_records(RECORDS, query='') == RECORDS


def test_build_dashboard():
    stats = build_dashboard(RECORDS, CountryReference())

    assert (stats.actors, stats.countries, stats.events) == (3, 5, 4)
    assert [(i.name, i.count) for i in stats.top_threat_actors] == [('APT28', 2), ('Lazarus Group', 1)]
    assert [(i.name, i.count) for i in stats.top_sectors][:2] == [('Government', 2), ('Finance', 2)]
    assert stats.top_countries[0].alpha2 == 'DE'
    assert stats.top_countries[0].name == 'Germany'
    assert stats.top_countries[0].count == 2
    assert stats.timeline == [{'date': '2023', 'count': 2}, {'date': '2024', 'count': 1}]
    assert stats.to_dict()['risk_distribution'] == {'high': 1, 'medium': 1, 'low': 1, 'unknown': 1}


def test_build_dashboard_applies_filters():
    stats = build_dashboard(RECORDS, year='2024')
    assert stats.events == 1
    assert stats.map_heat == {}


def test_map_heat_skips_unknown_codes():
    assert map_heat(RECORDS, CountryReference()) == {'DEU': 2, 'FRA': 1, 'KOR': 1, 'USA': 1}


def test_ranked_countries_without_reference():
    hits = ranked_countries(RECORDS, limit=1)
    assert [(h.alpha2, h.name, h.count, h.alpha3) for h in hits] == [('DE', 'DE', 2, None)]


def test_timeline_and_risk_on_empty_input():
    assert timeline_by_year([]) == []
    assert risk_distribution([]) == {'high': 0, 'medium': 0, 'low': 0, 'unknown': 0}
