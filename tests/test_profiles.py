from threat_atlas.analysis import (
    country_hits,
    country_profiles,
    find_by_slug,
    find_country,
    find_threat_actor,
    group_by,
    sector_profiles,
    threat_actor_profiles,
    top_n,
)
from threat_atlas.analysis.dashboard import top_sectors
from threat_atlas.storage import CountryReference

from tests.fakes import make_record


def apt1_records():
    return [
        make_record(threat_actor='APT1', date='2023-05-02', attribution_country='',
                    targeted_sectors='Government,Energy & Utilities', targeted_countries='US',
                    source_url='https://example.com/1'),
        make_record(threat_actor='APT1', date='not-a-date', attribution_country='CN',
                    targeted_sectors='Government', targeted_countries='US,TW',
                    source_url='https://example.com/2'),
        make_record(threat_actor='APT1', date='2024-01-20', attribution_country='Russia',
                    targeted_sectors='Government', targeted_countries='TW',
                    source_url='https://example.com/3'),
    ]


def test_threat_actor_profile_aggregates_events():
    profile = threat_actor_profiles(apt1_records())[0]

    assert profile.name == 'APT1'
    assert profile.slug == 'apt1'
    assert profile.event_count == 3
    assert [item.name for item in profile.top_sectors] == ['Government', 'Energy & Utilities']
    assert [item.count for item in profile.top_sectors] == [3, 1]
    assert profile.first_seen == '2023-05-02'
    assert profile.last_seen == '2024-01-20'
    assert profile.all_targeted_countries == ['TW', 'US']
    assert [e['source_url'] for e in profile.events] == [
        'https://example.com/3', 'https://example.com/1', 'https://example.com/2',
    ]


def test_attribution_is_first_non_empty_value():
    assert threat_actor_profiles(apt1_records())[0].attribution_country == 'CN'


def test_actor_profiles_are_sorted_by_name_and_skip_empty_actors():
    records = [
        make_record(threat_actor='Sandworm'),
        make_record(threat_actor='  '),
        make_record(threat_actor='APT29'),
        make_record(threat_actor='Lazarus Group'),
    ]

    assert [p.name for p in threat_actor_profiles(records)] == ['APT29', 'Lazarus Group', 'Sandworm']


def test_seen_range_unknown_without_dates():
    profile = threat_actor_profiles([make_record(threat_actor='X', date='sometime')])[0]
    assert (profile.first_seen, profile.last_seen) == ('Unknown', 'Unknown')


def test_top_n_breaks_ties_by_encounter_order():
    ranked = top_n(['Energy', 'Finance', 'Government', 'Finance', 'Energy', 'Health'])
    assert [(i.name, i.count) for i in ranked] == [
        ('Energy', 2), ('Finance', 2), ('Government', 1), ('Health', 1),
    ]
    assert len(top_n([str(i) for i in range(10)])) == 5


def test_group_by_counts_a_record_once_per_key():
    groups = group_by([make_record(targeted_sectors='Energy,Energy')],
                      lambda r: r['targeted_sectors'].split(','))
    assert len(groups['Energy']) == 1


def test_sector_profiles():
    records = apt1_records() + [
        make_record(threat_actor='', targeted_sectors='Energy & Utilities', date='2022-12-01'),
    ]

    profiles = sector_profiles(records)

    assert [(p.name, p.event_count) for p in profiles] == [
        ('Government', 3), ('Energy & Utilities', 2),
    ]
    energy = profiles[1]
    assert energy.slug == 'energy-utilities'
    assert energy.first_seen == '2022-12-01'
    assert [(i.name, i.count) for i in energy.top_threat_actors] == [('APT1', 1), ('Unknown', 1)]


def test_country_profiles_use_reference_names():
    profiles = country_profiles(apt1_records(), CountryReference())

    assert [(p.alpha2, p.event_count) for p in profiles] == [('US', 2), ('TW', 2)]
    taiwan = find_country(profiles, 'tw')
    assert taiwan.name == 'Taiwan'
    assert taiwan.alpha3 == 'TWN'
    assert taiwan.slug == 'tw'
    assert taiwan.threat_actors == ['APT1']


def test_country_profiles_without_reference():
    profile = country_profiles([make_record(threat_actor='X', targeted_countries='zz')])[0]
    assert profile.name == 'Country (ZZ)'
    assert profile.alpha3 is None


def test_lookups():
    profiles = threat_actor_profiles([
        make_record(threat_actor='Lazarus Group'),
        make_record(threat_actor='APT28'),
    ])

    assert find_threat_actor(profiles, 'lazarus group').name == 'Lazarus Group'
    assert find_threat_actor(profiles, 'lazarus-group').name == 'Lazarus Group'
    assert find_threat_actor(profiles, 'APT99') is None
    assert find_by_slug(profiles, 'apt28').name == 'APT28'
    assert find_by_slug([{'slug': 'a'}], 'a') == {'slug': 'a'}


def test_repeated_tokens_in_one_record_count_once_everywhere():
    records = [
        make_record(threat_actor='APT1', targeted_sectors='Energy,Government,Energy',
                    targeted_countries='US,us,TW'),
        make_record(threat_actor='APT1', targeted_sectors='Government', targeted_countries='TW'),
    ]

    actor = threat_actor_profiles(records)[0]
    assert [(i.name, i.count) for i in actor.top_sectors] == [('Government', 2), ('Energy', 1)]
    assert [(i.name, i.count) for i in actor.top_countries] == [('TW', 2), ('US', 1)]

    sectors = {p.name: p.event_count for p in sector_profiles(records)}
    assert sectors == {'Government': 2, 'Energy': 1}

    assert country_hits(records) == {'US': 1, 'TW': 2}
    assert {p.alpha2: p.event_count for p in country_profiles(records)} == {'TW': 2, 'US': 1}
    assert [(i.name, i.count) for i in top_sectors(records)] == [('Government', 2), ('Energy', 1)]
