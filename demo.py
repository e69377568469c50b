#!/usr/bin/env python3
"""
Demo script to showcase the threat atlas pipeline functionality.
This script uses a canned extraction backend so it runs without an API key.
"""

import sys
import json
import tempfile
from pathlib import Path

# Add the package to path
sys.path.insert(0, str(Path(__file__).parent))

from threat_atlas.errors import InvocationError
from threat_atlas.extraction import ExtractionOracle
from threat_atlas.ingestion import IngestionPipeline, SourceDescriptor
from threat_atlas.service import ThreatAtlas
from threat_atlas.storage import ArticleStore, CountryReference

# Canned model answers keyed by a marker in the article text
MOCK_EXTRACTIONS = {
    'case-001': {
        'title': 'Sandworm targets Ukrainian power grid',
        'date': '2024-03-01',
        'threat_actor': 'Sandworm',
        'attribution_country': 'RU',
        'targeted_countries': ['UA'],
        'targeted_sectors': ['Energy & Utilities', 'Government'],
        'risk_score': 80,
        'summary': 'Destructive malware deployed against grid operators.',
    },
    'case-002': {
        'title': 'APT28 phishing against European diplomats',
        'date': '2023-11-15',
        'threat_actor': 'APT28',
        'attribution_country': 'RU',
        'targeted_countries': 'DE,FR,PL',
        'targeted_sectors': 'Diplomacy,Government',
        'risk_score': 70,
        'summary': 'Spearphishing lures themed around embassy events.',
    },
    'case-003': {
        'title': 'Lazarus steals from regional banks',
        'date': '2024-01-20',
        'threat_actor': 'Lazarus',
        'attribution_country': 'KP',
        'targeted_countries': ['KR', 'JP', 'US'],
        'targeted_sectors': ['Financial Services'],
        'risk_score': 90,
        'summary': 'Custom implants used to move funds out of SWIFT terminals.',
    },
    'case-004': {
        'title': 'Generic phishing wave',
        'date': '2024-02-02',
        'threat_actor': '',
        'targeted_countries': [],
        'targeted_sectors': [],
        'risk_score': 20,
    },
}


class DemoBackend:
    """Stands in for Gemini: the first model is 'down', the second answers."""

    def list_models(self):
        return ['demo-flash', 'demo-pro']

    def invoke(self, model_id, prompt):
        if model_id == 'demo-flash':
            raise InvocationError(f"{model_id}: 503 Service Unavailable")
        for marker, payload in MOCK_EXTRACTIONS.items():
            if marker in prompt:
                return json.dumps(payload)
        return json.dumps({'threat_actor': ''})


def main():
    print("=" * 70)
    print("THREAT ATLAS PIPELINE DEMO")
    print("=" * 70)
    print()

    workdir = Path(tempfile.mkdtemp(prefix='threat-atlas-demo-'))
    store = ArticleStore(str(workdir / 'articles.csv'))
    oracle = ExtractionOracle(DemoBackend(), preferred_models=['demo-flash', 'demo-pro'])
    pipeline = IngestionPipeline(store, oracle)
    atlas = ThreatAtlas(store, pipeline=pipeline, countries=CountryReference())

    print(f"📁 Articles file: {store.path}")
    print()

    # Step 1: Batch ingestion
    print("🔧 Step 1: INGESTING articles...")
    print("-" * 70)
    descriptors = [
        SourceDescriptor.from_text('case-001: grid operator intrusion', url='https://example.com/energy-grid'),
        SourceDescriptor.from_text('case-002: embassy-themed lures', url='https://example.com/diplomats'),
        SourceDescriptor.from_text('case-003: SWIFT terminal thefts', url='https://example.com/banks'),
        SourceDescriptor.from_text('case-004: unattributed phishing'),
        SourceDescriptor.from_url('https://example.com/whitepaper.pdf'),
    ]

    def on_update(index, entry):
        if entry.status.is_terminal:
            print(f"  [{index + 1}/{len(descriptors)}] {entry.status.value:<10} {entry.source}")

    ledger = atlas.ingest_batch(descriptors, on_update=on_update)
    print(f"\n✓ Summary: {ledger.counts}")
    print()

    # Step 2: Threat actor profiles
    print("🕵 Step 2: THREAT ACTOR PROFILES")
    print("-" * 70)
    for profile in atlas.get_threat_actor_profiles():
        sectors = ', '.join(f"{s.name} ({s.count})" for s in profile.top_sectors)
        print(f"  • {profile.name} [{profile.attribution_country}] "
              f"{profile.first_seen} → {profile.last_seen}: {sectors}")
    print()

    # Step 3: Sector profiles
    print("🏭 Step 3: SECTOR PROFILES")
    print("-" * 70)
    for profile in atlas.get_sector_profiles():
        actors = ', '.join(f"{a.name} ({a.count})" for a in profile.top_threat_actors)
        print(f"  • {profile.name}: {profile.event_count} event(s) - {actors}")
    print()

    # Step 4: Country statistics
    print("🌍 Step 4: COUNTRY STATISTICS")
    print("-" * 70)
    stats = atlas.get_country_stats()
    for hit in stats.hits:
        print(f"  • {hit.name} ({hit.alpha2}/{hit.alpha3}): {hit.count}")
    print()

    # Step 5: Dashboard
    print("📊 Step 5: DASHBOARD")
    print("-" * 70)
    dashboard = atlas.get_dashboard()
    print(f"Events: {dashboard.events}, actors: {dashboard.actors}, countries: {dashboard.countries}")
    print(f"Risk distribution: {dashboard.risk_distribution}")
    print(f"Timeline: {dashboard.timeline}")
    print()

    print("=" * 70)
    print("✅ DEMO COMPLETE!")
    print("=" * 70)


if __name__ == '__main__':
    main()
