"""
Threat Atlas

Ingests open-source threat intelligence articles, extracts structured fields
with a generative model, stores them in a flat CSV ledger and derives threat
actor, sector and country profiles from it.
"""

__version__ = "1.0.0"
