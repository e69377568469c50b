"""Instruction template sent to the extraction model."""

SECTORS = (
    ('Government', 'Ministries, regulators, municipalities, public administration'),
    ('Defense & Military', 'Armed forces, MOD, defense procurement, military research'),
    ('Diplomacy', 'Embassies, diplomats, consulates, foreign affairs bodies'),
    ('Intergovernmental Organizations', 'UN agencies, NATO/EU bodies, multilateral institutions'),
    ('Non-governmental Organizations', 'NGOs, think tanks, humanitarian organizations'),
    ('Energy & Utilities', 'Oil & gas, electricity, nuclear, power grid, water'),
    ('Financial Services', 'Banks, insurance, investment firms, fintech, payment processors'),
    ('Technology', 'Software companies, hardware vendors, cloud providers, IT services, cybersecurity firms'),
    ('Telecommunications', 'ISPs, mobile operators, backbone providers, satellite comms'),
    ('Manufacturing & Industrial', 'Automotive, aerospace, electronics, heavy industry, ICS/OT environments'),
    ('Transportation & Logistics', 'Airlines, shipping, rail, ports, freight, supply chain operators'),
    ('Healthcare & Life Sciences', 'Hospitals, pharma, biotech, medical research'),
    ('Retail & E-commerce', 'Online platforms, retail chains, consumer goods sellers'),
    ('Media & Journalism', 'News outlets, publishers, broadcasters'),
    ('Education & Research', 'Universities, academic labs, scientific institutes'),
)

SECTOR_NAMES = tuple(name for name, _ in SECTORS)

PROMPT_TEMPLATE = """
You are a Cyber Threat Intelligence Analyst.
Analyze the following article text and extract the required fields in JSON format.

Fields:
- title: Create a concise, relevant title for the article if one is not explicitly provided.
- date: Date when the attacks were observed or the article date if not specified (YYYY-MM-DD). Return empty string if unknown.
- summary: A concise one-line summary of the activity.
- what: A concise one-line summary of the "what?" about the article.
- when: A concise one-line summary of the "when?" about the article.
- where: A concise one-line summary of the "where?" about the article.
- who: A concise one-line summary of the "who?" about the article.
- why: A concise one-line summary of the "why?" about the article.
- how: A concise one-line summary of the "how?" about the article.
- so_what: A concise one-line summary of the "so what?" (impact/implication).
- what_is_next: A concise one-line assessment of the likely next steps or outcomes.
- threat_actor: Main threat actor involved (e.g., APT28, Lazarus, APT36). When the article lists aliases ("also known as"), choose the alias made of letters followed by a number (for example, APT28) over other names. If multiple threat actors are mentioned, return "Multiple" with no attribution_country. Normalize nexus phrasing such as "China-nexus", "China-linked" or "China operators" into "China-nexus", or give only the name of a known threat actor without additions. Drop organizational suffixes: "DoNot APT Group" becomes "DoNot".
- attribution_country: Attribution country of the actor, ONLY if explicitly stated. Use Alpha-2 code (e.g., RU, KP, CN, IR). Return empty string if unknown.
- targeted_countries: List the targeted countries mentioned in the article as Alpha-2 codes (e.g., ["US", "DE", "UA"]). Return empty string if no targeted country is mentioned.
- targeted_sectors: Comma-separated string of all targeted sectors mentioned, or empty string if unknown. Select ONLY from the following list:
{sectors}
- risk_score: Risk Score (0-100). Select only ONE value per category (the highest applicable) and add them up:
    1. Technical Complexity (Max 40 pts)
        40 pts: 0-day exploitation, Man-on-the-Side attacks, advanced custom rootkits or mobile spyware.
        30 pts: Supply chain compromise, exploitation of known CVEs or custom malware.
        20 pts: Phishing combined with commodity malware, droppers or infostealers.
        10 pts: Automated scans, probes, or basic credential stuffing.
        0 pts: No technical attack data present.
    2. Geographic Reach (Max 40 pts)
        40 pts: Global reach (targets across 3+ regions).
        30 pts: Regional reach (targets in one single region such as Europe, Middle East, South Asia, or LATAM).
        20 pts: Multiple countries (2 or more nations but not a whole region).
        10 pts: Country-specific (one single country).
        0 pts: No geographic data present.
    3. Intent & Impact (Max 20 pts)
        20 pts: Strategic espionage or critical infrastructure disruption.
        10 pts: Financial gain, hacktivism, or generic data theft.
        0 pts: No clear intent described.
    Total Score = [Complexity Score] + [Reach Score] + [Intent Score].

Article Text:
{content}
"""


def build_prompt(content: str) -> str:
    """Render the extraction prompt for an article's text."""
    sectors = '\n'.join(f"    {name}: {description}" for name, description in SECTORS)
    return PROMPT_TEMPLATE.format(sectors=sectors, content=content)
