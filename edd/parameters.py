"""
edd/parameters.py

Static parameter vocabulary used when the parameter alias table has no entry.
"""

from __future__ import annotations

IGNORED_PARAMETER_TOKENS = frozenset({"txt", "", "n/a", "na", "none"})

# Lowercased EDD parameter text -> canonical parameter name.
FALLBACK_PARAMETER_ALIASES: dict[str, str] = {
    # Iron
    "fe_tot": "Iron",
    "iron": "Iron",
    "iron (total)": "Iron",
    "iron, total": "Iron",
    "iron, total rec": "Iron",
    "iron total": "Iron",
    "iron, total recoverable": "Iron",

    # Manganese
    "mn_tot": "Manganese",
    "manganese": "Manganese",
    "manganese (total)": "Manganese",
    "manganese, total": "Manganese",
    "manganese, tot rec": "Manganese",
    "manganese, total rec": "Manganese",
    "manganese, total recoverable": "Manganese",

    # pH
    "ph": "pH",
    "ph_fld": "pH",
    "ph, field": "pH",
    "ph field": "pH",

    # TSS
    "tss": "Total Suspended Solids",
    "total suspended solids": "Total Suspended Solids",
    "suspended solids, total": "Total Suspended Solids",

    # Selenium
    "se_tot": "Selenium",
    "selenium": "Selenium",
    "selenium (total)": "Selenium",
    "selenium, total": "Selenium",
    "selenium, total recoverable": "Selenium",

    # Conductivity / Specific Conductance
    "cond_lab": "Specific Conductance",
    "conductivity": "Specific Conductance",
    "specific conductance": "Specific Conductance",
    "spec_cond": "Specific Conductance",

    # Sulfate
    "so4_tot": "Sulfate",
    "so4": "Sulfate",
    "sulfate": "Sulfate",
    "sulfate (total)": "Sulfate",
    "sulfate, total": "Sulfate",

    # Settleable Solids
    "setlsoltot": "Settleable Solids",
    "settleable solids": "Settleable Solids",
    "total settlable solids": "Settleable Solids",
    "total settleable solids": "Settleable Solids",

    # Aluminum (Total)
    "al_tot": "Aluminum",
    "aluminum": "Aluminum",
    "aluminum (total)": "Aluminum",
    "aluminum, total": "Aluminum",
    "aluminum, tot rec": "Aluminum",
    "aluminum, total recoverable": "Aluminum",

    # Aluminum (Dissolved)
    "aluminum (dissolved)": "Aluminum (Dissolved)",
    "aluminum, dissolved": "Aluminum (Dissolved)",

    # TDS
    "tds": "Total Dissolved Solids",
    "total dissolved solids": "Total Dissolved Solids",
    "solids, total dissolved": "Total Dissolved Solids",

    # Temperature
    "temp": "Temperature",
    "temperature": "Temperature",
    "temperature, water": "Temperature",

    # Flow
    "flow": "Flow",
    "flow_rate": "Flow",
    "flow rate": "Flow",

    # Mercury
    "mercury": "Mercury",
    "mercury, total (as hg)": "Mercury",
    "mercury (total)": "Mercury",

    # Calcium
    "calcium": "Calcium",
    "calcium (total)": "Calcium",
    "calcium, total": "Calcium",

    # Magnesium
    "magnesium": "Magnesium",
    "magnesium (total)": "Magnesium",
    "magnesium, total": "Magnesium",

    # Sodium
    "sodium": "Sodium",
    "sodium (total)": "Sodium",
    "sodium, total": "Sodium",

    # Potassium
    "potassium": "Potassium",
    "potassium (total)": "Potassium",
    "potassium, total": "Potassium",

    # Chloride
    "cl": "Chloride",
    "chloride": "Chloride",
    "chloride, total": "Chloride",

    # Dissolved Oxygen
    "do": "Dissolved Oxygen",
    "do_fld": "Dissolved Oxygen",
    "dissolved oxygen": "Dissolved Oxygen",

    # Turbidity
    "turb": "Turbidity",
    "turbidity": "Turbidity",

    # Oil & Grease
    "o&g": "Oil & Grease",
    "oil & grease": "Oil & Grease",
    "oil and grease": "Oil & Grease",

    # Alkalinity
    "alkalinity": "Alkalinity",
    "alkalinity, total": "Alkalinity",

    # Hardness
    "hardness": "Hardness",
    "hardness, total": "Hardness",

    # Acidity
    "acidity": "Acidity",
    "acidity, total": "Acidity",

    # BOD
    "bod": "BOD",
    "bod5": "BOD",
    "biochemical oxygen demand": "BOD",

    # Ammonia
    "nh3": "Ammonia",
    "ammonia": "Ammonia",
    "ammonia nitrogen": "Ammonia",

    # Osmotic Pressure
    "osmotic pressure": "Osmotic Pressure",
}

# Maximum sample-to-analysis days, derived from 40 CFR Part 136.
HOLD_TIME_DAYS: dict[str, int] = {
    "pH": 0,
    "Temperature": 0,
    "Dissolved Oxygen": 0,
    "Flow": 0,
    "Turbidity": 2,
    "BOD": 2,
    "Total Suspended Solids": 7,
    "Total Dissolved Solids": 7,
    "Settleable Solids": 2,
    "Alkalinity": 14,
    "Acidity": 14,
    "Specific Conductance": 28,
    "Sulfate": 28,
    "Chloride": 28,
    "Oil & Grease": 28,
    "Ammonia": 28,
    "Iron": 180,
    "Manganese": 180,
    "Aluminum": 180,
    "Aluminum (Dissolved)": 180,
    "Selenium": 180,
    "Mercury": 28,
    "Calcium": 180,
    "Magnesium": 180,
    "Sodium": 180,
    "Potassium": 180,
    "Hardness": 180,
    "Osmotic Pressure": 28,
}

DEFAULT_HOLD_TIME_DAYS = 28

CANONICAL_PARAMETERS: tuple[str, ...] = tuple(dict.fromkeys(FALLBACK_PARAMETER_ALIASES.values()))
