"""Site key -> database table, and dashboard parameter -> table columns."""

import re
from typing import Dict, List

from src.sitewatch.history.errors import InvalidQueryError

QUOTE_CHARS = re.compile(r"[`\"'\[\]]")
IDENTIFIER = re.compile(r"^[A-Za-z0-9_]+$")

SITE_TABLES: Dict[str, str] = {
    "f21": "Al_Faqaa", "Al_Faqaa": "Al_Faqaa", "Faqah": "Al_Faqaa",
    "f24": "Kasna", "Kasna": "Kasna", "Khaznah": "Kasna",
    "f22": "Forest1", "Forest1": "Forest1",
    "f08": "BK1", "BK1": "BK1",
    "f09": "Liwa2", "Liwa2": "Liwa2",
    "f10": "Harz1", "Harz1": "Harz1",
    "f11": "Harz2F11", "Harz2": "Harz2F11",
    "f12": "Al_Hayeer", "Al_Hayeer": "Al_Hayeer", "AlHayeer": "Al_Hayeer",
    "f14": "Omar1F14", "Omar1": "Omar1F14",
    "f15": "Omar2", "Omar2": "Omar2",
    "f16": "Harz3F16", "Harz3": "Harz3F16",
    "f17": "BK2", "BK2": "BK2",
    "f18": "BK3", "BK3": "BK3",
    "f19": "Wagan", "Wagan1": "Wagan",
    "f20": "Mafraq", "Mafraq": "Mafraq",
    "f23": "Forest2", "Forest2": "Forest2",
    "f27": "Al_Arad", "Arad1": "Al_Arad", "Al_Arad": "Al_Arad",
    "f29": "ZAKIR", "Zakir": "ZAKIR", "ZAKIR": "ZAKIR",
    "f30": "BK4", "BK4": "BK4",
}

# Sites with a second power analyser log an extra "...A" set of columns
DUAL_ANALYSER_TABLES = {"Al_Faqaa", "Forest1"}

TEMPERATURE_COLUMNS = ["Ts1", "Ts2", "Ts3", "Ts4"]
HUMIDITY_COLUMNS = ["H1s1", "H2s2", "H3s3", "H4s4"]

BASE_COLUMNS: Dict[str, List[str]] = {
    "Current": ["Current_L1", "Current_L2", "Current_L3"],
    "Voltage": ["Phase_L1_Phase_L2_Voltage", "Phase_L2_Phase_L3_Voltage", "Phase_L3_Phase_L1_Voltage"],
    "Power": ["Active_Power_L1", "Active_Power_L2", "Active_Power_L3", "Total_Active_Power"],
    "Temperature": TEMPERATURE_COLUMNS,
    "Humidity": HUMIDITY_COLUMNS,
    "Temperature & Humidity": TEMPERATURE_COLUMNS + HUMIDITY_COLUMNS,
}

EXTENDED_COLUMNS: Dict[str, List[str]] = {
    "Current": BASE_COLUMNS["Current"] + ["Current_L1A", "Current_L2A", "Current_L3A"],
    "Voltage": BASE_COLUMNS["Voltage"] + [
        "Phase_L1_Phase_L2_VoltageA",
        "Phase_L2_Phase_L3_VoltageA",
        "Phase_L3_Phase_L1_VoltageA",
    ],
    "Power": BASE_COLUMNS["Power"] + ["Active_Power_L1A", "Active_Power_L2A", "Active_Power_L3A"],
}

PARAMETERS = list(BASE_COLUMNS)


def table_name_for(site_key: str) -> str:
    """Resolve a site id or alias to its table; unknown keys are used as-is."""
    return SITE_TABLES.get(site_key, site_key)


def columns_for(parameter: str, table: str) -> List[str]:
    if parameter not in BASE_COLUMNS:
        raise InvalidQueryError(
            f"Unknown parameter '{parameter}'",
            details={"parameter": parameter, "allowed": PARAMETERS},
        )
    if table in DUAL_ANALYSER_TABLES and parameter in EXTENDED_COLUMNS:
        return list(EXTENDED_COLUMNS[parameter])
    return list(BASE_COLUMNS[parameter])


def sanitize_column(name: str) -> str:
    """Strip quoting characters and whitespace so the name can be re-quoted safely."""
    cleaned = QUOTE_CHARS.sub("", name or "").strip()
    if not cleaned:
        raise InvalidQueryError("Empty column name after processing", details={"original": name})
    return cleaned


def validate_table(name: str) -> str:
    cleaned = (name or "").strip()
    if not IDENTIFIER.match(cleaned):
        raise InvalidQueryError(f"Invalid table name '{name}'", details={"original": name})
    return cleaned
