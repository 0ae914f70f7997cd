"""
Utility-name identification.

Utility names vary in formatting from bill to bill ("Con Edison", "ConEd",
"Consolidated Edison"), so names are resolved through an ordered alias table
rather than exact lookups. The table is built once at import and never
mutated; order matters because the first matching alias wins.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

UNKNOWN_UTILITY = "Unknown Utility"

_ALIASES: Tuple[Tuple[str, str], ...] = (
    # --- NORTHEAST ---
    (r"\bCon\s?Edison\b|\bConEd\b|\bConsolidated\s+Edison\b", "Consolidated Edison"),
    (r"\bPSE\s?&\s?G\b|\bPSEG\b|\bPublic\s+Service\s+Electric\s+(?:and|&)\s+Gas\b", "Public Service Electric and Gas"),
    (r"\bNational\s+Grid\b", "National Grid"),
    (r"\bEversource\b", "Eversource"),
    (r"\bPECO(?:\s+Energy)?\b", "PECO Energy"),
    (r"\bPPL\s+Electric\b", "PPL Electric"),
    (r"\bJersey\s+Central\s+Power\s+(?:and|&)\s+Light\b|\bJCP&L\b", "Jersey Central Power & Light"),
    # --- CALIFORNIA ---
    (r"\bSouthern\s+California\s+Edison\b|\bSCE\b", "Southern California Edison"),
    (r"\bSoCalGas\b|\bSouthern\s+California\s+Gas\b", "Southern California Gas"),
    (r"\bSan\s+Diego\s+Gas\s+(?:and|&)\s+Electric\b|\bSDG&E\b|\bSDGE\b", "San Diego Gas & Electric"),
    (r"\bPacific\s+Gas\s+(?:and|&)\s+Electric\b|\bPG&E\b", "Pacific Gas and Electric"),
    (r"\bLos\s+Angeles\s+Department\s+of\s+Water\s+(?:and|&)\s+Power\b|\bLADWP\b", "Los Angeles Department of Water and Power"),
    (r"\bSacramento\s+Municipal\s+Utility\s+District\b|\bSMUD\b", "Sacramento Municipal Utility District"),
    # --- TEXAS ---
    (r"\bCenterPoint(?:\s+Energy)?\b", "CenterPoint Energy"),
    (r"\bTXU(?:\s+Energy)?\b", "TXU Energy"),
    (r"\bReliant\s+Energy\b", "Reliant Energy"),
    (r"\bOncor\b", "Oncor"),
    # --- SOUTHEAST ---
    (r"\bDuke\s+Energy\b", "Duke Energy"),
    (r"\bFlorida\s+Power\s+(?:and|&)\s+Light\b|\bFPL\b", "Florida Power & Light"),
    (r"\bGeorgia\s+Power\b", "Georgia Power"),
    (r"\bDominion\s+Energy\b", "Dominion Energy"),
    (r"\bEntergy\b", "Entergy"),
    # --- MIDWEST ---
    (r"\bComEd\b|\bCommonwealth\s+Edison\b", "Commonwealth Edison"),
    (r"\bDTE(?:\s+Energy)?\b", "DTE Energy"),
    (r"\bAmeren\b", "Ameren"),
    (r"\bConsumers\s+Energy\b", "Consumers Energy"),
    (r"\bXcel\s+Energy\b", "Xcel Energy"),
    (r"\bNicor\s+Gas\b", "Nicor Gas"),
    (r"\bPeoples\s+Gas\b", "Peoples Gas"),
    # --- WEST ---
    (r"\bPuget\s+Sound\s+Energy\b", "Puget Sound Energy"),
    (r"\bPortland\s+General\s+Electric\b", "Portland General Electric"),
    (r"\bNV\s+Energy\b", "NV Energy"),
    (r"\bRocky\s+Mountain\s+Power\b", "Rocky Mountain Power"),
)

UTILITY_ALIASES: Tuple[Tuple[re.Pattern, str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), canonical) for pattern, canonical in _ALIASES
)

# A capitalized phrase directly in front of "Bill" / "Invoice" / "Statement".
_HEADING_PATTERN = re.compile(
    r"\b((?:[A-Z][\w&.'-]* ){0,4}[A-Z][\w&.'-]*) (?:Bill|BILL|Invoice|INVOICE|Statement|STATEMENT)\b"
)

_GENERIC_LEADING_WORDS = {
    "your", "this", "the", "my", "monthly", "current", "new", "final", "utility",
    "electric", "electricity", "gas", "energy", "account", "billing", "summary",
}


def match_utility_alias(text: str) -> Optional[str]:
    for pattern, canonical in UTILITY_ALIASES:
        if pattern.search(text):
            return canonical
    return None


def match_utility_heading(text: str) -> Optional[str]:
    """Best-effort name from a heading like 'Acme Power Bill'."""
    for match in _HEADING_PATTERN.finditer(text):
        words = match.group(1).split()
        while words and words[0].lower() in _GENERIC_LEADING_WORDS:
            words.pop(0)
        if words:
            return " ".join(words)
    return None


def identify_utility(text: str) -> str:
    """Alias table, then heading heuristic, then the sentinel. Never empty."""
    if not text:
        return UNKNOWN_UTILITY
    return match_utility_alias(text) or match_utility_heading(text) or UNKNOWN_UTILITY


def normalize_utility_name(raw: str | None) -> str:
    """
    Canonicalize a free-form utility name (e.g. a caller-supplied override).

    Known aliases map to their canonical form; anything else is returned trimmed.
    """
    if not raw or not str(raw).strip():
        return UNKNOWN_UTILITY
    return match_utility_alias(str(raw)) or str(raw).strip()
