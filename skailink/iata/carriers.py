from typing import Dict, Mapping, Optional

AIRLINES: Dict[str, str] = {
    "AI": "Air India",
    "6E": "IndiGo",
    "SG": "SpiceJet",
    "UK": "Vistara",
    "G8": "Go First",
    "I5": "Air Asia India",
    "IX": "Air India Express",
    "QP": "Akasa Air",
    "EK": "Emirates",
    "EY": "Etihad Airways",
    "QR": "Qatar Airways",
    "BA": "British Airways",
    "LH": "Lufthansa",
    "AF": "Air France",
    "KL": "KLM",
    "SQ": "Singapore Airlines",
    "TK": "Turkish Airlines",
    "TG": "Thai Airways",
    "UL": "SriLankan Airlines",
    "AA": "American Airlines",
    "UA": "United Airlines",
}

AIRCRAFT: Dict[str, str] = {
    "319": "Airbus A319",
    "320": "Airbus A320",
    "321": "Airbus A321",
    "32N": "Airbus A320neo",
    "32Q": "Airbus A321neo",
    "333": "Airbus A330-300",
    "359": "Airbus A350-900",
    "388": "Airbus A380",
    "738": "Boeing 737-800",
    "73H": "Boeing 737-800",
    "7M8": "Boeing 737 MAX 8",
    "77W": "Boeing 777-300ER",
    "788": "Boeing 787-8",
    "789": "Boeing 787-9",
    "AT7": "ATR 72",
    "DH8": "De Havilland Dash 8",
}

LOGO_URL = "https://images.kiwi.com/airlines/64/{code}.png"


def lookup_name(code: Optional[str], *tables: Optional[Mapping[str, str]], default: Optional[str] = None) -> str:
    """Resolve a carrier/aircraft code to a display name.

    Tables are consulted in order (vendor dictionaries first, then the
    static ones); an unknown code falls back to ``default`` or the raw code.
    Never raises.
    """
    key = (code or "").strip().upper()
    for table in tables:
        if not table:
            continue
        name = table.get(key) or table.get(code or "")
        if name:
            return str(name).strip()
    if default is not None:
        return default
    return key


def airline_name(code: Optional[str], dictionary: Optional[Mapping[str, str]] = None) -> str:
    return lookup_name(code, dictionary, AIRLINES)


def aircraft_name(code: Optional[str], dictionary: Optional[Mapping[str, str]] = None) -> str:
    if not code:
        return ""
    return lookup_name(code, dictionary, AIRCRAFT, default=f"Aircraft {code}")


def airline_logo(code: Optional[str]) -> Optional[str]:
    key = (code or "").strip().upper()
    return LOGO_URL.format(code=key) if key else None
