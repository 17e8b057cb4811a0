from typing import Dict, List, Optional

from skailink.types import Airport


# (iata, name, city, country)
_FALLBACK_ROWS = [
    ("DEL", "Indira Gandhi International Airport", "Delhi", "India"),
    ("BOM", "Chhatrapati Shivaji Maharaj International Airport", "Mumbai", "India"),
    ("BLR", "Kempegowda International Airport", "Bangalore", "India"),
    ("MAA", "Chennai International Airport", "Chennai", "India"),
    ("CCU", "Netaji Subhas Chandra Bose International Airport", "Kolkata", "India"),
    ("HYD", "Rajiv Gandhi International Airport", "Hyderabad", "India"),
    ("COK", "Cochin International Airport", "Kochi", "India"),
    ("GOI", "Goa International Airport", "Goa", "India"),
    ("AMD", "Sardar Vallabhbhai Patel International Airport", "Ahmedabad", "India"),
    ("PNQ", "Pune Airport", "Pune", "India"),
    ("JAI", "Jaipur International Airport", "Jaipur", "India"),
    ("LKO", "Chaudhary Charan Singh International Airport", "Lucknow", "India"),
    ("ATQ", "Sri Guru Ram Dass Jee International Airport", "Amritsar", "India"),
    ("TRV", "Trivandrum International Airport", "Thiruvananthapuram", "India"),
    ("DXB", "Dubai International Airport", "Dubai", "United Arab Emirates"),
    ("DOH", "Hamad International Airport", "Doha", "Qatar"),
    ("SIN", "Singapore Changi Airport", "Singapore", "Singapore"),
    ("BKK", "Suvarnabhumi Airport", "Bangkok", "Thailand"),
    ("KUL", "Kuala Lumpur International Airport", "Kuala Lumpur", "Malaysia"),
    ("CMB", "Bandaranaike International Airport", "Colombo", "Sri Lanka"),
    ("KTM", "Tribhuvan International Airport", "Kathmandu", "Nepal"),
    ("LHR", "Heathrow Airport", "London", "United Kingdom"),
    ("CDG", "Charles de Gaulle Airport", "Paris", "France"),
    ("FRA", "Frankfurt Airport", "Frankfurt", "Germany"),
    ("AMS", "Amsterdam Airport Schiphol", "Amsterdam", "Netherlands"),
    ("IST", "Istanbul Airport", "Istanbul", "Turkey"),
    ("JFK", "John F. Kennedy International Airport", "New York", "United States"),
    ("SFO", "San Francisco International Airport", "San Francisco", "United States"),
    ("SYD", "Sydney Kingsford Smith Airport", "Sydney", "Australia"),
]


class AirportDb:
    """Static in-memory airport table used when the vendor lookup is unavailable.

    Matching is a case-insensitive substring test over code, name, city and
    country, after resolving a few common city aliases (``bombay`` -> mumbai).
    """

    MIN_QUERY_LENGTH = 2

    def __init__(self, rows=None):
        self.airports: List[Airport] = [
            Airport(iata_code=code, name=name, city_name=city, country_name=country)
            for code, name, city, country in (rows or _FALLBACK_ROWS)
        ]
        self.by_code: Dict[str, Airport] = {a.iata_code: a for a in self.airports}
        self.aliases: Dict[str, str] = {
            "new delhi": "delhi",
            "bombay": "mumbai",
            "bengaluru": "bangalore",
            "madras": "chennai",
            "calcutta": "kolkata",
            "cochin": "kochi",
            "trivandrum": "thiruvananthapuram",
            "uae": "united arab emirates",
            "uk": "united kingdom",
            "usa": "united states",
            "nyc": "new york",
        }

    def get(self, code: Optional[str]) -> Optional[Airport]:
        if not code:
            return None
        return self.by_code.get(code.strip().upper())

    def search(self, query: Optional[str], limit: int = 10) -> List[Airport]:
        q = (query or "").strip().lower()
        if len(q) < self.MIN_QUERY_LENGTH:
            return self.airports[:limit]
        q = self.aliases.get(q, q)

        # Exact code hits first, then substring matches in table order
        exact = self.get(q)
        matches: List[Airport] = [exact] if exact else []
        for airport in self.airports:
            if airport is exact:
                continue
            haystack = (
                airport.iata_code.lower(),
                airport.name.lower(),
                airport.city_name.lower(),
                airport.country_name.lower(),
            )
            if any(q in field for field in haystack):
                matches.append(airport)
        return matches[:limit]


_default_db: Optional[AirportDb] = None


def default_airport_db() -> AirportDb:
    global _default_db
    if _default_db is None:
        _default_db = AirportDb()
    return _default_db
