"""Synthetic data served when the flight vendor is unavailable.

Shapes match the normalized FlightOffer/Airport models so the HTTP layer
renders them exactly like real results; responses carrying them are
flagged ``mock`` / ``fallback``.
"""

import random
import time
from typing import List, Optional

from skailink.amadeus.transform import booking_url
from skailink.iata.carriers import AIRLINES, airline_logo
from skailink.iata.lookup import default_airport_db
from skailink.types import Airport, FlightOffer, Segment, SegmentEndpoint
from skailink.utils.dates import format_duration_minutes

MOCK_FLIGHT_COUNT = 8
MOCK_CARRIERS = ["AI", "6E", "SG", "UK", "G8"]
MOCK_HUBS = ["DEL", "BOM", "BLR", "HYD"]
MOCK_CURRENCY = "INR"
MOCK_DURATION_MINUTES = 150
MOCK_LEG_MINUTES = 60  # one-stop: two legs around a 30 minute layover


def _clock(total_minutes: int) -> str:
    # counts above 8 wrap past midnight
    return f"{(total_minutes // 60) % 24:02d}:{total_minutes % 60:02d}"


def _mock_segment(origin: str, destination: str, depart_date: str, dep_total: int, minutes: int,
                  carrier: str, flight_number: str) -> Segment:
    return Segment(
        departure=SegmentEndpoint(airport_code=origin,
                                  timestamp=f"{depart_date}T{_clock(dep_total)}:00"),
        arrival=SegmentEndpoint(airport_code=destination,
                                timestamp=f"{depart_date}T{_clock(dep_total + minutes)}:00"),
        carrier_code=carrier,
        flight_number=flight_number,
        aircraft_code="320",
        duration_text=format_duration_minutes(minutes),
    )


def _mock_offer(i: int, origin: str, destination: str, depart_date: str, rng: random.Random,
                stamp: int) -> FlightOffer:
    carrier = rng.choice(MOCK_CARRIERS)
    dep_total = (6 + i * 2) * 60 + rng.choice((0, 30))
    arr_total = dep_total + MOCK_DURATION_MINUTES
    flight_number = str(100 + i)

    hubs = [h for h in MOCK_HUBS if h not in (origin, destination)]
    if hubs and rng.random() > 0.7:
        hub = rng.choice(hubs)
        segments = [
            _mock_segment(origin, hub, depart_date, dep_total, MOCK_LEG_MINUTES,
                          carrier, flight_number),
            _mock_segment(hub, destination, depart_date, arr_total - MOCK_LEG_MINUTES,
                          MOCK_LEG_MINUTES, carrier, str(500 + i)),
        ]
    else:
        segments = [_mock_segment(origin, destination, depart_date, dep_total,
                                  MOCK_DURATION_MINUTES, carrier, flight_number)]

    return FlightOffer(
        id=f"FL{stamp}-{i}",
        airline=AIRLINES[carrier],
        airline_logo=airline_logo(carrier),
        flight_number_code=f"{carrier}{flight_number}",
        origin=origin,
        destination=destination,
        depart_time=_clock(dep_total),
        arrive_time=_clock(arr_total),
        depart_date=depart_date,
        arrive_date=depart_date,
        duration_text=format_duration_minutes(MOCK_DURATION_MINUTES),
        stops=len(segments) - 1,
        price=round(3000 + rng.random() * 5000),
        currency=MOCK_CURRENCY,
        aircraft_name="Airbus A320",
        baggage_text="15 kg",
        cabin_class="Economy",
        booking_url=booking_url(origin, destination),
        available_seats=rng.randint(10, 59),
        segments=segments,
    )


def generate_mock_flights(origin: str, destination: str, depart_date: str,
                          count: int = MOCK_FLIGHT_COUNT,
                          rng: Optional[random.Random] = None) -> List[FlightOffer]:
    """Return ``count`` plausible offers for the route, cheapest first."""
    rng = rng or random.Random()
    origin = origin.strip().upper()
    destination = destination.strip().upper()
    stamp = int(time.time() * 1000)
    flights = [_mock_offer(i, origin, destination, depart_date, rng, stamp) for i in range(count)]
    return sorted(flights, key=lambda f: f.price)


def get_fallback_airports(query: Optional[str], limit: int = 10) -> List[Airport]:
    return default_airport_db().search(query, limit=limit)
