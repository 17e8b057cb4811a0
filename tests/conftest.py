import os
import sys
import asyncio
import inspect
from datetime import date, timedelta

import pytest

# Ensure project root is on sys.path so `import skailink` works in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


def pytest_pyfunc_call(pyfuncitem):
    """Allow running async tests without pytest-asyncio.

    If the test function is a coroutine, run it in a fresh event loop.
    """
    testfunction = pyfuncitem.obj
    if inspect.iscoroutinefunction(testfunction):
        funcargs = pyfuncitem.funcargs
        sig = inspect.signature(testfunction)
        # Filter only the parameters that the test function expects
        allowed = {name: funcargs[name] for name in sig.parameters.keys() if name in funcargs}
        asyncio.run(testfunction(**allowed))
        return True
    return None


def future_date(days: int = 30) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


def make_segment(dep, arr, dep_at, arr_at, carrier="AI", number="101", aircraft="320",
                 duration="PT2H10M", dep_terminal=None, arr_terminal=None):
    departure = {"iataCode": dep, "at": dep_at}
    arrival = {"iataCode": arr, "at": arr_at}
    if dep_terminal:
        departure["terminal"] = dep_terminal
    if arr_terminal:
        arrival["terminal"] = arr_terminal
    return {
        "departure": departure,
        "arrival": arrival,
        "carrierCode": carrier,
        "number": number,
        "aircraft": {"code": aircraft},
        "duration": duration,
    }


def make_offer(offer_id="1", total="4567.40", currency="INR", segments=None, duration="PT2H10M",
               bags=None, cabin="ECONOMY"):
    segments = segments or [
        make_segment("DEL", "BOM", "2025-11-15T06:30:00", "2025-11-15T08:40:00")
    ]
    fare = {"cabin": cabin}
    if bags is not None:
        fare["includedCheckedBags"] = bags
    return {
        "type": "flight-offer",
        "id": offer_id,
        "numberOfBookableSeats": 9,
        "itineraries": [{"duration": duration, "segments": segments}],
        "price": {"currency": currency, "total": total, "grandTotal": total},
        "travelerPricings": [{"fareDetailsBySegment": [fare]}],
    }


class FakeAmadeus:
    """Stand-in for AmadeusClient recording every call."""

    def __init__(self, offers=None, dictionaries=None, errors=None, airports=None, configured=True):
        self.offers = offers if offers is not None else []
        self.dictionaries = dictionaries or {}
        # errors are raised in order before offers are returned
        self.errors = list(errors or [])
        self.airports = airports
        self.configured = configured
        self.search_calls = []
        self.airport_calls = []
        self.pricing_calls = []

    async def search_flights_with_dictionaries(self, **kwargs):
        self.search_calls.append(kwargs)
        if self.errors:
            raise self.errors.pop(0)
        return self.offers, self.dictionaries

    async def search_airports(self, keyword):
        self.airport_calls.append(keyword)
        if isinstance(self.airports, Exception):
            raise self.airports
        return self.airports or []

    async def get_airport(self, code):
        self.airport_calls.append(code)
        if isinstance(self.airports, Exception):
            raise self.airports
        for loc in self.airports or []:
            if loc.get("iataCode") == code:
                return loc
        return None

    async def price_offer(self, offer):
        self.pricing_calls.append(offer)
        if self.errors:
            raise self.errors.pop(0)
        return {"data": {"type": "flight-offers-pricing", "flightOffers": [offer]}}

    async def aclose(self):
        return None


async def _no_sleep(_seconds):
    return None


@pytest.fixture
def no_sleep():
    return _no_sleep
