from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from skailink.errors import NormalizationError
from skailink.iata.carriers import aircraft_name, airline_logo, airline_name
from skailink.obs.logger import log_event
from skailink.obs.metrics import inc_counter
from skailink.types import Airport, FlightOffer, Segment, SegmentEndpoint
from skailink.utils.dates import format_duration, split_timestamp

BOOKING_BASE = "https://www.skyscanner.co.in/transport/flights"
DEFAULT_BAGGAGE = "1 piece"
DEFAULT_CABIN = "Economy"


def booking_url(origin: str, destination: str, offer_id: Optional[str] = None,
                affiliate_id: Optional[str] = None) -> str:
    url = f"{BOOKING_BASE}/{(origin or '').lower()}/{(destination or '').lower()}/"
    if not affiliate_id:
        return url
    query = {"affiliateid": affiliate_id}
    if offer_id:
        query["offer"] = offer_id
    return f"{url}?{urlencode(query)}"


def parse_price(price: Dict[str, Any]) -> int:
    raw = price.get("grandTotal") or price.get("total")
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, TypeError) as e:
        raise NormalizationError(f"Unparseable price: {raw!r}") from e
    if not value.is_finite():
        raise NormalizationError(f"Unparseable price: {raw!r}")
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _first_fare_detail(offer: Dict[str, Any]) -> Dict[str, Any]:
    pricings = offer.get("travelerPricings") or []
    if not pricings:
        return {}
    details = pricings[0].get("fareDetailsBySegment") or []
    return details[0] if details else {}


def baggage_text(fare_detail: Dict[str, Any]) -> str:
    bags = fare_detail.get("includedCheckedBags") or {}
    quantity = bags.get("quantity")
    if quantity:
        return f"{quantity} piece" if int(quantity) == 1 else f"{quantity} pieces"
    weight = bags.get("weight")
    if weight:
        unit = str(bags.get("weightUnit") or "KG").lower()
        return f"{weight} {unit}"
    return DEFAULT_BAGGAGE


def cabin_text(fare_detail: Dict[str, Any]) -> str:
    cabin = fare_detail.get("cabin")
    if not cabin:
        return DEFAULT_CABIN
    return str(cabin).replace("_", " ").title()


def _endpoint(raw: Dict[str, Any]) -> SegmentEndpoint:
    return SegmentEndpoint(
        airport_code=raw["iataCode"],
        terminal=raw.get("terminal"),
        timestamp=raw["at"],
    )


def to_segment(raw: Dict[str, Any]) -> Segment:
    return Segment(
        departure=_endpoint(raw["departure"]),
        arrival=_endpoint(raw["arrival"]),
        carrier_code=raw["carrierCode"],
        flight_number=str(raw.get("number", "")),
        aircraft_code=(raw.get("aircraft") or {}).get("code", ""),
        duration_text=format_duration(raw.get("duration")),
    )


def normalize_offer(offer: Dict[str, Any], dictionaries: Optional[Dict[str, Any]] = None,
                    affiliate_id: Optional[str] = None) -> FlightOffer:
    """Flatten one Amadeus flight-offer into a display-ready FlightOffer.

    Only the first itinerary (the outbound journey) is modelled. Any
    malformed field surfaces as NormalizationError carrying the offer id.
    """
    if not isinstance(offer, dict):
        raise NormalizationError("Offer is not an object")
    offer_id = str(offer.get("id", ""))
    itineraries = offer.get("itineraries") or []
    if not itineraries or not isinstance(itineraries[0], dict) or not itineraries[0].get("segments"):
        raise NormalizationError("Offer has no itinerary segments", offer_id=offer_id)

    try:
        return _build_offer(offer, offer_id, itineraries[0], dictionaries or {}, affiliate_id)
    except NormalizationError as e:
        e.offer_id = e.offer_id or offer_id
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        # pydantic's ValidationError is a ValueError
        raise NormalizationError(f"Malformed offer: {e}", offer_id=offer_id) from e


def _build_offer(offer: Dict[str, Any], offer_id: str, itin: Dict[str, Any],
                 dictionaries: Dict[str, Any], affiliate_id: Optional[str]) -> FlightOffer:
    segments = [to_segment(s) for s in itin["segments"]]
    first, last = segments[0], segments[-1]
    carriers = dictionaries.get("carriers")
    aircraft = dictionaries.get("aircraft")

    depart_date, depart_time = split_timestamp(first.departure.timestamp)
    arrive_date, arrive_time = split_timestamp(last.arrival.timestamp)
    if not depart_time or not arrive_time:
        raise NormalizationError("Unparseable segment timestamps", offer_id=offer_id)

    price = offer.get("price") or {}
    if not price:
        raise NormalizationError("Offer has no price", offer_id=offer_id)
    fare = _first_fare_detail(offer)
    seats = offer.get("numberOfBookableSeats")

    return FlightOffer(
        id=offer_id,
        airline=airline_name(first.carrier_code, carriers),
        airline_logo=airline_logo(first.carrier_code),
        flight_number_code=f"{first.carrier_code} {first.flight_number}".strip(),
        origin=first.departure.airport_code,
        destination=last.arrival.airport_code,
        depart_time=depart_time,
        arrive_time=arrive_time,
        depart_date=depart_date,
        arrive_date=arrive_date,
        duration_text=format_duration(itin.get("duration")),
        stops=len(segments) - 1,
        price=parse_price(price),
        currency=price.get("currency", ""),
        aircraft_name=aircraft_name(first.aircraft_code, aircraft),
        baggage_text=baggage_text(fare),
        cabin_class=cabin_text(fare),
        booking_url=booking_url(first.departure.airport_code, last.arrival.airport_code,
                                offer_id, affiliate_id),
        available_seats=int(seats) if seats is not None else None,
        segments=segments,
    )


def from_amadeus(offers: List[Dict[str, Any]], dictionaries: Optional[Dict[str, Any]] = None,
                 affiliate_id: Optional[str] = None) -> List[FlightOffer]:
    """Normalize a batch, dropping (and logging) offers that fail to normalize."""
    items: List[FlightOffer] = []
    for o in offers:
        try:
            items.append(normalize_offer(o, dictionaries, affiliate_id))
        except NormalizationError as e:
            inc_counter("offers_dropped_total")
            log_event("offer_dropped", level="WARNING", offer_id=e.offer_id, error=str(e))
    return items


def to_airport(location: Dict[str, Any]) -> Airport:
    """Vendor location record -> Airport."""
    address = location.get("address") or {}
    return Airport(
        iata_code=str(location.get("iataCode", "")).upper(),
        name=str(location.get("name", "")).title(),
        city_name=str(address.get("cityName", "")).title(),
        country_name=str(address.get("countryName", "")).title(),
    )
