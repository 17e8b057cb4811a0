from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Literal

TripType = Literal["one-way", "round-trip"]


class _Model(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class _Frozen(_Model):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SearchRequest(_Model):
    origin: str
    destination: str
    depart_date: str = Field(..., description="YYYY-MM-DD")
    return_date: Optional[str] = None
    passengers: int = 1
    trip_type: TripType = "one-way"
    page: Optional[int] = None
    page_size: Optional[int] = None


class SegmentEndpoint(_Frozen):
    airport_code: str
    terminal: Optional[str] = None
    timestamp: str  # vendor local time, e.g. '2025-11-15T06:30:00'


class Segment(_Frozen):
    departure: SegmentEndpoint
    arrival: SegmentEndpoint
    carrier_code: str
    flight_number: str
    aircraft_code: str = ""
    duration_text: str = ""


class FlightOffer(_Frozen):
    id: str
    airline: str
    airline_logo: Optional[str] = None
    flight_number_code: str
    origin: str
    destination: str
    depart_time: str       # 'HH:MM'
    arrive_time: str
    depart_date: str
    arrive_date: str
    duration_text: str     # '2h 15m'
    stops: int = Field(0, ge=0)
    price: int
    currency: str
    aircraft_name: str = ""
    baggage_text: str = "1 piece"
    cabin_class: str = "Economy"
    booking_url: str
    available_seats: Optional[int] = None
    segments: List[Segment] = Field(default_factory=list)


class SearchMeta(_Model):
    total: int
    page: int = 1
    page_size: int
    total_pages: int = 1
    duration_ms: int = 0


class SearchResponse(_Model):
    success: bool = True
    data: List[FlightOffer]
    mock: bool = False
    search_params: SearchRequest
    count: int
    meta: SearchMeta


class Airport(_Frozen):
    iata_code: str
    name: str
    city_name: str = ""
    country_name: str = ""


class AirportSearchResult(_Model):
    success: bool = True
    data: List[Airport]
    count: int
    source: Optional[str] = None
    fallback: bool = False

    def to_json_dict(self) -> dict:
        # only one of 'source' / 'fallback' is reported
        payload = super().to_json_dict()
        if self.fallback:
            payload.pop("source", None)
        else:
            payload.pop("fallback", None)
        return payload
