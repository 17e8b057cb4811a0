import httpx
import time
from typing import Dict, Any, Iterable, List, Optional

from skailink.config import settings
from skailink.errors import VendorPermanentError, VendorTransientError, VendorError
from skailink.obs.logger import log_event
from skailink.obs.metrics import inc_counter

HOSTS = {
    "test": "https://test.api.amadeus.com",
    "production": "https://api.amadeus.com",
}

DEFAULT_TIMEOUT = httpx.Timeout(connect=3.0, read=20.0, write=20.0, pool=10.0)


def base_url_for(hostname: str) -> str:
    return HOSTS["production"] if hostname == "production" else HOSTS["test"]


def _error_detail(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return response.text[:300] or None
    errors = body.get("errors") if isinstance(body, dict) else None
    if errors:
        first = errors[0]
        return first.get("detail") or first.get("title")
    if isinstance(body, dict):
        return body.get("error_description") or body.get("error")
    return None


class AmadeusClient:
    """Transport + response-shape adapter for the Amadeus Self-Service API.

    Every failure leaves this class as a ``VendorError`` whose kind is
    already decided: statuses in ``transient_statuses`` and connection-level
    failures are TRANSIENT, everything else is PERMANENT. Retries, caching
    and fallbacks are the caller's business.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        hostname: str = "test",
        http: Optional[httpx.AsyncClient] = None,
        currency: str = "INR",
        transient_statuses: Optional[Iterable[int]] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url_for(hostname)
        self.currency = currency
        self.transient_statuses = set(
            transient_statuses if transient_statuses is not None else settings.RETRY_STATUS_CODES
        )
        self._token: Optional[str] = None
        self._exp = 0.0
        self._http = http or httpx.AsyncClient(http2=True, timeout=DEFAULT_TIMEOUT)

    @classmethod
    def from_settings(cls, http: Optional[httpx.AsyncClient] = None) -> "AmadeusClient":
        return cls(
            client_id=settings.AMADEUS_CLIENT_ID,
            client_secret=settings.AMADEUS_CLIENT_SECRET,
            hostname=settings.AMADEUS_ENV,
            http=http,
            currency=settings.AMADEUS_CURRENCY,
        )

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def aclose(self) -> None:
        await self._http.aclose()

    def _classify(self, response: httpx.Response, what: str) -> VendorError:
        status = response.status_code
        detail = _error_detail(response)
        message = f"Amadeus {what} failed with HTTP {status}"
        if status in self.transient_statuses:
            return VendorTransientError(message, status_code=status, detail=detail)
        return VendorPermanentError(message, status_code=status, detail=detail)

    async def _send(self, what: str, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        inc_counter("vendor_calls_total", {"operation": what})
        try:
            r = await self._http.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise VendorTransientError(f"Amadeus {what} timed out", code="ETIMEDOUT", detail=str(e)) from e
        except httpx.ConnectError as e:
            raise VendorTransientError(f"Amadeus {what} connection refused", code="ECONNREFUSED", detail=str(e)) from e
        except (httpx.RemoteProtocolError, httpx.ReadError) as e:
            raise VendorTransientError(f"Amadeus {what} connection reset", code="ECONNRESET", detail=str(e)) from e

        if r.status_code >= 400:
            err = self._classify(r, what)
            inc_counter("vendor_errors_total", {"operation": what, "kind": err.kind.value})
            log_event(
                "vendor_error",
                level="WARNING",
                operation=what,
                status=r.status_code,
                kind=err.kind.value,
                detail=err.detail,
            )
            raise err
        try:
            return r.json()
        except ValueError as e:
            raise VendorPermanentError(f"Amadeus {what} returned a non-JSON body",
                                       status_code=r.status_code) from e

    async def _get_token(self) -> str:
        if self._token and time.time() < self._exp - 60:
            return self._token
        if not self.configured:
            raise VendorPermanentError("Amadeus credentials are not configured", code="ENOCREDENTIALS")
        j = await self._send(
            "token",
            "POST",
            "/v1/security/oauth2/token",
            data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
            headers={"Accept": "application/json"},
        )
        self._token = j["access_token"]
        self._exp = time.time() + j.get("expires_in", 1799)
        return self._token

    async def _authorized(self, what: str, method: str, path: str, **kwargs) -> Dict[str, Any]:
        token = await self._get_token()
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        headers.update(kwargs.pop("headers", {}))
        return await self._send(what, method, path, headers=headers, **kwargs)

    def _build_search_params(self, origin: str, destination: str, dep_date: str,
                             ret_date: Optional[str], adults: int, max_results: int) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "originLocationCode": origin.strip().upper(),
            "destinationLocationCode": destination.strip().upper(),
            "departureDate": dep_date,
            "adults": max(1, int(adults or 1)),
            "max": max_results,
            "currencyCode": self.currency,
        }
        if ret_date:
            params["returnDate"] = ret_date
        return params

    async def search_flights_with_dictionaries(
        self, origin: str, destination: str, dep_date: str,
        ret_date: Optional[str] = None, adults: int = 1, max_results: int = 20,
    ) -> tuple[List[Dict[str, Any]], Dict[str, Any]]:
        params = self._build_search_params(origin, destination, dep_date, ret_date, adults, max_results)
        log_event("vendor_search", origin=params["originLocationCode"],
                  destination=params["destinationLocationCode"], dep_date=dep_date,
                  ret_date=ret_date, adults=params["adults"])
        j = await self._authorized("flight_offers", "GET", "/v2/shopping/flight-offers", params=params)
        offers = j.get("data") or []
        log_event("vendor_search_ok", offers=len(offers))
        return offers, j.get("dictionaries") or {}

    async def search_flights(self, origin: str, destination: str, dep_date: str,
                             ret_date: Optional[str] = None, adults: int = 1,
                             max_results: int = 20) -> List[Dict[str, Any]]:
        offers, _ = await self.search_flights_with_dictionaries(
            origin, destination, dep_date, ret_date, adults, max_results
        )
        return offers

    async def search_airports(self, keyword: str) -> List[Dict[str, Any]]:
        j = await self._authorized(
            "locations",
            "GET",
            "/v1/reference-data/locations",
            params={"keyword": keyword.strip().upper(), "subType": "CITY,AIRPORT"},
        )
        return j.get("data") or []

    async def get_airport(self, code: str) -> Optional[Dict[str, Any]]:
        code = code.strip().upper()
        j = await self._authorized(
            "locations",
            "GET",
            "/v1/reference-data/locations",
            params={"keyword": code, "subType": "AIRPORT"},
        )
        for loc in j.get("data") or []:
            if str(loc.get("iataCode", "")).upper() == code:
                return loc
        return None

    async def price_offer(self, offer: Dict[str, Any]) -> Dict[str, Any]:
        body = {"data": {"type": "flight-offers-pricing", "flightOffers": [offer]}}
        return await self._authorized(
            "pricing",
            "POST",
            "/v1/shopping/flight-offers/pricing",
            json=body,
            headers={"Content-Type": "application/json", "X-HTTP-Method-Override": "GET"},
        )
