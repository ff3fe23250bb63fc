"""Data models for job requests, contractor profiles, offers and evaluations."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from tradematch.errors import OfferStateError, ValidationError


class RequestStatus(str, Enum):
    OPEN = "open"
    FILLED = "filled"
    EXPIRED = "expired"


class OfferStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class Strategy(str, Enum):
    SPLIT = "split"
    AGGRESSIVE = "aggressive"
    CONSERVATIVE = "conservative"


def _pick(data: dict, *keys: str, default: Any = None) -> Any:
    """First present key wins; rows arrive both snake_case and camelCase."""
    for k in keys:
        if k in data and data[k] is not None:
            return data[k]
    return default


def _to_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value!r}") from exc


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid number: {value!r}") from exc


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value)


def _to_requirements(value: Any) -> Any:
    """Lists of tags are stored in the comma-separated form."""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v).strip() for v in value if str(v).strip())
    return value


def _to_enum(enum_cls: type[Enum], value: Any, default: Enum) -> Enum:
    if value is None or value == "":
        return default
    try:
        return enum_cls(str(value).lower())
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {enum_cls.__name__} {value!r} (expected {allowed})") from exc


# ── Job request ──────────────────────────────────────────────────────────


@dataclass
class JobRequest:
    id: str
    trade: str
    start_date: date
    end_date: date
    min_rate: float
    max_rate: float
    location: str = ""
    latitude: float | None = None
    longitude: float | None = None
    scope: str = ""
    requirements: str | None = None
    status: RequestStatus = RequestStatus.OPEN
    requester_id: str | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def requirement_tags(self) -> list[str]:
        if not self.requirements:
            return []
        return [t.strip().lower() for t in self.requirements.split(",") if t.strip()]

    @classmethod
    def from_dict(cls, data: dict) -> "JobRequest":
        return cls(
            id=str(_pick(data, "id", default="")),
            trade=str(_pick(data, "trade", default="")),
            location=str(_pick(data, "location", default="")),
            latitude=_to_float(_pick(data, "latitude", "lat")),
            longitude=_to_float(_pick(data, "longitude", "lon", "lng")),
            start_date=_to_date(_pick(data, "start_date", "startDate")),
            end_date=_to_date(_pick(data, "end_date", "endDate")),
            min_rate=_to_float(_pick(data, "min_rate", "minRate")),
            max_rate=_to_float(_pick(data, "max_rate", "maxRate")),
            scope=str(_pick(data, "scope", default="")),
            requirements=_to_requirements(_pick(data, "requirements")),
            status=_to_enum(RequestStatus, _pick(data, "status"), RequestStatus.OPEN),
            requester_id=_pick(data, "requester_id", "requesterId"),
        )


# ── Contractor profile ───────────────────────────────────────────────────


@dataclass
class Trade:
    trade: str
    licensed: bool = False
    license_number: str | None = None
    insurance_verified: bool = False


@dataclass
class ServiceArea:
    city: str = ""
    state: str = ""
    latitude: float | None = None
    longitude: float | None = None
    radius_miles: float = 25.0

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass
class RatePreference:
    trade: str
    min_rate: float
    preferred_rate: float
    max_rate: float


@dataclass
class AvailabilityWindow:
    start_date: date
    end_date: date
    status: AvailabilityStatus = AvailabilityStatus.AVAILABLE

    def covers(self, start: date, end: date) -> bool:
        return (
            self.status is AvailabilityStatus.AVAILABLE
            and self.start_date <= start
            and end <= self.end_date
        )


@dataclass
class NegotiationPreferences:
    auto_negotiate: bool = False
    auto_accept: bool = False
    strategy: Strategy = Strategy.SPLIT


@dataclass
class ContractorProfile:
    id: str
    name: str = ""
    trades: list[Trade] = field(default_factory=list)
    service_areas: list[ServiceArea] = field(default_factory=list)
    rate_preferences: list[RatePreference] = field(default_factory=list)
    availability: list[AvailabilityWindow] = field(default_factory=list)
    negotiation: NegotiationPreferences = field(default_factory=NegotiationPreferences)

    def rate_preference_for(self, trade: str) -> RatePreference | None:
        wanted = trade.lower().strip()
        for pref in self.rate_preferences:
            if pref.trade.lower().strip() == wanted:
                return pref
        return None

    @classmethod
    def from_dict(cls, data: dict) -> "ContractorProfile":
        trades = [
            Trade(
                trade=str(_pick(t, "trade", default="")),
                licensed=_to_bool(_pick(t, "licensed", default=False)),
                license_number=_pick(t, "license_number", "licenseNumber"),
                insurance_verified=_to_bool(
                    _pick(t, "insurance_verified", "insuranceVerified", default=False)
                ),
            )
            for t in _pick(data, "trades", default=[])
        ]
        areas = [
            ServiceArea(
                city=str(_pick(a, "city", default="")),
                state=str(_pick(a, "state", default="")),
                latitude=_to_float(_pick(a, "latitude", "lat")),
                longitude=_to_float(_pick(a, "longitude", "lon", "lng")),
                radius_miles=_to_float(_pick(a, "radius_miles", "radiusMiles", default=25)),
            )
            for a in _pick(data, "service_areas", "serviceAreas", default=[])
        ]
        prefs = [
            RatePreference(
                trade=str(_pick(p, "trade", default="")),
                min_rate=_to_float(_pick(p, "min_rate", "minRate")),
                preferred_rate=_to_float(_pick(p, "preferred_rate", "preferredRate")),
                max_rate=_to_float(_pick(p, "max_rate", "maxRate")),
            )
            for p in _pick(data, "rate_preferences", "ratePreferences", default=[])
        ]
        windows = [
            AvailabilityWindow(
                start_date=_to_date(_pick(w, "start_date", "startDate")),
                end_date=_to_date(_pick(w, "end_date", "endDate")),
                status=_to_enum(
                    AvailabilityStatus, _pick(w, "status"), AvailabilityStatus.AVAILABLE
                ),
            )
            for w in _pick(data, "availability", default=[])
        ]
        neg = _pick(data, "negotiation", "negotiationPreferences", default={})
        negotiation = NegotiationPreferences(
            auto_negotiate=_to_bool(_pick(neg, "auto_negotiate", "autoNegotiate", default=False)),
            auto_accept=_to_bool(_pick(neg, "auto_accept", "autoAccept", default=False)),
            strategy=_to_enum(Strategy, _pick(neg, "strategy"), Strategy.SPLIT),
        )
        return cls(
            id=str(_pick(data, "id", default="")),
            name=str(_pick(data, "name", default="")),
            trades=trades,
            service_areas=areas,
            rate_preferences=prefs,
            availability=windows,
            negotiation=negotiation,
        )


# ── Engine output ────────────────────────────────────────────────────────


@dataclass
class SuggestedOffer:
    rate: float
    start_date: date
    end_date: date


@dataclass
class RateEvaluation:
    acceptable: bool
    score: int
    suggested_rate: float | None = None
    min_acceptable: float | None = None


@dataclass
class Evaluation:
    matches: bool = True
    score: int = 0
    reasons: list[str] = field(default_factory=list)
    suggested_offer: SuggestedOffer | None = None
    auto_respond: bool = False


@dataclass
class Offer:
    id: str
    request_id: str
    contractor_id: str
    rate: float
    start_date: date
    end_date: date
    message: str = ""
    round: int = 1
    status: OfferStatus = OfferStatus.PENDING
    offer_id: str | None = None
    strategy: Strategy | None = None

    def accept(self) -> None:
        self._settle(OfferStatus.ACCEPTED)

    def decline(self) -> None:
        self._settle(OfferStatus.DECLINED)

    def _settle(self, status: OfferStatus) -> None:
        if self.status is not OfferStatus.PENDING:
            raise OfferStateError(f"Offer {self.id} is already {self.status.value}")
        self.status = status


@dataclass
class Reputation:
    average_score: float
    total_ratings: int


@dataclass
class RankedOffer:
    offer: Offer
    match_score: float
    reputation: Reputation | None = None


# ── Validation ───────────────────────────────────────────────────────────


def _check_coordinates(lat: float | None, lon: float | None, label: str, problems: list[str]) -> None:
    if lat is None and lon is None:
        return
    if lat is None or lon is None:
        problems.append(f"{label}: latitude and longitude must be given together")
        return
    if not (math.isfinite(lat) and math.isfinite(lon)):
        problems.append(f"{label}: coordinates must be finite")
    elif not (-90 <= lat <= 90 and -180 <= lon <= 180):
        problems.append(f"{label}: coordinates out of range ({lat}, {lon})")


def validate_request(request: JobRequest) -> None:
    """Raise ValidationError listing every problem with *request*."""
    problems: list[str] = []
    if not (request.trade or "").strip():
        problems.append("trade is required")
    if request.start_date is None or request.end_date is None:
        problems.append("start_date and end_date are required")
    elif request.start_date > request.end_date:
        problems.append("start_date is after end_date")
    if request.min_rate is None or request.max_rate is None:
        problems.append("min_rate and max_rate are required")
    else:
        if request.min_rate < 0 or request.max_rate < 0:
            problems.append("rates must be non-negative")
        if request.min_rate > request.max_rate:
            problems.append(f"min_rate {request.min_rate} exceeds max_rate {request.max_rate}")
    _check_coordinates(request.latitude, request.longitude, "request", problems)
    if request.requirements is not None and not isinstance(request.requirements, str):
        problems.append(
            f"requirements must be comma-separated text, got {type(request.requirements).__name__}"
        )
    if not isinstance(request.status, RequestStatus):
        problems.append(f"unknown request status {request.status!r}")
    if problems:
        raise ValidationError(problems)


def validate_profile(profile: ContractorProfile) -> None:
    """Raise ValidationError listing every problem with *profile*."""
    problems: list[str] = []
    for t in profile.trades:
        if not (t.trade or "").strip():
            problems.append("trade entry without a name")
    for i, area in enumerate(profile.service_areas):
        _check_coordinates(area.latitude, area.longitude, f"service area {i}", problems)
        if area.radius_miles is None or area.radius_miles <= 0:
            problems.append(f"service area {i}: radius must be positive")
    for pref in profile.rate_preferences:
        rates = (pref.min_rate, pref.preferred_rate, pref.max_rate)
        if any(r is None for r in rates):
            problems.append(f"rate preference {pref.trade!r}: min, preferred and max are required")
        elif not pref.min_rate <= pref.preferred_rate <= pref.max_rate:
            problems.append(
                f"rate preference {pref.trade!r}: expected min <= preferred <= max, "
                f"got {pref.min_rate}/{pref.preferred_rate}/{pref.max_rate}"
            )
    for i, window in enumerate(profile.availability):
        if window.start_date is None or window.end_date is None:
            problems.append(f"availability window {i}: dates are required")
        elif window.start_date > window.end_date:
            problems.append(f"availability window {i}: start_date is after end_date")
    if not isinstance(profile.negotiation.strategy, Strategy):
        problems.append(f"unknown strategy {profile.negotiation.strategy!r}")
    if problems:
        raise ValidationError(problems)
