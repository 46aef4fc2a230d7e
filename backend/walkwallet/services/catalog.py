# Overview: Server-side price lists for metro tickets and reward offers.

"""
Pricing Catalog

WHY: Prices are computed on the server from selection parameters
(station pair, ticket type, reward offer) so clients cannot submit their
own totals.

METRO FARE:
    fare = base + per_station * |index(from) - index(to)|
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from walkwallet.money import quantize
from walkwallet.validation import ValidationError
from ..models.purchases import (
    TICKET_SINGLE, TICKET_RETURN, TICKET_DAY_PASS, VALID_TICKET_TYPES,
    REWARD_SPOTIFY, REWARD_MOVIE_TICKET, REWARD_OTT_SUBSCRIPTION,
)


METRO_STATIONS = (
    "Central Metro Station",
    "City Center",
    "Business District",
    "University Campus",
    "Shopping Mall",
    "Airport Terminal",
    "Sports Complex",
    "Medical Center",
    "Tech Park",
    "Old Town",
    "Marina Bay",
    "Green Valley",
)

# ticket_type -> (base, per_station)
TICKET_PRICES = {
    TICKET_SINGLE: (Decimal("25"), Decimal("5")),
    TICKET_RETURN: (Decimal("45"), Decimal("8")),
    TICKET_DAY_PASS: (Decimal("150"), Decimal("0")),
}


@dataclass(frozen=True)
class RewardOffer:
    id: str
    reward_type: str
    provider: str
    title: str
    duration: str
    original_price: Decimal
    discount_percent: int
    coins_required: Decimal
    description: str

    @property
    def discount_amount(self) -> Decimal:
        return quantize(self.original_price * self.discount_percent / Decimal(100))

    @property
    def final_price(self) -> Decimal:
        return quantize(self.original_price - self.discount_amount)

    def default_metadata(self) -> dict:
        return {"title": self.title, "duration": self.duration, "description": self.description}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "rewardType": self.reward_type,
            "provider": self.provider,
            "title": self.title,
            "duration": self.duration,
            "originalPrice": f"{quantize(self.original_price):.2f}",
            "discountPercent": self.discount_percent,
            "discountAmount": f"{self.discount_amount:.2f}",
            "finalPrice": f"{self.final_price:.2f}",
            "coinsRequired": f"{quantize(self.coins_required):.2f}",
            "description": self.description,
        }


REWARD_OFFERS = (
    RewardOffer("spotify-premium-1month", REWARD_SPOTIFY, "spotify", "Spotify Premium", "1 Month",
                Decimal("119"), 25, Decimal("30"), "Ad-free music, offline downloads, unlimited skips"),
    RewardOffer("spotify-premium-3month", REWARD_SPOTIFY, "spotify", "Spotify Premium", "3 Months",
                Decimal("357"), 35, Decimal("125"), "3 months of premium music streaming"),
    RewardOffer("bookmyshow-movie", REWARD_MOVIE_TICKET, "bookmyshow", "Movie Ticket", "Any Show",
                Decimal("250"), 40, Decimal("100"), "Valid for any movie at participating theaters"),
    RewardOffer("pvr-premium-movie", REWARD_MOVIE_TICKET, "pvr", "PVR Premium Ticket", "Any Show",
                Decimal("400"), 30, Decimal("120"), "Premium movie experience with recliner seats"),
    RewardOffer("netflix-mobile", REWARD_OTT_SUBSCRIPTION, "netflix", "Netflix Mobile", "1 Month",
                Decimal("149"), 50, Decimal("75"), "Mobile-only Netflix subscription"),
    RewardOffer("prime-video-1month", REWARD_OTT_SUBSCRIPTION, "amazon-prime", "Prime Video", "1 Month",
                Decimal("179"), 35, Decimal("65"), "Amazon Prime Video subscription"),
    RewardOffer("hotstar-super-3month", REWARD_OTT_SUBSCRIPTION, "hotstar", "Disney+ Hotstar Super", "3 Months",
                Decimal("299"), 45, Decimal("135"), "Sports, movies, and TV shows"),
    RewardOffer("zee5-premium-1month", REWARD_OTT_SUBSCRIPTION, "zee5", "ZEE5 Premium", "1 Month",
                Decimal("99"), 60, Decimal("60"), "Regional and Bollywood content"),
)

_OFFERS_BY_ID = {offer.id: offer for offer in REWARD_OFFERS}


def station_index(name: str) -> int:
    try:
        return METRO_STATIONS.index(name)
    except ValueError:
        raise ValidationError(f"Unknown station: {name}")


def ticket_price(from_station: str, to_station: str, ticket_type: str) -> Decimal:
    if ticket_type not in VALID_TICKET_TYPES:
        raise ValidationError(f"Invalid ticket type: {ticket_type}. Must be one of {list(VALID_TICKET_TYPES)}")
    if from_station == to_station:
        raise ValidationError("fromStation and toStation must differ")

    distance = abs(station_index(from_station) - station_index(to_station))
    base, per_station = TICKET_PRICES[ticket_type]
    return quantize(base + per_station * distance)


def get_offer(offer_id: str) -> RewardOffer | None:
    return _OFFERS_BY_ID.get(offer_id)


def find_offer(*, provider: str | None, reward_type: str | None, original_price: Decimal | None) -> RewardOffer | None:
    """
    Resolve an offer from the fields older clients send (no offer id).
    original_price disambiguates providers with several plans.
    """
    matches = [
        offer for offer in REWARD_OFFERS
        if offer.provider == provider and offer.reward_type == reward_type
    ]
    if original_price is not None:
        matches = [offer for offer in matches if quantize(offer.original_price) == quantize(original_price)]
    if len(matches) == 1:
        return matches[0]
    return None


def stations_payload() -> dict:
    return {
        "stations": list(METRO_STATIONS),
        "ticketPrices": {
            ticket_type: {"base": f"{base:.2f}", "perStation": f"{per_station:.2f}"}
            for ticket_type, (base, per_station) in TICKET_PRICES.items()
        },
    }
