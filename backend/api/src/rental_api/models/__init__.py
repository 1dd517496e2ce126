"""API-specific request/response models.

Domain models (Product, Reservation, PriceCalculation, ...) are in
rental_shared.models and are reused here where appropriate.

Modules:
- common: Date-range request base, health and validation models
- availability: Availability check request
- pricing: Quote and pricing-tier models
- checkout: Checkout session and webhook models
- orders: Office order models
"""

__all__: list[str] = []
