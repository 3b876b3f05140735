"""schema.org JSON-LD payloads for location and appraiser pages."""

import os
import re

BASE_URL = os.environ.get("BASE_URL", "https://art-appraisers-directory.appraisily.com")
MAX_PROVIDERS = 50


def build_url(path: str) -> str:
    normalized = str(path or "").strip()
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    return BASE_URL + normalized


def plain_text(value) -> str:
    return re.sub(r"\s+", " ", str(value if value is not None else "")).strip()


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _aggregate_rating(rating, review_count) -> dict:
    return {
        "@type": "AggregateRating",
        "ratingValue": str(rating),
        "reviewCount": str(review_count),
        "bestRating": "5",
        "worstRating": "1",
    }


def _postal_address(city: str, state: str) -> dict:
    return {
        "@type": "PostalAddress",
        "addressLocality": city,
        "addressRegion": state or "",
        "addressCountry": "US",
    }


def _provider(appraiser: dict, city: str, state: str, location_url: str) -> dict:
    # Location pages link to the city-specific appraiser page, keyed by id
    appraiser_slug = appraiser.get("id") or appraiser.get("slug") or ""
    contact = appraiser.get("contact") or {}
    business = appraiser.get("business") or {}

    provider = {
        "@type": "LocalBusiness",
        "name": plain_text(appraiser.get("name") or "Art Appraiser"),
        "image": plain_text(appraiser.get("imageUrl") or ""),
        "address": _postal_address(city, state),
        "telephone": plain_text(contact.get("phone") or ""),
        "url": build_url(f"/appraiser/{appraiser_slug}/") if appraiser_slug else location_url,
        "sameAs": plain_text(contact.get("website") or ""),
    }
    rating = business.get("rating")
    review_count = business.get("reviewCount")
    if _is_number(rating) and _is_number(review_count):
        provider["aggregateRating"] = _aggregate_rating(rating, review_count)
    return provider


def _faq(location_label: str) -> list[dict]:
    pairs = [
        (
            f"Do you offer in-person appraisals in {location_label}?",
            f"Appraisily focuses on online appraisals. This directory lists local providers in "
            f"{location_label} so you can contact them directly, or use Appraisily for a fast "
            f"online alternative.",
        ),
        (
            "How does an online appraisal work?",
            "Submit clear photos, measurements, and any provenance. Our experts review the item "
            "and deliver a written valuation report online.",
        ),
        (
            "What should I prepare before requesting an appraisal?",
            "Provide multiple photos (front, back, details, marks), dimensions, condition notes, "
            "and any history or purchase information.",
        ),
        (
            "Can I still use a local appraiser?",
            f"Yes. Use this directory to contact in-person providers in {location_label}, or "
            f"request an online appraisal from Appraisily if you want a faster path.",
        ),
    ]
    return [
        {"@type": "Question", "name": q, "acceptedAnswer": {"@type": "Answer", "text": a}}
        for q, a in pairs
    ]


def build_location_schemas(slug: str, city: str, state: str, appraisers) -> tuple[dict, dict, dict]:
    """Return the (Service, BreadcrumbList, FAQPage) payloads for a city page.

    At most MAX_PROVIDERS appraisers are listed as providers.  A provider only
    carries an aggregateRating when both its rating and review count are
    numbers.
    """
    location_url = build_url(f"/location/{slug}/")
    location_label = f"{city}, {state}" if state else city
    appraisers = appraisers if isinstance(appraisers, list) else []

    providers = [
        _provider(a, city, state, location_url)
        for a in appraisers[:MAX_PROVIDERS]
        if isinstance(a, dict)
    ]

    area = {
        "@type": "City",
        "name": city,
        "address": _postal_address(city, state),
    }
    if state:
        area["containedInPlace"] = {"@type": "State", "name": state}

    location_schema = {
        "@context": "https://schema.org",
        "@type": "Service",
        "@id": location_url,
        "name": f"Art Appraisers in {location_label}",
        "description": (
            f"Find top-rated art appraisers near you in {location_label}. Compare local providers "
            f"and request a fast online appraisal from Appraisily."
        ),
        "serviceType": "Art Appraisal",
        "areaServed": area,
        "provider": providers,
        "mainEntityOfPage": {"@type": "WebPage", "@id": location_url},
    }

    breadcrumb_schema = {
        "@context": "https://schema.org",
        "@type": "BreadcrumbList",
        "itemListElement": [
            {"@type": "ListItem", "position": 1, "name": "Home", "item": build_url("/")},
            {
                "@type": "ListItem",
                "position": 2,
                "name": f"Art appraisers in {location_label}",
                "item": location_url,
            },
        ],
    }

    faq_schema = {
        "@context": "https://schema.org",
        "@type": "FAQPage",
        "mainEntity": _faq(location_label),
    }

    return location_schema, breadcrumb_schema, faq_schema


def build_appraiser_schema(appraiser: dict) -> dict:
    """ProfessionalService payload for a standardized appraiser record."""
    address = appraiser.get("address") or {}
    contact = appraiser.get("contact") or {}
    business = appraiser.get("business") or {}
    content = appraiser.get("content") or {}
    appraiser_slug = appraiser.get("id") or appraiser.get("slug") or ""

    schema = {
        "@context": "https://schema.org",
        "@type": "ProfessionalService",
        "name": plain_text(appraiser.get("name") or "Art Appraiser"),
        "image": plain_text(appraiser.get("imageUrl") or ""),
        "description": plain_text(content.get("about") or ""),
        "address": {
            "@type": "PostalAddress",
            "streetAddress": address.get("street", ""),
            "addressLocality": address.get("city", ""),
            "addressRegion": address.get("state", ""),
            "postalCode": address.get("zip", ""),
            "addressCountry": "US",
        },
        "url": build_url(f"/appraiser/{appraiser_slug}/"),
    }
    if contact.get("phone"):
        schema["telephone"] = contact["phone"]
    if contact.get("email"):
        schema["email"] = contact["email"]
    if business.get("pricing"):
        schema["priceRange"] = business["pricing"]

    hours = business.get("hours")
    if isinstance(hours, list) and hours:
        schema["openingHours"] = ", ".join(
            f"{h.get('day', '')} {h.get('hours', '')}".strip() for h in hours if isinstance(h, dict)
        )

    if _is_number(business.get("rating")) and _is_number(business.get("reviewCount")):
        schema["aggregateRating"] = _aggregate_rating(business["rating"], business["reviewCount"])

    reviews = appraiser.get("reviews")
    if isinstance(reviews, list) and reviews:
        schema["review"] = [
            {
                "@type": "Review",
                "author": {"@type": "Person", "name": r.get("author", "")},
                "reviewRating": {
                    "@type": "Rating",
                    "ratingValue": str(r.get("rating", "")),
                    "bestRating": "5",
                    "worstRating": "1",
                },
                "datePublished": r.get("date", ""),
                "reviewBody": r.get("content", ""),
            }
            for r in reviews
            if isinstance(r, dict)
        ]
    return schema
