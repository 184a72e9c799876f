"""
Catalog sources and filter builders.

A source tells GeoSearchEngine where to look (base queryset), which fields
hold the coordinates, and how each sort key maps to an ORDER BY.

The *_filter builders turn the validated query params produced by
schemas.py (snake_case dicts) into SearchFilters.
"""
from django.db.models import F

from ..models import Pharmacy, PractitionerProfile
from .predicates import AtLeast, AtMost, Equals, IContains, ListContains
from .types import Coordinate, SearchFilter


class CatalogSource:
    name = ''
    lat_field = 'latitude'
    lng_field = 'longitude'
    # sort key -> order_by expressions; keys not listed use `fallback`
    sort_keys = {}
    fallback = []

    def queryset(self):
        raise NotImplementedError

    def ordering(self, sort_by, has_origin):
        if sort_by == 'distance':
            return [F('distance_km').asc()] if has_origin else self.fallback
        return self.sort_keys.get(sort_by, self.fallback)


class PractitionerSource(CatalogSource):
    """Verified, available practitioners whose account is active."""

    name = 'practitioners'
    sort_keys = {
        'rating': [F('rating_avg').desc()],
        'fee': [F('base_consultation_fee').asc(nulls_last=True)],
    }
    fallback = [F('rating_avg').desc()]

    def queryset(self):
        return PractitionerProfile.objects.select_related('user').filter(
            hpcz_verified=True,
            is_available=True,
            user__is_active=True,
        )


class PharmacySource(CatalogSource):
    """Active pharmacies. No rating or fee, so every non-distance sort is by name."""

    name = 'pharmacies'
    fallback = [F('name').asc()]

    def queryset(self):
        return Pharmacy.objects.filter(is_active=True)


def origin_from(params):
    """Both coordinates or nothing: a lone latitude is ignored."""
    latitude = params.get('latitude')
    longitude = params.get('longitude')
    if latitude is None or longitude is None:
        return None
    return Coordinate(latitude, longitude)


def _base(params, predicates, origin):
    return SearchFilter(
        predicates=predicates,
        origin=origin,
        radius_km=params.get('radius_km', 25),
        sort_by=params.get('sort_by', 'distance'),
        page=params.get('page', 1),
        limit=params.get('limit', 20),
    )


def practitioner_filter(params) -> SearchFilter:
    predicates = [
        Equals('practitioner_type', params.get('practitioner_type')),
        AtLeast('rating_avg', params.get('min_rating')),
        AtMost('base_consultation_fee', params.get('max_fee')),
        Equals('user__language_preference', params.get('language')),
        ListContains('specializations', params.get('specialization')),
        Equals('user__gender', params.get('gender')),
    ]
    return _base(params, predicates, origin_from(params))


def pharmacy_filter(params) -> SearchFilter:
    """
    GET /pharmacies/nearby and GET /search/pharmacies.

    The city match only applies to the non-geo listing; once an origin is
    given the radius decides.
    """
    origin = origin_from(params)
    predicates = [IContains('name', params.get('name'))]
    if origin is None:
        predicates.append(IContains('city', params.get('city')))
    return _base(params, predicates, origin)
