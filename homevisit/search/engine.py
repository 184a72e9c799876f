"""
GeoSearchEngine: SearchFilter -> Page[RankedResult].

Read-only. The engine knows nothing about practitioners or pharmacies; a
CatalogSource (sources.py) supplies the base queryset, the coordinate fields
and the sort keys.

Steps:
1. AND every active predicate
2. with an origin: drop rows without coordinates, bounding-box pre-filter,
   annotate distance_km, keep distance_km <= radius_km
3. order by the requested key, then pk so pages are stable
4. count, then slice
5. report distance rounded to 2 decimals, capped at radius_km
"""
import logging

from django.db.models import Q

from ..pagination import paginate
from .distance import bounding_box, haversine_expression
from .predicates import combine
from .types import RankedResult

logger = logging.getLogger(__name__)


def _reported(distance_km, radius_km):
    # 2 decimals for display, never past the radius the row was filtered on
    return min(round(distance_km, 2), float(radius_km))


class GeoSearchEngine:

    def __init__(self, source):
        self.source = source

    def search(self, search_filter):
        source = self.source
        queryset = source.queryset().filter(combine(search_filter.predicates))

        origin = search_filter.origin
        if origin is not None:
            lat, lng = source.lat_field, source.lng_field
            queryset = queryset.filter(**{f'{lat}__isnull': False, f'{lng}__isnull': False})

            box = bounding_box(origin, search_filter.radius_km)
            if box is not None:
                min_lat, max_lat, min_lng, max_lng = box
                queryset = queryset.filter(
                    Q(**{f'{lat}__range': (min_lat, max_lat)}) & Q(**{f'{lng}__range': (min_lng, max_lng)})
                )

            queryset = queryset.annotate(
                distance_km=haversine_expression(origin, lat, lng),
            ).filter(distance_km__lte=search_filter.radius_km)

        ordering = source.ordering(search_filter.sort_by, has_origin=origin is not None)
        queryset = queryset.order_by(*ordering, 'pk')

        page = paginate(queryset, search_filter.page, search_filter.limit)
        page.data = [
            RankedResult(
                entity=row,
                distance_km=_reported(row.distance_km, search_filter.radius_km) if origin is not None else None,
            )
            for row in page.data
        ]

        logger.debug(
            "search %s origin=%s radius=%s sort=%s -> %d/%d",
            source.name, origin, search_filter.radius_km, search_filter.sort_by,
            len(page.data), page.total,
        )
        return page
