"""
Great-circle distance.

Two renditions of the same Haversine formula:
- haversine_km: pure Python, used for single pairs and in tests
- haversine_expression: a Django ORM expression, so the database computes
  distance per row and can filter / sort on it

    a = sin²(Δlat/2) + cos(lat1)·cos(lat2)·sin²(Δlng/2)
    d = 2·R·atan2(√a, √(1-a))
"""
import math

from django.db.models import ExpressionWrapper, F, FloatField, Value
from django.db.models.functions import ATan2, Cos, Least, Power, Radians, Sin, Sqrt

EARTH_RADIUS_KM = 6371.0

# length of one degree of latitude on the sphere above
KM_PER_DEGREE = 2 * math.pi * EARTH_RADIUS_KM / 360


def haversine_km(a, b) -> float:
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlng = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    # float noise can push h a hair above 1 for antipodal points
    h = min(h, 1.0)
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def _f(value):
    return Value(float(value), output_field=FloatField())


def haversine_expression(origin, lat_field='latitude', lng_field='longitude'):
    """
    Distance in km between `origin` and the row's (lat_field, lng_field).

    Every literal is a FloatField Value so the combined expression never mixes
    types. Rows with NULL coordinates evaluate to NULL.
    """
    dlat = Radians(F(lat_field) - _f(origin.latitude))
    dlng = Radians(F(lng_field) - _f(origin.longitude))
    cos_origin = _f(math.cos(math.radians(origin.latitude)))

    a = (
        Power(Sin(dlat / _f(2)), _f(2))
        + cos_origin * Cos(Radians(F(lat_field))) * Power(Sin(dlng / _f(2)), _f(2))
    )
    a = Least(a, _f(1))

    return ExpressionWrapper(
        _f(2 * EARTH_RADIUS_KM) * ATan2(Sqrt(a), Sqrt(_f(1) - a)),
        output_field=FloatField(),
    )


def bounding_box(origin, radius_km):
    """
    (min_lat, max_lat, min_lng, max_lng) enclosing every point within radius_km
    of origin, or None when the box would cross a pole or the antimeridian.

    Only a pre-filter: the exact distance check still runs afterwards.
    """
    dlat = radius_km / KM_PER_DEGREE
    min_lat = origin.latitude - dlat
    max_lat = origin.latitude + dlat
    if min_lat < -90 or max_lat > 90:
        return None

    # widest longitude span is at the box edge furthest from the equator
    edge_lat = max(abs(min_lat), abs(max_lat))
    dlng = radius_km / (KM_PER_DEGREE * math.cos(math.radians(edge_lat)))
    min_lng = origin.longitude - dlng
    max_lng = origin.longitude + dlng
    if min_lng < -180 or max_lng > 180:
        return None

    return min_lat, max_lat, min_lng, max_lng
