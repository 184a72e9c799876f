"""
Page envelope shared by every list endpoint.

{"data": [...], "meta": {"total", "page", "limit", "totalPages"}}
"""
import math
from dataclasses import dataclass, field


@dataclass
class Page:
    data: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self, serialize) -> dict:
        return {
            'data': [serialize(item) for item in self.data],
            'meta': {
                'total': self.total,
                'page': self.page,
                'limit': self.limit,
                'totalPages': self.total_pages,
            },
        }


def paginate(queryset, page: int, limit: int) -> Page:
    """Count first, then slice. Total is always the pre-pagination count."""
    total = queryset.count()
    offset = (page - 1) * limit
    rows = list(queryset[offset:offset + limit])
    return Page(data=rows, total=total, page=page, limit=limit)
