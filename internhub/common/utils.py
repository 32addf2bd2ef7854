from typing import Any, Dict, List, Optional


def paginate_query(query, page: int, per_page: int) -> Dict[str, Any]:
    """Paginate an ORM query"""
    page = max(1, page)
    per_page = max(1, min(per_page, 100))
    total = query.order_by(None).count()
    items: List[Any] = query.offset((page - 1) * per_page).limit(per_page).all()
    end = page * per_page
    return {
        'items': items,
        'pagination': {
            'page': page,
            'per_page': per_page,
            'total': total,
            'pages': (total + per_page - 1) // per_page,
            'has_next': end < total,
            'has_prev': page > 1
        }
    }


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip a string; blank becomes None"""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def percentage(part: float, whole: float) -> float:
    if whole <= 0:
        return 0.0
    return (part / whole) * 100
