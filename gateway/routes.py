from dataclasses import dataclass
from typing import List, Optional

from .config import Settings


@dataclass(frozen=True)
class Route:
    name: str
    prefix: str
    upstream: str


def build_routes(config: Settings) -> List[Route]:
    return [
        Route(name="news", prefix="/api/news", upstream=config.NEWS_SERVICE_URL),
        Route(name="users", prefix="/api/users", upstream=config.USERS_SERVICE_URL),
    ]


def match_route(routes: List[Route], path: str) -> Optional[Route]:
    """Longest prefix that matches on a path-segment boundary"""
    candidates = [
        r for r in routes
        if path == r.prefix or path.startswith(r.prefix.rstrip("/") + "/")
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda r: len(r.prefix))
