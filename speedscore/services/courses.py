"""Golf course lookup, search and maintenance."""

import re
from typing import Any, Dict, Iterable, List, Optional

from rank_bm25 import BM25Okapi

from speedscore.models.models import Course
from speedscore.services.base import BaseService
from speedscore.utils.logger_config import get_logger

logger = get_logger("course_service")

_TOKEN = re.compile(r"[a-z0-9]+")


def tokenize(text: str) -> List[str]:
    return _TOKEN.findall((text or "").lower())


def _course_text(course: Course) -> str:
    parts = [course.short_name, course.name]
    address = course.extra.get("address")
    if isinstance(address, str):
        parts.append(address)
    return " ".join(p for p in parts if p)


def rank_courses(query: str, courses: Iterable[Course], max_results: int = 10) -> List[Course]:
    """
    Rank courses by relevance of their names to ``query`` using BM25.

    Courses sharing no word with the query are left out. Ties in BM25 score
    are broken by the number of query words matched.
    """
    courses = list(courses)
    query_tokens = tokenize(query)
    if not courses or not query_tokens:
        return []

    tokenized_corpus = [tokenize(_course_text(course)) or [""] for course in courses]
    bm25 = BM25Okapi(tokenized_corpus)
    scores = bm25.get_scores(query_tokens)

    query_set = set(query_tokens)
    overlaps = [len(query_set.intersection(doc)) for doc in tokenized_corpus]
    candidates = [i for i in range(len(courses)) if overlaps[i] > 0]
    top_indices = sorted(candidates, key=lambda i: (scores[i], overlaps[i]), reverse=True)[:max_results]

    logger.debug(f"Ranked {len(candidates)} of {len(courses)} courses for query {query!r}")
    return [courses[i] for i in top_indices]


class CourseService(BaseService):

    def list_courses(self, use_cache: bool = False) -> List[Course]:
        """All courses; with ``use_cache`` the session copy is used when present"""
        if use_cache and self.session.courses:
            return [Course.from_dict(c) for c in self.session.courses]
        data = self.client.get("courses", context="Failed to fetch courses") or []
        self.session.cache_courses(data)
        return [Course.from_dict(c) for c in data]

    def search(self, query: str, category: str = "Name", limit: Optional[int] = None) -> List[Course]:
        """Server-side course search; ``category`` selects the field searched"""
        payload: Dict[str, Any] = {"searchString": query, "category": category}
        if limit:
            payload["limit"] = limit
        data = self.client.post("courses/search", json=payload, context="Failed to search courses") or []
        return [Course.from_dict(c) for c in data]

    def search_cached(self, query: str, max_results: int = 10) -> List[Course]:
        """Rank the cached courses locally, fetching them first if the cache is empty"""
        return rank_courses(query, self.list_courses(use_cache=True), max_results)

    def get(self, course_id: str) -> Course:
        return Course.from_dict(self.client.get(f"courses/{course_id}", context="Failed to fetch course"))

    def get_by_ids(self, course_ids: List[str]) -> List[Course]:
        data = self.client.post("courses/fetch-by-ids", json={"courseIds": course_ids},
                                context="Failed to fetch courses") or []
        return [Course.from_dict(c) for c in data]

    def add(self, course: Dict[str, Any]) -> Course:
        data = self.client.post("courses", json=course, context="Failed to add course")
        logger.info(f"Added course {course.get('shortName') or course.get('name')}")
        return Course.from_dict(data)

    def update(self, course_id: str, course: Dict[str, Any]) -> Course:
        return Course.from_dict(self.client.put(f"courses/{course_id}", json=course, context="Failed to update course"))

    def update_info(self, course_id: str, course_info: Dict[str, Any]) -> Course:
        data = self.client.put(f"courses/update-course-info/{course_id}", json=course_info,
                               context="Failed to update course info")
        return Course.from_dict(data)

    def find_cached(self, short_name: str) -> Optional[Course]:
        """Case-insensitive lookup by short name in the session cache"""
        for data in self.session.courses:
            course = Course.from_dict(data)
            if course.short_name.lower() == (short_name or "").lower():
                return course
        return None
