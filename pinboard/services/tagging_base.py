"""
Pinboard API: Abstract Tagging Service Interface
==================================================

What:  Contract for services that look at a stored image or video and
       return descriptive tags.
Why:   Pin creation and the retagging tool depend on this interface, not on
       a particular vision model; tests substitute a mock.

Tag format (shared by all implementations):
    lower-case, characters outside [word, space, hyphen] removed,
    2..29 characters long, at most `max_tags` items, no duplicates.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import List

_DISALLOWED_TAG_CHARS = re.compile(r"[^\w\s-]")


def clean_tags(raw_tags: List[str], max_tags: int = 15) -> List[str]:
    """Normalize raw model output items into the tag format above."""
    tags: List[str] = []
    for raw in raw_tags:
        tag = _DISALLOWED_TAG_CHARS.sub("", str(raw).strip().lower()).strip()
        if 1 < len(tag) < 30 and tag not in tags:
            tags.append(tag)
        if len(tags) >= max_tags:
            break
    return tags


def parse_tag_text(text: str, max_tags: int = 15) -> List[str]:
    """
    Parse model output that is either a JSON array of strings or a
    comma-separated list. Markdown code fences around the JSON are ignored.
    """
    text = (text or "").strip()
    if not text:
        return []

    unfenced = text.strip("`").strip()
    if unfenced.lower().startswith("json"):
        unfenced = unfenced[4:].strip()

    if unfenced.startswith("["):
        try:
            parsed = json.loads(unfenced)
            if isinstance(parsed, list):
                return clean_tags([str(item) for item in parsed], max_tags)
        except json.JSONDecodeError:
            pass

    return clean_tags(unfenced.strip("[]").replace("\n", ",").split(","), max_tags)


def merge_tags(manual: List[str], generated: List[str], max_tags: int = 15) -> List[str]:
    """Manual tags first, then generated ones; de-duplicated."""
    return clean_tags(list(manual) + list(generated), max_tags)


class TaggingService(ABC):
    """
    Abstract interface for AI tag generation.

    Contract:
        - generate_tags() returns cleaned tags (possibly empty)
        - implementations handle their own retries
        - provider errors are wrapped in TaggingServiceError
    """

    @abstractmethod
    async def generate_tags(self, media_path: str, media_type: str = "image") -> List[str]:
        """
        Args:
            media_path: absolute path of the stored file
            media_type: "image" or "video" (selects the prompt)

        Raises:
            TaggingServiceError: provider failed after all retries
            CircuitBreakerOpenError: provider is being shielded after repeated failures
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability test; must not consume generation quota."""
        ...
