"""Search keyword extraction from a channel's videos"""

import logging
import re
from typing import Optional

from .models import VideoSummary
from .summarizer import TextAnalyzer

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 10
MIN_TOKEN_LENGTH = 4

SYSTEM_PROMPT = """You are a YouTube search expert.
Given the titles, descriptions and tags of a channel's best videos, return the
search queries a viewer would type to find videos like these.

Respond with a single comma-separated list of at most 10 short queries
(1-4 words each) and nothing else."""


def fallback_keywords(videos: list[VideoSummary], limit: int = MAX_KEYWORDS) -> list[str]:
    """
    Derive keywords locally: every tag verbatim, then long words from the titles

    Deterministic for a given input; order is first-seen order.
    """
    keywords: dict[str, None] = {}

    for video in videos:
        for tag in video.tags:
            if tag:
                keywords.setdefault(tag, None)

    for video in videos:
        for token in re.split(r"\W+", video.title.lower()):
            if len(token) >= MIN_TOKEN_LENGTH:
                keywords.setdefault(token, None)

    return list(keywords)[:limit]


def parse_keyword_list(content: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """Parse a comma (or newline) separated model answer into trimmed keywords"""
    keywords: dict[str, None] = {}
    for entry in re.split(r"[,\n]", content):
        entry = re.sub(r"^\s*(?:[-*•]|\d+[.)])\s*", "", entry).strip().strip("\"'`").strip()
        if entry:
            keywords.setdefault(entry, None)
    return list(keywords)[:limit]


class KeywordExtractor:
    """Turn video metadata into search queries, with a local fallback"""

    def __init__(self, analyzer: Optional[TextAnalyzer] = None):
        self.analyzer = analyzer

    def extract(self, videos: list[VideoSummary]) -> list[str]:
        """
        Extract up to 10 search keywords

        Args:
            videos: Videos representative of the channel

        Returns:
            Keyword list (empty if nothing could be derived)
        """
        if not videos:
            return []

        try:
            if self.analyzer is not None:
                content = self.analyzer.complete(SYSTEM_PROMPT, self._build_prompt(videos))
                if content:
                    keywords = parse_keyword_list(content)
                    if keywords:
                        logger.info(f"Extracted keywords: {', '.join(keywords)}")
                        return keywords
                logger.info("AI keyword extraction returned nothing, using local keywords")

            return fallback_keywords(videos)

        except Exception as e:
            logger.error(f"Error extracting keywords: {e}")
            return []

    @staticmethod
    def _build_prompt(videos: list[VideoSummary]) -> str:
        blocks = []
        for video in videos:
            blocks.append(
                f"Title: {video.title}\n"
                f"Description: {video.description[:300]}\n"
                f"Tags: {', '.join(video.tags)}"
            )
        return "\n\n".join(blocks)
