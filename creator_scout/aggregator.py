"""Related channel discovery by keyword-search frequency

The seed channel's best videos are reduced to search keywords; every channel
that shows up in those searches is tallied, and the most frequent ones are
returned with their metadata, filtered to a subscriber band.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from .config import Config
from .keywords import KeywordExtractor
from .models import (
    CandidateTally,
    ChannelSummary,
    DiscoveryResult,
    DiscoveryStatus,
    RankedCandidate,
    SearchHit,
)
from .youtube_client import MAX_BATCH_IDS, YouTubeClient

logger = logging.getLogger(__name__)

TOP_VIDEOS = 10
MAX_SEARCH_KEYWORDS = 5
SEARCH_RESULTS_PER_KEYWORD = 25
MAX_CANDIDATES = 20


def tally_search_hits(
    seed_channel_id: str, pages: Iterable[list[SearchHit]]
) -> dict[str, CandidateTally]:
    """Count channel appearances across search result pages, ignoring the seed channel"""
    tally: dict[str, CandidateTally] = {}
    for page in pages:
        for hit in page:
            if hit.channel_id == seed_channel_id:
                continue
            entry = tally.setdefault(hit.channel_id, CandidateTally())
            entry.count += 1
            entry.title = hit.channel_title
    return tally


def top_candidates(
    tally: dict[str, CandidateTally], limit: int = MAX_CANDIDATES
) -> list[tuple[str, CandidateTally]]:
    """Most frequent channels first; ties keep first-seen order"""
    return sorted(tally.items(), key=lambda item: item[1].count, reverse=True)[:limit]


def merge_and_filter(
    candidates: list[tuple[str, CandidateTally]],
    summaries: list[ChannelSummary],
    min_subscribers: int,
    max_subscribers: int,
) -> list[RankedCandidate]:
    """Attach match scores to channel metadata and keep channels inside the subscriber band"""
    by_id = {summary.channel_id: summary for summary in summaries}

    ranked = []
    for channel_id, entry in candidates:
        summary = by_id.get(channel_id)
        if summary is None:
            continue
        if not min_subscribers <= summary.subscriber_count <= max_subscribers:
            continue
        ranked.append(
            RankedCandidate(**summary.model_dump(), match_score=entry.count)
        )

    ranked.sort(key=lambda candidate: candidate.match_score, reverse=True)
    return ranked


class KeywordSearchRanker:
    """Find related channels through the channels that rank for the seed's keywords"""

    def __init__(
        self,
        youtube: YouTubeClient,
        extractor: Optional[KeywordExtractor] = None,
        config: Optional[Config] = None,
    ):
        self.youtube = youtube
        self.extractor = extractor or KeywordExtractor()
        self.config = config or youtube.config

    def find_related_channels(
        self,
        seed_channel_id: str,
        min_subscribers: Optional[int] = None,
        max_subscribers: Optional[int] = None,
    ) -> DiscoveryResult:
        """
        Discover channels related to the seed channel

        Args:
            seed_channel_id: Channel to find related channels for
            min_subscribers: Lower subscriber bound (default from config, 10,000)
            max_subscribers: Upper subscriber bound (default from config, 500,000)

        Returns:
            DiscoveryResult with channels sorted by how many searches surfaced them
        """
        if min_subscribers is None:
            min_subscribers = self.config.min_subscribers
        if max_subscribers is None:
            max_subscribers = self.config.max_subscribers

        errors_before = self.youtube.error_count
        keywords: list[str] = []

        try:
            videos = self.youtube.get_top_videos(seed_channel_id, TOP_VIDEOS)
            if not videos:
                logger.info(f"No top videos for {seed_channel_id}")
                return self._empty(errors_before)

            keywords = self.extractor.extract(videos)[:MAX_SEARCH_KEYWORDS]
            if not keywords:
                logger.info(f"No keywords extracted for {seed_channel_id}")
                return self._empty(errors_before)

            logger.info(f"Searching {len(keywords)} keywords for {seed_channel_id}")
            pages = self._search(keywords)

            candidates = top_candidates(tally_search_hits(seed_channel_id, pages))
            if not candidates:
                return self._empty(errors_before, keywords)

            summaries = self.youtube.get_channels_batch(
                [channel_id for channel_id, _ in candidates][:MAX_BATCH_IDS]
            )
            channels = merge_and_filter(
                candidates, summaries, min_subscribers, max_subscribers
            )
            if not channels:
                logger.info(
                    f"All {len(candidates)} candidates outside "
                    f"{min_subscribers}-{max_subscribers} subscribers"
                )
                return self._empty(errors_before, keywords)

            logger.info(f"Found {len(channels)} related channels for {seed_channel_id}")
            return DiscoveryResult(
                status=DiscoveryStatus.OK, channels=channels, keywords=keywords
            )

        except Exception as e:
            logger.error(f"Error finding related channels: {e}", exc_info=True)
            return DiscoveryResult(
                status=DiscoveryStatus.UPSTREAM_UNAVAILABLE, keywords=keywords
            )

    def _search(self, keywords: list[str]) -> list[list[SearchHit]]:
        # map() yields pages in keyword order whatever order the requests finish in
        with ThreadPoolExecutor(max_workers=self.config.max_concurrent_searches) as pool:
            return list(
                pool.map(
                    lambda keyword: self.youtube.search_videos_by_keyword(
                        keyword, SEARCH_RESULTS_PER_KEYWORD
                    ),
                    keywords,
                )
            )

    def _empty(self, errors_before: int, keywords: Optional[list[str]] = None) -> DiscoveryResult:
        status = (
            DiscoveryStatus.UPSTREAM_UNAVAILABLE
            if self.youtube.error_count > errors_before
            else DiscoveryStatus.NO_CANDIDATES
        )
        return DiscoveryResult(status=status, keywords=keywords or [])
