"""Related channel discovery through a language-model similarity analysis"""

import logging
import time
from typing import Optional

from .models import (
    ChannelSummary,
    DiscoveryResult,
    DiscoveryStatus,
    ParsedRecord,
    RankedCandidate,
)
from .summarizer import TextAnalyzer
from .table_decoder import decode_similarity_table
from .youtube_client import YouTubeClient

logger = logging.getLogger(__name__)

MAX_TITLES = 20
RECENT_VIDEOS = 10
MIN_SCORE = 0.0
MAX_SCORE = 10.0

SYSTEM_PROMPT = """You are a YouTube market analyst who knows which creators compete
for the same audience. Be precise and only name channels that exist."""

USER_PROMPT_TEMPLATE = """Find the 10 YouTube channels most similar to this channel.

Channel: {title}
URL: {url}
Recent video titles:
{titles}

Answer with a CSV table only, no other text, using exactly these columns:
Rank,Channel Name,Niche/Category,Similarity Score (0-10),Notes on similarity and differences
Quote any field that contains a comma."""

DEMO_RESPONSE = """Rank,Channel Name,Niche/Category,Similarity Score (0-10),Notes on similarity and differences
1,Gaming Enthusiast,Gaming & Let's Plays,8.5,"Strong match in gaming niche with similar focus on strategy games and RPGs. Creates similar tutorial and walkthrough content."
2,Tech Reviews Pro,Tech Reviews,7.2,"Similar presentation style and production value. Covers overlapping tech topics but with more focus on hardware reviews."
3,Creative Tutorials,Design & Creative Skills,6.8,"Similar tutorial format and teaching style. Different niche but comparable audience demographics and engagement patterns."
4,Digital Marketing Mastery,Digital Marketing,5.9,"Complementary content that appeals to similar business-oriented audience. Different primary topics but similar presentation style."
"""

_DEMO_STATISTICS = {
    "Gaming Enthusiast": (245_000, 312, 18_500_000),
    "Tech Reviews Pro": (420_000, 508, 61_200_000),
    "Creative Tutorials": (87_000, 190, 4_300_000),
    "Digital Marketing Mastery": (132_000, 274, 9_800_000),
}


def normalize_score(score: float) -> float:
    """Scores outside the 0-10 design range count as 0"""
    return score if MIN_SCORE <= score <= MAX_SCORE else 0.0


def candidate_from_record(
    record: ParsedRecord, channel: Optional[ChannelSummary] = None
) -> RankedCandidate:
    """Build a RankedCandidate from a decoded row, using real channel metadata when known"""
    if channel is not None:
        base = channel.model_dump()
    else:
        base = {"channel_id": "", "title": record.name, "description": record.notes}
    return RankedCandidate(
        **base,
        match_score=normalize_score(record.score),
        category=record.category,
        notes=record.notes,
    )


def demo_result() -> DiscoveryResult:
    """The built-in example dataset shown when the analysis service is unavailable"""
    records = decode_similarity_table(DEMO_RESPONSE)
    channels = []
    for position, record in enumerate(records, 1):
        subscribers, videos, views = _DEMO_STATISTICS.get(record.name, (0, 0, 0))
        channel = ChannelSummary(
            channel_id=f"demo-channel-{position}",
            title=record.name,
            description=record.notes,
            subscriber_count=subscribers,
            video_count=videos,
            view_count=views,
        )
        channels.append(candidate_from_record(record, channel))
    return DiscoveryResult(
        status=DiscoveryStatus.DEMO_DATA,
        channels=channels,
        records=records,
        raw_response=DEMO_RESPONSE,
    )


class SimilarityRanker:
    """Ask a language model for similar channels and resolve them to real channels"""

    def __init__(
        self,
        analyzer: Optional[TextAnalyzer],
        youtube: Optional[YouTubeClient] = None,
        request_delay: Optional[float] = None,
    ):
        self.analyzer = analyzer
        self.youtube = youtube
        if request_delay is None:
            request_delay = youtube.config.request_delay_seconds if youtube else 0.0
        self.request_delay = request_delay

    def find_for_channel(self, seed_channel_id: str, resolve: bool = True) -> DiscoveryResult:
        """
        Fetch the seed channel and its recent uploads, then rank similar channels

        Args:
            seed_channel_id: Channel ID, handle or channel URL
            resolve: Look up each suggested channel on YouTube

        Returns:
            DiscoveryResult
        """
        if self.youtube is None:
            logger.error("YouTube client not configured")
            return DiscoveryResult(status=DiscoveryStatus.CONFIGURATION_MISSING)

        errors_before = self.youtube.error_count
        channel = self.youtube.get_channel(seed_channel_id)
        if channel is None:
            status = (
                DiscoveryStatus.UPSTREAM_UNAVAILABLE
                if self.youtube.error_count > errors_before
                else DiscoveryStatus.NO_CANDIDATES
            )
            return DiscoveryResult(status=status)

        videos = self.youtube.get_recent_videos(channel.channel_id, RECENT_VIDEOS)
        return self.rank(
            channel.title,
            channel.url,
            [video.title for video in videos],
            resolve=resolve,
            exclude_channel_id=channel.channel_id,
        )

    def rank(
        self,
        channel_title: str,
        channel_url: str,
        recent_titles: list[str],
        resolve: bool = True,
        exclude_channel_id: str = "",
    ) -> DiscoveryResult:
        """
        Rank channels similar to the given one

        Args:
            channel_title: Display name of the seed channel
            channel_url: Canonical URL of the seed channel
            recent_titles: Recent video titles, newest first (first 20 are used)
            resolve: Look up each suggested channel on YouTube; unresolved names are dropped
            exclude_channel_id: Channel that must not appear in the result

        Returns:
            DiscoveryResult sorted by similarity score; the demo dataset if the
            analysis service is unavailable
        """
        if self.analyzer is None:
            logger.info("AI analysis not configured, showing demo data")
            return demo_result()

        titles = "\n".join(f"- {title}" for title in recent_titles[:MAX_TITLES]) or "- (none)"
        raw_response = self.analyzer.complete(
            SYSTEM_PROMPT,
            USER_PROMPT_TEMPLATE.format(title=channel_title, url=channel_url, titles=titles),
        )
        if raw_response is None:
            logger.info("Similarity analysis unavailable, showing demo data")
            return demo_result()

        records = decode_similarity_table(raw_response)
        if not records:
            logger.info(f"No similar channels decoded for {channel_title}")
            return DiscoveryResult(
                status=DiscoveryStatus.NO_CANDIDATES, raw_response=raw_response
            )

        lookups_failed = False
        if resolve and self.youtube is not None:
            errors_before = self.youtube.error_count
            channels = self._resolve(records, exclude_channel_id)
            lookups_failed = self.youtube.error_count > errors_before
        else:
            channels = [candidate_from_record(record) for record in records]

        channels.sort(key=lambda candidate: candidate.match_score, reverse=True)
        if channels:
            status = DiscoveryStatus.OK
        elif lookups_failed:
            status = DiscoveryStatus.UPSTREAM_UNAVAILABLE
        else:
            status = DiscoveryStatus.NO_CANDIDATES
        return DiscoveryResult(
            status=status, channels=channels, records=records, raw_response=raw_response
        )

    def _resolve(self, records: list[ParsedRecord], exclude_channel_id: str) -> list[RankedCandidate]:
        channels = []
        seen = {exclude_channel_id} if exclude_channel_id else set()

        for index, record in enumerate(records):
            if index and self.request_delay:
                time.sleep(self.request_delay)

            channel = self.youtube.search_channel(record.name)
            if channel is None:
                logger.info(f"Dropping unresolved channel '{record.name}'")
                continue
            if channel.channel_id in seen:
                continue
            seen.add(channel.channel_id)
            channels.append(candidate_from_record(record, channel))

        logger.info(f"Resolved {len(channels)} of {len(records)} suggested channels")
        return channels
