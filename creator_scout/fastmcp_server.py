"""Creator Scout MCP Server - FastMCP Implementation

Exposes channel lookup, related channel discovery and content idea generation
as MCP tools. Supports both stdio and Streamable HTTP transports.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from fastmcp import FastMCP

from .aggregator import KeywordSearchRanker
from .config import Config
from .ideas import ContentIdeaGenerator
from .keywords import KeywordExtractor
from .models import DiscoveryResult, DiscoveryStatus
from .similarity import SimilarityRanker
from .summarizer import TextAnalyzer, create_analyzer
from .youtube_client import YouTubeClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

config = Config()

# Create FastMCP server
mcp = FastMCP(name=config.mcp_server_name)

# Global clients (initialized on first use)
youtube_client: Optional[YouTubeClient] = None
analyzer: Optional[TextAnalyzer] = None


def initialize_clients() -> bool:
    """Initialize API clients (lazy initialization); False if YouTube access is not configured"""
    global youtube_client, analyzer

    if youtube_client is not None:
        return True

    missing_keys = config.validate_keys()
    if missing_keys:
        logger.error(f"Missing configuration: {', '.join(missing_keys)}")
        logger.error("Please set these in your .env file or environment variables")

    try:
        youtube_client = YouTubeClient(config=config)
    except ValueError as e:
        logger.error(f"Cannot initialize YouTube client: {e}")
        return False

    analyzer = create_analyzer(config)
    logger.info("Clients initialized")
    return True


def _configuration_error() -> str:
    return json.dumps(
        {
            "error": "YouTube API key is not configured",
            "status": DiscoveryStatus.CONFIGURATION_MISSING.value,
        }
    )


def _channel_lookup_error(channel: str, errors_before: int) -> str:
    if youtube_client.error_count > errors_before:
        return json.dumps(
            {
                "error": "YouTube could not be reached. Try again later.",
                "status": DiscoveryStatus.UPSTREAM_UNAVAILABLE.value,
            }
        )
    return json.dumps({"error": f"Channel not found: {channel}"})


def _format_discovery(channel: str, method: str, result: DiscoveryResult) -> str:
    real_channels = result.status != DiscoveryStatus.DEMO_DATA
    response = {
        "channel": channel,
        "method": method,
        "status": result.status.value,
        "related_channels": [
            {
                "channel_id": candidate.channel_id,
                "title": candidate.title,
                "url": candidate.url if candidate.channel_id and real_channels else None,
                "match_score": candidate.match_score,
                "category": candidate.category,
                "notes": candidate.notes,
                "subscribers": candidate.subscriber_count,
                "videos": candidate.video_count,
                "total_views": candidate.view_count,
                "thumbnail": candidate.thumbnails.medium or candidate.thumbnails.default,
            }
            for candidate in result.channels
        ],
    }
    if result.keywords:
        response["keywords"] = result.keywords
    if result.records:
        response["analysis"] = [record.model_dump() for record in result.records]
    if result.status == DiscoveryStatus.NO_CANDIDATES:
        response["message"] = "No related channels found. Try a different channel."
    elif result.status == DiscoveryStatus.UPSTREAM_UNAVAILABLE:
        response["message"] = "YouTube could not be reached. Try again later."
    elif result.status == DiscoveryStatus.DEMO_DATA:
        response["message"] = "AI analysis unavailable; showing demo data."
    return json.dumps(response, indent=2)


def get_channel_info(channel: str) -> str:
    """Get metadata for a YouTube channel.

    Args:
        channel: Channel URL, '@handle', legacy username or channel ID

    Returns:
        JSON string with channel metadata
    """
    if not initialize_clients():
        return _configuration_error()

    logger.info(f"Fetching channel info for: {channel}")
    errors_before = youtube_client.error_count
    metadata = youtube_client.get_channel(channel)
    if not metadata:
        return _channel_lookup_error(channel, errors_before)

    response = {
        "channel_id": metadata.channel_id,
        "title": metadata.title,
        "description": metadata.description,
        "custom_url": metadata.custom_url,
        "url": metadata.url,
        "thumbnails": metadata.thumbnails.model_dump(),
        "banner_url": metadata.banner_url,
        "statistics": {
            "subscribers": metadata.subscriber_count,
            "videos": metadata.video_count,
            "total_views": metadata.view_count,
        },
        "uploads_playlist_id": metadata.uploads_playlist_id,
    }
    return json.dumps(response, indent=2)


def get_recent_videos(
    channel: str,
    n: int = 10,
    sort: str = "date",
    published_after: Optional[str] = None,
) -> str:
    """Get a channel's latest or most viewed uploads.

    Args:
        channel: Channel URL, '@handle', legacy username or channel ID
        n: Number of videos (default: 10, max: 50)
        sort: "date" (newest first, default) or "views" (most viewed first)
        published_after: Only videos published after this ISO date (e.g. '2024-01-01')

    Returns:
        JSON string with video details and statistics
    """
    if not initialize_clients():
        return _configuration_error()

    if n < 1 or n > 50:
        return json.dumps({"error": "n must be between 1 and 50"})
    if sort not in ("date", "views"):
        return json.dumps({"error": "sort must be 'date' or 'views'"})

    after_dt = None
    if published_after:
        try:
            after_dt = datetime.fromisoformat(published_after.replace("Z", "+00:00"))
        except ValueError as e:
            return json.dumps({"error": f"Invalid date format: {str(e)}"})
        if after_dt.tzinfo is None:
            after_dt = after_dt.replace(tzinfo=timezone.utc)

    errors_before = youtube_client.error_count
    metadata = youtube_client.get_channel(channel)
    if not metadata:
        return _channel_lookup_error(channel, errors_before)

    if sort == "views":
        videos = youtube_client.get_top_videos(metadata.channel_id, n, published_after=after_dt)
    else:
        videos = youtube_client.get_recent_videos(metadata.channel_id, n)
        if after_dt:
            videos = [
                video for video in videos
                if video.published_at and video.published_at > after_dt
            ]

    response = {
        "channel": metadata.title,
        "sort": sort,
        "videos": [
            {
                "video_id": video.video_id,
                "title": video.title,
                "url": video.url,
                "published_at": video.published_at.isoformat() if video.published_at else None,
                "duration_seconds": video.duration_seconds,
                "views": video.view_count,
                "likes": video.like_count,
                "comments": video.comment_count,
                "thumbnail": video.thumbnails.medium or video.thumbnails.default,
            }
            for video in videos
        ],
    }
    return json.dumps(response, indent=2)


def find_related_channels(
    channel: str,
    method: str = "llm",
    resolve: bool = True,
    min_subscribers: Optional[int] = None,
    max_subscribers: Optional[int] = None,
) -> str:
    """Find YouTube channels similar to the given one.

    Methods:
    - llm: AI similarity analysis of the channel and its recent titles
      (falls back to demo data when AI analysis is unavailable)
    - keywords: channels that keep appearing in searches for the channel's
      keywords, limited to a subscriber range

    Args:
        channel: Channel URL, '@handle', legacy username or channel ID
        method: "llm" (default) or "keywords"
        resolve: For "llm", look up each suggested channel on YouTube
        min_subscribers: For "keywords", lower subscriber bound (default 10,000)
        max_subscribers: For "keywords", upper subscriber bound (default 500,000)

    Returns:
        JSON string with ranked related channels and a status
    """
    if method not in ("llm", "keywords"):
        return json.dumps({"error": "method must be 'llm' or 'keywords'"})

    if not initialize_clients():
        if method == "llm":
            return _format_discovery(channel, method, SimilarityRanker(None).rank(channel, "", []))
        return _configuration_error()

    if method == "llm":
        ranker = SimilarityRanker(analyzer, youtube_client)
        result = ranker.find_for_channel(channel, resolve=resolve)
        return _format_discovery(channel, method, result)

    errors_before = youtube_client.error_count
    seed = youtube_client.get_channel(channel)
    if not seed:
        return _channel_lookup_error(channel, errors_before)

    ranker = KeywordSearchRanker(youtube_client, KeywordExtractor(analyzer), config)
    result = ranker.find_related_channels(seed.channel_id, min_subscribers, max_subscribers)
    return _format_discovery(channel, method, result)


def generate_content_ideas(channel: str, count: int = 5) -> str:
    """Generate video ideas from a channel, its recent uploads and its similar channels.

    Args:
        channel: Channel URL, '@handle', legacy username or channel ID
        count: Number of ideas (default: 5, max: 10)

    Returns:
        JSON string with content ideas
    """
    if count < 1 or count > 10:
        return json.dumps({"error": "count must be between 1 and 10"})

    if not initialize_clients():
        return _configuration_error()
    if analyzer is None:
        return json.dumps({"error": "AI analysis is not configured"})

    errors_before = youtube_client.error_count
    seed = youtube_client.get_channel(channel)
    if not seed:
        return _channel_lookup_error(channel, errors_before)

    related = SimilarityRanker(analyzer, youtube_client).find_for_channel(seed.channel_id)
    if not related.found:
        return json.dumps(
            {"error": "No related channels found. Please find related channels first."}
        )

    videos = youtube_client.get_recent_videos(seed.channel_id, 10)
    ideas = ContentIdeaGenerator(analyzer).generate_ideas(seed, videos, related.channels, count)
    if not ideas:
        return json.dumps({"error": "Could not generate content ideas. Try again later."})

    response = {
        "channel": seed.title,
        "related_channels": [candidate.title for candidate in related.channels[:5]],
        "ideas": [idea.model_dump() for idea in ideas],
    }
    return json.dumps(response, indent=2)


def generate_video_script(channel: str, idea_title: str, idea_description: str = "") -> str:
    """Write a full video script for a content idea.

    Args:
        channel: Channel URL, '@handle', legacy username or channel ID
        idea_title: Title of the video idea
        idea_description: Short description of the idea

    Returns:
        JSON string with the Markdown script
    """
    if not initialize_clients():
        return _configuration_error()
    if analyzer is None:
        return json.dumps({"error": "AI analysis is not configured"})

    errors_before = youtube_client.error_count
    seed = youtube_client.get_channel(channel)
    if not seed:
        return _channel_lookup_error(channel, errors_before)

    script = ContentIdeaGenerator(analyzer).generate_script(
        seed.title, seed.url, idea_title, idea_description
    )
    if not script:
        return json.dumps({"error": "Failed to generate script. Please try again later."})

    return json.dumps({"channel": seed.title, "title": idea_title, "script": script}, indent=2)


for tool in (
    get_channel_info,
    get_recent_videos,
    find_related_channels,
    generate_content_ideas,
    generate_video_script,
):
    mcp.tool()(tool)

# Startup message
logger.info("Creator Scout MCP Server initialized")
logger.info(f"Server name: {config.mcp_server_name}")
