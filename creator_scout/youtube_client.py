"""YouTube Data API v3 client"""

import logging
import re
import threading
from datetime import datetime
from typing import Any, Optional

import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import Config
from .models import (
    ChannelSummary,
    IdentifierType,
    SearchHit,
    Thumbnails,
    VideoSummary,
)

logger = logging.getLogger(__name__)

MAX_BATCH_IDS = 20  # channels.list accepts a bounded id list; keep requests small

_URL_PATTERNS = (
    (re.compile(r"youtube\.com/channel/([^/?#]+)"), ""),
    (re.compile(r"youtube\.com/user/([^/?#]+)"), ""),
    (re.compile(r"youtube\.com/@([^/?#]+)"), "@"),
    (re.compile(r"youtube\.com/c/([^/?#]+)"), ""),
)


def extract_channel_identifier(url: str) -> Optional[str]:
    """
    Extract the channel identifier from a YouTube URL

    Handles /channel/<id>, /user/<name>, /@<handle> and /c/<name> URLs.
    Input that is not a URL is treated as an identifier already.

    Returns:
        Identifier (handles keep their '@'), or None for unrecognised URLs
    """
    url = url.strip()
    if not url:
        return None

    for pattern, prefix in _URL_PATTERNS:
        match = pattern.search(url)
        if match:
            return prefix + match.group(1)

    if "youtube.com" in url or "youtu.be" in url or "/" in url:
        return None
    return url


def classify_identifier(identifier: str) -> IdentifierType:
    """Classify an identifier as channel id, handle or legacy username (lexically)"""
    if identifier.startswith("@"):
        return IdentifierType.HANDLE
    if len(identifier) == 24 and " " not in identifier:
        return IdentifierType.ID
    return IdentifierType.USERNAME


class YouTubeClient:
    """Client for YouTube Data API v3

    Every public method is total: API and network failures are logged,
    counted in ``error_count`` and reported as None or an empty list.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[Config] = None,
        service: Any = None,
    ):
        self.config = config or Config()
        self.error_count = 0
        self._lock = threading.Lock()
        self._local = threading.local()

        if service is not None:
            self.youtube = service
            return

        self.api_key = api_key or self.config.youtube_api_key
        if not self.api_key:
            raise ValueError("YouTube API key is required")

        self.youtube = build(
            "youtube", "v3", developerKey=self.api_key, cache_discovery=False
        )

    def _http(self) -> httplib2.Http:
        # httplib2 connections must not be shared between threads
        if not hasattr(self._local, "http"):
            self._local.http = httplib2.Http(timeout=30)
        return self._local.http

    def _execute(self, request: Any, action: str) -> Optional[dict]:
        try:
            return request.execute(http=self._http())
        except HttpError as e:
            logger.error(f"YouTube API error while {action}: {e}")
        except Exception as e:
            logger.error(f"Error while {action}: {e}")
        with self._lock:
            self.error_count += 1
        return None

    def get_channel(self, identifier: str) -> Optional[ChannelSummary]:
        """
        Get channel metadata

        Args:
            identifier: Channel ID, '@handle', legacy username or channel URL

        Returns:
            ChannelSummary or None if not found
        """
        identifier = extract_channel_identifier(identifier) or ""
        if not identifier:
            logger.error("No channel identifier given")
            return None

        params = {"part": "snippet,contentDetails,statistics,brandingSettings"}
        kind = classify_identifier(identifier)
        if kind == IdentifierType.ID:
            params["id"] = identifier
        elif kind == IdentifierType.HANDLE:
            params["forHandle"] = identifier
        else:
            params["forUsername"] = identifier

        response = self._execute(
            self.youtube.channels().list(**params), f"fetching channel {identifier}"
        )
        if not response or not response.get("items"):
            logger.error(f"Channel not found: {identifier}")
            return None

        return self._parse_channel(response["items"][0])

    def get_channels_batch(self, channel_ids: list[str]) -> list[ChannelSummary]:
        """
        Get metadata for several channels in one request

        Args:
            channel_ids: Channel IDs (only the first 20 are requested)

        Returns:
            List of ChannelSummary objects (API order, missing channels omitted)
        """
        channel_ids = [channel_id for channel_id in channel_ids if channel_id]
        if not channel_ids:
            return []
        if len(channel_ids) > MAX_BATCH_IDS:
            logger.warning(
                f"Batch of {len(channel_ids)} channel ids truncated to {MAX_BATCH_IDS}"
            )
            channel_ids = channel_ids[:MAX_BATCH_IDS]

        response = self._execute(
            self.youtube.channels().list(
                part="snippet,contentDetails,statistics",
                id=",".join(channel_ids),
                maxResults=MAX_BATCH_IDS,
            ),
            "fetching channel batch",
        )
        if not response:
            return []

        return [self._parse_channel(item) for item in response.get("items", [])]

    def get_recent_videos(self, channel_id: str, limit: int = 10) -> list[VideoSummary]:
        """
        Get the latest uploads of a channel

        Args:
            channel_id: YouTube channel ID
            limit: Maximum number of videos (max 50 per request)

        Returns:
            List of VideoSummary objects, newest first
        """
        channel_response = self._execute(
            self.youtube.channels().list(part="contentDetails", id=channel_id),
            f"fetching uploads playlist of {channel_id}",
        )
        if not channel_response or not channel_response.get("items"):
            return []

        uploads_playlist_id = (
            channel_response["items"][0]
            .get("contentDetails", {})
            .get("relatedPlaylists", {})
            .get("uploads")
        )
        if not uploads_playlist_id:
            return []

        playlist_response = self._execute(
            self.youtube.playlistItems().list(
                part="contentDetails",
                playlistId=uploads_playlist_id,
                maxResults=min(50, max(limit, 1)),
            ),
            f"fetching playlist {uploads_playlist_id}",
        )
        if not playlist_response:
            return []

        video_ids = [
            item["contentDetails"]["videoId"]
            for item in playlist_response.get("items", [])
            if item.get("contentDetails", {}).get("videoId")
        ]
        return self.get_videos(video_ids)[:limit]

    def get_top_videos(
        self,
        channel_id: str,
        limit: int = 10,
        published_after: Optional[datetime] = None,
    ) -> list[VideoSummary]:
        """
        Get a channel's most viewed videos

        Args:
            channel_id: YouTube channel ID
            limit: Maximum number of videos (max 50)
            published_after: Only consider videos published after this time

        Returns:
            List of VideoSummary objects, most viewed first
        """
        params = {
            "part": "id",
            "channelId": channel_id,
            "type": "video",
            "order": "viewCount",
            "maxResults": min(50, max(limit, 1)),
        }
        if published_after:
            params["publishedAfter"] = published_after.isoformat().replace("+00:00", "Z")

        search_response = self._execute(
            self.youtube.search().list(**params), f"searching top videos of {channel_id}"
        )
        if not search_response:
            return []

        video_ids = [
            item["id"]["videoId"]
            for item in search_response.get("items", [])
            if item.get("id", {}).get("videoId")
        ]
        videos = self.get_videos(video_ids)
        videos.sort(key=lambda video: video.view_count, reverse=True)
        return videos[:limit]

    def get_videos(self, video_ids: list[str]) -> list[VideoSummary]:
        """Get details and statistics for up to 50 videos, keeping the given order"""
        if not video_ids:
            return []

        videos_response = self._execute(
            self.youtube.videos().list(
                part="snippet,statistics,contentDetails", id=",".join(video_ids[:50])
            ),
            "fetching video details",
        )
        if not videos_response:
            return []

        by_id = {}
        for item in videos_response.get("items", []):
            video = self._parse_video(item)
            by_id[video.video_id] = video
        return [by_id[video_id] for video_id in video_ids if video_id in by_id]

    def search_videos_by_keyword(self, keyword: str, limit: int = 25) -> list[SearchHit]:
        """
        Search videos matching a keyword

        Args:
            keyword: Free-text search query
            limit: Maximum number of results (max 50)

        Returns:
            One SearchHit per matching video, in search order
        """
        response = self._execute(
            self.youtube.search().list(
                part="snippet",
                q=keyword,
                type="video",
                maxResults=min(50, max(limit, 1)),
            ),
            f"searching videos for '{keyword}'",
        )
        if not response:
            return []

        hits = []
        for item in response.get("items", []):
            snippet = item.get("snippet", {})
            if snippet.get("channelId"):
                hits.append(
                    SearchHit(
                        channel_id=snippet["channelId"],
                        channel_title=snippet.get("channelTitle", ""),
                    )
                )
        return hits

    def search_channel(self, name: str) -> Optional[ChannelSummary]:
        """
        Resolve a channel display name to a real channel

        Args:
            name: Channel name as written by a person or a model

        Returns:
            ChannelSummary of the best search match, or None
        """
        name = name.strip()
        if not name:
            return None

        response = self._execute(
            self.youtube.search().list(part="snippet", q=name, type="channel", maxResults=1),
            f"searching channel '{name}'",
        )
        if not response or not response.get("items"):
            logger.info(f"No channel matches '{name}'")
            return None

        item = response["items"][0]
        channel_id = item.get("snippet", {}).get("channelId") or item.get("id", {}).get(
            "channelId"
        )
        if not channel_id:
            return None

        channels = self.get_channels_batch([channel_id])
        return channels[0] if channels else None

    def _parse_channel(self, item: dict) -> ChannelSummary:
        """Parse a channels.list item into ChannelSummary"""
        snippet = item.get("snippet", {})
        statistics = item.get("statistics", {})
        branding = item.get("brandingSettings", {})

        return ChannelSummary(
            channel_id=item["id"],
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            custom_url=snippet.get("customUrl", ""),
            thumbnails=Thumbnails.from_api(snippet.get("thumbnails")),
            banner_url=branding.get("image", {}).get("bannerExternalUrl", ""),
            subscriber_count=statistics.get("subscriberCount"),
            video_count=statistics.get("videoCount"),
            view_count=statistics.get("viewCount"),
            uploads_playlist_id=item.get("contentDetails", {})
            .get("relatedPlaylists", {})
            .get("uploads", ""),
        )

    def _parse_video(self, item: dict) -> VideoSummary:
        """Parse a videos.list item into VideoSummary"""
        snippet = item.get("snippet", {})
        statistics = item.get("statistics", {})
        duration = item.get("contentDetails", {}).get("duration", "PT0S")

        published_at = None
        if snippet.get("publishedAt"):
            published_at = datetime.fromisoformat(
                snippet["publishedAt"].replace("Z", "+00:00")
            )

        return VideoSummary(
            video_id=item["id"],
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            published_at=published_at,
            channel_id=snippet.get("channelId", ""),
            channel_title=snippet.get("channelTitle", ""),
            thumbnails=Thumbnails.from_api(snippet.get("thumbnails")),
            duration=duration,
            duration_seconds=self._parse_duration(duration),
            view_count=statistics.get("viewCount"),
            like_count=statistics.get("likeCount"),
            comment_count=statistics.get("commentCount"),
            tags=snippet.get("tags"),
        )

    @staticmethod
    def _parse_duration(duration_str: str) -> int:
        """
        Parse ISO 8601 duration to seconds

        Example: PT1H2M10S -> 3730 seconds
        """
        pattern = r"P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?"
        match = re.match(pattern, duration_str or "")

        if not match:
            return 0

        days = int(match.group(1) or 0)
        hours = int(match.group(2) or 0)
        minutes = int(match.group(3) or 0)
        seconds = int(match.group(4) or 0)

        return days * 86400 + hours * 3600 + minutes * 60 + seconds
