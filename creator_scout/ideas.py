"""AI-generated content ideas and video scripts"""

import json
import logging

from pydantic import ValidationError

from .models import ChannelSummary, ContentIdea, RankedCandidate, VideoSummary
from .summarizer import TextAnalyzer, strip_code_fence

logger = logging.getLogger(__name__)

MAX_RELATED_CHANNELS = 5

IDEAS_SYSTEM_PROMPT = """You are a YouTube content strategist.
Given a creator's channel, their recent videos and similar channels, propose new video ideas
that fit the creator's niche and borrow what works for the similar channels.

Your response must be in JSON format with the following structure:
{
    "ideas": [
        {
            "title": "Working title of the video",
            "description": "2-3 sentences on the content and angle",
            "target_audience": "Who the video is for",
            "inspired_by": ["Similar channel name", ...],
            "estimated_interest": "high" | "medium" | "low"
        }
    ]
}
"""

SCRIPT_SYSTEM_PROMPT = """You are an experienced YouTube scriptwriter.
Write a complete, engaging video script in Markdown with a hook, an intro,
clearly headed sections, and a call to action. Match the channel's tone."""


class ContentIdeaGenerator:
    """Generate video ideas and scripts for a channel"""

    def __init__(self, analyzer: TextAnalyzer):
        self.analyzer = analyzer

    def generate_ideas(
        self,
        channel: ChannelSummary,
        recent_videos: list[VideoSummary],
        related_channels: list[RankedCandidate],
        count: int = 5,
    ) -> list[ContentIdea]:
        """
        Generate content ideas

        Args:
            channel: The creator's channel
            recent_videos: The creator's recent uploads
            related_channels: Similar channels (the first 5 are used)
            count: Number of ideas to ask for

        Returns:
            List of ContentIdea objects (empty on failure)
        """
        related = "\n".join(
            f"- {candidate.title}"
            + (f" ({candidate.category})" if candidate.category else "")
            + (f": {candidate.notes}" if candidate.notes else "")
            for candidate in related_channels[:MAX_RELATED_CHANNELS]
        )
        videos = "\n".join(
            f"- {video.title} ({video.view_count:,} views)" for video in recent_videos
        )
        user_prompt = f"""Channel: {channel.title}
URL: {channel.url}
Description: {channel.description[:500]}

Recent videos:
{videos or "- (none)"}

Similar channels:
{related or "- (none)"}

Propose {count} video ideas."""

        content = self.analyzer.complete(
            IDEAS_SYSTEM_PROMPT, user_prompt, temperature=0.7, json_mode=True
        )
        if not content:
            return []

        try:
            result = json.loads(strip_code_fence(content))
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in content ideas response: {e}")
            return []

        raw_ideas = result.get("ideas", []) if isinstance(result, dict) else result
        if not isinstance(raw_ideas, list):
            logger.error("Content ideas response has no idea list")
            return []

        ideas = []
        for raw_idea in raw_ideas[:count]:
            try:
                ideas.append(ContentIdea.model_validate(raw_idea))
            except ValidationError as e:
                logger.warning(f"Skipping malformed idea: {e}")

        logger.info(f"Generated {len(ideas)} content ideas for {channel.title}")
        return ideas

    def generate_script(
        self,
        channel_title: str,
        channel_url: str,
        idea_title: str,
        idea_description: str,
    ) -> str:
        """
        Write a video script for an idea

        Returns:
            Markdown script, or an empty string on failure
        """
        user_prompt = f"""Channel: {channel_title}
URL: {channel_url}

Video title: {idea_title}
Concept: {idea_description}

Write the full script."""

        content = self.analyzer.complete(SCRIPT_SYSTEM_PROMPT, user_prompt, temperature=0.7)
        return content.strip() if content else ""
