"""Tests for keyword extraction and both related-channel discovery pipelines"""

from unittest.mock import MagicMock

import pytest

from creator_scout.aggregator import (
    KeywordSearchRanker,
    merge_and_filter,
    tally_search_hits,
    top_candidates,
)
from creator_scout.config import Config
from creator_scout.keywords import KeywordExtractor, fallback_keywords, parse_keyword_list
from creator_scout.models import ChannelSummary, DiscoveryStatus, SearchHit, VideoSummary
from creator_scout.similarity import DEMO_RESPONSE, SimilarityRanker, normalize_score

SEED = "UCseedseedseedseedseed00"


def video(title, tags=None):
    return VideoSummary(video_id=title[:8], title=title, tags=tags or [])


def summary(channel_id, subscribers):
    return ChannelSummary(channel_id=channel_id, title=channel_id, subscriber_count=str(subscribers))


class FakeYouTube:
    """Stand-in for YouTubeClient with canned responses"""

    def __init__(self, top_videos=None, searches=None, channels=None, fail_searches=False, fail_lookups=False):
        self.config = Config(max_concurrent_searches=3, request_delay_seconds=0)
        self.error_count = 0
        self.top_videos = top_videos or []
        self.searches = searches or {}
        self.channels = {channel.channel_id: channel for channel in channels or []}
        self.fail_searches = fail_searches
        self.fail_lookups = fail_lookups
        self.batch_requests = []

    def get_top_videos(self, channel_id, limit=10, published_after=None):
        return self.top_videos[:limit]

    def search_videos_by_keyword(self, keyword, limit=25):
        if self.fail_searches:
            self.error_count += 1
            return []
        return [SearchHit(channel_id=cid, channel_title=title) for cid, title in self.searches.get(keyword, [])]

    def get_channels_batch(self, channel_ids):
        self.batch_requests.append(list(channel_ids))
        # API order differs from request order
        return [self.channels[cid] for cid in reversed(channel_ids) if cid in self.channels]

    def search_channel(self, name):
        if self.fail_lookups:
            self.error_count += 1
            return None
        return self.channels.get(name)


class FixedExtractor:
    def __init__(self, keywords):
        self.keywords = keywords

    def extract(self, videos):
        return list(self.keywords)


# Keyword extraction

def test_fallback_keywords_tags_then_title_words():
    videos = [
        video("Retro Gaming: Best NES games!", tags=["retro gaming", "nes"]),
        video("Why the SNES still rules", tags=["snes", "nes"]),
    ]
    assert fallback_keywords(videos) == [
        "retro gaming",
        "nes",
        "snes",
        "retro",
        "gaming",
        "best",
        "games",
        "still",
        "rules",
    ]


def test_fallback_keywords_is_deterministic_and_bounded():
    videos = [video(" ".join(f"word{i}{j}" for j in range(6))) for i in range(5)]
    first = fallback_keywords(videos)
    assert len(first) == 10
    assert first == fallback_keywords(videos)


def test_extractor_without_analyzer_uses_fallback():
    videos = [video("Speedrunning Zelda", tags=["zelda"])]
    assert KeywordExtractor().extract(videos) == ["zelda", "speedrunning"]


def test_extractor_parses_model_answer():
    analyzer = MagicMock()
    analyzer.complete.return_value = "retro gaming, nes reviews ,  snes  ,retro gaming"
    keywords = KeywordExtractor(analyzer).extract([video("x")])
    assert keywords == ["retro gaming", "nes reviews", "snes"]


def test_extractor_falls_back_when_model_unavailable():
    analyzer = MagicMock()
    analyzer.complete.return_value = None
    assert KeywordExtractor(analyzer).extract([video("Pixel art tutorial")]) == ["pixel", "tutorial"]


def test_extractor_never_raises():
    analyzer = MagicMock()
    analyzer.complete.side_effect = RuntimeError("boom")
    assert KeywordExtractor(analyzer).extract([video("Pixel art tutorial")]) == []
    assert KeywordExtractor(analyzer).extract([]) == []


def test_parse_keyword_list_strips_bullets_and_quotes():
    assert parse_keyword_list('1. "retro games"\n- nes\n* snes') == ["retro games", "nes", "snes"]


# Aggregation

def test_tally_excludes_seed_and_keeps_last_title():
    pages = [
        [SearchHit(channel_id="A", channel_title="A old"), SearchHit(channel_id=SEED)],
        [SearchHit(channel_id="A", channel_title="A new"), SearchHit(channel_id="B", channel_title="B")],
    ]
    tally = tally_search_hits(SEED, pages)
    assert SEED not in tally
    assert tally["A"].count == 2
    assert tally["A"].title == "A new"
    assert tally["B"].count == 1


def test_top_candidates_orders_by_count_then_first_seen():
    pages = [[SearchHit(channel_id=c) for c in "ABCB"], [SearchHit(channel_id=c) for c in "CD"]]
    ranked = top_candidates(tally_search_hits(SEED, pages), limit=3)
    assert [channel_id for channel_id, _ in ranked] == ["B", "C", "A"]


def test_subscriber_band_filter():
    candidates = top_candidates(tally_search_hits(SEED, [[SearchHit(channel_id=c) for c in "xyz"]]))
    summaries = [summary("x", 5000), summary("y", 50000), summary("z", 600000)]
    ranked = merge_and_filter(candidates, summaries, 10000, 500000)
    assert [candidate.channel_id for candidate in ranked] == ["y"]
    assert ranked[0].match_score == 1


def keyword_world(**kwargs):
    searches = {
        "retro": [("A", "Alpha"), ("B", "Beta"), (SEED, "Seed")],
        "nes": [("B", "Beta"), ("C", "Gamma"), (SEED, "Seed")],
        "snes": [("B", "Beta"), ("A", "Alpha"), ("D", "Delta")],
    }
    channels = [summary("A", 20000), summary("B", 300000), summary("C", 40000), summary("D", 900000), summary(SEED, 100000)]
    return FakeYouTube(top_videos=[video("Retro NES")], searches=searches, channels=channels, **kwargs)


def test_keyword_pipeline_ranks_by_frequency():
    youtube = keyword_world()
    ranker = KeywordSearchRanker(youtube, FixedExtractor(["retro", "nes", "snes"]))

    result = ranker.find_related_channels(SEED)

    assert result.status == DiscoveryStatus.OK
    assert [(c.channel_id, c.match_score) for c in result.channels] == [("B", 3), ("A", 2), ("C", 1)]
    assert all(isinstance(c.match_score, int) for c in result.channels)
    assert all(c.channel_id != SEED for c in result.channels)
    assert SEED not in youtube.batch_requests[0]
    assert result.keywords == ["retro", "nes", "snes"]


def test_keyword_pipeline_is_deterministic():
    first = KeywordSearchRanker(keyword_world(), FixedExtractor(["retro", "nes", "snes"])).find_related_channels(SEED)
    second = KeywordSearchRanker(keyword_world(), FixedExtractor(["retro", "nes", "snes"])).find_related_channels(SEED)
    assert first.model_dump_json() == second.model_dump_json()


def test_keyword_pipeline_caps_keywords():
    youtube = keyword_world()
    searched = []
    original = youtube.search_videos_by_keyword

    def record(keyword, limit=25):
        searched.append(keyword)
        return original(keyword, limit)

    youtube.search_videos_by_keyword = record
    KeywordSearchRanker(youtube, FixedExtractor([f"k{i}" for i in range(8)])).find_related_channels(SEED)
    assert sorted(searched) == ["k0", "k1", "k2", "k3", "k4"]


def test_no_top_videos_is_empty_result():
    result = KeywordSearchRanker(FakeYouTube(), FixedExtractor(["retro"])).find_related_channels(SEED)
    assert result.channels == []
    assert result.status == DiscoveryStatus.NO_CANDIDATES


def test_no_keywords_is_empty_result():
    result = KeywordSearchRanker(keyword_world(), FixedExtractor([])).find_related_channels(SEED)
    assert result.channels == []
    assert result.status == DiscoveryStatus.NO_CANDIDATES


def test_failed_searches_report_upstream_unavailable():
    youtube = keyword_world(fail_searches=True)
    result = KeywordSearchRanker(youtube, FixedExtractor(["retro"])).find_related_channels(SEED)
    assert result.channels == []
    assert result.status == DiscoveryStatus.UPSTREAM_UNAVAILABLE


def test_band_filter_eliminating_everything_is_no_candidates():
    result = KeywordSearchRanker(keyword_world(), FixedExtractor(["retro"])).find_related_channels(
        SEED, min_subscribers=1_000_000, max_subscribers=2_000_000
    )
    assert result.status == DiscoveryStatus.NO_CANDIDATES


# LLM similarity

LLM_ANSWER = """```csv
Rank,Channel Name,Niche/Category,Similarity Score (0-10),Notes
1,Alpha,Gaming,7.5,"Close match, same games"
2,Nobody Knows,Gaming,9,Made up by the model
3,Beta,Gaming,8.2,Longer videos
4,Gamma,Tech,14,Score out of range
```"""


def llm_analyzer(answer=LLM_ANSWER):
    analyzer = MagicMock()
    analyzer.complete.return_value = answer
    return analyzer


def test_similarity_without_resolution_keeps_all_records():
    result = SimilarityRanker(llm_analyzer()).rank("Seed", "https://youtube.com/channel/x", ["t1", "t2"], resolve=False)

    assert result.status == DiscoveryStatus.OK
    assert [c.title for c in result.channels] == ["Nobody Knows", "Beta", "Alpha", "Gamma"]
    assert result.channels[-1].match_score == 0.0
    assert result.channels[2].notes == "Close match, same games"
    assert len(result.records) == 4
    assert result.raw_response == LLM_ANSWER


def test_similarity_resolution_drops_unknown_names():
    youtube = FakeYouTube(channels=[
        ChannelSummary(channel_id="Alpha", title="Alpha", subscriber_count="1000"),
        ChannelSummary(channel_id="Beta", title="Beta"),
        ChannelSummary(channel_id="Gamma", title="Gamma"),
    ])
    result = SimilarityRanker(llm_analyzer(), youtube).rank("Seed", "url", ["t"])

    assert [(c.channel_id, c.match_score) for c in result.channels] == [("Beta", 8.2), ("Alpha", 7.5), ("Gamma", 0.0)]
    assert result.channels[1].subscriber_count == 1000
    assert result.channels[1].category == "Gaming"


def test_similarity_excludes_seed_channel():
    youtube = FakeYouTube(channels=[ChannelSummary(channel_id="Alpha", title="Alpha")])
    result = SimilarityRanker(llm_analyzer(), youtube).rank("Seed", "url", [], exclude_channel_id="Alpha")
    assert result.channels == []
    assert result.status == DiscoveryStatus.NO_CANDIDATES


def test_similarity_failed_lookups_report_upstream_unavailable():
    youtube = FakeYouTube(fail_lookups=True)
    analyzer = llm_analyzer("1,Alpha,Gaming,8\n2,Beta,Gaming,7")

    result = SimilarityRanker(analyzer, youtube).rank("Seed", "url", ["t"])

    assert result.channels == []
    assert result.status == DiscoveryStatus.UPSTREAM_UNAVAILABLE
    assert len(result.records) == 2


def test_similarity_prompt_caps_titles():
    analyzer = llm_analyzer()
    SimilarityRanker(analyzer).rank("Seed", "url", [f"title {i}" for i in range(30)], resolve=False)
    prompt = analyzer.complete.call_args.args[1]
    assert "title 19" in prompt
    assert "title 20" not in prompt


@pytest.mark.parametrize("analyzer", [None, llm_analyzer(answer=None)])
def test_similarity_falls_back_to_demo_data(analyzer):
    result = SimilarityRanker(analyzer).rank("Seed", "url", ["t"])

    assert result.status == DiscoveryStatus.DEMO_DATA
    assert [c.title for c in result.channels] == [
        "Gaming Enthusiast",
        "Tech Reviews Pro",
        "Creative Tutorials",
        "Digital Marketing Mastery",
    ]
    assert result.raw_response == DEMO_RESPONSE
    assert result.found


def test_similarity_unparseable_answer_is_no_candidates():
    result = SimilarityRanker(llm_analyzer("I cannot help with that.")).rank("Seed", "url", [])
    assert result.status == DiscoveryStatus.NO_CANDIDATES
    assert not result.found


def test_find_for_channel_unknown_seed():
    youtube = MagicMock(error_count=0)
    youtube.get_channel.return_value = None
    result = SimilarityRanker(llm_analyzer(), youtube, request_delay=0).find_for_channel("@nobody")
    assert result.status == DiscoveryStatus.NO_CANDIDATES


def test_find_for_channel_uses_recent_titles():
    youtube = MagicMock(error_count=0)
    youtube.get_channel.return_value = ChannelSummary(channel_id=SEED, title="Seed")
    youtube.get_recent_videos.return_value = [video("Latest upload")]
    analyzer = llm_analyzer()

    result = SimilarityRanker(analyzer, youtube, request_delay=0).find_for_channel("@seed", resolve=False)

    assert result.status == DiscoveryStatus.OK
    youtube.get_recent_videos.assert_called_once_with(SEED, 10)
    assert "Latest upload" in analyzer.complete.call_args.args[1]


@pytest.mark.parametrize("score,expected", [(7.5, 7.5), (0, 0), (10, 10), (10.5, 0), (-1, 0)])
def test_normalize_score(score, expected):
    assert normalize_score(score) == expected
