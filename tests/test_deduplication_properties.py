"""Property-based tests for the deduplication engine.

Feature: crefeed
Tests first-seen URL de-duplication.
"""

from hypothesis import given, settings, strategies as st

from crefeed.engines.article import Article
from crefeed.engines.deduplication import deduplicate


@st.composite
def article_strategy(draw):
    """Generate an Article whose URL comes from a small pool, so duplicates occur."""
    url_id = draw(st.integers(min_value=1, max_value=8))
    source = draw(st.sampled_from(["Bisnow", "GlobeSt", "ConnectCRE"]))
    title = draw(st.text(min_size=1, max_size=30))
    return Article(
        title=title,
        url=f"https://example.com/article-{url_id}",
        source=source,
        published_date="2024-01-15",
    )


# Feature: crefeed, Property: De-duplication keeps first-seen
class TestDeduplicationFirstSeen:

    @given(articles=st.lists(article_strategy(), max_size=30))
    @settings(max_examples=100)
    def test_urls_unique_after_dedup(self, articles: list[Article]):
        result = deduplicate(articles)

        urls = [a.url for a in result.articles]
        assert len(urls) == len(set(urls))
        assert set(urls) == {a.url for a in articles}

    @given(articles=st.lists(article_strategy(), max_size=30))
    @settings(max_examples=100)
    def test_first_occurrence_kept_in_order(self, articles: list[Article]):
        result = deduplicate(articles)

        expected: dict[str, Article] = {}
        for article in articles:
            expected.setdefault(article.url, article)
        assert result.articles == list(expected.values())

    @given(articles=st.lists(article_strategy(), max_size=30))
    @settings(max_examples=100)
    def test_removed_count_matches(self, articles: list[Article]):
        result = deduplicate(articles)

        assert result.removed_count == len(articles) - len(result.articles)

    def test_shared_url_across_sources_keeps_earlier_source(self):
        x = Article(title="Deal", url="https://x.com/deal", source="Bisnow", published_date="")
        y = Article(title="Deal!", url="https://x.com/deal", source="GlobeSt", published_date="")

        result = deduplicate([x, y])

        assert result.articles == [x]
        assert result.removed_count == 1

    def test_empty_input(self):
        result = deduplicate([])

        assert result.articles == []
        assert result.removed_count == 0
