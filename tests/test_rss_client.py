"""Tests for the RSS/Atom news client."""
import pytest

from wolfpack_feeds.data.sources import NetworkError, ParseError, RSSClient, parse_feed
from wolfpack_feeds.data.sources.rss_client import extract_image_url, strip_html

FEED_URL = "https://news.example.com/rss.xml"
OTHER_URL = "https://other.example.com/rss.xml"

RSS_DOC = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Backing The Pack</title>
    <link>https://www.backingthepack.com/</link>
    <description>NC State news</description>
    <item>
      <title>Wolfpack edge Alpha State</title>
      <link>https://www.backingthepack.com/game-recap</link>
      <guid isPermaLink="false">recap-1</guid>
      <pubDate>Sat, 17 Oct 2026 23:30:00 GMT</pubDate>
      <dc:creator>Jane Writer</dc:creator>
      <category>Basketball</category>
      <category>Game Recap</category>
      <description><![CDATA[<p><img src="https://cdn.example.com/recap.jpg" alt="recap" />The <b>Wolfpack</b> held on late.</p>]]></description>
    </item>
  </channel>
</rss>
"""

RSS_MINIMAL_ITEM = """<?xml version="1.0"?>
<rss version="2.0">
  <channel>
    <title>Feed</title>
    <link>https://other.example.com/</link>
    <description>x</description>
    <item>
      <description>Just text</description>
      <pubDate>Mon, 12 Oct 2026 10:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""

ATOM_DOC = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Pack</title>
  <link href="https://atom.example.com/"/>
  <updated>2026-10-18T12:00:00Z</updated>
  <id>urn:atom-pack</id>
  <entry>
    <title>Recruiting update</title>
    <link href="https://atom.example.com/recruit"/>
    <id>urn:entry-1</id>
    <updated>2026-10-18T12:00:00Z</updated>
    <author><name>Sam Scout</name></author>
    <category term="Recruiting"/>
    <summary>New commitment for the class.</summary>
  </entry>
</feed>
"""

NOT_A_FEED = """<?xml version="1.0"?>
<html><body><p>Service unavailable</p></body></html>
"""

RSS_WITHOUT_CHANNEL = """<?xml version="1.0"?>
<rss version="2.0"><item><title>Stray item</title></item></rss>
"""

RDF_DOC = """<?xml version="1.0"?>
<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#" xmlns="http://purl.org/rss/1.0/">
  <channel rdf:about="https://rdf.example.com/">
    <title>RDF Pack</title>
    <link>https://rdf.example.com/</link>
    <description>x</description>
  </channel>
  <item rdf:about="https://rdf.example.com/1">
    <title>RDF item</title>
    <link>https://rdf.example.com/1</link>
  </item>
</rdf:RDF>
"""


@pytest.fixture
def client(cache, session) -> RSSClient:
    return RSSClient(cache=cache, feed_url=FEED_URL, session=session)


class TestParseFeed:
    def test_rss_item(self):
        feed = parse_feed(RSS_DOC.encode(), FEED_URL)

        assert feed.title == "Backing The Pack"
        assert len(feed.articles) == 1

        article = feed.articles[0]
        assert article.image_url == "https://cdn.example.com/recap.jpg"
        assert article.description == "The Wolfpack held on late."
        assert "<" not in article.description
        assert article.categories == frozenset({"Basketball", "Game Recap"})
        assert article.author == "Jane Writer"
        assert article.guid == "recap-1"
        assert article.published_at.year == 2026
        assert article.published_at.tzinfo is not None

    def test_defaults_for_missing_fields(self):
        feed = parse_feed(RSS_MINIMAL_ITEM.encode(), OTHER_URL)

        article = feed.articles[0]
        assert article.title == "Untitled"
        assert article.author == "Unknown"
        assert article.guid == "guid-0"
        assert article.categories == frozenset()
        assert article.image_url is None

    def test_atom(self):
        feed = parse_feed(ATOM_DOC.encode(), "https://atom.example.com/feed")

        article = feed.articles[0]
        assert feed.title == "Atom Pack"
        assert article.link == "https://atom.example.com/recruit"
        assert article.author == "Sam Scout"
        assert article.categories == frozenset({"Recruiting"})

    def test_malformed_feed_rejected(self):
        with pytest.raises(ParseError):
            parse_feed(NOT_A_FEED.encode(), FEED_URL)

    @pytest.mark.parametrize(
        "document",
        [
            '<?xml version="1.0"?><rss version="2.0"></rss>',
            "<rss><item/></rss>",
            RSS_WITHOUT_CHANNEL,
            RDF_DOC,
        ],
        ids=["empty-rss", "bare-item", "item-without-channel", "rdf"],
    )
    def test_missing_channel_rejected(self, document):
        with pytest.raises(ParseError):
            parse_feed(document.encode(), FEED_URL)

    def test_str_input_is_parsed_as_document(self):
        feed = parse_feed(RSS_DOC, FEED_URL)
        assert len(feed.articles) == 1


class TestHelpers:
    def test_extract_first_image(self):
        markup = '<img src="a.jpg"><img src="b.jpg">'
        assert extract_image_url(markup) == "a.jpg"

    def test_extract_single_quoted_image(self):
        assert extract_image_url("<IMG alt='x' SRC='c.png'>") == "c.png"

    def test_strip_html(self):
        assert strip_html("<p>One &amp; <i>two</i></p>\n  three") == "One & two three"
        assert strip_html("") == ""


class TestRSSClient:
    async def test_fetch_articles(self, client, session):
        session.add(FEED_URL, RSS_DOC)

        articles = await client.fetch_articles()

        assert [a.guid for a in articles] == ["recap-1"]

    async def test_cached_under_url(self, client, session):
        session.add(FEED_URL, RSS_DOC)

        await client.fetch_articles()
        await client.fetch_articles()

        assert session.calls(FEED_URL) == 1
        assert await client.cache.exists(FEED_URL)

    async def test_ttl_ten_minutes(self, client, session, clock):
        session.add(FEED_URL, RSS_DOC)

        await client.fetch_articles()
        clock.advance(599)
        await client.fetch_articles()
        assert session.calls(FEED_URL) == 1

        clock.advance(1)
        await client.fetch_articles()
        assert session.calls(FEED_URL) == 2

    async def test_malformed_feed_is_an_error(self, client, session):
        session.add(FEED_URL, NOT_A_FEED)

        with pytest.raises(ParseError):
            await client.fetch_articles()

        assert not await client.cache.exists(FEED_URL)

    async def test_http_error(self, client, session):
        session.add(FEED_URL, "gone", status=410)

        with pytest.raises(NetworkError):
            await client.fetch_articles()

    async def test_feed_info(self, client, session):
        session.add(FEED_URL, RSS_DOC)

        info = await client.fetch_feed_info()

        assert info["title"] == "Backing The Pack"
        assert info["link"] == "https://www.backingthepack.com/"

    async def test_combined_skips_failed_feeds(self, client, session):
        session.add(FEED_URL, RSS_DOC)
        session.add(OTHER_URL, RSS_MINIMAL_ITEM)

        articles = await client.fetch_combined(
            [FEED_URL, OTHER_URL, "https://down.example.com/rss"], limit=10
        )

        # Newest first
        assert [a.guid for a in articles] == ["recap-1", "guid-0"]

    async def test_combined_skips_unexpected_errors(self, client, session):
        session.add(FEED_URL, RSS_DOC)
        session.fail(OTHER_URL, RuntimeError("connection reset by peer"))

        articles = await client.fetch_combined([FEED_URL, OTHER_URL])

        assert [a.guid for a in articles] == ["recap-1"]
