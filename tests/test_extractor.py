"""Tests for the content extractor."""

from conftest import html_page, prose

from regional_news.processing.extractor import ContentExtractor, extract_content, score_div_text
from regional_news.utils import count_words

FERRY = "the harbour ferry ran late again this morning because of strong winds over the bay."
PROMO = "please click here, subscribe now and share this with friends."
MAYOR = "Mayor Jones thanked Sussex crews."


def paragraphs(*texts: str) -> str:
    return "".join(f"<p>{text}</p>" for text in texts)


class TestBodyCascade:
    """Container strategies run in a fixed priority order."""

    def test_news_container_beats_longer_main(self):
        story = paragraphs(prose(20), prose(20, offset=5))
        main = paragraphs(*(prose(30, offset=i) for i in range(6)))
        html = html_page(f'<div class="story-body">{story}</div><main>{main}</main>')

        result = ContentExtractor().extract(html)

        assert result.strategy == "news_container"
        assert 200 <= len(result.content) < 400
        assert result.content == f"{prose(20)}\n\n{prose(20, offset=5)}"

    def test_structured_data_before_cms_container(self):
        body = paragraphs(prose(40), prose(40, offset=3))
        other = paragraphs(prose(40, offset=7), prose(40, offset=9))
        html = html_page(
            f'<div class="content">{other}</div>'
            f'<section itemprop="articleBody">{body}</section>'
        )

        result = extract_content(html)

        assert result.strategy == "structured_data"
        assert result.content.startswith(prose(40))

    def test_semantic_main_used_last(self):
        html = html_page(f"<main>{paragraphs(prose(40), prose(40, offset=2))}</main>")

        result = extract_content(html)

        assert result.strategy == "semantic"
        assert count_words(result.content) == 80

    def test_boilerplate_paragraphs_filtered(self):
        html = html_page(
            '<article class="post">'
            f"{paragraphs(prose(40))}"
            "<p>Follow us on Facebook and Twitter for all the latest updates from the newsroom team today.</p>"
            "<p>Advertisement: this space is available for local businesses who want to reach more readers.</p>"
            "<p>Too short to count.</p>"
            f"{paragraphs(prose(30, offset=4))}"
            "</article>"
        )

        result = extract_content(html)

        assert "Facebook" not in result.content
        assert "Advertisement" not in result.content
        assert "Too short" not in result.content
        assert count_words(result.content) == 70

    def test_scripts_and_navigation_stripped(self):
        html = html_page(
            "<nav><p>Home news sport weather and what's on in your area this week and next week.</p></nav>"
            "<script>var tracking = 'paragraph text inside a script tag should never appear';</script>"
            f'<div class="entry-content">{paragraphs(prose(50))}</div>'
        )

        result = extract_content(html)

        assert "tracking" not in result.content
        assert "weather" not in result.content
        assert count_words(result.content) == 50

    def test_story_inside_page_form(self):
        body = paragraphs(prose(40), prose(40, offset=3), prose(40, offset=6))
        html = html_page(
            '<form id="aspnetForm" method="post" action="./story.aspx">'
            '<input type="hidden" name="__VIEWSTATE" value="abc">'
            f'<div class="story-body">{body}</div>'
            "</form>"
        )

        result = extract_content(html)

        assert result.strategy == "news_container"
        assert result.word_count == 120


class TestFallbacks:
    def test_document_paragraph_scan(self):
        html = html_page(
            "<div>"
            "<p>By Jane Smith, published on the website this morning with the full story from the council meeting.</p>"
            f"{paragraphs(prose(30), prose(30, offset=6))}"
            "</div>"
        )

        result = extract_content(html)

        assert result.strategy == "paragraph_scan"
        assert "Jane Smith" not in result.content
        assert result.content.count("\n\n") == 1

    def test_paragraph_scan_capped_at_fifteen(self):
        html = html_page("<div>" + paragraphs(*(prose(20, offset=i) for i in range(20))) + "</div>")

        result = extract_content(html)

        assert result.strategy == "paragraph_scan"
        assert result.content.count("\n\n") == 14

    def test_readability_picks_prose_div(self):
        prose_div = " ".join([FERRY] * 7)
        html = html_page(
            f'<div class="sidebar">{PROMO} {PROMO}</div>'
            f'<div class="x">{prose_div}</div>'
        )

        result = extract_content(html)

        assert result.strategy == "readability"
        assert result.content == prose_div

    def test_readability_skips_page_wrapper(self):
        prose_div = " ".join([FERRY] * 7)
        comments = "Reader comment from Bob Smith. Lovely photos of the pier."
        html = html_page(
            '<div id="page">'
            f'<div class="x">{prose_div}</div>'
            f'<div class="comments">{comments}</div>'
            "</div>"
        )

        result = extract_content(html)

        assert result.strategy == "readability"
        assert result.content == prose_div
        assert "Bob Smith" not in result.content

    def test_readability_uses_wrapper_when_no_child_qualifies(self):
        half = " ".join([FERRY] * 3)
        html = html_page(f'<div id="page"><div>{half}</div><div>{half}</div></div>')

        result = extract_content(html)

        assert result.strategy == "readability"
        assert result.word_count == 90

    def test_nothing_usable_is_empty(self):
        result = extract_content(html_page("<div>Short.</div>"))

        assert result.content == ""
        assert result.is_empty
        assert result.word_count == 0

    def test_empty_input(self):
        assert extract_content("").is_empty


class TestReadabilityScore:
    def test_literal_score_for_fixed_sample(self):
        # Seven ferry sentences, one promotional sentence with click, subscribe
        # and share, and one sentence with the proper nouns Mayor, Jones, Sussex.
        sample = " ".join([FERRY] * 7 + [PROMO, MAYOR])
        assert len(sample) == 683

        result = score_div_text(sample)

        assert result.sentences == 9
        assert result.proper_nouns == 3
        assert result.length_bonus == 10
        assert result.promotional_hits == 3
        assert result.cookie_penalty == 0
        assert result.score == (9 * 2 + 3) + 10 - 15 == 16

    def test_cookie_penalty(self):
        result = score_div_text("We use cookies to improve the site. Accept them please.")

        assert result.cookie_penalty == 10
        assert result.score == 2 * 2 + 2 - 10


class TestTitle:
    def test_class_heading_wins_over_meta(self):
        html = html_page(
            '<h1 class="article-headline">Council approves seafront plan</h1>',
            head='<meta property="og:title" content="A different open graph title">',
        )

        assert extract_content(html).title == "Council approves seafront plan"

    def test_short_candidates_skipped(self):
        html = html_page(
            '<h1 class="headline">Short</h1>',
            head='<meta property="og:title" content="Open graph title for the story">',
        )

        assert extract_content(html).title == "Open graph title for the story"

    def test_json_ld_headline_before_h1(self):
        html = html_page(
            '<script type="application/ld+json">'
            '{"@context": "https://schema.org", "@graph": [{"@type": "NewsArticle", '
            '"headline": "Headline from structured data"}]}'
            "</script>"
            "<h1>Plain heading on the page</h1>"
        )

        assert extract_content(html).title == "Headline from structured data"

    def test_falls_back_to_title_tag_decoded(self):
        html = html_page("<p>x</p>", title="Fish &amp; chips shop reopens")

        assert extract_content(html).title == "Fish & chips shop reopens"
