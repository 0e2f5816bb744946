import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.schemas.search import SearchHit  # noqa: E402
from app.search.categorizer import CATEGORY_RULES, categorize_result  # noqa: E402
from app.search.platform import identify_platform  # noqa: E402
from app.search.scoring import calculate_relevance  # noqa: E402


class RelevanceScoreTests(unittest.TestCase):
    def test_full_name_in_title_and_snippet_with_current_year(self):
        hit = SearchHit(
            title="Jane Doe joins Acme",
            link="https://example.com/a",
            snippet="Jane Doe was appointed CTO.",
            date="Mar 3, 2025",
        )
        self.assertEqual(calculate_relevance(hit, "Jane Doe", current_year=2025), 100)

    def test_name_parts_score_when_full_name_missing(self):
        hit = SearchHit(title="Doe and Jane at the summit", link="https://example.com/b")
        # two parts longer than two characters
        self.assertEqual(calculate_relevance(hit, "Jane Doe", current_year=2025), 70)

    def test_prior_year_bonus(self):
        hit = SearchHit(title="Unrelated", link="https://example.com/c", date="2024-06-01")
        self.assertEqual(calculate_relevance(hit, "Jane Doe", current_year=2025), 55)

    def test_empty_name_only_gets_base_and_recency(self):
        hit = SearchHit(title="Anything", link="https://example.com/d", date="2026")
        self.assertEqual(calculate_relevance(hit, "", current_year=2025), 60)
        self.assertEqual(calculate_relevance(hit, "   ", current_year=2025), 60)

    def test_score_is_clamped(self):
        hit = SearchHit(
            title="Jane Alexandra Doe",
            link="https://example.com/e",
            snippet="jane alexandra doe",
            date="2025",
        )
        score = calculate_relevance(hit, "Jane Alexandra Doe", current_year=2025)
        self.assertLessEqual(score, 100)
        self.assertGreaterEqual(score, 0)


class PlatformIdentifierTests(unittest.TestCase):
    def test_known_aliases(self):
        self.assertEqual(identify_platform("https://x.com/janedoe"), "twitter")
        self.assertEqual(identify_platform("https://youtu.be/abc"), "youtube")
        self.assertEqual(identify_platform("https://scholar.google.com/citations?user=1"), "scholar")

    def test_second_level_domains(self):
        self.assertEqual(identify_platform("https://www.linkedin.com/in/jane"), "linkedin")
        self.assertEqual(identify_platform("https://uk.linkedin.com/in/jane"), "linkedin")
        self.assertEqual(identify_platform("https://www.bbc.co.uk/news/123"), "bbc")
        self.assertEqual(identify_platform("https://github.com/jane"), "github")

    def test_never_raises_on_malformed_input(self):
        for value in ("", "not a url", "http://", "://missing", "https://[::1", None):
            self.assertEqual(identify_platform(value), "web")


class CategorizerTests(unittest.TestCase):
    def test_profile_beats_speaking(self):
        hit = SearchHit(
            title="Jane Doe - Keynote speaker",
            link="https://www.linkedin.com/in/jane-doe",
            snippet="Conference speaker and panel host",
        )
        self.assertEqual(categorize_result(hit), "profile")

    def test_rule_order_is_priority_order(self):
        self.assertEqual(
            [rule.category for rule in CATEGORY_RULES],
            [
                "profile",
                "news",
                "publication",
                "speaking",
                "patent",
                "award",
                "podcast",
                "video",
                "opensource",
                "press",
            ],
        )

    def test_category_examples(self):
        cases = {
            "publication": SearchHit(title="Graph study", link="https://arxiv.org/abs/1234"),
            "speaking": SearchHit(title="Jane at DevSummit", link="https://devsummit.io/2025"),
            "patent": SearchHit(title="US Patent 123", link="https://patents.google.com/patent/US123"),
            "podcast": SearchHit(title="Listen now", link="https://podcasts.apple.com/show/1"),
            "video": SearchHit(title="Jane explains graphs", link="https://www.youtube.com/watch?v=1"),
            "opensource": SearchHit(title="jane/graphs", link="https://gitlab.com/jane/graphs"),
            "press": SearchHit(title="Acme names Jane Doe CEO", link="https://acme.com/2025/jane"),
        }
        for expected, hit in cases.items():
            with self.subTest(expected=expected):
                self.assertEqual(categorize_result(hit), expected)

    def test_fallback_is_mention(self):
        hit = SearchHit(title="Jane Doe", link="https://example.org/page", snippet="Some page")
        self.assertEqual(categorize_result(hit), "mention")


if __name__ == "__main__":
    unittest.main()
