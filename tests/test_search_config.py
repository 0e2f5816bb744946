import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.search_config import get_search_config, get_search_value, load_search_config  # noqa: E402


class SearchConfigTests(unittest.TestCase):
    def test_loader_and_value_lookup(self):
        config = get_search_config()
        self.assertIsInstance(config, dict)
        self.assertEqual(get_search_value("visibility.weights.news"), 4)
        self.assertEqual(get_search_value("verification.min_connections"), 50)

    def test_missing_paths_return_default(self):
        self.assertIsNone(get_search_value("visibility.weights.unknown"))
        self.assertEqual(get_search_value("visibility.weights.news.deeper", 7), 7)
        self.assertEqual(get_search_value("", "fallback"), "fallback")

    def test_negative_weight_is_rejected(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "search.yaml"
            path.write_text("visibility:\n  weights:\n    news: -1\n", encoding="utf-8")
            with self.assertRaises(RuntimeError) as ctx:
                load_search_config(path)
        self.assertIn("visibility.weights.news", str(ctx.exception))

    def test_threshold_tiers_are_validated(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "search.yaml"
            path.write_text("visibility:\n  thresholds:\n    high:\n      score: lots\n", encoding="utf-8")
            with self.assertRaises(RuntimeError):
                load_search_config(path)

    def test_missing_file_raises(self):
        with self.assertRaises(RuntimeError):
            load_search_config(Path(tempfile.gettempdir()) / "does-not-exist" / "search.yaml")


if __name__ == "__main__":
    unittest.main()
