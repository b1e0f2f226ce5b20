from __future__ import annotations

import unittest

from SPECMAP.server.utils.configurations import MappingFeatureFlags
from SPECMAP.server.utils.services.text.similarity import (
    SIMILARITY_METRICS,
    JaroWinklerSimilarity,
    LevenshteinSimilarity,
    TokenSetSimilarity,
    jaro_similarity,
    select_similarity_metric,
)


class SimilarityMetricTests(unittest.TestCase):
    # ------------------------------------------------------------------
    def test_jaro_winkler_matches_reference_value(self) -> None:
        metric = JaroWinklerSimilarity()
        self.assertAlmostEqual(metric("martha", "marhta"), 0.961, places=3)
        self.assertEqual(metric("cardiology", "cardiology"), 1.0)
        self.assertEqual(metric("cardiology", ""), 0.0)

    # ------------------------------------------------------------------
    def test_jaro_winkler_rewards_shared_prefix(self) -> None:
        plain_jaro = JaroWinklerSimilarity(prefix_weight=0.0)
        metric = JaroWinklerSimilarity()
        self.assertGreater(
            metric("cardiology", "cardiologist"),
            plain_jaro("cardiology", "cardiologist"),
        )

    # ------------------------------------------------------------------
    def test_jaro_winkler_boosts_prefix_below_jaro_cutoff(self) -> None:
        metric = JaroWinklerSimilarity()
        left, right = "card xyzqwv mnop", "cardiac electrophysiology"
        jaro = jaro_similarity(left, right)
        self.assertLess(jaro, 0.7)
        self.assertEqual(metric.common_prefix(left, right), 4)
        self.assertAlmostEqual(metric(left, right), jaro + 0.4 * (1 - jaro))
        self.assertAlmostEqual(metric(left, right), 0.7265, places=3)

    # ------------------------------------------------------------------
    def test_jaro_keeps_fractional_transpositions(self) -> None:
        # 8 matches, 3 out-of-order pairs between the matched characters
        self.assertAlmostEqual(
            jaro_similarity("card xyzqwv mnop", "cardiac electrophysiology"),
            (8 / 16 + 8 / 25 + 6.5 / 8) / 3,
        )
        self.assertAlmostEqual(jaro_similarity("martha", "marhta"), 0.944, places=3)
        self.assertEqual(jaro_similarity("", "cardiology"), 0.0)
        self.assertEqual(jaro_similarity("abc", "xyz"), 0.0)

    # ------------------------------------------------------------------
    def test_common_prefix_is_capped_at_four(self) -> None:
        metric = JaroWinklerSimilarity()
        self.assertEqual(metric.common_prefix("cardiology", "cardiologist"), 4)
        self.assertEqual(metric.common_prefix("neuro", "nephro"), 2)
        self.assertEqual(metric.common_prefix("", "cardiology"), 0)

    # ------------------------------------------------------------------
    def test_token_set_similarity_is_jaccard_index(self) -> None:
        metric = TokenSetSimilarity()
        self.assertAlmostEqual(metric("a b c", "b c d"), 0.5)
        self.assertEqual(metric("peds cardiology", "cardiology peds"), 1.0)
        self.assertEqual(metric("", ""), 1.0)
        self.assertEqual(metric("neurology", ""), 0.0)

    # ------------------------------------------------------------------
    def test_levenshtein_similarity_is_normalized(self) -> None:
        metric = LevenshteinSimilarity()
        self.assertAlmostEqual(metric("kitten", "sitting"), 1 - 3 / 7)
        self.assertEqual(metric("", ""), 1.0)
        self.assertEqual(metric("abc", "xyz"), 0.0)

    # ------------------------------------------------------------------
    def test_metrics_stay_within_unit_interval(self) -> None:
        samples = ["", "a", "cardiology", "pediatric cardiology", "ob/gyn", "zzzz qqq"]
        for metric_type in SIMILARITY_METRICS.values():
            metric = metric_type()
            for left in samples:
                for right in samples:
                    value = metric(left, right)
                    self.assertGreaterEqual(value, 0.0)
                    self.assertLessEqual(value, 1.0)

    # ------------------------------------------------------------------
    def test_select_similarity_metric_follows_flag_priority(self) -> None:
        both = MappingFeatureFlags(use_jaro_winkler=True, use_token_set_ratio=True)
        token_only = MappingFeatureFlags(use_jaro_winkler=False, use_token_set_ratio=True)
        neither = MappingFeatureFlags(use_jaro_winkler=False, use_token_set_ratio=False)
        self.assertIsInstance(select_similarity_metric(both), JaroWinklerSimilarity)
        self.assertIsInstance(select_similarity_metric(token_only), TokenSetSimilarity)
        self.assertIsInstance(select_similarity_metric(neither), LevenshteinSimilarity)


if __name__ == "__main__":
    unittest.main()
