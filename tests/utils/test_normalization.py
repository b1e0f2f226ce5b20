from __future__ import annotations

import unittest

import pandas as pd

from SPECMAP.server.utils.services.text.normalization import (
    coerce_text,
    normalize_specialty_name,
    normalize_whitespace,
    tokenize_specialty,
)


class NormalizationTests(unittest.TestCase):
    # ------------------------------------------------------------------
    def test_coerce_text_strips_and_handles_empty_values(self) -> None:
        self.assertEqual(coerce_text("  Cardio  logy  "), "Cardio  logy")
        self.assertIsNone(coerce_text("   "))

    # ------------------------------------------------------------------
    def test_coerce_text_handles_pandas_missing_markers(self) -> None:
        self.assertIsNone(coerce_text(pd.NA))
        self.assertIsNone(coerce_text(float("nan")))
        self.assertIsNone(coerce_text(None))
        self.assertEqual(coerce_text(42), "42")

    # ------------------------------------------------------------------
    def test_normalize_whitespace(self) -> None:
        self.assertEqual(normalize_whitespace("  Foo \n Bar \t Baz  "), "Foo Bar Baz")
        self.assertEqual(normalize_whitespace(""), "")

    # ------------------------------------------------------------------
    def test_normalize_specialty_name_replaces_separators(self) -> None:
        self.assertEqual(
            normalize_specialty_name("  Cardiology - Interventional_EP; Adult, "),
            "cardiology interventional ep adult",
        )
        self.assertEqual(
            normalize_specialty_name("Cardiology: Interventional"),
            "cardiology interventional",
        )

    # ------------------------------------------------------------------
    def test_normalize_specialty_name_keeps_other_punctuation(self) -> None:
        self.assertEqual(normalize_specialty_name("OB/GYN:  Oncology"), "ob/gyn oncology")
        self.assertEqual(
            normalize_specialty_name("Family Medicine (without OB)"),
            "family medicine (without ob)",
        )

    # ------------------------------------------------------------------
    def test_normalize_specialty_name_is_idempotent(self) -> None:
        samples = [
            "Peds Cardiology",
            "  HEM/ONC -- Pediatric ",
            "Surgery: Cardiac; Thoracic",
            "",
            "___",
            "Neonatal-Perinatal Medicine",
        ]
        for sample in samples:
            once = normalize_specialty_name(sample)
            self.assertEqual(normalize_specialty_name(once), once)

    # ------------------------------------------------------------------
    def test_normalize_specialty_name_handles_missing_values(self) -> None:
        self.assertEqual(normalize_specialty_name(None), "")
        self.assertEqual(normalize_specialty_name("  ,;:  "), "")

    # ------------------------------------------------------------------
    def test_tokenize_specialty_drops_short_tokens(self) -> None:
        self.assertEqual(
            tokenize_specialty("cardiology ep of the heart"),
            ["cardiology", "the", "heart"],
        )
        self.assertEqual(tokenize_specialty(""), [])
        self.assertEqual(tokenize_specialty("ep ob", min_length=2), ["ep", "ob"])


if __name__ == "__main__":
    unittest.main()
