from __future__ import annotations

import json
import os
import tempfile
import unittest

from pydantic import ValidationError

from SPECMAP.server.schemas.mapping import (
    CanonicalSpecialty,
    MappingTestCase,
    OverrideMapping,
    RawInput,
)
from SPECMAP.server.utils.constants import MAPPINGS_PATH
from SPECMAP.server.utils.repository.resources import (
    create_mapping_engine,
    load_mapping_resources,
    load_rule_sets,
)


def write_json(path: str, payload) -> None:
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(payload, handle)


class MappingSchemaTests(unittest.TestCase):
    # ------------------------------------------------------------------
    def test_raw_input_accepts_camel_case_and_missing_name(self) -> None:
        item = RawInput.model_validate({"source": " MGMA ", "rawName": None})
        self.assertEqual(item.source, "MGMA")
        self.assertEqual(item.raw_name, "")
        self.assertEqual(item.meta, {})
        with self.assertRaises(ValidationError):
            RawInput.model_validate({"source": "   ", "raw_name": "Cardiology"})

    # ------------------------------------------------------------------
    def test_canonical_specialty_rejects_unknown_domain(self) -> None:
        with self.assertRaises(ValidationError):
            CanonicalSpecialty(id="X", name="X", domain="VETERINARY", parent="X")

    # ------------------------------------------------------------------
    def test_documents_are_frozen(self) -> None:
        item = RawInput(source="MGMA", raw_name="Cardiology")
        with self.assertRaises(ValidationError):
            item.raw_name = "Neurology"

    # ------------------------------------------------------------------
    def test_override_optional_fields_are_cleaned(self) -> None:
        override = OverrideMapping.model_validate(
            {"id": "OV1", "pattern": "x", "canonicalId": "CARD-GENERAL", "source": "  "}
        )
        self.assertEqual(override.canonical_id, "CARD-GENERAL")
        self.assertIsNone(override.source)

    # ------------------------------------------------------------------
    def test_mapping_test_case_nests_raw_input(self) -> None:
        case = MappingTestCase.model_validate(
            {
                "id": "case-1",
                "input": {"source": "MGMA", "rawName": "Peds Cardiology"},
                "expectedCanonicalId": "PEDS-CARD-GENERAL",
            }
        )
        self.assertEqual(case.input.raw_name, "Peds Cardiology")
        self.assertEqual(case.expected_canonical_id, "PEDS-CARD-GENERAL")


class ShippedResourcesTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.resources = load_mapping_resources(MAPPINGS_PATH)

    # ------------------------------------------------------------------
    def test_taxonomy_ids_are_unique(self) -> None:
        ids = [item.id for item in self.resources.taxonomy]
        self.assertTrue(ids)
        self.assertEqual(len(ids), len(set(ids)))

    # ------------------------------------------------------------------
    def test_rules_and_overrides_reference_known_specialties(self) -> None:
        ids = {item.id for item in self.resources.taxonomy}
        for rule_set in self.resources.rules:
            for rule in rule_set.hard_maps:
                self.assertIn(rule.canonical_id, ids, rule.id)
        for override in self.resources.overrides:
            self.assertIn(override.canonical_id, ids, override.id)

    # ------------------------------------------------------------------
    def test_every_parent_has_synonyms(self) -> None:
        parents = {item.parent for item in self.resources.taxonomy}
        self.assertLessEqual(parents, set(self.resources.synonyms.parent_synonyms))

    # ------------------------------------------------------------------
    def test_rule_files_load_in_name_order(self) -> None:
        first_ids = [rule_set.hard_maps[0].id for rule_set in self.resources.rules]
        self.assertEqual(
            first_ids,
            ["EXACT_CARD_GENERAL", "PEDS_CARDIOLOGY", "SULLIVANCOTTER_CARD_NONINVASIVE"],
        )


class ShippedEngineTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_mapping_engine()

    # ------------------------------------------------------------------
    def map(self, name: str, source: str = "MGMA"):
        return self.engine.map_specialty(RawInput(source=source, raw_name=name))

    # ------------------------------------------------------------------
    def test_peds_cardiology_hard_maps_to_pediatric(self) -> None:
        decision = self.map("Peds Cardiology")
        self.assertEqual(decision.decided_canonical_id, "PEDS-CARD-GENERAL")
        self.assertEqual(decision.applied_rule_ids, ["PEDS_CARDIOLOGY"])
        self.assertEqual(decision.domain, "PEDIATRIC")

    # ------------------------------------------------------------------
    def test_vendor_rules_apply_to_their_source(self) -> None:
        decision = self.map("Cardiology: Noninvasive", source="SullivanCotter")
        self.assertEqual(decision.decided_canonical_id, "CARD-IMAGING")
        self.assertEqual(decision.applied_rule_ids, ["SULLIVANCOTTER_CARD_NONINVASIVE"])

    # ------------------------------------------------------------------
    def test_vendor_override_applies(self) -> None:
        decision = self.map("Cardiology - Invasive Interventional", source="Gallagher")
        self.assertEqual(decision.decided_canonical_id, "CARD-INTERVENTIONAL")
        self.assertEqual(decision.applied_rule_ids, ["OVERRIDE:OVR-0001"])

    # ------------------------------------------------------------------
    def test_neonatology_is_pediatric(self) -> None:
        decision = self.map("Neonatology")
        self.assertEqual(decision.decided_canonical_id, "NEONATOLOGY")
        self.assertEqual(decision.domain, "PEDIATRIC")

    # ------------------------------------------------------------------
    def test_unknown_and_blocked_labels_stay_undecided(self) -> None:
        self.assertIsNone(self.map("Xyzzy Qwerty").decided_canonical_id)
        blocked = self.map("Neurosurgery")
        self.assertIsNone(blocked.decided_canonical_id)
        self.assertIn("Negative tokens", blocked.notes)


class ResourceLoadingTests(unittest.TestCase):
    # ------------------------------------------------------------------
    def test_optional_files_may_be_missing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            write_json(
                os.path.join(tmp_dir, "taxonomy.json"),
                [
                    {
                        "id": "NEURO-GENERAL",
                        "name": "Neurology",
                        "domain": "adult",
                        "parent": "Neurology",
                        "tags": "neurology; general",
                    }
                ],
            )
            write_json(
                os.path.join(tmp_dir, "synonyms.json"),
                {"parent_synonyms": {"Neurology": ["neurology"]}},
            )
            resources = load_mapping_resources(tmp_dir)
            engine = create_mapping_engine(resources_path=tmp_dir)

        self.assertEqual(resources.rules, ())
        self.assertEqual(resources.overrides, ())
        self.assertEqual(resources.taxonomy[0].domain, "ADULT")
        self.assertEqual(resources.taxonomy[0].tags, ("neurology", "general"))
        decision = engine.map_specialty(RawInput(source="MGMA", raw_name="Neurology"))
        self.assertEqual(decision.top_candidate.canonical_id, "NEURO-GENERAL")

    # ------------------------------------------------------------------
    def test_missing_taxonomy_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            write_json(os.path.join(tmp_dir, "synonyms.json"), {})
            with self.assertRaises(RuntimeError):
                load_mapping_resources(tmp_dir)

    # ------------------------------------------------------------------
    def test_malformed_documents_raise_validation_errors(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            write_json(
                os.path.join(tmp_dir, "taxonomy.json"),
                {"specialties": [{"id": "X", "name": "X", "domain": "VET", "parent": "X"}]},
            )
            write_json(os.path.join(tmp_dir, "synonyms.json"), {})
            with self.assertRaises(ValidationError):
                load_mapping_resources(tmp_dir)

    # ------------------------------------------------------------------
    def test_load_rule_sets_ignores_other_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            write_json(
                os.path.join(tmp_dir, "b.json"),
                {"hard_maps": [{"id": "B", "pattern": "b", "canonical_id": "X"}]},
            )
            write_json(
                os.path.join(tmp_dir, "a.json"),
                {"hardMaps": [{"id": "A", "pattern": "a", "canonicalId": "X"}]},
            )
            with open(os.path.join(tmp_dir, "notes.txt"), "w", encoding="utf-8") as handle:
                handle.write("ignored")
            rule_sets = load_rule_sets(tmp_dir)
            missing = load_rule_sets(os.path.join(tmp_dir, "missing"))

        self.assertEqual([item.hard_maps[0].id for item in rule_sets], ["A", "B"])
        self.assertEqual(missing, ())


if __name__ == "__main__":
    unittest.main()
