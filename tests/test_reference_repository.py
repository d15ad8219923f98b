"""
Unit tests for reference data loading, record adapters and plain lexical lookup.
"""
import json
import tempfile
import unittest
from pathlib import Path

from ayush_core.core.config import Settings
from ayush_core.core.exceptions import InvalidArgumentError
from ayush_core.repositories.record_adapters import (
    RecordFormatError,
    coded_term_from_record,
    condition_entry_from_record,
    icd_entity_from_payload,
)
from ayush_core.repositories.reference_repository import ReferenceDataRepository, load_reference_data
from ayush_core.scripts.verify_reference_data import verify
from ayush_core.services import lexical_search
from ayush_core.services.cross_references import ayush_codes_for_title, search_cross_references


class TestRecordAdapters(unittest.TestCase):
    """Heterogeneous source records normalize to one shape."""

    def test_ayurveda_and_unani_column_names(self):
        ayurveda = coded_term_from_record(
            {
                "NAMC_CODE": "AAB-1",
                "NAMC_term": "jvaraH",
                "NAMC_term_diacritical": "jvaraḥ",
                "NAMC_term_DEVANAGARI": "ज्वरः",
                "Name English": "Fever",
            },
            system="Ayurveda",
        )
        unani = coded_term_from_record(
            {"NAMC_CODE": "UNA-1", "NAMC_TERM": "Humma", "NAMC_TERM_DIACRITICAL": "ḥummā", "Name English": "Fever"},
            system="Unani",
        )

        self.assertEqual(ayurveda.term_native, "jvaraH")
        self.assertEqual(ayurveda.term_devanagari, "ज्वरः")
        self.assertEqual(unani.term_native, "Humma")
        self.assertEqual(unani.term_diacritical, "ḥummā")
        self.assertEqual(unani.english_name, "Fever")
        self.assertEqual(unani.term_devanagari, "")

    def test_record_without_code_is_rejected(self):
        with self.assertRaises(RecordFormatError):
            coded_term_from_record({"Name English": "Fever"}, system="Siddha")

    def test_icd_payload_variants(self):
        plain = icd_entity_from_payload({"id": "http://id.who.int/icd/entity/1", "title": "Fever", "theCode": "MG26"})
        nested = icd_entity_from_payload(
            {"@id": "http://id.who.int/icd/entity/2", "title": {"@value": "Cough"}, "code": "MD12"}
        )

        self.assertEqual((plain.id, plain.title, plain.code), ("http://id.who.int/icd/entity/1", "Fever", "MG26"))
        self.assertEqual((nested.id, nested.title, nested.code), ("http://id.who.int/icd/entity/2", "Cough", "MD12"))

    def test_condition_entry_defaults_and_unknown_question(self):
        entry = condition_entry_from_record({"code": "X-1", "englishTerm": "Test", "system": "Siddha"})
        self.assertEqual(entry.age_groups, frozenset({"all"}))
        self.assertEqual(entry.gender, "all")
        self.assertEqual(entry.clinical_questions, ())

        with self.assertRaises(RecordFormatError):
            condition_entry_from_record({"code": "X-2", "clinicalQuestions": ["q_missing"]}, {})


class TestReferenceDataRepository(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.repository = ReferenceDataRepository.from_directory(Settings().data_dir)

    def test_bundled_datasets_load(self):
        stats = self.repository.stats()

        self.assertEqual(self.repository.systems, ["Ayurveda", "Siddha", "Unani"])
        self.assertEqual(stats["ayurveda"], 15)
        self.assertEqual(stats["siddha"], 8)
        self.assertEqual(stats["unani"], 8)
        self.assertEqual(stats["enhanced_conditions"], 17)

    def test_condition_questions_are_resolved(self):
        fever = self.repository.get_condition("AAB-1")

        self.assertEqual([q.id for q in fever.clinical_questions], ["q_fever_pattern", "q_onset", "q_chills"])
        self.assertIn("continuous", fever.clinical_questions[0].options)
        self.assertEqual(fever.icd_mappings[0].code, "MG26")
        self.assertTrue(fever.duration.acute)
        self.assertFalse(fever.duration.chronic)

    def test_unknown_codes(self):
        self.assertIsNone(self.repository.get_condition("XYZ"))
        self.assertIsNone(self.repository.get_pathway("SMB-1"))
        self.assertIsNotNone(self.repository.get_pathway("AAB-1"))

    def test_bundled_data_passes_verification(self):
        self.assertEqual(verify(load_reference_data(Settings().data_dir)), [])

    def test_missing_dataset_raises(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                ReferenceDataRepository.from_directory(Path(tmp))

    def test_verification_reports_duplicates(self):
        with tempfile.TemporaryDirectory() as tmp:
            data_dir = Path(tmp)
            for name in ("ayurveda.json", "siddha.json", "unani.json"):
                (data_dir / name).write_text("[]", encoding="utf-8")
            entry = {"code": "X-1", "englishTerm": "Test", "system": "Ayurveda", "icdMappings": [{"code": "A", "confidence": 1.5}]}
            (data_dir / "enhanced_ayush.json").write_text(json.dumps([entry, entry]), encoding="utf-8")

            problems = verify(load_reference_data(data_dir))

        self.assertTrue(any("duplicate condition code" in p for p in problems))
        self.assertTrue(any("outside [0, 1]" in p for p in problems))


class TestLexicalSearch(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.repository = ReferenceDataRepository.from_directory(Settings().data_dir)

    def test_matches_any_field_in_dataset_order(self):
        matches = lexical_search.search_all_systems("fever", self.repository)

        self.assertEqual([t.code for t in matches["Ayurveda"]], ["AAB-1", "AAB-2"])
        self.assertEqual([t.code for t in matches["Siddha"]], ["SMA-1", "SMA-2"])
        self.assertEqual([t.code for t in matches["Unani"]], ["UNA-1", "UNA-2"])

    def test_whitespace_and_case_are_ignored(self):
        matches = lexical_search.search("Intermittent  Fever", self.repository.terms_for("Ayurveda"))
        self.assertEqual([t.code for t in matches], ["AAB-2"])

    def test_devanagari_and_transliteration(self):
        ayurveda = self.repository.terms_for("Ayurveda")
        self.assertEqual([t.code for t in lexical_search.search("ज्वरः", ayurveda)], ["AAB-1", "AAB-2", "AAB-3"])
        self.assertEqual([t.code for t in lexical_search.search("suram", self.repository.terms_for("Siddha"))], ["SMA-1"])

    def test_no_match_returns_empty_list(self):
        self.assertEqual(lexical_search.search("zzzz", self.repository.terms_for("Ayurveda")), [])

    def test_empty_term_is_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            lexical_search.search("   ", self.repository.terms_for("Ayurveda"))
        with self.assertRaises(InvalidArgumentError):
            lexical_search.search(None, self.repository.terms_for("Ayurveda"))


class TestCrossReferences(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.cross_references = ReferenceDataRepository.from_directory(Settings().data_dir).cross_references

    def test_title_lookup_ignores_markup_and_case(self):
        codes = ayush_codes_for_title(self.cross_references, "<em class='found'>Fever</em> of other or unknown ORIGIN")
        self.assertEqual([c["code"] for c in codes], ["AAB-1", "SMA-1", "UNA-1"])
        self.assertEqual(ayush_codes_for_title(self.cross_references, "Unlisted title"), [])

    def test_keyword_search(self):
        titles = [ref.icd_title for ref in search_cross_references(self.cross_references, "pyrexia")]
        self.assertEqual(titles, ["Fever of other or unknown origin"])


if __name__ == "__main__":
    unittest.main()
