"""
Unit tests for the relevance scorer.

Covers the additive weights, the multiplicative filter penalties, rounding,
the noise threshold and the ordering of ranked results.
"""
import unittest

from ayush_core.core.config import Settings
from ayush_core.models.terminology import ConditionEntry, DurationProfile, SearchFilters
from ayush_core.repositories.reference_repository import ReferenceDataRepository
from ayush_core.services.scoring_engine import RelevanceScorer, round_half_up


def make_entry(code="T-1", **overrides):
    values = dict(
        code=code,
        english_term="Test condition",
        diacritical_form="",
        system="Ayurveda",
        category="Test disorders",
        primary_symptoms=(),
        associated_symptoms=(),
        age_groups=frozenset({"all"}),
        gender="all",
        duration=DurationProfile(acute=True, chronic=True),
    )
    values.update(overrides)
    return ConditionEntry(**values)


class TestRelevanceScorer(unittest.TestCase):
    """Scoring of single entries."""

    def setUp(self):
        self.scorer = RelevanceScorer()

    def test_exact_term_scores_100_without_contains_bonus(self):
        entry = make_entry(english_term="Fever", category="Other")
        self.assertEqual(self.scorer.score("fever", entry), 100)

        signals = self.scorer.signals("fever", entry)
        self.assertTrue(signals.exact_term)
        self.assertFalse(signals.term_contains)

    def test_term_contains_scores_80(self):
        entry = make_entry(english_term="Intermittent fever", category="Other")
        self.assertEqual(self.scorer.score("fever", entry), 80)

    def test_query_is_normalized(self):
        entry = make_entry(english_term="Fever", category="Other")
        self.assertEqual(self.scorer.score("  FEVER ", entry), 100)

    def test_diacritical_match_is_plain_containment(self):
        fever = make_entry(english_term="Fever", diacritical_form="jvaraḥ", category="Other")
        cough = make_entry(english_term="Cough", diacritical_form="kāsaḥ", category="Other")

        self.assertEqual(self.scorer.score("jvara", fever), 75)
        # accents are not folded
        self.assertEqual(self.scorer.score("kasa", cough), 0)

    def test_symptom_matches_are_bidirectional(self):
        entry = make_entry(
            english_term="Other",
            category="Other",
            primary_symptoms=("frequent urination", "thirst"),
        )
        # query contains the symptom
        self.assertEqual(self.scorer.score("frequent urination at night", entry), 60)
        # symptom contains the query
        self.assertEqual(self.scorer.score("urination", entry), 60)

    def test_each_symptom_match_adds_points(self):
        entry = make_entry(
            english_term="Other",
            category="Other",
            primary_symptoms=("fever", "high fever"),
            associated_symptoms=("fever at night",),
        )
        self.assertEqual(self.scorer.score("fever", entry), 60 + 60 + 40)

    def test_score_grows_with_symptom_matches(self):
        fewer = make_entry(english_term="Other", category="Other", primary_symptoms=("cough",))
        more = make_entry(english_term="Other", category="Other", primary_symptoms=("cough", "dry cough"))
        self.assertLess(self.scorer.score("cough", fewer), self.scorer.score("cough", more))

    def test_category_contains_scores_30(self):
        entry = make_entry(english_term="Other", category="Fever disorders")
        self.assertEqual(self.scorer.score("fever", entry), 30)

    def test_score_is_never_negative(self):
        entry = make_entry()
        for term in ("zzz", "fever", "a"):
            self.assertGreaterEqual(self.scorer.score(term, entry), 0)

    def test_confidence_is_capped_at_one(self):
        self.assertEqual(RelevanceScorer.confidence(190), 1.0)
        self.assertEqual(RelevanceScorer.confidence(100), 1.0)
        self.assertAlmostEqual(RelevanceScorer.confidence(70), 0.7)


class TestFilterPenalties(unittest.TestCase):
    """Penalties for entries excluded by caller filters."""

    def setUp(self):
        self.scorer = RelevanceScorer()
        self.entry = make_entry(
            english_term="Fever",
            category="Other",
            age_groups=frozenset({"adult"}),
            gender="male",
            duration=DurationProfile(acute=False, chronic=True),
        )

    def test_gender_mismatch_is_penalized(self):
        filtered = self.scorer.score("fever", self.entry, SearchFilters(gender="female"))
        self.assertEqual(filtered, 70)
        self.assertLess(filtered, self.scorer.score("fever", self.entry))

    def test_matching_filters_do_not_penalize(self):
        filters = SearchFilters(age_group="adult", gender="male", duration="chronic")
        self.assertEqual(self.scorer.score("fever", self.entry, filters), 100)

    def test_all_is_treated_as_no_filter(self):
        filters = SearchFilters(age_group="all", gender="all", duration="all")
        self.assertEqual(self.scorer.score("fever", self.entry, filters), 100)

    def test_wildcard_entries_are_never_penalized(self):
        entry = make_entry(english_term="Fever", category="Other")
        filters = SearchFilters(age_group="child", gender="female", duration="acute")
        self.assertEqual(self.scorer.score("fever", entry, filters), 100)

    def test_penalties_compound(self):
        filters = SearchFilters(age_group="child", gender="female", duration="acute")
        self.assertAlmostEqual(self.scorer.penalty_multiplier(self.entry, filters), 0.5 * 0.7 * 0.6)
        self.assertEqual(self.scorer.score("fever", self.entry, filters), 21)

    def test_age_and_duration_penalties(self):
        self.assertEqual(self.scorer.score("fever", self.entry, SearchFilters(age_group="child")), 50)
        self.assertEqual(self.scorer.score("fever", self.entry, SearchFilters(duration="acute")), 60)


class TestRounding(unittest.TestCase):

    def test_half_rounds_up(self):
        self.assertEqual(round_half_up(0.5), 1)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(12.4), 12)
        self.assertEqual(round_half_up(12.6), 13)


class TestRanking(unittest.TestCase):
    """Threshold and ordering of ranked results."""

    def setUp(self):
        self.scorer = RelevanceScorer()

    def test_scores_at_threshold_are_dropped(self):
        # associated match (40) halved by the age penalty lands exactly on 20
        entry = make_entry(
            english_term="Other",
            category="Other",
            associated_symptoms=("fever",),
            age_groups=frozenset({"adult"}),
        )
        self.assertEqual(self.scorer.score("fever", entry, SearchFilters(age_group="child")), 20)
        self.assertEqual(self.scorer.rank("fever", [entry], SearchFilters(age_group="child")), [])
        self.assertEqual(len(self.scorer.rank("fever", [entry])), 1)

    def test_rank_is_descending_and_stable(self):
        first = make_entry("T-1", english_term="Other", category="Other", associated_symptoms=("fever",))
        top = make_entry("T-2", english_term="Fever", category="Other")
        second = make_entry("T-3", english_term="Other", category="Other", associated_symptoms=("fever",))

        ranked = self.scorer.rank("fever", [first, top, second])

        self.assertEqual([r.entry.code for r in ranked], ["T-2", "T-1", "T-3"])
        self.assertEqual([r.relevance_score for r in ranked], [100, 40, 40])


class TestCorpusScoring(unittest.TestCase):
    """Scores against the bundled enhanced corpus."""

    @classmethod
    def setUpClass(cls):
        cls.repository = ReferenceDataRepository.from_directory(Settings().data_dir)
        cls.scorer = RelevanceScorer()

    def test_fever_ranking(self):
        ranked = self.scorer.rank("fever", self.repository.conditions)
        scores = {r.entry.code: r.relevance_score for r in ranked}

        self.assertEqual([r.entry.code for r in ranked[:4]], ["AAB-1", "SMA-1", "UNA-1", "AAB-2"])
        self.assertEqual(scores["AAB-1"], 190)
        self.assertEqual(scores["SMA-1"], 190)
        self.assertEqual(scores["UNA-1"], 190)
        self.assertEqual(scores["AAB-2"], 170)
        self.assertEqual(scores["AAB-3"], 70)
        self.assertEqual(scores["AAC-1"], 40)
        self.assertTrue(all(r.relevance_score > 20 for r in ranked))

    def test_male_only_entry_penalized_for_female(self):
        term = "frequent urination at night"
        bph = self.repository.get_condition("AAF-1")

        self.assertEqual(self.scorer.score(term, bph), 60)
        self.assertEqual(self.scorer.score(term, bph, SearchFilters(gender="female")), 42)

    def test_unaccented_transliterations_do_not_match(self):
        for term in ("kasa", "amavata", "kamala"):
            with self.subTest(term=term):
                self.assertEqual(self.scorer.rank(term, self.repository.conditions), [])


if __name__ == "__main__":
    unittest.main()
