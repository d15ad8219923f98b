"""
Unit tests for the guided question engine.
"""
import unittest

from ayush_core.models.terminology import (
    ClinicalQuestion,
    ConditionEntry,
    DurationProfile,
    MappedResult,
)
from ayush_core.services.guided_questions import GuidedQuestionEngine, answer_key

PATTERN = ClinicalQuestion(
    id="q_pattern",
    text="Continuous or intermittent?",
    scoring={
        "continuous": {"acute": 2, "pitta": 1},
        "intermittent": {"vata": 2},
        "low_grade": {"chronic": 2},
    },
)
ONSET = ClinicalQuestion(id="q_onset", text="Sudden or gradual?", scoring={"sudden": {"acute": 2}, "gradual": {"chronic": 2}})
CHILLS = ClinicalQuestion(id="q_chills", text="Chills?", scoring={"yes": {"vata": 1}, "no": {"pitta": 1}})
THIRST = ClinicalQuestion(id="q_thirst", text="Thirst?", scoring={"yes": {"pitta": 10}, "no": {}})
COLD = ClinicalQuestion(id="q_cold", text="Relieved by cold?", scoring={"yes": {"pitta": -10}, "no": {}})


def mapped(code, questions, *, combined=0.5, doshas=(), acute=True, chronic=False):
    entry = ConditionEntry(
        code=code,
        english_term=code,
        diacritical_form="",
        system="Ayurveda",
        category="",
        duration=DurationProfile(acute=acute, chronic=chronic),
        dosha_involvement=tuple(doshas),
        clinical_questions=tuple(questions),
    )
    return MappedResult(
        entry=entry,
        relevance_score=int(combined * 100),
        confidence=combined,
        combined_confidence=combined,
    )


class TestAnswerKey(unittest.TestCase):

    def test_answer_values_are_normalized(self):
        self.assertEqual(answer_key(True), "yes")
        self.assertEqual(answer_key(False), "no")
        self.assertEqual(answer_key(" Continuous "), "continuous")
        self.assertEqual(answer_key(3), "3")
        self.assertIsNone(answer_key(None))
        self.assertIsNone(answer_key("  "))


class TestNextQuestions(unittest.TestCase):

    def setUp(self):
        self.engine = GuidedQuestionEngine()
        self.results = [
            mapped("A-1", [PATTERN, ONSET, CHILLS]),
            mapped("A-2", [PATTERN, ONSET, CHILLS]),
            mapped("A-3", [PATTERN, CHILLS, THIRST]),
            mapped("A-4", [THIRST]),
        ]

    def test_shared_questions_come_first_and_limit_is_two(self):
        questions = self.engine.next_questions(self.results, {})

        self.assertEqual([q.id for q in questions], ["q_pattern", "q_chills"])
        self.assertEqual(questions[0].relevance_sources, ("A-1", "A-2", "A-3"))
        self.assertEqual(questions[0].options, ("continuous", "intermittent", "low_grade"))

    def test_only_top_three_results_are_considered(self):
        questions = self.engine.next_questions(self.results, {"q_pattern": "x", "q_chills": "y", "q_onset": "z"})

        # A-4 also asks q_thirst but sits outside the candidate pool
        self.assertEqual([q.id for q in questions], ["q_thirst"])
        self.assertEqual(questions[0].relevance_sources, ("A-3",))

    def test_answered_questions_are_skipped(self):
        questions = self.engine.next_questions(self.results, {"q_pattern": "continuous"})

        self.assertEqual([q.id for q in questions], ["q_chills", "q_onset"])

    def test_no_results_no_questions(self):
        self.assertEqual(self.engine.next_questions([], {}), [])


class TestRefineWithAnswers(unittest.TestCase):

    def setUp(self):
        self.engine = GuidedQuestionEngine()

    def test_duration_and_dosha_tags_adjust_confidence(self):
        result = mapped("A-1", [PATTERN], combined=0.5, doshas=("pitta",), acute=True)

        refined = self.engine.refine_with_answers([result], {"q_pattern": "continuous"})

        # acute 2 * 0.1 + pitta 1 * 0.15
        self.assertAlmostEqual(refined[0].combined_confidence, 0.85)

    def test_duration_tag_requires_matching_flag(self):
        result = mapped("A-1", [PATTERN], combined=0.5, acute=False, chronic=True)

        refined = self.engine.refine_with_answers([result], {"q_pattern": "continuous"})

        self.assertAlmostEqual(refined[0].combined_confidence, 0.5)

    def test_boolean_answers_use_yes_no_keys(self):
        result = mapped("A-1", [CHILLS], combined=0.5, doshas=("vata",))

        refined = self.engine.refine_with_answers([result], {"q_chills": True})

        self.assertAlmostEqual(refined[0].combined_confidence, 0.65)

    def test_combined_confidence_is_clamped(self):
        result = mapped("A-1", [THIRST], combined=0.9, doshas=("pitta",))

        refined = self.engine.refine_with_answers([result], {"q_thirst": "yes"})

        self.assertEqual(refined[0].combined_confidence, 1.0)

    def test_negative_adjustment_is_clamped_to_zero(self):
        result = mapped("A-1", [COLD], combined=0.5, doshas=("pitta",))

        refined = self.engine.refine_with_answers([result], {"q_cold": True})

        self.assertEqual(refined[0].combined_confidence, 0.0)

    def test_unknown_answers_are_ignored(self):
        result = mapped("A-1", [PATTERN], combined=0.5, doshas=("pitta",))

        refined = self.engine.refine_with_answers([result], {"q_pattern": "sometimes", "q_other": "yes"})

        self.assertEqual(refined[0].combined_confidence, 0.5)

    def test_results_are_resorted_without_mutation(self):
        first = mapped("A-1", [ONSET], combined=0.6, acute=False, chronic=True)
        second = mapped("A-2", [ONSET], combined=0.5, acute=True)

        refined = self.engine.refine_with_answers([first, second], {"q_onset": "sudden"})

        self.assertEqual([r.code for r in refined], ["A-2", "A-1"])
        self.assertAlmostEqual(refined[0].combined_confidence, 0.7)
        self.assertEqual(second.combined_confidence, 0.5)

    def test_empty_answers_return_results_unchanged(self):
        results = [mapped("A-1", [ONSET], combined=0.6)]
        self.assertEqual(self.engine.refine_with_answers(results, {}), results)


if __name__ == "__main__":
    unittest.main()
