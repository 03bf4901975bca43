from django.test import TestCase

from core.models import PayeeMatchingRule, Workspace
from core.payee_matching import find_best_match, is_valid_regex, rules_for_workspace


class PayeeMatchingTests(TestCase):
    def setUp(self):
        self.workspace = Workspace.objects.create(name="Home")

    def rule(self, pattern, category, regex=False):
        return PayeeMatchingRule.objects.create(
            workspace=self.workspace, payee_pattern=pattern, category=category, payee_is_regex=regex
        )

    def test_longest_substring_wins(self):
        self.rule("shell", "Fuel")
        self.rule("shell oil", "Car")
        rules = rules_for_workspace(self.workspace)
        self.assertEqual(find_best_match("SHELL OIL 1234", rules), "Car")
        self.assertEqual(find_best_match("Shell Station", rules), "Fuel")

    def test_regex_beats_substring(self):
        self.rule("amazon marketplace", "Shopping")
        self.rule(r"^amazon\b", "Online", regex=True)
        rules = rules_for_workspace(self.workspace)
        self.assertEqual(find_best_match("Amazon Marketplace", rules), "Online")

    def test_no_match_and_blank_payee(self):
        self.rule("grocer", "Food")
        rules = rules_for_workspace(self.workspace)
        self.assertIsNone(find_best_match("Cinema", rules))
        self.assertIsNone(find_best_match("   ", rules))

    def test_invalid_regex_is_skipped(self):
        self.rule("([", "Broken", regex=True)
        self.rule("cafe", "Coffee")
        self.assertEqual(find_best_match("Cafe Nero", rules_for_workspace(self.workspace)), "Coffee")
        self.assertFalse(is_valid_regex("(["))
        self.assertTrue(is_valid_regex(r"\d+"))
