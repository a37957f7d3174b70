import unittest

from scoring.utils import compute_weighted_score, format_reaction_counts, label_boost_total, round_half_up, score_reactions


class TestScoringUtils(unittest.TestCase):
    def test_compute_weighted_score(self):
        metrics = {'THUMBS_UP': 2, 'HEART': 1}
        weights = {'THUMBS_UP': 3, 'THUMBS_DOWN': 2, 'HEART': 2}
        self.assertAlmostEqual(compute_weighted_score(metrics, weights), 8.0)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(-2.5), -2)
        self.assertEqual(round_half_up(0.49), 0)
        self.assertEqual(round_half_up(48.4), 48)

    def test_score_reactions(self):
        reactions = {'THUMBS_UP': 2, 'ROCKET': 1, 'THUMBS_DOWN': 1, 'CONFUSED': 1, 'EYES': 5}
        self.assertEqual(score_reactions(reactions), 2)

    def test_label_boosts_ignore_case(self):
        self.assertEqual(label_boost_total(['Security', 'docs'], {'security': 40}), 40)

    def test_format_reaction_counts(self):
        self.assertEqual(format_reaction_counts({'THUMBS_UP': 3, 'HEART': 1}), 'HEART:1, THUMBS_UP:3')
        self.assertEqual(format_reaction_counts({}), 'none')


if __name__ == '__main__':
    unittest.main()
