#!/usr/bin/env python3
"""Unit tests for the per-position rule chain and move selection."""
import unittest
import random

import combo_trainer as trainer
from combo_trainer import Move, SelectionContext


JAB = Move('jab', lead=True, rear=False)
DIRETO = Move('direto', lead=False, rear=True)
CHUTA = Move('chuta', lead=True, rear=True, leg=True)
NEVER = Move('never', lead=True, rear=True, skip_probability=1.0)


class FixedRandom:
    """Stand-in rng returning a fixed value from random()."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value

    def randrange(self, n):
        return 0


def ctx(is_lead=True, position=0, sequence_length=2):
    return SelectionContext(is_lead=is_lead, position=position, sequence_length=sequence_length)


class TestRules(unittest.TestCase):
    def test_probability_rule_boundaries(self):
        rng = random.Random(5)
        for _ in range(200):
            self.assertTrue(trainer.probability_rule(JAB, ctx(), rng))
            self.assertFalse(trainer.probability_rule(NEVER, ctx(), rng))

    def test_probability_rule_compares_with_draw(self):
        half = Move('half', lead=True, rear=True, skip_probability=0.5)
        self.assertTrue(trainer.probability_rule(half, ctx(), FixedRandom(0.5)))
        self.assertFalse(trainer.probability_rule(half, ctx(), FixedRandom(0.49)))

    def test_side_rules(self):
        self.assertTrue(trainer.lead_rule(JAB, ctx(), None))
        self.assertFalse(trainer.rear_rule(JAB, ctx(), None))
        self.assertTrue(trainer.rear_rule(DIRETO, ctx(), None))
        self.assertFalse(trainer.lead_rule(DIRETO, ctx(), None))

    def test_limb_rules(self):
        self.assertTrue(trainer.must_be_leg_rule(CHUTA, ctx(), None))
        self.assertFalse(trainer.must_be_leg_rule(JAB, ctx(), None))
        self.assertTrue(trainer.must_not_be_leg_rule(JAB, ctx(), None))
        self.assertFalse(trainer.must_not_be_leg_rule(CHUTA, ctx(), None))


class TestBuildRules(unittest.TestCase):
    def test_pure_arm_set_has_no_limb_rule(self):
        rules = trainer.build_rules([JAB, DIRETO], ctx(sequence_length=4, position=3))
        self.assertEqual(rules, [trainer.probability_rule, trainer.lead_rule])

    def test_pure_leg_set_has_no_limb_rule(self):
        rules = trainer.build_rules([CHUTA], ctx(is_lead=False, sequence_length=3))
        self.assertEqual(rules, [trainer.probability_rule, trainer.rear_rule])

    def test_mixed_set_last_position_of_long_round(self):
        rules = trainer.build_rules([JAB, CHUTA], ctx(sequence_length=4, position=3))
        self.assertEqual(rules[-1], trainer.must_be_leg_rule)

    def test_mixed_set_inner_positions(self):
        for n, position in ((4, 0), (4, 2), (2, 1), (3, 2)):
            with self.subTest(sequence_length=n, position=position):
                rules = trainer.build_rules([JAB, CHUTA], ctx(sequence_length=n, position=position))
                self.assertEqual(rules[-1], trainer.must_not_be_leg_rule)

    def test_mixed_set_single_move_round(self):
        rules = trainer.build_rules([JAB, CHUTA], ctx(sequence_length=1))
        self.assertEqual(len(rules), 2)

    def test_without_probability(self):
        rules = trainer.build_rules([JAB], ctx(is_lead=False), with_probability=False)
        self.assertEqual(rules, [trainer.rear_rule])

    def test_context_last_position(self):
        self.assertTrue(ctx(position=3, sequence_length=4).is_last)
        self.assertFalse(ctx(position=2, sequence_length=4).is_last)


class CountingRandom:
    """Seeded rng wrapper that counts random() calls."""

    def __init__(self, seed):
        self._rng = random.Random(seed)
        self.draws = 0

    def random(self):
        self.draws += 1
        return self._rng.random()

    def randrange(self, n):
        return self._rng.randrange(n)


class TestSelectMove(unittest.TestCase):
    def test_one_draw_per_candidate_per_call(self):
        working = [Move(f'm{i}', lead=True, rear=True, skip_probability=0.2) for i in range(6)]
        working.append(JAB)
        rng = CountingRandom(8)
        for call in range(1, 21):
            trainer.select_move(working, ctx(), rng)
            self.assertEqual(rng.draws, call * len(working))

    def test_candidates_are_skipped_independently(self):
        a = Move('a', lead=True, rear=True, skip_probability=0.5)
        b = Move('b', lead=True, rear=True, skip_probability=0.5)
        rng = random.Random(21)
        outcomes = set()
        for _ in range(400):
            allowed = trainer.apply_rules([a, b], [trainer.probability_rule], ctx(), rng)
            outcomes.add(tuple(m.name for m in allowed))
        self.assertEqual(outcomes, {(), ('a',), ('b',), ('a', 'b')})

    def test_only_eligible_move_is_picked(self):
        rng = random.Random(3)
        for _ in range(50):
            self.assertEqual(trainer.select_move([JAB, DIRETO, NEVER], ctx(is_lead=False), rng), DIRETO)

    def test_pick_is_uniform_over_allowed(self):
        cruza = Move('cruza', lead=True, rear=True)
        upper = Move('upper', lead=True, rear=True)
        rng = random.Random(4)
        picked = {trainer.select_move([JAB, cruza, upper], ctx(), rng).name for _ in range(200)}
        self.assertEqual(picked, {'jab', 'cruza', 'upper'})

    def test_empty_selection_raises(self):
        with self.assertRaises(trainer.NoEligibleMoveError) as cm:
            trainer.select_move([JAB], ctx(is_lead=False, position=1), random.Random(0))
        self.assertIn('position 2 of 2', str(cm.exception))
        self.assertIn('rear', str(cm.exception))

    def test_apply_rules_keeps_order(self):
        moves = [JAB, CHUTA, DIRETO]
        allowed = trainer.apply_rules(moves, [trainer.must_not_be_leg_rule], ctx(), None)
        self.assertEqual(allowed, [JAB, DIRETO])


if __name__ == '__main__':
    unittest.main()
