#!/usr/bin/env python3
"""
Unit tests for scoring config validation and layering.
"""

import unittest

from core.scoring import ScoringConfigError, merge_scoring_config
from core.scoring.config import ScoringConfig, ensure_valid_config
from core.scoring.config_source import (
    MODE_DEFAULTS, combine_overrides, normalize_mode, normalize_overrides, normalize_plan,
)


class TestWeightValidation(unittest.TestCase):
    """Weights must be known, non-negative integers summing to exactly 100."""

    def _weights(self, **changes):
        weights = dict(MODE_DEFAULTS['exec'])
        weights.update(changes)
        return {'weights': weights}

    def test_exact_hundred_is_accepted(self):
        config = ScoringConfig.from_raw(self._weights())
        self.assertEqual(sum(config.weights.values()), 100)

    def test_99_and_101_are_rejected(self):
        with self.assertRaises(ScoringConfigError):
            ScoringConfig.from_raw(self._weights(core_competencies=29))
        with self.assertRaises(ScoringConfigError):
            ScoringConfig.from_raw(self._weights(core_competencies=31))

    def test_negative_weight_is_rejected(self):
        with self.assertRaises(ScoringConfigError):
            ScoringConfig.from_raw(self._weights(core_competencies=40, education=-10, cultural_fit=20))

    def test_unknown_category_is_rejected(self):
        with self.assertRaises(ScoringConfigError) as ctx:
            ScoringConfig.from_raw(self._weights(charisma=0))
        self.assertIn("charisma", str(ctx.exception))

    def test_boolean_weight_is_rejected(self):
        with self.assertRaises(ScoringConfigError):
            ScoringConfig.from_raw(self._weights(cultural_fit=True))

    def test_camel_case_weights_are_accepted(self):
        config = ScoringConfig.from_raw({'weights': {
            'coreCompetencies': 40, 'experienceQuality': 30, 'education': 10,
            'achievements': 10, 'culturalFit': 10,
        }})
        self.assertEqual(config.weights['core_competencies'], 40)

    def test_non_mapping_is_rejected(self):
        with self.assertRaises(ScoringConfigError):
            ScoringConfig.from_raw(["weights"])

    def test_config_error_is_a_value_error(self):
        self.assertTrue(issubclass(ScoringConfigError, ValueError))


class TestThresholdValidation(unittest.TestCase):

    def _config(self, thresholds):
        return {'weights': dict(MODE_DEFAULTS['exec']), 'thresholds': thresholds}

    def test_defaults(self):
        config = ScoringConfig.from_raw(self._config({}))
        self.assertEqual((config.thresholds.a, config.thresholds.b, config.thresholds.c), (80, 65, 50))

    def test_aliases(self):
        config = ScoringConfig.from_raw(self._config({'tierA': 90, 'B': 70, 'tier_c': 40}))
        self.assertEqual((config.thresholds.a, config.thresholds.b, config.thresholds.c), (90, 70, 40))

    def test_ordering_is_enforced(self):
        with self.assertRaises(ScoringConfigError):
            ScoringConfig.from_raw(self._config({'a': 60, 'b': 70, 'c': 50}))

    def test_range_is_enforced(self):
        with self.assertRaises(ScoringConfigError):
            ScoringConfig.from_raw(self._config({'a': 101}))
        with self.assertRaises(ScoringConfigError):
            ScoringConfig.from_raw(self._config({'c': 0}))


class TestMergeScoringConfig(unittest.TestCase):

    def test_mode_defaults(self):
        for mode, weights in MODE_DEFAULTS.items():
            self.assertEqual(sum(weights.values()), 100, mode)
            self.assertEqual(merge_scoring_config(mode=mode).weights, weights)

    def test_unknown_mode_falls_back_to_default(self):
        self.assertEqual(normalize_mode('banana'), 'exec')
        self.assertEqual(normalize_mode(' Volume '), 'volume')
        self.assertEqual(normalize_mode(None, default='hybrid'), 'hybrid')
        self.assertEqual(merge_scoring_config(mode='banana', default_mode='volume').hiring_mode, 'volume')

    def test_plan_policy(self):
        self.assertEqual(normalize_plan(None), 'free')
        self.assertEqual(merge_scoring_config(plan='free').must_have_policy, 'soft')
        self.assertEqual(merge_scoring_config(plan='pro').must_have_policy, 'strict')
        self.assertEqual(merge_scoring_config(plan='Enterprise').must_have_policy, 'strict')

    def test_job_overrides_win_over_tenant(self):
        config = merge_scoring_config(
            mode='exec',
            plan='pro',
            tenant_config={'mustHavePolicy': 'soft', 'thresholds': {'tierA': 90}},
            job_config={'mustHavePolicy': 'strict', 'thresholds': {'tierB': 60}},
        )
        self.assertEqual(config.must_have_policy, 'strict')
        self.assertEqual((config.thresholds.a, config.thresholds.b, config.thresholds.c), (90, 60, 50))

    def test_weights_merge_per_key(self):
        config = merge_scoring_config(
            mode='exec',
            tenant_config={'weights': {'coreCompetencies': 40, 'achievements': 10}},
        )
        self.assertEqual(config.weights['core_competencies'], 40)
        self.assertEqual(config.weights['achievements'], 10)
        self.assertEqual(config.weights['education'], 15)

    def test_merged_weights_must_still_sum_to_100(self):
        with self.assertRaises(ScoringConfigError):
            merge_scoring_config(mode='exec', tenant_config={'weights': {'coreCompetencies': 29}})

    def test_nested_legacy_keys(self):
        config = merge_scoring_config(
            plan='free',
            tenant_config={
                'skills': {'treatMissingMustHaveAsRedFlag': True},
                'bias': {'anonymizeForScoring': False},
            },
        )
        self.assertTrue(config.is_strict)
        self.assertFalse(config.anonymize)

        config = merge_scoring_config(plan='pro', tenant_config={'strictMustHaveSkills': False})
        self.assertEqual(config.must_have_policy, 'soft')

    def test_garbage_overrides_are_ignored(self):
        self.assertEqual(normalize_overrides("not a mapping"), {})
        config = merge_scoring_config(mode='hybrid', tenant_config=["weights"], job_config=42)
        self.assertEqual(config.weights, MODE_DEFAULTS['hybrid'])

    def test_ensure_valid_config_round_trips(self):
        config = merge_scoring_config(mode='volume', plan='pro')
        again = ensure_valid_config(config)
        self.assertEqual(again, config)

    def test_to_storage_is_camel_case(self):
        stored = merge_scoring_config(mode='exec').to_storage()
        self.assertEqual(stored['weights']['coreCompetencies'], 30)
        self.assertEqual(stored['thresholds'], {'tierA': 80, 'tierB': 65, 'tierC': 50})
        self.assertEqual(stored['mustHavePolicy'], 'soft')


class TestCombineOverrides(unittest.TestCase):

    def test_update_layers_per_key(self):
        combined = combine_overrides(
            {'weights': {'coreCompetencies': 35}, 'mustHavePolicy': 'strict'},
            {'weights': {'education': 10}, 'thresholds': {'tierA': 85}},
        )
        self.assertEqual(combined, {
            'weights': {'core_competencies': 35, 'education': 10},
            'thresholds': {'a': 85},
            'must_have_policy': 'strict',
        })

    def test_empty_sections_are_dropped(self):
        self.assertEqual(combine_overrides(None, {'anonymize': False}), {'anonymize': False})

    def test_stored_shape_reads_back(self):
        combined = combine_overrides(None, {'weights': {'coreCompetencies': 40, 'achievements': 10},
                                            'thresholds': {'tierC': 45}})
        config = merge_scoring_config(mode='exec', tenant_config=combined)
        self.assertEqual(config.weights['core_competencies'], 40)
        self.assertEqual(config.thresholds.c, 45)


if __name__ == '__main__':
    unittest.main()
