"""機種データ圧縮形式のテスト"""

import json
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from analysis.machine_codec import (
    decode_machine_data,
    encode_machine_data,
    estimate_qr_data_size,
    get_recommended_ec_level,
    qr_data_to_string,
    string_to_qr_data,
)
from analysis.setting_estimator import calculate_setting_probabilities
from config.machines import DEFAULT_SETTINGS, get_machine


class TestEncode(unittest.TestCase):

    def test_preset_machine(self):
        qr = encode_machine_data(get_machine('my_juggler_v'))
        self.assertEqual(qr['v'], 1)
        self.assertEqual(qr['n'], 'マイジャグラーV')
        self.assertEqual(qr['t'], 'A')
        self.assertEqual(qr['s'], ['1', '2', '3', '4', '5', '6'])
        self.assertEqual([r['n'] for r in qr['r']], ['ぶどう', '単独REG', 'チェリーREG'])
        self.assertEqual(qr['r'][0]['p'][0], 6.49)
        self.assertEqual(qr['r'][1]['p'][5], 240)

    def test_only_setting_diff_roles_in_display_order(self):
        machine = {
            'name': 'テスト機',
            'type': 'AT',
            'settings': [{'id': '1', 'name': '設定1', 'order': 1}, {'id': '6', 'name': '設定6', 'order': 2}],
            'roles': [
                {'id': 'b', 'name': 'B', 'probabilities': {'1': 0.01, '6': 0.02}, 'has_setting_diff': True, 'display_order': 2},
                {'id': 'x', 'name': 'X', 'probabilities': {'1': 0.5, '6': 0.5}, 'has_setting_diff': False, 'display_order': 0},
                {'id': 'a', 'name': 'A', 'probabilities': {'1': 0}, 'has_setting_diff': True, 'display_order': 1},
            ],
        }
        qr = encode_machine_data(machine)
        self.assertEqual(qr['t'], 'AT')
        self.assertEqual([r['n'] for r in qr['r']], ['A', 'B'])
        # データなしは分母 0
        self.assertEqual(qr['r'][0]['p'], [0, 0])
        self.assertEqual(qr['r'][1]['p'], [100, 50])
        # JSONにそのまま載る
        json.loads(qr_data_to_string(qr))


class TestDecode(unittest.TestCase):

    def test_default_settings_reused(self):
        machine = decode_machine_data(encode_machine_data(get_machine('im_juggler_ex')), 'abc')
        self.assertEqual(machine['id'], 'abc')
        self.assertEqual(machine['type'], 'A-type')
        self.assertEqual(machine['settings'], DEFAULT_SETTINGS)
        self.assertEqual([r['id'] for r in machine['roles']], ['role_0', 'role_1', 'role_2'])
        self.assertTrue(all(r['has_setting_diff'] for r in machine['roles']))
        self.assertAlmostEqual(machine['roles'][1]['probabilities']['1'], 1 / 409, places=6)

    def test_custom_settings(self):
        qr = {'v': 1, 'n': 'AT機', 't': 'ART', 's': ['L', 'H'], 'r': [{'n': 'レア役', 'p': [0, 80]}]}
        machine = decode_machine_data(qr)
        self.assertTrue(machine['id'])
        self.assertEqual(machine['type'], 'ART')
        self.assertEqual(machine['settings'][1], {'id': 'H', 'name': '設定H', 'order': 2})
        self.assertEqual(machine['roles'][0]['probabilities'], {'L': 0, 'H': 1 / 80})

    def test_unknown_type_falls_back(self):
        qr = {'v': 1, 'n': 'x', 't': 'Z', 's': ['1'], 'r': []}
        self.assertEqual(decode_machine_data(qr)['type'], 'A-type')


class TestStringConversion(unittest.TestCase):

    def test_round_trip(self):
        qr = encode_machine_data(get_machine('my_juggler_v'))
        self.assertEqual(string_to_qr_data(qr_data_to_string(qr)), qr)

    def test_invalid_json(self):
        self.assertIsNone(string_to_qr_data('not json'))
        self.assertIsNone(string_to_qr_data(''))
        self.assertIsNone(string_to_qr_data('[1, 2]'))

    def test_missing_fields(self):
        self.assertIsNone(string_to_qr_data('{"v": 1, "n": "x", "t": "A", "s": []}'))
        self.assertIsNone(string_to_qr_data('{"v": "1", "n": "x", "t": "A", "s": [], "r": []}'))

    def test_role_length_mismatch(self):
        text = json.dumps({'v': 1, 'n': 'x', 't': 'A', 's': ['1', '2'], 'r': [{'n': 'a', 'p': [10]}]})
        self.assertIsNone(string_to_qr_data(text))

    def test_role_non_numeric_denominator(self):
        text = json.dumps({'v': 1, 'n': 'x', 't': 'A', 's': ['1'], 'r': [{'n': 'a', 'p': ['10']}]})
        self.assertIsNone(string_to_qr_data(text))

    def test_non_finite_denominator(self):
        text = '{"v":1,"n":"x","t":"A","s":["1","6"],"r":[{"n":"a","p":[NaN,6.18]}]}'
        self.assertIsNone(string_to_qr_data(text))
        self.assertIsNone(string_to_qr_data(text.replace('NaN', 'Infinity')))
        self.assertIsNone(string_to_qr_data(text.replace('NaN', '1e999')))

    def test_decoded_denominators_feed_estimate(self):
        text = '{"v":1,"n":"x","t":"A","s":["1","6"],"r":[{"n":"a","p":[6.49,6.18]}]}'
        machine = decode_machine_data(string_to_qr_data(text))
        results = calculate_setting_probabilities(1000, machine['roles'], {'role_0': 160}, machine['settings'])
        self.assertGreater(results[1]['probability'], results[0]['probability'])


class TestQRSize(unittest.TestCase):

    def test_size_counts_utf8_bytes(self):
        qr = {'v': 1, 'n': 'あ', 't': 'A', 's': [], 'r': []}
        text = qr_data_to_string(qr)
        self.assertEqual(estimate_qr_data_size(qr), len(text) + 2)

    def test_ec_level(self):
        self.assertEqual(get_recommended_ec_level(50), 'H')
        self.assertEqual(get_recommended_ec_level(100), 'Q')
        self.assertEqual(get_recommended_ec_level(399), 'M')
        self.assertEqual(get_recommended_ec_level(400), 'L')


if __name__ == '__main__':
    unittest.main()
