"""CLIスクリプトのテスト"""

import io
import random
import sys
import unittest
from contextlib import redirect_stdout
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from scripts.backtest import run_backtest, simulate_counts
from scripts.estimate import parse_count_args, print_estimate
from config.machines import get_machine


class TestEstimateScript(unittest.TestCase):

    def test_parse_count_args(self):
        self.assertEqual(parse_count_args(['grape=470', 'solo_reg=10']), {'grape': 470, 'solo_reg': 10})
        self.assertEqual(parse_count_args(None), {})

    def test_parse_count_args_invalid(self):
        with self.assertRaises(ValueError):
            parse_count_args(['grape'])
        with self.assertRaises(ValueError):
            parse_count_args(['grape=many'])

    def test_print_estimate(self):
        out = io.StringIO()
        with redirect_stdout(out):
            print_estimate(get_machine('my_juggler_v'), 3000, {'grape': 470, 'solo_reg': 10})
        text = out.getvalue()
        self.assertIn('マイジャグラーV', text)
        self.assertIn('設定6', text)
        self.assertIn('判定:', text)


class TestBacktestScript(unittest.TestCase):

    def test_simulate_counts(self):
        machine = get_machine('my_juggler_v')
        counts = simulate_counts(machine, '6', 1000, random.Random(0))
        self.assertEqual(set(counts), {'grape', 'solo_reg', 'cherry_reg'})
        self.assertLessEqual(sum(counts.values()), 1000)
        self.assertGreater(counts['grape'], 0)

    def test_run_backtest(self):
        machine = get_machine('im_juggler_ex')
        summary = run_backtest(machine, games=300, trials=3, seed=1)
        self.assertEqual(summary['games'], 300)
        self.assertEqual(list(summary['settings']), ['1', '2', '3', '4', '5', '6'])
        for sid, s in summary['settings'].items():
            self.assertTrue(0 <= s['top_rate'] <= 100)
        # 設定3・4は高低判定の対象外
        self.assertIsNone(summary['settings']['3']['verdict_rate'])
        self.assertIsNotNone(summary['settings']['6']['verdict_rate'])


if __name__ == '__main__':
    unittest.main()
