"""カウントセッションのテスト"""

import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from analysis.session import (
    clear_history,
    decrement_count,
    delete_session,
    end_session,
    get_effective_games,
    increment_count,
    load_session,
    reset_counts,
    set_count,
    set_memo,
    start_session,
    update_game_count,
    update_results,
)
from config.machines import SESSION_HISTORY_LIMIT, get_machine


class TestSessionLifecycle(unittest.TestCase):

    def setUp(self):
        self.machine = get_machine('my_juggler_v')
        self.session = start_session(self.machine, start_games=1200)

    def test_start(self):
        s = self.session
        self.assertEqual(s['machine_id'], 'my_juggler_v')
        self.assertEqual(s['machine_name'], 'マイジャグラーV')
        self.assertEqual(s['total_games'], 1200)
        self.assertEqual(s['start_games'], 1200)
        self.assertEqual(s['counts'], {'grape': 0, 'solo_reg': 0, 'cherry_reg': 0})
        self.assertTrue(s['is_active'])
        self.assertEqual(len(s['results']), 6)
        for r in s['results']:
            self.assertAlmostEqual(r['probability'], 1 / 6)

    def test_increment_does_not_mutate(self):
        updated = increment_count(self.session, 'grape')
        self.assertEqual(updated['counts']['grape'], 1)
        self.assertEqual(self.session['counts']['grape'], 0)

    def test_increment_unknown_role(self):
        updated = increment_count(self.session, 'bell')
        self.assertEqual(updated['counts']['bell'], 1)

    def test_decrement(self):
        s = increment_count(increment_count(self.session, 'grape'), 'grape')
        s = decrement_count(s, 'grape')
        self.assertEqual(s['counts']['grape'], 1)

    def test_decrement_at_zero_is_noop(self):
        self.assertIs(decrement_count(self.session, 'grape'), self.session)

    def test_set_count_clamps(self):
        self.assertEqual(set_count(self.session, 'grape', 42)['counts']['grape'], 42)
        self.assertEqual(set_count(self.session, 'grape', -3)['counts']['grape'], 0)

    def test_update_game_count_clamps(self):
        self.assertEqual(update_game_count(self.session, 3000)['total_games'], 3000)
        self.assertEqual(update_game_count(self.session, -1)['total_games'], 0)

    def test_effective_games(self):
        s = update_game_count(self.session, 4200)
        self.assertEqual(get_effective_games(s), 3000)

    def test_update_results_uses_effective_games(self):
        # 打ち始めから回していないので均等のまま
        s = update_results(set_count(self.session, 'grape', 10), self.machine)
        for r in s['results']:
            self.assertAlmostEqual(r['probability'], 1 / 6)

        s = update_game_count(s, 1200 + 6000)
        s = set_count(s, 'grape', 975)
        s = set_count(s, 'solo_reg', 25)
        s = update_results(s, self.machine)
        self.assertAlmostEqual(sum(r['probability'] for r in s['results']), 1, delta=1e-6)
        self.assertNotAlmostEqual(s['results'][0]['probability'], 1 / 6)

    def test_reset(self):
        s = update_game_count(increment_count(self.session, 'grape'), 5000)
        s = update_results(s, self.machine)
        s = reset_counts(s)
        self.assertEqual(s['total_games'], 0)
        self.assertEqual(set(s['counts'].values()), {0})
        for r in s['results']:
            self.assertAlmostEqual(r['probability'], 1 / 6)
            self.assertEqual(r['likelihood'], 1)

    def test_memo(self):
        self.assertEqual(set_memo(self.session, '角台')['memo'], '角台')


class TestSessionHistory(unittest.TestCase):

    def setUp(self):
        self.machine = get_machine('im_juggler_ex')

    def test_end_without_save(self):
        session = start_session(self.machine)
        current, history = end_session(session, [], save=False)
        self.assertIsNone(current)
        self.assertEqual(history, [])

    def test_end_with_save(self):
        first = start_session(self.machine)
        second = start_session(self.machine)
        _, history = end_session(first, [], save=True)
        _, history = end_session(second, history, save=True)
        self.assertEqual([s['id'] for s in history], [second['id'], first['id']])
        self.assertFalse(history[0]['is_active'])
        self.assertTrue(second['is_active'])

    def test_end_without_session(self):
        self.assertEqual(end_session(None, [{'id': 'x'}], save=True), (None, [{'id': 'x'}]))

    def test_history_limit(self):
        history = []
        for _ in range(SESSION_HISTORY_LIMIT + 5):
            _, history = end_session(start_session(self.machine), history, save=True)
        self.assertEqual(len(history), SESSION_HISTORY_LIMIT)

    def test_delete_and_load(self):
        session = start_session(self.machine)
        _, history = end_session(session, [], save=True)
        restored = load_session(history[0])
        self.assertTrue(restored['is_active'])
        self.assertEqual(restored['id'], session['id'])
        self.assertEqual(delete_session(history, session['id']), [])

    def test_clear_history(self):
        history = []
        for _ in range(3):
            _, history = end_session(start_session(self.machine), history, save=True)
        self.assertEqual(clear_history(), [])
        # 既存の履歴リストは書き換えない
        self.assertEqual(len(history), 3)


if __name__ == '__main__':
    unittest.main()
