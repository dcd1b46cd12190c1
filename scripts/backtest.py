#!/usr/bin/env python3
"""
設定推測のバックテスト
設定ごとに小役の出現をシミュレーションし、推測が当たるかを検証する

使い方:
    # マイジャグラーV、各設定200回・4000G
    python scripts/backtest.py --machine my_juggler_v --trials 200 --games 4000

    # ゲーム数を変えて比較
    python scripts/backtest.py --machine im_juggler_ex --games 2000 4000 8000
"""
import argparse
import random
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.machines import MACHINES, get_machine
from analysis.setting_estimator import calculate_setting_probabilities, get_top_setting
from analysis.verdict import get_summary_level, parse_setting_number, HIGH_SETTING_MIN, LOW_SETTING_MAX

# 判定レベルの分類
HIGH_LEVELS = ('confirmed_high', 'possible_high')
LOW_LEVELS = ('possible_low', 'leaning_low')


def simulate_counts(machine: dict, setting_id: str, games: int, rng: random.Random) -> dict:
    """指定設定で games 回転したときの小役カウントを生成

    小役は1Gに1つまで（同時に成立しない）として抽選する。
    """
    roles = [r for r in machine['roles'] if r['probabilities'].get(setting_id, 0) > 0]
    counts = {r['id']: 0 for r in machine['roles']}
    for _ in range(games):
        u = rng.random()
        acc = 0.0
        for role in roles:
            acc += role['probabilities'][setting_id]
            if u < acc:
                counts[role['id']] += 1
                break
    return counts


def run_backtest(machine: dict, games: int, trials: int, seed: int) -> dict:
    """設定ごとに trials 回シミュレーションして的中率を集計"""
    rng = random.Random(seed)
    per_setting = {}

    for setting in machine['settings']:
        sid = setting['id']
        num = parse_setting_number(sid)
        top_hits = 0
        verdict_hits = 0
        verdict_total = 0

        for _ in range(trials):
            counts = simulate_counts(machine, sid, games, rng)
            results = calculate_setting_probabilities(games, machine['roles'], counts, machine['settings'])
            top = get_top_setting(results)
            if top and top['setting_id'] == sid:
                top_hits += 1

            level = get_summary_level(results)
            if num is not None and num >= HIGH_SETTING_MIN:
                verdict_total += 1
                if level in HIGH_LEVELS:
                    verdict_hits += 1
            elif num is not None and num <= LOW_SETTING_MAX:
                verdict_total += 1
                if level in LOW_LEVELS:
                    verdict_hits += 1

        per_setting[sid] = {
            'name': setting['name'],
            'top_rate': top_hits / trials * 100 if trials > 0 else 0,
            'verdict_rate': verdict_hits / verdict_total * 100 if verdict_total > 0 else None,
        }

    return {'games': games, 'trials': trials, 'settings': per_setting}


def print_backtest(machine: dict, summary: dict):
    print(f"\n📊 {machine['name']} {summary['games']:,}G × {summary['trials']}回")
    for sid, s in summary['settings'].items():
        verdict = f"{s['verdict_rate']:.1f}%" if s['verdict_rate'] is not None else '-'
        print(f"  {s['name']:<6} 最有力的中 {s['top_rate']:5.1f}%  高低判定的中 {verdict}")


def main():
    parser = argparse.ArgumentParser(description='設定推測のバックテスト')
    parser.add_argument('--machine', choices=list(MACHINES.keys()), default='my_juggler_v',
                        help='対象機種（デフォルト: my_juggler_v）')
    parser.add_argument('--games', type=int, nargs='+', default=[4000],
                        help='シミュレーションするゲーム数（複数指定可）')
    parser.add_argument('--trials', type=int, default=100,
                        help='設定ごとの試行回数（デフォルト: 100）')
    parser.add_argument('--seed', type=int, default=1, help='乱数シード')
    args = parser.parse_args()

    machine = get_machine(args.machine)
    for games in args.games:
        summary = run_backtest(machine, games, args.trials, args.seed)
        print_backtest(machine, summary)


if __name__ == '__main__':
    main()
