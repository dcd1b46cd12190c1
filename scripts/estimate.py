#!/usr/bin/env python3
"""
設定推測（単発計算）

使い方:
    # マイジャグラーV 3000G、ぶどう470回、単独REG 10回
    python scripts/estimate.py --machine my_juggler_v --games 3000 --count grape=470 --count solo_reg=10

    # 打ち始めが 1200G の場合（実ゲーム数は games - start-games）
    python scripts/estimate.py --machine my_juggler_v --games 4200 --start-games 1200 --count grape=470

    # 登録機種一覧
    python scripts/estimate.py --list
"""
import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.machines import MACHINES, get_machine, get_machine_list
from analysis.probability import format_percentage
from analysis.setting_estimator import (
    build_role_stats,
    calculate_expected_setting,
    calculate_setting_probabilities,
)
from analysis.verdict import generate_setting_summary


def parse_count_args(values: list) -> dict:
    """'grape=470' 形式の指定を {role_id: 回数} に変換"""
    counts = {}
    for value in values or []:
        role_id, sep, num = value.partition('=')
        if not sep or not role_id:
            raise ValueError(f'カウント指定が不正です: {value}（例: grape=470）')
        counts[role_id] = int(num)
    return counts


def print_estimate(machine: dict, total_games: int, counts: dict):
    """推測結果を表示"""
    results = calculate_setting_probabilities(total_games, machine['roles'], counts, machine['settings'])
    summary = generate_setting_summary(results)
    expected = calculate_expected_setting(results)

    print(f"\n🎰 {machine['name']}  実ゲーム数: {total_games:,}G")
    print()
    print("📋 小役:")
    for stat in build_role_stats(machine['roles'], counts, total_games, machine['settings']):
        mark = '↑' if stat['is_above_theory'] else ' '
        print(f"  {stat['role_name']:<10} {stat['count']:>5}回  {stat['current_display']:>10} "
              f"(高設定 {stat['theoretical_display']}) {mark}")

    print()
    print("📊 設定推測:")
    top = max((r['probability'] for r in results), default=0)
    for r in results:
        bar = '█' * int(round(r['probability'] / top * 20)) if top > 0 else ''
        print(f"  {r['setting_name']:<6} {format_percentage(r['probability']):>7} {bar}")

    print()
    print(f"  判定: {summary['label']}")
    if expected is not None:
        print(f"  設定期待値: {expected:.2f}")


def main():
    parser = argparse.ArgumentParser(description='小役カウントから設定を推測')
    parser.add_argument('--machine', '-m', choices=list(MACHINES.keys()),
                        help='機種キー')
    parser.add_argument('--games', '-g', type=int, default=0,
                        help='総ゲーム数（データカウンターの表示値）')
    parser.add_argument('--start-games', type=int, default=0,
                        help='打ち始めのゲーム数（デフォルト: 0）')
    parser.add_argument('--count', '-c', action='append',
                        help='小役カウント ROLE=N（複数指定可）')
    parser.add_argument('--list', action='store_true', help='登録機種一覧を表示')
    args = parser.parse_args()

    if args.list:
        for m in get_machine_list():
            print(f"  {m['key']:<16} {m['name']} ({m['type']}, 小役{m['role_count']}種)")
        return

    if not args.machine:
        parser.error('--machine を指定してください')

    try:
        counts = parse_count_args(args.count)
    except ValueError as e:
        parser.error(str(e))

    machine = get_machine(args.machine)
    role_ids = {r['id'] for r in machine['roles']}
    unknown = sorted(set(counts) - role_ids)
    if unknown:
        print(f"❌ 未登録の小役: {', '.join(unknown)}（登録: {', '.join(sorted(role_ids))}）")
        sys.exit(1)

    print_estimate(machine, args.games - args.start_games, counts)


if __name__ == '__main__':
    main()
