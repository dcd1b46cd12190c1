"""設定推測モジュール

小役のカウント数と総ゲーム数から、各設定の事後確率を計算する。

各設定 s について、設定差のある小役ごとに二項分布の対数尤度
  log C(n,k) + k*log(p_s) + (n-k)*log(1-p_s)
を足し合わせ、最大値を引いてから exp して正規化する。
数千Gになると尤度そのものは 0 にアンダーフローするため、
積ではなく対数の和で扱うこと。
"""

import math
from typing import Optional

from analysis.binomial import log_binomial_coefficient
from analysis.probability import (
    calculate_current_probability,
    format_probability,
)
from analysis.verdict import parse_setting_number


def _uniform_results(settings: list) -> list:
    """全設定に均等確率を割り当てる"""
    equal_prob = 1 / len(settings) if settings else 0
    return [
        {
            'setting_id': s['id'],
            'setting_name': s['name'],
            'probability': equal_prob,
            'likelihood': 1,
        }
        for s in settings
    ]


def calculate_setting_probabilities(total_games: int, roles: list,
                                    counts: dict, settings: list) -> list:
    """設定推測計算

    Args:
        total_games: 対象区間のゲーム数
        roles: 小役リスト（has_setting_diff=True のものだけ使う）
        counts: roleId -> 出現回数（無ければ0回扱い）
        settings: 推測対象の設定リスト（この順で結果を返す）

    Returns:
        [{setting_id, setting_name, probability, likelihood}]
        probability は正規化後、likelihood は最大値基準の相対尤度
    """
    if total_games <= 0:
        # ゲーム数が0なら判断材料なし → 均等
        return _uniform_results(settings)

    log_likelihoods = []
    for setting in settings:
        log_likelihood = 0.0

        for role in roles:
            if not role.get('has_setting_diff'):
                continue

            p = role.get('probabilities', {}).get(setting['id'])
            # 0 と 1 は log(0) になるのでデータなし扱い
            if p is None or p <= 0 or p >= 1:
                continue

            k = counts.get(role['id'], 0) or 0
            log_likelihood += log_binomial_coefficient(total_games, k)
            log_likelihood += k * math.log(p) + (total_games - k) * math.log(1 - p)

        log_likelihoods.append(log_likelihood)

    if not log_likelihoods:
        return []

    # 最大の対数尤度を基準にする（アンダーフロー防止）
    max_log_likelihood = max(log_likelihoods)
    if math.isfinite(max_log_likelihood):
        likelihoods = [math.exp(ll - max_log_likelihood) for ll in log_likelihoods]
    else:
        # 全設定で起こりえない観測（回数 > ゲーム数など）
        likelihoods = [0.0] * len(log_likelihoods)

    total_likelihood = sum(likelihoods)
    valid_total = total_likelihood > 0 and math.isfinite(total_likelihood)

    results = []
    for setting, likelihood in zip(settings, likelihoods):
        results.append({
            'setting_id': setting['id'],
            'setting_name': setting['name'],
            'probability': likelihood / total_likelihood if valid_total else 1 / len(settings),
            'likelihood': likelihood,
        })
    return results


def sort_by_probability(results: list) -> list:
    """確率が高い順に並べ替え（表示用）"""
    return sorted(results, key=lambda r: r['probability'], reverse=True)


def get_top_setting(results: list) -> Optional[dict]:
    """最も確率の高い設定（同率なら先に並んでいる方）"""
    if not results:
        return None
    return sort_by_probability(results)[0]


def calculate_expected_setting(results: list) -> Optional[float]:
    """設定番号の期待値（数字でない設定IDは除外して再正規化）"""
    weighted = 0.0
    mass = 0.0
    for r in results:
        num = parse_setting_number(r['setting_id'])
        if num is None:
            continue
        weighted += num * r['probability']
        mass += r['probability']
    if mass <= 0:
        return None
    return weighted / mass


def _reference_setting(settings: list) -> Optional[dict]:
    """理論値比較に使う設定（設定6、無ければ最後の設定）"""
    for s in settings:
        if s['id'] == '6':
            return s
    return settings[-1] if settings else None


def build_role_stats(roles: list, counts: dict, total_games: int, settings: list) -> list:
    """小役ごとの現在確率と理論値の比較（カウンター表示用）

    Returns:
        [{role_id, role_name, count, current_probability, current_display,
          theoretical_display, is_above_theory, has_setting_diff}]
    """
    reference = _reference_setting(settings)
    stats = []
    for role in sorted(roles, key=lambda r: r.get('display_order', 0)):
        count = counts.get(role['id'], 0) or 0
        current = calculate_current_probability(count, total_games)

        theory = 0
        if reference is not None:
            theory = role.get('probabilities', {}).get(reference['id']) or 0

        stats.append({
            'role_id': role['id'],
            'role_name': role['name'],
            'count': count,
            'current_probability': current,
            'current_display': format_probability(current) if total_games > 0 else '-',
            'theoretical_display': format_probability(theory),
            'is_above_theory': total_games > 0 and theory > 0 and current > theory,
            'has_setting_diff': bool(role.get('has_setting_diff')),
        })
    return stats
