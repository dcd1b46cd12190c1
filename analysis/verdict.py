"""設定判別サマリー

設定推測結果（各設定の事後確率）から、画面に出す判定テキストと色を決める。

高設定（5,6）と低設定（1,2）の合計確率で判定：
  高設定 >= 70% → 高設定濃厚
  高設定 >= 50% → 高設定の可能性
  低設定 >= 70% → 低設定の可能性
  低設定 >= 50% → 低設定寄り
  それ以外     → 判別中

設定IDが数字でない場合（'L'/'H' など）はどちらの合計にも入れない。
"""

import re
from typing import Optional

# 高設定・低設定の境界（設定番号）
HIGH_SETTING_MIN = 5
LOW_SETTING_MAX = 2

# 判定閾値（上から順に評価し、最初に満たしたものを採用）
SUMMARY_THRESHOLDS = [
    ('high', 0.7, 'confirmed_high'),
    ('high', 0.5, 'possible_high'),
    ('low', 0.7, 'possible_low'),
    ('low', 0.5, 'leaning_low'),
]

# 判定レベル → (判定テキスト, 表示色)
SUMMARY_LABELS = {
    'nodata':         ('データ不足', '#888888'),
    'confirmed_high': ('高設定濃厚', '#4CAF50'),
    'possible_high':  ('高設定の可能性', '#8BC34A'),
    'possible_low':   ('低設定の可能性', '#F44336'),
    'leaning_low':    ('低設定寄り', '#FF9800'),
    'undetermined':   ('判別中', '#2196F3'),
}

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def parse_setting_number(setting_id) -> Optional[int]:
    """設定IDの先頭の整数を取り出す（'6' → 6, '5A' → 5, 'H' → None）"""
    match = _LEADING_INT.match(str(setting_id))
    if not match:
        return None
    return int(match.group(1))


def calculate_setting_mass(results: list) -> tuple:
    """高設定・低設定それぞれの合計確率を返す

    Returns:
        (高設定の合計確率, 低設定の合計確率)
    """
    high = 0.0
    low = 0.0
    for r in results:
        num = parse_setting_number(r['setting_id'])
        if num is None:
            continue
        if num >= HIGH_SETTING_MIN:
            high += r['probability']
        elif num <= LOW_SETTING_MAX:
            low += r['probability']
    return high, low


def get_summary_level(results: list) -> str:
    """判定レベルを返す（SUMMARY_LABELS のキー）"""
    if not results:
        return 'nodata'

    high, low = calculate_setting_mass(results)
    mass = {'high': high, 'low': low}
    for bucket, threshold, level in SUMMARY_THRESHOLDS:
        if mass[bucket] >= threshold:
            return level
    return 'undetermined'


def generate_setting_summary(results: list) -> dict:
    """設定推測結果のサマリーを生成

    Args:
        results: calculate_setting_probabilities の戻り値

    Returns:
        {'label': 判定テキスト, 'color': 表示色}
    """
    label, color = SUMMARY_LABELS[get_summary_level(results)]
    return {'label': label, 'color': color}
