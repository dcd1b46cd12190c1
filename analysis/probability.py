"""確率表示ユーティリティ

確率（0〜1）と「1/x」形式の分母を相互変換する。
どの関数も例外を投げず、範囲外の入力は決まった値を返す。
"""

import math


def probability_to_denominator(p: float) -> float:
    """確率から分母を計算（0以下は無限大）"""
    if p <= 0:
        return math.inf
    return 1 / p


def denominator_to_probability(d: float) -> float:
    """分母から確率を計算（0以下は確率0）"""
    if d <= 0:
        return 0
    return 1 / d


def format_probability(p: float, decimals: int = 2) -> str:
    """確率を「1/x.xx」形式の文字列に変換

    Args:
        p: 確率（0〜1）
        decimals: 分母の小数点以下桁数

    Returns:
        '1/6.49' のような文字列。p<=0 なら '-'
    """
    if p <= 0:
        return '-'
    return f"1/{1 / p:.{decimals}f}"


def format_percentage(p: float, decimals: int = 1) -> str:
    """確率をパーセント表記に変換（グラフ表示用）"""
    return f"{p * 100:.{decimals}f}%"


def calculate_current_probability(count: int, total_games: int) -> float:
    """現在の確率（回数/ゲーム数）"""
    if total_games <= 0:
        return 0
    return count / total_games
