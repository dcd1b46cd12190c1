"""カウントセッション

実戦中のゲーム数・小役カウントを管理する。
どの関数も受け取ったセッションを書き換えず、更新後の新しいdictを返す
（推測計算には常にその時点のスナップショットが渡る）。

セッション:
  {id, machine_id, machine_name, total_games, start_games,
   counts: {role_id: 回数}, results: [設定推測結果],
   created_at, updated_at, memo, is_active}
"""

import time
from typing import Optional

from analysis.machine_codec import generate_uuid
from analysis.setting_estimator import calculate_setting_probabilities
from config.machines import SESSION_HISTORY_LIMIT


def _now_ms() -> int:
    return int(time.time() * 1000)


def _updated(session: dict, **changes) -> dict:
    """変更を反映した新しいセッションを返す"""
    new_session = {**session, **changes}
    new_session['counts'] = dict(changes.get('counts', session['counts']))
    new_session['updated_at'] = _now_ms()
    return new_session


def start_session(machine: dict, start_games: int = 0) -> dict:
    """セッション開始

    Args:
        machine: 機種データ
        start_games: 打ち始めのゲーム数（データカウンターの表示値）
    """
    now = _now_ms()
    counts = {role['id']: 0 for role in machine['roles']}
    return {
        'id': generate_uuid(),
        'machine_id': machine['id'],
        'machine_name': machine['name'],
        'total_games': start_games,
        'start_games': start_games,
        'counts': counts,
        'results': calculate_setting_probabilities(0, machine['roles'], counts, machine['settings']),
        'created_at': now,
        'updated_at': now,
        'memo': '',
        'is_active': True,
    }


def update_game_count(session: dict, total_games: int) -> dict:
    """総ゲーム数を更新（負数は0に丸める）"""
    return _updated(session, total_games=max(0, total_games))


def increment_count(session: dict, role_id: str) -> dict:
    """小役カウント +1"""
    counts = dict(session['counts'])
    counts[role_id] = counts.get(role_id, 0) + 1
    return _updated(session, counts=counts)


def decrement_count(session: dict, role_id: str) -> dict:
    """小役カウント -1（0回なら何もしない）"""
    current = session['counts'].get(role_id, 0)
    if current <= 0:
        return session
    counts = dict(session['counts'])
    counts[role_id] = current - 1
    return _updated(session, counts=counts)


def set_count(session: dict, role_id: str, count: int) -> dict:
    """小役カウントを直接指定（負数は0に丸める）"""
    counts = dict(session['counts'])
    counts[role_id] = max(0, count)
    return _updated(session, counts=counts)


def reset_counts(session: dict) -> dict:
    """ゲーム数とカウントを0に戻し、推測結果を均等に戻す"""
    results = session['results']
    equal_prob = 1 / len(results) if results else 0
    return _updated(
        session,
        total_games=0,
        counts={key: 0 for key in session['counts']},
        results=[{**r, 'probability': equal_prob, 'likelihood': 1} for r in results],
    )


def get_effective_games(session: dict) -> int:
    """打ち始めからの実ゲーム数"""
    return session['total_games'] - session['start_games']


def update_results(session: dict, machine: dict) -> dict:
    """現在のカウントで設定推測をやり直す"""
    results = calculate_setting_probabilities(
        get_effective_games(session),
        machine['roles'],
        session['counts'],
        machine['settings'],
    )
    return _updated(session, results=results)


def set_memo(session: dict, memo: str) -> dict:
    """メモを設定"""
    return _updated(session, memo=memo)


def end_session(session: Optional[dict], history: list, save: bool) -> tuple:
    """セッション終了

    Returns:
        (None, 更新後の履歴)。save=True なら先頭に追加し最大件数で切る
    """
    if session is None:
        return None, history
    if not save:
        return None, history

    saved = _updated(session, is_active=False)
    return None, [saved, *history][:SESSION_HISTORY_LIMIT]


def delete_session(history: list, session_id: str) -> list:
    """履歴からセッションを削除"""
    return [s for s in history if s['id'] != session_id]


def load_session(session: dict) -> dict:
    """履歴のセッションを再開"""
    return _updated(session, is_active=True)


def clear_history() -> list:
    """履歴を全削除"""
    return []
