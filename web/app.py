#!/usr/bin/env python3
"""
設定推測カウンター - Web API

スマホから小役カウントを送って、設定推測の結果を受け取るためのAPI
"""

import math
import sys
import threading
from pathlib import Path

from flask import Flask, jsonify, request

# プロジェクトルートをパスに追加
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.machines import MACHINES, MAX_TOTAL_GAMES, get_machine, get_machine_list
from analysis.machine_codec import (
    decode_machine_data,
    encode_machine_data,
    estimate_qr_data_size,
    get_recommended_ec_level,
    qr_data_to_string,
    string_to_qr_data,
)
from analysis.session import (
    clear_history,
    decrement_count,
    delete_session,
    end_session,
    increment_count,
    reset_counts,
    set_count,
    set_memo,
    start_session,
    update_game_count,
    update_results,
)
from analysis.setting_estimator import (
    build_role_stats,
    calculate_expected_setting,
    calculate_setting_probabilities,
    get_top_setting,
)
from analysis.verdict import generate_setting_summary

app = Flask(__name__)

# キャッシュ無効化 + CORS対応
@app.after_request
def add_header(response):
    response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, max-age=0'
    response.headers['Pragma'] = 'no-cache'
    response.headers['Expires'] = '0'
    response.headers['Access-Control-Allow-Origin'] = '*'
    response.headers['Access-Control-Allow-Methods'] = 'GET, POST, DELETE, OPTIONS'
    response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
    return response

# バージョン確認用
APP_VERSION = '2026-10-18-v1-setting-estimator'

# 実戦中セッション {session_id: {'session': dict, 'machine': dict}}
SESSIONS = {}
SESSION_HISTORY = []
SESSIONS_LOCK = threading.Lock()


def _to_int(value, key: str) -> int:
    """整数に変換（不正・上限超えなら ValueError）"""
    if isinstance(value, bool):
        raise ValueError(key)
    try:
        num = int(value)
    except OverflowError:
        raise ValueError(key)
    if abs(num) > MAX_TOTAL_GAMES:
        raise ValueError(key)
    return num


def _int_arg(data: dict, key: str, default=0):
    """JSONボディから整数を取り出す（不正なら ValueError）"""
    return _to_int(data.get(key, default), key)


def _parse_counts(raw) -> dict:
    """counts を {role_id: int} に正規化"""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError('counts')
    return {str(k): _to_int(v, 'counts') for k, v in raw.items()}


def _is_probability(value) -> bool:
    if value is None:
        return True
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_valid_machine_data(machine) -> bool:
    """直接指定された機種データの形式チェック"""
    if not isinstance(machine, dict):
        return False
    settings = machine.get('settings')
    roles = machine.get('roles')
    if not isinstance(settings, list) or not isinstance(roles, list):
        return False

    for s in settings:
        if not isinstance(s, dict) or not isinstance(s.get('id'), str) or not isinstance(s.get('name'), str):
            return False

    for r in roles:
        if (
            not isinstance(r, dict)
            or not isinstance(r.get('id'), str)
            or not isinstance(r.get('name'), str)
            or not isinstance(r.get('probabilities'), dict)
            or not all(_is_probability(p) for p in r['probabilities'].values())
        ):
            return False
        order = r.get('display_order', 0)
        if isinstance(order, bool) or not isinstance(order, (int, float)):
            return False
    return True


def _resolve_machine(data: dict):
    """リクエストから機種データを決める（機種キー or 機種データ直接指定）

    機種データの形式が不正なら ValueError、機種キーが無ければ None。
    """
    if data.get('machine_data'):
        machine = data['machine_data']
        if not _is_valid_machine_data(machine):
            raise ValueError('machine_data')
        machine.setdefault('id', 'custom')
        machine.setdefault('name', '')
        return machine
    return get_machine(str(data.get('machine', '')))


def build_estimate(machine: dict, total_games: int, counts: dict) -> dict:
    """推測結果・サマリー・小役別の表示データをまとめる"""
    results = calculate_setting_probabilities(total_games, machine['roles'], counts, machine['settings'])
    return {
        'total_games': total_games,
        'results': results,
        'summary': generate_setting_summary(results),
        'top_setting': get_top_setting(results),
        'expected_setting': calculate_expected_setting(results),
        'role_stats': build_role_stats(machine['roles'], counts, total_games, machine['settings']),
    }


def _session_response(entry: dict) -> dict:
    session = entry['session']
    machine = entry['machine']
    games = session['total_games'] - session['start_games']
    return {
        'session': session,
        'summary': generate_setting_summary(session['results']),
        'role_stats': build_role_stats(machine['roles'], session['counts'], games, machine['settings']),
    }


@app.route('/version')
def version():
    return APP_VERSION

# 検索エンジンブロック用
@app.route('/robots.txt')
def robots():
    return """User-agent: *
Disallow: /
""", 200, {'Content-Type': 'text/plain'}


@app.route('/api/machines')
def api_machines():
    return jsonify({'machines': get_machine_list()})


@app.route('/api/machines/<machine_key>')
def api_machine(machine_key: str):
    machine = get_machine(machine_key)
    if not machine:
        return jsonify({'error': 'Machine not found'}), 404
    return jsonify(machine)


@app.route('/api/machines/<machine_key>/qr')
def api_machine_qr(machine_key: str):
    """QRコード共有用の圧縮データ"""
    machine = get_machine(machine_key)
    if not machine:
        return jsonify({'error': 'Machine not found'}), 404

    qr_data = encode_machine_data(machine)
    size = estimate_qr_data_size(qr_data)
    return jsonify({
        'data': qr_data_to_string(qr_data),
        'size': size,
        'ec_level': get_recommended_ec_level(size),
    })


@app.route('/api/decode', methods=['POST'])
def api_decode():
    """QRコードの読み取り文字列から機種データを復元"""
    data = request.get_json(silent=True) or {}
    qr_data = string_to_qr_data(data.get('data', ''))
    if qr_data is None:
        return jsonify({'error': 'Invalid machine data'}), 400
    return jsonify(decode_machine_data(qr_data, data.get('id')))


@app.route('/api/estimate', methods=['POST'])
def api_estimate():
    """カウント結果から設定推測（セッションなしの単発計算）"""
    data = request.get_json(silent=True) or {}
    try:
        machine = _resolve_machine(data)
    except ValueError:
        return jsonify({'error': 'Invalid machine data'}), 400
    if not machine:
        return jsonify({'error': 'Machine not found'}), 404

    try:
        total_games = _int_arg(data, 'total_games')
        start_games = _int_arg(data, 'start_games')
        counts = _parse_counts(data.get('counts'))
    except (TypeError, ValueError):
        return jsonify({'error': 'Invalid parameters'}), 400

    estimate = build_estimate(machine, total_games - start_games, counts)
    estimate['machine'] = {'id': machine['id'], 'name': machine['name']}
    return jsonify(estimate)


# =====================================================================
# セッションAPI
# =====================================================================

@app.route('/api/sessions', methods=['POST'])
def api_start_session():
    data = request.get_json(silent=True) or {}
    try:
        machine = _resolve_machine(data)
    except ValueError:
        return jsonify({'error': 'Invalid machine data'}), 400
    if not machine:
        return jsonify({'error': 'Machine not found'}), 404
    try:
        start_games = max(0, _int_arg(data, 'start_games'))
    except (TypeError, ValueError):
        return jsonify({'error': 'Invalid parameters'}), 400

    session = start_session(machine, start_games)
    entry = {'session': session, 'machine': machine}
    with SESSIONS_LOCK:
        SESSIONS[session['id']] = entry
    return jsonify(_session_response(entry)), 201


@app.route('/api/sessions/<session_id>')
def api_get_session(session_id: str):
    with SESSIONS_LOCK:
        entry = SESSIONS.get(session_id)
    if not entry:
        return jsonify({'error': 'Session not found'}), 404
    return jsonify(_session_response(entry))


def _apply(session_id: str, operation, recalc: bool = True):
    """セッションに操作を適用して推測をやり直す"""
    with SESSIONS_LOCK:
        entry = SESSIONS.get(session_id)
        if not entry:
            return jsonify({'error': 'Session not found'}), 404
        session = operation(entry['session'])
        if recalc:
            session = update_results(session, entry['machine'])
        entry = {'session': session, 'machine': entry['machine']}
        SESSIONS[session_id] = entry
    return jsonify(_session_response(entry))


@app.route('/api/sessions/<session_id>/games', methods=['POST'])
def api_update_games(session_id: str):
    data = request.get_json(silent=True) or {}
    try:
        total_games = _int_arg(data, 'total_games')
    except (TypeError, ValueError):
        return jsonify({'error': 'Invalid parameters'}), 400
    return _apply(session_id, lambda s: update_game_count(s, total_games))


@app.route('/api/sessions/<session_id>/counts/<role_id>', methods=['POST'])
def api_update_count(session_id: str, role_id: str):
    data = request.get_json(silent=True) or {}
    action = data.get('action', 'increment')

    if action == 'increment':
        operation = lambda s: increment_count(s, role_id)
    elif action == 'decrement':
        operation = lambda s: decrement_count(s, role_id)
    elif action == 'set':
        try:
            count = _int_arg(data, 'count')
        except (TypeError, ValueError):
            return jsonify({'error': 'Invalid parameters'}), 400
        operation = lambda s: set_count(s, role_id, count)
    else:
        return jsonify({'error': f'Unknown action: {action}'}), 400

    return _apply(session_id, operation)


@app.route('/api/sessions/<session_id>/reset', methods=['POST'])
def api_reset_session(session_id: str):
    return _apply(session_id, reset_counts, recalc=False)


@app.route('/api/sessions/<session_id>/memo', methods=['POST'])
def api_set_memo(session_id: str):
    data = request.get_json(silent=True) or {}
    memo = str(data.get('memo', ''))
    return _apply(session_id, lambda s: set_memo(s, memo), recalc=False)


@app.route('/api/sessions/<session_id>/end', methods=['POST'])
def api_end_session(session_id: str):
    global SESSION_HISTORY
    data = request.get_json(silent=True) or {}
    save = data.get('save', True)
    if not isinstance(save, bool):
        return jsonify({'error': 'Invalid parameters'}), 400

    with SESSIONS_LOCK:
        entry = SESSIONS.pop(session_id, None)
        if not entry:
            return jsonify({'error': 'Session not found'}), 404
        _, SESSION_HISTORY = end_session(entry['session'], SESSION_HISTORY, save)
        history_count = len(SESSION_HISTORY)

    return jsonify({'status': 'ended', 'saved': save, 'history_count': history_count})


@app.route('/api/history')
def api_history():
    with SESSIONS_LOCK:
        history = list(SESSION_HISTORY)
    return jsonify({'sessions': history})


@app.route('/api/history', methods=['DELETE'])
def api_clear_history():
    global SESSION_HISTORY
    with SESSIONS_LOCK:
        deleted = len(SESSION_HISTORY)
        SESSION_HISTORY = clear_history()
    return jsonify({'status': 'cleared', 'deleted': deleted})


@app.route('/api/history/<session_id>', methods=['DELETE'])
def api_delete_history(session_id: str):
    global SESSION_HISTORY
    with SESSIONS_LOCK:
        before = len(SESSION_HISTORY)
        SESSION_HISTORY = delete_session(SESSION_HISTORY, session_id)
        deleted = len(SESSION_HISTORY) < before
    if not deleted:
        return jsonify({'error': 'Session not found'}), 404
    return jsonify({'status': 'deleted'})


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='設定推測カウンター API')
    parser.add_argument('--host', default='0.0.0.0', help='ホスト (default: 0.0.0.0)')
    parser.add_argument('--port', '-p', type=int, default=5000, help='ポート (default: 5000)')
    parser.add_argument('--debug', '-d', action='store_true', help='デバッグモード')
    args = parser.parse_args()

    print(f"""
====================================
  設定推測カウンター API
====================================
  URL: http://localhost:{args.port}

  登録機種:
""")
    for key, machine in MACHINES.items():
        print(f"    - {machine['name']} ({key}, 小役{len(machine['roles'])}種)")
    print()

    app.run(host=args.host, port=args.port, debug=args.debug)
