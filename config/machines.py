#!/usr/bin/env python3
"""
機種データ設定
設定推測で使う小役確率テーブル（プリセット機種）
"""

import copy

# 機種タイプ
MACHINE_TYPES = ['A-type', 'AT', 'ART']

# デフォルト設定（設定1〜6）
DEFAULT_SETTINGS = [
    {'id': '1', 'name': '設定1', 'order': 1},
    {'id': '2', 'name': '設定2', 'order': 2},
    {'id': '3', 'name': '設定3', 'order': 3},
    {'id': '4', 'name': '設定4', 'order': 4},
    {'id': '5', 'name': '設定5', 'order': 5},
    {'id': '6', 'name': '設定6', 'order': 6},
]

# 履歴の最大保持件数
SESSION_HISTORY_LIMIT = 100

# API で受け付けるゲーム数・カウント数の上限
MAX_TOTAL_GAMES = 100000


def _denominators(*values) -> dict:
    """設定1〜6の分母リストを確率dictに変換"""
    return {str(i + 1): 1 / v for i, v in enumerate(values)}


# プリセット機種
# probabilities は settingId -> 1G当たりの確率（0〜1）。0 はデータなし
MACHINES = {
    'my_juggler_v': {
        'id': 'my_juggler_v',
        'name': 'マイジャグラーV',
        'type': 'A-type',
        'settings': DEFAULT_SETTINGS,
        'roles': [
            {
                'id': 'grape',
                'name': 'ぶどう',
                'probabilities': _denominators(6.49, 6.49, 6.49, 6.49, 6.35, 6.18),
                'has_setting_diff': True,
                'display_order': 1,
            },
            {
                'id': 'solo_reg',
                'name': '単独REG',
                'probabilities': _denominators(512, 448, 394, 346, 287, 240),
                'has_setting_diff': True,
                'display_order': 2,
            },
            {
                'id': 'cherry_reg',
                'name': 'チェリーREG',
                'probabilities': _denominators(1365, 1213, 1092, 993, 910, 840),
                'has_setting_diff': True,
                'display_order': 3,
            },
        ],
        'author': 'プリセット',
        'version': '1.0',
    },
    'im_juggler_ex': {
        'id': 'im_juggler_ex',
        'name': 'アイムジャグラーEX',
        'type': 'A-type',
        'settings': DEFAULT_SETTINGS,
        'roles': [
            {
                'id': 'grape',
                'name': 'ぶどう',
                'probabilities': _denominators(6.49, 6.49, 6.49, 6.49, 6.35, 6.18),
                'has_setting_diff': True,
                'display_order': 1,
            },
            {
                'id': 'solo_big',
                'name': '単独BIG',
                'probabilities': _denominators(409, 399, 381, 372, 352, 334),
                'has_setting_diff': True,
                'display_order': 2,
            },
            {
                'id': 'solo_reg',
                'name': '単独REG',
                'probabilities': _denominators(528, 489, 455, 431, 373, 327),
                'has_setting_diff': True,
                'display_order': 3,
            },
        ],
        'author': 'プリセット',
        'version': '1.0',
    },
}

# 新機種追加時のデフォルト値
MACHINE_DEFAULTS = {
    'type': 'A-type',
    'settings': DEFAULT_SETTINGS,
    'author': '',
    'version': '1.0',
}


def get_machine_default(key: str):
    """機種定義の既定値を取得（未設定の場合は None）"""
    return copy.deepcopy(MACHINE_DEFAULTS.get(key))


def get_machine(machine_key: str):
    """機種データを取得（呼び出し側で書き換えても良いようにコピーを返す）"""
    machine = MACHINES.get(machine_key)
    if machine is None:
        return None
    result = copy.deepcopy(machine)
    for key in MACHINE_DEFAULTS:
        if key not in result:
            result[key] = get_machine_default(key)
    return result


def get_machine_list() -> list:
    """機種一覧（一覧表示用の要約）"""
    return [
        {
            'key': key,
            'name': m['name'],
            'type': m.get('type', MACHINE_DEFAULTS['type']),
            'role_count': len(m['roles']),
            'setting_count': len(m.get('settings', MACHINE_DEFAULTS['settings'])),
        }
        for key, m in MACHINES.items()
    ]
