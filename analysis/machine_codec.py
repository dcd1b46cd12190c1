"""機種データの圧縮形式

QRコードで共有するための機種データの圧縮JSON。
  {
    "v": 1,                     # フォーマットバージョン
    "n": "マイジャグラーV",      # 機種名
    "t": "A",                   # 機種タイプ（A / AT / ART）
    "s": ["1", ..., "6"],       # 設定リスト
    "r": [{"n": "ぶどう", "p": [6.49, ...]}]  # 小役名と設定別の分母
  }
確率は分母（小数2桁）で持つ。データなしの設定は分母 0。
"""

import json
import math
import time
import uuid
from typing import Optional

from analysis.probability import denominator_to_probability, probability_to_denominator
from config.machines import DEFAULT_SETTINGS, MACHINE_DEFAULTS

FORMAT_VERSION = 1

# 機種タイプ ↔ 圧縮表記
_TYPE_TO_CODE = {'A-type': 'A', 'AT': 'AT', 'ART': 'ART'}
_CODE_TO_TYPE = {v: k for k, v in _TYPE_TO_CODE.items()}


def _to_denominator(p) -> float:
    """確率を分母に（データなしは 0。JSONに Infinity は載せられない）"""
    d = probability_to_denominator(p or 0)
    if math.isinf(d):
        return 0
    return round(d, 2)


def encode_machine_data(machine: dict) -> dict:
    """機種データをQRコード用の圧縮形式に変換

    設定差のある小役だけを表示順に詰める。
    """
    roles = sorted(
        (r for r in machine['roles'] if r.get('has_setting_diff')),
        key=lambda r: r.get('display_order', 0),
    )
    return {
        'v': FORMAT_VERSION,
        'n': machine['name'],
        't': _TYPE_TO_CODE.get(machine.get('type'), 'A'),
        's': [s['id'] for s in machine['settings']],
        'r': [
            {
                'n': role['name'],
                'p': [_to_denominator(role['probabilities'].get(s['id'])) for s in machine['settings']],
            }
            for role in roles
        ],
    }


def decode_machine_data(qr_data: dict, machine_id: str = None) -> dict:
    """圧縮形式を機種データに変換"""
    setting_ids = [str(s) for s in qr_data['s']]
    default_ids = [s['id'] for s in DEFAULT_SETTINGS]

    if setting_ids == default_ids:
        settings = [dict(s) for s in DEFAULT_SETTINGS]
    else:
        settings = [
            {'id': sid, 'name': f'設定{sid}', 'order': i + 1}
            for i, sid in enumerate(setting_ids)
        ]

    roles = []
    for index, qr_role in enumerate(qr_data['r']):
        roles.append({
            'id': f'role_{index}',
            'name': qr_role['n'],
            'probabilities': {
                sid: denominator_to_probability(qr_role['p'][i])
                for i, sid in enumerate(setting_ids)
            },
            'has_setting_diff': True,
            'display_order': index + 1,
        })

    now = int(time.time() * 1000)
    return {
        'id': machine_id or generate_uuid(),
        'name': qr_data['n'],
        'type': _CODE_TO_TYPE.get(qr_data['t'], MACHINE_DEFAULTS['type']),
        'settings': settings,
        'roles': roles,
        'created_at': now,
        'updated_at': now,
    }


def qr_data_to_string(qr_data: dict) -> str:
    """圧縮データを文字列に変換"""
    return json.dumps(qr_data, ensure_ascii=False, separators=(',', ':'))


def _is_number(value) -> bool:
    """有限の数値か（NaN / Infinity は不可）"""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _reject_constant(name: str):
    raise ValueError(f"invalid JSON constant: {name}")


def string_to_qr_data(text: str) -> Optional[dict]:
    """文字列を圧縮データに変換（形式が不正なら None）"""
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except (TypeError, ValueError):
        return None

    if not isinstance(parsed, dict):
        return None

    # バリデーション
    if (
        not _is_number(parsed.get('v'))
        or not isinstance(parsed.get('n'), str)
        or not isinstance(parsed.get('t'), str)
        or not isinstance(parsed.get('s'), list)
        or not isinstance(parsed.get('r'), list)
    ):
        return None

    # 小役データのバリデーション
    for role in parsed['r']:
        if (
            not isinstance(role, dict)
            or not isinstance(role.get('n'), str)
            or not isinstance(role.get('p'), list)
            or len(role['p']) != len(parsed['s'])
            or not all(_is_number(d) for d in role['p'])
        ):
            return None

    return parsed


def generate_uuid() -> str:
    """機種IDを生成"""
    return str(uuid.uuid4())


def estimate_qr_data_size(qr_data: dict) -> int:
    """QRコードに載せるデータサイズ（UTF-8のバイト数）"""
    return len(qr_data_to_string(qr_data).encode('utf-8'))


def get_recommended_ec_level(data_size: int) -> str:
    """QRコードの推奨エラー訂正レベル

    小さいデータは訂正レベルを上げ、大きいデータは容量を優先する。
    """
    if data_size < 100:
        return 'H'
    if data_size < 200:
        return 'Q'
    if data_size < 400:
        return 'M'
    return 'L'
