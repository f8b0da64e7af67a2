"""
コンパス方位計算モジュール
磁気センサーの3軸値 → 方位（0〜359度）→ 8方位ラベル
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Tuple


@dataclass(frozen=True)
class MagneticSample:
    x: float
    y: float
    z: float = 0.0


# (label, 判定) の順で評価する。Nは0/360度をまたぐ
_SECTORS: Tuple[Tuple[str, Any], ...] = (
    ('N', lambda a: a >= 337 or a <= 22),
    ('NE', lambda a: 22 < a <= 67),
    ('E', lambda a: 67 < a <= 112),
    ('SE', lambda a: 112 < a <= 157),
    ('S', lambda a: 157 < a <= 202),
    ('SW', lambda a: 202 < a <= 247),
    ('W', lambda a: 247 < a <= 292),
    ('NW', lambda a: 292 < a < 337),
)

DIRECTIONS = tuple(label for label, _ in _SECTORS)


def _xy(sample):
    """MagneticSample / dict / (x, y, z) のどれでも受け付ける"""
    if isinstance(sample, MagneticSample):
        return sample.x, sample.y
    if isinstance(sample, dict):
        return sample['x'], sample['y']
    return sample[0], sample[1]


def compute_heading(sample) -> int:
    """
    磁気センサー値から方位（度）を計算

    Args:
        sample: MagneticSample、{'x','y','z'} の dict、または (x, y, z)

    Returns:
        0〜359 の整数。+x 方向で0、時計回りに増加
    """
    x, y = _xy(sample)
    angle = math.atan2(-y, x) * (180.0 / math.pi)
    if angle < 0:
        angle += 360.0
    # 四捨五入（.5 は切り上げ）。359.5以上は360になるので0に戻す
    return int(math.floor(angle + 0.5)) % 360


def direction_label(heading) -> str:
    """方位（度）を8方位ラベルに変換。どこにも該当しない場合（NaN等）は空文字"""
    for label, matches in _SECTORS:
        if matches(heading):
            return label
    return ''
