"""
磁気センサー（シリアル出力）の行解析

受け付ける形式:
    12.5,-3.0,40.1
    12.5 -3.0 40.1
    MAG:12.5,-3.0,40.1
    x=12.5 y=-3.0 z=40.1
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Optional

from compass import MagneticSample

logger = logging.getLogger(__name__)

_KEY_VALUE = re.compile(r'([xyzXYZ])\s*[=:]\s*([-+]?[0-9.eE+-]+)')
_PREFIX = re.compile(r'^[A-Za-z_]+\s*[:=]\s*')


def parse_sample(line: str) -> Optional[MagneticSample]:
    """1行を MagneticSample に変換。解釈できなければ None（nan/inf も None）"""
    if not line:
        return None
    line = line.strip()

    pairs = dict((k.lower(), v) for k, v in _KEY_VALUE.findall(line))
    try:
        if {'x', 'y', 'z'} <= pairs.keys():
            values = [pairs['x'], pairs['y'], pairs['z']]
        else:
            body = _PREFIX.sub('', line)
            values = [v for v in re.split(r'[,;\s]+', body) if v]
            if len(values) != 3:
                return None
        x, y, z = (float(v) for v in values)
    except ValueError:
        logger.debug("magnetometer line ignored: %r", line)
        return None
    if not all(math.isfinite(v) for v in (x, y, z)):
        logger.debug("magnetometer line not finite: %r", line)
        return None
    return MagneticSample(x, y, z)


@dataclass(frozen=True)
class HardIronCalibration:
    """ハードアイアン補正（オフセット減算）。既定は補正なし"""
    x_offset: float = 0.0
    y_offset: float = 0.0
    z_offset: float = 0.0

    @classmethod
    def from_config(cls, config):
        def _get(key):
            value = config.get('magnetometer', key)
            try:
                return float(value) if value is not None else 0.0
            except (TypeError, ValueError):
                logger.warning("invalid magnetometer.%s: %r", key, value)
                return 0.0

        return cls(_get('x_offset'), _get('y_offset'), _get('z_offset'))

    def apply(self, sample: MagneticSample) -> MagneticSample:
        return MagneticSample(
            sample.x - self.x_offset,
            sample.y - self.y_offset,
            sample.z - self.z_offset,
        )
