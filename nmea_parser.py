"""
NMEA 0183パーサー（位置情報専用）
- RMC / GGA から緯度経度を取り出し PositionFix を返す
- Talker ID（$GP, $GN, $GL ...）は問わない
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from grid_locator import GeoCoordinate

logger = logging.getLogger(__name__)

# HDOPから水平精度を見積もるときの既定UERE（m）
DEFAULT_UERE_M = 5.0


@dataclass(frozen=True)
class PositionFix:
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    hdop: Optional[float] = None
    satellites: Optional[int] = None
    timestamp: Optional[datetime] = None

    @property
    def coordinate(self) -> GeoCoordinate:
        return GeoCoordinate(self.latitude, self.longitude)


def estimated_accuracy_m(hdop, uere_m=DEFAULT_UERE_M):
    """水平精度の目安（m）= HDOP × UERE。HDOP不明ならNone"""
    if hdop is None:
        return None
    return float(hdop) * float(uere_m)


class NMEAParser:
    def __init__(self):
        self.last_time = None
        self.latitude = None
        self.longitude = None
        self.altitude = None
        self.hdop = None
        self.satellites = None
        # 同じ秒のRMCを重複して返さないため
        self.last_time_update = None

    def parse(self, nmea_sentence):
        """1行を解析。位置が更新されたら PositionFix、それ以外は None"""
        if not nmea_sentence or not nmea_sentence.startswith('$'):
            return None
        # チェックサム部（*hh）は読み捨て
        parts = nmea_sentence.split('*')[0].split(',')
        msg_type = parts[0]

        if msg_type.endswith('RMC'):
            return self._parse_rmc(parts)
        elif msg_type.endswith('GGA'):
            return self._parse_gga(parts)
        return None

    def _parse_rmc(self, parts):
        try:
            if len(parts) < 10 or parts[2] != 'A':
                return None
            dt = None
            if parts[1] and parts[9]:
                dt = datetime.strptime(parts[9] + parts[1][:6], "%d%m%y%H%M%S").replace(tzinfo=timezone.utc)
                if self.last_time_update == dt:
                    return None
                self.last_time = self.last_time_update = dt
            if not (parts[3] and parts[5]):
                return None
            lat = self._parse_coordinate(parts[3], parts[4])
            lon = self._parse_coordinate(parts[5], parts[6])
            if lat is None or lon is None:
                return None
            self.latitude, self.longitude = lat, lon
            return self._fix(dt)
        except ValueError as e:
            logger.debug("RMC parse failed: %s (%s)", e, ','.join(parts))
        return None

    def _parse_gga(self, parts):
        try:
            if len(parts) < 10:
                return None
            # fix quality 0 = 測位なし
            if not parts[6] or parts[6] == '0':
                return None
            if parts[7]:
                self.satellites = int(parts[7])
            if parts[8]:
                self.hdop = float(parts[8])
            if parts[9]:
                self.altitude = float(parts[9])
            if not (parts[2] and parts[4]):
                return None
            lat = self._parse_coordinate(parts[2], parts[3])
            lon = self._parse_coordinate(parts[4], parts[5])
            if lat is None or lon is None:
                return None
            self.latitude, self.longitude = lat, lon
            return self._fix(self._gga_time(parts[1]))
        except ValueError as e:
            logger.debug("GGA parse failed: %s (%s)", e, ','.join(parts))
        return None

    def _gga_time(self, hhmmss):
        """
        GGAのUTC時刻（hhmmss.ss）に直近RMCの日付を組み合わせる
        RMCの日付がまだ無い、または時刻が読めない場合は None
        """
        if self.last_time is None or len(hhmmss) < 6:
            return None
        try:
            t = datetime.strptime(hhmmss[:6], "%H%M%S").time()
        except ValueError:
            return None
        dt = datetime.combine(self.last_time.date(), t, tzinfo=timezone.utc)
        # RMCの後に0時(UTC)をまたいだ場合は翌日
        if dt < self.last_time - timedelta(hours=12):
            dt += timedelta(days=1)
        return dt

    def _fix(self, timestamp):
        return PositionFix(
            latitude=self.latitude,
            longitude=self.longitude,
            altitude=self.altitude,
            hdop=self.hdop,
            satellites=self.satellites,
            timestamp=timestamp,
        )

    def _parse_coordinate(self, s, d):
        """ddmm.mmmm / dddmm.mmmm → 10進数（S/Wは負）"""
        try:
            dot = s.index('.') if '.' in s else len(s)
            dec = int(s[:dot - 2]) + float(s[dot - 2:]) / 60.0
            return -dec if d in ['S', 'W'] else dec
        except ValueError:
            return None
