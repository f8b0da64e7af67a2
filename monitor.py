"""
コンパス＋グリッドロケーター表示の状態管理

センサー（GPS / 磁気）から届くイベントを受け取り、
最新の方位・位置・グリッドロケーターを保持する。
リーダースレッドから呼ばれるのでロックで保護する。
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional

from compass import MagneticSample, compute_heading, direction_label
from grid_locator import GeoCoordinate, format_grid_locator, is_valid_coordinate
from magnetometer import HardIronCalibration, parse_sample
from nmea_parser import DEFAULT_UERE_M, NMEAParser, PositionFix, estimated_accuracy_m

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371008.8


def haversine_m(lat1, lon1, lat2, lon2):
    """2点間の距離（m）"""
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dlat = p2 - p1
    dlon = math.radians(lon2 - lon1)
    a = math.sin(dlat / 2.0) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dlon / 2.0) ** 2
    return 2.0 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, a)))


@dataclass(frozen=True)
class MonitorState:
    heading: int = 0
    direction: str = 'N'
    coordinate: Optional[GeoCoordinate] = None
    altitude: Optional[float] = None
    accuracy_m: Optional[float] = None
    grid_locator: Optional[str] = None
    last_update: Optional[datetime] = None
    update_time_ms: Optional[float] = None
    location_error: Optional[str] = None


class CompassMonitor:
    def __init__(self, config=None):
        self._lock = threading.Lock()
        self._state = MonitorState()
        self._last_fix_mono: Optional[float] = None
        self.parser = NMEAParser()

        self.scheme = 'compass'
        self.min_interval_s = 5.0
        self.min_distance_m = 5.0
        self.uere_m = DEFAULT_UERE_M
        self.calibration = HardIronCalibration()
        if config is not None:
            self._apply_config(config)

    def _apply_config(self, config):
        self.scheme = config.get('grid', 'scheme') or 'compass'
        if self.scheme not in ('compass', 'maidenhead'):
            logger.warning("unknown grid scheme %r, using 'compass'", self.scheme)
            self.scheme = 'compass'
        try:
            self.min_interval_s = float(config.get('gps', 'min_interval_s') or 0.0)
            self.min_distance_m = float(config.get('gps', 'min_distance_m') or 0.0)
            self.uere_m = float(config.get('gps', 'uere_m') or DEFAULT_UERE_M)
        except (TypeError, ValueError) as e:
            logger.warning("invalid gps thresholds in config: %s", e)
        self.calibration = HardIronCalibration.from_config(config)

    @property
    def state(self) -> MonitorState:
        with self._lock:
            return self._state

    # --- magnetometer -------------------------------------------------------

    def on_magnetic_sample(self, sample: MagneticSample) -> Optional[int]:
        """方位を更新。nan/inf を含むサンプルは無視して None"""
        sample = self.calibration.apply(sample)
        if not (math.isfinite(sample.x) and math.isfinite(sample.y)):
            logger.debug("magnetic sample ignored: %s", sample)
            return None
        heading = compute_heading(sample)
        with self._lock:
            self._state = replace(self._state, heading=heading, direction=direction_label(heading))
        return heading

    def handle_magnetometer_line(self, line: str):
        sample = parse_sample(line)
        if sample is None:
            return None
        return self.on_magnetic_sample(sample)

    # --- GPS ----------------------------------------------------------------

    def _should_accept(self, fix: PositionFix, now: float) -> bool:
        """最小間隔と最小移動距離の両方を満たしたときだけ更新（初回は常に更新）"""
        prev = self._state.coordinate
        if prev is None or self._last_fix_mono is None:
            return True
        if now - self._last_fix_mono < self.min_interval_s:
            return False
        moved = haversine_m(prev.latitude, prev.longitude, fix.latitude, fix.longitude)
        return moved >= self.min_distance_m

    def on_position_fix(self, fix: PositionFix, now: Optional[float] = None) -> bool:
        """位置更新。状態を更新したら True"""
        t0 = time.perf_counter()
        if not is_valid_coordinate(fix.latitude, fix.longitude):
            logger.warning("position out of range ignored: lat=%s lon=%s", fix.latitude, fix.longitude)
            return False
        now = time.monotonic() if now is None else now

        with self._lock:
            if not self._should_accept(fix, now):
                return False
            coord = fix.coordinate
            grid = format_grid_locator(coord.grid_locator(self.scheme))
            self._last_fix_mono = now
            self._state = replace(
                self._state,
                coordinate=coord,
                altitude=fix.altitude,
                accuracy_m=estimated_accuracy_m(fix.hdop, self.uere_m),
                grid_locator=grid,
                last_update=fix.timestamp or datetime.now().astimezone(),
                update_time_ms=(time.perf_counter() - t0) * 1000.0,
                location_error=None,
            )
        logger.debug("position: %.6f, %.6f -> %s", coord.latitude, coord.longitude, grid)
        return True

    def handle_gps_line(self, line: str):
        fix = self.parser.parse(line)
        if fix is None:
            return False
        return self.on_position_fix(fix)

    def on_location_error(self, message: str):
        logger.warning("location error: %s", message)
        with self._lock:
            self._state = replace(self._state, location_error=message)

    # --- 表示 ----------------------------------------------------------------

    def status_lines(self) -> List[str]:
        s = self.state
        lines = [
            f"Heading: {s.heading}°",
            f"Direction: {s.direction}",
        ]
        if s.coordinate is not None:
            lines.append(f"Latitude: {s.coordinate.latitude:.5f}")
            lines.append(f"Longitude: {s.coordinate.longitude:.5f}")
            lines.append(f"Grid: {s.grid_locator}")
            last = s.last_update.astimezone().strftime('%H:%M:%S') if s.last_update else '?'
            lines.append(f"Last Update: {last}")
            lines.append(f"Update Time: {round(s.update_time_ms) if s.update_time_ms is not None else '?'} ms")
            if s.accuracy_m is not None:
                lines.append(f"Accuracy: ±{s.accuracy_m:.1f} m")
            if s.location_error:
                lines.append(f"Error: {s.location_error}")
        elif s.location_error:
            lines.append(s.location_error)
        else:
            lines.append("Fetching location…")
        return lines
