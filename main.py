"""
GridCompass — 方位＋グリッドロケーター表示（コンソール版）
メインアプリケーション

GPS（NMEA）と磁気センサーをシリアルで読み、方位と Maidenhead ロケーターを表示する。
"""
from __future__ import annotations

import argparse
import logging
import math
import sys
import time
from logging.handlers import RotatingFileHandler
from typing import Optional

from compass import MagneticSample, compute_heading, direction_label
from config import DEFAULT_CONFIG_FILE, Config
from grid_locator import encode_grid_locator, format_grid_locator, is_valid_coordinate, latlon_to_grid
from monitor import CompassMonitor
from serial_reader import SerialLineReader, list_ports

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="gridcompass", description="Compass heading and Maidenhead grid locator")
    p.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="設定ファイル（JSON）")
    p.add_argument("--gps-port", default=None)
    p.add_argument("--gps-baud", type=int, default=None)
    p.add_argument("--mag-port", default=None)
    p.add_argument("--mag-baud", type=int, default=None)
    p.add_argument("--list-ports", action="store_true", help="シリアルポート一覧を表示して終了")
    p.add_argument("--locate", nargs=2, type=float, metavar=("LAT", "LON"),
                   help="緯度経度からグリッドロケーターを表示して終了")
    p.add_argument("--heading", nargs=3, type=float, metavar=("X", "Y", "Z"),
                   help="磁気センサー値から方位を表示して終了")
    p.add_argument("--save-config", action="store_true", help="引数を反映した設定をファイルに保存して終了")
    p.add_argument("--reset-config", action="store_true", help="設定をデフォルトに戻して保存し終了")
    p.add_argument("--debug", action="store_true")
    return p.parse_args(argv)


def _setup_logging(config: Config, debug: bool = False) -> None:
    level = logging.DEBUG if (debug or config.get('debug')) else logging.INFO
    handlers = [logging.StreamHandler()]
    if config.get('logging', 'save_to_file'):
        max_mb = config.get('logging', 'max_log_size_mb') or 10
        handlers.append(RotatingFileHandler(
            config.get('logging', 'log_file') or 'gridcompass.log',
            maxBytes=int(max_mb) * 1024 * 1024,
            backupCount=1,
            encoding='utf-8',
        ))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def _apply_overrides(config: Config, ns: argparse.Namespace) -> None:
    """コマンドライン引数で設定を上書き（--save-config の時だけ保存）"""
    if ns.gps_port is not None:
        config.set('gps', 'com_port', value=ns.gps_port)
    if ns.gps_baud is not None:
        config.set('gps', 'baud_rate', value=ns.gps_baud)
    if ns.mag_port is not None:
        config.set('magnetometer', 'com_port', value=ns.mag_port)
    if ns.mag_baud is not None:
        config.set('magnetometer', 'baud_rate', value=ns.mag_baud)


def run_locate(lat: float, lon: float) -> int:
    if not is_valid_coordinate(lat, lon):
        print(f"Invalid coordinate: lat={lat} lon={lon}", file=sys.stderr)
        return 2
    print(f"Grid: {format_grid_locator(encode_grid_locator(lat, lon))}")
    print(f"Maidenhead: {latlon_to_grid(lat, lon, precision=4)}")
    return 0


def run_heading(x: float, y: float, z: float) -> int:
    if not all(math.isfinite(v) for v in (x, y, z)):
        print(f"Invalid magnetic sample: x={x} y={y} z={z}", file=sys.stderr)
        return 2
    heading = compute_heading(MagneticSample(x, y, z))
    print(f"Heading: {heading}°")
    print(f"Direction: {direction_label(heading)}")
    return 0


def _start_reader(reader: SerialLineReader, monitor: CompassMonitor, log, *, is_gps: bool) -> bool:
    try:
        reader.start()
        return True
    except (OSError, ValueError) as e:
        # serial.SerialException は OSError の派生
        log.error("%s open failed: %s", reader.name, e)
        if is_gps:
            monitor.on_location_error(f"Cannot open GPS port {reader.port}: {e}")
        return False


def run_live(config: Config) -> int:
    log = logging.getLogger("gridcompass.main")
    monitor = CompassMonitor(config)
    readers = []

    gps_port = config.get('gps', 'com_port')
    if gps_port:
        gps = SerialLineReader(
            gps_port, int(config.get('gps', 'baud_rate') or 9600),
            on_line=monitor.handle_gps_line, on_error=monitor.on_location_error, name="GPS")
        if _start_reader(gps, monitor, log, is_gps=True):
            readers.append(gps)
    else:
        monitor.on_location_error("No GPS port configured")

    mag_port = config.get('magnetometer', 'com_port')
    if mag_port:
        mag = SerialLineReader(
            mag_port, int(config.get('magnetometer', 'baud_rate') or 115200),
            on_line=monitor.handle_magnetometer_line, name="Magnetometer")
        if _start_reader(mag, monitor, log, is_gps=False):
            readers.append(mag)
    else:
        log.warning("no magnetometer port configured; heading stays at 0")

    interval = float(config.get('display', 'refresh_interval_s') or 1.0)
    try:
        while True:
            print("\n".join(monitor.status_lines()), flush=True)
            print("-" * 32, flush=True)
            time.sleep(interval)
    except KeyboardInterrupt:
        log.info("interrupted")
    finally:
        for r in readers:
            r.stop()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    ns = parse_args(argv)
    config = Config(ns.config)
    _apply_overrides(config, ns)
    _setup_logging(config, debug=ns.debug)

    if ns.reset_config:
        if not config.reset():
            print(f"Cannot save config: {ns.config}", file=sys.stderr)
            return 1
        print(f"Reset: {ns.config}")
        return 0
    if ns.save_config:
        if not config.save():
            print(f"Cannot save config: {ns.config}", file=sys.stderr)
            return 1
        print(f"Saved: {ns.config}")
        return 0
    if ns.list_ports:
        for port in list_ports():
            print(port)
        return 0
    if ns.locate:
        return run_locate(*ns.locate)
    if ns.heading:
        return run_heading(*ns.heading)

    log = logging.getLogger("gridcompass.main")
    log.info("startup: config=%s gps=%s mag=%s scheme=%s",
             ns.config, config.get('gps', 'com_port') or '-',
             config.get('magnetometer', 'com_port') or '-', config.get('grid', 'scheme'))
    return run_live(config)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
