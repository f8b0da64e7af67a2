"""
シリアル行リーダー
GPS / 磁気センサーの出力を1行ずつ読み、コールバックへ渡す（ワーカースレッド）
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

import serial
import serial.tools.list_ports

logger = logging.getLogger(__name__)


def list_ports() -> List[str]:
    """利用可能なシリアルポート名の一覧"""
    return [p.device for p in serial.tools.list_ports.comports()]


class SerialLineReader:
    def __init__(
        self,
        port: str,
        baud_rate: int = 9600,
        on_line: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        name: str = "serial",
        timeout: float = 1.0,
    ):
        self.port = port
        self.baud_rate = baud_rate
        self.on_line = on_line
        self.on_error = on_error
        self.name = name
        self.timeout = timeout
        self.serial_port = None
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self):
        """ポートを開いて読み取りスレッドを開始。失敗時は SerialException を送出"""
        # serial_for_url はCOM3や/dev/ttyUSB0の他に loop:// 等のURLも受け付ける
        self.serial_port = serial.serial_for_url(self.port, self.baud_rate, timeout=self.timeout)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._read_loop, name=f"{self.name}-reader", daemon=True)
        self._thread.start()
        logger.info("%s started: %s @ %sbps", self.name, self.port, self.baud_rate)

    def stop(self, join_timeout: float = 2.0):
        self._stop_event.set()
        if self.serial_port:
            try:
                self.serial_port.close()
            except serial.SerialException as e:
                logger.debug("%s close failed: %s", self.name, e)
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(join_timeout)
        self._thread = None
        logger.info("%s stopped", self.name)

    def _read_loop(self):
        while not self._stop_event.is_set():
            try:
                raw = self.serial_port.readline()
            except (serial.SerialException, OSError, TypeError, ValueError) as e:
                # close() 後の読み取り失敗は停止扱い
                if self._stop_event.is_set():
                    break
                logger.error("%s read error: %s", self.name, e)
                self._stop_event.set()
                if self.on_error:
                    self.on_error(f"{self.name} read error: {e}")
                break

            line = raw.decode('ascii', errors='ignore').strip()
            if not line or not self.on_line:
                continue
            try:
                self.on_line(line)
            except Exception:
                logger.exception("%s line handler failed: %r", self.name, line)
