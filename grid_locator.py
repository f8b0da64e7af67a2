"""
グリッドロケーター（Maidenhead Locator System）計算モジュール

- encode_grid_locator(): コンパス表示用の8桁ロケーター（例：IO91xl..）
- latlon_to_grid():      標準Maidenhead（最大10桁、例：PM95vr12ab）
"""
from __future__ import annotations

import math
from dataclasses import dataclass


def encode_grid_locator(lat: float, lon: float) -> str:
    """
    緯度経度をコンパス表示用の8桁グリッドロケーターに変換

    Args:
        lat: 緯度（度）北緯が正。-90〜90（範囲外は呼び出し側で弾くこと）
        lon: 経度（度）東経が正。-180〜180

    Returns:
        フィールド(A-Z) + スクエア(0-9) + サブスクエア(a-x) + 拡張スクエア

    NOTE: 拡張スクエア（7-8桁目）は表示アプリの計算式をそのまま再現している。
    経度側は0〜23、緯度側は0〜29 になり得るので、2桁になる場合は
    文字列全体が9〜10桁になる。標準の拡張スクエアが必要なら latlon_to_grid() を使う。
    """
    lon += 180.0
    lat += 90.0

    # フィールド（1-2桁目）：20度×10度
    lon_field = math.floor(lon / 20.0)
    lat_field = math.floor(lat / 10.0)

    # スクエア（3-4桁目）：2度×1度
    lon_square = math.floor((lon % 20.0) / 2.0)
    lat_square = math.floor((lat % 10.0) / 1.0)

    # サブスクエア（5-6桁目）：24分割
    lon_sub = math.floor(((lon % 2.0) / 2.0) * 24.0)
    lat_sub = math.floor((lat % 1.0) * 24.0)

    # 拡張スクエア（7-8桁目）
    lon_ext = math.floor((((lon * 60.0) % 2.0) * 60.0) / 5.0)
    lat_ext = math.floor((((lat * 60.0) % 2.5) * 60.0) / 5.0)

    return (
        chr(ord('A') + lon_field)
        + chr(ord('A') + lat_field)
        + str(lon_square)
        + str(lat_square)
        + chr(ord('a') + lon_sub)
        + chr(ord('a') + lat_sub)
        + str(lon_ext)
        + str(lat_ext)
    )


def latlon_to_grid(lat, lon, precision=4):
    """
    緯度経度を標準Maidenheadグリッドロケーターに変換

    Args:
        lat: 緯度（度）北緯が正
        lon: 経度（度）東経が正
        precision: 精度（1-5）4で8桁、5で10桁

    Returns:
        グリッドロケーター文字列（2 * precision 桁）
    """
    precision = max(1, min(5, int(precision)))

    adj_lon = lon + 180.0
    adj_lat = lat + 90.0

    # フィールド：20度×10度
    field_lon = int(adj_lon / 20.0)
    field_lat = int(adj_lat / 10.0)
    grid = chr(ord('A') + field_lon) + chr(ord('A') + field_lat)
    adj_lon -= field_lon * 20.0
    adj_lat -= field_lat * 10.0

    if precision >= 2:
        # スクエア：2度×1度
        square_lon = int(adj_lon / 2.0)
        square_lat = int(adj_lat / 1.0)
        grid += str(square_lon) + str(square_lat)
        adj_lon -= square_lon * 2.0
        adj_lat -= square_lat * 1.0

    if precision >= 3:
        # サブスクエア：5分×2.5分 = 1/12度×1/24度
        # 浮動小数点の誤差で上限を超えないように丸める
        subsq_lon = min(23, int(adj_lon * 12.0))
        subsq_lat = min(23, int(adj_lat * 24.0))
        grid += chr(ord('a') + subsq_lon) + chr(ord('a') + subsq_lat)
        adj_lon -= subsq_lon / 12.0
        adj_lat -= subsq_lat / 24.0

    if precision >= 4:
        # 拡張スクエア：30秒×15秒 = 1/120度×1/240度
        ext_lon = min(9, int(adj_lon * 120.0))
        ext_lat = min(9, int(adj_lat * 240.0))
        grid += str(ext_lon) + str(ext_lat)
        adj_lon -= ext_lon / 120.0
        adj_lat -= ext_lat / 240.0

    if precision >= 5:
        # 拡張サブスクエア：1/2880度×1/5760度
        extsub_lon = min(23, int(adj_lon * 2880.0))
        extsub_lat = min(23, int(adj_lat * 5760.0))
        grid += chr(ord('a') + extsub_lon) + chr(ord('a') + extsub_lat)

    return grid


def format_grid_locator(raw: str) -> str:
    """
    表示用の8桁に整える
    1-2桁目は大文字、5-6桁目は小文字、拡張スクエアは7-8桁目の2文字だけを使う
    """
    return raw[:2].upper() + raw[2:4] + raw[4:6].lower() + raw[6:8]


def is_valid_coordinate(lat, lon) -> bool:
    """encode前の範囲チェック（NaN/Infinityも不可）"""
    try:
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


@dataclass(frozen=True)
class GeoCoordinate:
    latitude: float
    longitude: float

    def grid_locator(self, scheme: str = "compass") -> str:
        """
        scheme:
          - "compass":    encode_grid_locator()（表示アプリ互換）
          - "maidenhead": latlon_to_grid(precision=4)（標準8桁）
        """
        if scheme == "maidenhead":
            return latlon_to_grid(self.latitude, self.longitude, precision=4)
        return encode_grid_locator(self.latitude, self.longitude)
