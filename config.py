"""
設定管理モジュール
JSON形式で設定を保存/読み込み
"""
import json
import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'gridcompass_config.json'


class Config:
    def __init__(self, config_file=DEFAULT_CONFIG_FILE):
        self.config_file = config_file
        self.settings = self._load_default_settings()
        self.load()

    def _load_default_settings(self):
        """デフォルト設定"""
        return {
            # GPS設定
            'gps': {
                'com_port': '',
                'baud_rate': 9600,
                'min_interval_s': 5.0,   # 位置更新の最小間隔（秒）
                'min_distance_m': 5.0,   # 位置更新の最小移動距離（m）
                'uere_m': 5.0,           # 精度見積もり用 HDOP × UERE
            },

            # 磁気センサー設定
            'magnetometer': {
                'com_port': '',
                'baud_rate': 115200,
                'x_offset': 0.0,
                'y_offset': 0.0,
                'z_offset': 0.0,
            },

            # グリッドロケーター
            'grid': {
                'scheme': 'compass',  # 'compass' または 'maidenhead'
            },

            # 表示設定
            'display': {
                'refresh_interval_s': 1.0,
            },

            # デバッグモード
            'debug': False,

            # ログ設定
            'logging': {
                'save_to_file': False,
                'log_file': 'gridcompass.log',
                'max_log_size_mb': 10,
            },
        }

    def load(self):
        """設定をファイルから読み込み"""
        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    loaded = json.load(f)
                    # デフォルト設定にマージ（新しいキーがあっても対応）
                    self._merge_settings(self.settings, loaded)
                    return True
        except (OSError, ValueError) as e:
            logger.error("設定読み込みエラー: %s", e)
        return False

    def _merge_settings(self, default, loaded):
        """デフォルト設定に読み込んだ設定をマージ"""
        for key, value in loaded.items():
            if key in default:
                if isinstance(value, dict) and isinstance(default[key], dict):
                    self._merge_settings(default[key], value)
                else:
                    default[key] = value

    def save(self):
        """設定をファイルに保存"""
        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self.settings, f, indent=4, ensure_ascii=False)
            return True
        except OSError as e:
            logger.error("設定保存エラー: %s", e)
            return False

    def get(self, *keys):
        """設定を取得（ネストされたキーに対応）"""
        value = self.settings
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return None
        return value

    def set(self, *keys, value):
        """設定を変更（ネストされたキーに対応）"""
        if len(keys) == 0:
            return False

        settings = self.settings
        for key in keys[:-1]:
            if key not in settings:
                settings[key] = {}
            settings = settings[key]

        settings[keys[-1]] = value
        return True

    def reset(self):
        """設定をデフォルトに戻す"""
        self.settings = self._load_default_settings()
        return self.save()
