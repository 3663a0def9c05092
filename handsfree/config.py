"""
Configuration management for the hands-free command interpreter.
"""
import logging
import os
import yaml
from pathlib import Path
from types import MappingProxyType
from typing import Optional, Dict, Any, Mapping
from dataclasses import dataclass, field, fields


DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.default.yaml"
CONFIG_ENV_VAR = "HANDSFREE_CONFIG"


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30


@dataclass
class MediaPipeConfig:
    """MediaPipe Hands configuration settings."""
    max_num_hands: int = 1
    model_complexity: int = 1
    min_detection_confidence: float = 0.7
    min_tracking_confidence: float = 0.7


@dataclass
class ThresholdConfig:
    """Offsets from the wrist, in normalized image units."""
    up: float = 0.10
    down: float = 0.20
    left: float = 0.10
    right: float = 0.10
    finger_up: float = 0.07
    finger_down: float = 0.02
    clear_outer_spread: float = 0.30
    clear_inner_spread: float = 0.10


@dataclass
class GesturesConfig:
    """Gesture navigation configuration."""
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    selector: str = 'button, [role="button"]'
    excluded_region: Optional[str] = ".sidebar-content, [data-sidebar-content]"
    highlight_class: str = "gesture-selected"
    default_selection_keyword: str = "notification"
    show_preview: bool = False
    window_name: str = "Hands-Free Gestures"


@dataclass
class VoiceConfig:
    """Speech capture and transcription settings."""
    model_id: str = "scribe_v1"
    language_code: str = "eng"
    sample_rate: int = 16000
    chunk: int = 1024
    vad_window: int = 512
    accumulate_chunks: int = 2
    speech_threshold: float = 0.5
    silence_duration_s: float = 1.0
    min_speech_duration_s: float = 0.5
    clickable_selector: str = 'button, [role="button"], a'


@dataclass
class ServerConfig:
    """Control server and browser settings."""
    host: str = "127.0.0.1"
    port: int = 8765
    app_url: str = "http://localhost:5173/"
    headless: bool = False


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


RouteTable = Mapping[str, Mapping[str, str]]


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: MediaPipeConfig = field(default_factory=MediaPipeConfig)
    gestures: GesturesConfig = field(default_factory=GesturesConfig)
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    routes: RouteTable = field(default_factory=lambda: MappingProxyType({}))
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses $HANDSFREE_CONFIG or the
            packaged config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        path = os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    return _dict_to_config(data)


def _section(cls, data: Optional[Dict[str, Any]]):
    """Build a config dataclass from a dict, ignoring unknown keys."""
    if not data:
        return cls()
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in names})


def _freeze_routes(data: Optional[Dict[str, Any]]) -> RouteTable:
    """Freeze the role route table, keeping keyword order as configured."""
    routes = {}
    for role, table in (data or {}).items():
        routes[str(role).upper()] = MappingProxyType(
            {str(keyword).lower(): str(path) for keyword, path in (table or {}).items()}
        )
    return MappingProxyType(routes)


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    gestures_data = dict(data.get('gestures') or {})
    thresholds = _section(ThresholdConfig, gestures_data.pop('thresholds', None))
    gestures = _section(GesturesConfig, gestures_data)
    gestures.thresholds = thresholds

    return Cfg(
        camera=_section(CameraConfig, data.get('camera')),
        mediapipe=_section(MediaPipeConfig, data.get('mediapipe')),
        gestures=gestures,
        voice=_section(VoiceConfig, data.get('voice')),
        routes=_freeze_routes(data.get('routes')),
        server=_section(ServerConfig, data.get('server')),
        logging=_section(LoggingConfig, data.get('logging')),
    )


def configure_logging(cfg: Cfg) -> None:
    """Configure root logging from the logging section."""
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level.upper(), logging.INFO),
        format=cfg.logging.format,
    )
