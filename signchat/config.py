"""
Configuration management for hand-sign recognition and chat.
"""
import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass

from dotenv import load_dotenv


ROLES = ("teacher", "student")


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int


@dataclass
class MediaPipeConfig:
    """MediaPipe Hands configuration settings."""
    max_num_hands: int
    min_detection_confidence: float
    min_tracking_confidence: float
    model_complexity: int


@dataclass
class ClassifierConfig:
    """Finger geometry limits and selection threshold."""
    no_curl_start_limit: float
    half_curl_start_limit: float
    relation_tolerance_deg: float
    threshold: float


@dataclass
class DetectionConfig:
    """Detection loop cadence."""
    period_s: float
    detector_timeout_s: Optional[float]


@dataclass
class ChatConfig:
    """Chat client settings."""
    role: str
    relay_url: str
    reconnect_initial_s: float
    reconnect_max_s: float
    coalesce_window_s: float
    history_limit: int


@dataclass
class RelayConfig:
    """Relay server bind address."""
    host: str
    port: int


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool
    window_name: str


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    mediapipe: MediaPipeConfig
    classifier: ClassifierConfig
    detection: DetectionConfig
    chat: ChatConfig
    relay: RelayConfig
    display: DisplayConfig


def load_config(path: Optional[str] = None, use_env: bool = True) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses config.default.yaml
        use_env: Apply SIGNCHAT_* environment overrides (a .env file is read too)

    Returns:
        Configuration object with all settings
    """
    if path is None:
        # Use default config file in project root
        project_root = Path(__file__).parent.parent
        path = project_root / "config.default.yaml"

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    cfg = _dict_to_config(data)
    if use_env:
        load_dotenv()
        _apply_env_overrides(cfg, os.environ)
    return cfg


def _apply_env_overrides(cfg: Cfg, env) -> None:
    """Override selected settings from SIGNCHAT_* variables."""
    role = env.get("SIGNCHAT_ROLE")
    if role:
        cfg.chat.role = role.strip().lower()
    relay_url = env.get("SIGNCHAT_RELAY_URL")
    if relay_url:
        cfg.chat.relay_url = relay_url.rstrip("/")
    relay_host = env.get("SIGNCHAT_RELAY_HOST")
    if relay_host:
        cfg.relay.host = relay_host
    relay_port = env.get("SIGNCHAT_RELAY_PORT")
    if relay_port:
        cfg.relay.port = int(relay_port)

    if cfg.chat.role not in ROLES:
        raise ValueError(f"Unknown chat role {cfg.chat.role!r}, expected one of {ROLES}")


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    camera_data = data['camera']
    camera = CameraConfig(
        index=camera_data['index'],
        width=camera_data['width'],
        height=camera_data['height'],
        fps=camera_data['fps']
    )

    mp_data = data['mediapipe']
    mediapipe = MediaPipeConfig(
        max_num_hands=mp_data['max_num_hands'],
        min_detection_confidence=mp_data['min_detection_confidence'],
        min_tracking_confidence=mp_data['min_tracking_confidence'],
        model_complexity=mp_data.get('model_complexity', 1)
    )

    classifier_data = data['classifier']
    classifier = ClassifierConfig(
        no_curl_start_limit=float(classifier_data['no_curl_start_limit']),
        half_curl_start_limit=float(classifier_data['half_curl_start_limit']),
        relation_tolerance_deg=float(classifier_data['relation_tolerance_deg']),
        threshold=float(classifier_data['threshold'])
    )

    detection_data = data['detection']
    timeout = detection_data.get('detector_timeout_s')
    detection = DetectionConfig(
        period_s=float(detection_data['period_s']),
        detector_timeout_s=float(timeout) if timeout is not None else None
    )

    chat_data = data['chat']
    chat = ChatConfig(
        role=chat_data['role'],
        relay_url=chat_data['relay_url'].rstrip("/"),
        reconnect_initial_s=float(chat_data['reconnect_initial_s']),
        reconnect_max_s=float(chat_data['reconnect_max_s']),
        coalesce_window_s=float(chat_data['coalesce_window_s']),
        history_limit=int(chat_data['history_limit'])
    )

    relay_data = data['relay']
    relay = RelayConfig(
        host=relay_data['host'],
        port=int(relay_data['port'])
    )

    display_data = data['display']
    display = DisplayConfig(
        show_landmarks=display_data['show_landmarks'],
        window_name=display_data['window_name']
    )

    return Cfg(
        camera=camera,
        mediapipe=mediapipe,
        classifier=classifier,
        detection=detection,
        chat=chat,
        relay=relay,
        display=display
    )
