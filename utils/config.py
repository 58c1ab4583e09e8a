"""
utils/config.py
---------------
Configuration loading and component factory.

Reads config.yaml (and optional env overrides), then instantiates the
correct concrete classes for each collaborator.

To add a new implementation, just register it in the relevant factory dict.
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml

from core.interfaces import (
    BaseCamera, BaseClock, BaseSessionStore, BaseSessionSync, BaseCaptureUI,
)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: dict[str, Any] = {
    "hardware": {
        "camera": "mock",
        "clock": "monotonic",
    },
    "storage": {
        "store": "file",
        "sync": "memory",
    },
    "session": {
        "settle_delay_seconds": 0.35,
        "debounce_seconds": 0.25,
        "max_dimension": 900,
        "jpeg_quality": 50,
        "recent_limit": 3,
    },
    "loop": {
        "fps": 30,
        "status_interval_seconds": 1.0,
    },
    "sync_options": {
        "url": "",
        "api_key": None,
        "timeout": 30.0,
    },
    "output_dir": "z_output",
    "display": "log",
    "logging": {"level": "INFO"},
}


def load_config(path: str | Path = "config.yaml") -> dict:
    """Load YAML config, merging over defaults. Env vars WIN over file values."""
    config = copy.deepcopy(DEFAULTS)

    path = Path(path)
    if path.exists():
        with open(path) as f:
            file_cfg = yaml.safe_load(f) or {}
        config = _deep_merge(config, file_cfg)

    # Env var overrides (e.g. SESSION_CAMERA=webcam)
    env_map = {
        "SESSION_CAMERA": ("hardware", "camera"),
        "SESSION_STORE": ("storage", "store"),
        "SESSION_SYNC": ("storage", "sync"),
        "SESSION_SYNC_URL": ("sync_options", "url"),
        "SESSION_DISPLAY": ("display",),
        "SESSION_OUTPUT_DIR": ("output_dir",),
    }
    for env_key, cfg_path in env_map.items():
        val = os.environ.get(env_key)
        if val:
            node = config
            for part in cfg_path[:-1]:
                node = node[part]
            node[cfg_path[-1]] = val

    return config


def build_components(config: dict) -> dict:
    """
    Factory: read config and return instantiated collaborators.
    Returns a dict with keys: camera, clock, store, sync, display.
    """
    hw = config.get("hardware", {})
    st = config.get("storage", {})

    return {
        "camera": _build_camera(hw, config),
        "clock": _build_clock(hw),
        "store": _build_store(st, config),
        "sync": _build_sync(st, config),
        "display": _build_display(config),
    }


# ---------------------------------------------------------------------------
# Component factories
# ---------------------------------------------------------------------------

def _build_camera(hw: dict, config: dict) -> BaseCamera:
    from hardware.cameras import MockCamera, WebcamCamera

    kind = hw.get("camera", "mock").lower()
    cam_cfg = config.get("camera_options", {})

    registry = {
        "mock": lambda: MockCamera(resolution=tuple(cam_cfg.get("resolution", [1920, 1080]))),
        "webcam": lambda: WebcamCamera(
            back_index=cam_cfg.get("back_index", 0),
            front_index=cam_cfg.get("front_index", 1),
            warmup_frames=cam_cfg.get("warmup_frames", 5),
        ),
    }
    if kind not in registry:
        raise ValueError(f"Unknown camera: '{kind}'. Options: {list(registry)}")
    return registry[kind]()


def _build_clock(hw: dict) -> BaseClock:
    from hardware.clocks import MonotonicClock, ManualClock

    kind = hw.get("clock", "monotonic").lower()
    registry = {
        "monotonic": MonotonicClock,
        "manual": ManualClock,
    }
    if kind not in registry:
        raise ValueError(f"Unknown clock: '{kind}'. Options: {list(registry)}")
    return registry[kind]()


def _build_store(st: dict, config: dict) -> BaseSessionStore:
    from storage.stores import MemorySessionStore, FileSessionStore

    kind = st.get("store", "file").lower()
    output_dir = Path(config.get("output_dir", "z_output"))

    registry = {
        "memory": lambda: MemorySessionStore(),
        "file": lambda: FileSessionStore(output_dir=output_dir / "sessions"),
    }
    if kind not in registry:
        raise ValueError(f"Unknown store: '{kind}'. Options: {list(registry)}")
    return registry[kind]()


def _build_sync(st: dict, config: dict) -> BaseSessionSync:
    from storage.sync import MemorySessionSync, HttpSessionSync

    kind = st.get("sync", "memory").lower()
    s_cfg = config.get("sync_options", {})

    registry = {
        "memory": lambda: MemorySessionSync(),
        "http": lambda: HttpSessionSync(
            url=s_cfg.get("url", ""),
            api_key=s_cfg.get("api_key") or os.environ.get("SESSION_SYNC_API_KEY"),
            timeout=s_cfg.get("timeout", 30.0),
        ),
    }
    if kind not in registry:
        raise ValueError(f"Unknown sync: '{kind}'. Options: {list(registry)}")
    return registry[kind]()


def _build_display(config: dict) -> BaseCaptureUI:
    from ui.display import LogDisplay

    kind = config.get("display", "log").lower()
    registry = {
        "log": LogDisplay,
    }
    if kind not in registry:
        raise ValueError(f"Unknown display: '{kind}'. Options: {list(registry)}")
    return registry[kind]()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _deep_merge(base: dict, override: dict) -> dict:
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result
