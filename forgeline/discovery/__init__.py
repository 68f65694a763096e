"""Engine install discovery."""

from forgeline.discovery.engine_detector import detect_engine_installs, parse_version_from_name

__all__ = ["detect_engine_installs", "parse_version_from_name"]
