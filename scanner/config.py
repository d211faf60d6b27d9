import os
from dataclasses import dataclass

# load envs
from dotenv import load_dotenv


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass
class ScannerConfig:
    """Tunables of a scanning session."""
    camera_index: int = 0
    camera_allowed: bool = True
    preferred_width: int = 3840
    preferred_height: int = 2160
    analysis_width: int = 480
    analysis_period: float = 0.2
    redraw_period: float = 1 / 30
    stability_cap: int = 12
    stable_threshold: int = 8
    auto_capture: bool = False
    jpeg_quality: int = 90
    redetect_on_capture: bool = True
    output_dir: str = os.path.join("tmp", "captures")

    def __post_init__(self):
        self.validate()

    def validate(self):
        if self.analysis_width <= 0:
            raise ValueError("analysis_width must be positive")
        if self.preferred_width <= 0 or self.preferred_height <= 0:
            raise ValueError("preferred resolution must be positive")
        if self.analysis_period <= 0 or self.redraw_period <= 0:
            raise ValueError("periods must be positive")
        if self.redraw_period > self.analysis_period:
            raise ValueError("redraw_period must not be longer than analysis_period")
        if self.stability_cap <= 0:
            raise ValueError("stability_cap must be positive")
        if not 0 <= self.stable_threshold < self.stability_cap:
            raise ValueError("stable_threshold must be in [0, stability_cap)")
        if not 0 <= self.jpeg_quality <= 100:
            raise ValueError("jpeg_quality must be in [0, 100]")

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "ScannerConfig":
        """
        Build the config from environment variables, after loading .env.

        Raises:
            ValueError: on unparsable or inconsistent values
        """
        if dotenv:
            load_dotenv()

        defaults = cls()
        return cls(
            camera_index=_get_int("SCANNER_CAMERA_INDEX", defaults.camera_index),
            camera_allowed=_get_bool("SCANNER_CAMERA_ALLOWED", defaults.camera_allowed),
            preferred_width=_get_int("SCANNER_PREFERRED_WIDTH", defaults.preferred_width),
            preferred_height=_get_int("SCANNER_PREFERRED_HEIGHT", defaults.preferred_height),
            analysis_width=_get_int("SCANNER_ANALYSIS_WIDTH", defaults.analysis_width),
            analysis_period=_get_float("SCANNER_ANALYSIS_PERIOD", defaults.analysis_period),
            redraw_period=_get_float("SCANNER_REDRAW_PERIOD", defaults.redraw_period),
            stability_cap=_get_int("SCANNER_STABILITY_CAP", defaults.stability_cap),
            stable_threshold=_get_int("SCANNER_STABLE_THRESHOLD", defaults.stable_threshold),
            auto_capture=_get_bool("SCANNER_AUTO_CAPTURE", defaults.auto_capture),
            jpeg_quality=_get_int("SCANNER_JPEG_QUALITY", defaults.jpeg_quality),
            redetect_on_capture=_get_bool("SCANNER_REDETECT_ON_CAPTURE", defaults.redetect_on_capture),
            output_dir=os.getenv("SCANNER_OUTPUT_DIR", defaults.output_dir),
        )
