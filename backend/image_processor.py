"""
AquaSight - Image to water-quality metrics.
Decode upload -> RGBA pixel buffer -> two-pass color statistics -> eight clamped metric formulas.
All values are heuristic estimates from color alone; nothing here is calibrated against lab samples.
"""
import logging
import math

import cv2
import numpy as np

from errors import DecodeError, InvalidInputError, ProcessingError, WaterAnalysisError
from schemas import CHANNELS, ColorAverages, PixelBuffer, WaterQualityMetrics

logger = logging.getLogger(__name__)

MAX_CHANNEL = 255.0

# Metric ranges (clamp bounds)
PH_RANGE = (0.0, 14.0)
TURBIDITY_RANGE = (0.0, 40.0)          # NTU
DISSOLVED_OXYGEN_RANGE = (0.0, 15.0)   # mg/L
TEMPERATURE_RANGE = (0.0, 40.0)        # degrees C
CONDUCTIVITY_RANGE = (0.0, 2000.0)     # uS/cm
TDS_RANGE = (0.0, 1000.0)              # mg/L
CHLORINE_RANGE = (0.0, 4.0)            # mg/L
HARDNESS_RANGE = (0.0, 300.0)          # mg/L

# Formula coefficients
PH_NEUTRAL = 7.0
PH_RED_GREEN_GAIN = 3.5
TURBIDITY_BRIGHTNESS_DIVISOR = 6.375   # 255 / 6.375 = 40 NTU for a black image
TURBIDITY_VARIANCE_DIVISOR = 30.0
DO_BLUE_GAIN = 10.0
DO_SATURATION_GAIN = 5.0
CONDUCTIVITY_VARIANCE_GAIN = 5.0
CONDUCTIVITY_BRIGHTNESS_GAIN = 1000.0
TDS_BRIGHTNESS_GAIN = 500.0
TDS_VARIANCE_GAIN = 2.0

# Demo sample: murky blue-green water in a glass, with a lighter meniscus band
DEMO_IMAGE_SIZE = (240, 320)  # (h, w)


def _clamp(value: float, bounds) -> float:
    low, high = bounds
    return max(low, min(high, value))


# --- Pixel source ---

def _to_8bit(img: np.ndarray) -> np.ndarray:
    """Scale 16-bit or float images down to uint8."""
    if img.dtype == np.uint8:
        return img
    if img.dtype == np.uint16:
        return (img // 257).astype(np.uint8)
    if np.issubdtype(img.dtype, np.floating):
        return np.clip(img * MAX_CHANNEL, 0, MAX_CHANNEL).astype(np.uint8)
    raise DecodeError(f"Invalid image: unsupported sample type {img.dtype}")


def _to_rgba(img: np.ndarray) -> np.ndarray:
    """Convert an OpenCV decode (gray, BGR or BGRA) to RGBA; alpha is 255 when the source has none."""
    img = _to_8bit(img)
    if img.ndim == 3 and img.shape[2] == 1:
        img = img[:, :, 0]
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    if img.shape[2] == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    raise DecodeError(f"Invalid image: unsupported channel count {img.shape[2]}")


def decode_image(image_bytes: bytes) -> PixelBuffer:
    """
    Decode an uploaded image (any format OpenCV reads) into an RGBA PixelBuffer.
    Raises InvalidInputError for missing/empty input, DecodeError when the bytes are not an image.
    """
    if image_bytes is None:
        raise InvalidInputError("No image data supplied")
    if not isinstance(image_bytes, (bytes, bytearray, memoryview)):
        raise InvalidInputError(f"Image data must be bytes, got {type(image_bytes).__name__}")
    if len(image_bytes) == 0:
        raise InvalidInputError("Invalid image: empty file")

    nparr = np.frombuffer(image_bytes, np.uint8)
    try:
        img = cv2.imdecode(nparr, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise DecodeError(f"Invalid image: could not decode ({e})") from e
    if img is None:
        raise DecodeError("Invalid image: could not decode")

    h, w = img.shape[:2]
    if h == 0 or w == 0:
        raise DecodeError("Failed to read image dimensions")

    rgba = _to_rgba(img)
    return PixelBuffer(rgba.reshape(-1), w, h)


# --- Color statistics ---

def compute_color_averages(buffer: PixelBuffer) -> ColorAverages:
    """
    Two full passes over every pixel (alpha ignored):
    pass 1 averages red/green/blue, brightness (r+g+b)/3 and saturation (max-min)/max;
    pass 2 pools squared deviations of all three channels from their averages,
    variance = sqrt(sum / (pixels * 3)).
    """
    total_pixels = buffer.total_pixels
    if total_pixels <= 0 or buffer.data.size == 0:
        raise ProcessingError("Cannot compute color statistics of an empty image")

    rgb = buffer.data.reshape(-1, CHANNELS)[:, :3].astype(np.float64)
    red, green, blue = rgb[:, 0], rgb[:, 1], rgb[:, 2]

    # Pass 1
    channel_max = rgb.max(axis=1)
    channel_min = rgb.min(axis=1)
    lit = channel_max > 0
    saturation = np.zeros_like(channel_max)
    saturation[lit] = (channel_max[lit] - channel_min[lit]) / channel_max[lit]
    brightness = (red + green + blue) / 3.0

    avg_red = float(red.sum()) / total_pixels
    avg_green = float(green.sum()) / total_pixels
    avg_blue = float(blue.sum()) / total_pixels
    avg_brightness = float(brightness.sum()) / total_pixels
    avg_saturation = float(saturation.sum()) / total_pixels

    # Pass 2
    deviation_sum = float(
        ((red - avg_red) ** 2 + (green - avg_green) ** 2 + (blue - avg_blue) ** 2).sum()
    )
    variance = math.sqrt(deviation_sum / (total_pixels * 3))

    averages = ColorAverages(
        red=avg_red,
        green=avg_green,
        blue=avg_blue,
        brightness=avg_brightness,
        saturation=avg_saturation,
        variance=variance,
    )
    logger.debug("Color averages for %dx%d image: %s", buffer.width, buffer.height, averages)
    return averages


# --- Metric derivation ---

def calculate_ph(avg: ColorAverages) -> float:
    """Red/green balance shifts pH around neutral; blue adds a small offset. Zero green counts as balanced."""
    red_green_ratio = avg.red / avg.green if avg.green > 0 else 1.0
    ph = PH_NEUTRAL + (red_green_ratio - 1.0) * PH_RED_GREEN_GAIN + (avg.blue / MAX_CHANNEL - 0.5)
    return _clamp(ph, PH_RANGE)


def calculate_turbidity(avg: ColorAverages) -> float:
    turbidity = (MAX_CHANNEL - avg.brightness) / TURBIDITY_BRIGHTNESS_DIVISOR + avg.variance / TURBIDITY_VARIANCE_DIVISOR
    return _clamp(turbidity, TURBIDITY_RANGE)


def calculate_dissolved_oxygen(avg: ColorAverages) -> float:
    oxygen = (avg.blue / MAX_CHANNEL) * DO_BLUE_GAIN + avg.saturation * DO_SATURATION_GAIN
    return _clamp(oxygen, DISSOLVED_OXYGEN_RANGE)


def calculate_temperature(avg: ColorAverages) -> float:
    return _clamp((avg.red / MAX_CHANNEL) * TEMPERATURE_RANGE[1], TEMPERATURE_RANGE)


def calculate_conductivity(avg: ColorAverages) -> float:
    conductivity = avg.variance * CONDUCTIVITY_VARIANCE_GAIN + (avg.brightness / MAX_CHANNEL) * CONDUCTIVITY_BRIGHTNESS_GAIN
    return _clamp(conductivity, CONDUCTIVITY_RANGE)


def calculate_tds(avg: ColorAverages) -> float:
    tds = (avg.brightness / MAX_CHANNEL) * TDS_BRIGHTNESS_GAIN + avg.variance * TDS_VARIANCE_GAIN
    return _clamp(tds, TDS_RANGE)


def calculate_chlorine(avg: ColorAverages) -> float:
    return _clamp(((avg.green - avg.blue) / MAX_CHANNEL) * CHLORINE_RANGE[1], CHLORINE_RANGE)


def calculate_hardness(avg: ColorAverages) -> float:
    return _clamp(((avg.red + avg.green) / (2 * MAX_CHANNEL)) * HARDNESS_RANGE[1], HARDNESS_RANGE)


def derive_metrics(averages: ColorAverages) -> WaterQualityMetrics:
    """Apply every metric formula to one set of color averages."""
    return WaterQualityMetrics(
        ph=calculate_ph(averages),
        turbidity=calculate_turbidity(averages),
        dissolved_oxygen=calculate_dissolved_oxygen(averages),
        temperature=calculate_temperature(averages),
        conductivity=calculate_conductivity(averages),
        total_dissolved_solids=calculate_tds(averages),
        chlorine=calculate_chlorine(averages),
        hardness=calculate_hardness(averages),
    )


def analyze_image(image_bytes: bytes) -> WaterQualityMetrics:
    """
    Full image pipeline: decode, color statistics, metrics.
    Decode failures propagate as-is; anything unexpected after decoding becomes ProcessingError.
    """
    buffer = decode_image(image_bytes)
    try:
        averages = compute_color_averages(buffer)
        return derive_metrics(averages)
    except WaterAnalysisError:
        raise
    except Exception as e:
        raise ProcessingError(f"Metric computation failed for {buffer.width}x{buffer.height} image: {e}") from e


def get_demo_sample_png() -> bytes:
    """Synthetic water-sample photo for trying the API without an upload. Returns PNG bytes."""
    h, w = DEMO_IMAGE_SIZE
    img = np.zeros((h, w, 3), dtype=np.uint8)
    img[:, :] = (150, 160, 110)            # blue-green water (BGR)
    img[:40, :] = (215, 220, 210)          # pale background above the glass
    img[40:52, :] = (190, 200, 185)        # meniscus
    img[200:, :] = (95, 120, 100)          # sediment toward the bottom
    ok, buf = cv2.imencode(".png", img)
    if not ok:
        raise ProcessingError("Could not encode demo image")
    return buf.tobytes()
