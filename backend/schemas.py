"""
AquaSight - Data model shared by the analysis pipeline and the API.
JSON uses camelCase keys (dissolvedOxygen, overallQuality, ...); Python code uses snake_case.
"""
from dataclasses import dataclass
from typing import List, Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from errors import ProcessingError

CHANNELS = 4  # R, G, B, A

QualityLabel = Literal["Excellent", "Good", "Fair", "Poor"]


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Raw RGBA samples of one decoded image, row-major, 4 bytes per pixel."""
    data: np.ndarray
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ProcessingError(f"Pixel buffer needs positive dimensions, got {self.width}x{self.height}")
        if isinstance(self.data, (bytes, bytearray, memoryview)):
            flat = np.frombuffer(self.data, dtype=np.uint8).copy()
        else:
            flat = np.array(self.data, dtype=np.uint8).reshape(-1)
        expected = self.width * self.height * CHANNELS
        if flat.size != expected:
            raise ProcessingError(f"Pixel buffer length {flat.size} != {self.width}x{self.height}x{CHANNELS} ({expected})")
        flat.flags.writeable = False
        object.__setattr__(self, "data", flat)

    @property
    def total_pixels(self) -> int:
        return self.width * self.height


class _FrozenModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ColorAverages(_FrozenModel):
    red: float = Field(ge=0, le=255)
    green: float = Field(ge=0, le=255)
    blue: float = Field(ge=0, le=255)
    brightness: float = Field(ge=0, le=255)
    saturation: float = Field(ge=0, le=1)
    variance: float = Field(ge=0)


class WaterQualityMetrics(_FrozenModel):
    ph: float = Field(ge=0, le=14)
    turbidity: float = Field(ge=0, le=40, description="NTU")
    dissolved_oxygen: float = Field(ge=0, le=15, description="mg/L")
    temperature: float = Field(ge=0, le=40, description="degrees C")
    conductivity: float = Field(ge=0, le=2000, description="uS/cm")
    total_dissolved_solids: float = Field(ge=0, le=1000, description="mg/L")
    chlorine: float = Field(ge=0, le=4, description="mg/L")
    hardness: float = Field(ge=0, le=300, description="mg/L")


class SafetyStatus(_FrozenModel):
    is_drinkable: bool
    is_swimmable: bool
    is_irrigation_safe: bool


class AnalysisResult(_FrozenModel):
    overall_quality: QualityLabel
    metrics: WaterQualityMetrics
    safety_status: SafetyStatus
    recommendations: List[str]


class ErrorResponse(BaseModel):
    error: str
