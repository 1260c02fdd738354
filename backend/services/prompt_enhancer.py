from enum import Enum
from typing import Dict, Optional


class VideoStyle(str, Enum):
    CINEMATIC = "cinematic"
    DOCUMENTARY = "documentary"
    ANIMATED = "animated"
    ARTISTIC = "artistic"
    COMMERCIAL = "commercial"


class AspectRatio(str, Enum):
    WIDESCREEN = "16:9"
    VERTICAL = "9:16"
    SQUARE = "1:1"


class MotionIntensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


DEFAULT_STYLE = VideoStyle.CINEMATIC.value
DEFAULT_ASPECT_RATIO = AspectRatio.WIDESCREEN.value
DEFAULT_MOTION_INTENSITY = MotionIntensity.MEDIUM.value

STYLE_MODIFIERS: Dict[str, str] = {
    VideoStyle.CINEMATIC.value: "cinematic style, professional lighting, film grain, dramatic composition",
    VideoStyle.DOCUMENTARY.value: "documentary style, natural lighting, realistic, authentic feel",
    VideoStyle.ANIMATED.value: "animated style, smooth motion, vibrant colors, stylized rendering",
    VideoStyle.ARTISTIC.value: "artistic style, creative composition, unique visual approach",
    VideoStyle.COMMERCIAL.value: "commercial style, clean visuals, product-focused, professional quality",
}

MOTION_MODIFIERS: Dict[str, str] = {
    MotionIntensity.LOW.value: "subtle movement, gentle motion, minimal camera movement",
    MotionIntensity.MEDIUM.value: "moderate movement, smooth transitions, balanced motion",
    MotionIntensity.HIGH.value: "dynamic movement, active scenes, energetic motion",
}

TECHNICAL_CLAUSE = "Ultra 4K resolution, 10 seconds duration, high quality, professional video production"

ASPECT_RATIO_CLAUSES: Dict[str, str] = {
    AspectRatio.VERTICAL.value: "vertical orientation suitable for mobile viewing",
    AspectRatio.SQUARE.value: "square format suitable for social media",
}
DEFAULT_ASPECT_RATIO_CLAUSE = "widescreen cinematic format"


def enhance_prompt(
    prompt: str,
    style: Optional[str] = None,
    aspect_ratio: Optional[str] = None,
    motion_intensity: Optional[str] = None,
) -> str:
    """Build the text sent upstream from the user's prompt and options.

    Unknown style or motion values add nothing; an unknown aspect ratio falls
    back to the widescreen clause.
    """
    enhanced = prompt.strip()

    style_clause = STYLE_MODIFIERS.get(style) if style else None
    if style_clause:
        enhanced += f". {style_clause}"

    motion_clause = MOTION_MODIFIERS.get(motion_intensity) if motion_intensity else None
    if motion_clause:
        enhanced += f". {motion_clause}"

    enhanced += f". {TECHNICAL_CLAUSE}"
    enhanced += f", {ASPECT_RATIO_CLAUSES.get(aspect_ratio, DEFAULT_ASPECT_RATIO_CLAUSE)}"
    return enhanced
