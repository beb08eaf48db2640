from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

class EncoderConfig(BaseModel):
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    codec: str = "libx264"
    preset: str = "fast"
    output_suffix: str = "_compressed"
    container: str = ".mp4"
    fail_on_error: bool = True

    @field_validator('container')
    @classmethod
    def validate_container(cls, v: str) -> str:
        if not v.startswith('.') or len(v) < 2:
            raise ValueError(f"Invalid container extension {v!r}. Must look like '.mp4'.")
        return v

class ViewerConfig(BaseModel):
    name: str = "Arc"
    command: List[str] = Field(default_factory=lambda: ["open", "-a", "Arc"])

    @field_validator('command')
    @classmethod
    def validate_command(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("Viewer command must not be empty.")
        return v

class AppConfig(BaseModel):
    encoder: EncoderConfig = Field(default_factory=EncoderConfig)
    viewer: ViewerConfig = Field(default_factory=ViewerConfig)
    log_dir: Optional[str] = None
    debug: bool = False
