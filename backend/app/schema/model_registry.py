"""Static per-model input configuration for curated Replicate models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

OutputType = Literal["image", "video", "audio", "text", "json", "file"]
ModelCategory = Literal["image", "video", "3d", "audio", "text"]


@dataclass(frozen=True, slots=True)
class InputConstraint:
    """Declared type, default and bounds for one model input."""

    type: str
    default: Any = None
    description: str | None = None
    enum: tuple[Any, ...] | None = None
    minimum: float | None = None
    maximum: float | None = None
    required: bool | None = None


@dataclass(frozen=True, slots=True)
class ModelConfig:
    """Hand-authored registry entry for a single ``owner/name`` model."""

    id: str
    owner: str
    name: str
    full_version_id: str
    description: str
    output_type: OutputType
    category: ModelCategory
    input_schema: Mapping[str, InputConstraint] = field(default_factory=dict)
    output_format: str | None = None
    cover_image_url: str | None = None

    @property
    def key(self) -> str:
        return f"{self.owner}/{self.name}"


def _constraint(type_: str, **kwargs: Any) -> InputConstraint:
    enum = kwargs.pop("enum", None)
    return InputConstraint(type=type_, enum=tuple(enum) if enum is not None else None, **kwargs)


_ASPECT_RATIOS = ("1:1", "16:9", "21:9", "3:2", "2:3", "4:5", "5:4", "9:16", "9:21")
_FLUX_ASPECT_RATIOS = ("1:1", "16:9", "21:9", "2:3", "3:2", "4:5", "5:4", "9:16", "9:21")
_IMAGE_FORMATS = ("webp", "jpg", "png")

# Shared by the LoRA fine-tunes (tyler, dotmatrix).
_LORA_INPUTS: dict[str, InputConstraint] = {
    "prompt": _constraint("string", required=True, description="Input prompt for image generation"),
    "model": _constraint("string", default="dev", enum=("dev", "schnell"), description="Model variant to use"),
    "aspect_ratio": _constraint(
        "string",
        default="1:1",
        enum=_ASPECT_RATIOS,
        description="Aspect ratio for generated image",
    ),
    "num_outputs": _constraint(
        "integer", default=1, minimum=1, maximum=4, description="Number of images to generate"
    ),
    "num_inference_steps": _constraint(
        "integer", default=28, minimum=1, maximum=50, description="Number of denoising steps"
    ),
    "guidance_scale": _constraint(
        "number", default=3, minimum=0, maximum=10, description="Guidance scale for generation"
    ),
    "prompt_strength": _constraint(
        "number",
        default=0.8,
        minimum=0,
        maximum=1,
        description="Prompt strength when using image input",
    ),
    "seed": _constraint("integer", description="Random seed for reproducible generation"),
    "go_fast": _constraint("boolean", default=False, description="Enable fast generation mode"),
    "megapixels": _constraint(
        "string", default="1", enum=("0.25", "0.5", "1", "2"), description="Resolution in megapixels"
    ),
    "output_format": _constraint(
        "string", default="webp", enum=_IMAGE_FORMATS, description="Output image format"
    ),
    "output_quality": _constraint(
        "integer", default=80, minimum=0, maximum=100, description="Output quality (0-100)"
    ),
    "lora_scale": _constraint("number", default=1, minimum=0, maximum=2, description="LoRA weight scale"),
    "extra_lora_scale": _constraint(
        "number", default=1, minimum=0, maximum=2, description="Extra LoRA weight scale"
    ),
}

_CONFIGS: tuple[ModelConfig, ...] = (
    ModelConfig(
        id="tylerbishopdev/tyler:01ce0a0fdc7a46ec74a3c093f6163c5a5f633297a06514229e8775c877507643",
        owner="tylerbishopdev",
        name="tyler",
        full_version_id="01ce0a0fdc7a46ec74a3c093f6163c5a5f633297a06514229e8775c877507643",
        description="Tyler model for advanced generation with LoRA support",
        output_type="image",
        output_format="webp",
        category="image",
        input_schema=_LORA_INPUTS,
    ),
    ModelConfig(
        id="tylerbishopdev/dotmatrix",
        owner="tylerbishopdev",
        name="dotmatrix",
        full_version_id="",
        description="Dot matrix style generation model",
        output_type="image",
        category="image",
        input_schema=_LORA_INPUTS,
    ),
    ModelConfig(
        id="black-forest-labs/flux-1.1-pro",
        owner="black-forest-labs",
        name="flux-1.1-pro",
        full_version_id="black-forest-labs/flux-1.1-pro",
        description="FLUX 1.1 Professional - State-of-the-art image generation",
        output_type="image",
        output_format="webp",
        category="image",
        input_schema={
            "prompt": _constraint("string", required=True, description="Text prompt for image generation"),
            "aspect_ratio": _constraint(
                "string",
                default="1:1",
                enum=_FLUX_ASPECT_RATIOS,
                description="Aspect ratio of the generated image",
            ),
            "width": _constraint(
                "integer", required=False, description="Width of generated image (overrides aspect_ratio)"
            ),
            "height": _constraint(
                "integer", required=False, description="Height of generated image (overrides aspect_ratio)"
            ),
            "num_outputs": _constraint(
                "integer", default=1, minimum=1, maximum=4, description="Number of images to generate"
            ),
            "seed": _constraint("integer", description="Random seed for reproducible generation"),
            "output_format": _constraint(
                "string", default="webp", enum=_IMAGE_FORMATS, description="Format of the output images"
            ),
            "output_quality": _constraint(
                "integer",
                default=80,
                minimum=0,
                maximum=100,
                description="Quality of the output images (0-100)",
            ),
            "safety_tolerance": _constraint(
                "integer",
                default=2,
                minimum=1,
                maximum=5,
                description="Safety filter tolerance (1=strict, 5=permissive)",
            ),
            "prompt_upsampling": _constraint(
                "boolean", default=True, description="Enable prompt upsampling for better results"
            ),
        },
    ),
    ModelConfig(
        id="black-forest-labs/flux-dev",
        owner="black-forest-labs",
        name="flux-dev",
        full_version_id="black-forest-labs/flux-dev",
        description="FLUX Development - Open-weight model for experimentation",
        output_type="image",
        output_format="webp",
        category="image",
        input_schema={
            "prompt": _constraint("string", required=True, description="Input prompt for image generation"),
            "aspect_ratio": _constraint(
                "string", default="1:1", enum=_FLUX_ASPECT_RATIOS, description="Aspect ratio of generated image"
            ),
            "num_outputs": _constraint(
                "integer", default=1, minimum=1, maximum=4, description="Number of outputs"
            ),
            "num_inference_steps": _constraint(
                "integer", default=28, minimum=1, maximum=50, description="Number of denoising steps"
            ),
            "guidance_scale": _constraint(
                "number", default=3.5, minimum=0, maximum=10, description="Guidance scale for generation"
            ),
            "seed": _constraint("integer", description="Random seed"),
            "output_format": _constraint(
                "string", default="webp", enum=_IMAGE_FORMATS, description="Output format"
            ),
            "output_quality": _constraint(
                "integer", default=80, minimum=0, maximum=100, description="Output quality"
            ),
        },
    ),
    ModelConfig(
        id="black-forest-labs/flux-schnell",
        owner="black-forest-labs",
        name="flux-schnell",
        full_version_id="black-forest-labs/flux-schnell",
        description="FLUX Schnell - Fast high-quality image generation",
        output_type="image",
        output_format="webp",
        category="image",
        input_schema={
            "prompt": _constraint("string", required=True, description="Input prompt"),
            "aspect_ratio": _constraint(
                "string", default="1:1", enum=_FLUX_ASPECT_RATIOS, description="Aspect ratio"
            ),
            "num_outputs": _constraint(
                "integer", default=1, minimum=1, maximum=4, description="Number of outputs"
            ),
            "seed": _constraint("integer", description="Random seed"),
            "output_format": _constraint(
                "string", default="webp", enum=_IMAGE_FORMATS, description="Output format"
            ),
            "output_quality": _constraint(
                "integer", default=80, minimum=0, maximum=100, description="Output quality (0-100)"
            ),
            "disable_safety_checker": _constraint(
                "boolean", default=False, description="Disable safety checker"
            ),
        },
    ),
    ModelConfig(
        id="meta/sam-2-video",
        owner="meta",
        name="sam-2-video",
        full_version_id="",
        description="Segment Anything Model 2 for video segmentation",
        output_type="video",
        category="video",
        input_schema={
            "video_url": _constraint("string", required=True, description="URL of the video to segment"),
            "points": _constraint("array", description="Points for segmentation [[x, y], ...]"),
            "labels": _constraint("array", description="Labels for points (1 for object, 0 for background)"),
            "box": _constraint("array", description="Bounding box [x1, y1, x2, y2]"),
        },
    ),
    ModelConfig(
        id="runwayml/gen4-turbo",
        owner="runwayml",
        name="gen4-turbo",
        full_version_id="",
        description="Fast video generation with Gen4 Turbo",
        output_type="video",
        category="video",
        input_schema={
            "prompt": _constraint("string", required=True, description="Text prompt for video generation"),
            "duration": _constraint(
                "integer", default=5, minimum=1, maximum=10, description="Video duration in seconds"
            ),
            "fps": _constraint("integer", default=24, enum=(24, 30), description="Frames per second"),
        },
    ),
    ModelConfig(
        id="tencent/hunyuan3d-2mv",
        owner="tencent",
        name="hunyuan3d-2mv",
        full_version_id="",
        description="3D generation from 2 multi-view images",
        output_type="file",
        category="3d",
        input_schema={
            "image_url": _constraint("string", required=True, description="URL of the input image"),
            "guidance_scale": _constraint(
                "number", default=7.5, minimum=0, maximum=20, description="Guidance scale"
            ),
            "num_inference_steps": _constraint(
                "integer", default=50, minimum=1, maximum=100, description="Number of inference steps"
            ),
        },
    ),
    ModelConfig(
        id="zsxkib/create-rvc-dataset",
        owner="zsxkib",
        name="create-rvc-dataset",
        full_version_id="",
        description="Create RVC datasets for voice conversion",
        output_type="file",
        category="audio",
        input_schema={
            "audio_url": _constraint("string", required=True, description="URL of the audio file"),
            "sample_rate": _constraint(
                "integer", default=40000, enum=(32000, 40000, 48000), description="Sample rate"
            ),
        },
    ),
)

MODEL_CONFIGS: Mapping[str, ModelConfig] = MappingProxyType(
    {
        config.key: ModelConfig(
            id=config.id,
            owner=config.owner,
            name=config.name,
            full_version_id=config.full_version_id,
            description=config.description,
            output_type=config.output_type,
            category=config.category,
            input_schema=MappingProxyType(dict(config.input_schema)),
            output_format=config.output_format,
            cover_image_url=config.cover_image_url,
        )
        for config in _CONFIGS
    }
)


def get_model_config(owner: str, name: str) -> ModelConfig | None:
    """Return the registry entry for ``owner/name``; ``None`` means no overrides apply."""

    return MODEL_CONFIGS.get(f"{owner}/{name}")


def format_model_id(owner: str, name: str, version_id: str | None = None) -> str:
    """Build the model identifier sent to Replicate."""

    if version_id:
        return f"{owner}/{name}:{version_id}"
    config = get_model_config(owner, name)
    return config.id if config is not None else f"{owner}/{name}"
