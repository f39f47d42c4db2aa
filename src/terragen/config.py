"""Terrain generation configuration models and TOML loading."""

import tomllib
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Every float parameter must be finite
_FROZEN = ConfigDict(frozen=True, allow_inf_nan=False)

# Color.gray in linear RGBA
DEFAULT_FALLBACK_COLOR = (0.5, 0.5, 0.5, 1.0)


class NoiseConfig(BaseModel):
    """Fractal noise parameters shared by every FBM evaluation."""

    model_config = _FROZEN

    base_frequency: float = Field(
        default=0.005, gt=0, description="Frequency of the first octave"
    )
    octaves: int = Field(default=2, ge=1, description="Number of octaves for fBm")
    persistence: float = Field(
        default=0.25, gt=0, description="Amplitude multiplier per octave"
    )
    lacunarity: float = Field(
        default=1.5, gt=0, description="Frequency multiplier per octave"
    )
    noise_scale: float = Field(
        default=200.0, gt=0, description="Coordinate scale applied before sampling"
    )


class VoronoiConfig(BaseModel):
    """Voronoi boundary field parameters."""

    model_config = _FROZEN

    point_count: int = Field(default=40, ge=0, description="Number of seed points")
    weight: float = Field(default=0.1, description="Contribution added to elevation")


class ClimateConfig(BaseModel):
    """Temperature and humidity model parameters."""

    model_config = _FROZEN

    base_temperature: float = Field(default=25.0, description="Temperature at elevation 0")
    temperature_falloff: float = Field(
        default=10.0, gt=0, description="Lapse rate factor (degrees per 200 units)"
    )
    humidity_frequency: float = Field(
        default=2.5, gt=0, description="Humidity noise frequency"
    )
    humidity_warp_frequency: float = Field(
        default=8.0, gt=0, description="Frequency of the humidity domain warp"
    )
    humidity_warp_amplitude: float = Field(
        default=0.05, ge=0, description="Maximum humidity warp offset (normalized units)"
    )


class SplatConfig(BaseModel):
    """Texture blend (splatmap) parameters."""

    model_config = _FROZEN

    blur_radius: int = Field(default=12, ge=0, description="Half-width of the blend kernel in cells")
    resolution: Annotated[int, Field(gt=0)] | None = Field(
        default=None, description="Alphamap resolution (None = heightfield size)"
    )


class ScatterConfig(BaseModel):
    """Tree and detail scattering parameters."""

    model_config = _FROZEN

    attempts_per_cell: int = Field(
        default=10, ge=0, description="Tree attempts per unit of resolution"
    )
    min_tree_distance: float = Field(
        default=8.0, ge=0, description="Minimum tree spacing in world units"
    )
    max_slope: float = Field(default=30.0, description="Steepest placeable slope in degrees")
    detail_resolution: Annotated[int, Field(ge=2)] | None = Field(
        default=None, description="Detail grid resolution (None = resolution + 1)"
    )


class TreePlacement(BaseModel):
    """A tree prefab that may be scattered inside a biome."""

    model_config = _FROZEN

    prefab: str | None = Field(default=None, description="Prefab reference (None = skipped)")
    density: float = Field(default=0.5, ge=0, le=1, description="Acceptance probability")
    min_scale: float = 1.0
    max_scale: float = 1.0


class DetailPlacement(BaseModel):
    """A ground-detail texture painted inside a biome."""

    model_config = _FROZEN

    texture: str | None = Field(default=None, description="Texture reference (None = skipped)")
    density: float = Field(default=0.5, ge=0, le=1, description="Per-cell presence probability")
    min_width: float = 1.0
    max_width: float = 2.0
    min_height: float = 1.0
    max_height: float = 2.0


class Biome(BaseModel):
    """A biome entry; its index in the table is its label."""

    model_config = _FROZEN

    name: str
    min_height: float = 0.0
    max_height: float = 1.0
    min_temperature: float = -20.0
    max_temperature: float = 40.0
    min_humidity: float = 0.0
    max_humidity: float = 1.0
    texture: str | None = Field(default=None, description="Terrain layer reference")
    fallback_color: tuple[float, float, float, float] = Field(
        default=DEFAULT_FALLBACK_COLOR, description="RGBA used when texture is missing"
    )
    trees: list[TreePlacement] = Field(default_factory=list)
    details: list[DetailPlacement] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_ranges(self) -> "Biome":
        for axis in ("height", "temperature", "humidity"):
            low = getattr(self, f"min_{axis}")
            high = getattr(self, f"max_{axis}")
            if low > high:
                raise ValueError(
                    f"Biome '{self.name}': min_{axis} ({low}) exceeds max_{axis} ({high})"
                )
        return self

    @property
    def height_mid(self) -> float:
        return (self.min_height + self.max_height) / 2.0

    @property
    def temperature_mid(self) -> float:
        return (self.min_temperature + self.max_temperature) / 2.0

    @property
    def humidity_mid(self) -> float:
        return (self.min_humidity + self.max_humidity) / 2.0


def default_biomes() -> list[Biome]:
    """Biome table used when a config does not supply one."""
    return [
        Biome(
            name="beach",
            min_height=0.0,
            max_height=0.15,
            min_temperature=20.0,
            max_temperature=30.0,
            min_humidity=0.2,
            max_humidity=0.5,
            fallback_color=(0.86, 0.8, 0.55, 1.0),
        ),
        Biome(
            name="grassland",
            min_height=0.1,
            max_height=0.5,
            min_temperature=15.0,
            max_temperature=25.0,
            min_humidity=0.3,
            max_humidity=0.6,
            fallback_color=(0.35, 0.6, 0.25, 1.0),
            trees=[TreePlacement(prefab="oak", density=0.3, min_scale=0.8, max_scale=1.2)],
            details=[DetailPlacement(texture="grass", density=0.6)],
        ),
        Biome(
            name="forest",
            min_height=0.2,
            max_height=0.6,
            min_temperature=10.0,
            max_temperature=22.0,
            min_humidity=0.5,
            max_humidity=0.9,
            fallback_color=(0.15, 0.4, 0.15, 1.0),
            trees=[
                TreePlacement(prefab="oak", density=0.7, min_scale=0.9, max_scale=1.4),
                TreePlacement(prefab="pine", density=0.6, min_scale=1.0, max_scale=1.6),
            ],
            details=[DetailPlacement(texture="fern", density=0.4)],
        ),
        Biome(
            name="desert",
            min_height=0.1,
            max_height=0.4,
            min_temperature=24.0,
            max_temperature=40.0,
            min_humidity=0.0,
            max_humidity=0.2,
            fallback_color=(0.9, 0.75, 0.45, 1.0),
        ),
        Biome(
            name="mountain",
            min_height=0.6,
            max_height=1.0,
            min_temperature=5.0,
            max_temperature=20.0,
            min_humidity=0.1,
            max_humidity=0.5,
            fallback_color=(0.45, 0.45, 0.45, 1.0),
            trees=[TreePlacement(prefab="pine", density=0.2, min_scale=0.7, max_scale=1.0)],
        ),
    ]


class TerrainConfig(BaseModel):
    """Complete generation parameter set."""

    model_config = _FROZEN

    resolution: int = Field(default=512, gt=0, description="Grid cells per side (N)")
    seed: int = Field(default=42, ge=0, description="Random seed for reproducibility")
    use_random_seed: bool = Field(
        default=False, description="Draw a fresh seed on every generation"
    )
    elevation_scale: float = Field(
        default=50.0, gt=0, description="World height of normalized elevation 1.0"
    )

    noise: NoiseConfig = Field(default_factory=NoiseConfig)
    voronoi: VoronoiConfig = Field(default_factory=VoronoiConfig)
    climate: ClimateConfig = Field(default_factory=ClimateConfig)
    splat: SplatConfig = Field(default_factory=SplatConfig)
    scatter: ScatterConfig = Field(default_factory=ScatterConfig)
    biomes: list[Biome] = Field(default_factory=default_biomes)

    # Debug options
    debug_output_dir: str | None = Field(
        default=None, description="Directory for debug images (None = disabled)"
    )

    @model_validator(mode="after")
    def _check_biomes(self) -> "TerrainConfig":
        if not self.biomes:
            raise ValueError("Biome table must contain at least one biome")
        return self

    @property
    def grid_size(self) -> int:
        """Samples per side of the height and biome grids."""
        return self.resolution + 1

    @property
    def splat_resolution(self) -> int:
        return self.splat.resolution or self.grid_size

    @property
    def detail_resolution(self) -> int:
        return self.scatter.detail_resolution or self.grid_size


def load_config(config_path: Path) -> TerrainConfig:
    """Load a terrain configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed and validated TerrainConfig.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        pydantic.ValidationError: If parameters are invalid.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return TerrainConfig.model_validate(data)


def find_config(name: str) -> Path:
    """Find a config file by name.

    Searches in the following order:
    1. Exact path if name contains path separator or ends in .toml
    2. configs/{name}.toml
    3. configs/{name}

    Args:
        name: Config name or path.

    Returns:
        Path to the config file.

    Raises:
        FileNotFoundError: If config file is not found.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {name}")

    configs_dir = _configs_dir()

    config_path = configs_dir / f"{name}.toml"
    if config_path.exists():
        return config_path

    config_path = configs_dir / name
    if config_path.exists():
        return config_path

    raise FileNotFoundError(
        f"Config '{name}' not found in {configs_dir}. "
        f"Available configs: {list_configs()}"
    )


def list_configs() -> list[str]:
    """List available config names."""
    configs_dir = _configs_dir()
    if not configs_dir.exists():
        return []
    return sorted(p.stem for p in configs_dir.glob("*.toml"))


def _configs_dir() -> Path:
    return Path(__file__).parent.parent.parent / "configs"
