from pathlib import Path
from typing import List, Optional, Union

from hydra import compose, initialize_config_dir
from omegaconf import DictConfig, OmegaConf

from ..utils.logging import log_call
from ..utils.validation import validate_config
from .schemas import SimulatorConfig

CONFIG_DIR = Path(__file__).resolve().parents[3] / "configs"


@log_call
def load_config(
    overrides: Optional[List[str]] = None,
    config_dir: Optional[Union[str, Path]] = None,
    config_name: str = "config"
) -> DictConfig:
    """Load, type-check and validate a configuration using Hydra."""

    overrides = overrides or []
    config_dir = Path(config_dir) if config_dir is not None else CONFIG_DIR
    with initialize_config_dir(
        config_dir.resolve().as_posix(), version_base=None
    ):
        cfg = compose(config_name=config_name, overrides=overrides)
    cfg = apply_schema(cfg)
    validate_config(cfg)
    return cfg


@log_call
def apply_schema(cfg: DictConfig) -> DictConfig:
    """Merge ``cfg`` onto the structured schema, rejecting mistyped values."""
    schema = OmegaConf.structured(SimulatorConfig)
    OmegaConf.set_struct(schema, False)
    return OmegaConf.merge(schema, cfg)  # type: ignore[return-value]
