from dataclasses import dataclass, field
from typing import Optional


@dataclass
class PopulationConfig:
    size: int = 1600
    random_seed: Optional[int] = None


@dataclass
class DiseaseConfig:
    infection_rate: float = 0.3
    incubation_time: int = 5
    recovery_time: int = 14
    reinfection_probability: float = 0.01
    quarantine_threshold: float = 0.1
    quarantine_reduction_factor: float = 0.3


@dataclass
class SimulationConfig:
    n_rounds: int = 60
    stop_when_extinct: bool = False


@dataclass
class SimulatorConfig:
    population: PopulationConfig = field(default_factory=PopulationConfig)
    disease: DiseaseConfig = field(default_factory=DiseaseConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
