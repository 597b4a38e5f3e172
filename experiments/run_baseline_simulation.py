#!/usr/bin/env python3
"""
Baseline Simulation Experiment Runner

This script runs a grid epidemic simulation with Hydra configuration
management, then saves the per-round statistics and the epidemic curves.
"""

import os
import sys
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import hydra  # noqa: E402
from omegaconf import DictConfig, OmegaConf  # noqa: E402
from grid_epidemic import EpidemicSimulation, TRACKED_STATS  # noqa: E402
from grid_epidemic.config import apply_schema  # noqa: E402
from grid_epidemic.utils.validation import validate_config  # noqa: E402


def setup_logging(cfg: DictConfig) -> None:
    """Configure logging for the simulation."""
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level.upper()),
        format=cfg.logging.log_format,
        handlers=[
            logging.FileHandler(cfg.logging.log_file),
            logging.StreamHandler()
        ],
        force=True
    )


def create_output_directory(cfg: DictConfig) -> Path:
    """Create output directory for simulation results."""
    output_dir = Path(cfg.output.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def run_simulation(cfg: DictConfig) -> EpidemicSimulation:
    """Build the simulation from config and run it."""
    simulation = EpidemicSimulation.from_config(cfg)
    logging.info(f"Simulation initialized with {simulation.size} individuals, "
                 f"parameters: {simulation.params.as_dict()}")

    start_time = time.time()
    simulation.run(
        cfg.simulation.n_rounds,
        stop_when_extinct=cfg.simulation.stop_when_extinct
    )
    duration = time.time() - start_time
    logging.info(f"Ran {simulation.current_round} rounds in {duration:.2f} seconds")
    return simulation


def create_visualizations(frame: pd.DataFrame, cfg: DictConfig, output_dir: Path) -> None:
    """Plot the per-state counts over time."""
    if not cfg.output.generate_plots:
        return

    logging.info("Creating visualizations...")
    sns.set_theme(style="whitegrid")
    palette = dict(zip(
        [key for _, key in TRACKED_STATS],
        sns.color_palette("husl", len(TRACKED_STATS))
    ))

    fig, ax = plt.subplots(figsize=(12, 6))
    for label, key in TRACKED_STATS:
        ax.plot(frame.index, frame[key], label=label, color=palette[key], linewidth=2)
    ax.set_xlabel('Round')
    ax.set_ylabel('Individuals')
    ax.set_title(f'Epidemic Curves ({cfg.experiment.name})')
    ax.legend()
    fig.savefig(output_dir / 'epidemic_curves.png', dpi=150, bbox_inches='tight')
    plt.close(fig)


def save_results(
    simulation: EpidemicSimulation,
    frame: pd.DataFrame,
    summary: Dict[str, Any],
    cfg: DictConfig,
    output_dir: Path
) -> None:
    """Write statistics, summary and optionally the final population."""
    frame.to_csv(output_dir / "statistics.csv")
    with open(output_dir / "summary.json", "w") as f:
        json.dump(
            {
                "config": OmegaConf.to_container(cfg, resolve=True),
                "parameters": simulation.params.as_dict(),
                "summary": summary,
            },
            f,
            indent=2
        )
    if cfg.output.save_population:
        simulation.population.to_frame().to_csv(output_dir / "population.csv")


@hydra.main(version_base=None, config_path="../configs", config_name="baseline_simulation")
def main(cfg: DictConfig) -> None:
    """Main experiment runner."""
    # Setup
    setup_logging(cfg)
    cfg = apply_schema(cfg)
    validate_config(cfg)
    logging.info("Starting baseline simulation experiment")
    logging.info(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")

    output_dir = create_output_directory(cfg)
    logging.info(f"Output directory: {output_dir}")

    simulation = run_simulation(cfg)
    frame = simulation.to_frame()
    summary = simulation.summary()

    create_visualizations(frame, cfg, output_dir)
    save_results(simulation, frame, summary, cfg, output_dir)

    logging.info("Simulation completed successfully!")
    logging.info("Summary Statistics:")
    logging.info(f"  - Rounds: {summary['n_rounds']}")
    logging.info(f"  - Peak infected: {summary['peak_infected']} "
                 f"(round {summary['peak_round']})")
    for label, count in summary["final"].items():
        logging.info(f"  - Final {label}: {count}")
    logging.info(f"Results saved to: {output_dir}")


if __name__ == "__main__":
    main()
