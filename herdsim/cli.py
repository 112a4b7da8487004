#!filepath: herdsim/cli.py
from typing import List, Optional

import typer
from rich import print

from herdsim import AppConfig, SimulationConfig, __version__, logs
from herdsim.core.time import from_us
from herdsim.core.types import Mode, Record
from herdsim.engine.runner import SimulationRunner
from herdsim.engine.segmentation import STATE_LABELS, segment, to_state_samples
from herdsim.engine.simulation import LiveSimulation

app = typer.Typer(help="HerdSim live / replay simulation CLI")


def _load(path: Optional[str], config: AppConfig) -> List[Record]:
    path = path or config.data.path
    if path:
        from herdsim.io.loader import load_records

        return load_records(path, config.data)

    from herdsim.io.synthetic import generate_day

    print("[yellow]No dataset path given, using a synthetic herd day[/yellow]")
    return generate_day(seed=0)


def _app_config(config_path: Optional[str]) -> AppConfig:
    config = AppConfig.load(config_path)
    logs.configure(config.log)
    return config


def _simulation(config: AppConfig, **overrides) -> LiveSimulation:
    sim_config = SimulationConfig.create(
        **{**config.simulation.model_dump(), **{k: v for k, v in overrides.items() if v is not None}}
    )
    return LiveSimulation(sim_config, state_field=config.data.state_column)


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def replay(
    path: Optional[str] = typer.Option(None, help="CSV / Parquet dataset"),
    speed: Optional[float] = typer.Option(None, help="dataset minutes per real second"),
    horizon: Optional[int] = typer.Option(None, help="24 or 48"),
    ticks: int = typer.Option(20, help="number of ticks to run"),
    config_path: Optional[str] = typer.Option(None, "--config"),
):
    """
    Run replay ticks synchronously and print the simulated clock.
    """
    config = _app_config(config_path)
    sim = _simulation(config, mode=Mode.REPLAY, replay_speed=speed, horizon_hours=horizon)
    sim.load(_load(path, config))

    runner = SimulationRunner(sim)
    for snap in runner.run_ticks(ticks):
        print(
            f"[cyan]{from_us(snap.virtual_now_us).isoformat()}[/cyan] "
            f"progress={snap.progress:5.1f}% window={snap.window_size}"
        )


@app.command()
def live(
    path: Optional[str] = typer.Option(None, help="CSV / Parquet dataset"),
    seconds: float = typer.Option(2.0, help="how long to run the ticker"),
    config_path: Optional[str] = typer.Option(None, "--config"),
):
    """
    Run the threaded ticker in LIVE mode for a few seconds.
    """
    import time

    config = _app_config(config_path)
    sim = _simulation(config, mode=Mode.LIVE)
    sim.load(_load(path, config))

    with SimulationRunner(sim) as runner:
        time.sleep(seconds)

    print(
        f"[green]LIVE[/green] now={sim.current_time()} progress={sim.progress:.1f}% "
        f"window={len(sim.current_window())} metrics={runner.inst.metrics.metrics}"
    )


@app.command()
def timeline(
    path: Optional[str] = typer.Option(None, help="CSV / Parquet dataset"),
    entity: Optional[str] = typer.Option(None, help="only this entity"),
    config_path: Optional[str] = typer.Option(None, "--config"),
):
    """
    Print run-length state intervals over the whole dataset.
    """
    config = _app_config(config_path)
    records = _load(path, config)
    intervals = segment(to_state_samples(records, entity_id=entity, state_field=config.data.state_column))
    logs.info(f"[timeline] {len(records)} samples -> {len(intervals)} intervals")

    for iv in intervals:
        label = STATE_LABELS.get(iv.state, str(iv.state))
        print(
            f"{iv.entity_id}  {label:<9} "
            f"{from_us(iv.start_us):%H:%M} -> {from_us(iv.end_us):%H:%M}"
        )


if __name__ == "__main__":
    app()

# python -m herdsim.cli replay --ticks 50
