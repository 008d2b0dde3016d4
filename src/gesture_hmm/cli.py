"""gesture-hmm CLI — thin drivers over the recognition engine.

Usage:
    gesture-hmm train      — Train a model bank from prototype files
    gesture-hmm classify   — Classify a point trajectory file
    gesture-hmm show       — Print the parameters of a model bank
    gesture-hmm replay     — Run a frame recording through the pipeline
    gesture-hmm proto      — Cut a gesture prototype out of a frame recording
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np
import typer

from gesture_hmm.storage import ModelFileError

app = typer.Typer(
    name="gesture-hmm",
    help="✋ HMM-based hand trajectory gesture recognition.",
    add_completion=False,
)


@app.callback()
def main_options(
    log_level: str = typer.Option("warning", help="Log level"),
):
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _require(path: str, what: str) -> Path:
    p = Path(path)
    if not p.exists():
        typer.echo(f"❌ {what} not found: {path}", err=True)
        raise typer.Exit(1)
    return p


@app.command()
def train(
    prototypes: list[str] = typer.Argument(..., help="Gesture prototype files, one per class"),
    output: str = typer.Option("models.yml", "-o", help="Output model bank file"),
    config: Optional[str] = typer.Option(None, "--config", help="Engine config YAML"),
    seed: Optional[int] = typer.Option(None, help="Random seed for training-set synthesis"),
):
    """Train one left-right HMM per gesture prototype."""
    from gesture_hmm.config import load_config
    from gesture_hmm.storage import read_gesture_proto
    from gesture_hmm.training import model_from_prototype
    from gesture_hmm.hmm import ModelBank

    cfg = load_config(config)
    if seed is not None:
        cfg.seed = seed
    rng = np.random.default_rng(cfg.seed)

    bank = ModelBank()
    for i, name in enumerate(prototypes):
        path = _require(name, "Prototype")
        try:
            proto = read_gesture_proto(path)
        except ModelFileError as e:
            typer.echo(f"❌ {e}", err=True)
            raise typer.Exit(1)

        model, result = model_from_prototype(proto, cfg, rng)
        bank.add(model)
        status = "converged" if result.converged else "iteration cap"
        typer.echo(
            f"🧠 [{i}] {path.name}: N={model.N}, {len(proto.seq)} points, "
            f"{result.iterations} iteration(s) ({status}), loglik={result.log_likelihood:.2f}"
        )

    bank.save(output)
    typer.echo(f"💾 Saved {len(bank)} model(s) to: {output}")


@app.command()
def classify(
    models: str = typer.Argument(..., help="Model bank file"),
    points: str = typer.Argument(..., help="Trajectory file (prototype format)"),
    config: Optional[str] = typer.Option(None, "--config", help="Engine config YAML"),
):
    """Classify a recorded point trajectory against a model bank."""
    from gesture_hmm.classifier import GestureClassifier
    from gesture_hmm.config import load_config
    from gesture_hmm.storage import read_gesture_proto

    cfg = load_config(config)
    try:
        classifier = GestureClassifier(
            num_symbols=cfg.num_symbols,
            max_valid_score=cfg.max_valid_score,
            model_path=_require(models, "Model file"),
        )
        proto = read_gesture_proto(_require(points, "Trajectory file"))
    except ModelFileError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    result = classifier.classify_sequence(proto.seq)
    for i, s in enumerate(result.scores):
        marker = " ◀" if i == result.index else ""
        typer.echo(f"   {i:2d}: {s:10.2f}{marker}")

    if result.matched:
        typer.echo(f"✅ Gesture class: {result.index}")
    else:
        typer.echo("🤷 No match")


@app.command()
def show(
    models: str = typer.Argument(..., help="Model bank file"),
):
    """Print pi, A and b of every model in a bank."""
    from gesture_hmm.hmm import ModelBank

    try:
        bank = ModelBank.load(_require(models, "Model file"))
    except ModelFileError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"📦 {len(bank)} model(s)")
    for i, model in enumerate(bank):
        typer.echo(f"\n── model {i} (N={model.N}, M={model.M}) ──")
        typer.echo(model.to_text())


@app.command()
def replay(
    models: str = typer.Argument(..., help="Model bank file"),
    recording: str = typer.Argument(..., help="Frame recording (.json)"),
    config: Optional[str] = typer.Option(None, "--config", help="Engine config YAML"),
    labels: Optional[str] = typer.Option(None, help="Comma-separated class labels"),
):
    """Replay a recorded posture/centroid stream through the pipeline."""
    from gesture_hmm.config import load_config
    from gesture_hmm.hmm import ModelBank
    from gesture_hmm.pipeline import GesturePipeline

    cfg = load_config(config)
    try:
        bank = ModelBank.load(_require(models, "Model file"), cfg.num_symbols)
    except ModelFileError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)

    player = _load_recording(recording)
    typer.echo(f"▶️  Replaying {Path(recording).name} ({player.frame_count} frames, {player.duration:.1f}s)")

    label_list = [s.strip() for s in labels.split(",")] if labels else None
    pipeline = GesturePipeline(bank, cfg, labels=label_list)

    def on_gesture(event):
        if event.matched:
            name = f" ({event.label})" if event.label else ""
            typer.echo(f"   🤚 t={event.timestamp:.2f}s class {event.index}{name}, {len(event.trajectory)} points")
        else:
            typer.echo(f"   ✖ t={event.timestamp:.2f}s no match, {len(event.trajectory)} points")

    pipeline.on_gesture(on_gesture)

    for frame in player.play():
        pipeline.process(frame.posture, frame.centroid, frame.timestamp)

    stats = pipeline.stats
    typer.echo(f"\n✅ Replay complete. {stats.recognized} recognized, {stats.rejected} rejected.")


@app.command()
def proto(
    recording: str = typer.Argument(..., help="Frame recording (.json)"),
    output: str = typer.Option("proto.yml", "-o", help="Output prototype file"),
    states: Optional[int] = typer.Option(
        None, "-n", help="Number of HMM states (default: config default_states)"
    ),
    config: Optional[str] = typer.Option(None, "--config", help="Engine config YAML"),
):
    """Save the first completed trajectory of a recording as a gesture prototype."""
    from gesture_hmm.capture import CaptureStateMachine
    from gesture_hmm.config import load_config
    from gesture_hmm.storage import write_gesture_proto

    cfg = load_config(config)
    N = states if states is not None else cfg.default_states
    if N < 1:
        typer.echo(f"❌ Number of states must be >= 1, got {N}", err=True)
        raise typer.Exit(1)

    player = _load_recording(recording)
    machine = CaptureStateMachine.from_config(cfg)
    for frame in player.play():
        if machine.update(frame.posture, frame.centroid):
            write_gesture_proto(output, machine.sequence, N)
            typer.echo(
                f"✏️  t={frame.timestamp:.2f}s captured {len(machine.sequence)} points"
            )
            typer.echo(f"💾 Saved prototype (N={N}) to: {output}")
            return

    typer.echo(f"❌ No complete gesture in {Path(recording).name}", err=True)
    raise typer.Exit(1)


def _load_recording(recording: str):
    from gesture_hmm.recorder import FramePlayer

    path = _require(recording, "Recording")
    try:
        return FramePlayer.load(path)
    except (KeyError, ValueError) as e:
        typer.echo(f"❌ Cannot read recording {path}: {e}", err=True)
        raise typer.Exit(1)


def main():
    app()


if __name__ == "__main__":
    main()
