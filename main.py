# main.py
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import pandas as pd

from bivariate_mlp.artifacts import ModelBundle
from bivariate_mlp.data import DEFAULT_DATA_DIR, write_bivariate
from bivariate_mlp.grid import DEFAULT_GRID_SIZE
from bivariate_mlp.logging_utils import DEFAULT_LOG_LEVEL, configure_logging
from bivariate_mlp.models import DEFAULT_DEVICE, DEFAULT_MLP_PARAMS, DEFAULT_SEED
from bivariate_mlp.pipeline import PreparedData, prepare_data
from bivariate_mlp.training import TrainingConfig, evaluate_split, render_plots, train_model


logger = logging.getLogger("bivariate_mlp.cli")


def _save_json(obj: Any, path: str) -> str:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2)
    return str(p)


def _config_from_args(args: argparse.Namespace) -> TrainingConfig:
    return TrainingConfig(
        device=args.device,
        seed=args.seed,
        epochs=args.epochs,
        hidden_units=args.hidden_units,
        dropout=args.dropout,
        learning_rate=args.learning_rate,
        batch_size=args.batch_size,
        activation=args.activation,
    )


def cmd_simulate(args: argparse.Namespace) -> None:
    paths = write_bivariate(args.data_dir, seed=int(args.seed))
    print(f"Dataset written to: {Path(args.data_dir)}")
    for name, p in paths.items():
        print(f"  {name}: {p}")


def cmd_train(args: argparse.Namespace) -> Tuple[ModelBundle, PreparedData]:
    data = prepare_data(args.data_dir)
    cfg = _config_from_args(args)

    bundle, _ = train_model(data, outdir=args.outdir, config=cfg)

    val_summary = evaluate_split(bundle, data.X_val_raw, data.y_val, split="val", outdir=args.outdir)
    test_summary = evaluate_split(bundle, data.X_test_raw, data.y_test, split="test", outdir=args.outdir)

    out = {
        "train_summary_path": str(Path(args.outdir) / "metrics" / "train_summary.json"),
        "val_metrics_path": str(Path(args.outdir) / "metrics" / "val_metrics.json"),
        "test_metrics_path": str(Path(args.outdir) / "metrics" / "test_metrics.json"),
        "bundle_path": str(Path(args.outdir) / "models" / "bundle.joblib"),
    }
    _save_json(out, str(Path(args.outdir) / "run_manifest.json"))

    # Minimal confirmation on stdout; details go to the log.
    print(f"Training complete. Bundle saved to: {out['bundle_path']}")
    if bundle.metadata.get("device_warning"):
        print(f"NOTE: {bundle.metadata.get('device_warning')}")
    for s in (val_summary, test_summary):
        m = s["metrics"]
        print(f"  {s['split']:<4} roc_auc={m['roc_auc']:.4f} accuracy={m['accuracy']:.4f}")
    return bundle, data


def cmd_predict(args: argparse.Namespace) -> None:
    bundle = ModelBundle.load(args.bundle)

    df = pd.read_csv(args.input)
    pred = bundle.classifier.predict_frame(df)

    out_df = pd.concat([df.reset_index(drop=True), pred.reset_index(drop=True)], axis=1) if args.include_inputs else pred

    out_path = Path(args.output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_df.to_csv(out_path, index=False)
    print(f"Predictions written to: {out_path}")


def cmd_plot(args: argparse.Namespace, bundle: Optional[ModelBundle] = None, data: Optional[PreparedData] = None) -> Dict[str, str]:
    bundle = bundle or ModelBundle.load(args.bundle)
    data = data or prepare_data(args.data_dir)

    paths = render_plots(bundle, data, outdir=args.outdir, grid_size=int(args.grid_size))
    print("Plots:")
    for name, p in paths.items():
        print(f"  {name}: {p}")
    return paths


def cmd_run(args: argparse.Namespace) -> None:
    bundle, data = cmd_train(args)
    cmd_plot(args, bundle=bundle, data=data)


def _add_training_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--epochs", type=int, default=DEFAULT_MLP_PARAMS["epochs"], help="Training epochs.")
    p.add_argument("--hidden-units", dest="hidden_units", type=int, default=DEFAULT_MLP_PARAMS["hidden_units"], help="Hidden layer width.")
    p.add_argument("--dropout", type=float, default=DEFAULT_MLP_PARAMS["dropout"], help="Dropout rate after the hidden layer.")
    p.add_argument("--learning-rate", dest="learning_rate", type=float, default=DEFAULT_MLP_PARAMS["learning_rate"], help="Adam learning rate.")
    p.add_argument("--batch-size", dest="batch_size", type=int, default=DEFAULT_MLP_PARAMS["batch_size"], help="Mini-batch size.")
    p.add_argument("--activation", type=str, default=DEFAULT_MLP_PARAMS["activation"], choices=["relu", "tanh", "sigmoid"], help="Hidden layer activation.")


def _add_grid_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--grid-size", dest="grid_size", type=int, default=DEFAULT_GRID_SIZE, help="Grid points per predictor for the boundary plot.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Neural network classifier for two skewed predictors (simulate / train / predict / plot / run).")
    p.add_argument("--data-dir", dest="data_dir", type=str, default=DEFAULT_DATA_DIR, help="Directory holding bivariate_{train,val,test}.csv.")
    p.add_argument("--outdir", type=str, default="outputs", help="Output directory root.")
    p.add_argument("--bundle", type=str, default="outputs/models/bundle.joblib", help="Path to saved ModelBundle joblib.")
    p.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Random seed.")
    p.add_argument("--device", type=str, default=DEFAULT_DEVICE, help="Torch device: cpu, cuda, cuda:0, or auto.")
    p.add_argument("--log-level", dest="log_level", type=str, default=DEFAULT_LOG_LEVEL, help="Logging level.")
    p.add_argument("--log-file", dest="log_file", type=str, default=None, help="Optional log file path.")

    sub = p.add_subparsers(dest="command")

    s = sub.add_parser("simulate", help="Write a reference-shaped train/val/test split to --data-dir.")
    s.set_defaults(func=cmd_simulate)

    t = sub.add_parser("train", help="Preprocess, train the network, and evaluate on validation and test.")
    _add_training_args(t)
    t.set_defaults(func=cmd_train)

    pr = sub.add_parser("predict", help="Inference mode: load trained bundle and predict on a CSV.")
    pr.add_argument("--input", type=str, required=True, help="Input CSV with at least columns A and B.")
    pr.add_argument("--output", type=str, default="outputs/predictions/predictions.csv", help="Output predictions CSV.")
    pr.add_argument("--include-inputs", action="store_true", help="Include input columns in output.")
    pr.set_defaults(func=cmd_predict)

    pl = sub.add_parser("plot", help="Render the training scatter and decision boundary plots.")
    _add_grid_args(pl)
    pl.set_defaults(func=cmd_plot)

    r = sub.add_parser("run", help="train followed by plot.")
    _add_training_args(r)
    _add_grid_args(r)
    r.set_defaults(func=cmd_run)

    return p


def main(argv: Optional[list] = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(argv)

    # Default: full walkthrough
    if not getattr(args, "command", None):
        args = parser.parse_args(argv + ["run"])

    configure_logging(args.log_level, args.log_file)
    logger.debug("Arguments: %s", vars(args))
    args.func(args)


if __name__ == "__main__":
    main()
