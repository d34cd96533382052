import argparse
import os
import sys
from typing import Any, Dict

from loguru import logger

from astrosena.config import (
    DEFAULT_CONFIG_PATH,
    get_paths,
    get_prediction_tickets,
    get_predictor_defaults,
    get_tuning_defaults,
    load_config,
    parse_float_list,
)
from astrosena.errors import AstroSenaError
from astrosena.models import PredictorParams, RunSettings


def setup_logging(log_file: str, verbose: bool = False) -> None:
    """Console sink on stderr plus a rotating DEBUG file sink."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level="DEBUG" if verbose else "INFO",
    )
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    logger.add(
        log_file,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
        rotation="10 MB",
        retention="30 days",
    )


def _pick(args: argparse.Namespace, key: str, defaults: Dict[str, Any]) -> Any:
    value = getattr(args, key, None)
    return defaults[key] if value is None else value


def _predictor_params(args: argparse.Namespace, defaults: Dict[str, Any]) -> PredictorParams:
    return PredictorParams(
        window_size=_pick(args, "window_size", defaults),
        half_life=_pick(args, "half_life", defaults),
        explore=_pick(args, "explore", defaults),
        hot_boost=_pick(args, "hot_boost", defaults),
        cold_boost=_pick(args, "cold_boost", defaults),
        cold_window=_pick(args, "cold_window", defaults),
    )


def _astro_weights(args: argparse.Namespace, defaults: Dict[str, Any]):
    raw = getattr(args, "astro_weights", None)
    return parse_float_list(raw) if raw else defaults["astro_weights"]


def backtest_command(args, config, paths):
    """Handles the 'backtest' command."""
    from astrosena.backtest import run_backtest
    from astrosena.loader import load_draws
    from astrosena.output_exporter import export_backtest

    defaults = get_predictor_defaults(config)
    params = _predictor_params(args, defaults)
    settings = RunSettings(
        tickets_per_draw=args.tickets if args.tickets is not None else defaults["tickets_per_draw"],
        min_history=_pick(args, "min_history", defaults),
        stride=_pick(args, "stride", defaults),
        seed=_pick(args, "seed", defaults),
        start_idx=args.start_idx,
        end_idx=args.end_idx,
        astro_weights=_astro_weights(args, defaults),
    )
    draws = load_draws(args.input or paths["draws_file"])
    report = run_backtest(draws, params, settings)
    export_backtest(report, args.output or paths["backtest_output"])

    summary = report.summary()
    print("\n--- Backtest Summary ---")
    for key in ("totalDraws", "avgBestHits", "avgAvgHits", "pctAtLeast2", "pctAtLeast3"):
        print(f"{key}: {summary[key]}")


def tune_command(args, config, paths):
    """Handles the 'tune' command."""
    from astrosena.loader import load_draws
    from astrosena.output_exporter import export_tuning
    from astrosena.tuning import TuningHarness, TuningSettings

    defaults = get_tuning_defaults(config)
    predictor_defaults = get_predictor_defaults(config)
    draws = load_draws(args.input or paths["draws_file"])
    settings = TuningSettings(
        tickets_per_draw=args.tickets if args.tickets is not None else defaults["tickets_per_draw"],
        min_history=_pick(args, "min_history", defaults),
        stride=_pick(args, "stride", defaults),
        seed=_pick(args, "seed", defaults),
        start_idx=args.start_idx,
        end_idx=args.end_idx,
        random_trials=_pick(args, "random_trials", defaults),
        random_seed=_pick(args, "random_seed", defaults),
        workers=_pick(args, "workers", defaults),
        astro_weights=_astro_weights(args, predictor_defaults),
    )
    report = TuningHarness(draws, settings).run_all()
    export_tuning(report, args.output or paths["tuning_output"], args.csv or paths["tuning_csv"])


def merge_command(args, config, paths):
    """Handles the 'merge' command."""
    from astrosena.merger import merge_report_dicts
    from astrosena.output_exporter import export_tuning, load_tuning_chunks

    payloads, names = load_tuning_chunks(args.input_dir or paths["data_dir"])
    report = merge_report_dicts(payloads, sources=names)
    export_tuning(report, args.output or paths["merged_output"], args.csv or paths["merged_csv"])


def predict_command(args, config, paths):
    """Handles the 'predict' command."""
    from astrosena.loader import load_draws, load_target_features
    from astrosena.output_exporter import export_prediction
    from astrosena.predictor import predict_next

    defaults = get_predictor_defaults(config)
    params = _predictor_params(args, defaults)
    settings = RunSettings(
        min_history=_pick(args, "min_history", defaults),
        seed=_pick(args, "seed", defaults),
        astro_weights=_astro_weights(args, defaults),
    )
    draws = load_draws(args.input or paths["draws_file"])
    target = load_target_features(args.target)
    tickets = args.tickets if args.tickets is not None else get_prediction_tickets(config)
    prediction = predict_next(draws, target, params, settings, tickets_count=tickets)
    export_prediction(prediction, args.output or paths["prediction_output"], args.csv or paths["prediction_csv"])

    print("\n--- Predicted Tickets ---")
    for ticket, ent in zip(prediction.tickets, prediction.entropies):
        print(f"{' '.join(f'{n:02d}' for n in ticket)}  entropy={ent}")


def report_command(args, config, paths):
    """Handles the 'report' command."""
    from astrosena.output_exporter import load_tuning_file
    from astrosena.report import write_tuning_report
    from astrosena.tuning import TuningReport

    report = TuningReport.from_dict(load_tuning_file(args.input or paths["tuning_output"]))
    write_tuning_report(report, args.output or paths["report_output"], top_n=args.top)


def _add_predictor_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--window-size", type=int, help="Trailing window size")
    parser.add_argument("--half-life", type=float, help="Recency decay constant")
    parser.add_argument("--explore", type=float, help="Weight of the uniform distribution in [0, 1]")
    parser.add_argument("--hot-boost", type=float, help="Multiplicative boost for hot numbers")
    parser.add_argument("--cold-boost", type=float, help="Multiplicative boost for cold numbers")
    parser.add_argument("--cold-window", type=int, help="Lookback (draws) for hot/cold classification")
    parser.add_argument("--astro-weights", type=str, help="Seven comma-separated feature match weights")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="astrosena - adaptive weighting backtests and tuning")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to config.ini")
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG console logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- Backtest Command ---
    p = subparsers.add_parser("backtest", help="Backtest one configuration over the history.")
    p.add_argument("--input", help="Enriched draws JSON")
    p.add_argument("--output", help="Backtest results JSON")
    p.add_argument("--tickets", type=int, help="Tickets per draw")
    p.add_argument("--min-history", type=int, help="First target index")
    p.add_argument("--stride", type=int, help="Step between target indices")
    p.add_argument("--start-idx", type=int, default=None, help="First target index of this partition")
    p.add_argument("--end-idx", type=int, default=None, help="End (exclusive) of this partition")
    p.add_argument("--seed", type=int, help="LCG seed")
    _add_predictor_args(p)
    p.set_defaults(func=backtest_command)

    # --- Tune Command ---
    p = subparsers.add_parser("tune", help="Grid, candidate and random parameter search.")
    p.add_argument("--input", help="Enriched draws JSON")
    p.add_argument("--output", help="Tuning results JSON")
    p.add_argument("--csv", help="Tuning results CSV")
    p.add_argument("--tickets", type=int, help="Tickets per draw")
    p.add_argument("--min-history", type=int, help="Minimum history before the first target")
    p.add_argument("--stride", type=int, help="Step between target indices")
    p.add_argument("--seed", type=int, help="Base seed; each configuration adds its offset")
    p.add_argument("--start-idx", type=int, default=None, help="First target index of this partition")
    p.add_argument("--end-idx", type=int, default=None, help="End (exclusive) of this partition")
    p.add_argument("--random-trials", type=int, help="Random search trials")
    p.add_argument("--random-seed", type=int, help="Seed of the random parameter draws")
    p.add_argument("--workers", type=int, help="Worker processes")
    p.add_argument("--astro-weights", type=str, help="Seven comma-separated feature match weights")
    p.set_defaults(func=tune_command)

    # --- Merge Command ---
    p = subparsers.add_parser("merge", help="Merge tuning_chunk_*.json partitions.")
    p.add_argument("--input-dir", help="Directory holding the chunk files")
    p.add_argument("--output", help="Merged results JSON")
    p.add_argument("--csv", help="Merged results CSV")
    p.set_defaults(func=merge_command)

    # --- Predict Command ---
    p = subparsers.add_parser("predict", help="Generate tickets for a future draw.")
    p.add_argument("--input", help="Enriched draws JSON")
    p.add_argument("--target", required=True, help="JSON with the future draw's features")
    p.add_argument("--output", help="Prediction JSON")
    p.add_argument("--csv", help="Prediction CSV")
    p.add_argument("--tickets", type=int, default=None, help="Number of tickets")
    p.add_argument("--min-history", type=int, help="First index used to learn coefficients")
    p.add_argument("--seed", type=int, help="LCG seed")
    _add_predictor_args(p)
    p.set_defaults(func=predict_command)

    # --- Report Command ---
    p = subparsers.add_parser("report", help="Render tuning results as HTML.")
    p.add_argument("--input", help="Tuning results JSON")
    p.add_argument("--output", help="HTML output path")
    p.add_argument("--top", type=int, default=10, help="Rows per group")
    p.set_defaults(func=report_command)

    return parser


def main(argv=None) -> int:
    """Main entry point for the astrosena CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    paths = get_paths(config)
    setup_logging(paths["log_file"], verbose=args.verbose)
    logger.info(f"Received '{args.command}' command")

    try:
        args.func(args, config, paths)
    except AstroSenaError as e:
        logger.error(f"'{args.command}' failed: {e}")
        return 1
    logger.info(f"'{args.command}' completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
