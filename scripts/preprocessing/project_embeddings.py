from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
	sys.path.insert(0, str(PROJECT_ROOT))

from embedding_projector.utils.config.config_loader import set_config_path
from embedding_projector.utils.logging.logging_manager import WANDB_DISABLED_ENV_VAR

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _parse_args() -> argparse.Namespace:
	parser = argparse.ArgumentParser(
		description="Project a JSONL file of embeddings to 2D and print the points as JSON.",
	)
	parser.add_argument(
		"--input",
		type=Path,
		required=True,
		help="JSONL file with one {embedding, title, text} object per line.",
	)
	parser.add_argument(
		"--config",
		type=Path,
		default=None,
		help="YAML or JSON config (defaults to configs/projection.yaml when present).",
	)
	parser.add_argument(
		"--algorithm",
		type=str,
		default=None,
		choices=["auto", "umap", "tsne", "pca"],
		help="Projection method; overrides projection.algorithm from the config.",
	)

	umap = parser.add_argument_group("UMAP")
	umap.add_argument("--n-neighbors", type=int, default=None, help="Neighbours per point.")
	umap.add_argument("--n-epochs", type=int, default=None, help="Optimisation epochs.")
	umap.add_argument("--umap-learning-rate", type=float, default=None, help="Initial SGD step size.")
	umap.add_argument(
		"--negative-sample-rate",
		type=int,
		default=None,
		help="Repulsive samples drawn per edge update.",
	)

	tsne = parser.add_argument_group("t-SNE")
	tsne.add_argument("--perplexity", type=float, default=None, help="Effective neighbour count.")
	tsne.add_argument("--tsne-learning-rate", type=float, default=None, help="Gradient step size.")
	tsne.add_argument("--iterations", type=int, default=None, help="Gradient descent iterations.")
	tsne.add_argument(
		"--early-exaggeration",
		type=float,
		default=None,
		help="Attraction multiplier during the early phase.",
	)
	tsne.add_argument("--momentum", type=float, default=None, help="Momentum after the first 20 iterations.")

	pca = parser.add_argument_group("PCA")
	pca.add_argument("--power-iterations", type=int, default=None, help="Power iteration steps.")

	parser.add_argument(
		"--inline",
		action="store_true",
		help="Run in this process instead of a worker process.",
	)
	parser.add_argument(
		"--timeout",
		type=float,
		default=None,
		help="Seconds to wait for the worker before giving up.",
	)
	parser.add_argument(
		"--compact",
		action="store_true",
		help="Print the result on a single line.",
	)
	parser.add_argument(
		"--log-level",
		type=str,
		default=None,
		choices=LOG_LEVELS,
		help="Logging verbosity (defaults to logging.level from the config).",
	)
	parser.add_argument(
		"--log-file",
		type=Path,
		default=None,
		help="Optional file receiving DEBUG-level logs.",
	)
	parser.add_argument(
		"--no-wandb",
		action="store_true",
		help="Disable WandB mirroring regardless of the config.",
	)
	return parser.parse_args()


def main() -> int:
	args = _parse_args()

	# Must happen before any logger is created
	if args.no_wandb:
		os.environ[WANDB_DISABLED_ENV_VAR] = "true"
		os.environ["WANDB_MODE"] = "disabled"

	loader = set_config_path(args.config)
	config = loader.load()
	logging_config = loader.get_logging_config()

	from embedding_projector.preprocessing import load_jsonl_dataset
	from embedding_projector.preprocessing.dimensionality_reduction import (
		AlgorithmOptions,
		ProjectionCancelledError,
		ProjectionExecutor,
		ProjectionWorkerError,
	)
	from embedding_projector.utils.logging.logging_manager import setup_logging

	level_name = args.log_level or logging_config["level"]
	logger = setup_logging(
		level=getattr(logging, level_name.upper(), logging.INFO),
		log_file=args.log_file or logging_config.get("log_file"),
		wandb_project=logging_config.get("wandb_project"),
	)

	try:
		options = AlgorithmOptions.from_config(config).with_overrides(
			algorithm=args.algorithm,
			umap__n_neighbors=args.n_neighbors,
			umap__n_epochs=args.n_epochs,
			umap__learning_rate=args.umap_learning_rate,
			umap__negative_sample_rate=args.negative_sample_rate,
			tsne__perplexity=args.perplexity,
			tsne__learning_rate=args.tsne_learning_rate,
			tsne__iterations=args.iterations,
			tsne__early_exaggeration=args.early_exaggeration,
			tsne__momentum=args.momentum,
			pca__power_iterations=args.power_iterations,
		)
		dataset = load_jsonl_dataset(args.input.resolve())
	except (OSError, ValueError) as exc:
		logger.error("%s", exc)
		return 2

	executor = ProjectionExecutor(start_method=loader.get_executor_config()["start_method"])
	try:
		with executor:
			if args.inline:
				result = executor.run_inline(dataset, options)
			else:
				executor.submit(dataset, options)
				result = executor.result(timeout=args.timeout)
	except (ProjectionWorkerError, ProjectionCancelledError, TimeoutError) as exc:
		logger.error("Projection failed: %s", exc)
		logger.finish()
		return 1

	logger.log_metrics({"time_ms": result.time_ms, **result.diagnostics})
	logger.finish()

	json.dump(result.to_dict(), sys.stdout, indent=None if args.compact else 2)
	sys.stdout.write("\n")
	return 0


if __name__ == "__main__":
	sys.exit(main())
