import json
from pathlib import Path

import jsonschema
import pytest

from embedding_projector.preprocessing.dimensionality_reduction.config import (
    AlgorithmOptions,
    default_exaggeration_iterations,
    default_n_epochs,
    default_n_neighbors,
    default_perplexity,
    default_tsne_iterations,
)
from embedding_projector.utils.config.config_loader import ConfigLoader, load_config
from embedding_projector.utils.config.validator import ConfigValidator


def test_yaml_config_is_merged_over_defaults(tmp_path: Path) -> None:
    path = tmp_path / "projection.yaml"
    path.write_text(
        "projection:\n"
        "  algorithm: tsne\n"
        "  params:\n"
        "    tsne:\n"
        "      perplexity: 12\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config["projection"]["algorithm"] == "tsne"
    assert config["projection"]["params"]["tsne"] == {"perplexity": 12}
    assert config["logging"]["level"] == "INFO"
    assert config["executor"]["start_method"] == "spawn"

    options = AlgorithmOptions.from_config(config)
    assert options.algorithm == "tsne"
    assert options.params.tsne.perplexity == 12
    assert options.params.umap.n_neighbors is None


def test_json_config_and_dotted_access(tmp_path: Path) -> None:
    path = tmp_path / "projection.json"
    path.write_text(
        json.dumps({"projection": {"algorithm": "pca", "params": {"pca": {"power_iterations": 30}}}}),
        encoding="utf-8",
    )

    loader = ConfigLoader(path)

    assert loader.get("projection.algorithm") == "pca"
    assert loader.get("projection.params.pca.power_iterations") == 30
    assert loader.get("projection.params.pca.missing", "fallback") == "fallback"
    assert loader.get_executor_config() == {"start_method": "spawn"}


def test_missing_explicit_config_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        ConfigLoader(tmp_path / "absent.yaml").load()


def test_schema_rejects_unknown_algorithm(tmp_path: Path) -> None:
    path = tmp_path / "projection.yaml"
    path.write_text("projection:\n  algorithm: isomap\n", encoding="utf-8")

    with pytest.raises(jsonschema.ValidationError):
        ConfigLoader(path).load()


def test_validator_separates_errors_from_warnings() -> None:
    errors, warnings = ConfigValidator.validate_params(
        {"tsne": {"perplexity": -1, "momentum": 1.0}, "umap": {"n_neighbors": 500}}
    )

    assert len(errors) == 2
    assert any("tsne.perplexity" in error for error in errors)
    assert any("tsne.momentum" in error for error in errors)
    assert warnings == ["umap.n_neighbors=500 is outside the usual range [3, 100]"]


def test_validate_or_raise() -> None:
    config = {"projection": {"algorithm": "auto", "params": {"pca": {"power_iterations": -2}}}}

    with pytest.raises(ValueError, match="power_iterations"):
        ConfigValidator.validate_or_raise(config)

    messages = ConfigValidator.validate({"executor": {"start_method": "fork"}})
    assert len(messages) == 1
    assert messages[0].startswith("WARNING")


def test_options_accept_camel_case_and_upper_case_names() -> None:
    options = AlgorithmOptions.from_dict(
        {
            "algorithm": "UMAP",
            "params": {"umap": {"nNeighbors": 7, "learningRate": 0.5}, "pca": {"powerIterations": 3}},
        }
    )

    assert options.algorithm == "umap"
    assert options.params.umap.n_neighbors == 7
    assert options.params.umap.learning_rate == 0.5
    assert options.params.pca.power_iterations == 3
    assert options.params.for_method("umap") == {
        "n_neighbors": 7,
        "n_epochs": None,
        "learning_rate": 0.5,
        "negative_sample_rate": None,
    }


@pytest.mark.parametrize(
    "params",
    [
        {"umap": {"bogus": 1}},
        {"tsne": {"perplexity": "high"}},
        {"tsne": {"momentum": 1.5}},
        {"umap": {"n_epochs": 0}},
        {"spectral": {}},
    ],
)
def test_invalid_parameters_raise_value_error(params: dict) -> None:
    with pytest.raises(ValueError):
        AlgorithmOptions.from_dict({"algorithm": "auto", "params": params})


def test_overrides_replace_only_given_values() -> None:
    base = AlgorithmOptions.from_dict({"algorithm": "tsne", "params": {"tsne": {"perplexity": 8}}})

    updated = base.with_overrides(tsne__iterations=250, tsne__perplexity=None, umap__n_neighbors=6)

    assert updated.algorithm == "tsne"
    assert updated.params.tsne.perplexity == 8
    assert updated.params.tsne.iterations == 250
    assert updated.params.umap.n_neighbors == 6
    assert base.params.tsne.iterations is None
    assert base.with_overrides(algorithm="pca").algorithm == "pca"

    with pytest.raises(ValueError, match="Unknown parameter override"):
        base.with_overrides(tsne__theta=0.5)


def test_options_round_trip_through_serialisable_dict() -> None:
    options = AlgorithmOptions.from_dict({"algorithm": "pca", "params": {"pca": {"power_iterations": 9}}})

    assert AlgorithmOptions.from_dict(options.to_serialisable_dict()) == options


def test_size_dependent_defaults() -> None:
    assert [default_perplexity(n) for n in (2, 29, 30, 100, 101, 5000)] == [5, 5, 10, 10, 30, 30]
    assert [default_tsne_iterations(n) for n in (199, 200)] == [1500, 1000]
    assert [default_exaggeration_iterations(n) for n in (199, 200)] == [350, 250]
    assert [default_n_neighbors(n) for n in (2, 4, 49, 50, 100, 136, 199, 200, 1000)] == [
        3, 3, 7, 10, 10, 12, 13, 4, 15,
    ]
    assert [default_n_epochs(n) for n in (999, 1000)] == [500, 200]
