"""Run configuration, presets and the end-to-end training pipeline."""

from __future__ import annotations

import hashlib
import json
import time
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence

from ..core.errors import ConfigurationError
from ..core.network import Network, build
from ..core.types import TrainingReport
from ..data import get_dataset
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.summary import write_summary
from .metrics import compute_metrics
from .trainer import DEFAULT_SAMPLE_SIZE, Trainer

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor-sigmoid-fixed": {
        "network": {"inputs": 2, "layers": [{"neurons": 2}, {"neurons": 1}]},
        "data": {"name": "xor", "options": {}},
        "train": {
            "mode": "fixed",
            "cycles": 2000,
            "batch_size": 4,
            "peak_rate": 0.5,
            "seed": 7,
            "run_dir": "runs/xor-sigmoid-fixed",
        },
    },
    "xor-relu-fixed": {
        "network": {
            "inputs": 2,
            "layers": [{"neurons": 4, "type": "leakyRelu", "bias": 0.1}, {"neurons": 1}],
        },
        "data": {"name": "xor", "options": {}},
        "train": {
            "mode": "fixed",
            "cycles": 3000,
            "batch_size": 4,
            "peak_rate": 0.2,
            "seed": 11,
            "run_dir": "runs/xor-relu-fixed",
        },
    },
    "or-sigmoid-converge": {
        "network": {"inputs": 2, "layers": [1], "bias": 0},
        "data": {"name": "or", "options": {}},
        "train": {
            "mode": "converge",
            "max_cycles": 500,
            "seed": 3,
            "run_dir": "runs/or-sigmoid-converge",
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None

REQUIRED_SECTIONS = frozenset({"network", "data", "train"})
TRAIN_MODES = frozenset({"fixed", "converge"})


@dataclass(frozen=True)
class PipelineResult:
    """Paths and report produced by :func:`run_pipeline`."""

    report: TrainingReport
    run_id: str
    run_dir: str
    metrics_path: str
    manifest_path: str
    summary_path: str
    network_path: Optional[str]
    final_metrics: Mapping[str, float]


def _read_config_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load configs in YAML format") from exc
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def load_config(path: str | Path) -> Dict[str, object]:
    """Load a JSON/YAML run config."""

    return json.loads(json.dumps(_read_config_file(Path(path))))


def merge_config(base: Mapping[str, object], override: Mapping[str, object]) -> Dict[str, object]:
    """Recursively overlay ``override`` on a copy of ``base``."""

    merged: Dict[str, object] = deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_config(merged[key], value)  # type: ignore[arg-type]
        else:
            merged[key] = deepcopy(value)
    return merged


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = _read_config_file(file)
                missing = REQUIRED_SECTIONS - set(data)
                if missing:
                    missing_str = ", ".join(sorted(missing))
                    raise KeyError(f"Preset {file.name} is missing required sections: {missing_str}")
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def config_hash(config: Mapping[str, object]) -> str:
    """Return a stable 12-character hash for ``config``."""

    canonical = json.dumps(config, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:12]


def run_pipeline(config: Mapping[str, object]) -> PipelineResult:
    """Build the network, train it on the configured data and write artifacts."""

    missing = REQUIRED_SECTIONS - set(config)
    if missing:
        raise ConfigurationError(f"Run config is missing sections: {', '.join(sorted(missing))}")
    network_cfg = config["network"]
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    mode = str(train_cfg.get("mode", "fixed"))
    if mode not in TRAIN_MODES:
        raise ConfigurationError(f"train.mode must be one of {sorted(TRAIN_MODES)}, got {mode!r}")
    seed = int(train_cfg.get("seed", 0))

    dataset = get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))
    network = build(network_cfg, seed=seed)  # type: ignore[arg-type]
    _check_shapes(network, dataset.input_width, dataset.output_width)

    run_id = config_hash(config)
    run_dir = _resolve_run_dir(train_cfg, dataset.name, run_id)
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=dataset.name,
        examples=len(dataset),
        sizes=[network.inputs, *network.layer_sizes],
        loss=network.loss_function,
        mode=mode,
        param_count=network.parameter_count(),
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv")
    trainer = Trainer(
        network,
        callbacks=[jsonl, csv_sink],
        seed=seed,
        progress_interval=float(train_cfg.get("progress_interval", 10.0)),
    )

    if mode == "fixed":
        sample_size = train_cfg.get("sample_size", DEFAULT_SAMPLE_SIZE)
        report = trainer.fixed_cycle_train(
            dataset.examples,
            int(train_cfg.get("cycles", 1000)),
            int(train_cfg.get("batch_size", 10)),
            sample_size=int(sample_size) if sample_size is not None else None,
            peak_rate=float(train_cfg.get("peak_rate", 0.02)),
        )
    else:
        report = trainer.train(
            dataset.examples,
            max_cycles=int(train_cfg.get("max_cycles", 10_000)),
            min_improvement=float(train_cfg.get("min_improvement", 1e-10)),
            target_error=float(train_cfg.get("target_error", 1e-3)),
        )

    metric_names: Sequence[str] = train_cfg.get("metrics", ["loss", "accuracy"])  # type: ignore[assignment]
    final_metrics = compute_metrics(metric_names, network, dataset.examples)
    (run_dir / "metrics_final.json").write_text(json.dumps(final_metrics, indent=2))

    network_path = None
    if train_cfg.get("save_network", True):
        network_path = network.save(run_dir / "network.json")
    safe_config = json.loads(json.dumps(config, default=str))
    (run_dir / "config.json").write_text(json.dumps(safe_config, indent=2))
    manifest = write_manifest(
        run_dir / "manifest.json",
        run_id=run_id,
        config=safe_config,
        dataset_provenance=dataset.provenance,
        network=network,
        report=report,
    )
    summary_path = write_summary(
        jsonl.path, run_dir / "summary.json", report=report, tail=int(train_cfg.get("summary_tail", 32))
    )

    return PipelineResult(
        report=report,
        run_id=run_id,
        run_dir=str(run_dir),
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
        network_path=network_path,
        final_metrics=final_metrics,
    )


def _check_shapes(network: Network, input_width: int, output_width: int) -> None:
    if network.inputs != input_width:
        raise ConfigurationError(
            f"Network takes {network.inputs} inputs but the examples have {input_width}"
        )
    if network.layer_sizes[-1] != output_width:
        raise ConfigurationError(
            f"Network emits {network.layer_sizes[-1]} outputs but the examples have {output_width}"
        )


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str, run_id: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset / run_id


def _print_startup_summary(
    *,
    dataset_name: str,
    examples: int,
    sizes: Sequence[int],
    loss: str,
    mode: str,
    param_count: int,
) -> None:
    print("=== ffnet run ===")
    print(f"Dataset       : {dataset_name} ({examples} examples)")
    print(f"Layer sizes   : {list(sizes)}")
    print(f"Loss          : {loss}")
    print(f"Training mode : {mode}")
    print(f"Parameters    : {param_count}")
    print("=================")


__all__ = [
    "PipelineResult",
    "config_hash",
    "load_config",
    "load_preset",
    "merge_config",
    "presets",
    "run_pipeline",
]
