"""Load rating system definitions from TOML files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any
import tomllib

from domain.ratings.elo.calculator import RatingParameters
from domain.stats.form import FormParameters


@dataclass(frozen=True)
class RatingSystemConfig:
    """Configuration for one rating system: update rule plus form scoring."""

    name: str
    description: str | None
    file_path: Path
    parameters: RatingParameters
    form: FormParameters

    def as_config_json(self) -> dict[str, Any]:
        return {
            "initial_rating": self.parameters.initial_rating,
            "min_rating": self.parameters.min_rating,
            "max_rating": self.parameters.max_rating,
            "k_factor": self.parameters.k_factor,
            "scale_factor": self.parameters.scale_factor,
            "margin_of_victory": self.parameters.margin_of_victory,
            "margin_base": self.parameters.margin_base,
            "margin_step": self.parameters.margin_step,
            "margin_min": self.parameters.margin_min,
            "margin_max": self.parameters.margin_max,
            "performance_weight": self.parameters.performance_weight,
            "performance_min": self.parameters.performance_min,
            "performance_max": self.parameters.performance_max,
            "form": {
                "window": self.form.window,
                "min_games": self.form.min_games,
                "decay": self.form.decay,
                "neutral_score": self.form.neutral_score,
                "score_scale": self.form.score_scale,
                "quality_weight": self.form.quality_weight,
                "good_form_threshold": self.form.good_form_threshold,
                "poor_form_threshold": self.form.poor_form_threshold,
            },
        }


def load_rating_system_configs(config_dir: Path) -> list[RatingSystemConfig]:
    """Load every *.toml in ``config_dir``; system names must be unique."""
    if not config_dir.is_dir():
        raise NotADirectoryError(f"Config directory not found: {config_dir}")

    config_files = sorted(config_dir.glob("*.toml"))
    if not config_files:
        raise ValueError(f"No .toml config files found in: {config_dir}")

    systems = [load_rating_system_config(file_path) for file_path in config_files]
    seen: dict[str, Path] = {}
    for system in systems:
        if system.name in seen:
            raise ValueError(
                f"Duplicate rating system names found in {config_dir}: "
                f"{system.name!r} in {seen[system.name].name} and {system.file_path.name}"
            )
        seen[system.name] = system.file_path
    return systems


def load_rating_system_config(file_path: Path) -> RatingSystemConfig:
    """Load and validate one rating system TOML config file."""
    if not file_path.is_file():
        raise FileNotFoundError(f"Config file not found: {file_path}")
    with file_path.open("rb") as file:
        raw = tomllib.load(file)
    return _parse_rating_system_config(raw, file_path)


def _parse_rating_system_config(raw: dict[str, Any], file_path: Path) -> RatingSystemConfig:
    system_raw = raw.get("system", {})
    rating_raw = raw.get("rating", {})
    form_raw = raw.get("form", {})

    name = str(system_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [system].name is required")

    description_value = system_raw.get("description")
    description = None if description_value is None else str(description_value)

    parameters = RatingParameters(
        initial_rating=float(rating_raw.get("initial_rating", 3.5)),
        min_rating=float(rating_raw.get("min_rating", 2.0)),
        max_rating=float(rating_raw.get("max_rating", 8.0)),
        k_factor=float(rating_raw.get("k_factor", 0.16)),
        scale_factor=float(rating_raw.get("scale_factor", 2.0)),
        margin_of_victory=bool(rating_raw.get("margin_of_victory", True)),
        margin_base=float(rating_raw.get("margin_base", 0.7)),
        margin_step=float(rating_raw.get("margin_step", 0.075)),
        margin_min=float(rating_raw.get("margin_min", 0.5)),
        margin_max=float(rating_raw.get("margin_max", 1.5)),
        performance_weight=float(rating_raw.get("performance_weight", 0.0)),
        performance_min=float(rating_raw.get("performance_min", 0.7)),
        performance_max=float(rating_raw.get("performance_max", 1.3)),
    )
    form = FormParameters(
        window=int(form_raw.get("window", 10)),
        min_games=int(form_raw.get("min_games", 3)),
        decay=float(form_raw.get("decay", 0.85)),
        neutral_score=float(form_raw.get("neutral_score", 50.0)),
        score_scale=float(form_raw.get("score_scale", 25.0)),
        quality_weight=float(form_raw.get("quality_weight", 0.25)),
        good_form_threshold=float(form_raw.get("good_form_threshold", 65.0)),
        poor_form_threshold=float(form_raw.get("poor_form_threshold", 35.0)),
    )
    _validate_parameters(file_path=file_path, parameters=parameters)
    _validate_form(file_path=file_path, form=form)

    return RatingSystemConfig(
        name=name,
        description=description,
        file_path=file_path,
        parameters=parameters,
        form=form,
    )


def _validate_parameters(*, file_path: Path, parameters: RatingParameters) -> None:
    if parameters.min_rating <= 0.0:
        raise ValueError(f"{file_path}: [rating].min_rating must be > 0")
    if parameters.max_rating <= parameters.min_rating:
        raise ValueError(f"{file_path}: [rating].max_rating must be > min_rating")
    if not parameters.min_rating <= parameters.initial_rating <= parameters.max_rating:
        raise ValueError(f"{file_path}: [rating].initial_rating must be within [min_rating, max_rating]")
    if parameters.k_factor <= 0.0:
        raise ValueError(f"{file_path}: [rating].k_factor must be > 0")
    if parameters.scale_factor <= 0.0:
        raise ValueError(f"{file_path}: [rating].scale_factor must be > 0")
    if parameters.margin_min <= 0.0:
        raise ValueError(f"{file_path}: [rating].margin_min must be > 0")
    if parameters.margin_max < parameters.margin_min:
        raise ValueError(f"{file_path}: [rating].margin_max must be >= margin_min")
    if parameters.margin_step < 0.0:
        raise ValueError(f"{file_path}: [rating].margin_step must be >= 0")
    if parameters.performance_weight < 0.0:
        raise ValueError(f"{file_path}: [rating].performance_weight must be >= 0")
    if parameters.performance_min <= 0.0 or parameters.performance_max < parameters.performance_min:
        raise ValueError(
            f"{file_path}: [rating].performance_min must be > 0 and <= performance_max"
        )


def _validate_form(*, file_path: Path, form: FormParameters) -> None:
    if form.window <= 0:
        raise ValueError(f"{file_path}: [form].window must be > 0")
    if form.min_games < 1 or form.min_games > form.window:
        raise ValueError(f"{file_path}: [form].min_games must be between 1 and window")
    if form.decay <= 0.0 or form.decay > 1.0:
        raise ValueError(f"{file_path}: [form].decay must be in (0, 1]")
    if not 0.0 <= form.neutral_score <= 100.0:
        raise ValueError(f"{file_path}: [form].neutral_score must be between 0 and 100")
    if form.score_scale <= 0.0:
        raise ValueError(f"{file_path}: [form].score_scale must be > 0")
    if form.quality_weight < 0.0:
        raise ValueError(f"{file_path}: [form].quality_weight must be >= 0")
    if form.poor_form_threshold >= form.good_form_threshold:
        raise ValueError(f"{file_path}: [form].poor_form_threshold must be < good_form_threshold")
