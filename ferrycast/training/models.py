"""
Model type definitions.

Each model type pairs a feature tier with a target. at-dock models only see
features known before departure; at-sea models also see the departure.
"""

from enum import Enum
from typing import Callable, NamedTuple

from ferrycast.training.types import FeatureRecord


class ModelType(str, Enum):
    """Trained model types."""
    AT_DOCK_DEPART_CURR = "at-dock-depart-curr"
    AT_DOCK_ARRIVE_NEXT = "at-dock-arrive-next"
    AT_DOCK_DEPART_NEXT = "at-dock-depart-next"
    AT_SEA_ARRIVE_NEXT = "at-sea-arrive-next"
    AT_SEA_DEPART_NEXT = "at-sea-depart-next"


class ModelDefinition(NamedTuple):
    model_type: ModelType
    description: str
    extract_features: Callable[[FeatureRecord], dict[str, float]]
    extract_target: Callable[[FeatureRecord], float | None]


def _at_dock(record: FeatureRecord) -> dict[str, float]:
    return record.features.at_dock


def _at_sea(record: FeatureRecord) -> dict[str, float]:
    return record.features.at_sea


MODEL_DEFINITIONS: dict[ModelType, ModelDefinition] = {
    ModelType.AT_DOCK_DEPART_CURR: ModelDefinition(
        model_type=ModelType.AT_DOCK_DEPART_CURR,
        description="Departure delay at B, predicted on arrival at B",
        extract_features=_at_dock,
        extract_target=lambda r: r.targets.depart_curr_minutes,
    ),
    ModelType.AT_DOCK_ARRIVE_NEXT: ModelDefinition(
        model_type=ModelType.AT_DOCK_ARRIVE_NEXT,
        description="Arrival at C from B's scheduled departure, predicted at B",
        extract_features=_at_dock,
        extract_target=lambda r: r.targets.arrive_next_from_scheduled_minutes,
    ),
    ModelType.AT_DOCK_DEPART_NEXT: ModelDefinition(
        model_type=ModelType.AT_DOCK_DEPART_NEXT,
        description="Departure delay at C, predicted at B",
        extract_features=_at_dock,
        extract_target=lambda r: r.targets.depart_next_from_next_scheduled_minutes,
    ),
    ModelType.AT_SEA_ARRIVE_NEXT: ModelDefinition(
        model_type=ModelType.AT_SEA_ARRIVE_NEXT,
        description="Arrival at C from B's actual departure, predicted after leaving B",
        extract_features=_at_sea,
        extract_target=lambda r: r.targets.arrive_next_from_actual_minutes,
    ),
    ModelType.AT_SEA_DEPART_NEXT: ModelDefinition(
        model_type=ModelType.AT_SEA_DEPART_NEXT,
        description="Departure delay at C, predicted after leaving B",
        extract_features=_at_sea,
        extract_target=lambda r: r.targets.depart_next_from_next_scheduled_minutes,
    ),
}

MODEL_TYPES: list[ModelType] = list(MODEL_DEFINITIONS)


def get_model_definition(model_type: ModelType | str) -> ModelDefinition:
    """Look up a model definition by type or its string value."""
    return MODEL_DEFINITIONS[ModelType(model_type)]


__all__ = [
    "ModelType",
    "ModelDefinition",
    "MODEL_DEFINITIONS",
    "MODEL_TYPES",
    "get_model_definition",
]
