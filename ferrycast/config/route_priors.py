"""
Static route priors for the ferry network.

Terminal name -> code mapping, historical mean at-dock / at-sea durations per
route and the validation thresholds used while building training windows and
fitting models. Built once per process with create_route_priors() and passed
explicitly to every pipeline function.

Duration priors are averages over roughly two years of vessel history.
"""

from pydantic import BaseModel, ConfigDict, Field

from ferrycast.config.config import TrainingSettings, settings

ROUTE_KEY_SEPARATOR = "->"

VALID_TERMINALS = frozenset({
    "ANA", "BBI", "BRE", "CLI", "COU", "EDM", "FAU", "FRH", "KIN", "LOP",
    "MUK", "ORI", "P52", "POT", "PTD", "SHI", "SID", "SOU", "TAH", "VAI",
})

TERMINAL_MAPPING = {
    # Puget Sound
    "Bainbridge": "BBI",
    "Bainbridge Island": "BBI",
    "Bremerton": "BRE",
    "Kingston": "KIN",
    "Edmonds": "EDM",
    "Mukilteo": "MUK",
    "Clinton": "CLI",
    "Fauntleroy": "FAU",
    "Vashon": "VAI",
    "Vashon Island": "VAI",
    "Colman": "P52",
    "Seattle": "P52",
    "Southworth": "SOU",
    "Pt. Defiance": "PTD",
    "Point Defiance": "PTD",
    "Tahlequah": "TAH",
    # San Juan Islands
    "Anacortes": "ANA",
    "Friday": "FRH",
    "Friday Harbor": "FRH",
    "Shaw": "SHI",
    "Shaw Island": "SHI",
    "Orcas": "ORI",
    "Orcas Island": "ORI",
    "Lopez": "LOP",
    "Lopez Island": "LOP",
    # Other
    "Port Townsend": "POT",
    "Keystone": "COU",
}

MEAN_AT_DOCK_MINUTES = {
    "ANA->FRH": 26.74, "ANA->LOP": 26.65, "ANA->ORI": 26.33, "ANA->SHI": 23.2,
    "BBI->P52": 18.5, "BRE->P52": 18.55, "CLI->MUK": 16.38, "COU->POT": 17.94,
    "EDM->KIN": 23.94, "FAU->SOU": 15.99, "FAU->VAI": 15.42, "FRH->ANA": 26.28,
    "FRH->LOP": 27.22, "FRH->ORI": 23.39, "FRH->SHI": 20.82, "KIN->EDM": 24.18,
    "LOP->ANA": 12.63, "LOP->FRH": 10.02, "LOP->ORI": 12.87, "LOP->SHI": 10.7,
    "MUK->CLI": 15.4, "ORI->ANA": 19.52, "ORI->FRH": 12.09, "ORI->LOP": 20.88,
    "ORI->SHI": 21.99, "P52->BBI": 21.17, "P52->BRE": 18.93, "POT->COU": 21.07,
    "PTD->TAH": 17.39, "SHI->ANA": 6.23, "SHI->LOP": 6.2, "SHI->ORI": 6.76,
    "SOU->FAU": 10.55, "SOU->VAI": 14.67, "TAH->PTD": 13.68, "VAI->FAU": 14.12,
    "VAI->SOU": 10.99,
}

MEAN_AT_SEA_MINUTES = {
    "ANA->FRH": 68.9, "ANA->LOP": 42.8, "ANA->ORI": 54.8, "ANA->SHI": 50.0,
    "BBI->P52": 31.8, "BRE->P52": 55.8, "CLI->MUK": 14.6, "COU->POT": 27.4,
    "EDM->KIN": 21.8, "FAU->SOU": 21.6, "FAU->VAI": 14.5, "FRH->ANA": 71.9,
    "FRH->LOP": 35.7, "FRH->ORI": 40.8, "FRH->SHI": 43.4, "KIN->EDM": 21.9,
    "LOP->ANA": 45.1, "LOP->FRH": 36.8, "LOP->ORI": 18.1, "LOP->SHI": 18.5,
    "MUK->CLI": 14.6, "ORI->ANA": 53.9, "ORI->FRH": 44.1, "ORI->LOP": 19.9,
    "ORI->SHI": 9.3, "P52->BBI": 32.8, "P52->BRE": 57.0, "POT->COU": 27.1,
    "PTD->TAH": 13.6, "SHI->ANA": 53.5, "SHI->LOP": 19.1, "SHI->ORI": 9.2,
    "SOU->FAU": 21.9, "SOU->VAI": 12.1, "TAH->PTD": 12.0, "VAI->FAU": 14.8,
    "VAI->SOU": 11.4,
}


def format_route_key(departing: str, arriving: str) -> str:
    """Format a route key like "BBI->P52"."""
    return f"{departing}{ROUTE_KEY_SEPARATOR}{arriving}"


def parse_route_key(key: str) -> tuple[str, str]:
    """
    Split a route key into (departing, arriving) terminal codes.

    Raises:
        ValueError: If the key is not in "FROM->TO" format
    """
    parts = key.split(ROUTE_KEY_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Invalid route key format: {key}")
    return parts[0], parts[1]


class ValidationThresholds(BaseModel):
    """Thresholds for window validation, bucketing and training."""

    model_config = ConfigDict(frozen=True)

    min_at_sea_minutes: float = 2.0
    max_at_sea_minutes: float = 90.0
    min_at_dock_minutes: float = 2.0
    max_at_dock_minutes: float = 45.0
    max_total_minutes: float = 120.0
    early_departure_tolerance_minutes: float = 5.0
    min_at_sea_ratio_of_mean: float = 0.8
    slack_clamp_multiplier: float = 1.5
    max_next_slack_minutes: float = 720.0
    max_samples_per_route: int = 7500
    train_ratio: float = Field(default=0.8, gt=0.0, lt=1.0)
    min_total_examples: int = 20
    min_train_examples: int = 10
    min_test_examples: int = 5
    instability_coefficient_threshold: float = 10_000.0
    zero_rounding_threshold: float = 1e-6

    @classmethod
    def from_settings(cls, training: TrainingSettings) -> "ValidationThresholds":
        """Build thresholds from environment-backed training settings."""
        return cls(**training.model_dump(include=set(cls.model_fields)))


class RoutePriorsConfig(BaseModel):
    """
    Immutable lookup tables for the ferry network.

    Unknown routes have a mean duration of 0.0, which callers treat as
    "no prior available".
    """

    model_config = ConfigDict(frozen=True)

    valid_terminals: frozenset[str]
    terminal_mapping: dict[str, str]
    mean_at_dock_minutes: dict[str, float]
    mean_at_sea_minutes: dict[str, float]
    thresholds: ValidationThresholds = Field(default_factory=ValidationThresholds)

    def is_valid_terminal(self, code: str) -> bool:
        return code in self.valid_terminals

    def terminal_code(self, terminal_name: str) -> str | None:
        """
        Map a terminal name to its code.

        Returns None when the name is unmapped or maps to a code outside the
        valid terminal set.
        """
        code = self.terminal_mapping.get(terminal_name.strip())
        if code is None or not self.is_valid_terminal(code):
            return None
        return code

    def mean_at_dock(self, route_key: str) -> float:
        return self.mean_at_dock_minutes.get(route_key, 0.0)

    def mean_at_sea(self, route_key: str) -> float:
        return self.mean_at_sea_minutes.get(route_key, 0.0)


def create_route_priors(thresholds: ValidationThresholds | None = None) -> RoutePriorsConfig:
    """
    Create the route priors with default network tables.

    Args:
        thresholds: Validation thresholds (defaults to values from settings)

    Returns:
        RoutePriorsConfig
    """
    return RoutePriorsConfig(
        valid_terminals=VALID_TERMINALS,
        terminal_mapping=dict(TERMINAL_MAPPING),
        mean_at_dock_minutes=dict(MEAN_AT_DOCK_MINUTES),
        mean_at_sea_minutes=dict(MEAN_AT_SEA_MINUTES),
        thresholds=thresholds or ValidationThresholds.from_settings(settings.training),
    )


__all__ = [
    "ROUTE_KEY_SEPARATOR",
    "VALID_TERMINALS",
    "TERMINAL_MAPPING",
    "MEAN_AT_DOCK_MINUTES",
    "MEAN_AT_SEA_MINUTES",
    "format_route_key",
    "parse_route_key",
    "ValidationThresholds",
    "RoutePriorsConfig",
    "create_route_priors",
]
